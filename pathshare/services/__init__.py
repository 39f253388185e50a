"""Service layer package.

Exports the stores and the migration job consumed by the CLI and by
presentation layers.
"""

from .path_store import PathStore, PathStoreConfig, share_url
from .report_store import (
    AccuracyReportStore,
    ReportStoreConfig,
    compute_accuracy_statistics,
)
from .migration import MigrationService, MigrationServiceConfig, MigrationSummary

__all__ = [
    "PathStore",
    "PathStoreConfig",
    "share_url",
    "AccuracyReportStore",
    "ReportStoreConfig",
    "compute_accuracy_statistics",
    "MigrationService",
    "MigrationServiceConfig",
    "MigrationSummary",
]
