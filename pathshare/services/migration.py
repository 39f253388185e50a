"""One-shot migration of locally cached paths and reports into Supabase.

Each cached record is checked against the remote store before it is inserted,
so running the migration again over the same cache adds nothing. Records are
handled one at a time in order; a failure on one is logged, counted and
skipped. There is no rollback of records already migrated.

Report dedup uses the report's ``clientReportId`` when the cache has one.
Reports cached without it (older browser builds) get a key derived from a
hash of their timestamp and both locations, stored in the same
``client_report_id`` column. Rows stored before that column existed are
matched on timestamp and both locations instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..errors import PathShareError
from ..local_cache import LocalCache
from ..models import Identity, parse_timestamp, to_latlon
from ..supabase_client.auth import SupabaseAuth
from ..utils import content_hash
from .path_store import PathStore
from .report_store import AccuracyReportStore

LEGACY_REPORT_KEY_PREFIX = "legacy-"


@dataclass(slots=True)
class MigrationSummary:
    skipped_unauthenticated: bool = False
    paths_migrated: int = 0
    paths_skipped: int = 0
    paths_failed: int = 0
    reports_migrated: int = 0
    reports_skipped: int = 0
    reports_failed: int = 0
    cache_errors: int = 0
    failures: List[str] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return self.paths_failed + self.reports_failed + self.cache_errors


def report_dedup_key(report: Dict[str, Any]) -> str:
    """Stable id for a cached report (``clientReportId`` or a content hash)."""

    client_id = report.get("clientReportId") or report.get("client_report_id")
    if client_id:
        return str(client_id)
    timestamp = parse_timestamp(report.get("timestamp"))
    return LEGACY_REPORT_KEY_PREFIX + content_hash(
        {
            "timestamp": timestamp,
            "default": to_latlon(report.get("defaultLocation")),
            "corrected": to_latlon(report.get("correctedLocation")),
        }
    )


@dataclass(slots=True)
class MigrationServiceConfig:
    logger: logging.Logger | None = None


class MigrationService:
    def __init__(
        self,
        cache: LocalCache,
        paths: PathStore,
        reports: AccuracyReportStore,
        config: MigrationServiceConfig | None = None,
    ) -> None:
        self.cache = cache
        self.paths = paths
        self.reports = reports
        self.config = config or MigrationServiceConfig()
        self._log = self.config.logger or logging.getLogger(self.__class__.__name__)

    def migrate_current(
        self, auth: SupabaseAuth, access_token: str | None
    ) -> MigrationSummary:
        """Resolve the caller then migrate.

        Raises:
            IdentityProviderError: the identity check itself failed. This is
                the only failure that aborts the whole migration.
        """

        return self.migrate(auth.resolve_identity(access_token))

    def migrate(self, identity: Identity | None) -> MigrationSummary:
        summary = MigrationSummary()
        if identity is None:
            self._log.info("User not authenticated, skipping migration")
            summary.skipped_unauthenticated = True
            return summary

        self._migrate_paths(identity, summary)
        self._migrate_reports(identity, summary)
        self._log.info(
            "Migration completed: paths migrated=%d skipped=%d failed=%d; "
            "reports migrated=%d skipped=%d failed=%d",
            summary.paths_migrated,
            summary.paths_skipped,
            summary.paths_failed,
            summary.reports_migrated,
            summary.reports_skipped,
            summary.reports_failed,
        )
        return summary

    def _migrate_paths(self, identity: Identity, summary: MigrationSummary) -> None:
        try:
            cached = list(self.cache.iter_cached_paths())
        except (OSError, ValueError) as exc:
            self._log.error("Could not read cached paths: %s", exc)
            summary.cache_errors += 1
            summary.failures.append(f"paths: {exc}")
            return

        for key, path_id in cached:
            try:
                if self.paths.get_shared_path(path_id) is not None:
                    summary.paths_skipped += 1
                    continue
                data = self.cache.get(key) or {}
                self.paths.import_shared_path(
                    path_id,
                    data.get("coordinates") or [],
                    user_location=data.get("userLocation"),
                    vertex_data=data.get("vertexData"),
                    identity=identity,
                )
                summary.paths_migrated += 1
                self._log.info("Migrated path %s", path_id)
            except (PathShareError, OSError, TypeError, ValueError) as exc:
                summary.paths_failed += 1
                summary.failures.append(f"{key}: {exc}")
                self._log.error("Error migrating path %s: %s", key, exc)

    def _already_stored(self, key: str, report: Dict[str, Any]) -> bool:
        if self.reports.find_by_client_report_id(key) is not None:
            return True
        if not key.startswith(LEGACY_REPORT_KEY_PREFIX):
            return False
        # Rows inserted before client ids existed have a NULL client_report_id.
        timestamp = parse_timestamp(report.get("timestamp"))
        default = to_latlon(report.get("defaultLocation"))
        corrected = to_latlon(report.get("correctedLocation"))
        if timestamp is None or default is None or corrected is None:
            return False
        return self.reports.find_legacy_report(default, corrected, timestamp) is not None

    def _migrate_reports(self, identity: Identity, summary: MigrationSummary) -> None:
        try:
            cached = self.cache.cached_reports()
        except (OSError, ValueError) as exc:
            self._log.error("Could not read cached reports: %s", exc)
            summary.cache_errors += 1
            summary.failures.append(f"reports: {exc}")
            return

        for index, report in enumerate(cached):
            try:
                if not isinstance(report, dict):
                    raise ValueError("cached report is not an object")
                key = report_dedup_key(report)
                if self._already_stored(key, report):
                    summary.reports_skipped += 1
                    continue
                self.reports.submit_report(
                    report.get("defaultLocation"),
                    report.get("correctedLocation"),
                    identity,
                    timestamp=parse_timestamp(report.get("timestamp")),
                    client_report_id=key,
                )
                summary.reports_migrated += 1
            except (PathShareError, TypeError, ValueError) as exc:
                summary.reports_failed += 1
                summary.failures.append(f"report[{index}]: {exc}")
                self._log.error("Error migrating report %d: %s", index, exc)


__all__ = [
    "MigrationService",
    "MigrationServiceConfig",
    "MigrationSummary",
    "report_dedup_key",
]
