"""Location accuracy reports and the statistics computed over them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, List

from ..config import LOCATION_REPORTS_TABLE
from ..errors import ValidationError
from ..geo import distance_meters
from ..models import (
    AccuracyStatistics,
    Identity,
    LatLon,
    LocationReport,
    format_timestamp,
    to_latlon,
)
from ..supabase_client.tables import Table, TableProvider


def report_error_meters(report: LocationReport) -> float:
    return distance_meters(report.default_location, report.corrected_location)


def compute_accuracy_statistics(
    reports: Iterable[LocationReport],
) -> AccuracyStatistics:
    """Mean and max GPS error over already-fetched reports; zeros when empty."""

    errors = [report_error_meters(report) for report in reports]
    if not errors:
        return AccuracyStatistics(count=0, average_error_meters=0.0, max_error_meters=0.0)
    return AccuracyStatistics(
        count=len(errors),
        average_error_meters=sum(errors) / len(errors),
        max_error_meters=max(errors),
    )


@dataclass(slots=True)
class ReportStoreConfig:
    logger: logging.Logger | None = None


class AccuracyReportStore:
    """Append-only log of (reported, corrected) location pairs."""

    def __init__(
        self,
        client: TableProvider,
        config: ReportStoreConfig | None = None,
    ) -> None:
        self._client = client
        self.config = config or ReportStoreConfig()
        self._log = self.config.logger or logging.getLogger(self.__class__.__name__)

    def _table(self, identity: Identity | None = None) -> Table:
        return self._client.table(LOCATION_REPORTS_TABLE, identity)

    def submit_report(
        self,
        default_location: Any,
        corrected_location: Any,
        reporter: Identity | None = None,
        *,
        timestamp: datetime | None = None,
        client_report_id: str | None = None,
    ) -> str:
        """Store a report and return its id; anonymous reports are accepted.

        Raises:
            ValidationError: either location is missing or unreadable.
            StorageError: the insert failed.
        """

        try:
            default = to_latlon(default_location)
            corrected = to_latlon(corrected_location)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid report location: {exc}") from exc
        if default is None or corrected is None:
            raise ValidationError(
                "Both the reported and corrected locations are required"
            )
        report = LocationReport(
            default_location=default,
            corrected_location=corrected,
            timestamp=timestamp or datetime.now(timezone.utc),
            reporter_id=reporter.user_id if reporter else None,
            client_report_id=client_report_id,
        )
        stored = self._table(reporter).insert(report.to_row())
        report_id = str(stored["id"])
        self._log.info(
            "Location accuracy report saved with ID: %s error=%.1fm",
            report_id,
            report_error_meters(report),
        )
        return report_id

    def list_all_reports(self) -> List[LocationReport]:
        """Every report, newest first by timestamp."""

        rows = self._table().select(order_by="timestamp", descending=True)
        reports: List[LocationReport] = []
        for row in rows:
            try:
                reports.append(LocationReport.from_row(row))
            except (TypeError, ValueError) as exc:
                self._log.warning("Skipping malformed report id=%s: %s", row.get("id"), exc)
        self._log.debug("Retrieved %d reports", len(reports))
        return reports

    def find_by_client_report_id(self, client_report_id: str) -> LocationReport | None:
        row = self._table().select_one({"client_report_id": client_report_id})
        return LocationReport.from_row(row) if row is not None else None

    def find_legacy_report(
        self,
        default_location: LatLon,
        corrected_location: LatLon,
        timestamp: datetime,
    ) -> LocationReport | None:
        """Match a report stored without a client id by timestamp and locations."""

        rows = self._table().select(
            {"client_report_id": None, "timestamp": format_timestamp(timestamp)}
        )
        for row in rows:
            try:
                report = LocationReport.from_row(row)
            except (TypeError, ValueError):
                continue
            if (
                report.default_location == default_location
                and report.corrected_location == corrected_location
            ):
                return report
        return None

    def accuracy_statistics(self) -> AccuracyStatistics:
        return compute_accuracy_statistics(self.list_all_reports())


__all__ = [
    "AccuracyReportStore",
    "ReportStoreConfig",
    "compute_accuracy_statistics",
    "report_error_meters",
]
