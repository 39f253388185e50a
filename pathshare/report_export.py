"""Excel export of location accuracy reports for offline analysis."""

from __future__ import annotations

import logging
from datetime import timezone
from os import PathLike
from typing import Sequence

import pandas as pd
from openpyxl.styles import Border, Font, PatternFill, Side
from openpyxl.worksheet.worksheet import Worksheet

from .config import EXPORT_AUTOSIZE_MAX_WIDTH, EXPORT_AUTOSIZE_MIN_WIDTH
from .models import LocationReport
from .services.report_store import compute_accuracy_statistics, report_error_meters

REPORTS_SHEET = "Reports"
SUMMARY_SHEET = "Summary"
EXCEL_DATETIME_FORMAT = "yyyy-mm-dd hh:mm:ss"
REPORT_COLUMNS = [
    "Report ID",
    "Timestamp (UTC)",
    "Reporter",
    "GPS Lat",
    "GPS Lon",
    "Corrected Lat",
    "Corrected Lon",
    "Error (m)",
]

HEADER_FONT = Font(bold=True)
HEADER_FILL = PatternFill(patternType="solid", fgColor="FFDDEBF7")
HEADER_BORDER = Border(
    left=Side(style="thin", color="000000"),
    right=Side(style="thin", color="000000"),
    top=Side(style="thin", color="000000"),
    bottom=Side(style="thin", color="000000"),
)

LOGGER = logging.getLogger(__name__)

PathInput = str | PathLike[str]


def build_reports_frame(reports: Sequence[LocationReport]) -> pd.DataFrame:
    rows = []
    for report in reports:
        # Excel cannot hold tz-aware datetimes.
        timestamp = report.timestamp.astimezone(timezone.utc).replace(tzinfo=None)
        rows.append(
            {
                "Report ID": report.id,
                "Timestamp (UTC)": timestamp,
                "Reporter": report.reporter_id or "anonymous",
                "GPS Lat": report.default_location[0],
                "GPS Lon": report.default_location[1],
                "Corrected Lat": report.corrected_location[0],
                "Corrected Lon": report.corrected_location[1],
                "Error (m)": round(report_error_meters(report), 2),
            }
        )
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def build_summary_frame(reports: Sequence[LocationReport]) -> pd.DataFrame:
    stats = compute_accuracy_statistics(reports)
    return pd.DataFrame(
        {
            "Metric": ["Reports", "Average Error (m)", "Max Error (m)"],
            "Value": [
                stats.count,
                round(stats.average_error_meters, 2),
                round(stats.max_error_meters, 2),
            ],
        }
    )


def _style_header_row(ws: Worksheet, max_col: int) -> None:
    for col_idx in range(1, max_col + 1):
        cell = ws.cell(row=1, column=col_idx)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.border = HEADER_BORDER


def _autosize(ws: Worksheet) -> None:
    for col_cells in ws.columns:
        max_len = 0
        col_letter = getattr(col_cells[0], "column_letter", None)
        for cell in col_cells:
            if cell.value is None:
                continue
            max_len = max(max_len, len(str(cell.value)))
        width = min(
            EXPORT_AUTOSIZE_MAX_WIDTH, max(EXPORT_AUTOSIZE_MIN_WIDTH, max_len + 2)
        )
        if col_letter:
            ws.column_dimensions[col_letter].width = width


def write_reports_workbook(
    filepath: PathInput, reports: Sequence[LocationReport]
) -> None:
    """Write a Reports sheet (one row per report) and a Summary sheet."""

    frames = [
        (REPORTS_SHEET, build_reports_frame(reports)),
        (SUMMARY_SHEET, build_summary_frame(reports)),
    ]
    with pd.ExcelWriter(
        filepath, engine="openpyxl", datetime_format=EXCEL_DATETIME_FORMAT
    ) as writer:
        for sheet_name, df in frames:
            df.to_excel(writer, sheet_name=sheet_name, index=False)
            ws = writer.sheets[sheet_name]
            _style_header_row(ws, len(df.columns))
            _autosize(ws)
    LOGGER.info("Wrote %d reports to %s", len(reports), filepath)


__all__ = ["build_reports_frame", "build_summary_frame", "write_reports_workbook"]
