from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, dataclass
from pathlib import Path

from ..excel.reader import write_table
from ..models.import_result import ImportResult

"""Downloadable import report and the sample upload template.

Report rows are listed successes first, then client-not-found notices, then
errors, each group in the order the rows settled.
"""

__all__ = [
    "ReportRow",
    "build_report_rows",
    "write_report",
    "write_template",
    "REPORT_SHEET",
    "TEMPLATE_SHEET",
    "STATUS_SUCCESS",
    "STATUS_CLIENT_NOT_FOUND",
    "STATUS_ERROR",
]

REPORT_SHEET = "Import Report"
TEMPLATE_SHEET = "Template"

STATUS_SUCCESS = "Success"
STATUS_CLIENT_NOT_FOUND = "Client Not Found"
STATUS_ERROR = "Error"
CLIENT_NOT_FOUND_MESSAGE = "Client not found in database"

REPORT_COLUMNS = {
    "row_number": "Row Number",
    "status": "Status",
    "title": "Title",
    "identifier": "CNR/Case Number",
    "client": "Client",
    "error": "Error",
}

TEMPLATE_ROW = {
    "Matter Reference Number": "MAT/2023/001",
    "Title": "John Doe Vs State of Gujarat",
    "Case Number": "WP 1234/2023",
    "Forum Type": "High Court",
    "Court": "Gujarat High Court",
    "By/Against": "By",
    "client": "John Doe",
    "CNR": "GUJHC010012342023",
    "Case status": "Disposed",
    "Filing Date": "15-01-2023",
    "Disposed Date": "20-03-2024",
    "Nature of Disposal": "Dismissed",
    "Last Order Date": "20-03-2024",
    "Last Hearing Date": "15-03-2024",
}


@dataclass(frozen=True)
class ReportRow:
    row_number: int
    status: str
    title: str = ""
    identifier: str = ""
    client: str = ""
    error: str = ""


def build_report_rows(result: ImportResult) -> list[ReportRow]:
    rows = [
        ReportRow(
            row_number=s.row_number,
            status=STATUS_SUCCESS,
            title=s.title,
            identifier=s.identifier,
            client=s.client_name,
        )
        for s in result.successful_imports
    ]
    rows.extend(
        ReportRow(
            row_number=c.row_number,
            status=STATUS_CLIENT_NOT_FOUND,
            client=c.client_name,
            error=CLIENT_NOT_FOUND_MESSAGE,
        )
        for c in result.clients_not_found
    )
    rows.extend(
        ReportRow(row_number=e.row_number, status=STATUS_ERROR, error=e.error)
        for e in result.errors
    )
    return rows


def write_report(rows: Sequence[ReportRow], path: Path) -> Path:
    """Write report rows to ``path`` (.xlsx or .csv) with display headers."""
    records = [
        {REPORT_COLUMNS[k]: v for k, v in asdict(r).items()}
        for r in rows
    ]
    return write_table(records, path, REPORT_SHEET, columns=list(REPORT_COLUMNS.values()))


def write_template(path: Path) -> Path:
    return write_table([TEMPLATE_ROW], path, TEMPLATE_SHEET, columns=list(TEMPLATE_ROW))
