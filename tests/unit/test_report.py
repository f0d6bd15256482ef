from __future__ import annotations

from pathlib import Path

import pandas as pd

from caseimport.models.import_result import ClientNotFound, ImportResult, RowError, SuccessfulImport
from caseimport.services.report import (
    REPORT_SHEET,
    STATUS_CLIENT_NOT_FOUND,
    STATUS_ERROR,
    STATUS_SUCCESS,
    TEMPLATE_ROW,
    build_report_rows,
    write_report,
    write_template,
)


def _result() -> ImportResult:
    result = ImportResult()
    result.record_success(SuccessfulImport(2, "A vs B", "GJHC1", "John Doe"))
    result.record_success(SuccessfulImport(3, "C vs D", "WP 1", "No client"))
    result.record_client_not_found(ClientNotFound(3, "Nobody"))
    result.record_error(RowError(4, "Missing Title"))
    return result


def test_build_report_rows_groups_by_status():
    rows = build_report_rows(_result())
    assert [(r.row_number, r.status) for r in rows] == [
        (2, STATUS_SUCCESS),
        (3, STATUS_SUCCESS),
        (3, STATUS_CLIENT_NOT_FOUND),
        (4, STATUS_ERROR),
    ]
    assert rows[0].identifier == "GJHC1" and rows[0].client == "John Doe"
    assert rows[2].error == "Client not found in database"
    assert rows[3].error == "Missing Title" and rows[3].title == ""


def test_build_report_rows_empty():
    assert build_report_rows(ImportResult()) == []


def test_write_report_xlsx(tmp_path: Path):
    path = write_report(build_report_rows(_result()), tmp_path / "out" / "report.xlsx")
    df = pd.read_excel(path, sheet_name=REPORT_SHEET)
    assert list(df.columns) == ["Row Number", "Status", "Title", "CNR/Case Number", "Client", "Error"]
    assert list(df["Status"]) == ["Success", "Success", "Client Not Found", "Error"]


def test_write_report_csv(tmp_path: Path):
    path = write_report(build_report_rows(_result()), tmp_path / "report.csv")
    df = pd.read_csv(path)
    assert len(df) == 4
    assert df.loc[3, "Error"] == "Missing Title"


def test_write_template(tmp_path: Path):
    path = write_template(tmp_path / "template.xlsx")
    df = pd.read_excel(path, sheet_name="Template", dtype=str)
    assert list(df.columns) == list(TEMPLATE_ROW)
    assert df.loc[0, "CNR"] == "GUJHC010012342023"
    assert df.loc[0, "client"] == "John Doe"
