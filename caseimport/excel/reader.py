from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.import_row import ImportRow

"""Spreadsheet reading and writing.

Reading: the first sheet of an .xlsx/.xls workbook, or a .csv file. The
first row is the header; every following non-blank row becomes an ImportRow
(first data row = row 2). Empty cells become None. CSV cells are read as
text so case and reference numbers keep leading zeros.

Writing: flat record lists to .xlsx (openpyxl) or .csv, used for the import
report and the sample template.
"""

__all__ = [
    "SpreadsheetReadError",
    "SUPPORTED_SUFFIXES",
    "read_spreadsheet",
    "write_table",
]

SUPPORTED_SUFFIXES = frozenset({".xlsx", ".xls", ".csv"})


class SpreadsheetReadError(Exception):
    """Raised when a file cannot be read as a spreadsheet."""


def _na_options(keep_na_strings: Sequence[str] | None) -> dict[str, Any]:
    # pandas turns strings like "NA" into NaN by default; keep_na_strings
    # lists the ones that must survive as text
    if not keep_na_strings:
        return {"keep_default_na": True, "na_values": None}
    import pandas._libs.parsers as parsers

    custom_na = set(parsers.STR_NA_VALUES) - set(keep_na_strings)
    return {"keep_default_na": False, "na_values": list(custom_na)}


def _load_frame(path: Path, keep_na_strings: Sequence[str] | None) -> pd.DataFrame:
    suffix = path.suffix.lower()
    na = _na_options(keep_na_strings)
    if suffix == ".csv":
        try:
            return pd.read_csv(path, dtype=str, **na)
        except pd.errors.EmptyDataError:
            return pd.DataFrame()
    return pd.read_excel(path, sheet_name=0, header=0, **na)


def read_spreadsheet(
    path: Path, keep_na_strings: Sequence[str] | None = None
) -> list[ImportRow]:
    """Parse a spreadsheet file into ordered ImportRows.

    Raises:
        SpreadsheetReadError: missing file, unsupported extension, or a file
            the parser rejects.
    """
    if not path.exists():
        raise SpreadsheetReadError(f"file not found: {path}")
    if path.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise SpreadsheetReadError(
            f"unsupported file type '{path.suffix}' (expected one of {sorted(SUPPORTED_SUFFIXES)})"
        )
    try:
        df = _load_frame(path, keep_na_strings)
    except (ValueError, OSError, ImportError) as e:
        raise SpreadsheetReadError(f"cannot read {path.name}: {e}") from e

    columns = [str(c).strip() for c in df.columns]
    data = df.astype(object)
    rows: list[ImportRow] = []
    for index, (_, raw) in enumerate(data.iterrows()):
        # blank lines keep their spreadsheet position but produce no row
        if raw.isna().all():
            continue
        fields: dict[str, Any] = {}
        for col, val in zip(columns, raw.tolist(), strict=False):
            fields[col] = None if pd.isna(val) else val
        rows.append(ImportRow.from_index(index, fields))
    return rows


def write_table(
    records: Sequence[Mapping[str, Any]],
    path: Path,
    sheet_name: str,
    columns: Sequence[str] | None = None,
) -> Path:
    """Write records to .xlsx or .csv depending on the path suffix."""
    df = pd.DataFrame(list(records), columns=list(columns) if columns else None)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".csv":
        df.to_csv(path, index=False)
    else:
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name=sheet_name, index=False)
    return path
