from __future__ import annotations

import math
import numbers
import re
from datetime import UTC, date, datetime, timedelta
from typing import Any

import pandas as pd

"""Date parsing for spreadsheet cells.

Accepted inputs, in order:
- native date / datetime cells (pandas Timestamps included)
- spreadsheet serial numbers (days since 1899-12-30), also as digit text
- DD-MM-YYYY or DD/MM/YYYY
- YYYY-MM-DD or YYYY/MM/DD

Anything else is deliberately not guessed and yields None.
"""

__all__ = [
    "parse_date",
    "map_by_against",
    "EXCEL_EPOCH_OFFSET_DAYS",
]

EXCEL_EPOCH_OFFSET_DAYS = 25569  # 1899-12-30 -> 1970-01-01
SECONDS_PER_DAY = 86400

_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_DAY_FIRST = re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{4})$")
_YEAR_FIRST = re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})$")
_SERIAL_TEXT = re.compile(r"^\d+(\.\d+)?$")


def _from_serial(serial: float) -> str | None:
    if math.isnan(serial) or math.isinf(serial):
        return None
    try:
        moment = _UNIX_EPOCH + timedelta(
            seconds=(serial - EXCEL_EPOCH_OFFSET_DAYS) * SECONDS_PER_DAY
        )
    except OverflowError:
        return None
    return moment.date().isoformat()


def _assemble(year: str, month: str, day: str) -> str | None:
    try:
        return date(int(year), int(month), int(day)).isoformat()
    except ValueError:
        return None


def parse_date(value: Any) -> str | None:
    """Convert a cell value to an ISO ``YYYY-MM-DD`` string, or None.

    Never raises.
    """
    if value is None or isinstance(value, bool):
        return None
    # NaN, NaT and pd.NA all count as a missing cell
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return None
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, numbers.Real):
        return _from_serial(float(value))

    text = str(value).strip()
    # CSV cells arrive as text
    if _SERIAL_TEXT.match(text):
        return _from_serial(float(text))
    m = _DAY_FIRST.match(text)
    if m:
        day, month, year = m.groups()
        return _assemble(year, month, day)
    m = _YEAR_FIRST.match(text)
    if m:
        year, month, day = m.groups()
        return _assemble(year, month, day)
    return None


def map_by_against(value: Any) -> str | None:
    if value is None:
        return None
    normalized = str(value).strip().lower()
    if normalized in ("by", "against"):
        return normalized
    return None
