from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, fields, replace
from typing import Any

"""Field extraction from spreadsheet rows.

Spreadsheet headers vary in casing and wording between offices, so every
logical field is looked up through an ordered list of header aliases. Lookups
are case-sensitive; the alias lists carry the casing variants.
"""

__all__ = [
    "FieldAliases",
    "DEFAULT_ALIASES",
    "extract_field",
    "extract_value",
]


@dataclass(frozen=True)
class FieldAliases:
    title: tuple[str, ...] = ("Title", "title", "TITLE", "Case Title")
    cnr: tuple[str, ...] = ("CNR", "cnr", "CNR Number", "cnr_number")
    case_number: tuple[str, ...] = ("Case Number", "case_number", "CASE_NUMBER")
    reference_number: tuple[str, ...] = (
        "Matter Reference Number", "reference_number", "Reference Number",
    )
    court_type: tuple[str, ...] = ("Forum Type", "forum_type", "Court Type")
    court_name: tuple[str, ...] = ("Court", "court", "Court Name")
    by_against: tuple[str, ...] = ("By/Against", "by_against", "BY_AGAINST")
    client_name: tuple[str, ...] = ("client", "Client", "Client Name", "client_name")
    filing_date: tuple[str, ...] = ("Filing Date", "filing_date", "FILING_DATE")
    disposal_date: tuple[str, ...] = (
        "Disposed Date", "disposed_date", "DISPOSED_DATE", "Disposal Date",
    )
    nature_of_disposal: tuple[str, ...] = (
        "Nature of Disposal", "nature_of_disposal", "Disposal Nature",
    )
    last_order_date: tuple[str, ...] = ("Last Order Date", "last_order_date", "Order Date")
    last_hearing_date: tuple[str, ...] = (
        "Last Hearing Date", "last_hearing_date", "Hearing Date",
    )
    # client-link sheets use their own headers
    link_cnr: tuple[str, ...] = ("cnr_number", "CNR_NUMBER", "CNR Number")
    link_client_name: tuple[str, ...] = ("client_name", "CLIENT_NAME", "Client Name")

    def extended(self, extra: Mapping[str, Sequence[str]]) -> FieldAliases:
        """Return a copy with extra aliases appended after the defaults."""
        known = {f.name for f in fields(self)}
        unknown = set(extra) - known
        if unknown:
            raise ValueError(f"unknown alias fields: {sorted(unknown)}")
        changes: dict[str, tuple[str, ...]] = {}
        for name, aliases in extra.items():
            current = getattr(self, name)
            changes[name] = current + tuple(a for a in aliases if a not in current)
        return replace(self, **changes)


DEFAULT_ALIASES = FieldAliases()


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return not str(value).strip()


def _to_text(value: Any) -> str:
    # numeric cells come back as 1234.0 from readers that upcast to float
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def extract_value(row: Mapping[str, Any], aliases: Sequence[str]) -> Any:
    """Return the first non-empty raw cell among ``aliases`` (or None)."""
    for name in aliases:
        value = row.get(name)
        if not _is_empty(value):
            return value
    return None


def extract_field(row: Mapping[str, Any], aliases: Sequence[str]) -> str:
    """Return the first non-empty cell among ``aliases`` as a trimmed string.

    Returns "" when no alias matches; callers treat "" as absent.
    """
    value = extract_value(row, aliases)
    if value is None:
        return ""
    return _to_text(value)
