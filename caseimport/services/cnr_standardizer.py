from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from ..db.record_store import CASES_TABLE, RecordStore, RecordStoreError
from .identifiers import normalize_cnr

"""Rewrite stored CNR numbers into their normalized form.

Cases imported before normalization existed (or entered by hand) may carry
CNRs with separators or lowercase letters, which breaks exact-match lookups
such as client linking. analyze_cnrs only reads; apply_standardization
writes one case at a time.
"""

__all__ = [
    "CnrChange",
    "StandardizeResult",
    "analyze_cnrs",
    "apply_standardization",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CnrChange:
    case_id: str
    case_title: str
    original: str
    standardized: str


@dataclass
class StandardizeResult:
    updated: int = 0
    errors: list[str] = field(default_factory=list)


def analyze_cnrs(store: RecordStore, firm_id: str) -> list[CnrChange]:
    """List the firm's cases whose stored CNR is not already normalized."""
    cases = store.select(
        CASES_TABLE, {"firm_id": firm_id}, columns="id, case_title, cnr_number"
    )
    changes: list[CnrChange] = []
    for case in cases:
        original = case.get("cnr_number")
        if not original:
            continue
        standardized = normalize_cnr(original)
        if standardized != original:
            changes.append(
                CnrChange(
                    case_id=case["id"],
                    case_title=case.get("case_title") or "",
                    original=original,
                    standardized=standardized,
                )
            )
    logger.info("%d of %d cases need CNR standardization", len(changes), len(cases))
    return changes


def apply_standardization(
    store: RecordStore,
    changes: Sequence[CnrChange],
    now: Callable[[], datetime] = lambda: datetime.now(UTC),
) -> StandardizeResult:
    result = StandardizeResult()
    for change in changes:
        try:
            store.update(
                CASES_TABLE,
                change.case_id,
                {"cnr_number": change.standardized, "updated_at": now().isoformat()},
            )
        except RecordStoreError as e:
            logger.warning("could not standardize case=%s: %s", change.case_id, e)
            result.errors.append(f"{change.case_title}: {e}")
            continue
        result.updated += 1
    return result
