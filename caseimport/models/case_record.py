from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

"""ExtractedCaseRecord model for the case import tool.

ExtractedCaseRecord is the shape derived from one ImportRow and persisted to
the ``cases`` table. Column names in ``to_record`` follow the hosted schema.
"""

__all__ = [
    "ByAgainst",
    "ExtractedCaseRecord",
    "DISPOSED_STATUS",
]

ByAgainst = Literal["by", "against"]

DISPOSED_STATUS = "disposed"


@dataclass(frozen=True)
class ExtractedCaseRecord:
    """A case ready to be inserted.

    Invariants:
    - title is non-empty
    - at least one of reference_number / case_number / cnr_number is set
    - cnr_number, when set, is already normalized
    """
    title: str
    created_by: str
    firm_id: str
    reference_number: str | None = None
    case_number: str | None = None
    cnr_number: str | None = None
    court_type: str | None = None
    court_name: str | None = None
    by_against: ByAgainst | None = None
    client_id: str | None = None
    filing_date: str | None = None  # ISO YYYY-MM-DD
    disposal_date: str | None = None
    decision_date: str | None = None  # last order date
    next_hearing_date: str | None = None  # last hearing date
    nature_of_disposal: str | None = None

    @property
    def identifier(self) -> str:
        return self.cnr_number or self.case_number or self.reference_number or ""

    def to_record(self) -> dict[str, Any]:
        return {
            "case_title": self.title,
            "reference_number": self.reference_number,
            "case_number": self.case_number,
            "court_type": self.court_type,
            "court_name": self.court_name,
            "by_against": self.by_against,
            "client_id": self.client_id,
            "cnr_number": self.cnr_number,
            "status": DISPOSED_STATUS,
            "filing_date": self.filing_date,
            "disposal_date": self.disposal_date,
            "decision_date": self.decision_date,
            "next_hearing_date": self.next_hearing_date,
            "description": self.nature_of_disposal,
            "created_by": self.created_by,
            "firm_id": self.firm_id,
            "is_auto_fetched": False,
        }
