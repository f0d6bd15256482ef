from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Union

"""ImportRow model for the case import tool.

ImportRow represents a single spreadsheet line after reading, before any
field extraction or validation happens.
"""

__all__ = [
    "CellValue",
    "ImportRow",
    "HEADER_OFFSET",
]

CellValue = Union[str, int, float, date, None]

# spreadsheet row 1 is the header, so data index 0 is row 2
HEADER_OFFSET = 2


@dataclass(frozen=True)
class ImportRow:
    """Logical representation of one spreadsheet line.

    The row_number is display-only and is what error messages and the
    report refer to (first data row = 2).
    """
    row_number: int
    raw_fields: dict[str, CellValue] = field(default_factory=dict)

    @classmethod
    def from_index(cls, index: int, raw_fields: dict[str, CellValue]) -> ImportRow:
        return cls(row_number=index + HEADER_OFFSET, raw_fields=raw_fields)

    def get(self, column: str) -> CellValue:
        return self.raw_fields.get(column)
