from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for error logging.

ErrorRecord is one JSON Lines entry in the import error log. It supports
row=-1 as a sentinel for run-level errors where no row applies.
"""

__all__ = [
    "ErrorRecord",
    "VALIDATION_ERROR",
    "DATABASE_INSERT_ERROR",
    "UNEXPECTED_ERROR",
    "SETUP_ERROR",
]

VALIDATION_ERROR = "VALIDATION_ERROR"
DATABASE_INSERT_ERROR = "DATABASE_INSERT_ERROR"
UNEXPECTED_ERROR = "UNEXPECTED_ERROR"
SETUP_ERROR = "SETUP_ERROR"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: spreadsheet filename being imported
        row: spreadsheet row number, -1 when the error is not tied to a row
        error_type: classification in UPPER_SNAKE_CASE
        message: validation message or record store error
    """
    timestamp: str
    file: str
    row: int
    error_type: str
    message: str

    @staticmethod
    def create(file: str, row: int, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
