"""Domain models for the case import tool.

This package contains the row, record, and result types shared by the
import, preview, and client-linking services.
"""

from .case_record import ExtractedCaseRecord
from .error_record import ErrorRecord
from .import_result import (
    ClientNotFound,
    ImportPhase,
    ImportProgress,
    ImportResult,
    ImportState,
    RowError,
    SuccessfulImport,
)
from .import_row import ImportRow

__all__ = [
    # Row / record models
    "ImportRow",
    "ExtractedCaseRecord",
    "ErrorRecord",
    # Result models
    "ImportResult",
    "ImportState",
    "ImportPhase",
    "ImportProgress",
    "SuccessfulImport",
    "ClientNotFound",
    "RowError",
]
