from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ..models.import_row import ImportRow
from .client_matcher import ClientMatcher
from .fields import DEFAULT_ALIASES, FieldAliases
from .validator import RowValidation, validate_row

"""Read-only preview of the first rows of an upload.

Lets the user check column mapping and client matches before committing.
Nothing is written.
"""

__all__ = [
    "Preview",
    "generate_preview",
    "DEFAULT_PREVIEW_ROWS",
]

DEFAULT_PREVIEW_ROWS = 5


@dataclass(frozen=True)
class Preview:
    rows: list[ImportRow]
    columns: list[str]
    validation_results: list[RowValidation]

    @property
    def valid_count(self) -> int:
        return sum(1 for v in self.validation_results if v.has_required_fields)


def generate_preview(
    rows: Sequence[ImportRow],
    matcher: ClientMatcher | None,
    limit: int = DEFAULT_PREVIEW_ROWS,
    aliases: FieldAliases = DEFAULT_ALIASES,
) -> Preview:
    head = list(rows[:limit])
    columns = list(head[0].raw_fields.keys()) if head else []
    return Preview(
        rows=head,
        columns=columns,
        validation_results=[validate_row(r, matcher, aliases) for r in head],
    )
