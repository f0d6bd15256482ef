from __future__ import annotations

from dataclasses import dataclass, field

from ..models.import_row import ImportRow
from .client_matcher import ClientMatcher, ClientRef
from .fields import DEFAULT_ALIASES, FieldAliases, extract_field

"""Row validation shared by preview and commit.

validate_row has no side effects; the orchestrator and the preview generator
both call it so the two paths cannot drift apart.
"""

__all__ = [
    "RowValidation",
    "validate_row",
    "MISSING_TITLE",
    "MISSING_IDENTIFIER",
    "CLIENT_NOT_FOUND",
]

MISSING_TITLE = "Missing Title"
MISSING_IDENTIFIER = "Need at least one: CNR, Case Number, or Reference Number"
CLIENT_NOT_FOUND = "Client not found"

# advisory only: client_id is optional on the persisted record
_ADVISORY = frozenset({CLIENT_NOT_FOUND})


@dataclass(frozen=True)
class RowValidation:
    row_number: int
    title: str
    cnr: str
    case_number: str
    reference_number: str
    client_name: str
    matched_client: ClientRef | None
    has_required_fields: bool
    errors: list[str] = field(default_factory=list)

    @property
    def blocking_errors(self) -> list[str]:
        return [e for e in self.errors if e not in _ADVISORY]

    @property
    def client_unresolved(self) -> bool:
        return bool(self.client_name) and self.matched_client is None

    @property
    def identifier(self) -> str:
        return self.cnr or self.case_number or self.reference_number


def validate_row(
    row: ImportRow,
    matcher: ClientMatcher | None = None,
    aliases: FieldAliases = DEFAULT_ALIASES,
) -> RowValidation:
    """Apply the required-field and identifier rules to one row.

    Client resolution is attempted only when a client name is present and a
    matcher is given.
    """
    fields_ = row.raw_fields
    title = extract_field(fields_, aliases.title)
    cnr = extract_field(fields_, aliases.cnr)
    case_number = extract_field(fields_, aliases.case_number)
    reference_number = extract_field(fields_, aliases.reference_number)
    client_name = extract_field(fields_, aliases.client_name)

    errors: list[str] = []
    if not title:
        errors.append(MISSING_TITLE)
    if not (cnr or case_number or reference_number):
        errors.append(MISSING_IDENTIFIER)

    matched: ClientRef | None = None
    if client_name and matcher is not None:
        matched = matcher.resolve(client_name)
        if matched is None:
            errors.append(CLIENT_NOT_FOUND)

    return RowValidation(
        row_number=row.row_number,
        title=title,
        cnr=cnr,
        case_number=case_number,
        reference_number=reference_number,
        client_name=client_name,
        matched_client=matched,
        has_required_fields=bool(title and (cnr or case_number or reference_number)),
        errors=errors,
    )
