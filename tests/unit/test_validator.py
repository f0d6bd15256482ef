from __future__ import annotations

from caseimport.models.import_row import ImportRow
from caseimport.services.client_matcher import ClientMatcher
from caseimport.services.validator import (
    CLIENT_NOT_FOUND,
    MISSING_IDENTIFIER,
    MISSING_TITLE,
    validate_row,
)

MATCHER = ClientMatcher.from_clients([{"id": "c-1", "full_name": "John Doe"}])


def _row(**fields) -> ImportRow:
    return ImportRow(row_number=2, raw_fields=fields)


def test_valid_row_with_matched_client():
    v = validate_row(_row(Title="A vs B", CNR="GJHC240536442017", client="Mr. John Doe"), MATCHER)
    assert v.has_required_fields
    assert v.errors == []
    assert v.matched_client.id == "c-1"
    assert v.identifier == "GJHC240536442017"


def test_missing_title():
    v = validate_row(_row(CNR="X1"), MATCHER)
    assert not v.has_required_fields
    assert v.errors == [MISSING_TITLE]
    assert v.blocking_errors == [MISSING_TITLE]


def test_missing_identifier():
    v = validate_row(_row(Title="A vs B"), MATCHER)
    assert v.errors == [MISSING_IDENTIFIER]
    assert MISSING_IDENTIFIER == "Need at least one: CNR, Case Number, or Reference Number"


def test_missing_both_reports_both_in_order():
    v = validate_row(_row(court="X"), MATCHER)
    assert v.errors == [MISSING_TITLE, MISSING_IDENTIFIER]


def test_any_single_identifier_suffices():
    for key in ("CNR", "Case Number", "Matter Reference Number"):
        v = validate_row(_row(Title="T", **{key: "1"}), MATCHER)
        assert v.has_required_fields, key


def test_unknown_client_is_advisory():
    v = validate_row(_row(Title="T", CNR="X1", client="Nobody"), MATCHER)
    assert v.has_required_fields
    assert v.errors == [CLIENT_NOT_FOUND]
    assert v.blocking_errors == []
    assert v.client_unresolved


def test_no_client_name_is_not_unresolved():
    v = validate_row(_row(Title="T", CNR="X1"), MATCHER)
    assert v.matched_client is None
    assert not v.client_unresolved


def test_without_matcher_client_is_not_checked():
    v = validate_row(_row(Title="T", CNR="X1", client="Nobody"))
    assert v.errors == []
