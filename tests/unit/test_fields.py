from __future__ import annotations

import pytest

from caseimport.services.fields import DEFAULT_ALIASES, extract_field, extract_value


def test_extract_field_first_alias_wins():
    row = {"Title": "A vs B", "title": "ignored"}
    assert extract_field(row, DEFAULT_ALIASES.title) == "A vs B"


def test_extract_field_skips_blank_aliases():
    row = {"Title": "   ", "Case Title": "A vs B"}
    assert extract_field(row, DEFAULT_ALIASES.title) == "A vs B"


def test_extract_field_trims_and_renders_integral_floats():
    row = {"Case Number": 1234.0, "Court": "  High Court  "}
    assert extract_field(row, DEFAULT_ALIASES.case_number) == "1234"
    assert extract_field(row, DEFAULT_ALIASES.court_name) == "High Court"


def test_extract_field_missing_returns_empty_string():
    assert extract_field({}, DEFAULT_ALIASES.cnr) == ""
    assert extract_field({"CNR": None}, DEFAULT_ALIASES.cnr) == ""
    assert extract_field({"CNR": float("nan")}, DEFAULT_ALIASES.cnr) == ""


def test_extract_value_keeps_raw_cell():
    row = {"Filing Date": 45000}
    assert extract_value(row, DEFAULT_ALIASES.filing_date) == 45000


def test_aliases_are_case_sensitive():
    assert extract_field({"TiTlE": "x"}, DEFAULT_ALIASES.title) == ""


def test_extended_appends_aliases():
    aliases = DEFAULT_ALIASES.extended({"title": ["Case Name", "Title"]})
    assert aliases.title[: len(DEFAULT_ALIASES.title)] == DEFAULT_ALIASES.title
    assert aliases.title[-1] == "Case Name"
    assert aliases.title.count("Title") == 1
    assert extract_field({"Case Name": "X vs Y"}, aliases.title) == "X vs Y"


def test_extended_rejects_unknown_field():
    with pytest.raises(ValueError, match="unknown alias fields"):
        DEFAULT_ALIASES.extended({"nope": ["x"]})
