from __future__ import annotations

import pytest

from caseimport.services.identifiers import normalize_client_name, normalize_cnr


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("GJ/HC/24/053644/2017", "GJHC240536442017"),
        ("gjhc-2405 3644-2017", "GJHC240536442017"),
        ("GJHC240536442017", "GJHC240536442017"),
        ("GJHC-24052244-2018", "GJHC240522442018"),
        ("  mhbm01-000123-2020 ", "MHBM010001232020"),
        ("", ""),
        (None, ""),
    ],
)
def test_normalize_cnr(raw, expected):
    assert normalize_cnr(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Mr. John Doe", "john doe"),
        ("JOHN   DOE", "john doe"),
        ("Dr John Doe", "john doe"),
        ("ABC Traders Pvt. Ltd.", "abc traders"),
        ("ABC & Co. Pvt. Ltd.", "abc and co"),
        ("Acme Limited", "acme"),
        ("Mrs. Jane Smith", "jane smith"),
        ("", ""),
        (None, ""),
    ],
)
def test_normalize_client_name(raw, expected):
    assert normalize_client_name(raw) == expected


def test_client_name_keeps_interior_words():
    # "Ltd" in the middle is not a trailing suffix
    assert normalize_client_name("Ltd Holdings India") == "ltd holdings india"


@pytest.mark.parametrize(
    "raw",
    [
        "Mr. Mr. John Doe",
        "ABC & Co. Pvt. Ltd.",
        "Dr. Prof. A. B. Sharma Inc.",
        "  X  ",
        "Sharma & Sons LLP",
    ],
)
def test_client_name_normalization_is_idempotent(raw):
    once = normalize_client_name(raw)
    assert normalize_client_name(once) == once


@pytest.mark.parametrize("raw", ["GJ/HC/24/053644/2017", "a-b c/d", "ABC"])
def test_cnr_normalization_is_idempotent(raw):
    once = normalize_cnr(raw)
    assert normalize_cnr(once) == once
