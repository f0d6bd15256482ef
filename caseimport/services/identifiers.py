from __future__ import annotations

import re
from typing import Any

"""Identifier normalization for CNR numbers and client names.

Both functions produce comparison keys and are idempotent:
f(f(x)) == f(x) for every input.
"""

__all__ = [
    "normalize_cnr",
    "normalize_client_name",
]

_CNR_SEPARATORS = re.compile(r"[-/\s]")

_DOTS_AND_SPACES = re.compile(r"[.\s]+")
_HONORIFIC = re.compile(r"^(?:mrs|mr|ms|miss|dr|prof|sr|jr)\.?\s+")
_CORPORATE_SUFFIX = re.compile(
    r"\s+(?:ltd|limited|pvt|private|inc|incorporated|llp|llc)\.?$"
)


def normalize_cnr(raw: Any) -> str:
    """Strip hyphens, slashes and whitespace, then uppercase.

    >>> normalize_cnr("GJ/HC/24/053644/2017")
    'GJHC240536442017'
    """
    if raw is None:
        return ""
    return _CNR_SEPARATORS.sub("", str(raw)).upper()


def _strip_repeated(pattern: re.Pattern[str], text: str) -> str:
    while True:
        stripped = pattern.sub("", text, count=1)
        if stripped == text:
            return text
        text = stripped


def normalize_client_name(raw: Any) -> str:
    """Collapse free-text client name variants to one matching key.

    Only leading honorifics and trailing corporate suffixes are removed;
    interior words are kept so distinct names never merge.

    >>> normalize_client_name("Mr. John Doe")
    'john doe'
    >>> normalize_client_name("ABC & Co. Pvt. Ltd.")
    'abc and co'
    """
    if raw is None:
        return ""
    name = _DOTS_AND_SPACES.sub(" ", str(raw).lower()).strip()
    name = _strip_repeated(_HONORIFIC, name)
    name = name.replace("&", "and")
    name = _strip_repeated(_CORPORATE_SUFFIX, name)
    return name.strip()
