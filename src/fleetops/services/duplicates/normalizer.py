"""Address normalization applied before duplicate comparison."""

from __future__ import annotations

import re

_PUNCT_RE = re.compile(r"[^\w\s]")
_MULTI_SPACE_RE = re.compile(r"\s+")
# Street-type words that vary between spellings of the same address.
_STREET_TYPE_RE = re.compile(
    r"\b(rua|av|avenida|praca|praça|pça|travessa|trav|alameda|estrada|estr|rodovia|rod|via|vl)\b"
)


def normalize_address(address: str) -> str:
    """Lower-case, strip punctuation and street-type tokens from an address.

    >>> normalize_address("Av. Paulista, 1000")
    'paulista 1000'
    """
    if not address:
        return ""
    text = _MULTI_SPACE_RE.sub(" ", address.lower().strip())
    text = _PUNCT_RE.sub("", text)
    text = _STREET_TYPE_RE.sub("", text)
    return _MULTI_SPACE_RE.sub(" ", text).strip()
