"""Text normalization helpers shared by discovery, selection and extraction."""

from __future__ import annotations

import re
import unicodedata

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_WHITESPACE = re.compile(r"\s+")


def strip_accents(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def fold(value: str | None) -> str:
    """Lower-case and accent-free form used for fuzzy comparisons."""
    return strip_accents(value or "").lower()


def significant_tokens(value: str | None, min_length: int = 4) -> list[str]:
    """Unique tokens (order of first appearance) of at least `min_length` chars."""
    seen: dict[str, None] = {}
    for token in _NON_ALNUM.split(fold(value)):
        if len(token) >= min_length and token not in seen:
            seen[token] = None
    return list(seen)


def collapse_whitespace(value: str) -> str:
    return _WHITESPACE.sub(" ", value).strip()
