"""Structured marketing fields reconstructed from brief text and comments."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import fields as dataclass_fields
from typing import Optional

from ..domain.models import Comment, StructuredFields
from ..observability.logger import get_logger
from .colors import canonicalize_color_name
from .formats import extract_formats

logger = get_logger(__name__)

_COPY_COLOR_LABEL = r"(?:color\s*copy|copy\s*color|text\s*color|copy\s*colour)"

# Order matters only inside a field; the first match locks the field.
FIELD_RULES: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("live_date", re.compile(r"live\s+dates?:\s*([^\n]+)", re.IGNORECASE)),
    ("vf", re.compile(r"(?:\bvf|visual framework|microsoft jma):\s*([^\n]+)", re.IGNORECASE)),
    ("headline", re.compile(r"\b(?:hl|headline(?:\s*copy)?)\b:?\s*([^\n]+)", re.IGNORECASE)),
    ("copy", re.compile(r"(?:^|\n)copy:\s*([^\n]+)", re.IGNORECASE)),
    ("description", re.compile(r"\bdescription:\s*([^\n]+)", re.IGNORECASE)),
    ("cta", re.compile(r"\bcta:\s*([^\n]+)", re.IGNORECASE)),
    ("background_color", re.compile(r"\bbackground:\s*([^\n]+)", re.IGNORECASE)),
    ("copy_color", re.compile(_COPY_COLOR_LABEL + r":\s*([^\n]+)", re.IGNORECASE)),
    ("urn", re.compile(r"\burn:\s*([^\n]+)", re.IGNORECASE)),
    ("allocadia", re.compile(r"allocadia\s*([0-9]+)", re.IGNORECASE)),
    ("po", re.compile(r"(?:^|\s)(?i:po)\b[#:\s]*([A-Z0-9]{3,}(?:-[A-Z0-9]+)*)(?=\s|$)")),
)

# "Background: Cosmos  Copy color: White" on a single line.
COMBINED_BACKGROUND = re.compile(
    r"\bbackground:\s*([^\n]*?)(?:\s+" + _COPY_COLOR_LABEL + r":\s*([^\n]+))?(?=\n|\Z)",
    re.IGNORECASE,
)
_COPY_COLOR_SPLIT = re.compile(_COPY_COLOR_LABEL + ":", re.IGNORECASE)

VF_KEYWORDS: tuple[str, ...] = ("microsoft", "mcafee", "intel core", "intel")
POSTCOPY_MARKER = "postcopy"
POSTCOPY_VALUE = "POSTCOPY"

_LEADING_SEPARATORS = re.compile(r"^[:\-\s]+")

_FIELD_NAMES = tuple(f.name for f in dataclass_fields(StructuredFields) if f.name != "formats")


class StructuredFieldExtractor:
    """Fills the brief schema from body text first, then from comments.

    A field found in the body text is never replaced by a comment value, and
    within one source the first match wins. Colors are canonicalized against
    the palette once both passes are done.
    """

    def __init__(self, rules: Sequence[tuple[str, re.Pattern[str]]] = FIELD_RULES):
        self._rules = tuple(rules)

    def extract(self, text: str, comments: Iterable[Comment] = ()) -> StructuredFields:
        text = text or ""
        comment_texts = [c.text for c in comments if c.text]
        values: dict[str, Optional[str]] = dict.fromkeys(_FIELD_NAMES)

        self._text_pass(text, values)
        self._comment_pass(comment_texts, values)
        self._split_background(values)

        for key in ("background_color", "copy_color"):
            values[key] = canonicalize_color_name(values[key])

        result = StructuredFields(**values, formats=extract_formats(text, comment_texts))
        logger.debug(
            "structured_fields_extracted",
            found=[k for k, v in values.items() if v],
            has_formats=result.formats is not None,
        )
        return result

    def _text_pass(self, text: str, values: dict[str, Optional[str]]) -> None:
        m = COMBINED_BACKGROUND.search(text)
        if m:
            values["background_color"] = _clean(m.group(1))
            values["copy_color"] = _clean(m.group(2))

        for name, pattern in self._rules:
            if values[name]:
                continue
            m = pattern.search(text)
            if m:
                values[name] = _clean(m.group(1))

        if not values["vf"]:
            values["vf"] = _keyword_line(text)
        if POSTCOPY_MARKER in text.lower():
            values["postcopy"] = values["postcopy"] or POSTCOPY_VALUE

    def _comment_pass(self, comment_texts: list[str], values: dict[str, Optional[str]]) -> None:
        for name, pattern in self._rules:
            if values[name]:
                continue
            for body in comment_texts:
                m = pattern.search(body)
                if not m:
                    continue
                value = _clean(m.group(1))
                if value:
                    values[name] = value
                    break

        if not values["vf"]:
            values["vf"] = next(
                (body.strip() for body in comment_texts if any(k in body.lower() for k in VF_KEYWORDS)),
                None,
            )
        if not values["postcopy"]:
            values["postcopy"] = next(
                (body.strip() for body in comment_texts if POSTCOPY_MARKER in body.lower()),
                None,
            )

    @staticmethod
    def _split_background(values: dict[str, Optional[str]]) -> None:
        background = values["background_color"]
        if not background or not _COPY_COLOR_SPLIT.search(background):
            return
        left, _, right = _COPY_COLOR_SPLIT.split(background, maxsplit=1) + [""]
        values["background_color"] = left.strip() or background
        right = _LEADING_SEPARATORS.sub("", right).strip()
        if right and not values["copy_color"]:
            values["copy_color"] = right


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _keyword_line(text: str) -> Optional[str]:
    lowered = text.lower()
    keyword = next((k for k in VF_KEYWORDS if k in lowered), None)
    if keyword is None:
        return None
    for line in text.splitlines():
        if keyword in line.lower():
            return line.strip() or None
    return None
