"""Normalization and de-duplication of PDF annotations.

Reviewers annotate briefs with whatever tool is at hand, so authors, dates
and even the comment body arrive in several shapes. Each raw annotation is
turned into a `Comment` with:

- ISO-8601 dates (PDF `D:` dates first, then generic parsing),
- an author resolved through `AUTHOR_PATTERNS` and validated, or the
  anonymous sentinel,
- a human label for the annotation subtype.

Near-identical comments on the same page are collapsed, keeping the first.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from ..domain.models import ANONYMOUS_AUTHOR, DEFAULT_COMMENT_TYPE, Comment
from ..observability.logger import get_logger
from ..utils.text import fold
from .base import RawAnnotation
from .links import rich_text_to_plain

logger = get_logger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.85
MIN_COMMENT_LENGTH = 3

SUBTYPE_LABELS: dict[str, str] = {
    "Text": "Sticky Note",
    "Note": "Nota",
    "Highlight": "Destaque",
    "Underline": "Sublinhado",
    "StrikeOut": "Riscado",
    "Squiggly": "Rabisco",
    "FreeText": "Texto Livre",
    "Stamp": "Carimbo",
    "Ink": "Tinta",
    "Line": "Linha",
    "Square": "Quadrado",
    "Circle": "Círculo",
    "Polygon": "Polígono",
    "PolyLine": "Linha Poligonal",
    "Link": "Link",
    "Popup": "Popup",
}

# Placeholder values some exporters write instead of a real author.
_PLACEHOLDER_AUTHORS = frozenset({"", "[object object]", "object object", "desconhecido", "unknown", "anônimo", "anonimo"})

AUTHOR_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("by-prefix", re.compile(r"^(?:por|by|autor|author)\s*[:\-]\s*([^\n,]{2,30})", re.IGNORECASE)),
    ("bracketed", re.compile(r"^\[([^\]]{2,25})\]")),
    ("dash-prefixed", re.compile(r"^-\s*([A-Za-zÀ-ÿ][A-Za-zÀ-ÿ ]{1,19})")),
    ("colon-suffixed", re.compile(r"^([A-Za-zÀ-ÿ ]{2,20}):")),
)

_VALID_AUTHOR = re.compile(r"^[A-Za-zÀ-ÿ\s]{2,30}$")
_AUTHOR_STRIP = re.compile(r"[\[\]\-\"']")

_PDF_DATE = re.compile(
    r"D:(\d{4})(\d{2})?(\d{2})?(\d{2})?(\d{2})?(\d{2})?"
    r"(?:(Z)|([+\-])(\d{2})'?(\d{2})?'?)?"
)
_FALLBACK_DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y",
    "%m/%d/%Y",
)

_NEWLINES = re.compile(r"\r\n?")
_BLANK_RUNS = re.compile(r"\n{3,}")
_INLINE_SPACE = re.compile(r"[ \t\f\v]+")
_NON_WORD = re.compile(r"[^\w\s]+")
_WHITESPACE = re.compile(r"\s+")


def _to_iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_pdf_date(raw: Optional[str]) -> Optional[str]:
    """ISO-8601 (UTC) for a PDF date string or a common date format, else None."""
    if not raw or not str(raw).strip():
        return None
    value = str(raw).strip()

    m = _PDF_DATE.search(value)
    if m:
        year, month, day, hour, minute, second = m.group(1, 2, 3, 4, 5, 6)
        try:
            dt = datetime(
                int(year),
                int(month or 1),
                int(day or 1),
                int(hour or 0),
                int(minute or 0),
                int(second or 0),
                tzinfo=timezone.utc,
            )
            if m.group(8):
                offset = timedelta(hours=int(m.group(9)), minutes=int(m.group(10) or 0))
                dt = dt - offset if m.group(8) == "+" else dt + offset
            return _to_iso(dt)
        except ValueError:
            logger.debug("pdf_date_invalid", raw=value)

    try:
        return _to_iso(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        pass
    for fmt in _FALLBACK_DATE_FORMATS:
        try:
            return _to_iso(datetime.strptime(value, fmt))
        except ValueError:
            continue
    logger.debug("date_unparsed", raw=value)
    return None


def _title_case(name: str) -> str:
    return " ".join(w[:1].upper() + w[1:].lower() for w in name.split())


def normalize_author(candidate: Optional[str]) -> str:
    if not candidate or candidate.strip().lower() in _PLACEHOLDER_AUTHORS:
        return ANONYMOUS_AUTHOR
    name = _title_case(_AUTHOR_STRIP.sub("", candidate).strip())
    if not _VALID_AUTHOR.match(name):
        return ANONYMOUS_AUTHOR
    return name


def resolve_author(explicit: Optional[str], text: str) -> str:
    """Explicit author field first, then author hints at the start of the text."""
    if explicit and explicit.strip().lower() not in _PLACEHOLDER_AUTHORS:
        return normalize_author(explicit)
    for _name, pattern in AUTHOR_PATTERNS:
        m = pattern.match(text)
        if m:
            return normalize_author(m.group(1).strip())
    return ANONYMOUS_AUTHOR


def subtype_label(subtype: Optional[str]) -> str:
    if not subtype:
        return DEFAULT_COMMENT_TYPE
    return SUBTYPE_LABELS.get(subtype, subtype)


def clean_comment_text(value: Optional[str]) -> str:
    """Trim, unify newlines and squeeze spaces inside each line."""
    if not value:
        return ""
    text = _NEWLINES.sub("\n", value)
    lines = [_INLINE_SPACE.sub(" ", line).strip() for line in text.split("\n")]
    return _BLANK_RUNS.sub("\n\n", "\n".join(lines)).strip()


def annotation_text(raw: RawAnnotation) -> str:
    for source in (raw.contents, rich_text_to_plain(raw.rich_text), raw.subject):
        cleaned = clean_comment_text(source)
        if cleaned:
            return cleaned
    return ""


def normalize_annotation(raw: RawAnnotation) -> Comment:
    text = annotation_text(raw)
    return Comment(
        page=int(raw.page or 0),
        author=resolve_author(raw.title, text),
        type=subtype_label(raw.subtype),
        text=text,
        creation_date=parse_pdf_date(raw.creation_date) or parse_pdf_date(raw.modification_date),
        modification_date=parse_pdf_date(raw.modification_date),
    )


def comparison_key(text: str) -> str:
    return _WHITESPACE.sub(" ", _NON_WORD.sub(" ", fold(text))).strip()


def text_similarity(a: str, b: str) -> float:
    """Word-set Jaccard similarity of two already normalized strings."""
    if a == b:
        return 1.0
    longest = max(len(a), len(b))
    if longest == 0 or abs(len(a) - len(b)) > longest * 0.5:
        return 0.0
    words_a = set(a.split())
    words_b = set(b.split())
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def deduplicate_comments(
    comments: Iterable[Comment],
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> list[Comment]:
    """Drop too-short comments and same-page near duplicates (first one wins)."""
    kept: list[Comment] = []
    keys_by_page: dict[int, list[str]] = {}
    for c in comments:
        if len(c.text.strip()) < MIN_COMMENT_LENGTH:
            continue
        key = comparison_key(c.text)
        page_keys = keys_by_page.setdefault(c.page, [])
        if any(text_similarity(key, existing) >= threshold for existing in page_keys):
            continue
        page_keys.append(key)
        kept.append(c)
    return kept


def order_comments(comments: Iterable[Comment]) -> list[Comment]:
    """Page ascending, discovery order inside a page."""
    return sorted(comments, key=lambda c: c.page)


def build_comments(
    raw_annotations: Iterable[RawAnnotation],
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> list[Comment]:
    normalized: list[Comment] = []
    for raw in raw_annotations:
        try:
            normalized.append(normalize_annotation(raw))
        except Exception as e:
            logger.warning("annotation_skipped", page=raw.page, error=str(e))
    return order_comments(deduplicate_comments(normalized, threshold))
