"""Requested vs. existing asset formats (`NxM` sizes) mentioned in a brief."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Optional

from ..domain.models import FormatSummary

# Human-language requests: "please create 4x5, 1x1 and 9x16 versions".
REQUEST_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"please create (?:a )?([0-9x, and]+) versions?", re.IGNORECASE),
    re.compile(r"create (?:a )?([0-9x, and]+) versions?", re.IGNORECASE),
    re.compile(r"need (?:a )?([0-9x, and]+) versions?", re.IGNORECASE),
    re.compile(r"fazer (?:uma? )?versões? ([0-9x, e]+)", re.IGNORECASE),
)

# Sizes embedded in file names: "banner_4x5_v2.psd", "hero-1x1.jpg", "9x16_source".
EXISTING_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"([0-9]+x[0-9]+)(?=[-_]source)", re.IGNORECASE),
    re.compile(r"(?<=[-_])([0-9]+x[0-9]+)(?=[-_.])", re.IGNORECASE),
)

_SIZE = re.compile(r"[0-9]+x[0-9]+", re.IGNORECASE)


def _ordered_unique(found: list[tuple[int, str]]) -> tuple[str, ...]:
    found.sort(key=lambda item: item[0])
    return tuple(dict.fromkeys(size for _, size in found))


def requested_formats(text: str) -> tuple[str, ...]:
    found: list[tuple[int, str]] = []
    for pattern in REQUEST_PATTERNS:
        for m in pattern.finditer(text):
            for size in _SIZE.finditer(m.group(1)):
                found.append((m.start(1) + size.start(), size.group(0).lower()))
    return _ordered_unique(found)


def existing_formats(text: str) -> tuple[str, ...]:
    found: list[tuple[int, str]] = []
    for pattern in EXISTING_PATTERNS:
        for m in pattern.finditer(text):
            found.append((m.start(1), m.group(1).lower()))
    return _ordered_unique(found)


def summarize(requested: tuple[str, ...], existing: tuple[str, ...]) -> Optional[str]:
    parts = []
    if requested:
        parts.append(f"Solicitados: {', '.join(requested)}")
    if existing:
        parts.append(f"Existentes: {', '.join(existing)}")
    return " | ".join(parts) or None


def extract_formats(text: str, comment_texts: Iterable[str] = ()) -> Optional[FormatSummary]:
    """Scan body text plus comments; None when no size is mentioned at all."""
    corpus = " ".join([text or "", *(t for t in comment_texts if t)])
    requested = requested_formats(corpus)
    existing = existing_formats(corpus)
    if not requested and not existing:
        return None
    return FormatSummary(requested=requested, existing=existing, summary=summarize(requested, existing))
