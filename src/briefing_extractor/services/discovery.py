"""Candidate file discovery inside a project's document listing.

The listing markup changes between Workfront releases, so everything here is
driven by ordered tables: which elements look like files, where a name can be
read from, and how a PDF name is pulled out of noisy label text.
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable
from typing import Optional

from ..domain.models import CandidateFile
from ..observability.logger import get_logger
from ..scraping.base import ContentFrame, ElementRef
from ..utils.text import collapse_whitespace, fold, significant_tokens
from ..utils.validators import sanitize_file_name

logger = get_logger(__name__)

FILE_SELECTORS: tuple[str, ...] = (
    '.doc-detail-view[role="button"]',
    ".doc-detail-view",
    '[role="button"][is-folder="false"]',
    '[role="button"]:not([is-folder="true"])',
    '[data-testid*="file"][role="checkbox"]',
    '[data-testid*="document"][role="checkbox"]',
    '.file-item[role="checkbox"]',
    '.document-item[role="checkbox"]',
    '[data-testid*="file"]',
    '[data-testid*="document"]',
    ".file-item",
    ".document-item",
)

NAME_SOURCES: tuple[tuple[str, Callable[[ElementRef], Awaitable[Optional[str]]]], ...] = (
    ("aria-label", lambda el: el.get_attribute("aria-label")),
    ("title", lambda el: el.get_attribute("title")),
    ("nested-aria-label", lambda el: el.nested_attribute("aria-label")),
    ("nested-title", lambda el: el.nested_attribute("title")),
    ("text", lambda el: el.text_content()),
)

FOLDER_MARKERS: tuple[str, ...] = ("folder", "pasta")

FILENAME_PATTERNS: tuple[re.Pattern[str], ...] = (
    # DSID-prefixed Workfront naming: 5372048_briefing.pdf
    re.compile(r"(\d{7}_[a-zA-Z_]+\.pdf)", re.IGNORECASE),
    re.compile(r"([a-zA-Z0-9_-]{3,}\.pdf)", re.IGNORECASE),
    re.compile(r"([^\s/\\]{3,}\.pdf)", re.IGNORECASE),
    re.compile(r"([^/\\]{3,}\.pdf)", re.IGNORECASE),
)

_LINE_PDF = re.compile(r"([^/\\]*\.pdf)", re.IGNORECASE)
_LINE_BREAKS = re.compile(r"[\n\r]+")
_PDF_SUFFIX = re.compile(r"\.pdf$", re.IGNORECASE)

BRIEFING_TOKEN_OVERLAP = 0.5


def extract_file_name(text: str | None) -> Optional[str]:
    """Pull a PDF file name out of a noisy DOM label, or None."""
    if not text:
        return None

    clean = collapse_whitespace(text)
    for pattern in FILENAME_PATTERNS:
        m = pattern.search(clean)
        if m:
            return m.group(1).strip()

    for line in _LINE_BREAKS.split(text):
        line = line.strip()
        if ".pdf" not in line.lower():
            continue
        m = _LINE_PDF.search(line)
        if m and m.group(1).strip():
            return m.group(1).strip()
    return None


def is_briefing_like(file_name: str, project_name: str | None) -> bool:
    """Name says "brief", or shares at least half the project's significant tokens."""
    name = fold(file_name)
    if "brief" in name:
        return True
    tokens = significant_tokens(project_name)
    if not tokens:
        return False
    base = _PDF_SUFFIX.sub("", name)
    hits = sum(1 for t in tokens if t in base)
    return hits / len(tokens) >= BRIEFING_TOKEN_OVERLAP


def order_candidates(candidates: list[CandidateFile]) -> list[CandidateFile]:
    """Drop exact-name duplicates (first wins) and put briefing-like files first."""
    seen: set[str] = set()
    unique: list[CandidateFile] = []
    for c in candidates:
        if c.file_name in seen:
            continue
        seen.add(c.file_name)
        unique.append(c)
    # sorted() is stable, so the listing order survives inside each group.
    return sorted(unique, key=lambda c: not c.is_briefing_hint)


def candidate_from_label(label: str, project_name: str | None, element: object = None) -> Optional[CandidateFile]:
    lowered = label.lower()
    if any(marker in lowered for marker in FOLDER_MARKERS):
        return None

    file_name: Optional[str] = None
    if ".pdf" in lowered:
        file_name = extract_file_name(label)
    if not file_name and "brief" in lowered:
        file_name = sanitize_file_name(re.sub(r"\s+", "_", label.strip()) + ".pdf")
    if not file_name:
        return None

    return CandidateFile(
        file_name=file_name,
        original_label=label,
        is_briefing_hint=is_briefing_like(file_name, project_name),
        element=element,
    )


class FileDiscoveryEngine:
    """Scans the rendered listing for downloadable, briefing-prioritised files."""

    def __init__(
        self,
        selectors: tuple[str, ...] = FILE_SELECTORS,
        name_sources: tuple[tuple[str, Callable[[ElementRef], Awaitable[Optional[str]]]], ...] = NAME_SOURCES,
    ):
        self._selectors = selectors
        self._name_sources = name_sources

    async def discover(self, frame: ContentFrame, project_name: str | None) -> list[CandidateFile]:
        collected: list[CandidateFile] = []
        for selector in self._selectors:
            try:
                elements = await frame.query_all(selector)
            except Exception as e:
                logger.debug("file_selector_failed", selector=selector, error=str(e))
                continue
            if not elements:
                continue

            logger.info("file_selector_matched", selector=selector, count=len(elements))
            for element in elements:
                try:
                    candidate = await self._candidate_from_element(element, project_name)
                except Exception as e:
                    logger.debug("file_element_skipped", selector=selector, error=str(e))
                    continue
                if candidate is not None:
                    collected.append(candidate)
            if collected:
                break

        result = order_candidates(collected)
        logger.info(
            "files_discovered",
            count=len(result),
            files=[f"{c.file_name}{' [brief]' if c.is_briefing_hint else ''}" for c in result],
        )
        return result

    async def _candidate_from_element(self, element: ElementRef, project_name: str | None) -> Optional[CandidateFile]:
        if not await element.is_visible():
            return None
        label = await self._read_label(element)
        if not label:
            return None
        return candidate_from_label(label, project_name, element=element)

    async def _read_label(self, element: ElementRef) -> Optional[str]:
        for source, read in self._name_sources:
            try:
                value = await read(element)
            except Exception as e:
                logger.debug("name_source_failed", source=source, error=str(e))
                continue
            if value and value.strip():
                return value.strip()
        return None
