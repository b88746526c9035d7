"""Folder navigation inside the document area."""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable

from ..domain.errors import FolderNotFoundError
from ..observability.logger import get_logger
from .base import ContentFrame, ElementRef

logger = get_logger(__name__)

_NUMBER_PREFIX = re.compile(r"^\s*(\d{1,2})\s*[.\-]\s*(.+)$")


def folder_selectors(folder_label: str) -> list[str]:
    """Ordered selector strategies for a folder label such as "05. Briefing".

    Exact numbered spellings come first, then the bare name, then attribute
    matches. Duplicates are dropped keeping the first position.
    """
    label = folder_label.strip()
    variants = [label]
    m = _NUMBER_PREFIX.match(label)
    bare = label
    if m:
        num, bare = m.group(1), m.group(2).strip()
        variants = [f"{num}. {bare}", f"{num} - {bare}", f"{num}-{bare}"]

    selectors: list[str] = []
    for v in variants:
        selectors.append(f'button:has-text("{v}")')
        selectors.append(f'a:has-text("{v}")')
    selectors.append(f'button:has-text("{bare}")')
    selectors.append(f'a:has-text("{bare}")')
    selectors.append(f'[role="button"]:has-text("{variants[0]}")')
    selectors.append(f'[role="button"]:has-text("{bare}")')
    selectors.append(f'*[data-testid*="item"]:has-text("{variants[0]}")')
    selectors.append(f'*[data-testid*="item"]:has-text("{bare}")')
    selectors.append(f'*[title*="{bare}"]')
    selectors.append(f'*[aria-label*="{bare}"]')
    return list(dict.fromkeys(selectors))


async def navigate_to_folder(
    frame: ContentFrame,
    folder_label: str,
    click: Callable[[ElementRef], Awaitable[object]],
    *,
    attempts: int = 4,
    delay_ms: int = 900,
    after_click_ms: int = 4000,
) -> str:
    """Open `folder_label`; returns the selector that worked."""
    selectors = folder_selectors(folder_label)
    for attempt in range(1, attempts + 1):
        for selector in selectors:
            try:
                element = await frame.first_visible([selector])
                if element is None:
                    continue
                await click(element)
            except Exception as e:
                logger.debug("folder_strategy_failed", selector=selector, attempt=attempt, error=str(e))
                continue
            await frame.wait(after_click_ms)
            logger.info("folder_opened", folder=folder_label, attempt=attempt)
            return selector

        try:
            await frame.scroll_by(400)
        except Exception as e:
            logger.debug("folder_scroll_failed", error=str(e))
        if attempt < attempts:
            await frame.wait(delay_ms)

    raise FolderNotFoundError(f'Pasta "{folder_label}" não encontrada')
