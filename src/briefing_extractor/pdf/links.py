"""Hyperlink harvesting and DAM link shortening."""

from __future__ import annotations

import re
import warnings
from collections.abc import Iterable
from typing import Optional

from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning

from ..domain.models import LinkRecord

LINK_PATTERN = re.compile(r"https?://[^\s)\"'<>]+")

DAM_SEGMENT = "/content/dam/"
DEFAULT_DAM_HOST = "https://dam.dell.com"


def _soup(markup: str) -> BeautifulSoup:
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", XMLParsedAsHTMLWarning)
        return BeautifulSoup(markup, "lxml")


def rich_text_to_plain(markup: Optional[str]) -> str:
    """Plain text of an annotation's XHTML rich content (one line per block)."""
    if not markup or not markup.strip():
        return ""
    if "<" not in markup:
        return markup.strip()
    return _soup(markup).get_text("\n", strip=True)


def rich_text_links(markup: Optional[str]) -> list[str]:
    """Links found in href attributes and text nodes of rich content."""
    if not markup or "<" not in markup:
        return find_links(markup)
    soup = _soup(markup)
    found: list[str] = []
    for tag in soup.find_all(href=True):
        found.extend(find_links(str(tag["href"])))
    for node in soup.find_all(string=True):
        found.extend(find_links(str(node)))
    return found


def find_links(text: Optional[str]) -> list[str]:
    if not text:
        return []
    return LINK_PATTERN.findall(text)


def unique_in_order(links: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(link for link in links if link))


def shorten_dam_link(url: str, host: str = DEFAULT_DAM_HOST) -> str:
    """Rebase a DAM asset link onto the canonical host; other links pass through.

    Asset-details page links (`.../details.html/content/dam/...`) carry the
    same tail and shorten the same way.
    """
    idx = url.find(DAM_SEGMENT)
    if idx == -1:
        return url
    return host.rstrip("/") + url[idx:]


def detailed_links(full: list[str], short: list[str]) -> list[LinkRecord]:
    return [LinkRecord(id=i, full=f, short=s) for i, (f, s) in enumerate(zip(full, short), start=1)]
