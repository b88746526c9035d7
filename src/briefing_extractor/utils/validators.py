"""Validation helpers."""

from __future__ import annotations

import re
from urllib.parse import urlparse

_UNSAFE_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*]')
_MULTI_SPACE = re.compile(r"\s{2,}")
_MULTI_SEPARATOR = re.compile(r"[_-]{2,}")

UNNAMED_FILE = "arquivo_sem_nome"


def is_valid_http_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
        return parsed.scheme in ("http", "https") and bool(parsed.netloc)
    except Exception:
        return False


def is_workfront_url(url: str) -> bool:
    lowered = url.lower()
    return "workfront" in lowered or "experience.adobe.com" in lowered


def sanitize_file_name(name: str | None) -> str:
    """Make a server/DOM supplied name safe to use as a local file name."""
    if not name:
        return UNNAMED_FILE
    s = _UNSAFE_FILENAME_CHARS.sub("_", name)
    s = _MULTI_SPACE.sub(" ", s)
    s = _MULTI_SEPARATOR.sub("_", s)
    return s.strip() or UNNAMED_FILE
