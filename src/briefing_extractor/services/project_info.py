"""Project identity helpers: DSID and display name."""

from __future__ import annotations

import re
from typing import Optional

from ..utils.validators import sanitize_file_name

_DSID_DELIMITED = re.compile(r"_(\d{7})_")
_DSID_ANY = re.compile(r"(\d{7})")


def extract_dsid(value: Optional[str]) -> Optional[str]:
    """Seven-digit DSID, preferring one delimited by underscores."""
    if not value:
        return None
    m = _DSID_DELIMITED.search(value) or _DSID_ANY.search(value)
    return m.group(1) if m else None


def resolve_project_name(title: Optional[str], project_number: int) -> str:
    """DSID when the title carries one, else the sanitized title, else a positional name."""
    if title and title.strip():
        dsid = extract_dsid(title.strip())
        if dsid:
            return dsid
        return sanitize_file_name(title.strip())
    return f"projeto_{project_number}"
