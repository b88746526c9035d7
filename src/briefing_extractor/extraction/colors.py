"""Closed brand color palette and canonicalization of free-text color names."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from ..utils.text import fold


@dataclass(frozen=True)
class PaletteColor:
    id: str
    name: str
    hex: str
    alias: Optional[str] = None
    synonyms: tuple[str, ...] = ()

    @property
    def canonical(self) -> str:
        return f"{self.name} ({self.alias})" if self.alias else self.name


@dataclass(frozen=True)
class ColorMeta:
    canonical: str
    hex: str


PALETTE: tuple[PaletteColor, ...] = (
    PaletteColor("cosmos", "Cosmos", "#1D2C3B", "Slate 700", ("cosmos", "slate700", "slate-700", "slate_700")),
    PaletteColor("white", "White", "#FFFFFF", None, ("white", "branco")),
    PaletteColor("midnight", "Midnight", "#0D2155", None, ("midnight",)),
    PaletteColor("ocean", "Ocean", "#00468B", "Blue 800", ("ocean", "blue800", "blue-800", "blue_800")),
    PaletteColor("dell-blue", "Dell Blue", "#0672CB", None, ("dellblue", "dell-blue", "dell_blue")),
    PaletteColor("forest", "Forest", "#0B7C84", "Teal 800", ("forest", "teal800", "teal-800", "teal_800")),
    PaletteColor("teal", "Teal", "#044E52", "Teal 900", ("teal", "teal900", "teal-900", "teal_900")),
    PaletteColor("plum", "Plum", "#66278F", "Purple 800", ("plum", "purple800", "purple-800", "purple_800")),
    PaletteColor("dusk", "Dusk", "#40155C", "Purple 900", ("dusk", "purple900", "purple-900", "purple_900")),
    PaletteColor("raven", "Raven", "#40586D", "Slate 500", ("raven", "slate500", "slate-500")),
    PaletteColor("mist", "Mist", "#C5D4E3", "Slate 200", ("mist", "slate200", "slate-200")),
    PaletteColor("quartz", "Quartz", "#F0F0F0", "Gray 200", ("quartz", "gray200", "grey200", "gray-200", "grey-200")),
    PaletteColor("titanium", "Titanium", "#D2D2D2", "Gray 400", ("titanium", "gray400", "grey400", "gray-400", "grey-400")),
    PaletteColor("steel", "Steel", "#B6B6B6", "Gray 500", ("steel", "gray500", "grey500", "gray-500", "grey-500")),
    PaletteColor("black", "Black", "#000000", None, ("black", "preto")),
)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_token(raw: Optional[str]) -> str:
    if not raw:
        return ""
    return _NON_ALNUM.sub("", fold(raw))


def _build_index() -> dict[str, PaletteColor]:
    index: dict[str, PaletteColor] = {}
    for color in PALETTE:
        names = [*color.synonyms, color.name, color.canonical]
        if color.alias:
            names.append(color.alias)
        for name in names:
            index[normalize_token(name)] = color
    return index


_INDEX = _build_index()


def lookup(raw: Optional[str]) -> Optional[PaletteColor]:
    return _INDEX.get(normalize_token(raw))


def canonicalize_color_name(raw: Optional[str]) -> Optional[str]:
    """Canonical palette name, or the capitalized input when it is not in the palette."""
    if raw is None or not raw.strip():
        return None
    match = lookup(raw)
    if match is None:
        value = raw.strip()
        return value[:1].upper() + value[1:]
    return match.canonical


def color_meta(raw: Optional[str]) -> Optional[ColorMeta]:
    match = lookup(raw)
    if match is None:
        return None
    return ColorMeta(canonical=match.canonical, hex=match.hex)
