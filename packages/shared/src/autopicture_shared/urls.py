"""
URL and srcset helpers shared by the markup rewriter and the converter.

Both sides derive the WebP path from the raster path with the same
substitution, so rewritten HTML always points at files the batch
converter writes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

RASTER_RE = re.compile(r"\.(png|jpe?g)(\?.*?)?$", re.IGNORECASE)
SVG_RE = re.compile(r"\.svg(\?.*?)?$", re.IGNORECASE)
WEBP_RE = re.compile(r"\.webp(\?.*?)?$", re.IGNORECASE)
WEBP_MIME_RE = re.compile(r"image/webp", re.IGNORECASE)

_EXTERNAL_RE = re.compile(r"^(?:https?://|data:|//)", re.IGNORECASE)
_SRCSET_ITEM_RE = re.compile(r"^(\S+)(\s+.+)?$", re.DOTALL)
_WS_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class SourceSetEntry:
    """One candidate of a srcset attribute."""
    url: str
    descriptor: str = ""

    def __str__(self) -> str:
        return f"{self.url} {self.descriptor}" if self.descriptor else self.url


def is_external(url: str) -> bool:
    """True for absolute http(s), protocol-relative and data: URLs."""
    return bool(_EXTERNAL_RE.match(url))


def is_raster(url: str) -> bool:
    return bool(RASTER_RE.search(url))


def is_svg(url: str) -> bool:
    return bool(SVG_RE.search(url))


def is_webp(url: str) -> bool:
    return bool(WEBP_RE.search(url))


def to_webp_url(url: str) -> str:
    """Swap a png/jpg/jpeg extension for .webp, keeping any query string."""
    return RASTER_RE.sub(r".webp\2", url)


def normalize_ws(value: str | None) -> str:
    return _WS_RE.sub(" ", str(value or "")).strip()


def parse_srcset(srcset: str | None) -> list[SourceSetEntry]:
    """
    Split a srcset into entries, preserving order.

    Items that do not look like "<url> [descriptor]" become a bare URL.
    """
    if not isinstance(srcset, str):
        return []
    entries: list[SourceSetEntry] = []
    for item in srcset.split(","):
        item = item.strip()
        if not item:
            continue
        m = _SRCSET_ITEM_RE.match(item)
        if m:
            entries.append(SourceSetEntry(m.group(1), (m.group(2) or "").strip()))
        else:
            entries.append(SourceSetEntry(item))
    return entries


def build_srcset(entries: list[SourceSetEntry]) -> str:
    return ", ".join(str(e) for e in entries)


def srcset_signature(srcset: str | None) -> str:
    """Order-insensitive, whitespace-normalized form of a srcset."""
    items = [x.strip() for x in normalize_ws(srcset).split(",")]
    return ",".join(sorted(x for x in items if x))


def webp_source_key(srcset: str | None, media: str | None = "", sizes: str | None = "") -> str:
    """Dedup identity of a <source type="image/webp">."""
    return f"{srcset_signature(srcset)}|{normalize_ws(media)}|{normalize_ws(sizes)}"


def is_convertible(url: str, skip_external: bool = True) -> bool:
    """True if url points at a raster image we would serve a WebP twin for."""
    if not url:
        return False
    if skip_external and is_external(url):
        return False
    return is_raster(url) and not is_svg(url)


def map_srcset_to_webp(srcset: str, skip_external: bool = True) -> str:
    """
    Map every convertible entry of srcset to its WebP twin, keeping
    descriptors and order. Returns "" if nothing is convertible.
    """
    parts = [
        SourceSetEntry(to_webp_url(e.url), e.descriptor)
        for e in parse_srcset(srcset)
        if is_convertible(e.url, skip_external)
    ]
    return build_srcset(parts)
