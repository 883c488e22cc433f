"""
HTML rewriting that adds WebP alternatives to images.

Two passes over the parsed document:
1. Existing <picture> elements get a <source type="image/webp"> in front of
   every non-WebP <source>, and one in front of their <img>.
2. Bare <img> elements are wrapped in a new <picture> whose first child is
   the WebP <source>; the <img> stays as the fallback.

The parsed tree is only used to find elements. Changes are spliced into
the original text at the recorded tag offsets, so everything else in the
document (implied end tags, character references, whitespace) is kept
byte for byte.

Every insertion is keyed by (sorted srcset, media, sizes) so that running
the rewriter over its own output adds nothing.
"""

from __future__ import annotations

import logging
from html import escape

from bs4 import BeautifulSoup, Tag

from .urls import (
    WEBP_MIME_RE,
    is_convertible,
    map_srcset_to_webp,
    to_webp_url,
    webp_source_key,
)

logger = logging.getLogger(__name__)

WEBP_MIME = "image/webp"


class MarkupError(Exception):
    """Raised when a document can't be parsed or edited."""
    pass


class MarkupParser:
    """Parse HTML into a tree whose tags know where they start in the source."""

    # the html.parser builder is the one that records sourceline/sourcepos
    def __init__(self, features: str = "html.parser"):
        self.features = features

    def parse(self, html: str) -> BeautifulSoup:
        try:
            return BeautifulSoup(html, self.features, multi_valued_attributes=None)
        except Exception as e:
            raise MarkupError(f"{type(e).__name__}: {e}") from e


class SourceEdits:
    """Text insertions against the original document, applied in one pass."""

    def __init__(self, html: str):
        self.html = html
        self._line_starts = [0]
        pos = html.find("\n")
        while pos != -1:
            self._line_starts.append(pos + 1)
            pos = html.find("\n", pos + 1)
        self._inserts: list[tuple[int, int, str]] = []

    def __len__(self) -> int:
        return len(self._inserts)

    def start_of(self, tag: Tag) -> int:
        """Offset of the '<' opening tag."""
        line, col = tag.sourceline, tag.sourcepos
        if line is None or col is None or not 1 <= line <= len(self._line_starts):
            raise MarkupError(f"no source position for <{tag.name}>")
        offset = self._line_starts[line - 1] + col
        name = tag.name.lower()
        if self.html[offset:offset + 1 + len(name)].lower() != "<" + name:
            raise MarkupError(f"source position of <{tag.name}> does not match the document")
        return offset

    def end_of_start_tag(self, tag: Tag) -> int:
        """Offset just past the '>' closing the start tag."""
        html = self.html
        quote = ""
        prev = ""
        for i in range(self.start_of(tag) + 1, len(html)):
            c = html[i]
            if quote:
                if c == quote:
                    quote = ""
                    prev = c
                continue
            if c in "\"'" and prev == "=":
                quote = c
            elif c == ">":
                return i + 1
            if not c.isspace():
                prev = c
        raise MarkupError(f"unterminated <{tag.name}> tag")

    def insert(self, offset: int, text: str) -> None:
        self._inserts.append((offset, len(self._inserts), text))

    def apply(self) -> str:
        if not self._inserts:
            return self.html
        out: list[str] = []
        last = 0
        for offset, _seq, text in sorted(self._inserts):
            out.append(self.html[last:offset])
            out.append(text)
            last = offset
        out.append(self.html[last:])
        return "".join(out)


def _attr(tag: Tag, name: str) -> str:
    value = tag.get(name)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return str(value)


def _is_webp_source(tag: Tag) -> bool:
    return bool(WEBP_MIME_RE.search(_attr(tag, "type")))


def webp_source_markup(srcset: str, media: str = "", sizes: str = "") -> str:
    """A <source type="image/webp"> start tag; media and sizes only when set."""
    attrs = [("srcset", srcset), ("type", WEBP_MIME)]
    if media:
        attrs.append(("media", media))
    if sizes:
        attrs.append(("sizes", sizes))
    return "<source " + " ".join(f'{k}="{escape(v, quote=True)}"' for k, v in attrs) + ">"


class PictureRewriter:
    """Injects WebP <source> elements into HTML documents."""

    def __init__(self, skip_external: bool = True, parser: MarkupParser | None = None):
        self.skip_external = skip_external
        self.parser = parser or MarkupParser()

    def compute_webp_candidate(self, img: Tag) -> str:
        """WebP srcset for an <img>, from its srcset or else its src. "" if none."""
        srcset = _attr(img, "srcset")
        if srcset:
            return map_srcset_to_webp(srcset, self.skip_external)

        src = _attr(img, "src")
        if is_convertible(src, self.skip_external):
            return to_webp_url(src)
        return ""

    def rewrite(self, html: str, inject_webp_sources: bool = True) -> str:
        """
        Return html with WebP sources injected.

        The input object is returned unchanged when injection is disabled,
        nothing was eligible, or the document could not be parsed.
        """
        if not inject_webp_sources or not html:
            return html
        lowered = html.lower()
        if "<img" not in lowered and "<source" not in lowered:
            return html

        try:
            soup = self.parser.parse(html)
            edits = SourceEdits(html)
            self._enhance_pictures(soup, edits)
            self._wrap_bare_images(soup, edits)
        except MarkupError as e:
            logger.warning("Leaving document unchanged: %s", e)
            return html

        if not edits:
            return html
        return edits.apply()

    def _enhance_pictures(self, soup: BeautifulSoup, edits: SourceEdits) -> None:
        for pic in soup.find_all("picture"):
            sources = pic.find_all("source")

            existing: set[str] = set()
            for s in sources:
                if not _is_webp_source(s):
                    continue
                srcset = _attr(s, "srcset")
                if srcset:
                    existing.add(webp_source_key(srcset, _attr(s, "media"), _attr(s, "sizes")))

            for s in sources:
                if _is_webp_source(s):
                    continue
                srcset = _attr(s, "srcset")
                if not srcset:
                    continue

                webp_srcset = map_srcset_to_webp(srcset, self.skip_external)
                if not webp_srcset:
                    continue

                media = _attr(s, "media")
                sizes = _attr(s, "sizes")
                key = webp_source_key(webp_srcset, media, sizes)
                if key in existing:
                    continue

                edits.insert(edits.start_of(s), webp_source_markup(webp_srcset, media, sizes))
                existing.add(key)

            img = pic.find("img")
            if img is None:
                continue
            candidate = self.compute_webp_candidate(img)
            if not candidate:
                continue
            # media/sizes belong to the <source> siblings, not to the fallback
            key = webp_source_key(candidate, "", "")
            if key in existing:
                continue
            edits.insert(edits.start_of(img), webp_source_markup(candidate))
            existing.add(key)

    def _wrap_bare_images(self, soup: BeautifulSoup, edits: SourceEdits) -> None:
        for img in soup.find_all("img"):
            if img.find_parent("picture") is not None:
                continue

            candidate = self.compute_webp_candidate(img)
            if not candidate:
                continue

            # <img> is a void element, so the wrapper closes right after its start tag
            edits.insert(edits.start_of(img), "<picture>" + webp_source_markup(candidate))
            edits.insert(edits.end_of_start_tag(img), "</picture>")


def rewrite_html(html: str, skip_external: bool = True, inject_webp_sources: bool = True) -> str:
    """Convenience wrapper around PictureRewriter.rewrite."""
    return PictureRewriter(skip_external=skip_external).rewrite(html, inject_webp_sources)
