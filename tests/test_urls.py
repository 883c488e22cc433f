"""Tests for URL and srcset helpers."""

import pytest

from autopicture_shared.urls import (
    SourceSetEntry,
    build_srcset,
    is_convertible,
    is_external,
    map_srcset_to_webp,
    parse_srcset,
    srcset_signature,
    to_webp_url,
    webp_source_key,
)


class TestIsExternal:
    """Test suite for is_external."""

    @pytest.mark.parametrize("url", [
        "https://cdn.example.com/photo.jpg",
        "HTTP://example.com/a.png",
        "//cdn.example.com/a.png",
        "data:image/png;base64,AAAA",
    ])
    def test_external_urls(self, url):
        """Absolute, protocol-relative and data URLs are external."""
        assert is_external(url)

    @pytest.mark.parametrize("url", ["img/a.png", "/img/a.png", "./a.jpg", "../a.jpeg"])
    def test_local_urls(self, url):
        """Relative and root-relative URLs are local."""
        assert not is_external(url)


class TestToWebpUrl:
    """Test suite for to_webp_url."""

    def test_swaps_extension(self):
        assert to_webp_url("img/pic.png") == "img/pic.webp"
        assert to_webp_url("img/pic.JPEG") == "img/pic.webp"
        assert to_webp_url("pic.jpg") == "pic.webp"

    def test_keeps_query_string(self):
        """The query string survives the extension swap."""
        assert to_webp_url("pic.png?v=2") == "pic.webp?v=2"

    def test_leaves_other_formats(self):
        assert to_webp_url("logo.svg") == "logo.svg"
        assert to_webp_url("anim.gif") == "anim.gif"


class TestParseSrcset:
    """Test suite for parse_srcset and build_srcset."""

    def test_parse_with_descriptors(self):
        assert parse_srcset("a.jpg 1x, b.jpg 2x") == [
            SourceSetEntry("a.jpg", "1x"),
            SourceSetEntry("b.jpg", "2x"),
        ]

    def test_parse_bare_urls_and_empty_items(self):
        """Empty items are dropped, bare URLs get an empty descriptor."""
        assert parse_srcset("  , a.jpg,, b.jpg 480w ") == [
            SourceSetEntry("a.jpg", ""),
            SourceSetEntry("b.jpg", "480w"),
        ]

    def test_parse_non_string(self):
        assert parse_srcset(None) == []

    def test_build_preserves_order(self):
        entries = [SourceSetEntry("b.webp", "2x"), SourceSetEntry("a.webp")]
        assert build_srcset(entries) == "b.webp 2x, a.webp"


class TestMapSrcsetToWebp:
    """Test suite for map_srcset_to_webp."""

    def test_maps_and_preserves_descriptors(self):
        assert map_srcset_to_webp("a.jpg 1x, b.jpg 2x") == "a.webp 1x, b.webp 2x"

    def test_drops_external_svg_and_webp(self):
        srcset = "a.png 1x, https://cdn.example.com/b.png 2x, c.svg 3x, d.webp 4x"
        assert map_srcset_to_webp(srcset) == "a.webp 1x"

    def test_keeps_external_when_not_skipping(self):
        srcset = "https://cdn.example.com/b.png 2x"
        assert map_srcset_to_webp(srcset, skip_external=False) == "https://cdn.example.com/b.webp 2x"

    def test_nothing_convertible(self):
        assert map_srcset_to_webp("logo.svg") == ""

    def test_is_convertible(self):
        assert is_convertible("a.png")
        assert not is_convertible("")
        assert not is_convertible("a.svg")
        assert not is_convertible("//cdn/a.png")
        assert is_convertible("//cdn/a.png", skip_external=False)


class TestSignatures:
    """Test suite for srcset_signature and webp_source_key."""

    def test_signature_is_order_insensitive(self):
        assert srcset_signature("a.webp 1x, b.webp 2x") == srcset_signature("b.webp 2x,a.webp 1x")

    def test_signature_normalizes_whitespace(self):
        assert srcset_signature("a.webp   1x,\n b.webp\t2x") == "a.webp 1x,b.webp 2x"

    def test_key_includes_media_and_sizes(self):
        base = webp_source_key("a.webp", "", "")
        assert webp_source_key("a.webp", None, None) == base
        assert webp_source_key("a.webp", "(min-width: 800px)", "") != base
        assert webp_source_key("a.webp", "", "100vw") != base

    def test_key_normalizes_media(self):
        assert webp_source_key("a.webp", " (min-width:  800px) ") == webp_source_key("a.webp", "(min-width: 800px)")
