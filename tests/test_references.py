"""Unit tests for references.py (image reference extraction)."""

from __future__ import annotations

from imgreplace_claude.references import IMG_SRC_RE, extract_image_references
from tests.conftest import img


class TestExtractImageReferences:
    """Tests for extract_image_references()."""

    def test_empty_input(self):
        assert extract_image_references("") == []

    def test_no_images(self):
        assert extract_image_references("<p>Hello <b>world</b></p>") == []

    def test_single_image(self):
        html = '<p><img src="https://x/a.png"></p>'
        assert extract_image_references(html) == ["https://x/a.png"]

    def test_first_seen_order_preserved(self):
        html = img("https://x/c.png") + img("https://x/a.png") + img("https://x/b.png")
        assert extract_image_references(html) == [
            "https://x/c.png", "https://x/a.png", "https://x/b.png",
        ]

    def test_duplicates_removed(self):
        """Repeated references appear once, at their first position."""
        html = (
            img("https://x/a.png") + img("https://x/b.png")
            + img("https://x/a.png") + img("https://x/a.png")
        )
        refs = extract_image_references(html)
        assert refs == ["https://x/a.png", "https://x/b.png"]
        assert len(refs) == len(set(refs))

    def test_src_after_other_attributes(self):
        html = '<img class="hero" alt="A cat" width="300" src="https://x/cat.jpg" />'
        assert extract_image_references(html) == ["https://x/cat.jpg"]

    def test_src_before_other_attributes(self):
        html = '<img src="https://x/cat.jpg" alt="A cat">'
        assert extract_image_references(html) == ["https://x/cat.jpg"]

    def test_case_insensitive_tag_and_attribute(self):
        html = '<IMG ALT="x" SRC="https://x/UP.PNG">'
        assert extract_image_references(html) == ["https://x/UP.PNG"]

    def test_single_quoted_src(self):
        html = "<img alt='x' src='https://x/q.png'>"
        assert extract_image_references(html) == ["https://x/q.png"]

    def test_data_src_not_matched(self):
        """Only the real src attribute counts, not data-src."""
        html = '<img data-src="https://x/lazy.png" src="https://x/real.png">'
        assert extract_image_references(html) == ["https://x/real.png"]

    def test_no_normalisation(self):
        """References differing only in case or query are distinct."""
        html = (
            img("https://X/a.png") + img("https://x/a.png")
            + img("https://x/a.png?v=2") + img("https://x/a.png/")
        )
        assert extract_image_references(html) == [
            "https://X/a.png", "https://x/a.png",
            "https://x/a.png?v=2", "https://x/a.png/",
        ]

    def test_malformed_value_passed_through(self):
        html = img("not a url")
        assert extract_image_references(html) == ["not a url"]

    def test_multiline_tag(self):
        html = '<img\n  alt="x"\n  src="https://x/m.png"\n>'
        assert extract_image_references(html) == ["https://x/m.png"]

    def test_other_tags_ignored(self):
        html = '<a href="https://x/a.png">a</a><iframe src="https://x/f"></iframe>'
        assert extract_image_references(html) == []

    def test_empty_src_ignored(self):
        assert extract_image_references('<img src="">') == []

    def test_none_input(self):
        assert extract_image_references(None) == []  # type: ignore[arg-type]


class TestImgSrcRegex:
    """Direct checks on IMG_SRC_RE."""

    def test_imgur_like_tag_name_not_matched(self):
        """``<imgx`` is not an img tag."""
        assert IMG_SRC_RE.search('<imgx src="a.png">') is None
