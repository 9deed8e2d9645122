"""Tests for clean_content.clean module."""

from unittest.mock import patch

import pytest

from clean_content.clean import clean, clean_bilingual, clean_text, needs_cleaning
from clean_content.models import CleanedFragment

SKELETON_TAGS = ("<html", "<head", "<body", "<script", "<style", "<meta", "<title", "<!doctype")

SAMPLES = [
    "```html<h2>Background</h2><p>25% decrease in exports this quarter.</p>```",
    "<!DOCTYPE html><html><head><title>T</title></head><body><p>Text</p></body></html>",
    "• First point\n• Second point",
    "<div><p>One</p><div><p>Two</p></div></div>",
    "<h1>Title</h1><p class=\"lead\" style=\"color: red\">Body <a href=\"/x\" onclick=\"x()\">link</a></p>",
    "<div>Loose text that is long enough to be kept as a paragraph here.<br>Second line</div>",
    "<li>Stray item</li><p>  Hello \n\n   world  </p>",
    "Short note\n\nThis is a loose paragraph of text that is definitely longer than forty characters.",
    '"""<p>Triple quoted markup that should survive the fence removal.</p>"""',
]


class TestClean:
    def test_fenced_markup_is_unwrapped(self) -> None:
        result = clean("```html<h2>Background</h2><p>25% decrease...</p>```")
        assert result.body_html == "<h2>Background</h2>\n<p>25% decrease...</p>"

    def test_full_document_wrapper(self) -> None:
        raw = "<html><head><title>Page</title></head><body><p>Text</p></body></html>"
        assert clean(raw).body_html == "<p>Text</p>"

    def test_script_and_style_removed_with_contents(self) -> None:
        raw = "<style>p {color: red}</style><p>Keep</p><script>alert(1)</script>"
        assert clean(raw).body_html == "<p>Keep</p>"

    def test_layout_containers_unwrapped(self) -> None:
        raw = "<div><p>One</p><div><p>Two</p></div></div>"
        assert clean(raw).body_html == "<p>One</p>\n<p>Two</p>"

    def test_headings_demoted(self) -> None:
        raw = "<h1>Title</h1><h5>Minor</h5><p>Body text</p>"
        assert clean(raw).body_html == "<h2>Title</h2>\n<h3>Minor</h3>\n<p>Body text</p>"

    def test_attributes_filtered(self) -> None:
        raw = '<p class="lead" style="x" id="y">Hi <a href="http://x" onclick="evil()">link</a></p>'
        assert clean(raw).body_html == '<p>Hi <a href="http://x">link</a></p>'

    def test_marker_classes_kept(self) -> None:
        raw = '<p class="sentinel-quote other">Quoted</p>'
        assert clean(raw).body_html == '<p class="sentinel-quote">Quoted</p>'

    def test_span_unwrapped(self) -> None:
        raw = '<p>Hello <span class="x" style="color:red">bright</span> world</p>'
        assert clean(raw).body_html == "<p>Hello bright world</p>"

    def test_whitespace_collapsed(self) -> None:
        assert clean("<p>  Hello \n\n   world  </p>").body_html == "<p>Hello world</p>"

    def test_empty_blocks_dropped(self) -> None:
        assert clean("<p> </p><p>Real</p><h2></h2>").body_html == "<p>Real</p>"

    def test_short_loose_text_dropped(self) -> None:
        assert clean("Short note").is_empty

    def test_long_loose_text_wrapped(self) -> None:
        raw = "Short note\n\nThis is a loose paragraph of text that is definitely longer than forty characters."
        assert clean(raw).body_html == (
            "<p>This is a loose paragraph of text that is definitely longer than forty characters.</p>"
        )

    def test_bullet_chunk_kept_as_line_break_paragraph(self) -> None:
        result = clean("• First point\n• Second point")
        assert result.body_html == "<p>• First point<br>• Second point</p>"

    def test_stray_list_item_becomes_paragraph(self) -> None:
        assert clean("<li>Stray item</li>").body_html == "<p>Stray item</p>"

    def test_image_without_src_dropped(self) -> None:
        assert clean('<p>Text<img alt="x"></p>').body_html == "<p>Text</p>"

    def test_javascript_href_removed(self) -> None:
        assert clean('<p><a href="javascript:alert(1)">x</a></p>').body_html == "<p><a>x</a></p>"

    @pytest.mark.parametrize("raw", [None, "", "   ", 42])
    def test_blank_or_non_string_input(self, raw) -> None:
        assert clean(raw) == CleanedFragment("")

    @pytest.mark.parametrize("raw", ["<<<>>>", "<p", "\x00\x01\x02", "</div></p>", "<![CDATA[x]]>", "```"])
    def test_never_raises(self, raw) -> None:
        assert isinstance(clean(raw), CleanedFragment)

    def test_falls_back_to_plain_text(self) -> None:
        with patch("clean_content.clean._clean_markup", side_effect=ValueError("boom")):
            result = clean("<p>a &amp; b</p>")
        assert result.body_html == "<p>a &amp; b</p>"

    @pytest.mark.parametrize("raw", SAMPLES)
    def test_idempotent(self, raw) -> None:
        once = clean(raw).body_html
        assert clean(once).body_html == once

    @pytest.mark.parametrize("raw", SAMPLES)
    def test_no_skeleton_tags_or_fences(self, raw) -> None:
        body = clean(raw).body_html
        assert not any(tag in body.lower() for tag in SKELETON_TAGS)
        assert "```" not in body
        assert '"""' not in body


class TestNeedsCleaning:
    def test_clean_markup(self) -> None:
        assert needs_cleaning("<p>Already clean</p>") is False

    def test_fenced_markup(self) -> None:
        assert needs_cleaning("```<p>Fenced text</p>```") is True

    def test_empty(self) -> None:
        assert needs_cleaning("") is False


class TestCleanBilingual:
    def test_cleans_each_language(self) -> None:
        result = clean_bilingual({"en": "<h1>Title</h1>", "km": "```<p>ខ្មែរ</p>```", "fr": None})
        assert result == {"en": "<h2>Title</h2>", "km": "<p>ខ្មែរ</p>"}

    def test_empty_mapping(self) -> None:
        assert clean_bilingual({}) == {}


class TestCleanText:
    def test_strips_html_tags(self) -> None:
        assert clean_text("<h1>Title</h1> <p>Body</p>") == "Title Body"

    def test_unescapes_entities(self) -> None:
        assert clean_text("Tom &amp; Jerry") == "Tom & Jerry"

    def test_removes_escaped_quotes(self) -> None:
        assert clean_text('He said \\"hello\\"') == 'He said "hello"'

    def test_removes_fence_markers(self) -> None:
        assert clean_text("```html Title```") == "Title"

    def test_none_returns_none(self) -> None:
        assert clean_text(None) is None

    def test_whitespace_only_returns_none(self) -> None:
        assert clean_text("   \n\t ") is None
