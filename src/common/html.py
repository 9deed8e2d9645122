"""HTML fragment helpers shared by the cleaner and the formatter.

Fragments are parsed into a detached ``<div>`` root with lxml and serialized
back as one top-level block per line.
"""

import html
import re

from lxml import html as lxml_html
from lxml.html import HtmlElement

WHITESPACE_RE = re.compile(r"\s+")
BLOCK_SEPARATOR = "\n"
MARKER_PREFIX = "sentinel-"
# A bullet glyph or "1." / "1)" followed by the item text
LIST_MARKER_RE = re.compile(r"^(?:[•·▪●◦‣*\-–—]|\d{1,3}[.)])\s+(?P<text>\S.*)$", re.S)


def parse_fragment(markup: str) -> HtmlElement:
    """Parse an HTML fragment into a ``<div>`` root element."""
    return lxml_html.fragment_fromstring(markup or "", create_parent="div")


def new_element(tag: str, text: str | None = None, css_class: str | None = None) -> HtmlElement:
    """Create a detached HTML element."""
    el = lxml_html.Element(tag)
    if css_class:
        el.set("class", css_class)
    if text is not None:
        el.text = text
    return el


def to_html(el: HtmlElement) -> str:
    """Serialize one element without its tail."""
    return lxml_html.tostring(el, encoding="unicode", with_tail=False)


def escape_text(text: str) -> str:
    return html.escape(text, quote=False)


def serialize_fragment(root: HtmlElement) -> str:
    """Serialize the children of a fragment root, one block per line."""
    parts = []
    if root.text and root.text.strip():
        parts.append(escape_text(root.text.strip()))
    for child in root:
        if isinstance(child.tag, str):
            parts.append(to_html(child))
        if child.tail and child.tail.strip():
            parts.append(escape_text(child.tail.strip()))
    return BLOCK_SEPARATOR.join(parts)


def text_of(el: HtmlElement) -> str:
    """Visible text of an element with whitespace collapsed."""
    return WHITESPACE_RE.sub(" ", el.text_content()).strip()


def block_text(el: HtmlElement) -> str:
    """Like ``text_of`` but with a space between text nodes, so adjacent blocks stay apart."""
    return WHITESPACE_RE.sub(" ", " ".join(el.itertext())).strip()


def classes(el: HtmlElement) -> list[str]:
    return (el.get("class") or "").split()


def has_class(el: HtmlElement, name: str) -> bool:
    return name in classes(el)


def add_class(el: HtmlElement, name: str) -> None:
    current = classes(el)
    if name not in current:
        el.set("class", " ".join(current + [name]))


def has_ancestor(el: HtmlElement, tags: set[str] = frozenset(), css_class: str | None = None) -> bool:
    """True when any ancestor has one of ``tags`` or carries ``css_class``."""
    parent = el.getparent()
    while parent is not None:
        if parent.tag in tags:
            return True
        if css_class and has_class(parent, css_class):
            return True
        parent = parent.getparent()
    return False


def replace_element(old: HtmlElement, new: HtmlElement) -> None:
    """Replace ``old`` with ``new`` in place, keeping the tail text."""
    new.tail = old.tail
    old.tail = None
    old.getparent().replace(old, new)
