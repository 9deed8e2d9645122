"""Core clean logic for scraped article markup.

Scraped bodies arrive as anything from plain text to whole HTML documents
wrapped in code fences. ``clean`` reduces them to a small, well-formed HTML
subset that the formatter can work on. It is total and idempotent.
"""

import html
import logging
import re
from typing import Iterator, Optional

from lxml.html import HtmlElement

from clean_content.models import CleanedFragment
from common.html import (
    LIST_MARKER_RE,
    MARKER_PREFIX,
    WHITESPACE_RE,
    escape_text,
    new_element,
    parse_fragment,
    serialize_fragment,
    text_of,
    to_html,
)

logger = logging.getLogger(__name__)

# Loose text without a block wrapper shorter than this is treated as boilerplate
MIN_LOOSE_TEXT_CHARS = 40

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_XML_DECL_RE = re.compile(r"<\?xml[^>]*\?>", re.I)
_DOCTYPE_RE = re.compile(r"<!doctype[^>]*>", re.I)
_COMMENT_RE = re.compile(r"<!--.*?(?:-->|$)", re.S)
_SKELETON_BLOCK_RE = re.compile(
    r"<(head|script|style|title|noscript)\b[^>]*>.*?</\1\s*>", re.I | re.S
)
_SKELETON_TAG_RE = re.compile(r"</?(?:html|head|body|meta|link)\b[^>]*>", re.I)
_FENCE_RE = re.compile(r"(?:`{3,}|'{3}|\"{3})[ \t]*(?:html\b)?", re.I)
_TAG_RE = re.compile(r"<[^>]+>")
_BLANK_LINE_RE = re.compile(r"\n[ \t\r\f\v\xa0]*\n")

BLOCK_TAGS = {"p", "h2", "h3", "blockquote", "ul", "ol", "figure", "hr", "section"}
TEXT_BLOCK_TAGS = {"p", "h2", "h3", "li", "figcaption"}
STRUCTURAL_TAGS = {"ul", "ol", "figure", "section"}
MEDIA_TAGS = {"img", "iframe", "video"}
INLINE_TAGS = {"strong", "em", "b", "i", "u", "a", "br", "cite", "code", "sub", "sup", "source"}
ALLOWED_TAGS = BLOCK_TAGS | TEXT_BLOCK_TAGS | MEDIA_TAGS | INLINE_TAGS

RENAMED_TAGS = {"h1": "h2", "h4": "h3", "h5": "h3", "h6": "h3"}
DROPPED_TAGS = {
    "script", "style", "head", "title", "noscript", "meta", "link", "nav", "aside",
    "form", "button", "input", "select", "option", "textarea", "svg", "canvas",
    "template", "object", "embed",
}
# Layout containers whose boundaries separate paragraphs
CONTAINER_TAGS = {
    "html", "body", "div", "article", "main", "header", "footer", "section", "table",
    "thead", "tbody", "tfoot", "tr", "pre", "dl", "dt", "dd", "address", "center",
    "details", "summary",
}
CELL_TAGS = {"td", "th"}

ALLOWED_ATTRIBUTES = {
    "a": {"href", "title"},
    "img": {"src", "alt", "title"},
    "iframe": {"src", "title"},
    "video": {"src"},
    "source": {"src", "type"},
}


def clean_text(text: Optional[str]) -> Optional[str]:
    """Clean text by stripping HTML, unescaping entities, and collapsing whitespace."""
    if not text:
        return None
    text = _TAG_RE.sub(" ", text)
    text = html.unescape(text)
    # Remove escaped quotes
    text = text.replace('\\"', '"')
    text = _FENCE_RE.sub("", text)
    text = WHITESPACE_RE.sub(" ", text).strip()
    return text if text else None


def clean(raw: Optional[str]) -> CleanedFragment:
    """Sanitize raw scraped markup into a well-formed HTML fragment.

    Never raises: input the HTML parser cannot handle degrades to a single
    escaped-text paragraph.
    """
    if not raw or not isinstance(raw, str):
        return CleanedFragment("")

    try:
        body = _clean_markup(_strip_document_markup(raw))
        # A second pass settles nesting the HTML parser rewrote on the first
        body = _clean_markup(body)
    except Exception as e:
        logger.warning("Markup cleaning failed, falling back to plain text: %s", e)
        body = _plain_text_fallback(raw)

    return CleanedFragment(body)


def clean_bilingual(content: dict) -> dict:
    """Clean every language variant of a ``{lang: markup}`` mapping."""
    if not content:
        return {}
    return {
        lang: clean(value).body_html
        for lang, value in content.items()
        if isinstance(value, str)
    }


def needs_cleaning(raw: Optional[str]) -> bool:
    """True when ``clean`` would change the stored markup."""
    if not raw or not isinstance(raw, str):
        return False
    return clean(raw).body_html != raw.strip()


def _strip_document_markup(raw: str) -> str:
    """Remove document skeleton and code fences at the string level."""
    text = _CONTROL_CHARS_RE.sub("", raw)
    text = _XML_DECL_RE.sub("", text)
    text = _DOCTYPE_RE.sub("", text)
    text = _COMMENT_RE.sub("", text)
    text = _SKELETON_BLOCK_RE.sub("", text)
    text = _SKELETON_TAG_RE.sub("", text)
    text = _FENCE_RE.sub("", text)
    return text


def _clean_markup(markup: str) -> str:
    root = parse_fragment(markup)
    _sanitize_tree(root)
    out = _assemble_blocks(root)
    _repair_nesting(out)
    for block in list(out):
        _normalize_whitespace(block)
        _prune_empty(block)
        if _is_empty(block):
            out.remove(block)
    return serialize_fragment(out)


def _sanitize_tree(root: HtmlElement) -> None:
    """Drop, unwrap or rename every element not in the allowed subset."""
    if root.text:
        root.text = _FENCE_RE.sub("", root.text)

    for el in list(root.iter()):
        if el is root:
            continue
        if not isinstance(el.tag, str):
            # comments and processing instructions
            el.drop_tree()
            continue

        if el.text:
            el.text = _FENCE_RE.sub("", el.text)
        if el.tail:
            el.tail = _FENCE_RE.sub("", el.tail)

        tag = RENAMED_TAGS.get(el.tag, el.tag)
        el.tag = tag

        if tag in DROPPED_TAGS:
            el.drop_tree()
        elif tag == "section" and _has_marker(el):
            _filter_attributes(el)
        elif tag in CONTAINER_TAGS:
            _unwrap(el, "\n\n")
        elif tag in CELL_TAGS:
            _unwrap(el, " ")
        elif tag not in ALLOWED_TAGS:
            _unwrap(el, "")
        else:
            _filter_attributes(el)


def _unwrap(el: HtmlElement, separator: str) -> None:
    if separator:
        el.text = separator + (el.text or "")
        el.tail = separator + (el.tail or "")
    el.drop_tag()


def _has_marker(el: HtmlElement) -> bool:
    return any(c.startswith(MARKER_PREFIX) for c in (el.get("class") or "").split())


def _filter_attributes(el: HtmlElement) -> None:
    allowed = ALLOWED_ATTRIBUTES.get(el.tag, set())
    for name in list(el.attrib):
        if name == "class":
            markers = [c for c in el.get("class").split() if c.startswith(MARKER_PREFIX)]
            if markers:
                el.set("class", " ".join(markers))
            else:
                del el.attrib["class"]
        elif name not in allowed:
            del el.attrib[name]

    href = el.get("href")
    if href is not None and href.strip().lower().startswith("javascript:"):
        del el.attrib["href"]
    if el.tag in MEDIA_TAGS and el.tag != "video" and not el.get("src"):
        el.drop_tree()


def _assemble_blocks(root: HtmlElement) -> HtmlElement:
    """Collect top-level blocks, wrapping or dropping loose text runs."""
    out = new_element("div")
    loose: list[str] = []

    def flush() -> None:
        for block in _blocks_from_loose("".join(loose)):
            out.append(block)
        loose.clear()

    if root.text:
        loose.append(escape_text(root.text))

    for child in list(root):
        tail = child.tail
        child.tail = None
        if child.tag in BLOCK_TAGS or child.tag in MEDIA_TAGS:
            flush()
            out.append(child)
        elif child.tag in ("li", "figcaption"):
            flush()
            child.tag = "p"
            out.append(child)
        else:
            loose.append(to_html(child))
        if tail:
            loose.append(escape_text(tail))

    flush()
    return out


def _blocks_from_loose(markup: str) -> Iterator[HtmlElement]:
    """Split a loose text run on blank lines into paragraph blocks."""
    for chunk in _BLANK_LINE_RE.split(markup):
        lines = [line.strip() for line in chunk.splitlines() if line.strip()]
        if not lines:
            continue

        is_list = len(lines) >= 2 and all(LIST_MARKER_RE.match(line) for line in lines)
        inner = "<br>".join(lines) if is_list else " ".join(lines)

        block = parse_fragment(inner)
        block.tag = "p"
        text = text_of(block)
        if not is_list and len(text) < MIN_LOOSE_TEXT_CHARS:
            if text:
                logger.debug("Dropping loose text fragment: %r", text[:60])
            continue
        yield block


def _repair_nesting(out: HtmlElement) -> None:
    """Keep text blocks inline-only and lists made of list items."""
    for el in list(out.iter()):
        if el is out or not isinstance(el.tag, str):
            continue
        parent = el.getparent()
        if parent is None:
            continue

        if el.tag == "li" and parent.tag not in ("ul", "ol"):
            el.tag = "p"
        elif el.tag == "figcaption" and parent.tag != "figure":
            el.tag = "p"

        if parent is out:
            continue
        if el.tag in BLOCK_TAGS and _inside_text_block(el):
            _unwrap(el, " ")
        elif el.tag == "blockquote" and _inside(el, {"blockquote"}):
            _unwrap(el, " ")
        elif parent.tag in ("ul", "ol") and el.tag in ("p", "h2", "h3", "figcaption"):
            el.tag = "li"


def _inside(el: HtmlElement, tags: set[str]) -> bool:
    parent = el.getparent()
    while parent is not None:
        if parent.tag in tags:
            return True
        parent = parent.getparent()
    return False


def _inside_text_block(el: HtmlElement) -> bool:
    return _inside(el, TEXT_BLOCK_TAGS)


def _normalize_whitespace(block: HtmlElement) -> None:
    """Collapse whitespace runs and trim the edges of text-holding blocks."""
    for el in block.iter():
        if el.text:
            el.text = WHITESPACE_RE.sub(" ", el.text)
        if el is not block and el.tail:
            el.tail = WHITESPACE_RE.sub(" ", el.tail)

    for el in block.iter():
        holds_blocks = any(child.tag in BLOCK_TAGS or child.tag == "li" for child in el)
        if el.tag in STRUCTURAL_TAGS or (el.tag == "blockquote" and holds_blocks):
            if el.text and not el.text.strip():
                el.text = None
            for child in el:
                if child.tail and not child.tail.strip():
                    child.tail = None
        elif el.tag in TEXT_BLOCK_TAGS or el.tag == "blockquote":
            _trim_edges(el)


def _trim_edges(el: HtmlElement) -> None:
    # Leading and trailing line breaks carry no content
    while len(el) and el[0].tag == "br" and not (el.text or "").strip():
        el.text = (el.text or "") + (el[0].tail or "")
        el.remove(el[0])
    while len(el) and el[-1].tag == "br" and not (el[-1].tail or "").strip():
        el.remove(el[-1])

    for br in el.findall("br"):
        prev = br.getprevious()
        if prev is not None:
            if prev.tail:
                prev.tail = prev.tail.rstrip() or None
        elif el.text:
            el.text = el.text.rstrip() or None
        if br.tail:
            br.tail = br.tail.lstrip() or None

    if el.text:
        el.text = el.text.lstrip() or None
    if len(el):
        last = el[-1]
        if last.tail:
            last.tail = last.tail.rstrip() or None
    elif el.text:
        el.text = el.text.rstrip() or None


def _prune_empty(block: HtmlElement) -> None:
    for el in reversed(list(block.iter())):
        if el is block or el.tag in ("br", "hr", "source") or el.tag in MEDIA_TAGS:
            continue
        if _is_empty(el):
            el.drop_tree()


def _is_empty(el: HtmlElement) -> bool:
    if el.tag in MEDIA_TAGS or el.tag == "hr":
        return False
    if text_of(el):
        return False
    return not any(True for _ in el.iter(*MEDIA_TAGS))


def _plain_text_fallback(raw: str) -> str:
    text = _CONTROL_CHARS_RE.sub("", raw)
    text = _FENCE_RE.sub("", _TAG_RE.sub(" ", text))
    text = WHITESPACE_RE.sub(" ", html.unescape(text)).strip()
    if not text:
        return ""
    return to_html(new_element("p", text))
