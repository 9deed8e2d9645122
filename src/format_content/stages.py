"""Formatter stages.

Each stage mutates a parsed fragment in place and recognizes the marker class
it leaves behind, so running the pipeline on its own output is a no-op.
"""

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Optional

from lxml.html import HtmlElement

from clean_content.clean import clean
from common.html import (
    add_class,
    block_text,
    has_ancestor,
    has_class,
    new_element,
    parse_fragment,
    replace_element,
    serialize_fragment,
    text_of,
)
from format_content.analysis import analyze_content, significant_words, split_sentences
from format_content.enhancers import EnhancerUnavailableError, TextEnhancer
from format_content.models import ContentAnalysis

logger = logging.getLogger(__name__)

HEADING_CLASS = "sentinel-heading"
LIST_CLASS = "sentinel-list"
SECTION_CLASS = "sentinel-section"
QUOTE_CLASS = "sentinel-quote"
KEYWORD_CLASS = "sentinel-keyword"
MEDIA_CLASS = "sentinel-media"
KEY_POINTS_CLASS = "sentinel-key-points"
SPLIT_CLASS = "sentinel-split"
ENHANCED_CLASS = "sentinel-enhanced"

MIN_QUOTE_CHARS = 20
MAX_ATTRIBUTION_CHARS = 200
SHORT_PARAGRAPH_CHARS = 120
SHORT_LINE_CHARS = 80
LONG_PARAGRAPH_CHARS = 400
MIN_CHUNK_CHARS = 200
KEY_POINTS_COUNT = 3
KEY_POINT_MIN_CHARS = 40
KEY_POINT_MAX_CHARS = 300

MEDIA_TAGS = ("img", "iframe", "video")
NON_BODY_TAGS = {"blockquote", "li", "ul", "ol", "figure"}

QUOTE_RE = re.compile(
    r"^(?P<quote>[\"“«][^\"“”«»]{%d,}[\"”»])\s*(?P<attribution>.*)$" % MIN_QUOTE_CHARS,
    re.S,
)
ATTRIBUTION_LEAD_RE = re.compile(r"^[\s,;:–—-]+")
MARKER_RE = re.compile(r"^\s*(?:(?P<bullet>[•·▪●◦‣*\-–—])|(?P<number>\d{1,3})[.)])\s+(?=\S)")

TOPIC_KEYWORDS = {
    "Politics": ["government", "minister", "election", "parliament", "policy", "president", "party", "vote", "senate"],
    "Economy": ["economy", "economic", "inflation", "trade", "export", "import", "investment", "growth", "gdp", "market"],
    "Business": ["company", "business", "revenue", "profit", "startup", "shares", "investors", "funding", "deal"],
    "Technology": ["technology", "software", "digital", "internet", "data", "startup", "platform", "app", "artificial"],
    "Health": ["health", "hospital", "disease", "vaccine", "patients", "medical", "doctors", "outbreak"],
    "Environment": ["climate", "environment", "flood", "drought", "emissions", "forest", "pollution", "weather"],
    "Security": ["police", "military", "attack", "security", "border", "arrested", "court", "crime"],
    "Education": ["school", "students", "education", "university", "teachers", "training"],
    "Tourism": ["tourism", "tourists", "visitors", "travel", "hotel", "airport", "flights"],
    "Sports": ["match", "tournament", "team", "players", "championship", "league", "coach"],
}
FALLBACK_TOPIC = "Overview"


@dataclass
class StageContext:
    """Per-invocation state shared by the stages."""
    title: str
    enhancer: TextEnhancer
    warnings: list[str] = field(default_factory=list)
    skipped: set[str] = field(default_factory=set)
    analysis: Optional[ContentAnalysis] = None

    def warn(self, stage: str, message: str) -> None:
        logger.debug("Stage %s: %s", stage, message)
        self.warnings.append(f"{stage}: {message}")

    def skip(self, stage: str, reason: str | None = None) -> None:
        self.skipped.add(stage)
        if reason:
            self.warn(stage, reason)


StageFn = Callable[[HtmlElement, StageContext], Optional[HtmlElement]]


@dataclass(frozen=True)
class Stage:
    """A pipeline step gated by one ``StageOptions`` field.

    ``apply`` edits the tree in place, or returns a replacement root.
    """
    name: str
    option: str
    apply: StageFn
    requires: tuple[str, ...] = ()


def body_paragraphs(root: HtmlElement) -> list[HtmlElement]:
    """Paragraphs of the article body, in document order."""
    return [
        p for p in root.iter("p")
        if not has_ancestor(p, NON_BODY_TAGS, css_class=KEY_POINTS_CLASS)
    ]


def _has_marker(root: HtmlElement, css_class: str) -> bool:
    return any(has_class(el, css_class) for el in root.iter() if isinstance(el.tag, str))


def _is_text_only(el: HtmlElement) -> bool:
    return len(el) == 0


def detect_topic(text: str) -> str:
    """Pick the topic label whose keywords occur most often in ``text``."""
    counts = Counter(significant_words(text))
    best, best_hits = FALLBACK_TOPIC, 0
    for label, keywords in TOPIC_KEYWORDS.items():
        hits = sum(counts[k] for k in keywords)
        if hits > best_hits:
            best, best_hits = label, hits
    return best


def add_section_headings(root: HtmlElement, ctx: StageContext) -> None:
    paragraphs = body_paragraphs(root)
    if not paragraphs or _has_marker(root, HEADING_CLASS):
        return
    lead = paragraphs[0]

    for el in root.iter():
        if el is lead:
            break
        if el.tag in ("h2", "h3"):
            return

    topic = detect_topic(f"{ctx.title} {block_text(root)}")
    lead.addprevious(new_element("h2", topic, HEADING_CLASS))


def _list_from_items(items: list[str], ordered: bool) -> HtmlElement:
    container = new_element("ol" if ordered else "ul", css_class=LIST_CLASS)
    for item in items:
        container.append(new_element("li", item))
    return container


def _split_br_lines(p: HtmlElement) -> list[str] | None:
    if not len(p) or any(child.tag != "br" for child in p):
        return None
    parts = [p.text or ""] + [br.tail or "" for br in p]
    return [part.strip() for part in parts if part.strip()]


def _convert_line_break_paragraph(p: HtmlElement) -> bool:
    lines = _split_br_lines(p)
    if not lines or len(lines) < 2:
        return False

    matches = [MARKER_RE.match(line) for line in lines]
    if all(matches):
        ordered = all(m.group("number") for m in matches)
        items = [line[m.end():].strip() for line, m in zip(lines, matches)]
    elif len(lines) >= 3 and all(len(line) <= SHORT_LINE_CHARS for line in lines):
        ordered = False
        items = lines
    else:
        return False

    replace_element(p, _list_from_items(items, ordered))
    return True


def _convert_bullet_run(run: list[HtmlElement]) -> None:
    matches = [MARKER_RE.match(p.text or "") for p in run]
    container = new_element("ol" if all(m.group("number") for m in matches) else "ul", css_class=LIST_CLASS)
    run[0].addprevious(container)
    for p, match in zip(run, matches):
        item = new_element("li", (p.text or "")[match.end():])
        for child in list(p):
            item.append(child)
        container.append(item)
        container.tail = p.tail
        p.getparent().remove(p)


def optimize_lists(root: HtmlElement, ctx: StageContext) -> None:
    for p in body_paragraphs(root):
        _convert_line_break_paragraph(p)

    containers = [root] + [s for s in root.iter("section") if has_class(s, SECTION_CLASS)]
    for container in containers:
        run: list[HtmlElement] = []
        for child in list(container) + [None]:
            if child is not None and child.tag == "p" and MARKER_RE.match(child.text or ""):
                run.append(child)
                continue
            if len(run) >= 2:
                _convert_bullet_run(run)
            run = []


def enhance_structure(root: HtmlElement, ctx: StageContext) -> None:
    if _has_marker(root, SECTION_CLASS):
        return

    run: list[HtmlElement] = []
    for child in list(root) + [None]:
        if (
            child is not None
            and child.tag == "p"
            and not has_class(child, ENHANCED_CLASS)
            and len(text_of(child)) < SHORT_PARAGRAPH_CHARS
        ):
            run.append(child)
            continue
        if len(run) >= 2:
            section = new_element("section", css_class=SECTION_CLASS)
            run[0].addprevious(section)
            section.tail = run[-1].tail
            for p in run:
                p.tail = None
                section.append(p)
        run = []


def enhance_quotes(root: HtmlElement, ctx: StageContext) -> None:
    for p in body_paragraphs(root):
        if not _is_text_only(p) or has_class(p, SPLIT_CLASS):
            continue
        match = QUOTE_RE.match((p.text or "").strip())
        if not match:
            continue
        attribution = ATTRIBUTION_LEAD_RE.sub("", match.group("attribution")).strip()
        if len(attribution) > MAX_ATTRIBUTION_CHARS:
            continue

        quote = new_element("blockquote", css_class=QUOTE_CLASS)
        quote.append(new_element("p", match.group("quote")))
        if attribution:
            quote.append(new_element("cite", attribution))
        replace_element(p, quote)


def split_paragraph_text(text: str) -> list[str]:
    """Group sentences greedily into chunks of at least ``MIN_CHUNK_CHARS``."""
    sentences = split_sentences(text)
    chunks: list[str] = []
    current = ""
    for sentence in sentences:
        current = f"{current} {sentence}" if current else sentence
        if len(current) >= MIN_CHUNK_CHARS:
            chunks.append(current)
            current = ""

    if current:
        if chunks and len(current) < SHORT_PARAGRAPH_CHARS:
            chunks[-1] = f"{chunks[-1]} {current}"
        else:
            chunks.append(current)
    return chunks


def optimize_readability(root: HtmlElement, ctx: StageContext) -> None:
    for p in body_paragraphs(root):
        if not _is_text_only(p) or has_class(p, SPLIT_CLASS):
            continue
        text = (p.text or "").strip()
        if len(text) <= LONG_PARAGRAPH_CHARS:
            continue

        chunks = split_paragraph_text(text)
        if len(chunks) < 2:
            continue

        p.text = chunks[0]
        add_class(p, SPLIT_CLASS)
        anchor = p
        for chunk in chunks[1:]:
            following = new_element("p", chunk, SPLIT_CLASS)
            following.tail = anchor.tail
            anchor.tail = None
            anchor.addnext(following)
            anchor = following


def _wrap_keyword(p: HtmlElement, keyword: str) -> bool:
    pattern = re.compile(r"\b(%s)\b" % re.escape(keyword), re.I)

    # (owner, attribute) pairs for the paragraph's own text nodes
    slots: list[tuple[HtmlElement, str]] = [(p, "text")]
    slots.extend((child, "tail") for child in p)

    for owner, attr in slots:
        value = getattr(owner, attr)
        match = pattern.search(value or "")
        if not match:
            continue
        strong = new_element("strong", match.group(1), KEYWORD_CLASS)
        strong.tail = value[match.end():] or None
        setattr(owner, attr, value[:match.start()] or None)
        if attr == "text":
            owner.insert(0, strong)
        else:
            owner.addnext(strong)
        return True
    return False


def optimize_seo(root: HtmlElement, ctx: StageContext) -> None:
    if _has_marker(root, KEYWORD_CLASS):
        return
    paragraphs = body_paragraphs(root)
    if not paragraphs:
        return

    keywords = sorted(dict.fromkeys(significant_words(ctx.title)), key=len, reverse=True)
    if not keywords:
        return

    for keyword in keywords:
        if _wrap_keyword(paragraphs[0], keyword):
            return
    ctx.warn("seo", "no title keyword found in the lead paragraph")


def enhance_visuals(root: HtmlElement, ctx: StageContext) -> None:
    for el in list(root.iter(*MEDIA_TAGS)):
        add_class(el, MEDIA_CLASS)
        parent = el.getparent()
        if parent.tag == "figure":
            add_class(parent, MEDIA_CLASS)
        elif parent is root:
            figure = new_element("figure", css_class=MEDIA_CLASS)
            replace_element(el, figure)
            figure.append(el)


def run_content_analysis(root: HtmlElement, ctx: StageContext) -> None:
    ctx.analysis = analyze_content(serialize_fragment(root))


def add_key_points(root: HtmlElement, ctx: StageContext) -> None:
    if _has_marker(root, KEY_POINTS_CLASS):
        return

    sentences = [
        sentence
        for p in body_paragraphs(root)
        for sentence in split_sentences(text_of(p))
        if KEY_POINT_MIN_CHARS <= len(sentence) <= KEY_POINT_MAX_CHARS
    ]
    if len(sentences) < KEY_POINTS_COUNT:
        return

    frequencies = Counter(w for s in sentences for w in significant_words(s))
    scored = [
        (sum(frequencies[w] for w in set(significant_words(s))), -index)
        for index, s in enumerate(sentences)
    ]
    top = sorted(range(len(sentences)), key=lambda i: scored[i], reverse=True)[:KEY_POINTS_COUNT]

    section = new_element("section", css_class=KEY_POINTS_CLASS)
    section.append(new_element("h3", "Key Points"))
    items = new_element("ul")
    for index in sorted(top):
        items.append(new_element("li", sentences[index]))
    section.append(items)
    root.append(section)


def enhance_with_ai(root: HtmlElement, ctx: StageContext) -> Optional[HtmlElement]:
    if _has_marker(root, ENHANCED_CLASS):
        return None

    try:
        enhanced = ctx.enhancer.enhance(serialize_fragment(root), ctx.title)
    except EnhancerUnavailableError as e:
        ctx.skip("ai_enhancement", f"enhancer unavailable: {e}")
        return None
    except Exception as e:
        logger.warning("Text enhancer failed: %s", e)
        ctx.skip("ai_enhancement", f"enhancer failed: {e}")
        return None

    cleaned = clean(enhanced)
    if cleaned.is_empty:
        ctx.skip("ai_enhancement", "enhancer returned no usable content")
        return None

    new_root = parse_fragment(cleaned.body_html)
    add_class(new_root[0], ENHANCED_CLASS)
    return new_root


PIPELINE: tuple[Stage, ...] = (
    Stage("section_headings", "add_section_headings", add_section_headings),
    Stage("lists", "optimize_lists", optimize_lists),
    Stage("structure", "enhance_structure", enhance_structure),
    Stage("quotes", "enhance_quotes", enhance_quotes),
    Stage("readability", "enable_readability_optimization", optimize_readability),
    Stage("seo", "enable_seo_optimization", optimize_seo),
    Stage("visual", "enable_visual_enhancement", enhance_visuals),
    Stage("content_analysis", "enable_content_analysis", run_content_analysis),
    Stage("key_points", "add_key_points", add_key_points, requires=("enable_content_analysis",)),
    Stage("ai_enhancement", "enable_ai_enhancement", enhance_with_ai),
)
