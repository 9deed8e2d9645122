"""Readability and SEO analysis of formatted article markup."""

import re
from collections import Counter

from common.html import block_text, parse_fragment, text_of
from format_content.models import ContentAnalysis

SENTENCE_RE = re.compile(r"(?:(?<=[.!?])|(?<=[.!?][\"'”’)\]]))\s+(?=[\"'“‘(\[]?[A-Z0-9])")
WORD_RE = re.compile(r"[A-Za-z][A-Za-z'’-]*")
VOWEL_GROUPS_RE = re.compile(r"[aeiouy]+")

STOPWORDS = frozenset(
    """
    a about above after again against all also am an and any are as at be because been
    before being below between both but by can could did do does doing down during each
    few for from further had has have having he her here hers him his how i if in into is
    it its itself just more most my no nor not now of off on once only or other our ours
    out over own said same says she should so some such than that the their theirs them
    then there these they this those through to too under until up very was we were what
    when where which while who whom why will with would you your yours new year years
    according told
    """.split()
)

READABILITY_LEVELS = [
    (90, "Very Easy"),
    (80, "Easy"),
    (70, "Fairly Easy"),
    (60, "Standard"),
    (50, "Fairly Difficult"),
    (30, "Difficult"),
]


def split_sentences(text: str) -> list[str]:
    """Split plain text into sentences on terminal punctuation."""
    text = text.strip()
    if not text:
        return []
    return [s.strip() for s in SENTENCE_RE.split(text) if s.strip()]


def words(text: str) -> list[str]:
    return WORD_RE.findall(text)


def significant_words(text: str) -> list[str]:
    """Lower-cased words of four or more letters that are not stopwords."""
    return [w for w in (w.lower() for w in words(text)) if len(w) >= 4 and w not in STOPWORDS]


def count_syllables(word: str) -> int:
    word = re.sub(r"[^a-z]", "", word.lower())
    if len(word) <= 3:
        return 1
    return max(1, len(VOWEL_GROUPS_RE.findall(word)))


def readability_score(text: str) -> float:
    """Flesch reading ease clamped to 0-100."""
    sentences = split_sentences(text)
    word_list = words(text)
    if not sentences or not word_list:
        return 0.0

    syllables = sum(count_syllables(w) for w in word_list)
    score = 206.835 - 1.015 * (len(word_list) / len(sentences)) - 84.6 * (syllables / len(word_list))
    return round(max(0.0, min(100.0, score)), 1)


def readability_level(score: float) -> str:
    for threshold, label in READABILITY_LEVELS:
        if score >= threshold:
            return label
    return "Very Difficult"


def top_keywords(text: str, limit: int = 5) -> list[str]:
    counts = Counter(significant_words(text))
    # Ties keep first-seen order
    return [word for word, _ in counts.most_common(limit)]


def analyze_content(html: str) -> ContentAnalysis:
    """Compute readability, keyword and engagement metrics for ``html``."""
    root = parse_fragment(html)
    text = block_text(root)
    word_list = words(text)
    sentences = split_sentences(text)
    score = readability_score(text)

    tags = {el.tag for el in root.iter() if isinstance(el.tag, str)}
    has_headings = "h2" in tags or "h3" in tags
    has_emphasis = "strong" in tags or "b" in tags
    has_lists = "ul" in tags or "ol" in tags
    has_quotes = "blockquote" in tags
    paragraphs = [text_of(p) for p in root.iter("p")]

    seo_score = 0
    if "h2" in tags:
        seo_score += 20
    if "h3" in tags:
        seo_score += 10
    if has_emphasis:
        seo_score += 15
    if "em" in tags or "i" in tags:
        seo_score += 10
    if has_lists:
        seo_score += 15
    if has_quotes:
        seo_score += 10
    if len(text) > 500:
        seo_score += 20
    if len(text) > 1000:
        seo_score += 10

    engagement_score = 70
    if has_quotes:
        engagement_score += 10
    if has_emphasis:
        engagement_score += 5
    if has_headings:
        engagement_score += 10
    if has_lists:
        engagement_score += 5

    suggestions = []
    if len(paragraphs) < 3:
        suggestions.append("Consider breaking content into more paragraphs")
    if paragraphs and sum(len(p) for p in paragraphs) / len(paragraphs) > 200:
        suggestions.append("Break up long paragraphs for better readability")
    if not has_headings:
        suggestions.append("Add section headings to improve structure")
    if not has_emphasis:
        suggestions.append("Use bold text to emphasize key points")
    if not has_lists:
        suggestions.append("Consider using lists for better readability")

    return ContentAnalysis(
        readability_score=score,
        readability_level=readability_level(score),
        word_count=len(word_list),
        sentence_count=len(sentences),
        keywords=tuple(top_keywords(text)),
        seo_score=min(100, seo_score),
        engagement_score=min(100, engagement_score),
        suggestions=tuple(suggestions),
    )
