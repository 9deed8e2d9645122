import logging
from dataclasses import dataclass
from typing import Optional

import requests
import trafilatura
from readability import Document

from ingest_articles.fetch_articles.fetch_rss_articles import USER_AGENT

logger = logging.getLogger(__name__)


@dataclass
class ResolvedPage:
    """Article page reduced to its title and main-content markup."""
    url: str
    title: Optional[str]
    html: str
    page_html: str


def fetch_article_html(url: str, timeout: float = 10) -> Optional[ResolvedPage]:
    """
    Fetch an article page and extract its main content.

    Order:
    1. readability-lxml (keeps paragraph markup)
    2. trafilatura (plain text, paragraphs separated by blank lines)

    Each tried once. If both fail -> returns None.
    """
    try:
        response = requests.get(
            url,
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
        )
        response.raise_for_status()
    except requests.RequestException as e:
        logger.warning("Failed to download %s: %s", url, e)
        return None

    page_html = response.text

    # 1. Try readability
    try:
        doc = Document(page_html)
        summary_html = doc.summary(html_partial=True)
        if summary_html and summary_html.strip():
            return ResolvedPage(url=url, title=doc.short_title() or None, html=summary_html, page_html=page_html)
    except Exception as e:
        logger.warning("readability failed for %s: %s", url, e)

    # 2. Fallback to trafilatura
    try:
        text = trafilatura.extract(page_html, url=url)
        if text:
            lines = [line.strip() for line in text.splitlines() if line.strip()]
            metadata = trafilatura.extract_metadata(page_html)
            title = metadata.title if metadata is not None else None
            return ResolvedPage(url=url, title=title, html="\n\n".join(lines), page_html=page_html)
    except Exception as e:
        logger.warning("trafilatura failed for %s: %s", url, e)

    # Both methods failed
    return None
