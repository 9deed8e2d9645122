"""Core fetch logic: poll every feed and collect candidate items."""

import logging
from dataclasses import replace
from datetime import datetime

from clean_content.clean import clean_text
from ingest_articles.fetch_articles.fetch_article_text import fetch_article_html
from ingest_articles.fetch_articles.fetch_rss_articles import fetch_rss_articles
from ingest_articles.fetch_articles.thumbnails import find_page_image
from ingest_articles.models import CandidateItem, SourceFeed

logger = logging.getLogger(__name__)


class SourceFetchError(Exception):
    """Raised when no source could be fetched at all."""


def fetch_candidates(
    sources: list[SourceFeed],
    since: datetime | None = None,
    timeout: float = 30,
    resolve_short_bodies: bool = False,
    min_body_chars: int = 200,
) -> list[CandidateItem]:
    """Fetch candidate items from all enabled sources.

    A failing source is logged and skipped.

    Raises:
        SourceFetchError: If every enabled source failed.
    """
    candidates = []
    failures = []
    enabled = [s for s in sources if s.enabled]

    for source in enabled:
        logger.info("Fetching articles from %s", source.name)

        try:
            items = list(fetch_rss_articles(source, since, timeout=timeout))
            logger.info("Found %d articles from %s", len(items), source.name)
        except Exception as e:
            logger.error("Failed to fetch RSS from %s: %s", source.name, e)
            failures.append(f"{source.name}: {e}")
            continue

        for item in items:
            if resolve_short_bodies and len(clean_text(item.raw_body) or "") < min_body_chars:
                item = resolve_item(item, timeout=timeout)
            candidates.append(item)

    if enabled and len(failures) == len(enabled):
        raise SourceFetchError("All sources failed: " + "; ".join(failures))

    logger.info("Total candidates collected: %d", len(candidates))
    return candidates


def resolve_item(item: CandidateItem, timeout: float = 10) -> CandidateItem:
    """Replace a teaser body with the article page's main content."""
    page = fetch_article_html(item.source_url, timeout=timeout)
    if page is None:
        return item

    return replace(
        item,
        raw_body=page.html,
        thumbnail_url=item.thumbnail_url or find_page_image(page.page_html, item.source_url),
    )
