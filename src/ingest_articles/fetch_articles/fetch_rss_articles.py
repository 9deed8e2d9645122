"""RSS feed fetching."""

import logging
from datetime import datetime, timezone, timedelta
from typing import Iterable, Optional

import feedparser
import requests
from dateutil.parser import parse as parse_date

from common.datetime import utc_now
from common.html import parse_fragment
from ingest_articles.models import CandidateItem, SourceFeed

logger = logging.getLogger(__name__)

USER_AGENT = "news-sentinel/1.0 (RSS reader)"

# Timezone abbreviations for date parsing
TZINFOS = {
    "EST": timezone(timedelta(hours=-5)),
    "EDT": timezone(timedelta(hours=-4)),
    "CST": timezone(timedelta(hours=-6)),
    "CDT": timezone(timedelta(hours=-5)),
    "MST": timezone(timedelta(hours=-7)),
    "MDT": timezone(timedelta(hours=-6)),
    "PST": timezone(timedelta(hours=-8)),
    "PDT": timezone(timedelta(hours=-7)),
    "GMT": timezone.utc,
    "UTC": timezone.utc,
    "BST": timezone(timedelta(hours=1)),
    "ICT": timezone(timedelta(hours=7)),
}


def fetch_rss_articles(
    source: SourceFeed,
    since: Optional[datetime] = None,
    timeout: float = 30,
) -> Iterable[CandidateItem]:
    """Fetch candidate items from a source's RSS feed published after `since`.

    Raises:
        requests.RequestException: If the feed cannot be downloaded.
    """
    if since is not None and since.tzinfo is None:
        since = since.replace(tzinfo=timezone.utc)

    response = requests.get(
        source.url,
        timeout=timeout,
        headers={"User-Agent": USER_AGENT},
    )
    response.raise_for_status()

    yield from parse_feed(response.content, source.name, since)


def parse_feed(
    content: bytes | str, source_name: str, since: Optional[datetime] = None
) -> Iterable[CandidateItem]:
    """Parse feed content into candidate items, skipping repeated links."""
    feed = feedparser.parse(content)
    fetched_at = utc_now()
    seen_urls: set[str] = set()

    for entry in feed.entries:
        try:
            item = _parse_entry(entry, source_name, since, seen_urls, fetched_at)
            if item is not None:
                yield item
        except Exception as e:
            logger.warning("Failed to parse entry from %s: %s", source_name, e)
            continue


def feed_title(content: bytes | str) -> Optional[str]:
    return feedparser.parse(content).feed.get("title")


def _parse_entry(
    entry, source_name: str, since: Optional[datetime], seen_urls: set, fetched_at: datetime
) -> CandidateItem | None:
    """Parse a single RSS entry into a CandidateItem."""
    url = entry.get("link")
    if not url or url in seen_urls:
        return None

    published_at = _parse_published_date(entry)
    if since is not None and published_at is not None and published_at <= since:
        return None

    title = entry.get("title", "").strip()
    if not title:
        return None

    body = _entry_body(entry)
    seen_urls.add(url)

    return CandidateItem(
        source_url=url,
        source_name=source_name,
        raw_title=title,
        raw_body=body,
        fetched_at=fetched_at,
        thumbnail_url=_entry_thumbnail(entry, body),
        published_at=published_at,
        guid=entry.get("id") or url,
    )


def _entry_body(entry) -> str:
    """Prefer full content:encoded markup over the summary."""
    for content in entry.get("content") or []:
        value = content.get("value")
        if value and value.strip():
            return value.strip()
    return entry.get("summary", "").strip()


def _entry_thumbnail(entry, body: str) -> Optional[str]:
    for media in (entry.get("media_content") or []) + (entry.get("media_thumbnail") or []):
        url = media.get("url")
        medium = media.get("medium") or media.get("type") or "image"
        if url and "image" in medium:
            return url

    for link in entry.get("links") or []:
        if link.get("rel") == "enclosure" and (link.get("type") or "").startswith("image/"):
            return link.get("href")

    if body and "<img" in body:
        img = parse_fragment(body).find(".//img")
        if img is not None and img.get("src"):
            return img.get("src")
    return None


def _parse_published_date(entry) -> datetime | None:
    """Extract and parse the published date from an RSS entry."""
    published = entry.get("published") or entry.get("updated")
    if not published:
        return None

    try:
        dt = parse_date(published, tzinfos=TZINFOS)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    except (ValueError, OverflowError):
        return None
