"""Data models for the ingest_articles pipeline stage."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class SourceFeed:
    """An RSS feed the fetcher polls."""
    name: str
    url: str
    enabled: bool = True


@dataclass
class CandidateItem:
    """Raw news item parsed from a feed entry, consumed once per cycle."""
    source_url: str
    source_name: str
    raw_title: str
    raw_body: str
    fetched_at: datetime
    thumbnail_url: Optional[str] = None
    published_at: Optional[datetime] = None
    guid: Optional[str] = None
