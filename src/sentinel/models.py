"""Data models for the sentinel orchestrator."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from ingest_articles.models import SourceFeed


class DraftStatus(str, Enum):
    DRAFT = "draft"
    DUPLICATE_REJECTED = "duplicate-rejected"
    FAILED = "failed"


class RunState(str, Enum):
    NEVER_RUN = "never_run"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class LocalizedText:
    """Text in the primary (en) and secondary (km) language."""
    en: str = ""
    km: str = ""


@dataclass
class DraftSource:
    name: str
    url: str
    published_at: Optional[datetime] = None
    guid: Optional[str] = None


@dataclass
class IngestionInfo:
    run_id: str
    fetched_at: datetime
    formatter_stages_applied: list[str] = field(default_factory=list)
    method: str = "sentinel"


@dataclass
class NewsDraft:
    """Draft article produced by an ingestion cycle."""
    title: LocalizedText
    content: LocalizedText
    source: DraftSource
    ingestion: IngestionInfo
    thumbnail: Optional[str] = None
    status: DraftStatus = DraftStatus.DRAFT
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class RunSummary:
    """Totals of one ingestion cycle. Instances handed out are snapshots."""
    run_id: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    items_fetched: int = 0
    items_filtered: int = 0
    items_accepted: int = 0
    items_duplicate: int = 0
    items_failed: int = 0
    last_error: Optional[str] = None
    state: RunState = RunState.NEVER_RUN
    persisted: bool = False
    previews: tuple[str, ...] = ()
    trigger: str = "manual"

    @property
    def in_progress(self) -> bool:
        return self.state == RunState.RUNNING


@dataclass
class RunConfig:
    """Per-call options for ``SentinelService.run_once``.

    ``persist_override``: True writes accepted drafts, False only previews
    them, None defers to the configured ``auto_persist``.
    """
    persist_override: Optional[bool] = None
    trigger: str = "manual"
    sources: Optional[list[SourceFeed]] = None
    max_items: Optional[int] = None


@dataclass
class ReprocessSummary:
    drafts_seen: int = 0
    drafts_updated: int = 0
    drafts_failed: int = 0
    last_error: Optional[str] = None


@dataclass
class ImportResult:
    success: bool
    message: str = ""
    draft_id: Optional[str] = None
    preview: Optional[NewsDraft] = None
    duplicate: bool = False
