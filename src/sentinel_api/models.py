"""Pydantic request and response models for the admin API."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from sentinel.models import RunState


class RunRequest(BaseModel):
    """Body of POST /sentinel/run."""

    persist_override: bool | None = Field(
        default=None,
        validation_alias=AliasChoices("persist_override", "persistOverride"),
        description="True writes drafts, False previews only, null uses the configured default.",
    )
    max_items: int | None = Field(default=None, ge=1)


class RunSummaryResponse(BaseModel):
    """Snapshot of a sentinel run."""

    model_config = ConfigDict(from_attributes=True)

    run_id: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    items_fetched: int = 0
    items_filtered: int = 0
    items_accepted: int = 0
    items_duplicate: int = 0
    items_failed: int = 0
    last_error: str | None = None
    state: RunState = RunState.NEVER_RUN
    persisted: bool = False
    previews: list[str] = []
    trigger: str = "manual"
    in_progress: bool = False


class StopResponse(BaseModel):
    stopped: bool


class LogEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    timestamp: datetime
    level: str
    logger: str
    message: str


class LogsResponse(BaseModel):
    entries: list[LogEntryResponse]
    total: int


class ReprocessResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    drafts_seen: int
    drafts_updated: int
    drafts_failed: int
    last_error: str | None = None


class SignatureStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    signature: str
    count: int
    proportion: float
    sample_ids: list[str]


class DataQualityResponse(BaseModel):
    """Defect signature counts over stored drafts."""

    model_config = ConfigDict(from_attributes=True)

    generated_at: datetime
    total_drafts: int
    affected_drafts: int
    clean_proportion: float
    signatures: dict[str, SignatureStatsResponse]


class HealthResponse(BaseModel):
    status: str
    run_in_progress: bool
    last_run_state: RunState
