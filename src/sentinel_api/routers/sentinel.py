"""Sentinel run control and status endpoints."""

from typing import Annotated

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from sentinel.errors import RunInProgressError
from sentinel.log_buffer import RunLogBuffer
from sentinel.models import RunConfig
from sentinel.sentinel import SentinelService
from sentinel_api.dependencies import get_log_buffer, get_service
from sentinel_api.models import (
    LogEntryResponse,
    LogsResponse,
    ReprocessResponse,
    RunRequest,
    RunSummaryResponse,
    StopResponse,
)

router = APIRouter(prefix="/sentinel", tags=["sentinel"])


@router.get("/status", response_model=RunSummaryResponse)
def get_status(service: Annotated[SentinelService, Depends(get_service)]):
    """Current run, or the last finished one (``never_run`` before the first)."""
    return RunSummaryResponse.model_validate(service.get_status())


@router.post("/run", response_model=RunSummaryResponse)
def run_once(
    service: Annotated[SentinelService, Depends(get_service)],
    request: Annotated[RunRequest | None, Body()] = None,
):
    """Run one ingestion cycle and return its summary.

    Responds 409 when a cycle is already in progress.
    """
    request = request or RunRequest()
    try:
        summary = service.run_once(
            RunConfig(persist_override=request.persist_override, max_items=request.max_items)
        )
    except RunInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return RunSummaryResponse.model_validate(summary)


@router.post("/stop", response_model=StopResponse)
def stop(service: Annotated[SentinelService, Depends(get_service)]):
    """Ask the active cycle to stop after its in-flight items."""
    return StopResponse(stopped=service.request_stop())


@router.get("/logs", response_model=LogsResponse)
def get_logs(
    buffer: Annotated[RunLogBuffer, Depends(get_log_buffer)],
    limit: Annotated[int, Query(ge=1, le=200, description="Max entries")] = 50,
):
    """Most recent sentinel log entries, oldest first."""
    entries = buffer.entries(limit)
    return LogsResponse(
        entries=[LogEntryResponse.model_validate(e) for e in entries],
        total=len(entries),
    )


@router.post("/reprocess", response_model=ReprocessResponse)
def reprocess(service: Annotated[SentinelService, Depends(get_service)]):
    """Re-clean and re-format all stored drafts."""
    try:
        summary = service.reprocess_drafts()
    except RunInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return ReprocessResponse.model_validate(summary)
