"""Health check endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends

from sentinel.sentinel import SentinelService
from sentinel_api.dependencies import get_service
from sentinel_api.models import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health(service: Annotated[SentinelService, Depends(get_service)]):
    status = service.get_status()
    return HealthResponse(
        status="ok",
        run_in_progress=service.is_running,
        last_run_state=status.state,
    )
