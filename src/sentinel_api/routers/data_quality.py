"""Data-quality endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends

from data_quality.data_quality import get_data_quality
from sentinel.sentinel import SentinelService
from sentinel_api.dependencies import get_service
from sentinel_api.models import DataQualityResponse, SignatureStatsResponse

router = APIRouter(prefix="/data-quality", tags=["data-quality"])


@router.get("", response_model=DataQualityResponse)
def data_quality(service: Annotated[SentinelService, Depends(get_service)]):
    """Proportion of stored drafts showing each known defect signature."""
    report = get_data_quality(service.store)
    return DataQualityResponse(
        generated_at=report.generated_at,
        total_drafts=report.total_drafts,
        affected_drafts=report.affected_drafts,
        clean_proportion=report.clean_proportion,
        signatures={
            name: SignatureStatsResponse.model_validate(stats)
            for name, stats in report.signatures.items()
        },
    )
