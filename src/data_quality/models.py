"""Data models for the data_quality report."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class SignatureStats:
    """How many drafts show one defect signature."""
    signature: str
    count: int = 0
    proportion: float = 0.0
    sample_ids: list[str] = field(default_factory=list)


@dataclass
class DataQualityReport:
    generated_at: datetime
    total_drafts: int
    affected_drafts: int
    signatures: dict[str, SignatureStats] = field(default_factory=dict)

    @property
    def clean_proportion(self) -> float:
        if not self.total_drafts:
            return 1.0
        return round(1 - self.affected_drafts / self.total_drafts, 4)
