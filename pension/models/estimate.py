from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from pension.models.enums import EstimateType, PlanOutcome
from pension.models.scheme import SchemeRecord
from pension.models.user_profile import UserProfile


class PensionRange(BaseModel):
    min: int
    max: int


class PensionEstimate(BaseModel):
    """Projected payout for one scheme, computed fresh per request."""

    type: EstimateType
    monthly_pension: float = 0
    annual_pension: float = 0
    lump_sum_corpus: int | None = None
    annuity_corpus: int | None = None
    range: PensionRange | None = None
    calculation: str


class EligibilityFlags(BaseModel):
    age_eligible: bool = True
    income_eligible: bool = True
    sector_eligible: bool = True


class ScoredScheme(SchemeRecord):
    """A scheme record annotated for one request/response cycle."""

    relevance_score: int = Field(default=0, ge=0)
    recommendation: str | None = None
    eligibility: EligibilityFlags | None = None
    pension_calculation: PensionEstimate | None = None

    @classmethod
    def from_record(cls, record: SchemeRecord, **annotations: object) -> ScoredScheme:
        if isinstance(record, ScoredScheme):
            return record.model_copy(update=annotations)
        return cls(**record.model_dump(), **annotations)


class InsightSummary(BaseModel):
    total_monthly_pension: float = 0
    total_annual_pension: float = 0
    replacement_ratio: float | None = None  # None when salary is zero
    recommended_schemes: list[str] = Field(default_factory=list)
    tips: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class PlanResult(BaseModel):
    """Outcome of one planning pass over the dataset."""

    outcome: PlanOutcome
    countries: list[str] = Field(default_factory=list)
    profile: UserProfile | None = None
    schemes: list[ScoredScheme] = Field(default_factory=list)
    insights: InsightSummary | None = None
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def found(self) -> bool:
        return self.outcome == PlanOutcome.OK
