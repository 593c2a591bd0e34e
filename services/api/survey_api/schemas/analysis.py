"""Schemas for the analysis report endpoint (/api/analysis)."""

from datetime import datetime

from pydantic import BaseModel, Field

# Placeholder for values that cannot be computed (empty cohort, empty list)
NOT_AVAILABLE = "N/A"


class AgeGroupShare(BaseModel):
    """One average-age bucket of the age distribution."""

    age_group: str
    count: int = Field(ge=0)
    percentage: float = Field(ge=0, le=100)

    model_config = {"frozen": True}


class PlanCount(BaseModel):
    """Travel plan with its number of couples."""

    travel_plan: str
    count: int = Field(ge=0)

    model_config = {"frozen": True}


class PlanShare(BaseModel):
    """Travel plan with its count and share of a cohort."""

    travel_plan: str
    count: int = Field(ge=0)
    percentage: float = Field(ge=0, le=100)

    model_config = {"frozen": True}


class CohortAnalysis(BaseModel):
    """Statistics for one cohort (older, younger, short or long marriage)."""

    count: int = Field(ge=0)
    avg_marriage_duration: float | str = Field(alias="avgMarriageDuration")
    preferences: list[PlanShare] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "frozen": True}


class ReportSummary(BaseModel):
    """Headline answers derived from the breakdowns."""

    older_favorite: str = Field(alias="olderFavorite", default=NOT_AVAILABLE)
    younger_favorite: str = Field(alias="youngerFavorite", default=NOT_AVAILABLE)
    all_disliked: str = Field(alias="allDisliked", default=NOT_AVAILABLE)

    model_config = {"populate_by_name": True, "frozen": True}


class AnalysisReport(BaseModel):
    """Response payload for GET /api/analysis.

    Immutable snapshot of the whole couples table at `lastUpdated`.
    """

    total_couples: int = Field(alias="totalCouples", ge=0)
    total_plans: int = Field(alias="totalPlans", ge=0)
    last_updated: datetime = Field(alias="lastUpdated")
    age_distribution: list[AgeGroupShare] = Field(alias="ageDistribution")
    older_couples_analysis: CohortAnalysis = Field(alias="olderCouplesAnalysis")
    younger_couples_analysis: CohortAnalysis = Field(alias="youngerCouplesAnalysis")
    short_marriage_analysis: CohortAnalysis = Field(alias="shortMarriageAnalysis")
    long_marriage_analysis: CohortAnalysis = Field(alias="longMarriageAnalysis")
    all_plans_popularity: list[PlanCount] = Field(alias="allPlansPopularity")
    disliked_plans: list[PlanCount] = Field(alias="dislikedPlans", max_length=5)
    summary: ReportSummary

    model_config = {"populate_by_name": True, "frozen": True}
