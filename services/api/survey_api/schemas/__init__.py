"""Pydantic schemas for API request/response validation."""

from survey_api.schemas.analysis import (
    NOT_AVAILABLE,
    AgeGroupShare,
    AnalysisReport,
    CohortAnalysis,
    PlanCount,
    PlanShare,
    ReportSummary,
)
from survey_api.schemas.common import ErrorResponse, UploadErrorResponse
from survey_api.schemas.couples import CoupleRow, RawCoupleRow, RawDataPage, UploadResponse

__all__ = [
    "NOT_AVAILABLE",
    "AgeGroupShare",
    "AnalysisReport",
    "CohortAnalysis",
    "CoupleRow",
    "ErrorResponse",
    "PlanCount",
    "PlanShare",
    "RawCoupleRow",
    "RawDataPage",
    "ReportSummary",
    "UploadErrorResponse",
    "UploadResponse",
]
