"""Data endpoints.

GET /api/raw-data  - Paginated listing of stored couples.
GET /api/analysis  - Aggregated analysis report (cached for a short TTL).
"""

import logging

from fastapi import APIRouter, Query
from sqlalchemy.exc import SQLAlchemyError

from survey_api.schemas import AnalysisReport, ErrorResponse, RawDataPage
from survey_api.services.couples import DEFAULT_LIMIT, DEFAULT_PAGE, list_couples_page
from survey_api.services.errors import StorageError, storage_details
from survey_api.services.reports import get_analysis_report
from survey_api.stores.postgres import get_session

router = APIRouter()
logger = logging.getLogger("uvicorn.error")


@router.get("/raw-data", response_model=RawDataPage, responses={500: {"model": ErrorResponse}})
async def get_raw_data(
    page: int = Query(default=DEFAULT_PAGE, description="1-based page number"),
    limit: int = Query(default=DEFAULT_LIMIT, description="Rows per page"),
) -> RawDataPage:
    """Get one page of stored couples ordered by couple number."""
    try:
        async with get_session() as session:
            return await list_couples_page(session, page=page, limit=limit)
    except SQLAlchemyError as e:
        logger.exception("Raw data fetch error")
        raise StorageError("Failed to fetch raw data", details=storage_details(e)) from e


@router.get("/analysis", response_model=AnalysisReport, responses={500: {"model": ErrorResponse}})
async def get_analysis() -> AnalysisReport:
    """Get the analysis report for the current survey data."""
    return await get_analysis_report()
