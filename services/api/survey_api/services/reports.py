"""Analysis report service: cache lookup, then aggregation on a miss."""

import logging

from sqlalchemy.exc import SQLAlchemyError

from survey_api.schemas import AnalysisReport
from survey_api.services.aggregation import build_report
from survey_api.services.couples import fetch_all_facts
from survey_api.services.errors import StorageError, storage_details
from survey_api.services.report_cache import ReportCache, get_report_cache
from survey_api.stores.postgres import get_session

logger = logging.getLogger("uvicorn.error")


async def get_analysis_report(cache: ReportCache | None = None) -> AnalysisReport:
    """Get the analysis report, serving the cached snapshot while it is fresh.

    Raises:
        StorageError: The couples could not be read.
    """
    cache = cache or get_report_cache()

    cached = await cache.get()
    if cached is not None:
        logger.info("Returning cached analysis data")
        return cached

    generation = cache.generation
    try:
        async with get_session() as session:
            couples = await fetch_all_facts(session)
    except SQLAlchemyError as e:
        logger.exception("Analysis data fetch error")
        raise StorageError("Failed to fetch analysis data", details=storage_details(e)) from e

    report = build_report(couples)
    if await cache.put(report, generation=generation):
        logger.info(f"Analysis data cached ({report.total_couples} couples)")
    return report
