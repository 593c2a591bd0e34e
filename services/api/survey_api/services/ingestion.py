"""Ingestion service: workbook bytes -> validated rows -> couples table.

Flow:
1. Parse and validate the workbook (no DB access; any problem rejects the upload)
2. In ONE transaction: delete every stored couple, bulk insert the new rows
3. After commit: invalidate the analysis cache, then report the row count

A failure in step 2 rolls back both statements, so readers only ever see the
previous complete set or the new complete set. A failure in step 3 is logged
and reported in the stats; the upload still succeeds because the store
already holds the new rows.
"""

import logging
from dataclasses import dataclass

from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from survey_api.services.couples import replace_all_couples
from survey_api.services.errors import StorageError, storage_details
from survey_api.services.report_cache import ReportCache, get_report_cache
from survey_api.services.spreadsheet import parse_survey_workbook
from survey_api.stores.postgres import get_session

logger = logging.getLogger("uvicorn.error")


@dataclass
class IngestionStats:
    """Statistics from an upload."""

    filename: str | None
    parsed_rows: int
    inserted_rows: int
    cache_invalidated: bool = True


async def ingest_survey_file(
    content: bytes,
    filename: str | None,
    cache: ReportCache | None = None,
) -> IngestionStats:
    """Replace the stored couples with the contents of an uploaded workbook.

    Args:
        content: Raw workbook bytes.
        filename: Client-declared file name.
        cache: Report cache to invalidate (defaults to the process-wide one).

    Returns:
        IngestionStats with the number of inserted rows.

    Raises:
        UploadValidationError: The workbook was rejected; nothing was written.
        StorageError: The transaction failed and was rolled back.
    """
    logger.info(f"Processing file: {filename}")
    rows = parse_survey_workbook(content, filename)

    try:
        async with get_session() as session:
            inserted = await replace_all_couples(session, rows)
    except SQLAlchemyError as e:
        logger.exception("Upload processing error, transaction rolled back")
        raise StorageError(
            "Processing failed due to an internal error.",
            details=storage_details(e),
        ) from e

    logger.info(f"Replaced couples table with {inserted} rows")

    # The new rows are committed at this point; a cache failure must not
    # turn the upload into an error.
    cache_invalidated = True
    try:
        await (cache or get_report_cache()).invalidate()
    except (RedisError, RuntimeError, OSError):
        logger.exception("Analysis cache invalidation failed after commit; report may be stale until TTL")
        cache_invalidated = False

    return IngestionStats(
        filename=filename,
        parsed_rows=len(rows),
        inserted_rows=inserted,
        cache_invalidated=cache_invalidated,
    )
