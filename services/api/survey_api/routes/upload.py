"""Upload endpoint.

POST /upload - Replace the stored survey with an uploaded Excel workbook.

Routers are thin: call services for business logic.
"""

from fastapi import APIRouter, File, UploadFile

from survey_api.schemas import ErrorResponse, UploadErrorResponse, UploadResponse
from survey_api.services.errors import UploadTooLargeError, UploadValidationError
from survey_api.services.ingestion import ingest_survey_file
from survey_api.settings import get_settings

router = APIRouter()


async def _read_capped(upload: UploadFile, limit_bytes: int) -> bytes:
    """Read the upload, refusing anything larger than `limit_bytes`.

    Requests whose Content-Length is already over the cap are refused by the
    size guard in main.py before the body is parsed; this catches chunked
    bodies and file parts that only turn out to be too large.
    """
    content = await upload.read(limit_bytes + 1)
    if len(content) > limit_bytes:
        raise UploadTooLargeError(limit_bytes)
    return content


@router.post(
    "",
    response_model=UploadResponse,
    responses={
        400: {"model": UploadErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def upload_survey(
    survey_file: UploadFile | None = File(default=None, alias="surveyFile"),
) -> UploadResponse:
    """Validate the workbook and atomically replace all stored couples.

    Returns:
        UploadResponse with the number of loaded records.
    """
    if survey_file is None or not survey_file.filename:
        raise UploadValidationError("No file uploaded")

    settings = get_settings()
    try:
        content = await _read_capped(survey_file, settings.max_upload_bytes)
    finally:
        await survey_file.close()

    stats = await ingest_survey_file(content, survey_file.filename)

    return UploadResponse(
        success=True,
        message=f"Successfully processed {stats.inserted_rows} records.",
        count=stats.inserted_rows,
    )
