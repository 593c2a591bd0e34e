"""Common schemas used across the API."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format.

    Format: { "error": str, "details": str | None }
    """

    error: str
    details: str | None = None


class UploadErrorResponse(BaseModel):
    """Rejected upload: message plus the missing headers / row problems, if any."""

    error: str
    missing: list[str] | None = None
    problems: list[str] | None = None
