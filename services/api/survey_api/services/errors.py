"""Errors raised by services and mapped to HTTP responses in main.py."""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError


class UploadValidationError(ValueError):
    """The uploaded spreadsheet was rejected before touching the store (HTTP 400)."""

    def __init__(
        self,
        message: str,
        *,
        missing: list[str] | None = None,
        problems: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.missing = missing
        self.problems = problems


class UploadTooLargeError(ValueError):
    """The upload exceeded the configured size cap (HTTP 413)."""

    def __init__(self, limit_bytes: int) -> None:
        mb = limit_bytes / (1024 * 1024)
        super().__init__(f"File too large. Maximum size is {mb:g}MB.")
        self.limit_bytes = limit_bytes


class StorageError(RuntimeError):
    """The database failed; any transaction in flight was rolled back (HTTP 500)."""

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


def storage_details(error: SQLAlchemyError) -> str:
    """Driver-level message of a database error, without the SQL statement."""
    orig = getattr(error, "orig", None)
    return str(orig) if orig is not None else str(error)
