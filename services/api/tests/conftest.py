"""Shared fixtures: SQLite database per test, in-memory report cache, HTTP client."""

import os

# Settings are read once at import time of the app; keep tests off Postgres/Redis.
os.environ.setdefault("REPORT_CACHE_BACKEND", "memory")
os.environ.setdefault("DB_CREATE_TABLES", "false")

from collections.abc import Callable, Sequence  # noqa: E402
from io import BytesIO  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from openpyxl import Workbook  # noqa: E402

from survey_api.main import app  # noqa: E402
from survey_api.services.report_cache import get_report_cache  # noqa: E402
from survey_api.stores.postgres import close_db, create_tables, init_db  # noqa: E402

HEADERS = ["Couple No", "Men Age", "Women Age", "Marriage Duration", "Travel Plan"]

WorkbookFactory = Callable[..., bytes]


def build_workbook(rows: Sequence[Sequence[Any]], headers: Sequence[Any] = HEADERS) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(list(headers))
    for row in rows:
        sheet.append(list(row))
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def make_workbook() -> WorkbookFactory:
    """Factory building .xlsx bytes from a header row and data rows."""
    return build_workbook


@pytest.fixture
async def db(tmp_path):
    """Fresh SQLite database with the couples table."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'survey.db'}")
    await create_tables()
    yield
    await close_db()


@pytest.fixture
async def report_cache():
    """The process-wide report cache, emptied before and after the test."""
    cache = get_report_cache()
    await cache.invalidate()
    yield cache
    await cache.invalidate()


@pytest.fixture
async def client(db, report_cache):
    """Create test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
