"""Tests for the ingestion service against a SQLite database."""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import select

from survey_api.models import Couple
from survey_api.services.errors import StorageError, UploadValidationError
from survey_api.services.ingestion import ingest_survey_file
from survey_api.services import report_cache as report_cache_module
from survey_api.services.report_cache import RedisReportSlot, ReportCache
from survey_api.services.reports import get_analysis_report
from survey_api.stores.postgres import get_session


async def _stored() -> list[Couple]:
    async with get_session() as session:
        result = await session.execute(select(Couple).order_by(Couple.couple_no))
        return list(result.scalars().all())


@pytest.mark.asyncio
async def test_ingest_computes_avg_age(db, make_workbook):
    stats = await ingest_survey_file(make_workbook([(7, 52, 51, 20, "Beach")]), "survey.xlsx", cache=ReportCache())
    assert stats.inserted_rows == 1

    (stored,) = await _stored()
    assert stored.couple_no == 7
    assert stored.avg_age == pytest.approx(51.5)
    assert stored.travel_plan == "Beach"
    assert stored.created_at is not None


@pytest.mark.asyncio
async def test_ingest_replaces_previous_batch(db, make_workbook):
    cache = ReportCache()
    await ingest_survey_file(make_workbook([(1, 30, 30, 5, "Beach"), (2, 40, 40, 15, "Cruise")]), "a.xlsx", cache=cache)
    await ingest_survey_file(
        make_workbook([(10, 25, 25, 1, "Hiking"), (11, 26, 26, 2, "Hiking"), (12, 60, 60, 30, "Cruise")]),
        "b.xlsx",
        cache=cache,
    )
    assert [c.couple_no for c in await _stored()] == [10, 11, 12]


@pytest.mark.asyncio
async def test_duplicate_couple_no_rolls_back(db, make_workbook):
    cache = ReportCache()
    await ingest_survey_file(make_workbook([(1, 30, 30, 5, "Beach")]), "a.xlsx", cache=cache)

    with pytest.raises(StorageError) as exc_info:
        await ingest_survey_file(
            make_workbook([(5, 30, 30, 5, "Beach"), (5, 41, 40, 12, "Cruise")]),
            "dup.xlsx",
            cache=cache,
        )
    assert exc_info.value.details

    # Delete and insert were undone together
    assert [c.couple_no for c in await _stored()] == [1]


@pytest.mark.asyncio
async def test_rejected_workbook_leaves_store_and_cache_untouched(db, make_workbook):
    cache = ReportCache()
    await ingest_survey_file(make_workbook([(1, 30, 30, 5, "Beach")]), "a.xlsx", cache=cache)
    report = await get_analysis_report(cache=cache)

    bad = make_workbook([(2, 30, 30, 5)], headers=["Couple No", "Men Age", "Women Age", "Marriage Duration"])
    with pytest.raises(UploadValidationError) as exc_info:
        await ingest_survey_file(bad, "bad.xlsx", cache=cache)
    assert exc_info.value.missing == ["Travel Plan"]

    assert [c.couple_no for c in await _stored()] == [1]
    assert await cache.get() is report


@pytest.mark.asyncio
async def test_successful_ingest_invalidates_cache(db, make_workbook):
    cache = ReportCache()
    await ingest_survey_file(make_workbook([(1, 30, 30, 5, "Beach")]), "a.xlsx", cache=cache)
    first = await get_analysis_report(cache=cache)
    assert first.total_couples == 1

    await ingest_survey_file(make_workbook([(1, 30, 30, 5, "Beach"), (2, 60, 60, 40, "Cruise")]), "b.xlsx", cache=cache)
    assert await cache.get() is None

    second = await get_analysis_report(cache=cache)
    assert second.total_couples == 2
    assert second.summary.older_favorite == "Cruise"


@pytest.mark.asyncio
async def test_cache_failure_after_commit_keeps_upload_successful(db, make_workbook, monkeypatch: pytest.MonkeyPatch):
    async def redis_down(name: str = "analysis") -> None:
        raise ConnectionError("redis down")

    monkeypatch.setattr(report_cache_module, "delete_report_payload", redis_down)

    stats = await ingest_survey_file(
        make_workbook([(1, 30, 30, 5, "Beach")]),
        "a.xlsx",
        cache=ReportCache(slot=RedisReportSlot()),
    )

    assert stats.inserted_rows == 1
    assert stats.cache_invalidated is False
    assert [c.couple_no for c in await _stored()] == [1]


@pytest.mark.asyncio
async def test_redis_error_during_invalidation_is_logged_not_raised(db, make_workbook, monkeypatch: pytest.MonkeyPatch):
    async def redis_down(name: str = "analysis") -> None:
        raise RedisConnectionError("Connection refused")

    monkeypatch.setattr(report_cache_module, "delete_report_payload", redis_down)

    stats = await ingest_survey_file(
        make_workbook([(3, 30, 30, 5, "Beach")]),
        "a.xlsx",
        cache=ReportCache(slot=RedisReportSlot()),
    )
    assert stats.cache_invalidated is False
