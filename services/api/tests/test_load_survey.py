"""Tests for the command-line survey loader."""

import pytest

from scripts import load_survey
from survey_api.services.couples import count_couples
from survey_api.settings import Settings
from survey_api.stores import postgres


def test_memory_backend_is_refused_without_opt_in(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("ALLOW_STALE_REPORT", raising=False)
    problem = load_survey.report_cache_problem(Settings(report_cache_backend="memory"))
    assert problem is not None
    assert "ALLOW_STALE_REPORT" in problem


def test_memory_backend_allowed_with_opt_in(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ALLOW_STALE_REPORT", "1")
    assert load_survey.report_cache_problem(Settings(report_cache_backend="memory")) is None


def test_redis_backend_needs_no_opt_in(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("ALLOW_STALE_REPORT", raising=False)
    assert load_survey.report_cache_problem(Settings(report_cache_backend="redis")) is None


@pytest.mark.asyncio
async def test_memory_backend_exits_before_touching_the_store(tmp_path, monkeypatch: pytest.MonkeyPatch, capsys):
    path = tmp_path / "survey.xlsx"
    path.write_bytes(b"")
    monkeypatch.setenv("SURVEY_FILE", str(path))
    monkeypatch.delenv("ALLOW_STALE_REPORT", raising=False)
    monkeypatch.setattr(load_survey, "get_settings", lambda: Settings(report_cache_backend="memory"))

    async def unexpected_init_db() -> None:
        raise AssertionError("database must not be opened")

    monkeypatch.setattr(load_survey, "init_db", unexpected_init_db)

    assert await load_survey.main() == 2
    assert "REPORT_CACHE_BACKEND=memory" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_redis_backend_connects_around_the_load(tmp_path, make_workbook, monkeypatch: pytest.MonkeyPatch):
    path = tmp_path / "survey.xlsx"
    path.write_bytes(make_workbook([(1, 30, 30, 5, "Beach"), (2, 60, 58, 35, "Cruise")]))
    monkeypatch.setenv("SURVEY_FILE", str(path))
    monkeypatch.setenv("CREATE_TABLES", "1")
    monkeypatch.setattr(load_survey, "get_settings", lambda: Settings(report_cache_backend="redis"))

    calls: list[str] = []

    async def sqlite_init_db() -> None:
        await postgres.init_db(f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}")

    async def fake_init_redis() -> None:
        calls.append("init_redis")

    async def fake_close_redis() -> None:
        calls.append("close_redis")

    async def keep_db_open() -> None:
        calls.append("close_db")

    monkeypatch.setattr(load_survey, "init_db", sqlite_init_db)
    monkeypatch.setattr(load_survey, "init_redis", fake_init_redis)
    monkeypatch.setattr(load_survey, "close_redis", fake_close_redis)
    monkeypatch.setattr(load_survey, "close_db", keep_db_open)

    try:
        assert await load_survey.main() == 0
        assert calls == ["init_redis", "close_redis", "close_db"]
        async with postgres.get_session() as session:
            assert await count_couples(session) == 2
    finally:
        await postgres.close_db()
