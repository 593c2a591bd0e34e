"""Single-slot cache for the analysis report.

- get(): the cached report while it is younger than the TTL, else None
- put(): overwrite the slot
- invalidate(): clear the slot immediately (called after every successful upload)

Freshness is decided with an injected clock so tests control time. The slot
lives either in process memory or in Redis (shared between workers); there is
exactly one slot, no per-request keys.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from pydantic import ValidationError
from redis.exceptions import RedisError

from survey_api.schemas import AnalysisReport
from survey_api.settings import get_settings
from survey_api.stores.redis import delete_report_payload, get_report_payload, set_report_payload

logger = logging.getLogger("uvicorn.error")

Clock = Callable[[], float]


@dataclass(frozen=True)
class CachedReport:
    generated_at: float
    report: AnalysisReport


class MemoryReportSlot:
    """Process-local slot."""

    def __init__(self) -> None:
        self._entry: CachedReport | None = None

    async def load(self) -> CachedReport | None:
        return self._entry

    async def store(self, entry: CachedReport, ttl: int) -> None:
        self._entry = entry

    async def clear(self) -> None:
        self._entry = None


class RedisReportSlot:
    """Slot stored under one Redis key, expiring after the TTL.

    Reads and writes degrade to a miss when Redis is unavailable; clearing
    propagates errors so a failed invalidation is never silent.
    """

    async def load(self) -> CachedReport | None:
        try:
            payload = await get_report_payload()
        except (RuntimeError, RedisError) as e:
            logger.warning(f"Report cache read failed, treating as miss: {e}")
            return None
        if not payload:
            return None
        return _decode_entry(payload)

    async def store(self, entry: CachedReport, ttl: int) -> None:
        payload: dict[str, Any] = {
            "generatedAt": entry.generated_at,
            "report": entry.report.model_dump(mode="json", by_alias=True),
        }
        try:
            await set_report_payload(payload, ttl=ttl)
        except (RuntimeError, RedisError) as e:
            logger.warning(f"Report cache write failed: {e}")

    async def clear(self) -> None:
        await delete_report_payload()


def _decode_entry(payload: dict[str, Any]) -> CachedReport | None:
    try:
        return CachedReport(
            generated_at=float(payload["generatedAt"]),
            report=AnalysisReport.model_validate(payload["report"]),
        )
    except (KeyError, TypeError, ValueError, ValidationError):
        return None


class ReportCache:
    """Time-boxed memo of the most recent AnalysisReport."""

    def __init__(
        self,
        slot: MemoryReportSlot | RedisReportSlot | None = None,
        ttl_seconds: int = 60,
        clock: Clock = time.time,
    ) -> None:
        self.slot = slot or MemoryReportSlot()
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        # Bumped on every invalidation in this process
        self.generation = 0

    async def get(self) -> AnalysisReport | None:
        """Return the cached report if it is still fresh, else None."""
        entry = await self.slot.load()
        if entry is None:
            return None
        if self.clock() - entry.generated_at >= self.ttl_seconds:
            return None
        return entry.report

    async def put(
        self,
        report: AnalysisReport,
        now: float | None = None,
        *,
        generation: int | None = None,
    ) -> bool:
        """Overwrite the slot with `report` generated at `now` (defaults to the clock).

        When `generation` is given and an invalidation happened since it was
        read, the report was computed from superseded data and is not stored.
        The counter is per process: with the Redis slot, an invalidation in
        another worker is not seen here, and a report computed from the old
        rows can still be stored until the TTL expires it.

        Returns:
            True if the slot was written.
        """
        if generation is not None and generation != self.generation:
            logger.info("Analysis cache put skipped: data changed while computing")
            return False
        generated_at = self.clock() if now is None else now
        await self.slot.store(CachedReport(generated_at=generated_at, report=report), self.ttl_seconds)
        return True

    async def invalidate(self) -> None:
        """Drop the cached report regardless of its age."""
        self.generation += 1
        await self.slot.clear()
        logger.info("Analysis cache invalidated")


@lru_cache
def get_report_cache() -> ReportCache:
    """Get the process-wide report cache configured from settings."""
    settings = get_settings()
    slot = RedisReportSlot() if settings.report_cache_backend == "redis" else MemoryReportSlot()
    return ReportCache(slot=slot, ttl_seconds=settings.report_cache_ttl_seconds)
