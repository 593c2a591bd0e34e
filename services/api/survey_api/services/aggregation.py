"""Aggregation engine for the analysis report.

Every breakdown is an independent function over the same list of
CoupleFacts; build_report() assembles them into an AnalysisReport.

Ordering rules:
1. Preferences and popularity: count DESC, then plan label ASC
2. Disliked plans: count ASC, then plan label ASC (at most 5)
3. Age buckets: ascending minimum average age, always all four

Percentages and averages are rounded to 1 decimal, half away from zero.
Cohorts are evaluated independently over the full set, so one couple can
appear in several of them (e.g. older and short-marriage).
"""

from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from survey_api.schemas import (
    NOT_AVAILABLE,
    AgeGroupShare,
    AnalysisReport,
    CohortAnalysis,
    PlanCount,
    PlanShare,
    ReportSummary,
)

DISLIKED_LIMIT = 5


@dataclass(frozen=True)
class CoupleFacts:
    """Stored couple fields the aggregation engine reads."""

    men_age: int
    women_age: int
    marriage_duration: int
    travel_plan: str
    avg_age: float


@dataclass(frozen=True)
class AgeBucket:
    """Half-open average-age interval [lower, upper)."""

    label: str
    lower: float | None
    upper: float | None

    def contains(self, avg_age: float) -> bool:
        if self.lower is not None and avg_age < self.lower:
            return False
        if self.upper is not None and avg_age >= self.upper:
            return False
        return True


AGE_BUCKETS = (
    AgeBucket("Under 25", None, 25),
    AgeBucket("25-34", 25, 35),
    AgeBucket("35-49", 35, 50),
    AgeBucket("50+", 50, None),
)


@dataclass(frozen=True)
class Cohort:
    """Named couple filter used for a separate preference breakdown."""

    name: str
    predicate: Callable[[CoupleFacts], bool]

    def select(self, couples: Iterable[CoupleFacts]) -> list[CoupleFacts]:
        return [c for c in couples if self.predicate(c)]


OLDER = Cohort("older", lambda c: c.men_age >= 50 and c.women_age >= 50)
YOUNGER = Cohort("younger", lambda c: c.men_age < 35 and c.women_age < 35)
SHORT_MARRIAGE = Cohort("short_marriage", lambda c: c.marriage_duration < 10)
LONG_MARRIAGE = Cohort("long_marriage", lambda c: c.marriage_duration >= 10)


# ============================================================
# Number helpers
# ============================================================


def _round1(value: Decimal) -> float:
    return float(value.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def percentage(count: int, total: int) -> float:
    """Share of `count` in `total` as a percentage with 1 decimal (0.0 if total is 0)."""
    if total <= 0:
        return 0.0
    return _round1(Decimal(count * 100) / Decimal(total))


# ============================================================
# Breakdowns
# ============================================================


def age_bucket_for(avg_age: float) -> AgeBucket:
    """The single bucket an average age falls into."""
    for bucket in AGE_BUCKETS:
        if bucket.contains(avg_age):
            return bucket
    raise ValueError(f"avg_age {avg_age!r} matches no bucket")


def age_distribution(couples: Sequence[CoupleFacts]) -> list[AgeGroupShare]:
    """Count couples per average-age bucket."""
    counts = Counter(age_bucket_for(c.avg_age).label for c in couples)
    total = len(couples)
    return [
        AgeGroupShare(
            age_group=bucket.label,
            count=counts[bucket.label],
            percentage=percentage(counts[bucket.label], total),
        )
        for bucket in AGE_BUCKETS
    ]


def _ranked_plan_counts(couples: Iterable[CoupleFacts]) -> list[tuple[str, int]]:
    counts = Counter(c.travel_plan for c in couples)
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))


def plan_popularity(couples: Sequence[CoupleFacts]) -> list[PlanCount]:
    """Every distinct travel plan with its count, most popular first."""
    return [PlanCount(travel_plan=plan, count=count) for plan, count in _ranked_plan_counts(couples)]


def plan_preferences(couples: Sequence[CoupleFacts]) -> list[PlanShare]:
    """Travel plans of a group with their share of that group, most popular first."""
    total = len(couples)
    return [
        PlanShare(travel_plan=plan, count=count, percentage=percentage(count, total))
        for plan, count in _ranked_plan_counts(couples)
    ]


def average_marriage_duration(couples: Sequence[CoupleFacts]) -> float | str:
    """Mean marriage duration rounded to 1 decimal, or N/A for an empty group."""
    if not couples:
        return NOT_AVAILABLE
    total = sum(c.marriage_duration for c in couples)
    return _round1(Decimal(total) / Decimal(len(couples)))


def analyze_cohort(couples: Sequence[CoupleFacts], cohort: Cohort) -> CohortAnalysis:
    """Count, average duration and travel preferences of one cohort."""
    members = cohort.select(couples)
    return CohortAnalysis(
        count=len(members),
        avg_marriage_duration=average_marriage_duration(members),
        preferences=plan_preferences(members),
    )


def least_popular(popularity: Sequence[PlanCount], limit: int = DISLIKED_LIMIT) -> list[PlanCount]:
    """The `limit` plans with the lowest counts, least popular first."""
    ordered = sorted(popularity, key=lambda p: (p.count, p.travel_plan))
    return ordered[:limit]


def build_summary(
    older: CohortAnalysis,
    younger: CohortAnalysis,
    disliked: Sequence[PlanCount],
) -> ReportSummary:
    return ReportSummary(
        older_favorite=older.preferences[0].travel_plan if older.preferences else NOT_AVAILABLE,
        younger_favorite=younger.preferences[0].travel_plan if younger.preferences else NOT_AVAILABLE,
        all_disliked=disliked[0].travel_plan if disliked else NOT_AVAILABLE,
    )


def build_report(couples: Sequence[CoupleFacts], now: datetime | None = None) -> AnalysisReport:
    """Assemble the full analysis report from the current couple set.

    Args:
        couples: Every stored couple.
        now: Generation time (defaults to the current UTC time).

    Returns:
        A new, immutable AnalysisReport.
    """
    popularity = plan_popularity(couples)
    disliked = least_popular(popularity)
    older = analyze_cohort(couples, OLDER)
    younger = analyze_cohort(couples, YOUNGER)

    return AnalysisReport(
        total_couples=len(couples),
        total_plans=len(popularity),
        last_updated=now or datetime.now(timezone.utc),
        age_distribution=age_distribution(couples),
        older_couples_analysis=older,
        younger_couples_analysis=younger,
        short_marriage_analysis=analyze_cohort(couples, SHORT_MARRIAGE),
        long_marriage_analysis=analyze_cohort(couples, LONG_MARRIAGE),
        all_plans_popularity=popularity,
        disliked_plans=disliked,
        summary=build_summary(older, younger, disliked),
    )
