"""Couples repository: the read/write surface over the couples table.

Reads:
- Full scan as CoupleFacts (input of the aggregation engine)
- Paginated listing ordered by couple number

Writes:
- replace_all_couples: delete everything and bulk insert, inside the
  caller's transaction
"""

import math
from collections.abc import Sequence

from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from survey_api.models import Couple
from survey_api.schemas import CoupleRow, RawCoupleRow, RawDataPage
from survey_api.services.aggregation import CoupleFacts

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


async def fetch_all_facts(session: AsyncSession) -> list[CoupleFacts]:
    """Load every stored couple as an aggregation input."""
    result = await session.execute(
        select(
            Couple.men_age,
            Couple.women_age,
            Couple.marriage_duration,
            Couple.travel_plan,
            Couple.avg_age,
        ).order_by(Couple.couple_no)
    )
    return [
        CoupleFacts(
            men_age=row.men_age,
            women_age=row.women_age,
            marriage_duration=row.marriage_duration,
            travel_plan=row.travel_plan,
            avg_age=float(row.avg_age),
        )
        for row in result
    ]


async def count_couples(session: AsyncSession) -> int:
    result = await session.execute(select(func.count(Couple.id)))
    return result.scalar() or 0


async def list_couples_page(
    session: AsyncSession,
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
) -> RawDataPage:
    """Get one page of stored couples.

    Args:
        session: Open session.
        page: 1-based page number; values below 1 fall back to the default.
        limit: Page size; values below 1 fall back to the default.

    Returns:
        RawDataPage with rows ordered by couple number.
    """
    page = page if page >= 1 else DEFAULT_PAGE
    limit = limit if limit >= 1 else DEFAULT_LIMIT
    offset = (page - 1) * limit

    total = await count_couples(session)
    result = await session.execute(
        select(Couple).order_by(Couple.couple_no).limit(limit).offset(offset)
    )
    rows = [
        RawCoupleRow(
            couple_no=couple.couple_no,
            men_age=couple.men_age,
            women_age=couple.women_age,
            marriage_duration=couple.marriage_duration,
            travel_plan=couple.travel_plan,
        )
        for couple in result.scalars().all()
    ]

    return RawDataPage(
        data=rows,
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit),
    )


async def replace_all_couples(session: AsyncSession, rows: Sequence[CoupleRow]) -> int:
    """Discard every stored couple and insert `rows` in their place.

    Runs inside the caller's transaction; the caller commits or rolls back
    both steps together.

    Returns:
        Number of inserted rows.
    """
    await session.execute(delete(Couple))
    if rows:
        await session.execute(insert(Couple), [row.to_insert_params() for row in rows])
    await session.flush()
    return len(rows)
