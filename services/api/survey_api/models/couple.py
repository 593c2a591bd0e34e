"""Couple model.

One row per surveyed couple. The whole table is replaced on every upload,
so all rows always belong to the same batch.
"""

from datetime import datetime

from sqlalchemy import Computed, DateTime, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from survey_api.stores.postgres import Base

AVG_AGE_EXPRESSION = "(men_age + women_age) / 2.0"


class Couple(Base):
    """Surveyed couple with ages, marriage duration and travel preference."""

    __tablename__ = "couples"

    id: Mapped[int] = mapped_column(primary_key=True)

    # Identifier from the source spreadsheet
    couple_no: Mapped[int] = mapped_column(unique=True)

    men_age: Mapped[int] = mapped_column(index=True)
    women_age: Mapped[int] = mapped_column(index=True)
    marriage_duration: Mapped[int] = mapped_column(index=True)  # years
    travel_plan: Mapped[str] = mapped_column(String(255), index=True)

    # Maintained by the database; never written by the application
    avg_age: Mapped[float] = mapped_column(
        Numeric(7, 2, asdecimal=False),
        Computed(AVG_AGE_EXPRESSION, persisted=True),
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Couple {self.couple_no} plan={self.travel_plan!r}>"
