"""SQLAlchemy ORM models.

Models represent database tables:
- couples: one row per surveyed couple (replaced wholesale on upload)
"""

from survey_api.models.couple import Couple

__all__ = ["Couple"]
