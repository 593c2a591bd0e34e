"""create_couples_table

Revision ID: 3d8e2b7c1a90
Revises:
Create Date: 2026-10-17
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3d8e2b7c1a90"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "couples",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("couple_no", sa.Integer(), nullable=False),
        sa.Column("men_age", sa.Integer(), nullable=False),
        sa.Column("women_age", sa.Integer(), nullable=False),
        sa.Column("marriage_duration", sa.Integer(), nullable=False),
        sa.Column("travel_plan", sa.String(length=255), nullable=False),
        sa.Column(
            "avg_age",
            sa.Numeric(precision=7, scale=2),
            sa.Computed("(men_age + women_age) / 2.0", persisted=True),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("couple_no"),
    )

    op.create_index(op.f("ix_couples_men_age"), "couples", ["men_age"], unique=False)
    op.create_index(op.f("ix_couples_women_age"), "couples", ["women_age"], unique=False)
    op.create_index(op.f("ix_couples_marriage_duration"), "couples", ["marriage_duration"], unique=False)
    op.create_index(op.f("ix_couples_travel_plan"), "couples", ["travel_plan"], unique=False)
    op.create_index(op.f("ix_couples_avg_age"), "couples", ["avg_age"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_couples_avg_age"), table_name="couples")
    op.drop_index(op.f("ix_couples_travel_plan"), table_name="couples")
    op.drop_index(op.f("ix_couples_marriage_duration"), table_name="couples")
    op.drop_index(op.f("ix_couples_women_age"), table_name="couples")
    op.drop_index(op.f("ix_couples_men_age"), table_name="couples")
    op.drop_table("couples")
