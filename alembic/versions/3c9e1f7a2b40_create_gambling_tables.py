"""Create gambling profile, goal and effect tables

Revision ID: 3c9e1f7a2b40
Revises:
Create Date: 2026-10-17 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "3c9e1f7a2b40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "gambling_profiles",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("coins", sa.BigInteger(), nullable=False, server_default="1000"),
        sa.Column("gems", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("level", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("prestige", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_gambling_profiles_coins_desc", "gambling_profiles", ["coins"])

    op.create_table(
        "gambling_goals",
        sa.Column("user_id", sa.BigInteger(), primary_key=True),
        sa.Column("goal_id", sa.String(50), primary_key=True),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("progress", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("target", sa.BigInteger(), nullable=False),
    )

    op.create_table(
        "gambling_effects",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("effect_id", sa.String(50), nullable=False),
        sa.Column("expiry", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_gambling_effects_user", "gambling_effects", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_gambling_effects_user", table_name="gambling_effects")
    op.drop_table("gambling_effects")
    op.drop_table("gambling_goals")
    op.drop_index("ix_gambling_profiles_coins_desc", table_name="gambling_profiles")
    op.drop_table("gambling_profiles")
