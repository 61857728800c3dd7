"""Initial schema for per-user link sessions.

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:01:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


conversation_state_enum = sa.Enum(
    "idle",
    "waiting_affiliate_link",
    "waiting_bet_link",
    name="conversation_state",
)


def upgrade() -> None:
    op.create_table(
        "user_sessions",
        sa.Column("user_id", sa.Text(), primary_key=True),
        sa.Column("state", conversation_state_enum, nullable=False, server_default="idle"),
        sa.Column("site_id", sa.Text(), nullable=True),
        sa.Column("aff_id", sa.Text(), nullable=True),
        sa.Column("ad_id", sa.Text(), nullable=True),
        sa.Column("campaign", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("user_sessions")
    conversation_state_enum.drop(op.get_bind(), checkfirst=True)
