"""ranked collections

Revision ID: 3f2c8a1d9b7e
Revises:
Create Date: 2026-10-19 09:12:44.518203

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3f2c8a1d9b7e"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create recent community, community rule and owner lock tables."""
    op.create_table(
        "recent_community",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("member_id", sa.String(length=36), nullable=False),
        sa.Column("community_id", sa.String(length=36), nullable=False),
        sa.Column("recent_rank", sa.Integer(), nullable=False),
        sa.Column("last_activity_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "member_id", "community_id", name="uq_recent_community_member_community"
        ),
        sa.UniqueConstraint("member_id", "recent_rank", name="uq_recent_community_member_rank"),
    )
    op.create_index("ix_recent_community_member_id", "recent_community", ["member_id"])

    op.create_table(
        "community_rule",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("community_id", sa.String(length=36), nullable=False),
        sa.Column("rule_index", sa.Integer(), nullable=False),
        sa.Column("rule_text", sa.String(length=100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "community_id", "rule_index", name="uq_community_rule_community_index"
        ),
    )
    op.create_index("ix_community_rule_community_id", "community_rule", ["community_id"])

    op.create_table(
        "ranked_collection_lock",
        sa.Column("collection", sa.String(length=64), nullable=False),
        sa.Column("owner_id", sa.String(length=36), nullable=False),
        sa.Column("revision", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("collection", "owner_id"),
    )


def downgrade() -> None:
    """Drop the ranked collection tables."""
    op.drop_table("ranked_collection_lock")
    op.drop_index("ix_community_rule_community_id", table_name="community_rule")
    op.drop_table("community_rule")
    op.drop_index("ix_recent_community_member_id", table_name="recent_community")
    op.drop_table("recent_community")
