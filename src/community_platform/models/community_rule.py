# src/community_platform/models/community_rule.py
"""Model for the ordered rules a community displays."""

from __future__ import annotations

import datetime
import uuid

from sqlalchemy import DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from community_platform.db.session import Base
from community_platform.db.time import utcnow

RULE_TEXT_MAX_LENGTH = 100


class CommunityRule(Base):
    """One numbered rule of a community.

    Rules are appended at the end and only move through an explicit reorder
    or a delete, which closes the gap.
    """

    __tablename__ = "community_rule"
    __table_args__ = (
        UniqueConstraint("community_id", "rule_index", name="uq_community_rule_community_index"),
        Index("ix_community_rule_community_id", "community_id"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    community_id: Mapped[str] = mapped_column(String(36), nullable=False)
    # 1-based position within the community.
    rule_index: Mapped[int] = mapped_column(Integer, nullable=False)
    rule_text: Mapped[str] = mapped_column(String(RULE_TEXT_MAX_LENGTH), nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
