# src/community_platform/models/recent_community.py
"""Model backing a member's recent communities sidebar."""

from __future__ import annotations

import datetime
import uuid

from sqlalchemy import DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from community_platform.db.session import Base
from community_platform.db.time import utcnow


class RecentCommunity(Base):
    """A community a member visited recently.

    Rank 1 is the most recently touched community. The rank column is the
    ordering authority; ``last_activity_at`` is kept for display.
    """

    __tablename__ = "recent_community"
    __table_args__ = (
        UniqueConstraint("member_id", "community_id", name="uq_recent_community_member_community"),
        UniqueConstraint("member_id", "recent_rank", name="uq_recent_community_member_rank"),
        Index("ix_recent_community_member_id", "member_id"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    member_id: Mapped[str] = mapped_column(String(36), nullable=False)
    community_id: Mapped[str] = mapped_column(String(36), nullable=False)
    recent_rank: Mapped[int] = mapped_column(Integer, nullable=False)
    last_activity_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
