# src/community_platform/models/collection_lock.py
"""Sentinel rows used to serialize writes to one owner's collection."""

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from community_platform.db.session import Base


class RankedCollectionLock(Base):
    """One row per (collection, owner), locked for the length of a write.

    The row is selected ``FOR UPDATE`` before any rank is read, so two
    transactions touching the same owner cannot interleave.
    """

    __tablename__ = "ranked_collection_lock"

    collection: Mapped[str] = mapped_column(String(64), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    # Bumped by every committed write.
    revision: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
