# src/community_platform/models/__init__.py
"""SQLAlchemy models for the community platform ranked collections."""

from .collection_lock import RankedCollectionLock
from .community_rule import CommunityRule
from .recent_community import RecentCommunity

__all__ = [
    "CommunityRule",
    "RankedCollectionLock",
    "RecentCommunity",
]
