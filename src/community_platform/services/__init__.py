# src/community_platform/services/__init__.py
"""Business logic services for the community platform."""

from .community_rules import CommunityRuleService
from .errors import (
    BoundExceededError,
    CollectionBusyError,
    InvalidRankError,
    RankedCollectionError,
    RankedItemNotFoundError,
    UnsupportedOperationError,
)
from .ranked_collection import RankedCollectionManager
from .recent_communities import RecentCommunityService

__all__ = [
    "BoundExceededError",
    "CollectionBusyError",
    "CommunityRuleService",
    "InvalidRankError",
    "RankedCollectionError",
    "RankedCollectionManager",
    "RankedItemNotFoundError",
    "RecentCommunityService",
    "UnsupportedOperationError",
]
