# src/community_platform/schemas/__init__.py
"""
Pydantic schemas for ranked collection payloads and responses.

These schemas validate caller input and shape collection snapshots for API adapters.
"""

from .community_rule import CommunityRuleCreate, CommunityRuleResponse, CommunityRuleUpdate
from .recent_community import RecentCommunityRequest, RecentCommunityResponse

__all__ = [
    "CommunityRuleCreate", "CommunityRuleResponse", "CommunityRuleUpdate",
    "RecentCommunityRequest", "RecentCommunityResponse",
]
