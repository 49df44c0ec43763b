# src/community_platform/schemas/recent_community.py
"""Recent community Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, model_validator

from community_platform.repositories.ranked_item_repo import RankedItem


class RecentCommunityRequest(BaseModel):
    """Listing options for a member's recent communities."""

    sort: Literal["recent_rank", "last_activity_at"] = "recent_rank"


class RecentCommunityResponse(BaseModel):
    """Schema for a recent community entry returned to API clients."""

    id: str
    member_id: str
    community_id: str
    recent_rank: int
    last_activity_at: datetime

    @model_validator(mode="before")
    @classmethod
    def _from_ranked_item(cls, data: object) -> object:
        if isinstance(data, RankedItem):
            return {
                "id": data.id,
                "member_id": data.owner_id,
                "community_id": data.item_id,
                "recent_rank": data.rank,
                "last_activity_at": data.last_activity_at,
            }
        return data
