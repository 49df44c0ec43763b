# src/community_platform/services/recent_communities.py
"""Recent communities sidebar for members."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session, sessionmaker

from community_platform.core.settings import settings
from community_platform.models import RecentCommunity
from community_platform.repositories.ranked_item_repo import (
    CollectionConfig,
    CollectionPolicy,
    RankedItem,
)
from community_platform.schemas.recent_community import RecentCommunityRequest
from community_platform.services.ranked_collection import RankedCollectionManager

RECENT_COMMUNITIES = "recent_communities"


def recent_communities_config(limit: int | None = None) -> CollectionConfig:
    """Return the collection config for the recent communities table."""
    return CollectionConfig(
        name=RECENT_COMMUNITIES,
        model=RecentCommunity,
        owner_column="member_id",
        item_column="community_id",
        rank_column="recent_rank",
        activity_column="last_activity_at",
        bound=limit if limit is not None else settings.recent_communities_limit,
        policy=CollectionPolicy.MOVE_TO_FRONT,
    )


class RecentCommunityService:
    """Keeps each member's most recently visited communities, newest first."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        limit: int | None = None,
        **manager_options: Any,
    ) -> None:
        self.manager = RankedCollectionManager(
            session_factory,
            recent_communities_config(limit),
            **manager_options,
        )

    def touch(
        self,
        member_id: str,
        community_id: str,
        now: datetime | None = None,
    ) -> RankedItem:
        """Record a visit: the community moves to rank 1, the oldest may drop out."""
        return self.manager.touch_or_insert(member_id, community_id, now)

    def list(
        self,
        member_id: str,
        request: RecentCommunityRequest | Mapping[str, Any] | None = None,
    ) -> list[RankedItem]:
        """Return the member's recent communities.

        Sorting by ``last_activity_at`` is a display view; ranks are not
        recomputed from timestamps.
        """
        options = RecentCommunityRequest.model_validate(request or {})
        items = self.manager.list_items(member_id)
        if options.sort == "last_activity_at":
            items.sort(key=lambda item: (item.last_activity_at, -item.rank), reverse=True)
        return items

    def get(self, member_id: str, community_id: str) -> RankedItem:
        """Return the member's entry for one community."""
        return self.manager.get_item(member_id, community_id)

    def reorder(self, member_id: str, community_id: str, recent_rank: int) -> RankedItem:
        """Pin a community to an explicit rank."""
        return self.manager.reorder(member_id, community_id, recent_rank)

    def remove(self, member_id: str, community_id: str) -> list[RankedItem]:
        """Forget a community and close the gap it leaves."""
        return self.manager.remove(member_id, community_id)
