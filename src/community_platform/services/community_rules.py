# src/community_platform/services/community_rules.py
"""Ordered rule lists for communities."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy.orm import Session, sessionmaker

from community_platform.core.settings import settings
from community_platform.models import CommunityRule
from community_platform.repositories.ranked_item_repo import (
    CollectionConfig,
    CollectionPolicy,
    RankedItem,
)
from community_platform.schemas.community_rule import CommunityRuleCreate, CommunityRuleUpdate
from community_platform.services.ranked_collection import RankedCollectionManager

COMMUNITY_RULES = "community_rules"


def community_rules_config(limit: int | None = None) -> CollectionConfig:
    """Return the collection config for the community rules table.

    A rule is its own item, so the item column is the row id.
    """
    return CollectionConfig(
        name=COMMUNITY_RULES,
        model=CommunityRule,
        owner_column="community_id",
        item_column="id",
        rank_column="rule_index",
        payload_columns=("rule_text", "created_at"),
        required_columns=("rule_text",),
        bound=limit if limit is not None else settings.community_rules_limit,
        policy=CollectionPolicy.APPEND_ONLY,
    )


class CommunityRuleService:
    """Service for a community's numbered rules.

    Callers are expected to have checked that the principal owns the community.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        limit: int | None = None,
        **manager_options: Any,
    ) -> None:
        self.manager = RankedCollectionManager(
            session_factory,
            community_rules_config(limit),
            **manager_options,
        )

    def add(
        self,
        community_id: str,
        data: CommunityRuleCreate | Mapping[str, Any],
    ) -> RankedItem:
        """Append a rule; fails with ``BoundExceededError`` once the list is full."""
        rule = CommunityRuleCreate.model_validate(data)
        return self.manager.append(community_id, rule_text=rule.rule_text)

    def update(
        self,
        community_id: str,
        rule_id: str,
        data: CommunityRuleUpdate | Mapping[str, Any],
    ) -> RankedItem:
        """Edit a rule's text in place."""
        update = CommunityRuleUpdate.model_validate(data)
        if update.rule_text is None:
            return self.manager.get_item(community_id, rule_id)
        return self.manager.update_payload(community_id, rule_id, rule_text=update.rule_text)

    def get(self, community_id: str, rule_id: str) -> RankedItem:
        """Return a single rule."""
        return self.manager.get_item(community_id, rule_id)

    def list(
        self,
        community_id: str,
        text_contains: str | None = None,
        rule_index: int | None = None,
    ) -> list[RankedItem]:
        """Return the rules in order, optionally filtered by text fragment or index."""
        rules = self.manager.list_items(community_id)
        if rule_index is not None:
            rules = [rule for rule in rules if rule.rank == rule_index]
        if text_contains:
            needle = text_contains.casefold()
            rules = [rule for rule in rules if needle in rule.payload["rule_text"].casefold()]
        return rules

    def reorder(self, community_id: str, rule_id: str, rule_index: int) -> RankedItem:
        """Move a rule to ``rule_index``."""
        return self.manager.reorder(community_id, rule_id, rule_index)

    def remove(self, community_id: str, rule_id: str) -> list[RankedItem]:
        """Delete a rule and renumber the ones after it."""
        return self.manager.remove(community_id, rule_id)

    def remove_at(self, community_id: str, rule_index: int) -> list[RankedItem]:
        """Delete the rule at ``rule_index`` and renumber the ones after it."""
        return self.manager.remove_at(community_id, rule_index)
