# src/community_platform/schemas/community_rule.py
"""Community rule Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from community_platform.models.community_rule import RULE_TEXT_MAX_LENGTH
from community_platform.repositories.ranked_item_repo import RankedItem


class CommunityRuleCreate(BaseModel):
    """Schema for adding a rule at the end of a community's list."""

    model_config = ConfigDict(str_strip_whitespace=True)

    rule_text: str = Field(..., min_length=1, max_length=RULE_TEXT_MAX_LENGTH)


class CommunityRuleUpdate(BaseModel):
    """Schema for editing a rule's text; its position is changed by reorder only."""

    model_config = ConfigDict(str_strip_whitespace=True)

    rule_text: str | None = Field(None, min_length=1, max_length=RULE_TEXT_MAX_LENGTH)


class CommunityRuleResponse(BaseModel):
    """Schema for a rule returned to API clients."""

    id: str
    community_id: str
    rule_index: int
    rule_text: str
    created_at: datetime

    @model_validator(mode="before")
    @classmethod
    def _from_ranked_item(cls, data: object) -> object:
        if isinstance(data, RankedItem):
            return {
                "id": data.id,
                "community_id": data.owner_id,
                "rule_index": data.rank,
                "rule_text": data.payload.get("rule_text"),
                "created_at": data.payload.get("created_at"),
            }
        return data
