"""
hermes/models/usage_stats.py

Usage-versus-limit report for dashboards.
"""

from typing import Any, Dict
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from hermes.models.subscription import SubscriptionTier
from hermes.models.usage_limits import UsageLimits


class UsageCounts(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    daily_tool_calls: int
    monthly_tool_calls: int
    daily_voice_generations: int
    monthly_voice_generations: int
    daily_conversations: int


class UsagePercentages(BaseModel):
    """Percent of each limit used, always within [0, 100]; 0 for unlimited."""
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    daily_tools: float
    monthly_tools: float
    daily_voice: float
    monthly_voice: float
    daily_conversations: float


class UsageStats(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    current_tier: SubscriptionTier
    limits: UsageLimits
    usage: UsageCounts
    percentages_used: UsagePercentages

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
