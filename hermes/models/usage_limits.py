"""
hermes/models/usage_limits.py

Per-tier usage ceilings.

A numeric limit of -1 (UNLIMITED) means the ceiling does not apply; it must
never be used as a divisor or compared against a count.
"""

from enum import Enum
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


UNLIMITED = -1


def is_unlimited(limit: int) -> bool:
    return limit == UNLIMITED


class AnalyticsAccessLevel(str, Enum):
    BASIC = "basic"
    ADVANCED = "advanced"
    PREMIUM = "premium"
    FULL = "full"

    @property
    def rank(self) -> int:
        return list(AnalyticsAccessLevel).index(self)


class UsageLimits(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    daily_tool_calls: int
    monthly_tool_calls: int
    voice_generations_per_day: int
    voice_generations_per_month: int
    analytics_access_level: AnalyticsAccessLevel
    conversations_per_day: int
    max_conversation_length: int
    advanced_features_enabled: bool
