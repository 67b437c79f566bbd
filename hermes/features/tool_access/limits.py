"""
hermes/features/tool_access/limits.py

Usage ceilings per subscription tier.
"""

from typing import Dict

from hermes.models.subscription import SubscriptionTier, TIER_ORDER
from hermes.models.usage_limits import AnalyticsAccessLevel, UsageLimits, UNLIMITED


SUBSCRIPTION_LIMITS: Dict[SubscriptionTier, UsageLimits] = {
    SubscriptionTier.FREE_TRIAL: UsageLimits(
        daily_tool_calls=15,
        monthly_tool_calls=200,
        voice_generations_per_day=0,
        voice_generations_per_month=0,
        analytics_access_level=AnalyticsAccessLevel.BASIC,
        conversations_per_day=10,
        max_conversation_length=20,
        advanced_features_enabled=False,
    ),
    SubscriptionTier.SEEKER: UsageLimits(
        daily_tool_calls=100,
        monthly_tool_calls=2000,
        voice_generations_per_day=50,
        voice_generations_per_month=1000,
        analytics_access_level=AnalyticsAccessLevel.ADVANCED,
        conversations_per_day=50,
        max_conversation_length=100,
        advanced_features_enabled=True,
    ),
    SubscriptionTier.ADEPT: UsageLimits(
        daily_tool_calls=300,
        monthly_tool_calls=7000,
        voice_generations_per_day=200,
        voice_generations_per_month=4000,
        analytics_access_level=AnalyticsAccessLevel.PREMIUM,
        conversations_per_day=150,
        max_conversation_length=500,
        advanced_features_enabled=True,
    ),
    SubscriptionTier.MASTER: UsageLimits(
        daily_tool_calls=UNLIMITED,
        monthly_tool_calls=UNLIMITED,
        voice_generations_per_day=UNLIMITED,
        voice_generations_per_month=UNLIMITED,
        analytics_access_level=AnalyticsAccessLevel.FULL,
        conversations_per_day=UNLIMITED,
        max_conversation_length=UNLIMITED,
        advanced_features_enabled=True,
    ),
}


def validate_limits_table(table: Dict[SubscriptionTier, UsageLimits]) -> None:
    """Every tier must have exactly one entry."""
    missing = [tier.value for tier in TIER_ORDER if tier not in table]
    if missing:
        raise ValueError(f"Usage limits missing for tiers: {', '.join(missing)}")


def get_tier_limits(tier: SubscriptionTier) -> UsageLimits:
    return SUBSCRIPTION_LIMITS[SubscriptionTier(tier)]


validate_limits_table(SUBSCRIPTION_LIMITS)
