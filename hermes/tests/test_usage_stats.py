from datetime import datetime, timedelta, timezone

import pytest

from hermes.features.tool_access.service import ToolAccessController, usage_percentage
from hermes.models.subscription import SubscriptionTier
from hermes.tests.mocks import FakeSubscriptions, FakeUsage, FixedClock, NOW


def _stats(tier, usage):
    controller = ToolAccessController(
        FakeSubscriptions(default=tier), usage, tz="UTC", clock=FixedClock(NOW)
    )
    return controller.get_subscription_usage_stats("u1")


@pytest.mark.parametrize(
    "count,limit,expected",
    [
        (0, 15, 0.0),
        (3, 15, 20.0),
        (1, 3, 33.33),
        (15, 15, 100.0),
        (40, 15, 100.0),
        (-5, 15, 0.0),
        (9999, -1, 0.0),
        (7, 0, 0.0),
    ],
)
def test_usage_percentage(count, limit, expected):
    assert usage_percentage(count, limit) == expected


def test_stats_for_seeker():
    usage = FakeUsage()
    today = NOW - timedelta(hours=2)
    earlier_this_month = datetime(2025, 3, 1, 8, tzinfo=timezone.utc)
    usage.add("u1", "ritual_generator", today, count=10)
    usage.add("u1", "mantra_creator", earlier_this_month, count=90)
    usage.add("u1", "voice_generation", today, tool_type="voice_generation", count=5)
    usage.add_conversation("u1", today, count=5)
    usage.add("someone-else", "ritual_generator", today, count=40)

    stats = _stats(SubscriptionTier.SEEKER, usage)

    assert stats.current_tier == SubscriptionTier.SEEKER
    assert stats.usage.daily_tool_calls == 10
    assert stats.usage.monthly_tool_calls == 100
    assert stats.usage.daily_voice_generations == 5
    assert stats.usage.monthly_voice_generations == 5
    assert stats.usage.daily_conversations == 5
    assert stats.percentages_used.daily_tools == 10.0
    assert stats.percentages_used.monthly_tools == 5.0
    assert stats.percentages_used.daily_voice == 10.0
    assert stats.percentages_used.monthly_voice == 0.5
    assert stats.percentages_used.daily_conversations == 10.0


def test_unlimited_tier_reports_zero_percent():
    usage = FakeUsage()
    usage.add("u1", "ritual_generator", NOW, count=5000)
    usage.add("u1", "voice_generation", NOW, tool_type="voice_generation", count=700)
    usage.add_conversation("u1", NOW, count=300)

    stats = _stats(SubscriptionTier.MASTER, usage)

    assert stats.usage.daily_tool_calls == 5000
    assert stats.percentages_used.model_dump() == {
        "daily_tools": 0.0,
        "monthly_tools": 0.0,
        "daily_voice": 0.0,
        "monthly_voice": 0.0,
        "daily_conversations": 0.0,
    }


def test_zero_limit_reports_zero_percent():
    usage = FakeUsage()
    usage.add("u1", "voice_generation", NOW, tool_type="voice_generation", count=3)

    stats = _stats(SubscriptionTier.FREE_TRIAL, usage)

    assert stats.limits.voice_generations_per_day == 0
    assert stats.percentages_used.daily_voice == 0.0


def test_over_limit_is_clamped():
    usage = FakeUsage()
    usage.add("u1", "ritual_generator", NOW, count=30)

    stats = _stats(SubscriptionTier.FREE_TRIAL, usage)

    assert stats.percentages_used.daily_tools == 100.0


def test_stats_payload_uses_camel_case():
    payload = _stats(SubscriptionTier.ADEPT, FakeUsage()).to_payload()

    assert payload["currentTier"] == "ADEPT"
    assert payload["limits"]["dailyToolCalls"] == 300
    assert payload["limits"]["analyticsAccessLevel"] == "premium"
    assert set(payload["usage"]) == {
        "dailyToolCalls",
        "monthlyToolCalls",
        "dailyVoiceGenerations",
        "monthlyVoiceGenerations",
        "dailyConversations",
    }
    assert set(payload["percentagesUsed"]) == {
        "dailyTools",
        "monthlyTools",
        "dailyVoice",
        "monthlyVoice",
        "dailyConversations",
    }
