"""
Tests for usage recording and windowed aggregation over the message log.
"""
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from hermes.core.errors import TransientLookupError, ValidationError
from hermes.features.subscriptions.service import SubscriptionLookup, record_subscription
from hermes.features.tool_access.service import ToolAccessController
from hermes.features.usage.service import (
    TOOL_TYPE_VOICE,
    UsageAggregator,
    get_usage_events,
    record_tool_usage,
    start_conversation,
)
from hermes.features.usage.windows import day_window, month_window
from hermes.features.users.service import get_or_create_user
from hermes.models.subscription import SubscriptionTier
from hermes.tests.mocks import FixedClock, NOW


@pytest.fixture
def user_id():
    return get_or_create_user("usage-user").user_id


def test_counts_are_zero_without_usage(user_id):
    aggregator = UsageAggregator()
    today = day_window(NOW, "UTC")
    assert aggregator.count_tool_usage(user_id, "ritual_generator", today.start, today.end) == 0
    assert aggregator.count_tool_type_usage(user_id, "ai_tool", today.start, today.end) == 0
    assert aggregator.count_conversations(user_id, today.start, today.end) == 0


def test_count_tool_usage_within_window(user_id):
    conversation_id = start_conversation(user_id, "Morning practice", created_at=NOW - timedelta(hours=3))
    for minutes in (10, 20, 30):
        record_tool_usage(
            user_id,
            "ritual_generator",
            conversation_id=conversation_id,
            occurred_at=NOW - timedelta(minutes=minutes),
        )
    record_tool_usage(user_id, "mantra_creator", conversation_id=conversation_id, occurred_at=NOW)
    record_tool_usage(user_id, "ritual_generator", occurred_at=NOW - timedelta(days=1))

    aggregator = UsageAggregator()
    today = day_window(NOW, "UTC")
    this_month = month_window(NOW, "UTC")

    assert aggregator.count_tool_usage(user_id, "ritual_generator", today.start, today.end) == 3
    assert aggregator.count_tool_usage(user_id, "ritual_generator", this_month.start, this_month.end) == 4
    assert aggregator.count_tool_type_usage(user_id, "ai_tool", today.start, today.end) == 4


def test_window_end_is_exclusive(user_id):
    today = day_window(NOW, "UTC")
    record_tool_usage(user_id, "ritual_generator", occurred_at=today.start)
    record_tool_usage(user_id, "ritual_generator", occurred_at=today.end)

    aggregator = UsageAggregator()
    assert aggregator.count_tool_usage(user_id, "ritual_generator", today.start, today.end) == 1


def test_counts_are_per_user(user_id):
    other = get_or_create_user("someone-else").user_id
    record_tool_usage(other, "ritual_generator", occurred_at=NOW)

    today = day_window(NOW, "UTC")
    assert UsageAggregator().count_tool_usage(user_id, "ritual_generator", today.start, today.end) == 0


def test_count_by_tool_type(user_id):
    record_tool_usage(user_id, "voice_generation", TOOL_TYPE_VOICE, occurred_at=NOW)
    record_tool_usage(user_id, "voice_generation", TOOL_TYPE_VOICE, occurred_at=NOW)
    record_tool_usage(user_id, "dream_interpreter", occurred_at=NOW)

    today = day_window(NOW, "UTC")
    aggregator = UsageAggregator()
    assert aggregator.count_tool_type_usage(user_id, TOOL_TYPE_VOICE, today.start, today.end) == 2
    assert aggregator.count_tool_type_usage(user_id, "ai_tool", today.start, today.end) == 1


def test_count_conversations(user_id):
    start_conversation(user_id, "one", created_at=NOW - timedelta(hours=1))
    start_conversation(user_id, "two", created_at=NOW - timedelta(hours=2))
    start_conversation(user_id, "yesterday", created_at=NOW - timedelta(days=1))

    today = day_window(NOW, "UTC")
    assert UsageAggregator().count_conversations(user_id, today.start, today.end) == 2


def test_conversation_owned_by_another_user_is_rejected(user_id):
    other = get_or_create_user("owner").user_id
    conversation_id = start_conversation(other, "private")

    with pytest.raises(ValidationError):
        record_tool_usage(user_id, "ritual_generator", conversation_id=conversation_id)


def test_usage_events_are_listed_oldest_first(user_id):
    record_tool_usage(user_id, "mantra_creator", occurred_at=NOW, extra={"mood": "calm"})
    record_tool_usage(user_id, "ritual_generator", occurred_at=NOW - timedelta(hours=1))
    start_conversation(user_id, "no tools here")

    events = get_usage_events(user_id)

    assert [e.tool_name for e in events] == ["ritual_generator", "mantra_creator"]
    assert events[1].metadata["mood"] == "calm"
    assert events[0].occurred_at == NOW - timedelta(hours=1)

    mantras = get_usage_events(user_id, tool_name="mantra_creator")
    assert len(mantras) == 1
    assert get_usage_events(user_id, start_time=NOW + timedelta(seconds=1)) == []


def test_database_failure_is_transient_error():
    @contextmanager
    def broken_session():
        raise OperationalError("SELECT", {}, Exception("connection refused"))
        yield

    aggregator = UsageAggregator(session_factory=broken_session)
    with pytest.raises(TransientLookupError):
        aggregator.count_tool_usage("u1", "ritual_generator", NOW, NOW + timedelta(days=1))


def test_voice_cap_against_database(user_id):
    record_subscription(user_id, SubscriptionTier.SEEKER, created_at=NOW - timedelta(days=10))
    conversation_id = start_conversation(user_id, "voices", created_at=NOW - timedelta(hours=2))
    for i in range(50):
        record_tool_usage(
            user_id,
            "voice_generation",
            TOOL_TYPE_VOICE,
            conversation_id=conversation_id,
            occurred_at=NOW - timedelta(minutes=90 - i),
        )

    controller = ToolAccessController(
        SubscriptionLookup(), UsageAggregator(), tz="UTC", clock=FixedClock(NOW)
    )
    result = controller.check_tool_access(user_id, "voice_generation")

    assert result.allowed is False
    assert result.current_usage == 50
    assert result.limit == 50

    stats = controller.get_subscription_usage_stats(user_id)
    assert stats.usage.daily_voice_generations == 50
    assert stats.percentages_used.daily_voice == 100.0
    assert stats.usage.daily_conversations == 1
