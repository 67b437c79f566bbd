"""
hermes/features/usage/service.py

Usage accounting over the conversation history.

Handles:
- Tool usage recording (tagging messages with metadata.toolUsage)
- Windowed usage counting by tool name, tool type and conversations
- Usage event listing for timelines/debugging

Usage is never kept in counters: every count is an aggregate query over the
append-only message log, so a count is only as fresh as the last committed
write.
"""

from datetime import datetime, timezone
from typing import Any, Callable, ContextManager, Dict, List, Optional
from uuid import uuid4
import logging
from sqlalchemy import select, insert, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hermes.core.database import get_db_session, conversations, messages
from hermes.core.errors import TransientLookupError, ValidationError
from hermes.features.usage.windows import to_utc
from hermes.models.usage_event import UsageEvent


logger = logging.getLogger(__name__)

SessionFactory = Callable[[], ContextManager[Session]]

TOOL_TYPE_AI = "ai_tool"
TOOL_TYPE_VOICE = "voice_generation"

_TOOL_NAME_PATH = ("toolUsage", "toolName")
_TOOL_TYPE_PATH = ("toolUsage", "toolType")


class UsageAggregator:
    """Counts tool-tagged messages and conversations inside [start, end)."""

    def __init__(self, session_factory: Optional[SessionFactory] = None):
        self._session_factory = session_factory or get_db_session

    def _count(self, query, **context: Any) -> int:
        try:
            with self._session_factory() as session:
                return int(session.execute(query).scalar() or 0)
        except SQLAlchemyError as e:
            logger.error("[usage] count failed", extra={**context, "error": str(e)})
            raise TransientLookupError("Usage lookup failed") from e

    def _tagged_message_count(self, user_id: str, path, tag: str, start: datetime, end: datetime):
        return (
            select(func.count(messages.c.id))
            .select_from(messages.join(conversations, messages.c.conversation_id == conversations.c.id))
            .where(conversations.c.user_id == user_id)
            .where(messages.c.created_at >= to_utc(start))
            .where(messages.c.created_at < to_utc(end))
            .where(messages.c.metadata[path].as_string() == tag)
        )

    def count_tool_usage(self, user_id: str, tool_name: str, start: datetime, end: datetime) -> int:
        """Invocations of one tool by the user within the window."""
        query = self._tagged_message_count(user_id, _TOOL_NAME_PATH, tool_name, start, end)
        return self._count(query, user_id=user_id, tool_name=tool_name)

    def count_tool_type_usage(self, user_id: str, tool_type: str, start: datetime, end: datetime) -> int:
        """Invocations of any tool in a category (ai_tool, voice_generation)."""
        query = self._tagged_message_count(user_id, _TOOL_TYPE_PATH, tool_type, start, end)
        return self._count(query, user_id=user_id, tool_type=tool_type)

    def count_conversations(self, user_id: str, start: datetime, end: datetime) -> int:
        query = (
            select(func.count(conversations.c.id))
            .where(conversations.c.user_id == user_id)
            .where(conversations.c.created_at >= to_utc(start))
            .where(conversations.c.created_at < to_utc(end))
        )
        return self._count(query, user_id=user_id, category="conversations")


def start_conversation(
    user_id: str,
    title: Optional[str] = None,
    conversation_id: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> str:
    """Create a conversation row and return its id. The user row must exist."""
    conversation_id = conversation_id or str(uuid4())
    created = to_utc(created_at) if created_at else datetime.now(timezone.utc)
    with get_db_session() as session:
        session.execute(
            insert(conversations).values(
                id=conversation_id,
                user_id=user_id,
                title=title,
                created_at=created,
            )
        )
    return conversation_id


def record_tool_usage(
    user_id: str,
    tool_name: str,
    tool_type: str = TOOL_TYPE_AI,
    *,
    conversation_id: Optional[str] = None,
    content: str = "",
    occurred_at: Optional[datetime] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> UsageEvent:
    """
    Record a successful tool invocation as a tagged message.

    Called by the application after the tool ran; access checks never write.
    A missing conversation is created for the user.

    Raises:
        ValidationError: conversation_id belongs to another user
    """
    occurred = to_utc(occurred_at) if occurred_at else datetime.now(timezone.utc)
    tool_usage = {"toolName": tool_name, "toolType": tool_type}
    metadata: Dict[str, Any] = dict(extra or {})
    metadata["toolUsage"] = tool_usage

    with get_db_session() as session:
        if conversation_id:
            owner = session.execute(
                select(conversations.c.user_id).where(conversations.c.id == conversation_id)
            ).scalar()
        else:
            owner = None
            conversation_id = str(uuid4())

        if owner is None:
            session.execute(
                insert(conversations).values(
                    id=conversation_id,
                    user_id=user_id,
                    title=tool_name,
                    created_at=occurred,
                )
            )
        elif owner != user_id:
            raise ValidationError(f"Conversation {conversation_id} does not belong to user {user_id}")

        session.execute(
            insert(messages).values(
                conversation_id=conversation_id,
                role="tool",
                content=content,
                metadata=metadata,
                created_at=occurred,
            )
        )

    logger.info(
        "[usage] tool usage recorded",
        extra={"user_id": user_id, "tool_name": tool_name, "tool_type": tool_type},
    )
    return UsageEvent(
        user_id=user_id,
        conversation_id=conversation_id,
        tool_name=tool_name,
        tool_type=tool_type,
        occurred_at=occurred,
        metadata=metadata,
    )


def get_usage_events(
    user_id: str,
    tool_name: Optional[str] = None,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
) -> List[UsageEvent]:
    """
    List tool usage events for a user, oldest first.

    Args:
        user_id: User to query
        tool_name: Optional filter by tool
        start_time: Optional start of time window (inclusive)
        end_time: Optional end of time window (exclusive)
    """
    query = (
        select(messages, conversations.c.user_id)
        .select_from(messages.join(conversations, messages.c.conversation_id == conversations.c.id))
        .where(conversations.c.user_id == user_id)
        .where(messages.c.metadata[_TOOL_NAME_PATH].as_string().is_not(None))
    )
    if tool_name:
        query = query.where(messages.c.metadata[_TOOL_NAME_PATH].as_string() == tool_name)
    if start_time:
        query = query.where(messages.c.created_at >= to_utc(start_time))
    if end_time:
        query = query.where(messages.c.created_at < to_utc(end_time))

    with get_db_session() as session:
        rows = session.execute(query.order_by(messages.c.created_at, messages.c.id)).all()

    events = []
    for row in rows:
        metadata = row._mapping["metadata"]
        tool_usage = metadata["toolUsage"]
        events.append(
            UsageEvent(
                user_id=row.user_id,
                conversation_id=row.conversation_id,
                tool_name=tool_usage["toolName"],
                tool_type=tool_usage.get("toolType", TOOL_TYPE_AI),
                occurred_at=to_utc(row.created_at),
                metadata=metadata,
            )
        )
    return events
