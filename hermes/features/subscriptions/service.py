"""
hermes/features/subscriptions/service.py

Subscription lookup and billing-sync writers.

Handles:
- Tier resolution for access checks (read-only)
- Recording and updating subscription rows (billing sync only)
"""

from datetime import datetime, timezone
from typing import Callable, ContextManager, Optional
import logging
from sqlalchemy import select, insert, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hermes.core.database import get_db_session, subscriptions
from hermes.core.errors import NotFoundError, TransientLookupError
from hermes.features.usage.windows import to_utc
from hermes.models.subscription import Subscription, SubscriptionStatus, SubscriptionTier


logger = logging.getLogger(__name__)

SessionFactory = Callable[[], ContextManager[Session]]


def _row_to_subscription(row) -> Subscription:
    return Subscription(
        id=row.id,
        user_id=row.user_id,
        plan=SubscriptionTier(row.plan),
        status=SubscriptionStatus(row.status),
        created_at=to_utc(row.created_at),
    )


class SubscriptionLookup:
    """Resolves a user's current tier from persisted subscription rows."""

    def __init__(self, session_factory: Optional[SessionFactory] = None):
        self._session_factory = session_factory or get_db_session

    def get_active_subscription(self, user_id: str) -> Optional[Subscription]:
        """Most recently created ACTIVE subscription, or None."""
        query = (
            select(subscriptions)
            .where(subscriptions.c.user_id == user_id)
            .where(subscriptions.c.status == SubscriptionStatus.ACTIVE.value)
            .order_by(subscriptions.c.created_at.desc(), subscriptions.c.id.desc())
            .limit(1)
        )
        try:
            with self._session_factory() as session:
                row = session.execute(query).first()
        except SQLAlchemyError as e:
            logger.error(
                "[subscriptions] lookup failed",
                extra={"user_id": user_id, "error": str(e)},
            )
            raise TransientLookupError(f"Subscription lookup failed for user {user_id}") from e

        if not row:
            return None
        try:
            return _row_to_subscription(row)
        except ValueError as e:
            # Unknown plan/status strings are corrupt data, not a free tier
            raise TransientLookupError(f"Malformed subscription record {row.id}") from e

    def resolve_tier(self, user_id: str) -> SubscriptionTier:
        """Plan of the newest ACTIVE subscription; lowest tier when none."""
        subscription = self.get_active_subscription(user_id)
        if subscription is None:
            return SubscriptionTier.lowest()
        return subscription.plan


def record_subscription(
    user_id: str,
    plan: SubscriptionTier,
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
    created_at: Optional[datetime] = None,
) -> Subscription:
    """
    Insert a subscription row (billing sync / checkout completion).

    The user row must already exist.
    """
    created = to_utc(created_at) if created_at else datetime.now(timezone.utc)
    plan = SubscriptionTier(plan)
    status = SubscriptionStatus(status)
    with get_db_session() as session:
        result = session.execute(
            insert(subscriptions).values(
                user_id=user_id,
                plan=plan.value,
                status=status.value,
                created_at=created,
                updated_at=created,
            )
        )
        subscription_id = result.inserted_primary_key[0]

    logger.info(
        "[subscriptions] recorded",
        extra={"user_id": user_id, "plan": plan.value, "status": status.value},
    )
    return Subscription(
        id=subscription_id,
        user_id=user_id,
        plan=plan,
        status=status,
        created_at=created,
    )


def update_subscription_status(subscription_id: int, status: SubscriptionStatus) -> Subscription:
    """Move a subscription to a new status (webhook-driven)."""
    status = SubscriptionStatus(status)
    with get_db_session() as session:
        result = session.execute(
            update(subscriptions)
            .where(subscriptions.c.id == subscription_id)
            .values(status=status.value, updated_at=datetime.now(timezone.utc))
        )
        if result.rowcount == 0:
            raise NotFoundError(f"Subscription {subscription_id} not found")
        row = session.execute(
            select(subscriptions).where(subscriptions.c.id == subscription_id)
        ).first()

    logger.info(
        "[subscriptions] status changed",
        extra={"subscription_id": subscription_id, "status": status.value},
    )
    return _row_to_subscription(row)
