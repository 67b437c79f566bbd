"""
User domain service.
- get_or_create_user(user_id)
- get_user(user_id)

Subscriptions and conversations reference app_users, so callers upsert the
user before writing either. Database failures surface as
TransientLookupError (503, retryable).
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import select, insert
from sqlalchemy.exc import SQLAlchemyError

from hermes.core.database import get_db_session, users as app_users
from hermes.core.errors import TransientLookupError
from hermes.models.user import User

logger = logging.getLogger(__name__)


def get_user(user_id: str) -> Optional[User]:
    try:
        with get_db_session() as session:
            row = session.execute(select(app_users).where(app_users.c.user_id == user_id)).first()
    except SQLAlchemyError as e:
        logger.error("[users] lookup failed", extra={"user_id": user_id, "error": str(e)})
        raise TransientLookupError(f"User lookup failed for user {user_id}") from e
    if not row:
        return None
    return User(
        user_id=row.user_id,
        created_at=row.created_at,
        display_name=row.display_name or User.fallback_display_name(row.user_id),
        status=row.status,
    )


def get_or_create_user(user_id: str, display_name: Optional[str] = None) -> User:
    existing = get_user(user_id)
    if existing:
        return existing

    now = datetime.now(timezone.utc)
    display = User.fallback_display_name(user_id, display_name)
    try:
        with get_db_session() as session:
            session.execute(
                insert(app_users).values(
                    user_id=user_id,
                    display_name=display,
                    status="active",
                    created_at=now,
                )
            )
    except SQLAlchemyError as e:
        logger.error("[users] upsert failed", extra={"user_id": user_id, "error": str(e)})
        raise TransientLookupError(f"User upsert failed for user {user_id}") from e

    return User(user_id=user_id, created_at=now, display_name=display, status="active")
