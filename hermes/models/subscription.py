"""
hermes/models/subscription.py

Subscription tiers and subscription records.

Tiers are totally ordered: every tier holds all privileges of the tiers
below it.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict


class SubscriptionTier(str, Enum):
    """Subscription plan level, lowest first."""
    FREE_TRIAL = "FREE_TRIAL"
    SEEKER = "SEEKER"
    ADEPT = "ADEPT"
    MASTER = "MASTER"

    @classmethod
    def lowest(cls) -> "SubscriptionTier":
        return TIER_ORDER[0]

    @property
    def rank(self) -> int:
        return TIER_ORDER.index(self)

    def is_at_least(self, other: "SubscriptionTier") -> bool:
        return self.rank >= other.rank

    def next_tier(self) -> Optional["SubscriptionTier"]:
        """Tier directly above this one, or None at the top."""
        if self.rank + 1 >= len(TIER_ORDER):
            return None
        return TIER_ORDER[self.rank + 1]


TIER_ORDER = (
    SubscriptionTier.FREE_TRIAL,
    SubscriptionTier.SEEKER,
    SubscriptionTier.ADEPT,
    SubscriptionTier.MASTER,
)


class SubscriptionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    TRIAL = "TRIAL"
    PAST_DUE = "PAST_DUE"
    CANCELED = "CANCELED"
    PAUSED = "PAUSED"


class Subscription(BaseModel):
    """
    Subscription record owned by billing sync.

    The access core only reads these; only ACTIVE rows grant their plan.
    """
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    user_id: str
    plan: SubscriptionTier
    status: SubscriptionStatus
    created_at: datetime
