"""
hermes/models/tool_access.py

Tool access configuration and access-check results.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from hermes.models.subscription import SubscriptionTier


class RestrictionType(str, Enum):
    USAGE_PER_DAY = "usage_per_day"
    USAGE_PER_MONTH = "usage_per_month"
    FEATURE_DISABLED = "feature_disabled"
    PARAMETER_LIMITED = "parameter_limited"


_VALUE_TYPES = {
    RestrictionType.USAGE_PER_DAY: int,
    RestrictionType.USAGE_PER_MONTH: int,
    RestrictionType.FEATURE_DISABLED: bool,
    RestrictionType.PARAMETER_LIMITED: str,
}


class ToolRestriction(BaseModel):
    """
    A tier-specific rule on a tool.

    Value by type:
    - usage_per_day / usage_per_month (int): window ceiling, -1 = unlimited
    - feature_disabled (bool): True disables the tool at this tier
    - parameter_limited (str): checker mode, e.g. "basic_spreads"
    """
    model_config = ConfigDict(frozen=True)

    type: RestrictionType
    value: Union[bool, int, str]
    description: str

    @model_validator(mode="after")
    def _check_value_type(self) -> "ToolRestriction":
        expected = _VALUE_TYPES[self.type]
        value = self.value
        # bool is a subclass of int; usage limits must be real integers
        if expected is int and isinstance(value, bool):
            raise ValueError(f"{self.type.value} requires an integer limit")
        if not isinstance(value, expected):
            raise ValueError(f"{self.type.value} requires a {expected.__name__} value")
        return self

    @classmethod
    def usage_per_day(cls, limit: int, description: str) -> "ToolRestriction":
        return cls(type=RestrictionType.USAGE_PER_DAY, value=limit, description=description)

    @classmethod
    def usage_per_month(cls, limit: int, description: str) -> "ToolRestriction":
        return cls(type=RestrictionType.USAGE_PER_MONTH, value=limit, description=description)

    @classmethod
    def feature_disabled(cls, description: str, disabled: bool = True) -> "ToolRestriction":
        return cls(type=RestrictionType.FEATURE_DISABLED, value=disabled, description=description)

    @classmethod
    def parameter_limited(cls, mode: str, description: str) -> "ToolRestriction":
        return cls(type=RestrictionType.PARAMETER_LIMITED, value=mode, description=description)


class ToolAccessConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    tool_name: str
    required_tier: SubscriptionTier
    free_tier_limit: Optional[int] = None
    basic_tier_limit: Optional[int] = None
    premium_features: List[str] = Field(default_factory=list)
    restrictions: Dict[SubscriptionTier, List[ToolRestriction]] = Field(default_factory=dict)

    def restrictions_for(self, tier: SubscriptionTier) -> List[ToolRestriction]:
        return list(self.restrictions.get(tier, []))


class ParameterViolation(BaseModel):
    """A parameter value the caller's tier may not use."""
    model_config = ConfigDict(frozen=True)

    reason: str
    upgrade_required: SubscriptionTier


class AccessCheckResult(BaseModel):
    """
    Outcome of an access check.

    Denials are ordinary results: reason is set whenever allowed is False,
    and upgrade_required / current_usage / limit / resets_at are filled in
    when they apply.
    """
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    allowed: bool
    reason: Optional[str] = None
    upgrade_required: Optional[SubscriptionTier] = None
    current_usage: Optional[int] = None
    limit: Optional[int] = None
    resets_at: Optional[datetime] = None

    @classmethod
    def allow(cls) -> "AccessCheckResult":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str, **fields: Any) -> "AccessCheckResult":
        return cls(allowed=False, reason=reason, **fields)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RestrictedTool(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    tool_name: str
    reason: str
    upgrade_required: Optional[SubscriptionTier] = None


class AvailableTools(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    available: List[str] = Field(default_factory=list)
    restricted: List[RestrictedTool] = Field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
