"""
hermes/features/tool_access/parameters.py

Parameter restriction checkers.

A tool restricted with parameter_limited(mode) owns a checker that inspects
the invocation parameters under that mode. Checkers are pure:
(mode, parameters) -> ParameterViolation | None. A mode a checker does not
know never denies, and a parameter_limited tool with no checker (the
MASTER-only gpt5_thinking_mode and transformation_program) is never
denied on parameters.
"""

from typing import Any, Callable, Dict, Mapping, Optional

from hermes.features.tool_access.limits import SUBSCRIPTION_LIMITS
from hermes.models.subscription import SubscriptionTier, TIER_ORDER
from hermes.models.tool_access import ParameterViolation
from hermes.models.usage_limits import AnalyticsAccessLevel


ParameterChecker = Callable[[str, Mapping[str, Any]], Optional[ParameterViolation]]

PARAMETER_CHECKERS: Dict[str, ParameterChecker] = {}


def register_parameter_checker(tool_name: str, checker: Optional[ParameterChecker] = None):
    """Register a checker for a tool; usable as a decorator."""
    def _register(fn: ParameterChecker) -> ParameterChecker:
        PARAMETER_CHECKERS[tool_name] = fn
        return fn

    if checker is not None:
        return _register(checker)
    return _register


def get_parameter_checker(tool_name: str) -> Optional[ParameterChecker]:
    return PARAMETER_CHECKERS.get(tool_name)


def allow_list_checker(
    mode: str,
    parameter: str,
    allowed: frozenset,
    reason: str,
    unlocks_at: SubscriptionTier,
) -> ParameterChecker:
    """Checker denying values of one parameter outside an allow-list under one mode."""
    def _check(active_mode: str, parameters: Mapping[str, Any]) -> Optional[ParameterViolation]:
        if active_mode != mode:
            return None
        value = parameters.get(parameter)
        if value is None:
            return None
        if isinstance(value, str) and value in allowed:
            return None
        return ParameterViolation(reason=reason, upgrade_required=unlocks_at)

    return _check


BASIC_SPREADS = frozenset({"three_card", "simple_cross"})
BASIC_VOICES = frozenset({"alloy", "echo", "fable"})
BASIC_SIGIL_METHODS = frozenset({"simple"})


register_parameter_checker("tarot_reader", allow_list_checker(
    "basic_spreads", "spread", BASIC_SPREADS,
    "Advanced spreads require MASTER subscription", SubscriptionTier.MASTER,
))
register_parameter_checker("voice_generation", allow_list_checker(
    "basic_voices", "voice", BASIC_VOICES,
    "Premium voices require ADEPT subscription", SubscriptionTier.ADEPT,
))
register_parameter_checker("sigil_creator", allow_list_checker(
    "basic_methods", "method", BASIC_SIGIL_METHODS,
    "Advanced methods require MASTER subscription", SubscriptionTier.MASTER,
))


def _tier_for_analytics_level(level: AnalyticsAccessLevel) -> SubscriptionTier:
    for tier in TIER_ORDER:
        if SUBSCRIPTION_LIMITS[tier].analytics_access_level.rank >= level.rank:
            return tier
    return TIER_ORDER[-1]


@register_parameter_checker("analytics_spiritual")
def check_analytics_level(mode: str, parameters: Mapping[str, Any]) -> Optional[ParameterViolation]:
    """Deny a requested analytics `level` above the tier's access level (the mode)."""
    requested = parameters.get("level")
    if requested is None:
        return None
    try:
        granted = AnalyticsAccessLevel(mode)
    except ValueError:
        return None
    try:
        wanted = AnalyticsAccessLevel(requested)
    except ValueError:
        # Unknown levels are only served by the full suite
        wanted = AnalyticsAccessLevel.FULL
    if wanted.rank <= granted.rank:
        return None
    unlock = _tier_for_analytics_level(wanted)
    return ParameterViolation(
        reason=f"{wanted.value.capitalize()} analytics require {unlock.value} subscription",
        upgrade_required=unlock,
    )


register_parameter_checker("analytics_tools", allow_list_checker(
    "basic", "level", frozenset({AnalyticsAccessLevel.BASIC.value}),
    "Complete tool analytics require MASTER subscription", SubscriptionTier.MASTER,
))
