"""
hermes/features/tool_access/service.py

Tool access decisions and usage reporting.

Handles:
- Per-request access checks (tier -> usage limits -> parameters)
- Available/restricted tool listing
- Usage-versus-limit stats for dashboards

Policy denials are returned as AccessCheckResult(allowed=False); they are
never raised. Persistence failures surface as TransientLookupError so a
caller can tell "try again" from "upgrade required". Nothing here writes:
usage is recorded by the caller after the tool succeeds, so concurrent
checks may briefly over-admit until those writes land.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, Union
from zoneinfo import ZoneInfo
import logging

from hermes.features.subscriptions.service import SubscriptionLookup
from hermes.features.tool_access.configs import TOOL_ACCESS_CONFIGS
from hermes.features.tool_access.limits import SUBSCRIPTION_LIMITS
from hermes.features.tool_access.parameters import PARAMETER_CHECKERS, ParameterChecker
from hermes.features.usage.service import TOOL_TYPE_AI, TOOL_TYPE_VOICE, UsageAggregator
from hermes.features.usage.windows import UsageWindow, day_window, get_zone, month_window
from hermes.models.subscription import SubscriptionTier
from hermes.models.tool_access import (
    AccessCheckResult,
    AvailableTools,
    RestrictedTool,
    RestrictionType,
    ToolAccessConfig,
)
from hermes.models.usage_limits import UsageLimits, is_unlimited
from hermes.models.usage_stats import UsageCounts, UsagePercentages, UsageStats


logger = logging.getLogger(__name__)


class TierResolver(Protocol):
    def resolve_tier(self, user_id: str) -> SubscriptionTier:
        ...


class UsageCounter(Protocol):
    def count_tool_usage(self, user_id: str, tool_name: str, start: datetime, end: datetime) -> int:
        ...

    def count_tool_type_usage(self, user_id: str, tool_type: str, start: datetime, end: datetime) -> int:
        ...

    def count_conversations(self, user_id: str, start: datetime, end: datetime) -> int:
        ...


def usage_percentage(count: int, limit: int) -> float:
    """Percent of limit used, clamped to [0, 100]; 0 when unlimited or zero."""
    if is_unlimited(limit) or limit <= 0:
        return 0.0
    percent = (count / limit) * 100
    return round(min(100.0, max(0.0, percent)), 2)


class ToolAccessController:
    """
    Decides whether a user may invoke a tool.

    Collaborators are injected so tests can substitute fakes:
        subscriptions: anything with resolve_tier(user_id)
        usage: anything with count_tool_usage / count_tool_type_usage / count_conversations
    """

    def __init__(
        self,
        subscriptions: Optional[TierResolver] = None,
        usage: Optional[UsageCounter] = None,
        *,
        configs: Optional[Mapping[str, ToolAccessConfig]] = None,
        limits: Optional[Mapping[SubscriptionTier, UsageLimits]] = None,
        parameter_checkers: Optional[Mapping[str, ParameterChecker]] = None,
        tz: Union[str, ZoneInfo, None] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._subscriptions = subscriptions or SubscriptionLookup()
        self._usage = usage or UsageAggregator()
        self._configs = configs if configs is not None else TOOL_ACCESS_CONFIGS
        self._limits = limits if limits is not None else SUBSCRIPTION_LIMITS
        self._checkers = parameter_checkers if parameter_checkers is not None else PARAMETER_CHECKERS
        self._zone = get_zone(tz)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # Access checks

    def check_tool_access(
        self,
        user_id: str,
        tool_name: str,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> AccessCheckResult:
        """
        Evaluate, in order: tier sufficiency, usage restrictions, parameter
        restrictions. The first failing rule decides the result.

        Raises:
            TransientLookupError: subscription or usage lookup failed
        """
        tier = self._subscriptions.resolve_tier(user_id)
        return self._evaluate(user_id, tool_name, tier, parameters, self._clock())

    def check_tools(
        self,
        user_id: str,
        requests: Iterable[Mapping[str, Any]],
    ) -> List[Dict[str, Any]]:
        """Check several {toolName, parameters?} requests against one tier lookup."""
        tier = self._subscriptions.resolve_tier(user_id)
        now = self._clock()
        results = []
        for request in requests:
            tool_name = request["toolName"]
            result = self._evaluate(user_id, tool_name, tier, request.get("parameters"), now)
            results.append({"toolName": tool_name, **result.to_payload()})
        return results

    def get_available_tools(self, user_id: str) -> AvailableTools:
        """Classify every configured tool as available or restricted for the user."""
        tier = self._subscriptions.resolve_tier(user_id)
        now = self._clock()
        available: List[str] = []
        restricted: List[RestrictedTool] = []
        for tool_name in self._configs:
            result = self._evaluate(user_id, tool_name, tier, None, now)
            if result.allowed:
                available.append(tool_name)
            else:
                restricted.append(
                    RestrictedTool(
                        tool_name=tool_name,
                        reason=result.reason or "Access restricted",
                        upgrade_required=result.upgrade_required,
                    )
                )
        return AvailableTools(available=available, restricted=restricted)

    def _evaluate(
        self,
        user_id: str,
        tool_name: str,
        tier: SubscriptionTier,
        parameters: Optional[Mapping[str, Any]],
        now: datetime,
    ) -> AccessCheckResult:
        config = self._configs.get(tool_name)
        if config is None:
            return AccessCheckResult.allow()

        if not tier.is_at_least(config.required_tier):
            result = AccessCheckResult.deny(
                f"{tool_name} requires {config.required_tier.value} subscription or higher",
                upgrade_required=config.required_tier,
            )
            return self._log_decision(user_id, tool_name, tier, result, "tier")

        result = self._check_usage_restrictions(user_id, config, tier, now)
        if not result.allowed:
            return self._log_decision(user_id, tool_name, tier, result, "usage")

        if parameters:
            result = self._check_parameter_restrictions(config, tier, parameters)
            if not result.allowed:
                return self._log_decision(user_id, tool_name, tier, result, "parameter")

        return self._log_decision(user_id, tool_name, tier, AccessCheckResult.allow(), None)

    def _check_usage_restrictions(
        self,
        user_id: str,
        config: ToolAccessConfig,
        tier: SubscriptionTier,
        now: datetime,
    ) -> AccessCheckResult:
        usage_cache: Dict[RestrictionType, int] = {}

        def window_usage(kind: RestrictionType, window: UsageWindow) -> int:
            if kind not in usage_cache:
                usage_cache[kind] = self._usage.count_tool_usage(
                    user_id, config.tool_name, window.start, window.end
                )
            return usage_cache[kind]

        for restriction in config.restrictions_for(tier):
            if restriction.type in (RestrictionType.USAGE_PER_DAY, RestrictionType.USAGE_PER_MONTH):
                limit = restriction.value
                if is_unlimited(limit):
                    continue
                if restriction.type == RestrictionType.USAGE_PER_DAY:
                    window = day_window(now, self._zone)
                else:
                    window = month_window(now, self._zone)
                used = window_usage(restriction.type, window)
                if used >= limit:
                    return AccessCheckResult.deny(
                        restriction.description,
                        current_usage=used,
                        limit=limit,
                        resets_at=window.end,
                    )
            elif restriction.type == RestrictionType.FEATURE_DISABLED:
                if restriction.value is True:
                    return AccessCheckResult.deny(
                        restriction.description,
                        upgrade_required=tier.next_tier(),
                    )
            # parameter_limited is evaluated once usage passes

        return AccessCheckResult.allow()

    def _check_parameter_restrictions(
        self,
        config: ToolAccessConfig,
        tier: SubscriptionTier,
        parameters: Mapping[str, Any],
    ) -> AccessCheckResult:
        checker = self._checkers.get(config.tool_name)
        if checker is None:
            return AccessCheckResult.allow()

        for restriction in config.restrictions_for(tier):
            if restriction.type != RestrictionType.PARAMETER_LIMITED:
                continue
            violation = checker(restriction.value, parameters)
            if violation is not None:
                return AccessCheckResult.deny(
                    violation.reason,
                    upgrade_required=violation.upgrade_required,
                )
        return AccessCheckResult.allow()

    def _log_decision(
        self,
        user_id: str,
        tool_name: str,
        tier: SubscriptionTier,
        result: AccessCheckResult,
        stage: Optional[str],
    ) -> AccessCheckResult:
        if result.allowed:
            logger.debug(
                "[tool_access] ALLOWED",
                extra={"user_id": user_id, "tool_name": tool_name, "tier": tier.value},
            )
        else:
            logger.info(
                "[tool_access] DENIED",
                extra={
                    "user_id": user_id,
                    "tool_name": tool_name,
                    "tier": tier.value,
                    "stage": stage,
                    "reason": result.reason,
                    "upgrade_required": result.upgrade_required.value if result.upgrade_required else None,
                    "current_usage": result.current_usage,
                    "limit": result.limit,
                },
            )
        return result

    # Usage stats

    def get_subscription_usage_stats(self, user_id: str) -> UsageStats:
        """Current tier, its limits, window usage and percentage of each limit used."""
        tier = self._subscriptions.resolve_tier(user_id)
        limits = self._limits[tier]
        now = self._clock()
        today = day_window(now, self._zone)
        this_month = month_window(now, self._zone)

        usage = UsageCounts(
            daily_tool_calls=self._usage.count_tool_type_usage(user_id, TOOL_TYPE_AI, today.start, today.end),
            monthly_tool_calls=self._usage.count_tool_type_usage(user_id, TOOL_TYPE_AI, this_month.start, this_month.end),
            daily_voice_generations=self._usage.count_tool_type_usage(user_id, TOOL_TYPE_VOICE, today.start, today.end),
            monthly_voice_generations=self._usage.count_tool_type_usage(user_id, TOOL_TYPE_VOICE, this_month.start, this_month.end),
            daily_conversations=self._usage.count_conversations(user_id, today.start, today.end),
        )
        percentages = UsagePercentages(
            daily_tools=usage_percentage(usage.daily_tool_calls, limits.daily_tool_calls),
            monthly_tools=usage_percentage(usage.monthly_tool_calls, limits.monthly_tool_calls),
            daily_voice=usage_percentage(usage.daily_voice_generations, limits.voice_generations_per_day),
            monthly_voice=usage_percentage(usage.monthly_voice_generations, limits.voice_generations_per_month),
            daily_conversations=usage_percentage(usage.daily_conversations, limits.conversations_per_day),
        )
        return UsageStats(
            current_tier=tier,
            limits=limits,
            usage=usage,
            percentages_used=percentages,
        )


def get_tool_access_controller() -> ToolAccessController:
    """Default controller wired to the database (FastAPI dependency)."""
    return ToolAccessController(SubscriptionLookup(), UsageAggregator())
