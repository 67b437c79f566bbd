"""
Calendar windows for usage aggregation.

"Today" is [local midnight, next local midnight) and "this month" is
[1st 00:00, 1st of next month 00:00), both in the configured zone. Windows
are built from calendar dates so DST transitions give 23/25-hour days
rather than shifted boundaries.
"""

from datetime import date, datetime, time, timezone
from typing import NamedTuple, Optional, Union
from zoneinfo import ZoneInfo

from hermes.core.config import settings


class UsageWindow(NamedTuple):
    start: datetime
    end: datetime  # exclusive; also the moment the window's usage resets


def get_zone(tz: Union[str, ZoneInfo, None] = None) -> ZoneInfo:
    if isinstance(tz, ZoneInfo):
        return tz
    return ZoneInfo(tz or settings.USAGE_TIMEZONE)


def to_utc(value: datetime) -> datetime:
    """Normalise a timestamp to aware UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _local_now(now: Optional[datetime], zone: ZoneInfo) -> datetime:
    if now is None:
        return datetime.now(zone)
    return to_utc(now).astimezone(zone)


def _midnight(day: date, zone: ZoneInfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=zone)


def day_window(now: Optional[datetime] = None, tz: Union[str, ZoneInfo, None] = None) -> UsageWindow:
    zone = get_zone(tz)
    today = _local_now(now, zone).date()
    tomorrow = date.fromordinal(today.toordinal() + 1)
    return UsageWindow(_midnight(today, zone), _midnight(tomorrow, zone))


def month_window(now: Optional[datetime] = None, tz: Union[str, ZoneInfo, None] = None) -> UsageWindow:
    zone = get_zone(tz)
    today = _local_now(now, zone).date()
    first = today.replace(day=1)
    if first.month == 12:
        next_first = first.replace(year=first.year + 1, month=1)
    else:
        next_first = first.replace(month=first.month + 1)
    return UsageWindow(_midnight(first, zone), _midnight(next_first, zone))
