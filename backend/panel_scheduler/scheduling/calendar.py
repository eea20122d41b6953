"""Mapping between abstract day numbers and calendar time.

Day numbers are 1-based and count weekdays only: days 1-5 are the Monday to
Friday of the first campaign week, 6-10 the second week, and so on. Slot
labels are local civil time at a fixed +05:30 offset; timestamps handed to
storage are UTC.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional

import pytz

from ..domain.models import WEEKDAYS
from .availability import require_slot_time

UTC = pytz.UTC
LOCAL_TZ = pytz.FixedOffset(330)
INTERVIEW_DURATION = timedelta(minutes=60)


def day_number_to_weekday(day_number: int) -> str:
    return WEEKDAYS[(day_number - 1) % 5]


def week_number(day_number: int) -> int:
    """1-based campaign week containing ``day_number``."""
    return (day_number + 4) // 5


def week_end_day(day_number: int) -> int:
    """Day number of the Friday closing ``day_number``'s week."""
    return week_number(day_number) * 5


def first_monday(campaign_start: date) -> date:
    """First Monday on or after ``campaign_start``."""
    if isinstance(campaign_start, datetime):
        campaign_start = campaign_start.date()
    return campaign_start + timedelta(days=(7 - campaign_start.weekday()) % 7)


def slot_date(day_number: int, campaign_start: date) -> date:
    if day_number < 1:
        raise ValueError(f"day numbers start at 1, got {day_number}")
    week, weekday = divmod(day_number - 1, 5)
    return first_monday(campaign_start) + timedelta(days=week * 7 + weekday)


def resolve_start_time(day_number: int, slot_label: str, campaign_start: date) -> datetime:
    """Aware UTC start of ``slot_label`` on ``day_number``.

    Early-morning local slots fall on the previous UTC day.
    """
    hours, minutes = require_slot_time(slot_label)
    local = LOCAL_TZ.localize(
        datetime.combine(slot_date(day_number, campaign_start), time(hours, minutes))
    )
    return local.astimezone(UTC)


def resolve_end_time(start_time: datetime) -> datetime:
    return start_time + INTERVIEW_DURATION


def to_local(timestamp: datetime) -> datetime:
    if timestamp.tzinfo is None:
        timestamp = UTC.localize(timestamp)
    return timestamp.astimezone(LOCAL_TZ)


def day_number_for(timestamp: datetime, campaign_start: date) -> int:
    """Inverse of :func:`resolve_start_time` for the day part."""
    offset = (to_local(timestamp).date() - first_monday(campaign_start)).days
    if offset < 0:
        raise ValueError(f"{timestamp.isoformat()} is before the campaign starts")
    week, weekday = divmod(offset, 7)
    if weekday > 4:
        raise ValueError(f"{timestamp.isoformat()} falls on a weekend")
    return week * 5 + weekday + 1


def current_day_number(campaign_start: date, today: date) -> int:
    """Day number for ``today``; 1 before the campaign, Friday on weekends."""
    if isinstance(today, datetime):
        today = to_local(today).date()
    offset = (today - first_monday(campaign_start)).days
    if offset < 0:
        return 1
    week, weekday = divmod(offset, 7)
    return week * 5 + min(weekday, 4) + 1


def local_day_bounds(moment: datetime):
    """UTC [start, end) of the local civil day containing ``moment``."""
    local_day = to_local(moment).date()
    start = LOCAL_TZ.localize(datetime.combine(local_day, time(0, 0))).astimezone(UTC)
    return start, start + timedelta(days=1)


def describe_slot(day_number: int, slot_label: Optional[str] = None) -> str:
    text = (
        f"Day {day_number} (Week {week_number(day_number)}, "
        f"{day_number_to_weekday(day_number).capitalize()})"
    )
    if slot_label:
        text = f"{text} {slot_label}"
    return text
