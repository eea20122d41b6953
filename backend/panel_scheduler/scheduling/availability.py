"""Three-way availability intersection.

Every strategy, the reschedule coordinator and the comparator go through
these functions so that they agree on what "free" means.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from ..core.errors import InvalidSlotLabelError
from ..domain.models import WEEKDAYS

_START_TIME = re.compile(r"^\s*(\d{1,2})(?::(\d{2}))?\s*(AM|PM)", re.IGNORECASE)


def parse_slot_time(label: str) -> Optional[Tuple[int, int]]:
    """Return the (hours, minutes) a slot label starts at, or ``None``.

    Only the start of the label is read, so "9:30AM-10:30AM" and "7PM-8:30PM"
    give (9, 30) and (19, 0). 12AM is midnight, 12PM is noon.
    """
    match = _START_TIME.match(label or "")
    if not match:
        return None
    hours = int(match.group(1))
    minutes = int(match.group(2)) if match.group(2) else 0
    meridiem = match.group(3).upper()
    if hours > 12 or minutes > 59:
        return None
    if meridiem == "PM" and hours != 12:
        hours += 12
    if meridiem == "AM" and hours == 12:
        hours = 0
    return hours, minutes


def require_slot_time(label: str) -> Tuple[int, int]:
    parsed = parse_slot_time(label)
    if parsed is None:
        raise InvalidSlotLabelError(f"Cannot read a start time from slot {label!r}")
    return parsed


def slot_sort_key(label: str):
    # unparseable labels sort after every parseable one
    parsed = parse_slot_time(label)
    if parsed is None:
        return (1, 0, 0, label)
    return (0, parsed[0], parsed[1], label)


def common_slots(weekday: str, candidate, interviewer_a, interviewer_b) -> List[str]:
    """Labels all three parties share on ``weekday``, earliest first."""
    mine = set(candidate.availability.get(weekday) or ())
    shared = (
        mine
        & set(interviewer_a.availability.get(weekday) or ())
        & set(interviewer_b.availability.get(weekday) or ())
    )
    return sorted(shared, key=slot_sort_key)


def availability_score(candidate, interviewer_a, interviewer_b) -> int:
    """Number of three-way common slots summed over the working week."""
    return sum(
        len(common_slots(day, candidate, interviewer_a, interviewer_b))
        for day in WEEKDAYS
    )
