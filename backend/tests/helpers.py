"""Builders shared by the test modules."""

from datetime import date
from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))
from panel_scheduler.domain.models import (  # noqa: E402
    WEEKDAYS,
    Assignment,
    AssignmentStatus,
    Candidate,
    Interviewer,
)
from panel_scheduler.scheduling.calendar import (  # noqa: E402
    resolve_end_time,
    resolve_start_time,
)

START = date(2026, 1, 12)  # a Monday
MORNING = "9:30AM-10:30AM"
LATE_MORNING = "10:30AM-11:30AM"
AFTERNOON = "2PM-3:30PM"
EVENING = "7PM-8:30PM"
ALL_SLOTS = (MORNING, LATE_MORNING, AFTERNOON, EVENING)


def week(*labels):
    """The same labels on every weekday."""
    return {day: tuple(labels) for day in WEEKDAYS}


def candidate(cid, availability=None, name=None, **kwargs):
    return Candidate(
        id=cid,
        name=name or cid.title(),
        roll_number=cid,
        availability=availability or {},
        **kwargs,
    )


def interviewer_pair(availability=None):
    availability = availability if availability is not None else week(*ALL_SLOTS)
    return [
        Interviewer(id="iv_a", name="Asha", availability=availability),
        Interviewer(id="iv_b", name="Bilal", availability=availability),
    ]


def assignment(aid, candidate_id, day_number, slot_label, status=AssignmentStatus.SCHEDULED, **kwargs):
    start = resolve_start_time(day_number, slot_label, START)
    return Assignment(
        id=aid,
        candidate_id=candidate_id,
        interviewer_ids=("iv_a", "iv_b"),
        day_number=day_number,
        slot_label=slot_label,
        start_time=start,
        end_time=resolve_end_time(start),
        status=status,
        **kwargs,
    )
