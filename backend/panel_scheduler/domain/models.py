"""Core domain entities represented as immutable dataclasses.

Each model is lightweight and independent of any persistence concerns.
State changes produce new instances via :func:`dataclasses.replace`; the
store is the only place where the "current" version of a record lives.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Tuple

WEEKDAYS: Tuple[str, ...] = ("monday", "tuesday", "wednesday", "thursday", "friday")

# weekday -> slot labels, e.g. {"monday": ("9:30AM-10:30AM",)}
Availability = Dict[str, Tuple[str, ...]]


class CandidateStatus(str, Enum):
    PENDING = "PENDING"
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"


class AssignmentStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ActionType(str, Enum):
    COMPLETE = "COMPLETE"
    RESCHEDULE = "RESCHEDULE"


class RescheduleMethod(str, Enum):
    SWAP = "SWAP"
    REBUILD = "REBUILD"


def normalize_availability(raw) -> Availability:
    """Return a weekday-complete availability map with de-duplicated labels.

    Unknown weekday keys are dropped; label order is preserved.
    """
    raw = raw or {}
    result: Availability = {}
    for day in WEEKDAYS:
        labels = raw.get(day) or ()
        seen: Dict[str, None] = {}
        for label in labels:
            label = str(label).strip()
            if label:
                seen.setdefault(label, None)
        result[day] = tuple(seen)
    return result


@dataclass(frozen=True)
class Candidate:
    """Person to be interviewed.

    Example:
        >>> Candidate(
        ...     id="cand_1",
        ...     name="Carol",
        ...     roll_number="22B0001",
        ...     availability={"monday": ("9:30AM-10:30AM",)},
        ... )
    """

    id: str
    name: str
    roll_number: str = ""
    email: Optional[str] = None
    contact_number: Optional[str] = None
    department: Optional[str] = None
    availability: Availability = field(default_factory=dict)
    status: CandidateStatus = CandidateStatus.PENDING


@dataclass(frozen=True)
class Interviewer:
    """One half of the interviewer pair that runs every session.

    Example:
        >>> Interviewer(
        ...     id="iv_1",
        ...     name="Asha",
        ...     availability={"monday": ("9:30AM-10:30AM",)},
        ... )
    """

    id: str
    name: str
    email: Optional[str] = None
    availability: Availability = field(default_factory=dict)


@dataclass(frozen=True)
class Assignment:
    """A booked interview: one candidate, two interviewers, one slot.

    ``status`` is the single source of truth; ``completed`` is derived.

    Example:
        >>> Assignment(
        ...     id="asg_1",
        ...     candidate_id="cand_1",
        ...     interviewer_ids=("iv_1", "iv_2"),
        ...     day_number=1,
        ...     slot_label="9:30AM-10:30AM",
        ...     start_time=datetime(2026, 1, 12, 4, 0),
        ...     end_time=datetime(2026, 1, 12, 5, 0),
        ... )
    """

    id: str
    candidate_id: str
    interviewer_ids: Tuple[str, str]
    day_number: int
    slot_label: str
    start_time: datetime
    end_time: datetime
    status: AssignmentStatus = AssignmentStatus.SCHEDULED
    notes: Optional[str] = None
    last_rescheduled_from: Optional[str] = None
    last_rescheduled_to: Optional[str] = None
    last_rescheduled_at: Optional[datetime] = None
    reschedule_reason: Optional[str] = None
    reschedule_count: int = 0

    @property
    def completed(self) -> bool:
        return self.status == AssignmentStatus.COMPLETED

    @property
    def active(self) -> bool:
        return self.status != AssignmentStatus.CANCELLED

    @property
    def slot_key(self) -> Tuple[int, str]:
        return (self.day_number, self.slot_label)


@dataclass(frozen=True)
class ActionHistoryEntry:
    """Append-only record of a completion or reschedule.

    Example:
        >>> ActionHistoryEntry(
        ...     id="act_1",
        ...     action_type=ActionType.COMPLETE,
        ...     assignment_id="asg_1",
        ...     details="Marked Carol complete",
        ...     timestamp=datetime(2026, 1, 12, 5, 0),
        ... )
    """

    id: str
    action_type: ActionType
    assignment_id: str
    details: str
    timestamp: datetime
    candidate_name: Optional[str] = None
    undone: bool = False
