"""Pydantic models used for request and response bodies.

These data transfer objects (DTOs) mirror the domain models but add
validation and serialization helpers for the API layer. Response models
read straight from the domain dataclasses (``from_attributes``).
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from ..scheduling.availability import require_slot_time
from ..scheduling.strategies import StrategyName
from .models import (
    WEEKDAYS,
    ActionType,
    AssignmentStatus,
    CandidateStatus,
    RescheduleMethod,
    normalize_availability,
)
from . import models

AVAILABILITY_EXAMPLE = {
    "monday": ["9:30AM-10:30AM", "2PM-3:30PM"],
    "tuesday": [],
    "wednesday": ["10:30AM-11:30AM"],
    "thursday": [],
    "friday": ["7PM-8:30PM"],
}


def validate_availability(value: Dict[str, List[str]]) -> Dict[str, List[str]]:
    """Reject unknown weekdays and labels without a parseable start time."""
    unknown = sorted(set(value) - set(WEEKDAYS))
    if unknown:
        raise ValueError(f"unknown weekdays: {', '.join(unknown)}")
    for labels in value.values():
        for label in labels:
            require_slot_time(label)
    return value


class CandidateIn(BaseModel):
    """Candidate supplied with a roster.

    Example:
        >>> CandidateIn(
        ...     roll_number="22B0001",
        ...     name="Carol",
        ...     email="carol@example.com",
        ...     availability={"monday": ["9:30AM-10:30AM"]},
        ... )
    """

    id: Optional[str] = None
    name: str = Field(min_length=1)
    roll_number: str = ""
    email: Optional[EmailStr] = None
    contact_number: Optional[str] = None
    department: Optional[str] = None
    availability: Dict[str, List[str]] = Field(default_factory=dict)

    @field_validator("availability")
    @classmethod
    def check_availability(cls, value):
        return validate_availability(value)

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "roll_number": "22B0001",
                "name": "Carol",
                "email": "carol@example.com",
                "department": "Physics",
                "availability": AVAILABILITY_EXAMPLE,
            }
        }

    def to_domain(self) -> models.Candidate:
        return models.Candidate(
            id=self.id or self.roll_number or uuid.uuid4().hex,
            name=self.name,
            roll_number=self.roll_number,
            email=self.email,
            contact_number=self.contact_number,
            department=self.department,
            availability=normalize_availability(self.availability),
        )


class InterviewerIn(BaseModel):
    """Interviewer supplied with a roster.

    Example:
        >>> InterviewerIn(name="Asha", availability={"monday": ["9:30AM-10:30AM"]})
    """

    id: Optional[str] = None
    name: str = Field(min_length=1)
    email: Optional[EmailStr] = None
    availability: Dict[str, List[str]] = Field(default_factory=dict)

    @field_validator("availability")
    @classmethod
    def check_availability(cls, value):
        return validate_availability(value)

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "name": "Asha",
                "email": "asha@example.com",
                "availability": AVAILABILITY_EXAMPLE,
            }
        }

    def to_domain(self) -> models.Interviewer:
        return models.Interviewer(
            id=self.id or self.email or uuid.uuid4().hex,
            name=self.name,
            email=self.email,
            availability=normalize_availability(self.availability),
        )


class Candidate(BaseModel):
    id: str
    name: str
    roll_number: str
    email: Optional[str] = None
    contact_number: Optional[str] = None
    department: Optional[str] = None
    availability: Dict[str, List[str]]
    status: CandidateStatus

    class Config:
        frozen = True
        from_attributes = True


class Interviewer(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    availability: Dict[str, List[str]]

    class Config:
        frozen = True
        from_attributes = True


class Assignment(BaseModel):
    """A booked interview.

    Example:
        >>> Assignment(
        ...     id="asg_1",
        ...     candidate_id="22B0001",
        ...     interviewer_ids=["iv_1", "iv_2"],
        ...     day_number=1,
        ...     slot_label="9:30AM-10:30AM",
        ...     start_time=datetime(2026, 1, 12, 4, 0),
        ...     end_time=datetime(2026, 1, 12, 5, 0),
        ...     status=AssignmentStatus.SCHEDULED,
        ...     completed=False,
        ... )
    """

    id: str
    candidate_id: str
    interviewer_ids: List[str]
    day_number: int
    slot_label: str
    start_time: datetime
    end_time: datetime
    status: AssignmentStatus
    completed: bool
    notes: Optional[str] = None
    last_rescheduled_from: Optional[str] = None
    last_rescheduled_to: Optional[str] = None
    last_rescheduled_at: Optional[datetime] = None
    reschedule_reason: Optional[str] = None
    reschedule_count: int = 0

    class Config:
        frozen = True
        from_attributes = True
        json_schema_extra = {
            "example": {
                "id": "asg_1",
                "candidate_id": "22B0001",
                "interviewer_ids": ["iv_1", "iv_2"],
                "day_number": 1,
                "slot_label": "9:30AM-10:30AM",
                "start_time": "2026-01-12T04:00:00Z",
                "end_time": "2026-01-12T05:00:00Z",
                "status": "SCHEDULED",
                "completed": False,
            }
        }


class HistoryEntry(BaseModel):
    id: str
    action_type: ActionType
    assignment_id: str
    details: str
    timestamp: datetime
    candidate_name: Optional[str] = None
    undone: bool

    class Config:
        frozen = True
        from_attributes = True


class ScheduleRequest(BaseModel):
    """Run a scheduling pass, optionally replacing the stored roster first.

    Example:
        >>> ScheduleRequest(strategy=StrategyName.BALANCED)
    """

    strategy: Optional[StrategyName] = None
    start_date: Optional[date] = None
    horizon_days: Optional[int] = Field(default=None, ge=1)
    candidates: Optional[List[CandidateIn]] = None
    interviewers: Optional[List[InterviewerIn]] = None

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {"strategy": "least_available", "start_date": "2026-01-12"}
        }


class Unscheduled(BaseModel):
    candidate: Candidate
    reason: str
    availability_score: int

    class Config:
        frozen = True
        from_attributes = True


class ScheduleResponse(BaseModel):
    strategy: StrategyName
    total_candidates: int
    scheduled_count: int
    unscheduled_count: int
    days_used: int
    weeks_used: int
    interviews_by_day: Dict[int, int]
    assignments: List[Assignment]
    unscheduled: List[Unscheduled]

    class Config:
        frozen = True
        from_attributes = True


class RescheduleRequest(BaseModel):
    reason: str = "Candidate unavailable"

    class Config:
        frozen = True
        json_schema_extra = {"example": {"reason": "Exam clash"}}


class AffectedCandidate(BaseModel):
    candidate_id: str
    name: str
    old_slot: str
    new_slot: str

    class Config:
        frozen = True
        from_attributes = True


class RescheduleResponse(BaseModel):
    success: bool
    message: str
    method: Optional[RescheduleMethod] = None
    error: Optional[str] = None
    assignment_id: Optional[str] = None
    candidate_name: Optional[str] = None
    affected: List[AffectedCandidate] = []
    affected_count: int = 0
    rescheduled: int = 0
    unscheduled: int = 0
    unscheduled_candidates: List[Unscheduled] = []
    created: List[Assignment] = []

    class Config:
        frozen = True
        from_attributes = True


class ActionResponse(BaseModel):
    success: bool
    message: str
    error: Optional[str] = None
    assignment: Optional[Assignment] = None

    class Config:
        frozen = True
        from_attributes = True


class CompareRequest(BaseModel):
    multi_run: bool = False
    iterations: int = Field(default=5, ge=1, le=100)

    class Config:
        frozen = True
        json_schema_extra = {"example": {"multi_run": True, "iterations": 5}}


class LoadStats(BaseModel):
    average: float
    min: int
    max: int
    variance: int

    class Config:
        frozen = True
        from_attributes = True


class StrategyRun(BaseModel):
    strategy: StrategyName
    title: str
    scheduled: int
    unscheduled: int
    days_used: int
    weeks_used: int
    execution_ms: float
    interviews_by_day: Dict[int, int]
    load: Optional[LoadStats] = None

    class Config:
        frozen = True
        from_attributes = True


class ComparisonReport(BaseModel):
    results: List[StrategyRun]
    most_scheduled: StrategyName
    fewest_days: StrategyName
    fastest: StrategyName
    most_balanced: StrategyName
    total_candidates: int
    timestamp: datetime

    class Config:
        frozen = True
        from_attributes = True


class MultiRunSummary(BaseModel):
    strategy: StrategyName
    title: str
    avg_scheduled: float
    avg_days_used: float
    min_days: int
    max_days: int
    avg_execution_ms: float

    class Config:
        frozen = True
        from_attributes = True


class MultiRunReport(BaseModel):
    results: List[MultiRunSummary]
    iterations: int
    best_avg_days: StrategyName
    best_min_days: StrategyName
    total_candidates: int
    timestamp: datetime

    class Config:
        frozen = True
        from_attributes = True


class Stats(BaseModel):
    total_candidates: int
    total_interviews: int
    scheduled: int
    completed: int
    cancelled: int
    unscheduled: int
    days_used: int
    weeks_used: int
    schedule_start_date: date
    current_day: int
    interviewers: List[Interviewer]

    class Config:
        frozen = True
        from_attributes = True


class ErrorResponse(BaseModel):
    error: str
    message: str

    class Config:
        frozen = True
