"""Greedy day-wise interview schedulers.

All four strategies share the same booking run: a set of booked
``(day_number, slot_label)`` keys owned by the run, earliest-slot selection
within a day, and the same failure reasons. They differ only in the order
candidates are visited and, for the balanced strategy, the order days are
tried.
"""

from __future__ import annotations

import logging
import random
import uuid
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..core.errors import ConfigurationError
from ..domain.models import Assignment, AssignmentStatus, Candidate, Interviewer
from .availability import availability_score, common_slots
from .calendar import (
    day_number_to_weekday,
    describe_slot,
    resolve_end_time,
    resolve_start_time,
    week_number,
)

logger = logging.getLogger(__name__)

NO_COMMON_SLOTS = "no common slots"
NO_SLOT_IN_HORIZON = "no slot found within horizon"

SlotKey = Tuple[int, str]


class StrategyName(str, Enum):
    LEAST_AVAILABLE = "least_available"
    MOST_AVAILABLE = "most_available"
    RANDOM = "random"
    BALANCED = "balanced"


@dataclass(frozen=True)
class ScoredCandidate:
    candidate: Candidate
    score: int


@dataclass(frozen=True)
class UnscheduledCandidate:
    candidate: Candidate
    reason: str
    availability_score: int


@dataclass
class SchedulingResult:
    strategy: StrategyName
    total_candidates: int
    assignments: List[Assignment] = field(default_factory=list)
    unscheduled: List[UnscheduledCandidate] = field(default_factory=list)
    interviews_by_day: Dict[int, int] = field(default_factory=dict)

    @property
    def scheduled_count(self) -> int:
        return len(self.assignments)

    @property
    def unscheduled_count(self) -> int:
        return len(self.unscheduled)

    @property
    def days_used(self) -> int:
        return max((a.day_number for a in self.assignments), default=0)

    @property
    def weeks_used(self) -> int:
        return week_number(self.days_used) if self.days_used else 0


class BookingRun:
    """Mutable state of one scheduling pass.

    The run owns the booked-slot set; it is discarded when the pass ends.
    Keys passed in ``booked`` are treated as already taken.
    """

    def __init__(
        self,
        interviewer_a: Interviewer,
        interviewer_b: Interviewer,
        campaign_start: date,
        horizon_days: int,
        min_day_number: int = 1,
        booked: Optional[Iterable[SlotKey]] = None,
    ) -> None:
        self.interviewer_a = interviewer_a
        self.interviewer_b = interviewer_b
        self.campaign_start = campaign_start
        self.horizon_days = horizon_days
        self.min_day_number = max(1, min_day_number)
        self.booked: Set[SlotKey] = set(booked or ())
        self.load: Dict[int, int] = {}

    def days(self) -> range:
        return range(self.min_day_number, self.horizon_days + 1)

    def free_slots(self, candidate: Candidate, day_number: int) -> List[str]:
        """Unbooked common slots on ``day_number``, earliest first."""
        weekday = day_number_to_weekday(day_number)
        return [
            label
            for label in common_slots(
                weekday, candidate, self.interviewer_a, self.interviewer_b
            )
            if (day_number, label) not in self.booked
        ]

    def book(self, candidate: Candidate, day_number: int, slot_label: str) -> Assignment:
        key = (day_number, slot_label)
        if key in self.booked:
            raise RuntimeError(f"{describe_slot(day_number, slot_label)} is already booked")
        self.booked.add(key)
        self.load[day_number] = self.load.get(day_number, 0) + 1
        start_time = resolve_start_time(day_number, slot_label, self.campaign_start)
        return Assignment(
            id=uuid.uuid4().hex,
            candidate_id=candidate.id,
            interviewer_ids=(self.interviewer_a.id, self.interviewer_b.id),
            day_number=day_number,
            slot_label=slot_label,
            start_time=start_time,
            end_time=resolve_end_time(start_time),
            status=AssignmentStatus.SCHEDULED,
        )


class SchedulingStrategy:
    """Base greedy strategy: visit candidates in order, take the first free day."""

    name: StrategyName
    title: str

    def order(self, scored: List[ScoredCandidate]) -> List[ScoredCandidate]:
        raise NotImplementedError

    def choose(self, run: BookingRun, candidate: Candidate) -> Optional[Tuple[int, str]]:
        for day_number in run.days():
            slots = run.free_slots(candidate, day_number)
            if slots:
                return day_number, slots[0]
        return None

    def schedule(
        self,
        candidates: Sequence[Candidate],
        interviewers: Sequence[Interviewer],
        campaign_start: date,
        horizon_days: int,
        min_day_number: int = 1,
        booked: Optional[Iterable[SlotKey]] = None,
    ) -> SchedulingResult:
        if len(interviewers) < 2:
            raise ConfigurationError("At least 2 interviewers are required for scheduling")
        interviewer_a, interviewer_b = interviewers[0], interviewers[1]
        run = BookingRun(
            interviewer_a,
            interviewer_b,
            campaign_start,
            horizon_days,
            min_day_number=min_day_number,
            booked=booked,
        )
        scored = [
            ScoredCandidate(c, availability_score(c, interviewer_a, interviewer_b))
            for c in candidates
        ]
        result = SchedulingResult(strategy=self.name, total_candidates=len(candidates))

        logger.info(
            "Scheduling %d candidates with %s (days %d-%d)",
            len(candidates),
            self.title,
            run.min_day_number,
            horizon_days,
        )
        for item in self.order(scored):
            if item.score == 0:
                result.unscheduled.append(
                    UnscheduledCandidate(item.candidate, NO_COMMON_SLOTS, 0)
                )
                continue
            choice = self.choose(run, item.candidate)
            if choice is None:
                logger.debug("No free slot for %s", item.candidate.name)
                result.unscheduled.append(
                    UnscheduledCandidate(item.candidate, NO_SLOT_IN_HORIZON, item.score)
                )
                continue
            result.assignments.append(run.book(item.candidate, *choice))

        for assignment in result.assignments:
            day = assignment.day_number
            result.interviews_by_day[day] = result.interviews_by_day.get(day, 0) + 1
        result.interviews_by_day = dict(sorted(result.interviews_by_day.items()))

        logger.info(
            "%s: scheduled %d/%d, unscheduled %d, days used %d (%d weeks)",
            self.title,
            result.scheduled_count,
            result.total_candidates,
            result.unscheduled_count,
            result.days_used,
            result.weeks_used,
        )
        for day, count in result.interviews_by_day.items():
            logger.debug("%s: %d interviews", describe_slot(day), count)
        return result


class LeastAvailableFirst(SchedulingStrategy):
    """Hardest-to-place candidates first."""

    name = StrategyName.LEAST_AVAILABLE
    title = "Least Available First"

    def order(self, scored):
        return sorted(scored, key=lambda s: s.score)


class MostAvailableFirst(SchedulingStrategy):
    name = StrategyName.MOST_AVAILABLE
    title = "Most Available First"

    def order(self, scored):
        return sorted(scored, key=lambda s: s.score, reverse=True)


class RandomOrder(SchedulingStrategy):
    """Uniformly shuffled visiting order; a baseline, not deterministic."""

    name = StrategyName.RANDOM
    title = "Random Order"

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    def order(self, scored):
        shuffled = list(scored)
        self.rng.shuffle(shuffled)
        return shuffled


class WorkloadBalanced(SchedulingStrategy):
    """Least-available-first order, but each candidate goes to the least loaded
    feasible day instead of the earliest one. Ties keep the earlier day."""

    name = StrategyName.BALANCED
    title = "Workload Balancing"

    def order(self, scored):
        return sorted(scored, key=lambda s: s.score)

    def choose(self, run, candidate):
        feasible = []
        for day_number in run.days():
            slots = run.free_slots(candidate, day_number)
            if slots:
                feasible.append((run.load.get(day_number, 0), day_number, slots[0]))
        if not feasible:
            return None
        _, day_number, label = min(feasible, key=lambda f: (f[0], f[1]))
        return day_number, label


def get_strategy(
    name: StrategyName | str, rng: Optional[random.Random] = None
) -> SchedulingStrategy:
    name = StrategyName(name)
    if name is StrategyName.LEAST_AVAILABLE:
        return LeastAvailableFirst()
    if name is StrategyName.MOST_AVAILABLE:
        return MostAvailableFirst()
    if name is StrategyName.RANDOM:
        return RandomOrder(rng)
    return WorkloadBalanced()


def run_scheduler(
    candidates: Sequence[Candidate],
    interviewers: Sequence[Interviewer],
    start_date: date,
    horizon_days: int = 999,
    strategy: StrategyName | str = StrategyName.LEAST_AVAILABLE,
    *,
    min_day_number: int = 1,
    booked: Optional[Iterable[SlotKey]] = None,
    rng: Optional[random.Random] = None,
) -> SchedulingResult:
    """Assign ``candidates`` to free (day, slot) pairs without touching storage.

    ``min_day_number`` and ``booked`` let callers schedule into the tail of an
    existing calendar: days before ``min_day_number`` are never offered, and
    keys in ``booked`` are treated as taken.
    """
    return get_strategy(strategy, rng).schedule(
        candidates,
        interviewers,
        start_date,
        horizon_days,
        min_day_number=min_day_number,
        booked=booked,
    )
