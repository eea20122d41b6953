"""Store-backed operations exposed to the HTTP layer and the CLI."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import List, Optional, Sequence

from ..core.clock import Clock, SystemClock
from ..core.errors import (
    AlreadyCompletedError,
    ConfigurationError,
    NotFoundError,
    SchedulingError,
    SlotConflictError,
)
from ..domain.models import (
    ActionHistoryEntry,
    ActionType,
    Assignment,
    AssignmentStatus,
    Candidate,
    CandidateStatus,
    Interviewer,
)
from ..storage import create_store
from ..storage.base import Store
from .calendar import current_day_number, describe_slot, local_day_bounds, week_number
from .comparison import compare_strategies
from .reschedule import DEFAULT_REASON, RescheduleCoordinator, RescheduleResult
from .strategies import SchedulingResult, StrategyName, run_scheduler

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    success: bool
    message: str
    error: Optional[str] = None
    assignment: Optional[Assignment] = None


@dataclass
class CampaignStats:
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


class InterviewService:
    def __init__(
        self,
        store: Store,
        start_date: date,
        clock: Optional[Clock] = None,
        horizon_days: int = 999,
        cooldown_hours: int = 24,
        history_limit: int = 100,
        default_strategy: StrategyName | str = StrategyName.LEAST_AVAILABLE,
    ) -> None:
        self.store = store
        self.start_date = start_date
        self.clock = clock or SystemClock()
        self.horizon_days = horizon_days
        self.history_limit = history_limit
        self.default_strategy = StrategyName(default_strategy)
        self.coordinator = RescheduleCoordinator(
            store,
            start_date,
            clock=self.clock,
            cooldown=timedelta(hours=cooldown_hours),
            horizon_days=horizon_days,
        )

    @classmethod
    def from_settings(cls, settings, store: Optional[Store] = None, clock: Optional[Clock] = None):
        return cls(
            store if store is not None else create_store(settings.DATABASE_URL),
            settings.SCHEDULE_START_DATE,
            clock=clock,
            horizon_days=settings.MAX_DAYS,
            cooldown_hours=settings.LOOP_COOLDOWN_HOURS,
            history_limit=settings.HISTORY_LIMIT,
            default_strategy=settings.DEFAULT_STRATEGY,
        )

    def interviewer_pair(self) -> List[Interviewer]:
        interviewers = self.store.list_interviewers()
        if len(interviewers) < 2:
            raise ConfigurationError("At least 2 interviewers are required")
        return interviewers[:2]

    # scheduling

    def load_roster(
        self,
        candidates: Optional[Sequence[Candidate]] = None,
        interviewers: Optional[Sequence[Interviewer]] = None,
    ) -> None:
        """Replace the candidate roster, the interviewer roster, or both.

        A roster passed as ``None`` is left alone. Completed interviews and
        their candidates survive; every other assignment was booked against
        the old roster and is dropped. History is kept.
        """
        with self.store.transaction():
            finished = {a.candidate_id for a in self.store.list_assignments(completed=True)}
            self.store.delete_assignments(
                [a.id for a in self.store.list_assignments(completed=False)]
            )
            if candidates is None:
                self.store.set_candidate_status(
                    [c.id for c in self.store.list_candidates() if c.id not in finished],
                    CandidateStatus.PENDING,
                )
            else:
                for candidate in self.store.list_candidates():
                    if candidate.id not in finished:
                        self.store.delete_candidate(candidate.id)
                for candidate in candidates:
                    if candidate.id in finished:
                        logger.info("Keeping completed candidate %s", candidate.id)
                        continue
                    self.store.add_candidate(candidate)
            if interviewers is not None:
                for interviewer in self.store.list_interviewers():
                    self.store.delete_interviewer(interviewer.id)
                for interviewer in interviewers:
                    self.store.add_interviewer(interviewer)
        logger.info(
            "Loaded roster: %d candidates (%d completed kept), %d interviewers",
            len(self.store.list_candidates()),
            len(finished),
            len(self.store.list_interviewers()),
        )

    def schedule_campaign(
        self,
        strategy: StrategyName | str | None = None,
        start_date: Optional[date] = None,
        horizon_days: Optional[int] = None,
        candidates: Optional[Sequence[Candidate]] = None,
        interviewers: Optional[Sequence[Interviewer]] = None,
    ) -> SchedulingResult:
        """Schedule every candidate who has not completed an interview.

        Completed assignments are kept and their slots stay taken; all other
        assignments are replaced in one transaction. Rosters passed in are
        loaded first inside that same transaction, so a failed run leaves the
        stored roster untouched.
        """
        start_date = start_date or self.start_date
        horizon_days = horizon_days or self.horizon_days
        with self.store.transaction():
            if candidates is not None or interviewers is not None:
                self.load_roster(candidates, interviewers)
            pair = self.interviewer_pair()
            pending = [
                c
                for c in self.store.list_candidates()
                if c.status != CandidateStatus.COMPLETED
            ]
            kept = self.store.list_assignments(completed=True)
            result = run_scheduler(
                pending,
                pair,
                start_date,
                horizon_days,
                strategy or self.default_strategy,
                booked=[a.slot_key for a in kept],
            )
            stale = self.store.list_assignments(completed=False)
            self.store.delete_assignments([a.id for a in stale])
            self.store.set_candidate_status([c.id for c in pending], CandidateStatus.PENDING)
            self.store.add_assignments(result.assignments)
            self.store.set_candidate_status(
                [a.candidate_id for a in result.assignments], CandidateStatus.SCHEDULED
            )
        logger.info(
            "Campaign scheduled with %s: replaced %d assignments, kept %d completed",
            result.strategy.value,
            len(stale),
            len(kept),
        )
        if start_date != self.start_date:
            self.start_date = start_date
            self.coordinator.campaign_start = start_date
        return result

    def compare(
        self,
        multi_run: bool = False,
        iterations: int = 5,
        horizon_days: Optional[int] = None,
    ):
        candidates = self.store.list_candidates()
        if not candidates:
            raise NotFoundError("No candidates found")
        return compare_strategies(
            candidates,
            self.interviewer_pair(),
            self.start_date,
            horizon_days or self.horizon_days,
            multi_run=multi_run,
            iterations=iterations,
            clock=self.clock,
        )

    # interview actions

    def request_reschedule(
        self, assignment_id: str, reason: str = DEFAULT_REASON
    ) -> RescheduleResult:
        """Swap or rebuild, recording the move in history within the same transaction."""
        reason = reason or DEFAULT_REASON

        def record(result: RescheduleResult) -> None:
            details = f"{result.method.value}: {result.message} (reason: {reason})"
            self.store.add_history(
                self._entry(ActionType.RESCHEDULE, assignment_id, details, result.candidate_name)
            )

        return self.coordinator.reschedule(assignment_id, reason, on_success=record)

    def mark_complete(self, assignment_id: str) -> ActionResult:
        try:
            assignment = self._assignment(assignment_id)
            if assignment.completed:
                raise AlreadyCompletedError("Interview is already completed")
            if assignment.status == AssignmentStatus.CANCELLED:
                raise SchedulingError("Cannot complete a cancelled interview")
            candidate = self.store.get_candidate(assignment.candidate_id)
            name = candidate.name if candidate else assignment.candidate_id
            done = replace(assignment, status=AssignmentStatus.COMPLETED)
            with self.store.transaction():
                self.store.update_assignment(done)
                self.store.set_candidate_status(
                    [assignment.candidate_id], CandidateStatus.COMPLETED
                )
                self.store.add_history(
                    self._entry(
                        ActionType.COMPLETE,
                        assignment_id,
                        f"Completed interview for {name} on "
                        f"{describe_slot(assignment.day_number, assignment.slot_label)}",
                        name,
                    )
                )
        except SchedulingError as exc:
            return ActionResult(False, str(exc), exc.code)
        return ActionResult(True, "Interview marked as complete", assignment=done)

    def cancel(self, assignment_id: str) -> ActionResult:
        try:
            assignment = self._assignment(assignment_id)
            if assignment.completed:
                raise AlreadyCompletedError("Cannot cancel a completed interview")
            if assignment.status == AssignmentStatus.CANCELLED:
                return ActionResult(True, "Interview already cancelled", assignment=assignment)
            cancelled = replace(assignment, status=AssignmentStatus.CANCELLED)
            with self.store.transaction():
                self.store.update_assignment(cancelled)
                self.store.set_candidate_status(
                    [assignment.candidate_id], CandidateStatus.PENDING
                )
        except SchedulingError as exc:
            return ActionResult(False, str(exc), exc.code)
        return ActionResult(True, "Interview cancelled", assignment=cancelled)

    def reactivate(self, assignment_id: str) -> ActionResult:
        try:
            assignment = self._assignment(assignment_id)
            if assignment.status != AssignmentStatus.CANCELLED:
                raise SlotConflictError("Only cancelled interviews can be reactivated")
            for other in self.store.list_assignments(
                statuses=[AssignmentStatus.SCHEDULED, AssignmentStatus.COMPLETED],
                min_day=assignment.day_number,
                max_day=assignment.day_number,
            ):
                if other.slot_label == assignment.slot_label:
                    raise SlotConflictError(
                        f"{describe_slot(assignment.day_number, assignment.slot_label)} "
                        "is already taken"
                    )
            if self.store.list_assignments(
                candidate_id=assignment.candidate_id,
                statuses=[AssignmentStatus.SCHEDULED, AssignmentStatus.COMPLETED],
            ):
                raise SlotConflictError("Candidate already has an active interview")
            active = replace(assignment, status=AssignmentStatus.SCHEDULED)
            with self.store.transaction():
                self.store.update_assignment(active)
                self.store.set_candidate_status(
                    [assignment.candidate_id], CandidateStatus.SCHEDULED
                )
        except SchedulingError as exc:
            return ActionResult(False, str(exc), exc.code)
        return ActionResult(True, "Interview reactivated", assignment=active)

    # history

    def history(self, limit: Optional[int] = None) -> List[ActionHistoryEntry]:
        return self.store.list_history(limit or self.history_limit)

    def undo(self, action_id: str) -> ActionResult:
        """Undo a history entry once. Undoing a completion reopens the interview;
        undoing a reschedule only flags the entry."""
        try:
            entry = self.store.get_history(action_id)
            if entry is None:
                raise NotFoundError(f"Action {action_id} not found")
            if entry.undone:
                raise SchedulingError("Action already undone")
            with self.store.transaction():
                if entry.action_type == ActionType.COMPLETE:
                    assignment = self.store.get_assignment(entry.assignment_id)
                    if assignment is not None:
                        self.store.update_assignment(
                            replace(assignment, status=AssignmentStatus.SCHEDULED)
                        )
                        self.store.set_candidate_status(
                            [assignment.candidate_id], CandidateStatus.SCHEDULED
                        )
                self.store.update_history(replace(entry, undone=True))
        except SchedulingError as exc:
            return ActionResult(False, str(exc), exc.code)
        return ActionResult(True, "Action undone successfully")

    # reads

    def get_interview(self, assignment_id: str) -> Assignment:
        return self._assignment(assignment_id)

    def interviews(
        self,
        day: Optional[int] = None,
        status: Optional[AssignmentStatus] = None,
        interviewer_id: Optional[str] = None,
    ) -> List[Assignment]:
        found = self.store.list_assignments(
            min_day=day,
            max_day=day,
            statuses=[status] if status is not None else None,
        )
        if interviewer_id is not None:
            found = [a for a in found if interviewer_id in a.interviewer_ids]
        return found

    def today_interviews(self) -> List[Assignment]:
        start, end = local_day_bounds(self.clock.now())
        return self.store.list_assignments(start_from=start, start_before=end)

    def candidates(self, status: Optional[CandidateStatus] = None) -> List[Candidate]:
        return self.store.list_candidates(status)

    def stats(self) -> CampaignStats:
        assignments = self.store.list_assignments()
        candidates = self.store.list_candidates()
        counts = {s: 0 for s in AssignmentStatus}
        for a in assignments:
            counts[AssignmentStatus(a.status)] += 1
        active = {a.candidate_id for a in assignments if a.active}
        days_used = max((a.day_number for a in assignments), default=0)
        return CampaignStats(
            total_candidates=len(candidates),
            total_interviews=len(assignments),
            scheduled=counts[AssignmentStatus.SCHEDULED],
            completed=counts[AssignmentStatus.COMPLETED],
            cancelled=counts[AssignmentStatus.CANCELLED],
            unscheduled=sum(1 for c in candidates if c.id not in active),
            days_used=days_used,
            weeks_used=week_number(days_used) if days_used else 0,
            schedule_start_date=self.start_date,
            current_day=current_day_number(self.start_date, self.clock.now()),
            interviewers=self.store.list_interviewers(),
        )

    def _assignment(self, assignment_id: str) -> Assignment:
        assignment = self.store.get_assignment(assignment_id)
        if assignment is None:
            raise NotFoundError(f"Interview {assignment_id} not found")
        return assignment

    def _entry(self, action_type, assignment_id, details, candidate_name=None):
        return ActionHistoryEntry(
            id=uuid.uuid4().hex,
            action_type=action_type,
            assignment_id=assignment_id,
            details=details,
            timestamp=self.clock.now(),
            candidate_name=candidate_name,
        )
