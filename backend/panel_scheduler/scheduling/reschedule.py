"""Two-tier rescheduling of a single assignment.

Tier 1 swaps the displaced candidate with whoever holds the same weekday and
time of day in a later week. Tier 2, used only when no such partner exists,
throws away every future non-completed assignment and schedules those
candidates plus the displaced one again from the following week onward.
Both tiers write inside one store transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional

from ..core.clock import Clock, SystemClock
from ..core.errors import (
    AlreadyCompletedError,
    ConfigurationError,
    LoopDetectedError,
    NotFoundError,
    SchedulingError,
)
from ..domain.models import (
    Assignment,
    AssignmentStatus,
    Candidate,
    CandidateStatus,
    RescheduleMethod,
)
from ..storage.base import Store
from .calendar import day_number_to_weekday, describe_slot, to_local, week_end_day
from .strategies import StrategyName, UnscheduledCandidate, run_scheduler

logger = logging.getLogger(__name__)

DEFAULT_REASON = "Candidate unavailable"


@dataclass(frozen=True)
class AffectedCandidate:
    candidate_id: str
    name: str
    old_slot: str
    new_slot: str


@dataclass
class RescheduleResult:
    success: bool
    message: str
    method: Optional[RescheduleMethod] = None
    error: Optional[str] = None
    assignment_id: Optional[str] = None
    candidate_name: Optional[str] = None
    affected: List[AffectedCandidate] = field(default_factory=list)
    affected_count: int = 0
    rescheduled: int = 0
    unscheduled: int = 0
    unscheduled_candidates: List[UnscheduledCandidate] = field(default_factory=list)
    created: List[Assignment] = field(default_factory=list)


class RescheduleCoordinator:
    """Runs one reschedule request against a store.

    Callers are expected to keep at most one scheduling or reschedule
    operation in flight per campaign.
    """

    def __init__(
        self,
        store: Store,
        campaign_start: date,
        clock: Optional[Clock] = None,
        cooldown: timedelta = timedelta(hours=24),
        horizon_days: int = 999,
        strategy: StrategyName = StrategyName.LEAST_AVAILABLE,
    ) -> None:
        self.store = store
        self.campaign_start = campaign_start
        self.clock = clock or SystemClock()
        self.cooldown = cooldown
        self.horizon_days = horizon_days
        self.strategy = strategy

    def reschedule(
        self,
        assignment_id: str,
        reason: str = DEFAULT_REASON,
        on_success: Optional[Callable[[RescheduleResult], None]] = None,
    ) -> RescheduleResult:
        """Move the candidate off ``assignment_id``; never raises.

        ``on_success`` runs inside the same store transaction as the tier's
        writes, so a failure there undoes the move.
        """
        reason = reason or DEFAULT_REASON
        try:
            target = self.store.get_assignment(assignment_id)
            if target is None:
                raise NotFoundError(f"Interview {assignment_id} not found")
            candidate = self._candidate(target.candidate_id)
            self.check_preconditions(target)

            current_week_end = week_end_day(target.day_number)
            logger.info(
                "Rescheduling %s from %s; current week ends at day %d",
                candidate.name,
                describe_slot(target.day_number, target.slot_label),
                current_week_end,
            )
            partner = self.find_swap_partner(target, current_week_end)
            if self.is_loop(target, partner):
                raise LoopDetectedError(
                    "Loop detected: this would undo a swap made moments ago. "
                    f"Wait {self.cooldown} or intervene manually."
                )
            if partner is not None:
                return self._swap(target, candidate, partner, reason, on_success)
            logger.info("No swap partner after day %d, rebuilding", current_week_end)
            return self._rebuild(target, candidate, current_week_end, reason, on_success)
        except SchedulingError as exc:
            logger.info("Reschedule of %s refused: %s", assignment_id, exc)
            return RescheduleResult(
                success=False,
                message=str(exc),
                error=exc.code,
                assignment_id=assignment_id,
            )
        except Exception as exc:
            logger.exception("Reschedule of %s failed", assignment_id)
            return RescheduleResult(
                success=False,
                message=f"Reschedule failed: {exc}",
                error="reschedule_failed",
                assignment_id=assignment_id,
            )

    def check_preconditions(self, target: Assignment) -> None:
        if target.completed:
            raise AlreadyCompletedError("Cannot reschedule a completed interview")
        if target.status == AssignmentStatus.CANCELLED:
            raise SchedulingError("Cannot reschedule a cancelled interview")

    def is_loop(self, target: Assignment, partner: Optional[Assignment] = None) -> bool:
        """True if moving ``target`` now would undo a swap made within the cooldown.

        That is the case when the displaced candidate is already back in the
        slot, or when ``partner`` would hand the slot back to them. Moving the
        displaced candidate on from their new, later slot is not a loop.
        """
        if target.last_rescheduled_at is None:
            return False
        if self.clock.now() - target.last_rescheduled_at >= self.cooldown:
            return False
        if target.candidate_id == target.last_rescheduled_from:
            return True
        return (
            partner is not None
            and target.candidate_id == target.last_rescheduled_to
            and partner.candidate_id == target.last_rescheduled_from
        )

    def find_swap_partner(
        self, target: Assignment, current_week_end: int
    ) -> Optional[Assignment]:
        """Earliest later-week scheduled assignment on the same weekday and time."""
        weekday = day_number_to_weekday(target.day_number)
        time_of_day = _time_of_day(target.start_time)
        for other in self.store.list_assignments(
            min_day=current_week_end + 1,
            statuses=[AssignmentStatus.SCHEDULED],
            order_by="day_number",
        ):
            if other.id == target.id:
                continue
            if day_number_to_weekday(other.day_number) != weekday:
                continue
            if _time_of_day(other.start_time) == time_of_day:
                return other
        return None

    def _swap(
        self,
        target: Assignment,
        candidate: Candidate,
        partner: Assignment,
        reason: str,
        on_success: Optional[Callable[[RescheduleResult], None]] = None,
    ) -> RescheduleResult:
        partner_candidate = self._candidate(partner.candidate_id)
        now = self.clock.now()
        target_slot = describe_slot(target.day_number, target.slot_label)
        partner_slot = describe_slot(partner.day_number, partner.slot_label)
        result = RescheduleResult(
            success=True,
            method=RescheduleMethod.SWAP,
            message=f"Successfully swapped {candidate.name} with {partner_candidate.name}",
            assignment_id=target.id,
            candidate_name=candidate.name,
            affected=[
                AffectedCandidate(candidate.id, candidate.name, target_slot, partner_slot),
                AffectedCandidate(
                    partner_candidate.id, partner_candidate.name, partner_slot, target_slot
                ),
            ],
            affected_count=2,
            rescheduled=2,
        )
        with self.store.transaction():
            self.store.update_assignment(
                replace(
                    target,
                    candidate_id=partner.candidate_id,
                    last_rescheduled_from=target.candidate_id,
                    last_rescheduled_to=partner.candidate_id,
                    last_rescheduled_at=now,
                    reschedule_reason=reason,
                    reschedule_count=target.reschedule_count + 1,
                )
            )
            self.store.update_assignment(
                replace(
                    partner,
                    candidate_id=target.candidate_id,
                    last_rescheduled_from=partner.candidate_id,
                    last_rescheduled_to=target.candidate_id,
                    last_rescheduled_at=now,
                    reschedule_reason=f"Swapped with {candidate.name} due to: {reason}",
                    reschedule_count=partner.reschedule_count + 1,
                )
            )
            self.store.set_candidate_status(
                [candidate.id, partner_candidate.id], CandidateStatus.SCHEDULED
            )
            if on_success is not None:
                on_success(result)

        logger.info("Swapped %s with %s", candidate.name, partner_candidate.name)
        return result

    def _rebuild(
        self,
        target: Assignment,
        candidate: Candidate,
        current_week_end: int,
        reason: str,
        on_success: Optional[Callable[[RescheduleResult], None]] = None,
    ) -> RescheduleResult:
        interviewers = [
            self.store.get_interviewer(i) for i in target.interviewer_ids
        ]
        if any(i is None for i in interviewers):
            interviewers = self.store.list_interviewers()[:2]
        if len(interviewers) < 2:
            raise ConfigurationError("At least 2 interviewers are required for rescheduling")

        start_day = current_week_end + 1
        future = self.store.list_assignments(
            min_day=start_day, completed=False, order_by="day_number"
        )
        removed = {target.id} | {a.id for a in future}
        to_schedule: List[Candidate] = []
        seen = set()
        for assignment in future:
            if assignment.candidate_id in seen or assignment.candidate_id == candidate.id:
                continue
            seen.add(assignment.candidate_id)
            future_candidate = self.store.get_candidate(assignment.candidate_id)
            if future_candidate is None or self._held_elsewhere(future_candidate.id, removed):
                continue
            to_schedule.append(future_candidate)
        to_schedule.append(candidate)

        # completed assignments in later weeks keep their slots
        kept = self.store.list_assignments(min_day=start_day, completed=True)
        result = run_scheduler(
            to_schedule,
            interviewers,
            self.campaign_start,
            self.horizon_days,
            self.strategy,
            min_day_number=start_day,
            booked=[a.slot_key for a in kept],
        )
        now = self.clock.now()
        created = [
            replace(
                a,
                reschedule_reason=f"Rebuilt schedule due to: {reason}",
                reschedule_count=1,
                last_rescheduled_at=now,
            )
            for a in result.assignments
        ]
        affected_ids = [c.id for c in to_schedule]
        names = {c.id: c.name for c in to_schedule}
        old_slots = {a.candidate_id: describe_slot(a.day_number, a.slot_label) for a in future}
        old_slots[candidate.id] = describe_slot(target.day_number, target.slot_label)
        outcome = RescheduleResult(
            success=True,
            method=RescheduleMethod.REBUILD,
            message=(
                "Successfully rebuilt future schedule. "
                f"{len(created)} interviews rescheduled."
            ),
            assignment_id=target.id,
            candidate_name=candidate.name,
            affected=[
                AffectedCandidate(
                    a.candidate_id,
                    names.get(a.candidate_id, a.candidate_id),
                    old_slots.get(a.candidate_id, "-"),
                    describe_slot(a.day_number, a.slot_label),
                )
                for a in created
            ],
            affected_count=len(to_schedule),
            rescheduled=len(created),
            unscheduled=result.unscheduled_count,
            unscheduled_candidates=result.unscheduled,
            created=created,
        )

        with self.store.transaction():
            self.store.delete_assignments([target.id] + [a.id for a in future])
            self.store.set_candidate_status(affected_ids, CandidateStatus.PENDING)
            if created:
                self.store.add_assignments(created)
                self.store.set_candidate_status(
                    [a.candidate_id for a in created], CandidateStatus.SCHEDULED
                )
            if on_success is not None:
                on_success(outcome)

        logger.info(
            "Rebuild from day %d: %d rescheduled, %d unscheduled",
            start_day,
            len(created),
            result.unscheduled_count,
        )
        return outcome

    def _held_elsewhere(self, candidate_id: str, removed) -> bool:
        # e.g. the candidate of a cancelled future row who was later booked again
        return any(
            a.id not in removed
            for a in self.store.list_assignments(
                candidate_id=candidate_id,
                statuses=[AssignmentStatus.SCHEDULED, AssignmentStatus.COMPLETED],
            )
        )

    def _candidate(self, candidate_id: str) -> Candidate:
        candidate = self.store.get_candidate(candidate_id)
        if candidate is None:
            raise NotFoundError(f"Candidate {candidate_id} not found")
        return candidate


def _time_of_day(moment: datetime):
    local = to_local(moment)
    return (local.hour, local.minute)
