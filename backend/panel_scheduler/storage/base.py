"""Storage interface the scheduling core depends on."""

from __future__ import annotations

from datetime import datetime
from typing import ContextManager, Iterable, List, Optional, Sequence

from ..domain.models import (
    ActionHistoryEntry,
    Assignment,
    AssignmentStatus,
    Candidate,
    CandidateStatus,
    Interviewer,
)


class StorageError(Exception):
    """Raised by stores for integrity failures."""


class Store:
    """CRUD for the four record types plus atomic multi-write transactions.

    Writes made inside ``with store.transaction():`` become visible together
    or not at all. Nested transactions join the outermost one; once a nested
    block fails, the outermost one rolls back even if the error was caught.
    """

    # candidates

    def add_candidate(self, candidate: Candidate) -> Candidate:
        raise NotImplementedError

    def get_candidate(self, candidate_id: str) -> Optional[Candidate]:
        raise NotImplementedError

    def list_candidates(self, status: Optional[CandidateStatus] = None) -> List[Candidate]:
        raise NotImplementedError

    def update_candidate(self, candidate: Candidate) -> Candidate:
        raise NotImplementedError

    def set_candidate_status(
        self, candidate_ids: Iterable[str], status: CandidateStatus
    ) -> int:
        raise NotImplementedError

    def delete_candidate(self, candidate_id: str) -> None:
        raise NotImplementedError

    # interviewers

    def add_interviewer(self, interviewer: Interviewer) -> Interviewer:
        raise NotImplementedError

    def get_interviewer(self, interviewer_id: str) -> Optional[Interviewer]:
        raise NotImplementedError

    def list_interviewers(self) -> List[Interviewer]:
        raise NotImplementedError

    def update_interviewer(self, interviewer: Interviewer) -> Interviewer:
        raise NotImplementedError

    def delete_interviewer(self, interviewer_id: str) -> None:
        raise NotImplementedError

    # assignments

    def add_assignment(self, assignment: Assignment) -> Assignment:
        return self.add_assignments([assignment])[0]

    def add_assignments(self, assignments: Sequence[Assignment]) -> List[Assignment]:
        raise NotImplementedError

    def get_assignment(self, assignment_id: str) -> Optional[Assignment]:
        raise NotImplementedError

    def update_assignment(self, assignment: Assignment) -> Assignment:
        raise NotImplementedError

    def delete_assignment(self, assignment_id: str) -> None:
        self.delete_assignments([assignment_id])

    def delete_assignments(self, assignment_ids: Iterable[str]) -> int:
        raise NotImplementedError

    def list_assignments(
        self,
        *,
        min_day: Optional[int] = None,
        max_day: Optional[int] = None,
        statuses: Optional[Iterable[AssignmentStatus]] = None,
        completed: Optional[bool] = None,
        candidate_id: Optional[str] = None,
        start_from: Optional[datetime] = None,
        start_before: Optional[datetime] = None,
        order_by: str = "start_time",
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Assignment]:
        """Assignments matching every given filter.

        ``min_day``/``max_day`` and ``start_from`` are inclusive,
        ``start_before`` is exclusive. ``order_by`` is ``"start_time"`` or
        ``"day_number"``; ties fall back to the other key and then the id.
        """
        raise NotImplementedError

    # action history

    def add_history(self, entry: ActionHistoryEntry) -> ActionHistoryEntry:
        raise NotImplementedError

    def get_history(self, entry_id: str) -> Optional[ActionHistoryEntry]:
        raise NotImplementedError

    def update_history(self, entry: ActionHistoryEntry) -> ActionHistoryEntry:
        raise NotImplementedError

    def list_history(self, limit: Optional[int] = None) -> List[ActionHistoryEntry]:
        """Entries newest first."""
        raise NotImplementedError

    def transaction(self) -> ContextManager["Store"]:
        raise NotImplementedError


def matches(
    assignment: Assignment,
    *,
    min_day=None,
    max_day=None,
    statuses=None,
    completed=None,
    candidate_id=None,
    start_from=None,
    start_before=None,
) -> bool:
    """Filter predicate shared by stores that filter in Python."""
    if min_day is not None and assignment.day_number < min_day:
        return False
    if max_day is not None and assignment.day_number > max_day:
        return False
    if statuses is not None and assignment.status not in set(statuses):
        return False
    if completed is not None and assignment.completed != completed:
        return False
    if candidate_id is not None and assignment.candidate_id != candidate_id:
        return False
    if start_from is not None and assignment.start_time < start_from:
        return False
    if start_before is not None and assignment.start_time >= start_before:
        return False
    return True


def sort_key(order_by: str):
    if order_by == "day_number":
        return lambda a: (a.day_number, a.start_time, a.id)
    if order_by == "start_time":
        return lambda a: (a.start_time, a.day_number, a.id)
    raise ValueError(f"cannot order assignments by {order_by!r}")
