"""Dict-backed store used by tests and when no database is configured."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence

from ..domain.models import (
    ActionHistoryEntry,
    Assignment,
    Candidate,
    CandidateStatus,
    Interviewer,
)
from .base import Store, StorageError, matches, sort_key


class InMemoryStore(Store):
    """Records live in plain dicts; transactions snapshot and restore them.

    Records are frozen dataclasses, so copying the dicts is a full snapshot.
    """

    def __init__(self) -> None:
        self._candidates: Dict[str, Candidate] = {}
        self._interviewers: Dict[str, Interviewer] = {}
        self._assignments: Dict[str, Assignment] = {}
        self._history: Dict[str, ActionHistoryEntry] = {}
        self._depth = 0
        self._rollback_only = False

    @contextmanager
    def transaction(self):
        if self._depth:
            self._depth += 1
            try:
                yield self
            except BaseException:
                self._rollback_only = True
                raise
            finally:
                self._depth -= 1
            return
        snapshot = (
            dict(self._candidates),
            dict(self._interviewers),
            dict(self._assignments),
            dict(self._history),
        )
        self._depth = 1
        try:
            yield self
            if self._rollback_only:
                raise StorageError("transaction rolled back after a nested failure")
        except BaseException:
            (
                self._candidates,
                self._interviewers,
                self._assignments,
                self._history,
            ) = snapshot
            raise
        finally:
            self._depth = 0
            self._rollback_only = False

    # candidates

    def add_candidate(self, candidate):
        if candidate.id in self._candidates:
            raise StorageError(f"candidate {candidate.id} already exists")
        self._candidates[candidate.id] = candidate
        return candidate

    def get_candidate(self, candidate_id):
        return self._candidates.get(candidate_id)

    def list_candidates(self, status=None):
        found = [
            c for c in self._candidates.values() if status is None or c.status == status
        ]
        return sorted(found, key=lambda c: (c.name, c.id))

    def update_candidate(self, candidate):
        if candidate.id not in self._candidates:
            raise StorageError(f"candidate {candidate.id} does not exist")
        self._candidates[candidate.id] = candidate
        return candidate

    def set_candidate_status(self, candidate_ids: Iterable[str], status: CandidateStatus) -> int:
        changed = 0
        for candidate_id in set(candidate_ids):
            candidate = self._candidates.get(candidate_id)
            if candidate is None:
                continue
            self._candidates[candidate_id] = replace(candidate, status=status)
            changed += 1
        return changed

    def delete_candidate(self, candidate_id):
        self._candidates.pop(candidate_id, None)

    # interviewers

    def add_interviewer(self, interviewer):
        if interviewer.id in self._interviewers:
            raise StorageError(f"interviewer {interviewer.id} already exists")
        self._interviewers[interviewer.id] = interviewer
        return interviewer

    def get_interviewer(self, interviewer_id):
        return self._interviewers.get(interviewer_id)

    def list_interviewers(self):
        # insertion order decides which two interviewers form the pair
        return list(self._interviewers.values())

    def update_interviewer(self, interviewer):
        if interviewer.id not in self._interviewers:
            raise StorageError(f"interviewer {interviewer.id} does not exist")
        self._interviewers[interviewer.id] = interviewer
        return interviewer

    def delete_interviewer(self, interviewer_id):
        self._interviewers.pop(interviewer_id, None)

    # assignments

    def add_assignments(self, assignments: Sequence[Assignment]) -> List[Assignment]:
        with self.transaction():
            for assignment in assignments:
                if assignment.id in self._assignments:
                    raise StorageError(f"assignment {assignment.id} already exists")
                _check_active_clash(assignment, self._assignments.values())
                self._assignments[assignment.id] = assignment
        return list(assignments)

    def get_assignment(self, assignment_id):
        return self._assignments.get(assignment_id)

    def update_assignment(self, assignment):
        if assignment.id not in self._assignments:
            raise StorageError(f"assignment {assignment.id} does not exist")
        self._assignments[assignment.id] = assignment
        return assignment

    def delete_assignments(self, assignment_ids):
        removed = 0
        for assignment_id in set(assignment_ids):
            if self._assignments.pop(assignment_id, None) is not None:
                removed += 1
        return removed

    def list_assignments(
        self,
        *,
        min_day=None,
        max_day=None,
        statuses=None,
        completed=None,
        candidate_id=None,
        start_from=None,
        start_before=None,
        order_by="start_time",
        descending=False,
        limit=None,
    ):
        wanted = frozenset(statuses) if statuses is not None else None
        found = [
            a
            for a in self._assignments.values()
            if matches(
                a,
                min_day=min_day,
                max_day=max_day,
                statuses=wanted,
                completed=completed,
                candidate_id=candidate_id,
                start_from=start_from,
                start_before=start_before,
            )
        ]
        found.sort(key=sort_key(order_by), reverse=descending)
        return found[:limit] if limit is not None else found

    # action history

    def add_history(self, entry):
        if entry.id in self._history:
            raise StorageError(f"history entry {entry.id} already exists")
        self._history[entry.id] = entry
        return entry

    def get_history(self, entry_id):
        return self._history.get(entry_id)

    def update_history(self, entry):
        if entry.id not in self._history:
            raise StorageError(f"history entry {entry.id} does not exist")
        self._history[entry.id] = entry
        return entry

    def list_history(self, limit: Optional[int] = None):
        found = sorted(
            self._history.values(), key=lambda e: (e.timestamp, e.id), reverse=True
        )
        return found[:limit] if limit is not None else found


def _check_active_clash(new: Assignment, existing: Iterable[Assignment]) -> None:
    if not new.active:
        return
    for other in existing:
        if not other.active:
            continue
        if other.slot_key == new.slot_key:
            raise StorageError(
                f"slot day {new.day_number} {new.slot_label} is already taken by {other.id}"
            )
        if other.candidate_id == new.candidate_id:
            raise StorageError(
                f"candidate {new.candidate_id} already has active assignment {other.id}"
            )
