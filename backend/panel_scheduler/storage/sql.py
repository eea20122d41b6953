"""SQLAlchemy-backed store.

Timestamps are written as naive UTC and handed back as aware UTC datetimes so
that backends without timezone support (SQLite) round-trip them unchanged.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

import pytz
from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Integer,
    String,
    Text,
    create_engine,
    delete,
    or_,
    select,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column
from sqlalchemy.pool import StaticPool

from ..domain.models import (
    ActionHistoryEntry,
    ActionType,
    Assignment,
    AssignmentStatus,
    Candidate,
    CandidateStatus,
    Interviewer,
    normalize_availability,
)
from .base import Store, StorageError

UTC = pytz.UTC


class Base(DeclarativeBase):
    pass


class CandidateRow(Base):
    __tablename__ = "candidates"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), index=True)
    roll_number: Mapped[str] = mapped_column(String(64), default="", index=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    department: Mapped[str | None] = mapped_column(String(255), nullable=True)
    availability: Mapped[dict] = mapped_column(JSON, default=dict)
    status: Mapped[str] = mapped_column(String(20), default=CandidateStatus.PENDING.value, index=True)


class InterviewerRow(Base):
    __tablename__ = "interviewers"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, index=True)
    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    availability: Mapped[dict] = mapped_column(JSON, default=dict)


class AssignmentRow(Base):
    __tablename__ = "assignments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    candidate_id: Mapped[str] = mapped_column(String(64), index=True)
    interviewer_a_id: Mapped[str] = mapped_column(String(64))
    interviewer_b_id: Mapped[str] = mapped_column(String(64))
    day_number: Mapped[int] = mapped_column(Integer, index=True)
    slot_label: Mapped[str] = mapped_column(String(64))
    start_time: Mapped[datetime] = mapped_column(DateTime, index=True)
    end_time: Mapped[datetime] = mapped_column(DateTime)
    status: Mapped[str] = mapped_column(String(20), default=AssignmentStatus.SCHEDULED.value, index=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_rescheduled_from: Mapped[str | None] = mapped_column(String(64), nullable=True)
    last_rescheduled_to: Mapped[str | None] = mapped_column(String(64), nullable=True)
    last_rescheduled_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    reschedule_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    reschedule_count: Mapped[int] = mapped_column(Integer, default=0)


class ActionHistoryRow(Base):
    __tablename__ = "action_history"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    action_type: Mapped[str] = mapped_column(String(20))
    assignment_id: Mapped[str] = mapped_column(String(64), index=True)
    candidate_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    details: Mapped[str] = mapped_column(Text)
    timestamp: Mapped[datetime] = mapped_column(DateTime, index=True)
    undone: Mapped[bool] = mapped_column(Boolean, default=False)


def _naive(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return UTC.localize(value)
    return value.astimezone(UTC)


def _candidate(row: CandidateRow) -> Candidate:
    return Candidate(
        id=row.id,
        name=row.name,
        roll_number=row.roll_number or "",
        email=row.email,
        contact_number=row.contact_number,
        department=row.department,
        availability=normalize_availability(row.availability),
        status=CandidateStatus(row.status),
    )


def _interviewer(row: InterviewerRow) -> Interviewer:
    return Interviewer(
        id=row.id,
        name=row.name,
        email=row.email,
        availability=normalize_availability(row.availability),
    )


def _assignment(row: AssignmentRow) -> Assignment:
    return Assignment(
        id=row.id,
        candidate_id=row.candidate_id,
        interviewer_ids=(row.interviewer_a_id, row.interviewer_b_id),
        day_number=row.day_number,
        slot_label=row.slot_label,
        start_time=_aware(row.start_time),
        end_time=_aware(row.end_time),
        status=AssignmentStatus(row.status),
        notes=row.notes,
        last_rescheduled_from=row.last_rescheduled_from,
        last_rescheduled_to=row.last_rescheduled_to,
        last_rescheduled_at=_aware(row.last_rescheduled_at),
        reschedule_reason=row.reschedule_reason,
        reschedule_count=row.reschedule_count or 0,
    )


def _history(row: ActionHistoryRow) -> ActionHistoryEntry:
    return ActionHistoryEntry(
        id=row.id,
        action_type=ActionType(row.action_type),
        assignment_id=row.assignment_id,
        details=row.details,
        timestamp=_aware(row.timestamp),
        candidate_name=row.candidate_name,
        undone=bool(row.undone),
    )


def _availability_json(availability) -> dict:
    return {day: list(labels) for day, labels in normalize_availability(availability).items()}


def _fill_candidate(row: CandidateRow, candidate: Candidate) -> None:
    row.name = candidate.name
    row.roll_number = candidate.roll_number
    row.email = candidate.email
    row.contact_number = candidate.contact_number
    row.department = candidate.department
    row.availability = _availability_json(candidate.availability)
    row.status = CandidateStatus(candidate.status).value


def _fill_assignment(row: AssignmentRow, assignment: Assignment) -> None:
    row.candidate_id = assignment.candidate_id
    row.interviewer_a_id, row.interviewer_b_id = assignment.interviewer_ids
    row.day_number = assignment.day_number
    row.slot_label = assignment.slot_label
    row.start_time = _naive(assignment.start_time)
    row.end_time = _naive(assignment.end_time)
    row.status = AssignmentStatus(assignment.status).value
    row.notes = assignment.notes
    row.last_rescheduled_from = assignment.last_rescheduled_from
    row.last_rescheduled_to = assignment.last_rescheduled_to
    row.last_rescheduled_at = _naive(assignment.last_rescheduled_at)
    row.reschedule_reason = assignment.reschedule_reason
    row.reschedule_count = assignment.reschedule_count


def create_sql_engine(url: str) -> Engine:
    if url.startswith("sqlite") and ":memory:" in url:
        return create_engine(
            url, connect_args={"check_same_thread": False}, poolclass=StaticPool
        )
    return create_engine(url)


class SqlStore(Store):
    """Store over one long-lived :class:`~sqlalchemy.orm.Session`.

    Outside a transaction every write commits on its own; inside
    ``transaction()`` nothing is committed until the outermost block exits.
    """

    def __init__(self, engine: Engine | str, create_tables: bool = True) -> None:
        if isinstance(engine, str):
            engine = create_sql_engine(engine)
        self.engine = engine
        if create_tables:
            Base.metadata.create_all(engine)
        self.session = Session(engine, expire_on_commit=False)
        self._depth = 0
        self._rollback_only = False

    def close(self) -> None:
        self.session.close()
        self.engine.dispose()

    @contextmanager
    def transaction(self):
        outermost = self._depth == 0
        if outermost:
            self._rollback_only = False
        self._depth += 1
        try:
            yield self
            if outermost:
                if self._rollback_only:
                    raise StorageError("transaction rolled back after a nested failure")
                self.session.commit()
        except BaseException:
            if outermost:
                self.session.rollback()
            else:
                self._rollback_only = True
            raise
        finally:
            self._depth -= 1

    def _commit(self) -> None:
        if self._depth == 0:
            self.session.commit()

    # candidates

    def add_candidate(self, candidate):
        if self.session.get(CandidateRow, candidate.id) is not None:
            raise StorageError(f"candidate {candidate.id} already exists")
        row = CandidateRow(id=candidate.id)
        _fill_candidate(row, candidate)
        self.session.add(row)
        self.session.flush()
        self._commit()
        return candidate

    def get_candidate(self, candidate_id):
        row = self.session.get(CandidateRow, candidate_id)
        return _candidate(row) if row is not None else None

    def list_candidates(self, status=None):
        stmt = select(CandidateRow).order_by(CandidateRow.name, CandidateRow.id)
        if status is not None:
            stmt = stmt.where(CandidateRow.status == CandidateStatus(status).value)
        return [_candidate(row) for row in self.session.scalars(stmt)]

    def update_candidate(self, candidate):
        row = self.session.get(CandidateRow, candidate.id)
        if row is None:
            raise StorageError(f"candidate {candidate.id} does not exist")
        _fill_candidate(row, candidate)
        self._commit()
        return candidate

    def set_candidate_status(self, candidate_ids: Iterable[str], status: CandidateStatus) -> int:
        ids = list(set(candidate_ids))
        if not ids:
            return 0
        result = self.session.execute(
            update(CandidateRow)
            .where(CandidateRow.id.in_(ids))
            .values(status=CandidateStatus(status).value)
            .execution_options(synchronize_session="fetch")
        )
        self._commit()
        return result.rowcount

    def delete_candidate(self, candidate_id):
        self.session.execute(delete(CandidateRow).where(CandidateRow.id == candidate_id))
        self._commit()

    # interviewers

    def add_interviewer(self, interviewer):
        if self.session.get(InterviewerRow, interviewer.id) is not None:
            raise StorageError(f"interviewer {interviewer.id} already exists")
        position = self.session.scalar(
            select(InterviewerRow.position).order_by(InterviewerRow.position.desc()).limit(1)
        )
        self.session.add(
            InterviewerRow(
                id=interviewer.id,
                position=(position or 0) + 1,
                name=interviewer.name,
                email=interviewer.email,
                availability=_availability_json(interviewer.availability),
            )
        )
        self.session.flush()
        self._commit()
        return interviewer

    def get_interviewer(self, interviewer_id):
        row = self.session.get(InterviewerRow, interviewer_id)
        return _interviewer(row) if row is not None else None

    def list_interviewers(self):
        stmt = select(InterviewerRow).order_by(InterviewerRow.position)
        return [_interviewer(row) for row in self.session.scalars(stmt)]

    def update_interviewer(self, interviewer):
        row = self.session.get(InterviewerRow, interviewer.id)
        if row is None:
            raise StorageError(f"interviewer {interviewer.id} does not exist")
        row.name = interviewer.name
        row.email = interviewer.email
        row.availability = _availability_json(interviewer.availability)
        self._commit()
        return interviewer

    def delete_interviewer(self, interviewer_id):
        self.session.execute(delete(InterviewerRow).where(InterviewerRow.id == interviewer_id))
        self._commit()

    # assignments

    def add_assignments(self, assignments: Sequence[Assignment]) -> List[Assignment]:
        with self.transaction():
            for assignment in assignments:
                if self.session.get(AssignmentRow, assignment.id) is not None:
                    raise StorageError(f"assignment {assignment.id} already exists")
                self._check_active_clash(assignment)
                row = AssignmentRow(id=assignment.id)
                _fill_assignment(row, assignment)
                self.session.add(row)
                self.session.flush()
        return list(assignments)

    def _check_active_clash(self, new: Assignment) -> None:
        if new.status == AssignmentStatus.CANCELLED:
            return
        clash = self.session.scalars(
            select(AssignmentRow)
            .where(AssignmentRow.status != AssignmentStatus.CANCELLED.value)
            .where(
                or_(
                    (AssignmentRow.day_number == new.day_number)
                    & (AssignmentRow.slot_label == new.slot_label),
                    AssignmentRow.candidate_id == new.candidate_id,
                )
            )
            .limit(1)
        ).first()
        if clash is None:
            return
        if clash.candidate_id == new.candidate_id:
            raise StorageError(
                f"candidate {new.candidate_id} already has active assignment {clash.id}"
            )
        raise StorageError(
            f"slot day {new.day_number} {new.slot_label} is already taken by {clash.id}"
        )

    def get_assignment(self, assignment_id):
        row = self.session.get(AssignmentRow, assignment_id)
        return _assignment(row) if row is not None else None

    def update_assignment(self, assignment):
        row = self.session.get(AssignmentRow, assignment.id)
        if row is None:
            raise StorageError(f"assignment {assignment.id} does not exist")
        _fill_assignment(row, assignment)
        self._commit()
        return assignment

    def delete_assignments(self, assignment_ids):
        ids = list(set(assignment_ids))
        if not ids:
            return 0
        rows = self.session.scalars(select(AssignmentRow).where(AssignmentRow.id.in_(ids))).all()
        for row in rows:
            self.session.delete(row)
        self.session.flush()
        self._commit()
        return len(rows)

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
        stmt = select(AssignmentRow)
        if min_day is not None:
            stmt = stmt.where(AssignmentRow.day_number >= min_day)
        if max_day is not None:
            stmt = stmt.where(AssignmentRow.day_number <= max_day)
        if statuses is not None:
            stmt = stmt.where(
                AssignmentRow.status.in_([AssignmentStatus(s).value for s in statuses])
            )
        if completed is True:
            stmt = stmt.where(AssignmentRow.status == AssignmentStatus.COMPLETED.value)
        elif completed is False:
            stmt = stmt.where(AssignmentRow.status != AssignmentStatus.COMPLETED.value)
        if candidate_id is not None:
            stmt = stmt.where(AssignmentRow.candidate_id == candidate_id)
        if start_from is not None:
            stmt = stmt.where(AssignmentRow.start_time >= _naive(start_from))
        if start_before is not None:
            stmt = stmt.where(AssignmentRow.start_time < _naive(start_before))

        if order_by == "start_time":
            keys = [AssignmentRow.start_time, AssignmentRow.day_number, AssignmentRow.id]
        elif order_by == "day_number":
            keys = [AssignmentRow.day_number, AssignmentRow.start_time, AssignmentRow.id]
        else:
            raise ValueError(f"cannot order assignments by {order_by!r}")
        stmt = stmt.order_by(*[k.desc() if descending else k.asc() for k in keys])
        if limit is not None:
            stmt = stmt.limit(limit)
        return [_assignment(row) for row in self.session.scalars(stmt)]

    # action history

    def add_history(self, entry):
        if self.session.get(ActionHistoryRow, entry.id) is not None:
            raise StorageError(f"history entry {entry.id} already exists")
        self.session.add(
            ActionHistoryRow(
                id=entry.id,
                action_type=ActionType(entry.action_type).value,
                assignment_id=entry.assignment_id,
                candidate_name=entry.candidate_name,
                details=entry.details,
                timestamp=_naive(entry.timestamp),
                undone=entry.undone,
            )
        )
        self.session.flush()
        self._commit()
        return entry

    def get_history(self, entry_id):
        row = self.session.get(ActionHistoryRow, entry_id)
        return _history(row) if row is not None else None

    def update_history(self, entry):
        row = self.session.get(ActionHistoryRow, entry.id)
        if row is None:
            raise StorageError(f"history entry {entry.id} does not exist")
        row.details = entry.details
        row.candidate_name = entry.candidate_name
        row.undone = entry.undone
        self._commit()
        return entry

    def list_history(self, limit: Optional[int] = None):
        stmt = select(ActionHistoryRow).order_by(
            ActionHistoryRow.timestamp.desc(), ActionHistoryRow.id.desc()
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return [_history(row) for row in self.session.scalars(stmt)]
