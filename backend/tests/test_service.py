"""Tests for the store-backed service operations."""

from datetime import datetime

import pytest

from helpers import LATE_MORNING, MORNING, START, assignment, candidate, interviewer_pair, week
from panel_scheduler.core.clock import UTC
from panel_scheduler.core.errors import ConfigurationError, NotFoundError
from panel_scheduler.domain.models import (
    ActionType,
    AssignmentStatus,
    CandidateStatus,
    RescheduleMethod,
)
from panel_scheduler.scheduling.comparison import ComparisonReport
from panel_scheduler.scheduling.service import InterviewService
from panel_scheduler.scheduling.strategies import NO_COMMON_SLOTS
from panel_scheduler.storage import InMemoryStore, StorageError
from panel_scheduler.storage.sql import SqlStore


def roster():
    return [
        candidate("carol", {"monday": (MORNING,)}),
        candidate("dev", {"monday": (MORNING,)}),
        candidate("eve", {"tuesday": (LATE_MORNING,)}),
        candidate("finn", {"saturday": (MORNING,)}),
    ]


@pytest.fixture
def service(store, clock):
    svc = InterviewService(store, START, clock=clock)
    svc.load_roster(roster(), interviewer_pair(week(MORNING, LATE_MORNING)))
    return svc


def by_candidate(service):
    return {a.candidate_id: a for a in service.interviews()}


def test_schedule_campaign_persists_result(service, store):
    result = service.schedule_campaign()

    assert result.scheduled_count == 3
    assert [u.reason for u in result.unscheduled] == [NO_COMMON_SLOTS]
    placed = by_candidate(service)
    assert {cid: a.slot_key for cid, a in placed.items()} == {
        "carol": (1, MORNING),
        "eve": (2, LATE_MORNING),
        "dev": (6, MORNING),
    }
    assert store.get_candidate("carol").status == CandidateStatus.SCHEDULED
    assert store.get_candidate("finn").status == CandidateStatus.PENDING


def test_rescheduling_campaign_replaces_open_assignments(service):
    service.schedule_campaign()
    first_ids = {a.id for a in service.interviews()}
    service.schedule_campaign(strategy="balanced")
    assert len(service.interviews()) == 3
    assert not first_ids & {a.id for a in service.interviews()}


def test_schedule_campaign_keeps_completed_interviews(service, store):
    service.schedule_campaign()
    carol = by_candidate(service)["carol"]
    assert service.mark_complete(carol.id).success

    result = service.schedule_campaign()

    assert store.get_assignment(carol.id).completed
    assert {a.candidate_id for a in result.assignments} == {"dev", "eve"}
    # carol's completed slot stays taken
    assert by_candidate(service)["dev"].slot_key == (6, MORNING)


def test_schedule_campaign_needs_two_interviewers(store, clock):
    svc = InterviewService(store, START, clock=clock)
    svc.load_roster(roster(), interviewer_pair()[:1])
    with pytest.raises(ConfigurationError):
        svc.schedule_campaign()


def test_mark_complete(service, store):
    service.schedule_campaign()
    carol = by_candidate(service)["carol"]

    result = service.mark_complete(carol.id)
    assert result.success
    assert result.assignment.status == AssignmentStatus.COMPLETED
    assert store.get_candidate("carol").status == CandidateStatus.COMPLETED
    (entry,) = service.history()
    assert entry.action_type == ActionType.COMPLETE
    assert entry.candidate_name == "Carol"
    assert entry.timestamp == service.clock.now()

    again = service.mark_complete(carol.id)
    assert not again.success
    assert again.error == "already_completed"
    assert service.mark_complete("missing").error == "not_found"


def test_cancel_and_reactivate(service, store):
    service.schedule_campaign()
    carol = by_candidate(service)["carol"]

    assert service.cancel(carol.id).success
    assert store.get_assignment(carol.id).status == AssignmentStatus.CANCELLED
    assert store.get_candidate("carol").status == CandidateStatus.PENDING
    assert service.mark_complete(carol.id).error == "scheduling_error"

    result = service.reactivate(carol.id)
    assert result.success
    assert store.get_assignment(carol.id).status == AssignmentStatus.SCHEDULED
    assert store.get_candidate("carol").status == CandidateStatus.SCHEDULED

    assert service.reactivate(carol.id).error == "slot_conflict"


def test_reactivate_refuses_a_taken_slot(service, store):
    service.schedule_campaign()
    carol = by_candidate(service)["carol"]
    service.cancel(carol.id)
    store.add_assignment(assignment("walk_in", "dev_2", 1, MORNING))

    result = service.reactivate(carol.id)
    assert not result.success
    assert result.error == "slot_conflict"
    assert store.get_assignment(carol.id).status == AssignmentStatus.CANCELLED


def test_cancelled_interview_can_be_cancelled_twice_but_not_completed_one(service):
    service.schedule_campaign()
    carol = by_candidate(service)["carol"]
    assert service.cancel(carol.id).success
    assert service.cancel(carol.id).success

    eve = by_candidate(service)["eve"]
    service.mark_complete(eve.id)
    assert service.cancel(eve.id).error == "already_completed"


def test_undo_complete_reopens_interview(service, store):
    service.schedule_campaign()
    carol = by_candidate(service)["carol"]
    service.mark_complete(carol.id)
    (entry,) = service.history()

    assert service.undo(entry.id).success
    assert store.get_assignment(carol.id).status == AssignmentStatus.SCHEDULED
    assert store.get_candidate("carol").status == CandidateStatus.SCHEDULED
    assert service.history()[0].undone

    again = service.undo(entry.id)
    assert not again.success
    assert service.undo("missing").error == "not_found"


def test_reschedule_is_recorded_in_history(service, store):
    service.schedule_campaign()
    carol = by_candidate(service)["carol"]

    result = service.request_reschedule(carol.id, "Exam clash")
    assert result.method == RescheduleMethod.SWAP
    (entry,) = service.history()
    assert entry.action_type == ActionType.RESCHEDULE
    assert "Exam clash" in entry.details

    # undoing a reschedule only flags the entry
    assert service.undo(entry.id).success
    assert store.get_assignment(carol.id).candidate_id == "dev"

    failed = service.request_reschedule("missing")
    assert not failed.success
    assert len(service.history()) == 1


def test_reads(service, clock):
    service.schedule_campaign()

    assert [a.candidate_id for a in service.interviews(day=1)] == ["carol"]
    assert service.interviews(status=AssignmentStatus.COMPLETED) == []
    assert len(service.interviews(interviewer_id="iv_a")) == 3
    assert [c.id for c in service.candidates(CandidateStatus.PENDING)] == ["finn"]

    assert [a.candidate_id for a in service.today_interviews()] == ["carol"]
    clock.set(datetime(2026, 1, 13, 1, 0, tzinfo=UTC))
    assert [a.candidate_id for a in service.today_interviews()] == ["eve"]
    clock.set(datetime(2026, 1, 14, 1, 0, tzinfo=UTC))
    assert service.today_interviews() == []


def test_stats(service):
    service.schedule_campaign()
    service.mark_complete(by_candidate(service)["carol"].id)
    service.cancel(by_candidate(service)["eve"].id)

    stats = service.stats()
    assert stats.total_candidates == 4
    assert stats.total_interviews == 3
    assert (stats.scheduled, stats.completed, stats.cancelled) == (1, 1, 1)
    assert stats.unscheduled == 2
    assert stats.days_used == 6
    assert stats.weeks_used == 2
    assert stats.schedule_start_date == START
    assert stats.current_day == 1
    assert [i.id for i in stats.interviewers] == ["iv_a", "iv_b"]


def test_compare_is_read_only(service):
    service.schedule_campaign()
    before = {a.id for a in service.interviews()}

    report = service.compare()
    assert isinstance(report, ComparisonReport)
    assert report.total_candidates == 4
    assert {a.id for a in service.interviews()} == before


def test_compare_needs_candidates(store, clock):
    svc = InterviewService(store, START, clock=clock)
    svc.load_roster([], interviewer_pair())
    with pytest.raises(NotFoundError):
        svc.compare()


class LockedHistoryMemoryStore(InMemoryStore):
    def add_history(self, entry):
        raise StorageError("history table locked")


class LockedHistorySqlStore(SqlStore):
    def __init__(self):
        super().__init__("sqlite:///:memory:")

    def add_history(self, entry):
        raise StorageError("history table locked")


@pytest.mark.parametrize("store_class", [LockedHistoryMemoryStore, LockedHistorySqlStore])
def test_reschedule_is_undone_when_history_cannot_be_written(store_class, clock):
    store = store_class()
    svc = InterviewService(store, START, clock=clock)
    svc.load_roster(roster(), interviewer_pair(week(MORNING, LATE_MORNING)))
    svc.schedule_campaign()
    before = by_candidate(svc)

    result = svc.request_reschedule(before["carol"].id, "Exam clash")

    assert not result.success
    assert result.error == "reschedule_failed"
    assert "history table locked" in result.message
    after = by_candidate(svc)
    assert after["carol"].id == before["carol"].id
    assert after["dev"].id == before["dev"].id
    assert after["carol"].reschedule_count == 0
    assert svc.history() == []


def test_load_roster_replaces_only_the_rosters_given(service, store):
    service.schedule_campaign()
    carol = by_candidate(service)["carol"]
    assert service.mark_complete(carol.id).success

    service.load_roster(interviewers=interviewer_pair(week(MORNING)))
    assert {c.id for c in service.candidates()} == {"carol", "dev", "eve", "finn"}
    assert [a.id for a in service.interviews()] == [carol.id]
    assert store.get_candidate("dev").status == CandidateStatus.PENDING
    assert store.get_candidate("carol").status == CandidateStatus.COMPLETED

    service.load_roster(candidates=[candidate("gus", {"monday": (MORNING,)})])
    assert {c.id for c in service.candidates()} == {"carol", "gus"}
    assert [i.id for i in store.list_interviewers()] == ["iv_a", "iv_b"]
