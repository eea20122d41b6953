"""Tests for the four greedy scheduling strategies."""

import random
from collections import Counter
from datetime import timedelta

import pytest

from helpers import (
    AFTERNOON,
    ALL_SLOTS,
    LATE_MORNING,
    MORNING,
    START,
    candidate,
    interviewer_pair,
    week,
)
from panel_scheduler.core.errors import ConfigurationError
from panel_scheduler.domain.models import WEEKDAYS, AssignmentStatus
from panel_scheduler.scheduling.availability import availability_score
from panel_scheduler.scheduling.comparison import load_stats
from panel_scheduler.scheduling.strategies import (
    NO_COMMON_SLOTS,
    NO_SLOT_IN_HORIZON,
    StrategyName,
    get_strategy,
    run_scheduler,
)

ALL_STRATEGIES = list(StrategyName)


def random_roster(seed, size=40):
    rng = random.Random(seed)
    candidates = []
    for i in range(size):
        availability = {
            day: tuple(s for s in ALL_SLOTS if rng.random() < 0.3) for day in WEEKDAYS
        }
        candidates.append(candidate(f"c{i:02d}", availability))
    return candidates


@pytest.mark.parametrize("strategy", ALL_STRATEGIES)
def test_zero_score_candidate_is_never_searched(strategy):
    result = run_scheduler(
        [candidate("c1", {"saturday": (MORNING,)})],
        interviewer_pair(),
        START,
        strategy=strategy,
    )
    assert result.scheduled_count == 0
    assert result.unscheduled_count == 1
    assert result.unscheduled[0].reason == NO_COMMON_SLOTS
    assert result.unscheduled[0].availability_score == 0


@pytest.mark.parametrize("strategy", ALL_STRATEGIES)
def test_requires_two_interviewers(strategy):
    with pytest.raises(ConfigurationError):
        run_scheduler([candidate("c1")], interviewer_pair()[:1], START, strategy=strategy)


@pytest.mark.parametrize("strategy", ALL_STRATEGIES)
def test_no_slot_is_booked_twice(strategy):
    candidates = random_roster(seed=3)
    interviewers = interviewer_pair()
    result = run_scheduler(
        candidates, interviewers, START, 30, strategy, rng=random.Random(1)
    )

    keys = [a.slot_key for a in result.assignments]
    assert len(keys) == len(set(keys))
    placed = Counter(a.candidate_id for a in result.assignments)
    assert all(count == 1 for count in placed.values())
    assert result.scheduled_count + result.unscheduled_count == len(candidates)

    zero = {c.id for c in candidates if availability_score(c, *interviewers) == 0}
    no_common = {u.candidate.id for u in result.unscheduled if u.reason == NO_COMMON_SLOTS}
    assert zero == no_common


def test_single_shared_slot_fills_once_per_week():
    candidates = [candidate(f"c{i}", {"monday": (MORNING,)}) for i in range(10)]

    result = run_scheduler(candidates, interviewer_pair(), START, 5)
    assert result.scheduled_count == 1
    assert result.unscheduled_count == 9
    assert {u.reason for u in result.unscheduled} == {NO_SLOT_IN_HORIZON}

    # a ten day horizon holds two Mondays
    result = run_scheduler(candidates, interviewer_pair(), START, 10)
    assert sorted(a.day_number for a in result.assignments) == [1, 6]


def test_least_available_places_tight_candidates_first():
    interviewers = interviewer_pair({"monday": (MORNING, LATE_MORNING)})
    flexible = candidate("flex", {"monday": (MORNING, LATE_MORNING)})
    tight = candidate("tight", {"monday": (MORNING,)})

    result = run_scheduler([flexible, tight], interviewers, START, strategy="least_available")
    placed = {a.candidate_id: a.slot_key for a in result.assignments}
    assert placed == {"tight": (1, MORNING), "flex": (1, LATE_MORNING)}


def test_most_available_places_flexible_candidates_first():
    interviewers = interviewer_pair({"monday": (MORNING, LATE_MORNING)})
    flexible = candidate("flex", {"monday": (MORNING, LATE_MORNING)})
    tight = candidate("tight", {"monday": (MORNING,)})

    result = run_scheduler([tight, flexible], interviewers, START, strategy="most_available")
    placed = {a.candidate_id: a.slot_key for a in result.assignments}
    assert placed == {"flex": (1, MORNING), "tight": (6, MORNING)}


def test_earliest_slot_of_the_day_is_taken():
    result = run_scheduler(
        [candidate("c1", {"tuesday": (AFTERNOON, LATE_MORNING)})], interviewer_pair(), START
    )
    assert result.assignments[0].slot_key == (2, LATE_MORNING)


def test_deterministic_strategies_repeat_exactly():
    candidates = random_roster(seed=11)
    for strategy in ("least_available", "most_available", "balanced"):
        first = run_scheduler(candidates, interviewer_pair(), START, 30, strategy)
        second = run_scheduler(candidates, interviewer_pair(), START, 30, strategy)
        assert [(a.candidate_id, a.slot_key) for a in first.assignments] == [
            (a.candidate_id, a.slot_key) for a in second.assignments
        ]


def test_random_order_follows_the_injected_rng():
    candidates = random_roster(seed=5)
    first = run_scheduler(candidates, interviewer_pair(), START, 30, "random", rng=random.Random(9))
    second = run_scheduler(candidates, interviewer_pair(), START, 30, "random", rng=random.Random(9))
    assert [(a.candidate_id, a.slot_key) for a in first.assignments] == [
        (a.candidate_id, a.slot_key) for a in second.assignments
    ]


def test_balanced_spreads_load_across_days():
    interviewers = interviewer_pair(week(MORNING, LATE_MORNING))
    candidates = [candidate(f"c{i}", week(MORNING, LATE_MORNING)) for i in range(3)]

    baseline = run_scheduler(candidates, interviewers, START, 5, "least_available")
    balanced = run_scheduler(candidates, interviewers, START, 5, "balanced")

    assert baseline.interviews_by_day == {1: 2, 2: 1}
    assert balanced.interviews_by_day == {1: 1, 2: 1, 3: 1}
    assert load_stats(balanced.interviews_by_day).variance <= load_stats(
        baseline.interviews_by_day
    ).variance


def test_balanced_variance_not_worse_than_baseline_with_slack():
    interviewers = interviewer_pair()
    candidates = random_roster(seed=21, size=25)
    baseline = run_scheduler(candidates, interviewers, START, 60, "least_available")
    balanced = run_scheduler(candidates, interviewers, START, 60, "balanced")
    assert balanced.scheduled_count == baseline.scheduled_count
    assert load_stats(balanced.interviews_by_day).variance <= load_stats(
        baseline.interviews_by_day
    ).variance


def test_min_day_and_booked_slots_are_respected():
    result = run_scheduler(
        [candidate("c1", {"monday": (MORNING,)})],
        interviewer_pair(),
        START,
        min_day_number=6,
        booked=[(6, MORNING)],
    )
    assert result.assignments[0].slot_key == (11, MORNING)


def test_result_counters_and_assignment_fields():
    result = run_scheduler(
        [
            candidate("c1", {"monday": (MORNING,)}),
            candidate("c2", {"monday": (MORNING,)}),
        ],
        interviewer_pair(),
        START,
    )
    assert result.strategy == StrategyName.LEAST_AVAILABLE
    assert result.total_candidates == 2
    assert result.days_used == 6
    assert result.weeks_used == 2
    assert result.interviews_by_day == {1: 1, 6: 1}
    for a in result.assignments:
        assert a.status == AssignmentStatus.SCHEDULED
        assert a.interviewer_ids == ("iv_a", "iv_b")
        assert a.end_time - a.start_time == timedelta(minutes=60)


def test_get_strategy_titles():
    titles = {name: get_strategy(name).title for name in StrategyName}
    assert titles[StrategyName.BALANCED] == "Workload Balancing"
    with pytest.raises(ValueError):
        get_strategy("fastest")
