"""Tests for slot parsing and three-way availability intersection."""

import itertools

import pytest

from helpers import AFTERNOON, EVENING, LATE_MORNING, MORNING, candidate, interviewer_pair, week
from panel_scheduler.core.errors import InvalidSlotLabelError
from panel_scheduler.domain.models import Interviewer
from panel_scheduler.scheduling.availability import (
    availability_score,
    common_slots,
    parse_slot_time,
    require_slot_time,
    slot_sort_key,
)


@pytest.mark.parametrize(
    "label, expected",
    [
        ("9:30AM-10:30AM", (9, 30)),
        ("7PM-8:30PM", (19, 0)),
        ("12PM-1PM", (12, 0)),
        ("12:30PM-2PM", (12, 30)),
        ("12AM-1AM", (0, 0)),
        ("12:30am-1:30am", (0, 30)),
        (" 3:30 PM-5PM", (15, 30)),
        ("bogus", None),
        ("", None),
        ("13PM-2PM", None),
    ],
)
def test_parse_slot_time(label, expected):
    assert parse_slot_time(label) == expected


def test_require_slot_time_rejects_unparseable_label():
    with pytest.raises(InvalidSlotLabelError):
        require_slot_time("morning")
    # also usable wherever a ValueError is expected
    with pytest.raises(ValueError):
        require_slot_time("morning")


def test_common_slots_is_the_sorted_intersection():
    cand = candidate("c1", {"monday": (EVENING, AFTERNOON, MORNING)})
    a = Interviewer(id="a", name="A", availability={"monday": (MORNING, AFTERNOON, EVENING, LATE_MORNING)})
    b = Interviewer(id="b", name="B", availability={"monday": (AFTERNOON, MORNING)})

    assert common_slots("monday", cand, a, b) == [MORNING, AFTERNOON]
    assert common_slots("tuesday", cand, a, b) == []


def test_common_slots_ignores_input_order():
    labels = (EVENING, MORNING, AFTERNOON, LATE_MORNING)
    a, b = interviewer_pair(week(*labels))
    results = {
        tuple(common_slots("friday", candidate("c", {"friday": perm}), a, b))
        for perm in itertools.permutations(labels)
    }
    assert results == {(MORNING, LATE_MORNING, AFTERNOON, EVENING)}


def test_unparseable_labels_sort_last():
    labels = ["later", EVENING, MORNING]
    assert sorted(labels, key=slot_sort_key) == [MORNING, EVENING, "later"]


def test_availability_score_sums_the_week():
    a, b = interviewer_pair(week(MORNING, AFTERNOON))
    cand = candidate(
        "c1",
        {"monday": (MORNING, AFTERNOON), "wednesday": (MORNING, EVENING), "friday": (EVENING,)},
    )
    assert availability_score(cand, a, b) == 3
    assert availability_score(candidate("c2"), a, b) == 0
