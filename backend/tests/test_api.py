"""Tests for the HTTP layer."""

import pytest
from fastapi.testclient import TestClient

from helpers import LATE_MORNING, MORNING, START
from panel_scheduler.main import create_app
from panel_scheduler.scheduling.service import InterviewService
from panel_scheduler.storage import InMemoryStore

AVAILABILITY = {"monday": [MORNING, LATE_MORNING], "tuesday": [MORNING]}

ROSTER = {
    "candidates": [
        {"roll_number": "22B0001", "name": "Carol", "email": "carol@example.com",
         "availability": {"monday": [MORNING]}},
        {"roll_number": "22B0002", "name": "Dev", "availability": {"monday": [MORNING]}},
        {"roll_number": "22B0003", "name": "Eve", "availability": {"friday": [MORNING]}},
    ],
    "interviewers": [
        {"id": "iv_a", "name": "Asha", "availability": AVAILABILITY},
        {"id": "iv_b", "name": "Bilal", "availability": AVAILABILITY},
    ],
}


@pytest.fixture
def client(clock):
    service = InterviewService(InMemoryStore(), START, clock=clock)
    return TestClient(create_app(service))


@pytest.fixture
def scheduled(client):
    response = client.post("/schedule", json=ROSTER)
    assert response.status_code == 200
    return {a["candidate_id"]: a for a in response.json()["assignments"]}


def test_schedule(client):
    response = client.post("/schedule", json={**ROSTER, "strategy": "balanced"})
    body = response.json()
    assert response.status_code == 200
    assert body["strategy"] == "balanced"
    assert body["scheduled_count"] == 2
    assert body["unscheduled"][0]["reason"] == "no common slots"
    assert body["unscheduled"][0]["candidate"]["id"] == "22B0003"


def test_schedule_rejects_bad_slot_label(client):
    roster = {**ROSTER, "candidates": [{"name": "Carol", "availability": {"monday": ["soon"]}}]}
    assert client.post("/schedule", json=roster).status_code == 422


def test_schedule_needs_two_interviewers(client):
    roster = {**ROSTER, "interviewers": ROSTER["interviewers"][:1]}
    response = client.post("/schedule", json=roster)
    assert response.status_code == 400
    assert response.json()["error"] == "configuration_error"


def test_list_interviews(client, scheduled):
    assert scheduled["22B0001"]["day_number"] == 1
    assert scheduled["22B0002"]["day_number"] == 6

    day_one = client.get("/interviews", params={"day": 1}).json()
    assert [a["candidate_id"] for a in day_one] == ["22B0001"]
    today = client.get("/interviews/today").json()
    assert [a["candidate_id"] for a in today] == ["22B0001"]
    one = client.get(f"/interviews/{scheduled['22B0002']['id']}").json()
    assert one["completed"] is False
    assert client.get("/interviews/missing").status_code == 404


def test_complete_and_undo(client, scheduled):
    interview_id = scheduled["22B0001"]["id"]

    response = client.post(f"/interviews/{interview_id}/complete")
    assert response.status_code == 200
    assert response.json()["assignment"]["completed"] is True

    again = client.post(f"/interviews/{interview_id}/complete")
    assert again.status_code == 409
    assert again.json()["error"] == "already_completed"

    history = client.get("/history").json()
    assert history[0]["action_type"] == "COMPLETE"
    undo = client.post(f"/history/{history[0]['id']}/undo")
    assert undo.status_code == 200
    assert client.get("/history").json()[0]["undone"] is True


def test_reschedule_swaps(client, scheduled):
    interview_id = scheduled["22B0001"]["id"]
    response = client.post(f"/interviews/{interview_id}/reschedule", json={"reason": "Exam"})
    body = response.json()
    assert response.status_code == 200
    assert body["method"] == "SWAP"
    assert body["affected_count"] == 2

    loop = client.post(f"/interviews/{interview_id}/reschedule")
    assert loop.status_code == 409
    assert loop.json()["error"] == "loop_detected"

    missing = client.post("/interviews/missing/reschedule")
    assert missing.status_code == 404


def test_cancel_and_reactivate(client, scheduled):
    interview_id = scheduled["22B0001"]["id"]
    assert client.post(f"/interviews/{interview_id}/cancel").json()["assignment"]["status"] == "CANCELLED"
    pending = client.get("/candidates", params={"status": "PENDING"}).json()
    assert {c["id"] for c in pending} == {"22B0001", "22B0003"}
    assert client.post(f"/interviews/{interview_id}/reactivate").status_code == 200


def test_stats(client, scheduled):
    stats = client.get("/stats").json()
    assert stats["total_candidates"] == 3
    assert stats["scheduled"] == 2
    assert stats["weeks_used"] == 2
    assert stats["schedule_start_date"] == "2026-01-12"


def test_compare(client, scheduled):
    single = client.post("/compare", json={}).json()
    assert [r["strategy"] for r in single["results"]] == [
        "least_available",
        "most_available",
        "random",
        "balanced",
    ]
    multi = client.post("/compare", json={"multi_run": True, "iterations": 2}).json()
    assert multi["iterations"] == 2
    assert client.post("/compare", json={"iterations": 0}).status_code == 422


def test_request_id_header_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "abc"})
    assert response.headers["X-Request-ID"] == "abc"


def test_schedule_with_candidates_only_keeps_interviewers_and_completed(client, scheduled):
    carol = scheduled["22B0001"]["id"]
    assert client.post(f"/interviews/{carol}/complete").status_code == 200

    response = client.post("/schedule", json={"candidates": ROSTER["candidates"]})
    assert response.status_code == 200
    assert [a["candidate_id"] for a in response.json()["assignments"]] == ["22B0002"]

    assert client.get(f"/interviews/{carol}").json()["status"] == "COMPLETED"
    stats = client.get("/stats").json()
    assert [i["id"] for i in stats["interviewers"]] == ["iv_a", "iv_b"]
    assert stats["completed"] == 1
    assert stats["total_candidates"] == 3


def test_failed_schedule_leaves_stored_roster_untouched(client, scheduled):
    before = client.get("/interviews").json()

    response = client.post("/schedule", json={"interviewers": ROSTER["interviewers"][:1]})
    assert response.status_code == 400
    assert response.json()["error"] == "configuration_error"

    assert client.get("/interviews").json() == before
    stats = client.get("/stats").json()
    assert [i["id"] for i in stats["interviewers"]] == ["iv_a", "iv_b"]
    assert stats["total_candidates"] == 3


def test_error_body_is_documented(client):
    schema = client.get("/openapi.json").json()
    assert "ErrorResponse" in schema["components"]["schemas"]
    lookup = schema["paths"]["/interviews/{assignment_id}"]["get"]["responses"]
    assert lookup["404"]["content"]["application/json"]["schema"]["$ref"].endswith(
        "/ErrorResponse"
    )
