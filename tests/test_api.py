from __future__ import annotations

import pytest

from src.semester_attendance.semester_attendance.attendance.model import RecordResult
from src.semester_attendance.semester_attendance.common.http import outcome
from src.semester_attendance.semester_attendance.core.enums import RecordOutcome
from src.semester_attendance.semester_attendance.main import create_app


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app()
    app.config["TESTING"] = True
    return app.test_client()


def test_course_lifecycle_over_http(client):
    semesters = client.get("/api/semesters").get_json()["data"]
    assert len(semesters["available"]) == 2
    assert semesters["current"]["kind"] == "firstHalf"

    created = client.post("/api/courses", json={"name": "Physics", "dayOfWeek": 2, "period": 2, "maxAbsences": 3})
    assert created.status_code == 201
    course_id = created.get_json()["data"]["course"]["course_id"]

    recorded = client.post(f"/api/courses/{course_id}/records", json={"date": "2025-05-07"})
    assert recorded.status_code == 201
    assert recorded.get_json()["data"]["absence_count"] == 1

    capped = client.post(f"/api/courses/{course_id}/records", json={"date": "2025-05-07"})
    assert capped.status_code == 409
    assert capped.get_json()["code"] == "dailyLimitReached"

    stats = client.get(f"/api/courses/{course_id}/absences").get_json()["data"]
    assert stats["remaining"] == 2

    undone = client.delete(f"/api/courses/{course_id}/records/last").get_json()["data"]
    assert undone["absenceCount"] == 0


def test_conflicts_and_errors_over_http(client):
    client.post("/api/courses", json={"name": "Physics", "dayOfWeek": 2, "period": 2})

    clash = client.post("/api/courses", json={"name": "Chemistry", "dayOfWeek": 2, "period": 2})
    assert clash.status_code == 409
    assert clash.get_json()["code"] == "currentSlotOccupied"

    invalid = client.post("/api/courses", json={"name": "", "dayOfWeek": 2, "period": 3})
    assert invalid.status_code == 400

    missing = client.get("/api/courses/999/records")
    assert missing.status_code == 404


def test_timetable_and_statistics_over_http(client):
    client.post("/api/courses", json={"name": "Physics", "dayOfWeek": 1, "period": 1})

    grid = client.get("/api/timetable").get_json()["data"]
    assert grid["days"] == 5 and len(grid["cells"]) == 25

    summary = client.get("/api/statistics").get_json()["data"]
    assert summary["levels"]["safe"] == 1


@pytest.mark.parametrize(
    "result_outcome, status",
    [
        (RecordOutcome.SUCCESS, 201),
        (RecordOutcome.DAILY_LIMIT_REACHED, 409),
        (RecordOutcome.COURSE_NOT_FOUND, 404),
    ],
)
def test_record_outcomes_map_to_status_codes(client, result_outcome, status):
    with client.application.test_request_context():
        response, code = outcome(RecordResult(outcome=result_outcome), created=True)

    assert code == status
    assert response.get_json()["success"] is (status == 201)
