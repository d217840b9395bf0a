from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import json_body, json_errors, ok, outcome
from ..container import Container
from ..core.enums import AttendanceType, RiskLevel
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    ledger = container.ledger
    courses = container.course_service
    statistics = container.statistics_service

    @app.route("/api/courses/<int:course_id>/records", methods=["POST"], endpoint="attendance_record")
    @json_errors
    def attendance_record(course_id: int):
        data = json_body()
        course = courses.get(course_id)
        result = ledger.record_absence(
            course,
            AttendanceType(data.get("type", AttendanceType.ABSENT.value)),
            str(data.get("memo", "")),
            parse_iso_date(data["date"]) if data.get("date") else None,
        )
        return outcome(result, created=True)

    @app.route("/api/courses/<int:course_id>/records/last", methods=["DELETE"], endpoint="attendance_undo")
    @json_errors
    def attendance_undo(course_id: int):
        course = courses.get(course_id)
        undone = ledger.undo_last_record(course)
        return ok({"undone": undone, "absenceCount": ledger.get_absence_count(course)})

    @app.route("/api/courses/<int:course_id>/records", methods=["GET"], endpoint="attendance_history")
    @json_errors
    def attendance_history(course_id: int):
        return ok(ledger.records_for(courses.get(course_id)))

    @app.route("/api/records/<int:record_id>", methods=["DELETE"], endpoint="attendance_delete_record")
    @json_errors
    def attendance_delete_record(record_id: int):
        return ok(ledger.delete_record(record_id))

    @app.route("/api/courses/<int:course_id>/absences", methods=["GET"], endpoint="attendance_count")
    @json_errors
    def attendance_count(course_id: int):
        course = courses.get(course_id)
        return ok(statistics.course_stats(course))

    @app.route("/api/statistics", methods=["GET"], endpoint="statistics_summary")
    @json_errors
    def statistics_summary():
        semester_id = request.args.get("semesterId")
        summary = statistics.semester_summary(int(semester_id) if semester_id else None)
        return ok(
            {
                "summary": summary,
                "totalAbsences": summary.total_absences,
                "levels": {level.value: summary.count_at(level) for level in RiskLevel},
            }
        )

    @app.route("/api/statistics/period", methods=["GET"], endpoint="statistics_period")
    @json_errors
    def statistics_period():
        name = request.args.get("name", "").strip()
        if not name:
            raise ValidationError("name is required")
        start = parse_iso_date(request.args["start"])
        end = parse_iso_date(request.args["end"])
        return ok({"name": name, "absences": statistics.absences_in_period(name, start, end)})
