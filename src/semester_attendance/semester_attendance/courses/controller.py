from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, json_errors, ok, outcome
from ..container import Container
from .model import CourseDraft


def _semester_arg():
    value = request.args.get("semesterId")
    return int(value) if value else None


def register(app: Flask, container: Container) -> None:
    courses = container.course_service
    timetable = container.timetable_service

    @app.route("/api/timetable", methods=["GET"], endpoint="timetable_view")
    @json_errors
    def timetable_view():
        return ok(timetable.load(_semester_arg()))

    @app.route("/api/timetable/save", methods=["POST"], endpoint="timetable_save")
    @json_errors
    def timetable_save():
        timetable.save()
        return ok()

    @app.route("/api/courses", methods=["GET"], endpoint="courses_list")
    @json_errors
    def courses_list():
        return ok(courses.courses_in_semester(_semester_arg()))

    @app.route("/api/courses", methods=["POST"], endpoint="courses_add")
    @json_errors
    def courses_add():
        data = json_body()
        draft = CourseDraft(
            name=str(data.get("name", "")),
            day_of_week=int(data["dayOfWeek"]),
            period=int(data["period"]),
            total_classes=int(data.get("totalClasses", 15)),
            max_absences=int(data["maxAbsences"]) if data.get("maxAbsences") is not None else None,
            color_index=int(data.get("colorIndex", 0)),
            is_full_year=bool(data.get("isFullYear", False)),
            is_notification_enabled=bool(data.get("isNotificationEnabled", True)),
        )
        return outcome(courses.add_course(draft, data.get("semesterId")), created=True)

    @app.route("/api/courses/<int:course_id>/assign", methods=["POST"], endpoint="courses_assign")
    @json_errors
    def courses_assign(course_id: int):
        data = json_body()
        result = courses.assign_existing(
            course_id, int(data["dayOfWeek"]), int(data["period"]), data.get("semesterId")
        )
        return outcome(result, created=True)

    @app.route("/api/courses/<int:course_id>", methods=["PATCH"], endpoint="courses_edit")
    @json_errors
    def courses_edit(course_id: int):
        data = json_body()
        result = courses.edit_course(
            course_id,
            name=data.get("name"),
            total_classes=data.get("totalClasses"),
            max_absences=data.get("maxAbsences"),
            color_index=data.get("colorIndex"),
            is_full_year=data.get("isFullYear"),
            is_notification_enabled=data.get("isNotificationEnabled"),
        )
        return outcome(result)

    @app.route("/api/courses/<int:course_id>", methods=["DELETE"], endpoint="courses_delete")
    @json_errors
    def courses_delete(course_id: int):
        return ok({"deleted": courses.delete_course(course_id)})

    @app.route("/api/courses/<int:course_id>/all", methods=["DELETE"], endpoint="courses_delete_all")
    @json_errors
    def courses_delete_all(course_id: int):
        return ok({"deleted": courses.delete_all_with_same_name(course_id)})

    @app.route("/api/courses/sync", methods=["POST"], endpoint="courses_sync")
    @json_errors
    def courses_sync():
        return ok({"created": courses.sync_all()})

    @app.route("/api/semesters/<int:semester_id>/reset", methods=["POST"], endpoint="semesters_reset")
    @json_errors
    def semesters_reset(semester_id: int):
        return ok({"deleted": courses.reset_semester(semester_id)})
