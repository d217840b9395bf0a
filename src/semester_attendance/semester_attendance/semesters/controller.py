from __future__ import annotations

from flask import Flask

from ..common.datetime_utils import parse_iso_date
from ..common.http import json_body, json_errors, ok, outcome
from ..core.enums import SemesterKind
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.semester_service

    @app.route("/api/semesters", methods=["GET"], endpoint="semesters_list")
    @json_errors
    def semesters_list():
        return ok({"current": service.current(), "available": service.available()})

    @app.route("/api/semesters", methods=["POST"], endpoint="semesters_create")
    @json_errors
    def semesters_create():
        data = json_body()
        result = service.create_sheet(
            SemesterKind(data["kind"]),
            int(data["academicYear"]),
            data.get("name"),
        )
        return outcome(result, created=True)

    @app.route("/api/semesters/<int:semester_id>", methods=["PATCH"], endpoint="semesters_update")
    @json_errors
    def semesters_update(semester_id: int):
        data = json_body()
        result = service.update_sheet(
            semester_id,
            name=data.get("name"),
            start_date=parse_iso_date(data["startDate"]) if data.get("startDate") else None,
            end_date=parse_iso_date(data["endDate"]) if data.get("endDate") else None,
        )
        return outcome(result)

    @app.route("/api/semesters/<int:semester_id>/activate", methods=["POST"], endpoint="semesters_activate")
    @json_errors
    def semesters_activate(semester_id: int):
        return ok(service.activate(semester_id))

    @app.route("/api/semesters/switch", methods=["POST"], endpoint="semesters_switch")
    @json_errors
    def semesters_switch():
        return ok(service.switch_semester(SemesterKind(json_body()["kind"])))
