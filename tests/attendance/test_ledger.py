from __future__ import annotations

from datetime import date, datetime

import pytest

from src.semester_attendance.semester_attendance.core.enums import AttendanceType, ChangeKind, RecordOutcome
from src.semester_attendance.semester_attendance.core.exceptions import NotFoundError, StorageError


def _absence_alerts(container):
    return sorted(a.alert_id for a in container.sink.scheduled.values() if a.alert_id.startswith("absence_warning_"))


def test_full_year_scenario_limit_alerts_and_daily_cap(container, add_course, second_half):
    algorithms = add_course("Algorithms", 1, 1, max_absences=5, is_full_year=True)
    assert container.resolver.exists_in_semester("Algorithms", second_half.semester_id)
    ledger = container.ledger

    alerts_after = []
    for day in (5, 12, 19, 26, 2):
        record_date = date(2025, 5, day) if day != 2 else date(2025, 6, 2)
        result = ledger.record_absence(algorithms, record_date=record_date)
        assert result.outcome == RecordOutcome.SUCCESS
        alerts_after.append(len(_absence_alerts(container)))

    assert ledger.get_remaining_absences(algorithms) == 0
    assert ledger.get_absence_count(algorithms) == 5
    # Warnings on the 4th and 5th absence only.
    assert alerts_after == [0, 0, 0, 1, 2]

    sixth = ledger.record_absence(algorithms, record_date=date(2025, 6, 2))
    assert sixth.outcome == RecordOutcome.DAILY_LIMIT_REACHED
    assert ledger.count_for_name("Algorithms") == 5


def test_limit_alert_wording_reports_remaining(container, add_course):
    course = add_course("Algorithms", 1, 1, max_absences=3)
    for day in (5, 12, 19):
        container.ledger.record_absence(course, record_date=date(2025, 5, day))

    bodies = [a.body for a in container.sink.scheduled.values() if a.alert_id.startswith("absence_warning_")]
    assert any("Only 1 absence left" in b for b in bodies)
    assert any("reached the absence limit" in b for b in bodies)


def test_records_attach_to_representative_and_count_is_shared(container, add_course):
    physics = add_course("Physics", 2, 2)
    copy = container.course_service.assign_existing(physics.course_id, 3, 3).course

    result = container.ledger.record_absence(copy, record_date=date(2025, 5, 7))

    assert result.record.course_id == physics.course_id
    assert container.ledger.get_absence_count(physics) == 1
    assert container.ledger.get_absence_count(copy) == 1


def test_daily_cap_counts_slot_copies(container, add_course):
    physics = add_course("Physics", 2, 2)
    copy = container.course_service.assign_existing(physics.course_id, 3, 3).course
    day = date(2025, 5, 7)

    assert container.ledger.record_absence(physics, record_date=day).ok
    assert container.ledger.record_absence(copy, record_date=day).ok
    blocked = container.ledger.record_absence(physics, AttendanceType.LATE, record_date=day)

    assert blocked.outcome == RecordOutcome.DAILY_LIMIT_REACHED
    assert len(container.ledger.records_for(physics)) == 2


def test_non_credit_records_do_not_count(container, add_course):
    physics = add_course("Physics", 2, 2)

    result = container.ledger.record_absence(physics, AttendanceType.LATE, "bus", date(2025, 5, 7))

    assert result.ok
    assert result.absence_count == 0
    assert container.ledger.records_for(physics)[0].memo == "bus"


def test_unknown_course_is_reported(container, add_course):
    physics = add_course("Physics", 2, 2)
    container.courses_repo.delete_many([physics.course_id])

    result = container.ledger.record_absence(physics, record_date=date(2025, 5, 7))

    assert result.outcome == RecordOutcome.COURSE_NOT_FOUND


def test_undo_then_record_restores_count(container, add_course):
    course = add_course("Physics", 2, 2)
    ledger = container.ledger
    ledger.record_absence(course, record_date=date(2025, 5, 7))
    ledger.record_absence(course, record_date=date(2025, 5, 14))
    before = ledger.get_absence_count(course)

    undone = ledger.undo_last_record(course)
    assert undone.record_date == date(2025, 5, 14)
    assert ledger.get_absence_count(course) == before - 1

    ledger.record_absence(course, record_date=date(2025, 5, 14))
    assert ledger.get_absence_count(course) == before


def test_undo_breaks_date_ties_by_record_id(container, add_course):
    physics = add_course("Physics", 2, 2)
    copy = container.course_service.assign_existing(physics.course_id, 3, 3).course
    day = date(2025, 5, 7)
    first = container.ledger.record_absence(physics, record_date=day).record
    second = container.ledger.record_absence(copy, record_date=day).record

    undone = container.ledger.undo_last_record(physics)

    assert undone.record_id == max(first.record_id, second.record_id)
    assert [r.record_id for r in container.ledger.records_for(physics)] == [min(first.record_id, second.record_id)]


def test_undo_without_records_is_a_noop(container, add_course, caplog):
    course = add_course("Physics", 2, 2)
    with caplog.at_level("INFO"):
        assert container.ledger.undo_last_record(course) is None
    assert "Nothing to undo" in caplog.text


def test_undo_mirrors_to_full_year_twin(container, add_course):
    algorithms = add_course("Algorithms", 1, 1, is_full_year=True)
    twin = container.synchronizer.find_twin(algorithms)
    day = date(2025, 5, 7)
    container.ledger.record_absence(algorithms, record_date=day)
    # Legacy data: the same absence also stored on the twin row.
    container.attendance_repo.create(
        course_id=twin.course_id, record_date=day, type=AttendanceType.ABSENT, memo="", created_at=datetime(2025, 5, 7, 9, 0)
    )
    assert container.ledger.count_for_name("Algorithms") == 2

    container.ledger.undo_last_record(algorithms)

    assert container.ledger.count_for_name("Algorithms") == 0


def test_failed_write_leaves_cache_and_coordinator_untouched(container, add_course, timers):
    course = add_course("Physics", 2, 2)
    container.ledger.cache.refresh_all([course])
    container.coordinator.cancel()

    container.store.fail_on_commit = True
    with pytest.raises(StorageError):
        container.ledger.record_absence(course, record_date=date(2025, 5, 7))
    container.store.fail_on_commit = False

    assert container.ledger.cache.peek("Physics") == 0
    assert container.coordinator.pending == set()
    assert container.ledger.records_for(course) == []


def test_record_schedules_coalesced_changes(container, add_course, timers, emitted):
    course = add_course("Physics", 2, 2)
    emitted.clear()

    container.ledger.record_absence(course, record_date=date(2025, 5, 7))
    container.ledger.record_absence(course, AttendanceType.LATE, record_date=date(2025, 5, 8))
    assert emitted == []

    timers.fire_all()
    assert emitted == [ChangeKind.ATTENDANCE_DATA, ChangeKind.STATISTICS_DATA]


def test_delete_course_keeps_sibling_history(container, add_course):
    physics = add_course("Physics", 2, 2)
    copy = container.course_service.assign_existing(physics.course_id, 3, 3).course
    container.ledger.record_absence(copy, record_date=date(2025, 5, 7))

    deleted = container.ledger.delete_course(physics)

    assert [c.course_id for c in deleted] == [physics.course_id]
    assert container.ledger.count_for_name("Physics") == 1
    assert container.ledger.records_for(copy)[0].course_id == copy.course_id


def test_delete_course_emits_immediately(container, add_course, emitted):
    physics = add_course("Physics", 2, 2)
    emitted.clear()

    container.ledger.delete_course(physics)

    assert emitted == [ChangeKind.COURSE_DATA, ChangeKind.ATTENDANCE_DATA, ChangeKind.STATISTICS_DATA]
    assert container.courses_repo.list_by_name("Physics") == []


def test_delete_all_with_same_name(container, add_course, second_half):
    algorithms = add_course("Algorithms", 1, 1, is_full_year=True)
    container.course_service.assign_existing(algorithms.course_id, 2, 2)
    add_course("Chemistry", 4, 4)
    container.ledger.record_absence(algorithms, record_date=date(2025, 5, 7))

    deleted = container.ledger.delete_all_with_same_name(algorithms)

    assert deleted == 4
    assert container.courses_repo.list_by_name("Algorithms") == []
    assert container.attendance_repo.list_for_courses([algorithms.course_id]) == []
    assert container.resolver.exists_anywhere("Chemistry")


def test_reset_semester_is_name_scoped(container, add_course, first_half, second_half):
    add_course("Algorithms", 1, 1, is_full_year=True)
    add_course("Chemistry", 4, 1, semester=second_half)

    container.ledger.reset_semester(first_half)

    assert container.courses_repo.list_by_semester(first_half.semester_id) == []
    assert [c.name for c in container.courses_repo.list_by_semester(second_half.semester_id)] == ["Chemistry"]


def test_delete_record_updates_count(container, add_course):
    course = add_course("Physics", 2, 2)
    record = container.ledger.record_absence(course, record_date=date(2025, 5, 7)).record

    container.ledger.delete_record(record.record_id)

    assert container.ledger.get_absence_count(course) == 0
    with pytest.raises(NotFoundError):
        container.ledger.delete_record(record.record_id)


def test_absences_in_period(container, add_course):
    course = add_course("Physics", 2, 2)
    for day in (7, 14, 21):
        container.ledger.record_absence(course, record_date=date(2025, 5, day))

    hits = container.ledger.absences_in_period(course, date(2025, 5, 10), date(2025, 5, 31))

    assert [r.record_date.day for r in hits] == [14, 21]
