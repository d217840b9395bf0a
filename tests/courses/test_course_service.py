from __future__ import annotations

from datetime import date

import pytest

from src.semester_attendance.semester_attendance.core.enums import ChangeKind, DuplicateName, SlotConflict
from src.semester_attendance.semester_attendance.core.exceptions import NotFoundError, ValidationError
from src.semester_attendance.semester_attendance.courses.model import CourseDraft


def test_add_course_emits_immediately(container, emitted):
    result = container.course_service.add_course(CourseDraft(name="  Physics ", day_of_week=2, period=2))

    assert result.ok
    assert result.course.name == "Physics"
    assert emitted == [ChangeKind.COURSE_DATA, ChangeKind.STATISTICS_DATA]
    assert container.ledger.cache.peek("Physics") == 0


def test_add_course_duplicate_names(container, add_course, second_half):
    add_course("Physics", 2, 2)

    same_sheet = container.course_service.add_course(CourseDraft(name="Physics", day_of_week=3, period=3))
    other_sheet = container.course_service.add_course(
        CourseDraft(name="Physics", day_of_week=3, period=3), second_half.semester_id
    )

    assert same_sheet.conflict == DuplicateName.IN_SEMESTER
    assert other_sheet.conflict == DuplicateName.ACROSS_SEMESTERS


def test_add_course_slot_conflict_is_returned(container, add_course):
    add_course("Physics", 2, 2)

    result = container.course_service.add_course(CourseDraft(name="Chemistry", day_of_week=2, period=2))

    assert result.conflict == SlotConflict.CURRENT_SLOT_OCCUPIED


@pytest.mark.parametrize(
    "draft",
    [
        CourseDraft(name="", day_of_week=1, period=1),
        CourseDraft(name="Physics", day_of_week=8, period=1),
        CourseDraft(name="Physics", day_of_week=1, period=0),
        CourseDraft(name="Physics", day_of_week=1, period=6),
        CourseDraft(name="Physics", day_of_week=1, period=1, total_classes=10, max_absences=11),
    ],
)
def test_add_course_validation(container, draft):
    with pytest.raises(ValidationError):
        container.course_service.add_course(draft)


def test_rename_propagates_to_every_row_and_keeps_count(container, add_course):
    algorithms = add_course("Algorithms", 1, 1, is_full_year=True)
    container.course_service.assign_existing(algorithms.course_id, 2, 2)
    container.ledger.record_absence(algorithms, record_date=date(2025, 5, 7))

    result = container.course_service.edit_course(algorithms.course_id, name="Advanced Algorithms", max_absences=4)

    assert result.ok
    assert container.courses_repo.list_by_name("Algorithms") == []
    renamed = container.courses_repo.list_by_name("Advanced Algorithms")
    assert len(renamed) == 4
    assert {c.max_absences for c in renamed} == {4}
    assert container.synchronizer.find_twin(result.course) is not None
    assert container.ledger.get_absence_count(result.course) == 1


def test_rename_to_existing_name_is_rejected(container, add_course):
    physics = add_course("Physics", 2, 2)
    add_course("Chemistry", 3, 3)

    result = container.course_service.edit_course(physics.course_id, name="Chemistry")

    assert result.conflict == DuplicateName.IN_SEMESTER


def test_turning_on_full_year_creates_twin(container, add_course, second_half):
    physics = add_course("Physics", 2, 2)

    container.course_service.edit_course(physics.course_id, is_full_year=True)

    twin = container.courses_repo.get_at_slot(semester_id=second_half.semester_id, day_of_week=2, period=2)
    assert twin is not None and twin.name == "Physics" and twin.is_full_year


def test_unknown_course_raises(container):
    with pytest.raises(NotFoundError):
        container.course_service.delete_course(999)


def test_courses_in_current_semester(container, add_course, second_half):
    add_course("Physics", 2, 2)
    add_course("Chemistry", 1, 1)
    add_course("Biology", 1, 1, semester=second_half)

    assert [c.name for c in container.course_service.courses_in_semester()] == ["Chemistry", "Physics"]


def test_timetable_grid_shows_counts(container, add_course):
    physics = add_course("Physics", 2, 2, max_absences=4)
    container.ledger.record_absence(physics, record_date=date(2025, 5, 7))

    view = container.timetable_service.load()

    cell = view.cell(2, 2)
    assert cell.course.name == "Physics"
    assert (cell.absence_count, cell.remaining) == (1, 3)
    assert view.cell(1, 1).course is None
    assert len(view.cells) == 25
    assert "class_reminder_Physics_2_2" in container.sink.scheduled


def test_timetable_save_emits_every_kind(container, emitted):
    container.timetable_service.save()

    assert emitted == [ChangeKind.COURSE_DATA, ChangeKind.ATTENDANCE_DATA, ChangeKind.STATISTICS_DATA]
