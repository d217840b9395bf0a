from __future__ import annotations

import pytest

from src.semester_attendance.semester_attendance.core.enums import AssignConflict, SemesterKind, SlotConflict
from src.semester_attendance.semester_attendance.core.exceptions import StorageError
from src.semester_attendance.semester_attendance.courses.model import CourseDraft


def _rows(container):
    return sorted(
        (c.semester_id, c.name, c.day_of_week, c.period, c.is_full_year) for c in container.courses_repo.list_all()
    )


def test_full_year_course_gets_twin_in_paired_semester(container, first_half, second_half):
    result = container.synchronizer.create_paired(
        CourseDraft(name="Algorithms", day_of_week=1, period=1, max_absences=5, is_full_year=True), first_half
    )

    assert result.ok
    twin = container.synchronizer.find_twin(result.course)
    assert twin is not None
    assert twin.semester_id == second_half.semester_id
    assert twin.slot == (1, 1)
    assert twin.max_absences == 5 and twin.is_full_year
    assert container.synchronizer.find_twin(twin).course_id == result.course.course_id


def test_default_max_absences_is_a_third_of_total(container, first_half):
    result = container.synchronizer.create_paired(
        CourseDraft(name="Seminar", day_of_week=1, period=1, total_classes=14), first_half
    )
    assert result.course.max_absences == 4


@pytest.mark.parametrize(
    "occupy_current, occupy_other, expected",
    [
        (True, False, SlotConflict.CURRENT_SLOT_OCCUPIED),
        (False, True, SlotConflict.OTHER_SEMESTER_SLOT_OCCUPIED),
        (True, True, SlotConflict.BOTH_OCCUPIED),
    ],
)
def test_slot_conflicts_are_checked_before_any_write(
    container, add_course, first_half, second_half, occupy_current, occupy_other, expected
):
    if occupy_current:
        add_course("Chemistry", 1, 1, semester=first_half)
    if occupy_other:
        add_course("Biology", 1, 1, semester=second_half)
    before = _rows(container)

    result = container.synchronizer.create_paired(
        CourseDraft(name="Algorithms", day_of_week=1, period=1, is_full_year=True), first_half
    )

    assert result.conflict == expected
    assert _rows(container) == before


def test_failed_commit_leaves_no_orphaned_half(container, first_half):
    container.store.fail_on_commit = True
    with pytest.raises(StorageError):
        container.synchronizer.create_paired(
            CourseDraft(name="Algorithms", day_of_week=1, period=1, is_full_year=True), first_half
        )
    container.store.fail_on_commit = False

    assert container.courses_repo.list_by_name("Algorithms") == []
    assert len(container.synchronizer.index) == 0


def test_sync_all_heals_missing_twins_and_is_idempotent(container, first_half, second_half):
    # Legacy drift: a full-year row without its twin.
    container.courses_repo.create(
        semester_id=second_half.semester_id, name="Statistics", day_of_week=4, period=2,
        total_classes=15, max_absences=5, is_full_year=True,
    )

    created = container.synchronizer.sync_all()
    assert [(c.semester_id, c.name, c.slot) for c in created] == [(first_half.semester_id, "Statistics", (4, 2))]

    after_first = _rows(container)
    assert container.synchronizer.sync_all() == []
    assert _rows(container) == after_first


def test_sync_all_skips_occupied_slot(container, add_course, first_half, second_half, caplog):
    container.courses_repo.create(
        semester_id=first_half.semester_id, name="Statistics", day_of_week=4, period=2,
        total_classes=15, max_absences=5, is_full_year=True,
    )
    add_course("Biology", 4, 2, semester=second_half)

    with caplog.at_level("WARNING"):
        assert container.synchronizer.sync_all() == []
    assert "Pairing inconsistency" in caplog.text


def test_delete_paired_removes_exactly_the_pair(container, add_course, first_half):
    algorithms = add_course("Algorithms", 1, 1, is_full_year=True)
    container.course_service.assign_existing(algorithms.course_id, 2, 2)
    assert len(container.courses_repo.list_by_name("Algorithms")) == 4

    deleted = container.synchronizer.delete_paired(algorithms)

    assert len(deleted) == 2
    remaining = container.courses_repo.list_by_name("Algorithms")
    assert sorted(c.slot for c in remaining) == [(2, 2), (2, 2)]


def test_delete_paired_keeps_history_shared_with_slot_copies(container, add_course):
    algorithms = add_course("Algorithms", 1, 1, is_full_year=True)
    container.course_service.assign_existing(algorithms.course_id, 2, 2)
    container.ledger.record_absence(algorithms)
    assert container.resolver.representative("Algorithms").course_id == algorithms.course_id

    container.synchronizer.delete_paired(algorithms)

    assert len(container.courses_repo.list_by_name("Algorithms")) == 2
    assert container.ledger.count_for_name("Algorithms") == 1


def test_delete_paired_of_last_pair_drops_its_records(container, add_course):
    algorithms = add_course("Algorithms", 1, 1, is_full_year=True)
    container.ledger.record_absence(algorithms)

    container.synchronizer.delete_paired(algorithms)

    assert container.courses_repo.list_by_name("Algorithms") == []
    assert not container.store.records


def test_delete_paired_with_missing_twin_deletes_only_original(container, first_half, caplog):
    orphan = container.courses_repo.create(
        semester_id=first_half.semester_id, name="Statistics", day_of_week=4, period=2,
        total_classes=15, max_absences=5, is_full_year=True,
    )

    with caplog.at_level("WARNING"):
        deleted = container.synchronizer.delete_paired(orphan)

    assert [c.course_id for c in deleted] == [orphan.course_id]
    assert "no twin found" in caplog.text


def test_assign_in_same_semester_creates_second_row(container, add_course, first_half):
    physics = add_course("Physics", 2, 2)

    result = container.synchronizer.assign_existing_to_slot(physics, 3, 3, first_half)

    assert result.ok
    assert result.course.course_id != physics.course_id
    assert result.course.name == "Physics" and result.course.slot == (3, 3)
    assert container.courses_repo.get_by_id(physics.course_id).slot == (2, 2)


def test_assign_conflicts(container, add_course, first_half):
    physics = add_course("Physics", 2, 2)
    add_course("Chemistry", 3, 3)

    taken = container.synchronizer.assign_existing_to_slot(physics, 3, 3, first_half)
    assert taken.conflict == AssignConflict.SLOT_OCCUPIED

    older = container.semester_service.create_sheet(SemesterKind.FIRST_HALF, 2024).semester
    container.courses_repo.create(
        semester_id=older.semester_id, name="Physics", day_of_week=1, period=1,
        total_classes=15, max_absences=5,
    )
    dup = container.synchronizer.assign_existing_to_slot(physics, 5, 5, older)
    assert dup.conflict == AssignConflict.DUPLICATE_NAME_IN_SEMESTER


def test_assign_full_year_row_next_to_its_own_twin(container, add_course, first_half, second_half):
    algorithms = add_course("Algorithms", 1, 1, is_full_year=True)

    result = container.synchronizer.assign_existing_to_slot(algorithms, 3, 3, second_half)

    assert result.ok
    assert result.course.semester_id == second_half.semester_id
    assert result.course.slot == (3, 3) and result.course.is_full_year
    twin = container.courses_repo.get_at_slot(semester_id=first_half.semester_id, day_of_week=3, period=3)
    assert twin is not None and twin.name == "Algorithms"
    assert len(container.courses_repo.list_by_name("Algorithms")) == 4


def test_assign_either_half_of_a_full_year_course_gives_the_same_outcome(container, add_course, second_half):
    algorithms = add_course("Algorithms", 1, 1, is_full_year=True)
    second_row = container.synchronizer.find_twin(algorithms)

    from_second = container.synchronizer.assign_existing_to_slot(second_row, 2, 2, second_half)
    from_first = container.synchronizer.assign_existing_to_slot(algorithms, 4, 4, second_half)

    assert from_second.ok and from_first.ok


def test_assign_from_unrelated_semester_is_a_cross_semester_duplicate(container, add_course, first_half):
    older = container.semester_service.create_sheet(SemesterKind.FIRST_HALF, 2024).semester
    history = add_course("History", 1, 1, semester=older)

    result = container.synchronizer.assign_existing_to_slot(history, 1, 1, first_half)

    assert result.conflict == AssignConflict.DUPLICATE_NAME_ACROSS_SEMESTERS


def test_assign_from_paired_semester_forces_full_year(container, add_course, first_half, second_half):
    economics = add_course("Economics", 2, 4, semester=second_half)
    assert not economics.is_full_year

    result = container.synchronizer.assign_existing_to_slot(economics, 3, 4, first_half)

    assert result.ok and result.course.is_full_year
    assert container.courses_repo.get_by_id(economics.course_id).is_full_year
    twin = container.courses_repo.get_at_slot(semester_id=second_half.semester_id, day_of_week=3, period=4)
    assert twin is not None and twin.name == "Economics"
