from __future__ import annotations

from src.semester_attendance.semester_attendance.core.exceptions import StorageError


def test_representative_is_first_row_by_insertion(container, add_course):
    physics = add_course("Physics", 2, 2)
    copy = container.course_service.assign_existing(physics.course_id, 3, 3).course

    resolver = container.resolver
    assert [c.course_id for c in resolver.all_courses_named("Physics")] == [physics.course_id, copy.course_id]
    assert resolver.representative("Physics").course_id == physics.course_id
    # Stable across calls
    assert resolver.representative("Physics").course_id == physics.course_id


def test_next_row_takes_over_when_representative_is_deleted(container, add_course):
    physics = add_course("Physics", 2, 2)
    copy = container.course_service.assign_existing(physics.course_id, 3, 3).course

    container.courses_repo.delete_many([physics.course_id])

    assert container.resolver.representative("Physics").course_id == copy.course_id


def test_exists_checks(container, add_course, first_half, second_half):
    add_course("Physics", 2, 2)

    assert container.resolver.exists_in_semester("Physics", first_half.semester_id)
    assert not container.resolver.exists_in_semester("Physics", second_half.semester_id)
    assert container.resolver.exists_anywhere("Physics")
    assert not container.resolver.exists_anywhere("Chemistry")
    assert container.resolver.representative("Chemistry") is None


def test_storage_failure_reads_as_no_such_course(container, add_course):
    add_course("Physics", 2, 2)
    container.store.fail_reads = True
    try:
        assert container.resolver.all_courses_named("Physics") == []
        assert isinstance(container.resolver.last_error, StorageError)
        assert not container.resolver.exists_anywhere("Physics")
    finally:
        container.store.fail_reads = False

    assert container.resolver.exists_anywhere("Physics")
    assert container.resolver.last_error is None


def test_names_match_exactly(container, add_course, second_half):
    physics = add_course("Physics", 2, 2)
    lower = add_course("physics", 3, 3, semester=second_half)

    assert container.resolver.course_ids_named("Physics") == [physics.course_id]
    assert container.resolver.course_ids_named("physics") == [lower.course_id]
