from __future__ import annotations

from datetime import date, datetime

import pytest

from src.semester_attendance.semester_attendance.attendance.cache import AbsenceCountCache
from src.semester_attendance.semester_attendance.core.enums import AttendanceType
from src.semester_attendance.semester_attendance.core.exceptions import StorageError
from src.semester_attendance.semester_attendance.database.memory import (
    InMemoryAttendanceRepository,
    InMemoryCourseRepository,
    InMemoryStore,
)


class CountingAttendance(InMemoryAttendanceRepository):
    def __init__(self, store):
        super().__init__(store)
        self.bulk_queries = 0

    def list_credit_rows(self, names):
        self.bulk_queries += 1
        return super().list_credit_rows(names)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def courses(store):
    repo = InMemoryCourseRepository(store)
    made = [
        repo.create(semester_id=1, name="Physics", day_of_week=2, period=2, total_classes=15, max_absences=5),
        repo.create(semester_id=1, name="Physics", day_of_week=3, period=3, total_classes=15, max_absences=5),
        repo.create(semester_id=1, name="Chemistry", day_of_week=4, period=1, total_classes=15, max_absences=5),
        repo.create(semester_id=2, name="Physics", day_of_week=1, period=1, total_classes=15, max_absences=5),
    ]
    return made


@pytest.fixture
def records(store, courses):
    repo = CountingAttendance(store)
    now = datetime(2025, 5, 1, 8, 0)
    physics, physics_copy, _, physics_other = courses
    repo.create(course_id=physics.course_id, record_date=date(2025, 5, 7), type=AttendanceType.ABSENT, memo="", created_at=now)
    repo.create(course_id=physics.course_id, record_date=date(2025, 5, 14), type=AttendanceType.LATE, memo="", created_at=now)
    # Same name in a sheet that is not on screen still counts.
    repo.create(course_id=physics_other.course_id, record_date=date(2025, 10, 6), type=AttendanceType.ABSENT, memo="", created_at=now)
    return repo


def test_refresh_all_uses_one_query_and_keeps_zero_entries(records, courses):
    cache = AbsenceCountCache(records, counter=lambda name: -1)

    counts = cache.refresh_all(courses[:3])

    assert records.bulk_queries == 1
    assert counts == {"Physics": 2, "Chemistry": 0}
    assert "Chemistry" in cache
    assert "Biology" not in cache


def test_full_refresh_overrides_optimistic_patch(records, courses):
    cache = AbsenceCountCache(records, counter=lambda name: -1)
    cache.refresh_all(courses)
    cache.patch("Physics", 40)

    cache.refresh_all(courses)

    assert cache.get(courses[0]) == 2


def test_miss_falls_back_to_counter_and_warns(records, courses, caplog):
    calls = []

    def counter(name):
        calls.append(name)
        return 7

    cache = AbsenceCountCache(records, counter=counter, warn_every=3)

    with caplog.at_level("WARNING"):
        values = [cache.get(courses[2]) for _ in range(3)]

    assert values == [7, 7, 7]
    assert calls == ["Chemistry"] * 3
    assert cache.fallback_hits == 3
    assert "fallback used 3 times" in caplog.text
    # The fallback does not populate the map.
    assert cache.peek("Chemistry") is None


def test_failed_refresh_keeps_previous_map(store, records, courses):
    cache = AbsenceCountCache(records, counter=lambda name: -1)
    cache.refresh_all(courses)

    store.fail_reads = True
    with pytest.raises(StorageError):
        cache.refresh_all(courses)
    store.fail_reads = False

    assert cache.snapshot() == {"Physics": 2, "Chemistry": 0}


def test_clear_resets_entries(records, courses):
    cache = AbsenceCountCache(records, counter=lambda name: 0)
    cache.refresh_all(courses)
    cache.clear()
    assert cache.snapshot() == {}
