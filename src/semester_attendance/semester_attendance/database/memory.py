"""In-memory entity store.

Used by the ``memory`` backend and by tests. Every write runs inside a
transaction; a failing transaction restores the snapshot taken when it
opened, which mirrors the rollback behaviour of the MySQL store.
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import Dict, Iterable, Optional, Sequence

from ..attendance.model import AttendanceRecord, CreditRecordRow
from ..attendance.repository import AttendanceRepository
from ..core.enums import AttendanceType, SemesterKind
from ..core.exceptions import StorageError
from ..courses.model import Course
from ..courses.repository import CourseRepository
from ..semesters.model import Semester
from ..semesters.repository import SemesterRepository
from .unit_of_work import UnitOfWork


class InMemoryStore:
    def __init__(self):
        self.semesters: Dict[int, Semester] = {}
        self.courses: Dict[int, Course] = {}
        self.records: Dict[int, AttendanceRecord] = {}
        self._next_ids = {"semester": 0, "course": 0, "record": 0}
        self._lock = threading.RLock()
        self._depth = 0

        # Failure injection for tests.
        self.fail_on_commit = False
        self.fail_reads = False

    def next_id(self, kind: str) -> int:
        self._next_ids[kind] += 1
        return self._next_ids[kind]

    def _snapshot(self):
        return (dict(self.semesters), dict(self.courses), dict(self.records), dict(self._next_ids))

    def _restore(self, snapshot) -> None:
        semesters, courses, records, next_ids = snapshot
        self.semesters, self.courses, self.records, self._next_ids = semesters, courses, records, next_ids

    @contextmanager
    def transaction(self):
        with self._lock:
            if self._depth:
                self._depth += 1
                try:
                    yield self
                finally:
                    self._depth -= 1
                return

            snapshot = self._snapshot()
            self._depth = 1
            try:
                yield self
                if self.fail_on_commit:
                    raise StorageError("Simulated commit failure")
            except Exception:
                self._restore(snapshot)
                raise
            finally:
                self._depth = 0

    def check_read(self) -> None:
        if self.fail_reads:
            raise StorageError("Simulated read failure")


class InMemoryUnitOfWork(UnitOfWork):
    def __init__(self, store: InMemoryStore):
        self._store = store

    def transaction(self):
        return self._store.transaction()


class InMemorySemesterRepository(SemesterRepository):
    def __init__(self, store: InMemoryStore):
        self._store = store

    def list_all(self) -> Sequence[Semester]:
        self._store.check_read()
        return sorted(self._store.semesters.values(), key=lambda s: (s.created_at, s.semester_id))

    def get_by_id(self, semester_id: int) -> Optional[Semester]:
        self._store.check_read()
        return self._store.semesters.get(int(semester_id))

    def get_active(self) -> Optional[Semester]:
        active = [s for s in self.list_all() if s.is_active]
        return active[-1] if active else None

    def create(
        self,
        *,
        name: str,
        kind: SemesterKind,
        start_date: date,
        end_date: date,
        is_active: bool,
        created_at: datetime,
    ) -> Semester:
        with self._store.transaction() as store:
            semester = Semester(
                semester_id=store.next_id("semester"),
                name=name,
                kind=kind,
                start_date=start_date,
                end_date=end_date,
                is_active=bool(is_active),
                created_at=created_at,
            )
            store.semesters[semester.semester_id] = semester
            return semester

    def update(self, semester: Semester) -> bool:
        with self._store.transaction() as store:
            if semester.semester_id not in store.semesters:
                return False
            store.semesters[semester.semester_id] = semester
            return True

    def set_active(self, semester_id: int) -> None:
        with self._store.transaction() as store:
            for sid, semester in list(store.semesters.items()):
                store.semesters[sid] = replace(semester, is_active=(sid == int(semester_id)))


class InMemoryCourseRepository(CourseRepository):
    def __init__(self, store: InMemoryStore):
        self._store = store

    def get_by_id(self, course_id: int) -> Optional[Course]:
        self._store.check_read()
        return self._store.courses.get(int(course_id))

    def list_all(self) -> Sequence[Course]:
        self._store.check_read()
        return [self._store.courses[cid] for cid in sorted(self._store.courses)]

    def list_by_name(self, name: str) -> Sequence[Course]:
        return [c for c in self.list_all() if c.name == name]

    def list_by_semester(self, semester_id: int) -> Sequence[Course]:
        rows = [c for c in self.list_all() if c.semester_id == int(semester_id)]
        return sorted(rows, key=lambda c: (c.day_of_week, c.period))

    def get_at_slot(self, *, semester_id: int, day_of_week: int, period: int) -> Optional[Course]:
        for course in self.list_all():
            if course.semester_id == int(semester_id) and course.slot == (int(day_of_week), int(period)):
                return course
        return None

    def create(self, *, semester_id: int, name: str, day_of_week: int, period: int, total_classes: int,
               max_absences: int, color_index: int = 0, is_full_year: bool = False,
               is_notification_enabled: bool = True) -> Course:
        with self._store.transaction() as store:
            if self.get_at_slot(semester_id=semester_id, day_of_week=day_of_week, period=period):
                raise StorageError("Duplicate entry for key 'uq_courses_slot'")
            course = Course(
                course_id=store.next_id("course"),
                name=name,
                semester_id=int(semester_id),
                day_of_week=int(day_of_week),
                period=int(period),
                total_classes=int(total_classes),
                max_absences=int(max_absences),
                color_index=int(color_index),
                is_full_year=bool(is_full_year),
                is_notification_enabled=bool(is_notification_enabled),
            )
            store.courses[course.course_id] = course
            return course

    def update(self, course: Course) -> bool:
        with self._store.transaction() as store:
            if course.course_id not in store.courses:
                return False
            store.courses[course.course_id] = course
            return True

    def delete_many(self, course_ids: Iterable[int]) -> int:
        deleted = 0
        with self._store.transaction() as store:
            for cid in set(int(c) for c in course_ids):
                if store.courses.pop(cid, None) is not None:
                    deleted += 1
            # Mirrors ON DELETE CASCADE.
            for rid, record in list(store.records.items()):
                if record.course_id not in store.courses:
                    del store.records[rid]
        return deleted


def _newest_first(records: Iterable[AttendanceRecord]) -> list[AttendanceRecord]:
    return sorted(records, key=lambda r: (r.record_date, r.record_id), reverse=True)


class InMemoryAttendanceRepository(AttendanceRepository):
    def __init__(self, store: InMemoryStore):
        self._store = store

    def _for_courses(self, course_ids: Iterable[int]) -> list[AttendanceRecord]:
        self._store.check_read()
        ids = {int(c) for c in course_ids}
        return [r for r in self._store.records.values() if r.course_id in ids]

    def create(self, *, course_id: int, record_date: date, type: AttendanceType, memo: str,
               created_at: datetime) -> AttendanceRecord:
        with self._store.transaction() as store:
            if int(course_id) not in store.courses:
                raise StorageError("Foreign key constraint fails: fk_records_course")
            record = AttendanceRecord(
                record_id=store.next_id("record"),
                course_id=int(course_id),
                record_date=record_date,
                type=AttendanceType(type),
                memo=memo or "",
                created_at=created_at,
            )
            store.records[record.record_id] = record
            return record

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        self._store.check_read()
        return self._store.records.get(int(record_id))

    def delete(self, record_id: int) -> bool:
        with self._store.transaction() as store:
            return store.records.pop(int(record_id), None) is not None

    def delete_for_courses(self, course_ids: Iterable[int]) -> int:
        with self._store.transaction() as store:
            doomed = [r.record_id for r in self._for_courses(course_ids)]
            for rid in doomed:
                del store.records[rid]
            return len(doomed)

    def reassign(self, *, from_course_ids: Iterable[int], to_course_id: int) -> int:
        with self._store.transaction() as store:
            moved = self._for_courses(from_course_ids)
            for record in moved:
                store.records[record.record_id] = replace(record, course_id=int(to_course_id))
            return len(moved)

    def list_for_courses(self, course_ids: Iterable[int]) -> Sequence[AttendanceRecord]:
        return _newest_first(self._for_courses(course_ids))

    def count_credit_for_courses(self, course_ids: Iterable[int]) -> int:
        return sum(1 for r in self._for_courses(course_ids) if r.type.affects_credit)

    def count_on_date(self, course_ids: Iterable[int], record_date: date) -> int:
        return sum(1 for r in self._for_courses(course_ids) if r.record_date == record_date)

    def latest_credit_record(self, course_ids: Iterable[int]) -> Optional[AttendanceRecord]:
        credit = _newest_first(r for r in self._for_courses(course_ids) if r.type.affects_credit)
        return credit[0] if credit else None

    def find_credit_on_date(self, course_id: int, record_date: date) -> Optional[AttendanceRecord]:
        hits = _newest_first(
            r for r in self._for_courses([course_id]) if r.type.affects_credit and r.record_date == record_date
        )
        return hits[0] if hits else None

    def list_credit_rows(self, names: Iterable[str]) -> Sequence[CreditRecordRow]:
        self._store.check_read()
        wanted = set(names)
        courses = self._store.courses
        rows = []
        for record in sorted(self._store.records.values(), key=lambda r: r.record_id):
            course = courses.get(record.course_id)
            if course is None or course.name not in wanted or not record.type.affects_credit:
                continue
            rows.append(
                CreditRecordRow(
                    record_id=record.record_id,
                    course_id=record.course_id,
                    course_name=course.name,
                    record_date=record.record_date,
                )
            )
        return rows

    def list_credit_in_period(self, course_ids: Iterable[int], start: date, end: date) -> Sequence[AttendanceRecord]:
        hits = [r for r in self._for_courses(course_ids) if r.type.affects_credit and start <= r.record_date <= end]
        return sorted(hits, key=lambda r: (r.record_date, r.record_id))
