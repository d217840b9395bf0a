from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Iterable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.constants import ABSENCE_WARNING_REMAINING
from ..core.enums import AttendanceType, ChangeKind, RecordOutcome
from ..core.exceptions import NotFoundError
from ..courses.identity import CourseIdentityResolver
from ..courses.model import Course
from ..courses.pairing import FullYearPairingSynchronizer
from ..courses.repository import CourseRepository
from ..database.unit_of_work import UnitOfWork
from ..notifications.alerts import AbsenceAlertNotifier
from ..notifications.coordinator import ChangeNotificationCoordinator
from ..semesters.model import Semester
from .cache import AbsenceCountCache
from .model import AttendanceRecord, RecordResult
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

ALL_KINDS = (ChangeKind.COURSE_DATA, ChangeKind.ATTENDANCE_DATA, ChangeKind.STATISTICS_DATA)


class AbsenceLedger:
    """Record, cap and reverse attendance events for a course name.

    Every record is attached to the representative row of its name, so the
    count never depends on which timetable cell was tapped. Writes run in one
    transaction; the cache is patched and observers are notified only after
    the commit went through.
    """

    def __init__(
        self,
        records: AttendanceRepository,
        courses: CourseRepository,
        resolver: CourseIdentityResolver,
        synchronizer: FullYearPairingSynchronizer,
        uow: UnitOfWork,
        *,
        coordinator: ChangeNotificationCoordinator,
        alerts: Optional[AbsenceAlertNotifier] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._records = records
        self._courses = courses
        self._resolver = resolver
        self._sync = synchronizer
        self._uow = uow
        self._coordinator = coordinator
        self._alerts = alerts
        self._clock = clock
        self.cache = AbsenceCountCache(records, counter=self.count_for_name)

    def count_for_name(self, name: str) -> int:
        ids = self._resolver.course_ids_named(name)
        if not ids:
            return 0
        return self._records.count_credit_for_courses(ids)

    def get_absence_count(self, course: Course) -> int:
        return self.cache.get(course)

    def get_remaining_absences(self, course: Course) -> int:
        return max(0, course.max_absences - self.get_absence_count(course))

    def _daily_cap(self, course: Course, same_name: Sequence[Course]) -> int:
        # One recordable occurrence per timetable cell of this name in the
        # tapped course's semester; the full-year twin does not double the cap.
        in_semester = [c for c in same_name if c.semester_id == course.semester_id]
        return len(in_semester) or len(same_name)

    def record_absence(
        self,
        course: Course,
        type: AttendanceType = AttendanceType.ABSENT,
        memo: str = "",
        record_date: Optional[date] = None,
    ) -> RecordResult:
        type = AttendanceType(type)
        now = self._clock()
        record_date = record_date or now.date()

        same_name = self._resolver.all_courses_named(course.name)
        if not same_name:
            logger.info("Cannot record %s for %r: no course with that name", type.value, course.name)
            return RecordResult(outcome=RecordOutcome.COURSE_NOT_FOUND)

        ids = [c.course_id for c in same_name]
        representative = same_name[0]

        with self._uow.transaction():
            if self._records.count_on_date(ids, record_date) >= self._daily_cap(course, same_name):
                logger.info("Daily limit reached for %r on %s", course.name, record_date.isoformat())
                return RecordResult(outcome=RecordOutcome.DAILY_LIMIT_REACHED)

            before = self._records.count_credit_for_courses(ids)
            record = self._records.create(
                course_id=representative.course_id,
                record_date=record_date,
                type=type,
                memo=(memo or "").strip(),
                created_at=now,
            )
            after = self._records.count_credit_for_courses(ids)

        self.cache.patch(course.name, after)
        remaining = max(0, course.max_absences - after)
        logger.info(
            "Recorded %s for %r on %s (count=%d, remaining=%d)",
            type.value, course.name, record_date.isoformat(), after, remaining,
        )

        if type.affects_credit and max(0, course.max_absences - before) <= ABSENCE_WARNING_REMAINING:
            if self._alerts is not None:
                self._alerts.warn(course, current=after, remaining=remaining)

        self._coordinator.schedule(ChangeKind.ATTENDANCE_DATA)
        self._coordinator.schedule(ChangeKind.STATISTICS_DATA)
        return RecordResult(outcome=RecordOutcome.SUCCESS, record=record, absence_count=after, remaining=remaining)

    def undo_last_record(self, course: Course) -> Optional[AttendanceRecord]:
        """Delete the newest credit-affecting record of the name.

        When that record belongs to a full-year row, the record on the same
        date of the twin row goes with it.
        """

        ids = self._resolver.course_ids_named(course.name)
        if not ids:
            logger.info("Nothing to undo for %r: no course with that name", course.name)
            return None

        with self._uow.transaction():
            latest = self._records.latest_credit_record(ids)
            if latest is None:
                logger.info("Nothing to undo for %r: no absence recorded", course.name)
                return None

            self._records.delete(latest.record_id)
            owner = self._courses.get_by_id(latest.course_id)
            if owner is not None and owner.is_full_year:
                twin = self._sync.find_twin(owner)
                if twin is not None:
                    mirrored = self._records.find_credit_on_date(twin.course_id, latest.record_date)
                    if mirrored is not None:
                        self._records.delete(mirrored.record_id)
                        logger.info("Undo mirrored to %r twin on %s", course.name, latest.record_date.isoformat())
            after = self._records.count_credit_for_courses(ids)

        self.cache.patch(course.name, after)
        self._coordinator.schedule(ChangeKind.ATTENDANCE_DATA)
        self._coordinator.schedule(ChangeKind.STATISTICS_DATA)
        return latest

    def records_for(self, course: Course) -> Sequence[AttendanceRecord]:
        ids = self._resolver.course_ids_named(course.name)
        return self._records.list_for_courses(ids) if ids else []

    def absences_in_period(self, course: Course, start: date, end: date) -> Sequence[AttendanceRecord]:
        ids = self._resolver.course_ids_named(course.name)
        return self._records.list_credit_in_period(ids, start, end) if ids else []

    def delete_record(self, record_id: int) -> AttendanceRecord:
        record = self._records.get_by_id(record_id)
        if record is None:
            raise NotFoundError("Attendance record not found")
        owner = self._courses.get_by_id(record.course_id)

        with self._uow.transaction():
            self._records.delete(record.record_id)
            after = self.count_for_name(owner.name) if owner is not None else None

        if owner is not None and after is not None:
            self.cache.patch(owner.name, after)
        self._coordinator.schedule(ChangeKind.ATTENDANCE_DATA)
        self._coordinator.schedule(ChangeKind.STATISTICS_DATA)
        return record

    def _delete_names(self, names: Iterable[str]) -> int:
        names = sorted(set(names))
        deleted = 0
        try:
            with self._uow.transaction():
                for name in names:
                    ids = self._resolver.course_ids_named(name)
                    if not ids:
                        continue
                    self._records.delete_for_courses(ids)
                    deleted += self._courses.delete_many(ids)
        finally:
            self._sync.rebuild_index()

        for name in names:
            self.cache.discard(name)
        return deleted

    def reset_semester(self, semester: Semester) -> int:
        """Delete every course named like one in ``semester``, in all semesters.

        Name-scoped on purpose: a full-year course's other half and every
        slot copy go too, so no attendance is left without a course.
        """

        names = {c.name for c in self._courses.list_by_semester(semester.semester_id)}
        deleted = self._delete_names(names)
        logger.info("Reset %r: deleted %d course rows across %d names", semester.name, deleted, len(names))
        self._coordinator.emit_now(*ALL_KINDS)
        return deleted

    def delete_all_with_same_name(self, course: Course) -> int:
        deleted = self._delete_names([course.name])
        logger.info("Deleted all %d rows named %r", deleted, course.name)
        self._coordinator.emit_now(*ALL_KINDS)
        return deleted

    def delete_course(self, course: Course) -> list[Course]:
        """Delete the tapped row and its full-year twin.

        Sibling slot copies keep the shared history; see
        ``FullYearPairingSynchronizer.delete_paired``.
        """

        deleted = self._sync.delete_paired(course)
        remaining = self._resolver.course_ids_named(course.name)
        if not remaining:
            self.cache.discard(course.name)
        logger.info("Deleted %d row(s) of %r; %d sibling row(s) remain", len(deleted), course.name, len(remaining))
        self._coordinator.emit_now(*ALL_KINDS)
        return deleted
