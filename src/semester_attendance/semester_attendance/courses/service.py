from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Sequence

from ..attendance.ledger import AbsenceLedger
from ..common.validators import require_non_empty, require_range
from ..core.constants import MAX_DAY_OF_WEEK, MAX_PERIOD
from ..core.enums import ChangeKind, DuplicateName
from ..core.exceptions import NotFoundError
from ..database.unit_of_work import UnitOfWork
from ..notifications.coordinator import ChangeNotificationCoordinator
from ..semesters.model import Semester
from ..semesters.service import SemesterService
from .identity import CourseIdentityResolver
from .model import Course, CourseDraft, CourseResult
from .pairing import FullYearPairingSynchronizer
from .repository import CourseRepository

logger = logging.getLogger(__name__)


class CourseService:
    def __init__(
        self,
        courses: CourseRepository,
        resolver: CourseIdentityResolver,
        synchronizer: FullYearPairingSynchronizer,
        ledger: AbsenceLedger,
        semesters: SemesterService,
        uow: UnitOfWork,
        *,
        coordinator: ChangeNotificationCoordinator,
    ):
        self._courses = courses
        self._resolver = resolver
        self._sync = synchronizer
        self._ledger = ledger
        self._semesters = semesters
        self._uow = uow
        self._coordinator = coordinator

    def _semester(self, semester_id: Optional[int]) -> Semester:
        if semester_id is None:
            return self._semesters.require_current()
        return self._semesters.get(semester_id)

    def get(self, course_id: int) -> Course:
        course = self._courses.get_by_id(course_id)
        if course is None:
            raise NotFoundError("Course not found")
        return course

    def courses_in_semester(self, semester_id: Optional[int] = None) -> Sequence[Course]:
        return self._courses.list_by_semester(self._semester(semester_id).semester_id)

    @staticmethod
    def _validate_slot(day_of_week: int, period: int) -> tuple[int, int]:
        return (
            require_range(day_of_week, "Day of week", 1, MAX_DAY_OF_WEEK),
            require_range(period, "Period", 1, MAX_PERIOD),
        )

    @staticmethod
    def _validate_limits(total_classes: int, max_absences: Optional[int]) -> None:
        total = require_range(total_classes, "Total classes", 1, 100)
        if max_absences is not None:
            require_range(max_absences, "Max absences", 0, total)

    def add_course(self, draft: CourseDraft, semester_id: Optional[int] = None) -> CourseResult:
        semester = self._semester(semester_id)
        name = require_non_empty(draft.name, "Course name")
        day, period = self._validate_slot(draft.day_of_week, draft.period)
        self._validate_limits(draft.total_classes, draft.max_absences)
        draft = replace(draft, name=name, day_of_week=day, period=period)

        if self._resolver.exists_in_semester(name, semester.semester_id):
            return CourseResult(conflict=DuplicateName.IN_SEMESTER)
        if self._resolver.exists_anywhere(name):
            # Same name elsewhere: the user has to assign the existing course instead.
            return CourseResult(conflict=DuplicateName.ACROSS_SEMESTERS)

        result = self._sync.create_paired(draft, semester)
        if not result.ok:
            logger.info("Add %r to %r blocked: %s", name, semester.name, result.conflict.value)
            return result

        self._ledger.cache.patch(name, 0)
        logger.info("Added %r to %r at (%d, %d)", name, semester.name, day, period)
        self._coordinator.emit_now(ChangeKind.COURSE_DATA, ChangeKind.STATISTICS_DATA)
        return result

    def assign_existing(self, course_id: int, day_of_week: int, period: int,
                        semester_id: Optional[int] = None) -> CourseResult:
        course = self.get(course_id)
        target = self._semester(semester_id)
        day, period = self._validate_slot(day_of_week, period)

        result = self._sync.assign_existing_to_slot(course, day, period, target)
        if result.ok:
            logger.info("Assigned %r to %r at (%d, %d)", course.name, target.name, day, period)
            self._coordinator.emit_now(ChangeKind.COURSE_DATA, ChangeKind.STATISTICS_DATA)
        return result

    def edit_course(
        self,
        course_id: int,
        *,
        name: Optional[str] = None,
        total_classes: Optional[int] = None,
        max_absences: Optional[int] = None,
        color_index: Optional[int] = None,
        is_full_year: Optional[bool] = None,
        is_notification_enabled: Optional[bool] = None,
    ) -> CourseResult:
        """Edit a course.

        Name, totals, limit, colour and notification flag are shared by every
        row of the name, so they are written to all of them. The full-year
        flag only concerns the edited row and its twin.
        """

        course = self.get(course_id)
        old_name = course.name
        new_name = require_non_empty(name, "Course name") if name is not None else old_name
        total = int(total_classes) if total_classes is not None else course.total_classes
        limit = int(max_absences) if max_absences is not None else course.max_absences
        self._validate_limits(total, limit)

        if new_name != old_name:
            clash = self._resolver.all_courses_named(new_name)
            if any(c.semester_id == course.semester_id for c in clash):
                return CourseResult(conflict=DuplicateName.IN_SEMESTER)
            if clash:
                return CourseResult(conflict=DuplicateName.ACROSS_SEMESTERS)

        shared = dict(name=new_name, total_classes=total, max_absences=limit)
        if color_index is not None:
            shared["color_index"] = int(color_index)
        if is_notification_enabled is not None:
            shared["is_notification_enabled"] = bool(is_notification_enabled)

        twin = self._sync.find_twin(course) if course.is_full_year else None
        flag_rows = {course.course_id} | ({twin.course_id} if twin is not None else set())

        try:
            with self._uow.transaction():
                for row in self._resolver.all_courses_named(old_name):
                    changes = dict(shared)
                    if is_full_year is not None and row.course_id in flag_rows:
                        changes["is_full_year"] = bool(is_full_year)
                    self._courses.update(replace(row, **changes))
        finally:
            self._sync.rebuild_index()

        updated = self.get(course_id)
        if updated.is_full_year and not course.is_full_year:
            self._sync.ensure_twin(updated)

        if new_name != old_name:
            count = self._ledger.cache.peek(old_name)
            self._ledger.cache.discard(old_name)
            if count is not None:
                self._ledger.cache.patch(new_name, count)
            logger.info("Renamed %r to %r", old_name, new_name)

        self._coordinator.emit_now(ChangeKind.COURSE_DATA, ChangeKind.STATISTICS_DATA)
        return CourseResult(course=updated)

    def delete_course(self, course_id: int) -> list[Course]:
        return self._ledger.delete_course(self.get(course_id))

    def delete_all_with_same_name(self, course_id: int) -> int:
        return self._ledger.delete_all_with_same_name(self.get(course_id))

    def reset_semester(self, semester_id: Optional[int] = None) -> int:
        return self._ledger.reset_semester(self._semester(semester_id))

    def sync_all(self) -> list[Course]:
        created = self._sync.sync_all()
        if created:
            self._coordinator.emit_now(ChangeKind.COURSE_DATA)
        return created

