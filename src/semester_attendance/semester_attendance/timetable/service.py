from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ..attendance.ledger import AbsenceLedger
from ..core.constants import DEFAULT_TIMETABLE_DAYS, DEFAULT_TIMETABLE_PERIODS
from ..core.enums import ChangeKind
from ..courses.model import Course
from ..courses.repository import CourseRepository
from ..notifications.alerts import ClassReminderScheduler
from ..notifications.coordinator import ChangeNotificationCoordinator
from ..semesters.model import Semester
from ..semesters.service import SemesterService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimetableCell:
    day_of_week: int
    period: int
    course: Optional[Course] = None
    absence_count: int = 0
    remaining: Optional[int] = None


@dataclass(frozen=True)
class TimetableView:
    semester: Semester
    days: int
    periods: int
    cells: tuple[TimetableCell, ...]

    def cell(self, day_of_week: int, period: int) -> TimetableCell:
        return self.cells[(day_of_week - 1) * self.periods + (period - 1)]


class TimetableService:
    """Foreground owner of the derived view: current sheet, grid and counts."""

    def __init__(
        self,
        semesters: SemesterService,
        courses: CourseRepository,
        ledger: AbsenceLedger,
        *,
        coordinator: ChangeNotificationCoordinator,
        reminders: Optional[ClassReminderScheduler] = None,
        days: int = DEFAULT_TIMETABLE_DAYS,
        periods: int = DEFAULT_TIMETABLE_PERIODS,
    ):
        self._semesters = semesters
        self._courses = courses
        self._ledger = ledger
        self._coordinator = coordinator
        self._reminders = reminders
        self.days = int(days)
        self.periods = int(periods)

    def load(self, semester_id: Optional[int] = None) -> TimetableView:
        if semester_id is None:
            semester = self._semesters.require_current()
        else:
            semester = self._semesters.get(semester_id)

        courses: Sequence[Course] = self._courses.list_by_semester(semester.semester_id)
        self._ledger.cache.refresh_all(courses)
        if self._reminders is not None and semester.is_active:
            self._reminders.schedule_for(courses)

        by_slot = {c.slot: c for c in courses}
        cells = []
        for day in range(1, self.days + 1):
            for period in range(1, self.periods + 1):
                course = by_slot.get((day, period))
                if course is None:
                    cells.append(TimetableCell(day_of_week=day, period=period))
                    continue
                count = self._ledger.get_absence_count(course)
                cells.append(
                    TimetableCell(
                        day_of_week=day,
                        period=period,
                        course=course,
                        absence_count=count,
                        remaining=max(0, course.max_absences - count),
                    )
                )

        hidden = [c for c in courses if c.day_of_week > self.days or c.period > self.periods]
        if hidden:
            logger.debug("%d course(s) of %r lie outside the %dx%d grid", len(hidden), semester.name, self.days, self.periods)
        return TimetableView(semester=semester, days=self.days, periods=self.periods, cells=tuple(cells))

    def save(self) -> None:
        """Explicit save: observers are told at once, without coalescing."""

        self._coordinator.emit_now(ChangeKind.COURSE_DATA, ChangeKind.ATTENDANCE_DATA, ChangeKind.STATISTICS_DATA)
