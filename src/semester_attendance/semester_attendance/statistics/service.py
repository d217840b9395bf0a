from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

from ..attendance.ledger import AbsenceLedger
from ..core.enums import RiskLevel
from ..core.exceptions import NotFoundError
from ..courses.identity import CourseIdentityResolver
from ..courses.model import Course
from ..courses.repository import CourseRepository
from ..semesters.model import Semester
from ..semesters.service import SemesterService


def risk_level(count: int, max_absences: int) -> RiskLevel:
    if count >= max_absences:
        return RiskLevel.CRITICAL
    if count >= max(1, 2 * max_absences // 3):
        return RiskLevel.WARNING
    return RiskLevel.SAFE


@dataclass(frozen=True)
class CourseStats:
    name: str
    absence_count: int
    max_absences: int
    remaining: int
    total_classes: int
    risk: RiskLevel

    @property
    def absence_rate(self) -> float:
        return self.absence_count / self.total_classes if self.total_classes else 0.0


@dataclass(frozen=True)
class SemesterSummary:
    semester: Semester
    courses: tuple[CourseStats, ...]

    @property
    def total_absences(self) -> int:
        return sum(c.absence_count for c in self.courses)

    def count_at(self, level: RiskLevel) -> int:
        return sum(1 for c in self.courses if c.risk == level)


class StatisticsService:
    def __init__(
        self,
        courses: CourseRepository,
        resolver: CourseIdentityResolver,
        ledger: AbsenceLedger,
        semesters: SemesterService,
    ):
        self._courses = courses
        self._resolver = resolver
        self._ledger = ledger
        self._semesters = semesters

    def course_stats(self, course: Course) -> CourseStats:
        count = self._ledger.get_absence_count(course)
        return CourseStats(
            name=course.name,
            absence_count=count,
            max_absences=course.max_absences,
            remaining=max(0, course.max_absences - count),
            total_classes=course.total_classes,
            risk=risk_level(count, course.max_absences),
        )

    def semester_summary(self, semester_id: Optional[int] = None) -> SemesterSummary:
        if semester_id is None:
            semester = self._semesters.require_current()
        else:
            semester = self._semesters.get(semester_id)

        courses: Sequence[Course] = self._courses.list_by_semester(semester.semester_id)
        self._ledger.cache.refresh_all(courses)

        # Slot copies share one history; report each name once.
        seen: dict[str, Course] = {}
        for course in sorted(courses, key=lambda c: c.course_id):
            seen.setdefault(course.name, course)
        stats = tuple(self.course_stats(c) for c in sorted(seen.values(), key=lambda c: c.name))
        return SemesterSummary(semester=semester, courses=stats)

    def absences_in_period(self, name: str, start: date, end: date) -> int:
        if start > end:
            start, end = end, start
        course = self._resolver.representative(name)
        if course is None:
            raise NotFoundError("Course not found")
        return len(self._ledger.absences_in_period(course, start, end))
