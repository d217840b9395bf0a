from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..core.constants import DEFAULT_TOTAL_CLASSES


@dataclass(frozen=True)
class Course:
    """One timetable cell. Same-named rows share one attendance history."""

    course_id: int
    name: str
    semester_id: int
    day_of_week: int
    period: int
    total_classes: int
    max_absences: int
    color_index: int = 0
    is_full_year: bool = False
    is_notification_enabled: bool = True

    @property
    def slot(self) -> tuple[int, int]:
        return (self.day_of_week, self.period)


@dataclass(frozen=True)
class CourseDraft:
    """User input for a new course, before it owns an id or a semester."""

    name: str
    day_of_week: int
    period: int
    total_classes: int = DEFAULT_TOTAL_CLASSES
    max_absences: Optional[int] = None
    color_index: int = 0
    is_full_year: bool = False
    is_notification_enabled: bool = True

    @property
    def effective_max_absences(self) -> int:
        if self.max_absences is not None:
            return int(self.max_absences)
        # Default allowance: a third of the planned sessions.
        return max(1, int(self.total_classes) // 3)


@dataclass(frozen=True)
class CourseResult:
    """Outcome of add/assign: either a course or the conflict that blocked it."""

    course: Optional[Course] = None
    conflict: Optional[Enum] = None

    @property
    def ok(self) -> bool:
        return self.conflict is None
