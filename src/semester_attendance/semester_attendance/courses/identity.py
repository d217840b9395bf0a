from __future__ import annotations

import logging
from typing import Optional

from ..core.exceptions import StorageError
from .model import Course
from .repository import CourseRepository

logger = logging.getLogger(__name__)


class CourseIdentityResolver:
    """Translate a course name into the set of rows treated as one course.

    Rows are returned in insertion order, so the representative (the first
    row) is stable until it is deleted, at which point the next row takes
    over. Storage failures are logged and kept in ``last_error``; callers
    see an empty result and treat it as "no such course".
    """

    def __init__(self, courses: CourseRepository):
        self._courses = courses
        self.last_error: Optional[StorageError] = None

    def all_courses_named(self, name: str) -> list[Course]:
        try:
            rows = list(self._courses.list_by_name(name))
        except StorageError as exc:
            logger.warning("Identity lookup for %r failed: %s", name, exc)
            self.last_error = exc
            return []
        self.last_error = None
        return sorted(rows, key=lambda c: c.course_id)

    def course_ids_named(self, name: str) -> list[int]:
        return [c.course_id for c in self.all_courses_named(name)]

    def representative(self, name: str) -> Optional[Course]:
        rows = self.all_courses_named(name)
        return rows[0] if rows else None

    def courses_named_in_semester(self, name: str, semester_id: int) -> list[Course]:
        return [c for c in self.all_courses_named(name) if c.semester_id == int(semester_id)]

    def exists_in_semester(self, name: str, semester_id: int) -> bool:
        return bool(self.courses_named_in_semester(name, semester_id))

    def exists_anywhere(self, name: str) -> bool:
        return bool(self.all_courses_named(name))
