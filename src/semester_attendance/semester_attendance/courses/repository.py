from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import Course


class CourseRepository(Protocol):
    def get_by_id(self, course_id: int) -> Optional[Course]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Course]:
        raise NotImplementedError

    def list_by_name(self, name: str) -> Sequence[Course]:
        """Same-named rows across every semester, in insertion (id) order."""

        raise NotImplementedError

    def list_by_semester(self, semester_id: int) -> Sequence[Course]:
        """Rows of one sheet ordered by day and period."""

        raise NotImplementedError

    def get_at_slot(self, *, semester_id: int, day_of_week: int, period: int) -> Optional[Course]:
        raise NotImplementedError

    def create(
        self,
        *,
        semester_id: int,
        name: str,
        day_of_week: int,
        period: int,
        total_classes: int,
        max_absences: int,
        color_index: int = 0,
        is_full_year: bool = False,
        is_notification_enabled: bool = True,
    ) -> Course:
        raise NotImplementedError

    def update(self, course: Course) -> bool:
        raise NotImplementedError

    def delete_many(self, course_ids: Iterable[int]) -> int:
        """Delete course rows. Records must be moved or deleted beforehand."""

        raise NotImplementedError
