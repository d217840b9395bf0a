from __future__ import annotations

import logging
from typing import Iterator, Optional, Sequence

from ..core.enums import SemesterKind
from .model import Semester
from .repository import SemesterRepository

logger = logging.getLogger(__name__)


class SemesterCatalog:
    """In-memory list of available semester sheets.

    Refreshed on setup and whenever a sheet is created, edited or activated.
    Pair lookups only see sheets loaded here.
    """

    def __init__(self, semesters: SemesterRepository):
        self._semesters = semesters
        self._items: list[Semester] = []

    def reload(self) -> Sequence[Semester]:
        self._items = list(self._semesters.list_all())
        logger.debug("Loaded %d semester sheets", len(self._items))
        return list(self._items)

    def all(self) -> Sequence[Semester]:
        return list(self._items)

    def get(self, semester_id: int) -> Optional[Semester]:
        for semester in self._items:
            if semester.semester_id == int(semester_id):
                return semester
        return None

    def find(self, kind: SemesterKind, academic_year: int) -> Optional[Semester]:
        for semester in self._items:
            if semester.kind == kind and semester.academic_year == academic_year:
                return semester
        return None

    def of_kind(self, kind: SemesterKind) -> list[Semester]:
        return [s for s in self._items if s.kind == kind]

    def paired(self, semester: Semester) -> Optional[Semester]:
        """Same academic year, opposite kind."""
        return self.find(semester.kind.opposite, semester.academic_year)

    def year_pairs(self) -> Iterator[tuple[Semester, Semester]]:
        for first in self.of_kind(SemesterKind.FIRST_HALF):
            second = self.paired(first)
            if second is not None:
                yield first, second
