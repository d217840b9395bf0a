from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, Optional

from ..core.constants import CACHE_FALLBACK_WARN_EVERY
from ..courses.model import Course
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AbsenceCountCache:
    """Course name -> absence count, rebuilt from storage on demand.

    A full ``refresh_all`` always wins over the single-name patches made after
    a ledger write; the patches only keep the grid responsive until the next
    rebuild. Nothing here is persisted.
    """

    def __init__(
        self,
        records: AttendanceRepository,
        *,
        counter: Callable[[str], int],
        warn_every: int = CACHE_FALLBACK_WARN_EVERY,
    ):
        self._records = records
        self._counter = counter
        self._warn_every = max(1, int(warn_every))
        self._counts: Dict[str, int] = {}
        self.fallback_hits = 0

    def refresh_all(self, visible_courses: Iterable[Course]) -> Dict[str, int]:
        names = sorted({c.name for c in visible_courses})
        counts = {name: 0 for name in names}
        if names:
            # StorageError propagates and the previous map stays in place.
            for row in self._records.list_credit_rows(names):
                counts[row.course_name] = counts.get(row.course_name, 0) + 1

        self._counts = counts
        logger.debug("Absence cache rebuilt for %d course names", len(counts))
        return dict(counts)

    def get(self, course: Course) -> int:
        cached = self._counts.get(course.name)
        if cached is not None:
            return cached

        self.fallback_hits += 1
        if self.fallback_hits % self._warn_every == 0:
            logger.warning(
                "Absence cache fallback used %d times (last: %r); a refresh is probably missing",
                self.fallback_hits, course.name,
            )
        return self._counter(course.name)

    def peek(self, name: str) -> Optional[int]:
        return self._counts.get(name)

    def patch(self, name: str, count: int) -> None:
        self._counts[name] = max(0, int(count))

    def discard(self, name: str) -> None:
        self._counts.pop(name, None)

    def clear(self) -> None:
        self._counts = {}
        self.fallback_hits = 0

    def __contains__(self, name: str) -> bool:
        return name in self._counts

    def snapshot(self) -> Dict[str, int]:
        return dict(self._counts)
