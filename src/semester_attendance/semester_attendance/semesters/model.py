from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import SemesterKind, SheetConflict


@dataclass(frozen=True)
class Semester:
    """A timetable sheet for one half of an academic year."""

    semester_id: int
    name: str
    kind: SemesterKind
    start_date: date
    end_date: date
    is_active: bool
    created_at: datetime

    @property
    def academic_year(self) -> int:
        # Pairing is keyed on the start date's calendar year.
        return self.start_date.year


@dataclass(frozen=True)
class SheetResult:
    semester: Optional[Semester] = None
    conflict: Optional[SheetConflict] = None

    @property
    def ok(self) -> bool:
        return self.conflict is None
