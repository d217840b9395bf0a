from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import SemesterKind
from .model import Semester


class SemesterRepository(Protocol):
    def list_all(self) -> Sequence[Semester]:
        """All sheets, oldest first (created_at, then id)."""

        raise NotImplementedError

    def get_by_id(self, semester_id: int) -> Optional[Semester]:
        raise NotImplementedError

    def get_active(self) -> Optional[Semester]:
        """The most recently created active sheet, if any."""

        raise NotImplementedError

    def create(
        self,
        *,
        name: str,
        kind: SemesterKind,
        start_date: date,
        end_date: date,
        is_active: bool,
        created_at: datetime,
    ) -> Semester:
        raise NotImplementedError

    def update(self, semester: Semester) -> bool:
        raise NotImplementedError

    def set_active(self, semester_id: int) -> None:
        """Activate one sheet and deactivate every other one."""

        raise NotImplementedError
