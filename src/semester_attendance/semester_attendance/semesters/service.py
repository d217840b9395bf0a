from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import academic_year_of, now_local
from ..common.validators import require_non_empty
from ..core.constants import FIRST_HALF_END, FIRST_HALF_START, SECOND_HALF_END, SECOND_HALF_START
from ..core.enums import ChangeKind, SemesterKind, SheetConflict
from ..core.exceptions import NotFoundError, ValidationError
from ..database.unit_of_work import UnitOfWork
from ..notifications.coordinator import ChangeNotificationCoordinator
from .catalog import SemesterCatalog
from .model import Semester, SheetResult
from .repository import SemesterRepository

logger = logging.getLogger(__name__)


def default_dates(kind: SemesterKind, academic_year: int) -> tuple[date, date]:
    if kind == SemesterKind.FIRST_HALF:
        return date(academic_year, *FIRST_HALF_START), date(academic_year, *FIRST_HALF_END)
    return date(academic_year, *SECOND_HALF_START), date(academic_year + 1, *SECOND_HALF_END)


def default_name(kind: SemesterKind, academic_year: int) -> str:
    return f"{academic_year} {kind.display_name}"


class SemesterService:
    def __init__(
        self,
        semesters: SemesterRepository,
        catalog: SemesterCatalog,
        uow: UnitOfWork,
        *,
        coordinator: ChangeNotificationCoordinator,
        on_sheets_changed: Optional[Callable[[], None]] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._semesters = semesters
        self._catalog = catalog
        self._uow = uow
        self._coordinator = coordinator
        self._on_sheets_changed = on_sheets_changed
        self._clock = clock

    def setup_semesters(self, today: Optional[date] = None, *, reload_catalog: bool = True) -> list[Semester]:
        """Make sure both halves of the current academic year exist.

        Only writes to the store unless ``reload_catalog`` is set; the
        background bootstrap leaves the in-memory catalog to the foreground.
        """

        today = today or self._clock().date()
        year = academic_year_of(today)
        created: list[Semester] = []

        with self._uow.transaction():
            existing = list(self._semesters.list_all())
            has_active = any(s.is_active for s in existing)
            for kind in SemesterKind:
                if any(s.kind == kind and s.academic_year == year for s in existing):
                    continue
                start, end = default_dates(kind, year)
                created.append(
                    self._semesters.create(
                        name=default_name(kind, year),
                        kind=kind,
                        start_date=start,
                        end_date=end,
                        is_active=(kind == SemesterKind.FIRST_HALF and not has_active),
                        created_at=self._clock(),
                    )
                )

        if created:
            logger.info("Semester setup created: %s", ", ".join(s.name for s in created))
        if reload_catalog:
            self._catalog.reload()
        return created

    def setup_in_background(self, executor: ThreadPoolExecutor, today: Optional[date] = None) -> "Future[list[Semester]]":
        return executor.submit(self.setup_semesters, today, reload_catalog=False)

    def load(self) -> Sequence[Semester]:
        return self._catalog.reload()

    def available(self) -> Sequence[Semester]:
        return self._catalog.all()

    def current(self) -> Optional[Semester]:
        active = [s for s in self._catalog.all() if s.is_active]
        return active[-1] if active else None

    def require_current(self) -> Semester:
        semester = self.current()
        if semester is None:
            raise NotFoundError("No active semester sheet")
        return semester

    def get(self, semester_id: int) -> Semester:
        semester = self._catalog.get(semester_id)
        if semester is None:
            raise NotFoundError("Semester sheet not found")
        return semester

    def paired(self, semester: Semester) -> Optional[Semester]:
        return self._catalog.paired(semester)

    def create_sheet(self, kind: SemesterKind, academic_year: int, name: Optional[str] = None) -> SheetResult:
        kind = SemesterKind(kind)
        academic_year = int(academic_year)
        if self._catalog.find(kind, academic_year) is not None:
            return SheetResult(conflict=SheetConflict.DUPLICATE_SHEET)

        name = require_non_empty(name, "Sheet name") if name is not None else default_name(kind, academic_year)
        if any(s.name == name for s in self._catalog.all()):
            return SheetResult(conflict=SheetConflict.DUPLICATE_NAME)

        start, end = default_dates(kind, academic_year)
        with self._uow.transaction():
            semester = self._semesters.create(
                name=name,
                kind=kind,
                start_date=start,
                end_date=end,
                is_active=False,
                created_at=self._clock(),
            )

        self._catalog.reload()
        logger.info("Created sheet %r (%s %d)", semester.name, kind.value, academic_year)
        self._sheets_changed()
        return SheetResult(semester=semester)

    def update_sheet(
        self,
        semester_id: int,
        *,
        name: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> SheetResult:
        """Rename a sheet or move its dates.

        The halves stay adjacent: moving the first half's end moves the
        second half's start, and the other way round.
        """

        semester = self.get(semester_id)
        changes = {}
        if name is not None:
            name = require_non_empty(name, "Sheet name")
            if any(s.name == name and s.semester_id != semester.semester_id for s in self._catalog.all()):
                return SheetResult(conflict=SheetConflict.DUPLICATE_NAME)
            changes["name"] = name
        if start_date is not None:
            changes["start_date"] = start_date
        if end_date is not None:
            changes["end_date"] = end_date

        updated = replace(semester, **changes)
        if updated.start_date > updated.end_date:
            raise ValidationError("Start date must not be after end date")
        if updated.academic_year != semester.academic_year:
            raise ValidationError("Dates must stay within the same academic year")

        paired = self._catalog.paired(semester)
        cascaded: Optional[Semester] = None
        if paired is not None:
            if semester.kind == SemesterKind.FIRST_HALF and updated.end_date != semester.end_date:
                cascaded = replace(paired, start_date=updated.end_date + timedelta(days=1))
            elif semester.kind == SemesterKind.SECOND_HALF and updated.start_date != semester.start_date:
                cascaded = replace(paired, end_date=updated.start_date - timedelta(days=1))
            if cascaded is not None:
                if cascaded.start_date > cascaded.end_date:
                    raise ValidationError(f"Date change would leave {paired.name!r} empty")
                if cascaded.academic_year != paired.academic_year:
                    raise ValidationError(f"Date change would move {paired.name!r} to another academic year")

        with self._uow.transaction():
            self._semesters.update(updated)
            if cascaded is not None:
                self._semesters.update(cascaded)

        self._catalog.reload()
        if cascaded is not None:
            logger.info("Sheet %r dates cascaded to %r", updated.name, cascaded.name)
        self._coordinator.emit_now(ChangeKind.COURSE_DATA)
        return SheetResult(semester=updated)

    def activate(self, semester_id: int) -> Semester:
        semester = self.get(semester_id)
        with self._uow.transaction():
            self._semesters.set_active(semester.semester_id)
        self._catalog.reload()
        logger.info("Switched to sheet %r", semester.name)
        self._coordinator.emit_now(ChangeKind.COURSE_DATA)
        return self.get(semester_id)

    def switch_semester(self, kind: SemesterKind) -> Semester:
        """Activate the sheet of ``kind`` in the current academic year."""

        kind = SemesterKind(kind)
        current = self.current()
        if current is not None and current.kind == kind:
            return current

        target = None
        if current is not None:
            target = self._catalog.find(kind, current.academic_year)
        if target is None:
            candidates = self._catalog.of_kind(kind)
            target = candidates[-1] if candidates else None
        if target is None:
            raise NotFoundError(f"No {kind.display_name} sheet available")
        return self.activate(target.semester_id)

    def _sheets_changed(self) -> None:
        if self._on_sheets_changed is not None:
            self._on_sheets_changed()
        self._coordinator.emit_now(ChangeKind.COURSE_DATA)
