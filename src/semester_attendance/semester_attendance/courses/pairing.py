from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Optional, Tuple

from ..attendance.repository import AttendanceRepository
from ..core.enums import AssignConflict, SemesterKind, SlotConflict
from ..database.unit_of_work import UnitOfWork
from ..semesters.catalog import SemesterCatalog
from ..semesters.model import Semester
from .identity import CourseIdentityResolver
from .model import Course, CourseDraft, CourseResult
from .repository import CourseRepository

logger = logging.getLogger(__name__)

PairKey = Tuple[str, int, int, int]


class PairIndex:
    """(name, academic year, day, period) -> {semester kind: course id}.

    Derived data: rebuilt from storage on load and patched after every
    mutation made through the synchronizer.
    """

    def __init__(self):
        self._pairs: Dict[PairKey, Dict[SemesterKind, int]] = {}

    @staticmethod
    def key(course: Course, semester: Semester) -> PairKey:
        return (course.name, semester.academic_year, course.day_of_week, course.period)

    def clear(self) -> None:
        self._pairs.clear()

    def add(self, course: Course, semester: Semester) -> None:
        self._pairs.setdefault(self.key(course, semester), {})[semester.kind] = course.course_id

    def discard(self, course: Course, semester: Semester) -> None:
        key = self.key(course, semester)
        slot = self._pairs.get(key)
        if slot and slot.get(semester.kind) == course.course_id:
            del slot[semester.kind]
            if not slot:
                del self._pairs[key]

    def twin_id(self, course: Course, semester: Semester) -> Optional[int]:
        return self._pairs.get(self.key(course, semester), {}).get(semester.kind.opposite)

    def __len__(self) -> int:
        return len(self._pairs)


class FullYearPairingSynchronizer:
    """Keep the first-half and second-half rows of a full-year course in step.

    Twins are never linked by a stored reference; they are found by name,
    academic year, kind and slot. A missing twin is a pairing inconsistency:
    it is logged and left for ``sync_all`` to heal.
    """

    def __init__(
        self,
        courses: CourseRepository,
        records: AttendanceRepository,
        catalog: SemesterCatalog,
        resolver: CourseIdentityResolver,
        uow: UnitOfWork,
    ):
        self._courses = courses
        self._records = records
        self._catalog = catalog
        self._resolver = resolver
        self._uow = uow
        self.index = PairIndex()

    def rebuild_index(self) -> None:
        self.index.clear()
        for course in self._courses.list_all():
            semester = self._catalog.get(course.semester_id)
            if semester is not None:
                self.index.add(course, semester)
        logger.debug("Pair index rebuilt (%d keys)", len(self.index))

    def forget(self, course: Course) -> None:
        semester = self._catalog.get(course.semester_id)
        if semester is not None:
            self.index.discard(course, semester)

    def paired_semester(self, semester: Semester) -> Optional[Semester]:
        return self._catalog.paired(semester)

    def find_twin(self, course: Course) -> Optional[Course]:
        semester = self._catalog.get(course.semester_id)
        if semester is None:
            return None
        paired = self._catalog.paired(semester)
        if paired is None:
            return None

        twin_id = self.index.twin_id(course, semester)
        if twin_id is not None:
            twin = self._courses.get_by_id(twin_id)
            if twin is not None and twin.name == course.name:
                return twin

        # Index miss or stale entry: search the paired slot directly.
        candidate = self._courses.get_at_slot(
            semester_id=paired.semester_id, day_of_week=course.day_of_week, period=course.period
        )
        if candidate is not None and candidate.name == course.name:
            self.index.add(candidate, paired)
            return candidate
        return None

    def _slot_taken(self, semester: Semester, day_of_week: int, period: int) -> bool:
        return (
            self._courses.get_at_slot(semester_id=semester.semester_id, day_of_week=day_of_week, period=period)
            is not None
        )

    def _create_copy(self, source, semester: Semester, *, day_of_week: int, period: int,
                     max_absences: int, is_full_year: bool) -> Course:
        course = self._courses.create(
            semester_id=semester.semester_id,
            name=source.name,
            day_of_week=day_of_week,
            period=period,
            total_classes=source.total_classes,
            max_absences=max_absences,
            color_index=source.color_index,
            is_full_year=is_full_year,
            is_notification_enabled=source.is_notification_enabled,
        )
        self.index.add(course, semester)
        return course

    def create_paired(self, draft: CourseDraft, semester: Semester) -> CourseResult:
        """Create a course, and its twin in the paired semester when full-year.

        Both slots are checked before anything is written; both rows are
        written in one transaction.
        """

        current_taken = self._slot_taken(semester, draft.day_of_week, draft.period)
        paired = self._catalog.paired(semester) if draft.is_full_year else None
        other_taken = paired is not None and self._slot_taken(paired, draft.day_of_week, draft.period)

        if current_taken and other_taken:
            return CourseResult(conflict=SlotConflict.BOTH_OCCUPIED)
        if current_taken:
            return CourseResult(conflict=SlotConflict.CURRENT_SLOT_OCCUPIED)
        if other_taken:
            return CourseResult(conflict=SlotConflict.OTHER_SEMESTER_SLOT_OCCUPIED)

        max_absences = draft.effective_max_absences
        try:
            with self._uow.transaction():
                course = self._create_copy(
                    draft, semester, day_of_week=draft.day_of_week, period=draft.period,
                    max_absences=max_absences, is_full_year=draft.is_full_year,
                )
                if paired is not None:
                    self._create_copy(
                        draft, paired, day_of_week=draft.day_of_week, period=draft.period,
                        max_absences=max_absences, is_full_year=True,
                    )
        except Exception:
            # Rows written inside the failed transaction are gone; so are their index entries.
            self.rebuild_index()
            raise

        if draft.is_full_year and paired is None:
            logger.info("No paired semester loaded for %r; created %r without a twin", semester.name, draft.name)
        return CourseResult(course=course)

    def assign_existing_to_slot(self, course: Course, day_of_week: int, period: int,
                                target: Semester) -> CourseResult:
        """Place an existing course into another slot as a new same-named row.

        The new row shares the attendance history through its name. Pulling a
        course in from the paired semester marks both rows full-year.
        """

        if self._slot_taken(target, day_of_week, period):
            return CourseResult(conflict=AssignConflict.SLOT_OCCUPIED)

        force_full_year = False
        if course.semester_id != target.semester_id:
            source = self._catalog.get(course.semester_id)
            paired = self._catalog.paired(target)
            from_paired = source is not None and paired is not None and paired.semester_id == source.semester_id
            if not (course.is_full_year or from_paired):
                if self._resolver.exists_in_semester(course.name, target.semester_id):
                    return CourseResult(conflict=AssignConflict.DUPLICATE_NAME_IN_SEMESTER)
                return CourseResult(conflict=AssignConflict.DUPLICATE_NAME_ACROSS_SEMESTERS)
            # Rows of this name already in the target are the course's own twin
            # or slot copies, so the request is another slot copy.
            force_full_year = True

        is_full_year = course.is_full_year or force_full_year
        paired_target = self._catalog.paired(target) if is_full_year else None

        try:
            with self._uow.transaction():
                new_course = self._create_copy(
                    course, target, day_of_week=day_of_week, period=period,
                    max_absences=course.max_absences, is_full_year=is_full_year,
                )
                if force_full_year and not course.is_full_year:
                    self._courses.update(replace(course, is_full_year=True))
                if paired_target is not None:
                    if self._slot_taken(paired_target, day_of_week, period):
                        logger.warning(
                            "Pairing inconsistency: %r slot (%d, %d) in %r is taken; twin not created",
                            course.name, day_of_week, period, paired_target.name,
                        )
                    else:
                        self._create_copy(
                            course, paired_target, day_of_week=day_of_week, period=period,
                            max_absences=course.max_absences, is_full_year=True,
                        )
        except Exception:
            self.rebuild_index()
            raise

        return CourseResult(course=new_course)

    def sync_all(self) -> list[Course]:
        """Create every missing twin of a full-year course. Idempotent."""

        created: list[Course] = []
        try:
            with self._uow.transaction():
                for first, second in self._catalog.year_pairs():
                    first_rows = list(self._courses.list_by_semester(first.semester_id))
                    second_rows = list(self._courses.list_by_semester(second.semester_id))
                    created += self._fill_missing(first_rows, second, second_rows)
                    created += self._fill_missing(second_rows, first, first_rows)
        except Exception:
            self.rebuild_index()
            raise

        if created:
            logger.info("Full-year sync created %d missing twin(s)", len(created))
        return created

    def _fill_missing(self, source_rows: list[Course], target: Semester, target_rows: list[Course]) -> list[Course]:
        present = {(c.name, c.day_of_week, c.period) for c in target_rows}
        occupied = {c.slot for c in target_rows}
        created = []
        for course in source_rows:
            if not course.is_full_year or (course.name, course.day_of_week, course.period) in present:
                continue
            if course.slot in occupied:
                logger.warning(
                    "Pairing inconsistency: cannot mirror %r into %r, slot (%d, %d) is taken",
                    course.name, target.name, course.day_of_week, course.period,
                )
                continue
            twin = self._create_copy(
                course, target, day_of_week=course.day_of_week, period=course.period,
                max_absences=course.max_absences, is_full_year=True,
            )
            present.add((twin.name, twin.day_of_week, twin.period))
            occupied.add(twin.slot)
            target_rows.append(twin)
            created.append(twin)
        return created

    def ensure_twin(self, course: Course) -> Optional[Course]:
        """Create the paired row of one full-year course if it is missing."""

        semester = self._catalog.get(course.semester_id)
        paired = self._catalog.paired(semester) if semester is not None else None
        if paired is None or not course.is_full_year:
            return None
        existing = self.find_twin(course)
        if existing is not None:
            return existing
        if self._slot_taken(paired, course.day_of_week, course.period):
            logger.warning("Pairing inconsistency: slot for %r twin in %r is taken", course.name, paired.name)
            return None
        with self._uow.transaction():
            return self._create_copy(
                course, paired, day_of_week=course.day_of_week, period=course.period,
                max_absences=course.max_absences, is_full_year=True,
            )

    def deletion_targets(self, course: Course) -> list[Course]:
        targets = [course]
        if course.is_full_year:
            twin = self.find_twin(course)
            if twin is None:
                logger.warning("Pairing inconsistency: no twin found for full-year course %r", course.name)
            elif twin.course_id != course.course_id:
                targets.append(twin)
        return targets

    def delete_paired(self, course: Course, targets: Optional[list[Course]] = None) -> list[Course]:
        """Delete a course and, when full-year, its twin. Returns the deleted rows.

        Records owned by a deleted row move to the next surviving row of the
        same name, so sibling slot copies keep the shared history. Records are
        deleted only when no row of the name survives.
        """

        if targets is None:
            targets = self.deletion_targets(course)
        target_ids = {c.course_id for c in targets}
        survivors = [c for c in self._resolver.all_courses_named(course.name) if c.course_id not in target_ids]

        try:
            with self._uow.transaction():
                if survivors:
                    self._records.reassign(from_course_ids=target_ids, to_course_id=survivors[0].course_id)
                else:
                    self._records.delete_for_courses(target_ids)
                self._courses.delete_many(target_ids)
        except Exception:
            self.rebuild_index()
            raise

        for target in targets:
            self.forget(target)
        return targets
