from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import AttendanceType
from .model import AttendanceRecord, CreditRecordRow


class AttendanceRepository(Protocol):
    def create(
        self,
        *,
        course_id: int,
        record_date: date,
        type: AttendanceType,
        memo: str,
        created_at: datetime,
    ) -> AttendanceRecord:
        raise NotImplementedError

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def delete(self, record_id: int) -> bool:
        raise NotImplementedError

    def delete_for_courses(self, course_ids: Iterable[int]) -> int:
        raise NotImplementedError

    def reassign(self, *, from_course_ids: Iterable[int], to_course_id: int) -> int:
        """Move ownership of records to another course row."""

        raise NotImplementedError

    def list_for_courses(self, course_ids: Iterable[int]) -> Sequence[AttendanceRecord]:
        """Newest first: record_date descending, then record_id descending."""

        raise NotImplementedError

    def count_credit_for_courses(self, course_ids: Iterable[int]) -> int:
        raise NotImplementedError

    def count_on_date(self, course_ids: Iterable[int], record_date: date) -> int:
        """Records of any type on one calendar date."""

        raise NotImplementedError

    def latest_credit_record(self, course_ids: Iterable[int]) -> Optional[AttendanceRecord]:
        """Newest credit-affecting record, ties on date broken by the highest id."""

        raise NotImplementedError

    def find_credit_on_date(self, course_id: int, record_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_credit_rows(self, names: Iterable[str]) -> Sequence[CreditRecordRow]:
        """Credit-affecting records of every course carrying one of ``names``.

        One query; the owning course is joined in so callers never look it up.
        """

        raise NotImplementedError

    def list_credit_in_period(self, course_ids: Iterable[int], start: date, end: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
