from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceType, RecordOutcome


@dataclass(frozen=True)
class AttendanceRecord:
    record_id: int
    course_id: int
    record_date: date
    type: AttendanceType
    memo: str
    created_at: datetime


@dataclass(frozen=True)
class CreditRecordRow:
    """Read-model: a credit-affecting record joined with its course name."""

    record_id: int
    course_id: int
    course_name: str
    record_date: date


@dataclass(frozen=True)
class RecordResult:
    outcome: RecordOutcome
    record: Optional[AttendanceRecord] = None
    absence_count: Optional[int] = None
    remaining: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.outcome == RecordOutcome.SUCCESS
