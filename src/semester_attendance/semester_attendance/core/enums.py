from __future__ import annotations

from enum import Enum


class SemesterKind(str, Enum):
    """Half of the academic year a semester sheet belongs to."""

    FIRST_HALF = "firstHalf"
    SECOND_HALF = "secondHalf"

    @property
    def opposite(self) -> "SemesterKind":
        if self is SemesterKind.FIRST_HALF:
            return SemesterKind.SECOND_HALF
        return SemesterKind.FIRST_HALF

    @property
    def display_name(self) -> str:
        return "First Half" if self is SemesterKind.FIRST_HALF else "Second Half"


class AttendanceType(str, Enum):
    """Kind of attendance event stored in a record."""

    ABSENT = "absent"
    LATE = "late"
    EARLY_LEAVE = "early_leave"
    OFFICIAL_ABSENT = "official_absent"

    @property
    def affects_credit(self) -> bool:
        # Only plain absences count toward the absence limit.
        return self is AttendanceType.ABSENT

    @classmethod
    def credit_types(cls) -> tuple["AttendanceType", ...]:
        return tuple(t for t in cls if t.affects_credit)


class ChangeKind(str, Enum):
    """Payload-free signals telling observers to re-read from the store."""

    COURSE_DATA = "courseDataChanged"
    ATTENDANCE_DATA = "attendanceDataChanged"
    STATISTICS_DATA = "statisticsDataChanged"


class RiskLevel(str, Enum):
    SAFE = "safe"
    WARNING = "warning"
    CRITICAL = "critical"


class SlotConflict(str, Enum):
    CURRENT_SLOT_OCCUPIED = "currentSlotOccupied"
    OTHER_SEMESTER_SLOT_OCCUPIED = "otherSemesterSlotOccupied"
    BOTH_OCCUPIED = "bothOccupied"


class AssignConflict(str, Enum):
    SLOT_OCCUPIED = "slotOccupied"
    DUPLICATE_NAME_IN_SEMESTER = "duplicateNameInSemester"
    DUPLICATE_NAME_ACROSS_SEMESTERS = "duplicateNameAcrossSemesters"


class DuplicateName(str, Enum):
    IN_SEMESTER = "duplicateNameInSemester"
    ACROSS_SEMESTERS = "duplicateNameAcrossSemesters"


class SheetConflict(str, Enum):
    DUPLICATE_SHEET = "duplicateSheet"
    DUPLICATE_NAME = "duplicateSheetName"


class RecordOutcome(str, Enum):
    SUCCESS = "success"
    DAILY_LIMIT_REACHED = "dailyLimitReached"
    COURSE_NOT_FOUND = "courseNotFound"
