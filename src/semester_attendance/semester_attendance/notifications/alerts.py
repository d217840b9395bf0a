from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Optional

from ..common.datetime_utils import now_local
from ..core.constants import CLASS_REMINDER_LEAD_MINUTES, PERIOD_START_TIMES
from ..courses.model import Course
from .sink import AlertSink

logger = logging.getLogger(__name__)

CLASS_REMINDER_PREFIX = "class_reminder_"


class AbsenceAlertNotifier:
    """Warn when a course is about to run out of allowed absences."""

    def __init__(
        self,
        sink: AlertSink,
        *,
        enabled: bool = True,
        absence_limit_enabled: bool = True,
        clock: Callable[[], datetime] = now_local,
    ):
        self._sink = sink
        self.enabled = enabled
        self.absence_limit_enabled = absence_limit_enabled
        self._clock = clock

    @staticmethod
    def message_for(course_name: str, remaining: int) -> str:
        if remaining <= 0:
            return f"[{course_name}] Credit at risk! You have reached the absence limit."
        if remaining == 1:
            return f"[{course_name}] Only {remaining} absence left before the limit. Be careful."
        return f"[{course_name}] {remaining} absences left before the limit."

    def warn(self, course: Course, *, current: int, remaining: int) -> Optional[str]:
        if not (self.enabled and self.absence_limit_enabled and course.is_notification_enabled):
            return None

        now = self._clock()
        alert_id = f"absence_warning_{course.name}_{now.timestamp():.0f}_{current}"
        self._sink.schedule_local(
            alert_id,
            "Absence limit alert",
            self.message_for(course.name, remaining),
            now + timedelta(seconds=1),
            repeats=False,
            payload={
                "type": "absence_warning",
                "courseName": course.name,
                "currentAbsences": current,
                "maxAbsences": course.max_absences,
                "remainingAbsences": remaining,
            },
        )
        return alert_id


class ClassReminderScheduler:
    """Weekly reminders shortly before each class starts."""

    def __init__(self, sink: AlertSink, *, enabled: bool = True, clock: Callable[[], datetime] = now_local):
        self._sink = sink
        self.enabled = enabled
        self._clock = clock
        self._scheduled: set[str] = set()

    @staticmethod
    def reminder_id(course: Course) -> str:
        return f"{CLASS_REMINDER_PREFIX}{course.name}_{course.day_of_week}_{course.period}"

    @staticmethod
    def next_trigger(course: Course, now: datetime) -> datetime:
        hour, minute = PERIOD_START_TIMES[course.period]
        # day_of_week 1 = Monday, matching date.isoweekday()
        days_ahead = (course.day_of_week - now.isoweekday()) % 7
        day: date = now.date() + timedelta(days=days_ahead)
        trigger = datetime.combine(day, datetime.min.time()).replace(hour=hour, minute=minute)
        trigger -= timedelta(minutes=CLASS_REMINDER_LEAD_MINUTES)
        if trigger <= now:
            trigger += timedelta(days=7)
        return trigger

    def schedule_for(self, courses: Iterable[Course]) -> list[str]:
        self.cancel_all()
        if not self.enabled:
            return []

        now = self._clock()
        for course in courses:
            if not course.is_notification_enabled:
                continue
            if course.period not in PERIOD_START_TIMES:
                logger.warning("No start time for period %d; no reminder for %r", course.period, course.name)
                continue
            alert_id = self.reminder_id(course)
            self._sink.schedule_local(
                alert_id,
                "Class starting soon",
                f"[{course.name}] starts in {CLASS_REMINDER_LEAD_MINUTES} minutes",
                self.next_trigger(course, now),
                repeats=True,
                payload={
                    "type": "class_reminder",
                    "courseName": course.name,
                    "dayOfWeek": course.day_of_week,
                    "period": course.period,
                },
            )
            self._scheduled.add(alert_id)
        logger.debug("Scheduled %d class reminders", len(self._scheduled))
        return sorted(self._scheduled)

    def cancel_all(self) -> None:
        if self._scheduled:
            self._sink.cancel(sorted(self._scheduled))
        self._scheduled.clear()
