from __future__ import annotations

from datetime import datetime

import pytest

from src.semester_attendance.semester_attendance.container import bootstrap, build_container
from src.semester_attendance.semester_attendance.core.enums import SemesterKind
from src.semester_attendance.semester_attendance.courses.model import CourseDraft
from src.semester_attendance.semester_attendance.notifications.coordinator import ChangeNotificationCoordinator
from src.semester_attendance.semester_attendance.notifications.sink import LoggingAlertSink

FIXED_NOW = datetime(2025, 5, 1, 8, 0, 0)


class ManualTimer:
    """Stand-in for threading.Timer that only fires when told to."""

    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = tuple(args or ())
        self.kwargs = dict(kwargs or {})
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.function(*self.args, **self.kwargs)


class ManualTimers:
    def __init__(self):
        self.created: list[ManualTimer] = []

    def __call__(self, interval, function, args=None, kwargs=None):
        timer = ManualTimer(interval, function, args=args, kwargs=kwargs)
        self.created.append(timer)
        return timer

    def live(self) -> list[ManualTimer]:
        return [t for t in self.created if t.started and not t.cancelled]

    def fire_all(self) -> None:
        for timer in self.live():
            timer.fire()


@pytest.fixture
def timers() -> ManualTimers:
    return ManualTimers()


@pytest.fixture
def emitted():
    return []


@pytest.fixture
def container(timers, emitted):
    coordinator = ChangeNotificationCoordinator(delay=0.1, timer_factory=timers)
    coordinator.subscribe(emitted.append)
    c = build_container(
        backend="memory",
        sink=LoggingAlertSink(),
        coordinator=coordinator,
        clock=lambda: FIXED_NOW,
    )
    bootstrap(c, today=FIXED_NOW.date())
    emitted.clear()
    return c


@pytest.fixture
def first_half(container):
    return container.catalog.find(SemesterKind.FIRST_HALF, 2025)


@pytest.fixture
def second_half(container):
    return container.catalog.find(SemesterKind.SECOND_HALF, 2025)


@pytest.fixture
def add_course(container):
    def _add(name, day, period, *, semester=None, **kwargs):
        draft = CourseDraft(name=name, day_of_week=day, period=period, **kwargs)
        result = container.course_service.add_course(
            draft, semester.semester_id if semester is not None else None
        )
        assert result.ok, result.conflict
        return result.course

    return _add

