from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Optional

from .attendance.ledger import AbsenceLedger
from .attendance.repository import AttendanceRepository
from .common.datetime_utils import now_local
from .core.constants import DEFAULT_DEBOUNCE_SECONDS, DEFAULT_TIMETABLE_DAYS, DEFAULT_TIMETABLE_PERIODS
from .courses.identity import CourseIdentityResolver
from .courses.pairing import FullYearPairingSynchronizer
from .courses.repository import CourseRepository
from .courses.service import CourseService
from .database.unit_of_work import UnitOfWork
from .notifications.alerts import AbsenceAlertNotifier, ClassReminderScheduler
from .notifications.coordinator import ChangeNotificationCoordinator
from .notifications.sink import AlertSink, LoggingAlertSink
from .semesters.catalog import SemesterCatalog
from .semesters.repository import SemesterRepository
from .semesters.service import SemesterService
from .statistics.service import StatisticsService
from .timetable.service import TimetableService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Container:
    store: Any

    semesters_repo: SemesterRepository
    courses_repo: CourseRepository
    attendance_repo: AttendanceRepository
    uow: UnitOfWork

    catalog: SemesterCatalog
    resolver: CourseIdentityResolver
    synchronizer: FullYearPairingSynchronizer
    coordinator: ChangeNotificationCoordinator
    sink: AlertSink
    absence_alerts: AbsenceAlertNotifier
    class_reminders: ClassReminderScheduler
    ledger: AbsenceLedger

    semester_service: SemesterService
    course_service: CourseService
    timetable_service: TimetableService
    statistics_service: StatisticsService


def _mysql_backend(db_config: dict):
    from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
    from .courses.mysql_course_repository import MySQLCourseRepository
    from .database.bootstrap import db_config_from_dict
    from .database.connection import DatabaseConnection
    from .database.unit_of_work import MySQLUnitOfWork
    from .semesters.mysql_semester_repository import MySQLSemesterRepository

    conn = DatabaseConnection.get_instance(db_config_from_dict(db_config))
    return (
        conn,
        MySQLSemesterRepository(conn),
        MySQLCourseRepository(conn),
        MySQLAttendanceRepository(conn),
        MySQLUnitOfWork(conn),
    )


def _memory_backend():
    from .database.memory import (
        InMemoryAttendanceRepository,
        InMemoryCourseRepository,
        InMemorySemesterRepository,
        InMemoryStore,
        InMemoryUnitOfWork,
    )

    store = InMemoryStore()
    return (
        store,
        InMemorySemesterRepository(store),
        InMemoryCourseRepository(store),
        InMemoryAttendanceRepository(store),
        InMemoryUnitOfWork(store),
    )


def build_container(
    *,
    backend: str = "mysql",
    db_config: Optional[dict] = None,
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    notifications_enabled: bool = True,
    absence_limit_notification: bool = True,
    timetable_days: int = DEFAULT_TIMETABLE_DAYS,
    timetable_periods: int = DEFAULT_TIMETABLE_PERIODS,
    sink: Optional[AlertSink] = None,
    coordinator: Optional[ChangeNotificationCoordinator] = None,
    clock: Callable[[], datetime] = now_local,
) -> Container:
    if backend == "memory":
        store, semesters_repo, courses_repo, attendance_repo, uow = _memory_backend()
    elif backend == "mysql":
        if not db_config:
            raise ValueError("DB_CONFIG is required for the mysql backend")
        store, semesters_repo, courses_repo, attendance_repo, uow = _mysql_backend(db_config)
    else:
        raise ValueError(f"Unknown STORE_BACKEND {backend!r}")

    coordinator = coordinator or ChangeNotificationCoordinator(delay=debounce_seconds)
    sink = sink or LoggingAlertSink()
    absence_alerts = AbsenceAlertNotifier(
        sink,
        enabled=notifications_enabled,
        absence_limit_enabled=absence_limit_notification,
        clock=clock,
    )
    class_reminders = ClassReminderScheduler(sink, enabled=notifications_enabled, clock=clock)

    catalog = SemesterCatalog(semesters_repo)
    resolver = CourseIdentityResolver(courses_repo)
    synchronizer = FullYearPairingSynchronizer(courses_repo, attendance_repo, catalog, resolver, uow)
    ledger = AbsenceLedger(
        attendance_repo,
        courses_repo,
        resolver,
        synchronizer,
        uow,
        coordinator=coordinator,
        alerts=absence_alerts,
        clock=clock,
    )

    semester_service = SemesterService(
        semesters_repo,
        catalog,
        uow,
        coordinator=coordinator,
        # A new sheet may complete a pair: give its full-year courses their twins.
        on_sheets_changed=synchronizer.sync_all,
        clock=clock,
    )
    course_service = CourseService(
        courses_repo, resolver, synchronizer, ledger, semester_service, uow, coordinator=coordinator
    )
    timetable_service = TimetableService(
        semester_service,
        courses_repo,
        ledger,
        coordinator=coordinator,
        reminders=class_reminders,
        days=timetable_days,
        periods=timetable_periods,
    )
    statistics_service = StatisticsService(courses_repo, resolver, ledger, semester_service)

    return Container(
        store=store,
        semesters_repo=semesters_repo,
        courses_repo=courses_repo,
        attendance_repo=attendance_repo,
        uow=uow,
        catalog=catalog,
        resolver=resolver,
        synchronizer=synchronizer,
        coordinator=coordinator,
        sink=sink,
        absence_alerts=absence_alerts,
        class_reminders=class_reminders,
        ledger=ledger,
        semester_service=semester_service,
        course_service=course_service,
        timetable_service=timetable_service,
        statistics_service=statistics_service,
    )


def bootstrap(container: Container, *, today: Optional[date] = None) -> None:
    """Startup sequence.

    Semester setup runs on one background worker; the foreground waits for
    it before loading the catalog, the pair index and the absence cache.
    """

    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="semester-setup") as executor:
        future = container.semester_service.setup_in_background(executor, today)
        created = future.result()

    container.semester_service.load()
    container.synchronizer.rebuild_index()
    if container.semester_service.current() is not None:
        container.timetable_service.load()
    logger.info("Bootstrap finished (%d sheet(s) created)", len(created))
