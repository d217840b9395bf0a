"""Example: drive the services directly, without Flask.

Runs against the in-memory store, so no database is needed.
"""

import logging
from datetime import date

from src.semester_attendance.semester_attendance.container import bootstrap, build_container
from src.semester_attendance.semester_attendance.courses.model import CourseDraft


def main():
    logging.basicConfig(level=logging.INFO)
    container = build_container(backend="memory")
    bootstrap(container, today=date(2025, 5, 1))

    result = container.course_service.add_course(
        CourseDraft(name="Algorithms", day_of_week=1, period=1, max_absences=5, is_full_year=True)
    )
    course = result.course
    for day in (5, 12, 19):
        container.ledger.record_absence(course, record_date=date(2025, 5, day))

    container.coordinator.flush()
    summary = container.statistics_service.semester_summary()
    for stats in summary.courses:
        print(f"{stats.name}: {stats.absence_count}/{stats.max_absences} ({stats.risk.value})")


if __name__ == "__main__":
    main()
