from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import Course
from .repository import CourseRepository

_COLUMNS = (
    "course_id, course_name, semester_id, day_of_week, period, total_classes, max_absences, "
    "color_index, is_full_year, is_notification_enabled"
)


def _to_course(r: dict) -> Course:
    return Course(
        course_id=int(r["course_id"]),
        name=r["course_name"],
        semester_id=int(r["semester_id"]),
        day_of_week=int(r["day_of_week"]),
        period=int(r["period"]),
        total_classes=int(r["total_classes"]),
        max_absences=int(r["max_absences"]),
        color_index=int(r["color_index"]),
        is_full_year=bool(r["is_full_year"]),
        is_notification_enabled=bool(r["is_notification_enabled"]),
    )


class MySQLCourseRepository(CourseRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select(self, where: str = "", params: tuple = (), order: str = "course_id ASC") -> list[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            sql = f"SELECT {_COLUMNS} FROM courses"
            if where:
                sql += f" WHERE {where}"
            cur.execute(f"{sql} ORDER BY {order}", params)
            return [_to_course(r) for r in fetchall(cur)]

    def get_by_id(self, course_id: int) -> Optional[Course]:
        rows = self._select("course_id=%s", (int(course_id),))
        return rows[0] if rows else None

    def list_all(self) -> Sequence[Course]:
        return self._select()

    def list_by_name(self, name: str) -> Sequence[Course]:
        return self._select("course_name=%s", (name,))

    def list_by_semester(self, semester_id: int) -> Sequence[Course]:
        return self._select("semester_id=%s", (int(semester_id),), order="day_of_week ASC, period ASC")

    def get_at_slot(self, *, semester_id: int, day_of_week: int, period: int) -> Optional[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM courses
                WHERE semester_id=%s AND day_of_week=%s AND period=%s
                """,
                (int(semester_id), int(day_of_week), int(period)),
            )
            r = fetchone(cur)
            return _to_course(r) if r else None

    def create(
        self,
        *,
        semester_id: int,
        name: str,
        day_of_week: int,
        period: int,
        total_classes: int,
        max_absences: int,
        color_index: int = 0,
        is_full_year: bool = False,
        is_notification_enabled: bool = True,
    ) -> Course:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO courses(semester_id, course_name, day_of_week, period, total_classes,
                                    max_absences, color_index, is_full_year, is_notification_enabled)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(semester_id),
                    name,
                    int(day_of_week),
                    int(period),
                    int(total_classes),
                    int(max_absences),
                    int(color_index),
                    int(bool(is_full_year)),
                    int(bool(is_notification_enabled)),
                ),
            )
            return Course(
                course_id=int(cur.lastrowid),
                name=name,
                semester_id=int(semester_id),
                day_of_week=int(day_of_week),
                period=int(period),
                total_classes=int(total_classes),
                max_absences=int(max_absences),
                color_index=int(color_index),
                is_full_year=bool(is_full_year),
                is_notification_enabled=bool(is_notification_enabled),
            )

    def update(self, course: Course) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE courses
                SET course_name=%s, semester_id=%s, day_of_week=%s, period=%s, total_classes=%s,
                    max_absences=%s, color_index=%s, is_full_year=%s, is_notification_enabled=%s
                WHERE course_id=%s
                """,
                (
                    course.name,
                    course.semester_id,
                    course.day_of_week,
                    course.period,
                    course.total_classes,
                    course.max_absences,
                    course.color_index,
                    int(course.is_full_year),
                    int(course.is_notification_enabled),
                    course.course_id,
                ),
            )
            # rowcount is 0 when nothing changed; existence is what matters.
            return cur.rowcount > 0 or self.get_by_id(course.course_id) is not None

    def delete_many(self, course_ids: Iterable[int]) -> int:
        placeholders, params = in_clause(int(c) for c in course_ids)
        if not params:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM courses WHERE course_id IN {placeholders}", params)
            return cur.rowcount
