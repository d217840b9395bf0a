from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import SemesterKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Semester
from .repository import SemesterRepository

_COLUMNS = "semester_id, name, kind, start_date, end_date, is_active, created_at"


def _to_semester(r: dict) -> Semester:
    return Semester(
        semester_id=int(r["semester_id"]),
        name=r["name"],
        kind=SemesterKind(r["kind"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        is_active=bool(r["is_active"]),
        created_at=r["created_at"],
    )


class MySQLSemesterRepository(SemesterRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Semester]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM semesters ORDER BY created_at ASC, semester_id ASC")
            return [_to_semester(r) for r in fetchall(cur)]

    def get_by_id(self, semester_id: int) -> Optional[Semester]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM semesters WHERE semester_id=%s", (int(semester_id),))
            r = fetchone(cur)
            return _to_semester(r) if r else None

    def get_active(self) -> Optional[Semester]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM semesters
                WHERE is_active=1
                ORDER BY created_at DESC, semester_id DESC
                LIMIT 1
                """
            )
            r = fetchone(cur)
            return _to_semester(r) if r else None

    def create(
        self,
        *,
        name: str,
        kind: SemesterKind,
        start_date: date,
        end_date: date,
        is_active: bool,
        created_at: datetime,
    ) -> Semester:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO semesters(name, kind, start_date, end_date, is_active, created_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (name, kind.value, start_date, end_date, int(bool(is_active)), created_at),
            )
            return Semester(
                semester_id=int(cur.lastrowid),
                name=name,
                kind=kind,
                start_date=start_date,
                end_date=end_date,
                is_active=bool(is_active),
                created_at=created_at,
            )

    def update(self, semester: Semester) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE semesters
                SET name=%s, kind=%s, start_date=%s, end_date=%s, is_active=%s
                WHERE semester_id=%s
                """,
                (
                    semester.name,
                    semester.kind.value,
                    semester.start_date,
                    semester.end_date,
                    int(semester.is_active),
                    semester.semester_id,
                ),
            )
            return cur.rowcount > 0

    def set_active(self, semester_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE semesters SET is_active=(semester_id=%s)", (int(semester_id),))
