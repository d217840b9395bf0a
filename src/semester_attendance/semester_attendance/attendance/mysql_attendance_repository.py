from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..core.enums import AttendanceType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import AttendanceRecord, CreditRecordRow
from .repository import AttendanceRepository

_COLUMNS = "record_id, course_id, record_date, type, memo, created_at"


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=int(r["record_id"]),
        course_id=int(r["course_id"]),
        record_date=r["record_date"],
        type=AttendanceType(r["type"]),
        memo=r.get("memo") or "",
        created_at=r["created_at"],
    )


def _credit_types() -> tuple[str, tuple]:
    return in_clause(t.value for t in AttendanceType.credit_types())


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        course_id: int,
        record_date: date,
        type: AttendanceType,
        memo: str,
        created_at: datetime,
    ) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(course_id, record_date, type, memo, created_at)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(course_id), record_date, AttendanceType(type).value, memo or "", created_at),
            )
            return AttendanceRecord(
                record_id=int(cur.lastrowid),
                course_id=int(course_id),
                record_date=record_date,
                type=AttendanceType(type),
                memo=memo or "",
                created_at=created_at,
            )

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE record_id=%s", (int(record_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def delete(self, record_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE record_id=%s", (int(record_id),))
            return cur.rowcount > 0

    def delete_for_courses(self, course_ids: Iterable[int]) -> int:
        placeholders, params = in_clause(int(c) for c in course_ids)
        if not params:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM attendance_records WHERE course_id IN {placeholders}", params)
            return cur.rowcount

    def reassign(self, *, from_course_ids: Iterable[int], to_course_id: int) -> int:
        placeholders, params = in_clause(int(c) for c in from_course_ids)
        if not params:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE attendance_records SET course_id=%s WHERE course_id IN {placeholders}",
                (int(to_course_id), *params),
            )
            return cur.rowcount

    def list_for_courses(self, course_ids: Iterable[int]) -> Sequence[AttendanceRecord]:
        placeholders, params = in_clause(int(c) for c in course_ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE course_id IN {placeholders}
                ORDER BY record_date DESC, record_id DESC
                """,
                params,
            )
            return [_to_record(r) for r in fetchall(cur)]

    def count_credit_for_courses(self, course_ids: Iterable[int]) -> int:
        placeholders, params = in_clause(int(c) for c in course_ids)
        types, type_params = _credit_types()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS n
                FROM attendance_records
                WHERE course_id IN {placeholders} AND type IN {types}
                """,
                (*params, *type_params),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def count_on_date(self, course_ids: Iterable[int], record_date: date) -> int:
        placeholders, params = in_clause(int(c) for c in course_ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS n
                FROM attendance_records
                WHERE course_id IN {placeholders} AND record_date=%s
                """,
                (*params, record_date),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def latest_credit_record(self, course_ids: Iterable[int]) -> Optional[AttendanceRecord]:
        placeholders, params = in_clause(int(c) for c in course_ids)
        types, type_params = _credit_types()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE course_id IN {placeholders} AND type IN {types}
                ORDER BY record_date DESC, record_id DESC
                LIMIT 1
                """,
                (*params, *type_params),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def find_credit_on_date(self, course_id: int, record_date: date) -> Optional[AttendanceRecord]:
        types, type_params = _credit_types()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE course_id=%s AND record_date=%s AND type IN {types}
                ORDER BY record_id DESC
                LIMIT 1
                """,
                (int(course_id), record_date, *type_params),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def list_credit_rows(self, names: Iterable[str]) -> Sequence[CreditRecordRow]:
        placeholders, params = in_clause(names)
        types, type_params = _credit_types()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT r.record_id, r.course_id, c.course_name, r.record_date
                FROM attendance_records r
                JOIN courses c ON c.course_id = r.course_id
                WHERE c.course_name IN {placeholders} AND r.type IN {types}
                ORDER BY r.record_id ASC
                """,
                (*params, *type_params),
            )
            return [
                CreditRecordRow(
                    record_id=int(r["record_id"]),
                    course_id=int(r["course_id"]),
                    course_name=r["course_name"],
                    record_date=r["record_date"],
                )
                for r in fetchall(cur)
            ]

    def list_credit_in_period(self, course_ids: Iterable[int], start: date, end: date) -> Sequence[AttendanceRecord]:
        placeholders, params = in_clause(int(c) for c in course_ids)
        types, type_params = _credit_types()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE course_id IN {placeholders} AND type IN {types}
                  AND record_date BETWEEN %s AND %s
                ORDER BY record_date ASC, record_id ASC
                """,
                (*params, *type_params, start, end),
            )
            return [_to_record(r) for r in fetchall(cur)]
