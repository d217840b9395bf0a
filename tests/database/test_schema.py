from __future__ import annotations

import re
from pathlib import Path

from src.semester_attendance.semester_attendance.database.bootstrap import (
    _strip_create_db_and_use,
    iter_sql_statements,
)

SCHEMA = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def _create_table(name: str) -> str:
    sql = _strip_create_db_and_use(SCHEMA.read_text(encoding="utf-8"))
    for stmt in iter_sql_statements(sql):
        if re.match(rf"CREATE TABLE IF NOT EXISTS {name}\b", stmt):
            return stmt
    raise AssertionError(f"no CREATE TABLE for {name}")


def test_schema_splits_into_table_statements():
    sql = _strip_create_db_and_use(SCHEMA.read_text(encoding="utf-8"))
    statements = list(iter_sql_statements(sql))

    assert len(statements) == 3
    assert all(s.startswith("CREATE TABLE IF NOT EXISTS") for s in statements)


def test_course_name_compares_exactly():
    # Names are course identity; a case- or accent-insensitive collation would merge rows.
    column = next(line for line in _create_table("courses").splitlines() if "course_name VARCHAR" in line)

    assert "COLLATE utf8mb4_bin" in column
