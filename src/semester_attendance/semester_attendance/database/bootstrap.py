from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

import mysql.connector

from ..core.exceptions import StorageError
from .connection import DBConfig

logger = logging.getLogger(__name__)


def db_config_from_dict(db_config: dict) -> DBConfig:
    return DBConfig(
        host=str(db_config.get("host", "localhost")),
        port=int(db_config.get("port", 3306)),
        user=str(db_config.get("user", "root")),
        password=str(db_config.get("password", "")),
        database=str(db_config.get("database", "semester_attendance")),
    )


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql usable regardless of the configured DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ';' outside of quoted strings and drop '--' comment lines."""

    lines = [line for line in sql.splitlines() if not line.lstrip().startswith("--")]
    buf: list[str] = []
    quote = ""
    for ch in "\n".join(lines):
        if quote:
            buf.append(ch)
            if ch == quote:
                quote = ""
            continue
        if ch in ("'", '"'):
            quote = ch
            buf.append(ch)
            continue
        if ch == ";":
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue
        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _connect(target: DBConfig, *, with_database: bool = True):
    kwargs = dict(host=target.host, port=target.port, user=target.user, password=target.password, use_pure=True)
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    """Create the database (if missing) and apply the idempotent schema script."""

    target = db_config_from_dict(db_config)
    sql = _strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8"))

    try:
        conn = _connect(target, with_database=False)
        try:
            cur = conn.cursor()
            cur.execute(
                f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
            )
            conn.commit()
        finally:
            conn.close()

        conn = _connect(target)
        try:
            cur = conn.cursor()
            for stmt in iter_sql_statements(sql):
                cur.execute(stmt)
            conn.commit()
        finally:
            conn.close()
    except mysql.connector.Error as exc:
        raise StorageError(f"Applying schema failed: {exc}") from exc

    logger.info("Schema applied to %s@%s/%s", target.user, target.host, target.database)


def list_tables(db_config: dict) -> list[str]:
    target = db_config_from_dict(db_config)
    conn = _connect(target)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
