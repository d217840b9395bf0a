from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import mysql.connector

from ..core.exceptions import StorageError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


@contextmanager
def transaction(conn_factory: DatabaseConnection):
    """Open a transaction shared by every db_cursor call on this thread.

    Nested calls join the outer transaction.
    """

    bound = conn_factory.bound_connection()
    if bound is not None:
        yield bound
        return

    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as exc:
        raise StorageError(f"Could not connect to the database: {exc}") from exc

    conn_factory.bind(conn)
    try:
        yield conn
        conn.commit()
    except mysql.connector.Error as exc:
        conn.rollback()
        logger.warning("Transaction rolled back: %s", exc)
        raise StorageError(f"Database write failed: {exc}") from exc
    except Exception:
        conn.rollback()
        raise
    finally:
        conn_factory.unbind()
        conn.close()


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    bound = conn_factory.bound_connection()
    if bound is not None:
        cur = bound.cursor(dictionary=dictionary)
        try:
            yield bound, cur
        finally:
            cur.close()
        return

    with transaction(conn_factory) as conn:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
        finally:
            cur.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def in_clause(values: Iterable[Any]) -> Tuple[str, Sequence[Any]]:
    """Build ``IN (%s,%s,...)`` placeholders for a parameter list.

    An empty list yields ``IN (NULL)`` so the predicate matches nothing.
    """

    params = list(values)
    if not params:
        return "(NULL)", ()
    return "(" + ",".join(["%s"] * len(params)) + ")", tuple(params)
