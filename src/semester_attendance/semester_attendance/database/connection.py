from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Optional

import mysql.connector


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str


class DatabaseConnection:
    """Singleton-like DB connection factory.

    Note: Connections are short-lived per operation, except while a
    transaction is open on the current thread; then every repository call
    reuses the bound connection so the whole unit commits or rolls back.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config
        self._local = threading.local()

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
        )

    def bound_connection(self) -> Any:
        return getattr(self._local, "conn", None)

    def bind(self, conn: Any) -> None:
        self._local.conn = conn

    def unbind(self) -> None:
        self._local.conn = None
