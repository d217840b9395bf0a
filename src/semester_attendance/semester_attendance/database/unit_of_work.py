from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Protocol

from .connection import DatabaseConnection
from .mysql_base import transaction


class UnitOfWork(Protocol):
    def transaction(self) -> AbstractContextManager:
        """Group repository writes: all commit, or all roll back and StorageError is raised."""

        raise NotImplementedError


class MySQLUnitOfWork(UnitOfWork):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def transaction(self) -> AbstractContextManager:
        return transaction(self._conn_factory)
