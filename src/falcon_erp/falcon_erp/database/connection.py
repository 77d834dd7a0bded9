from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional

import mysql.connector

from ..core.exceptions import StoreFailure


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str


class DatabaseConnection:
    """Singleton-like DB connection factory.

    Note: We create short-lived connections per operation, except inside
    ``unit_of_work()`` where one connection is pinned to the current thread
    and every ``db_cursor`` block shares its transaction.
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

    @property
    def database(self) -> str:
        return self._config.database

    def connect(self):
        try:
            return mysql.connector.connect(
                host=self._config.host,
                port=int(self._config.port),
                user=self._config.user,
                password=self._config.password,
                database=self._config.database,
            )
        except mysql.connector.Error as exc:
            raise StoreFailure(f"Cannot connect to database: {exc}", operation="read") from exc

    def current(self) -> Optional[Any]:
        """Connection pinned by an active unit of work, if any."""
        return getattr(self._local, "conn", None)

    @contextmanager
    def unit_of_work(self) -> Iterator[Any]:
        """Run every ``db_cursor`` block inside one transaction.

        Nested calls join the outer unit of work.
        """
        pinned = self.current()
        if pinned is not None:
            yield pinned
            return

        conn = self.connect()
        self._local.conn = conn
        try:
            conn.start_transaction()
            yield conn
            conn.commit()
        except mysql.connector.Error as exc:
            conn.rollback()
            raise StoreFailure(f"Transaction failed: {exc}", operation="write") from exc
        except BaseException:
            conn.rollback()
            raise
        finally:
            self._local.conn = None
            conn.close()
