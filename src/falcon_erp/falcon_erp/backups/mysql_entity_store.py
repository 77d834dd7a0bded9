from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Mapping, Sequence

import mysql.connector

from ..core.constants import RESTORE_LOCK_NAME
from ..core.exceptions import RestoreInProgressError, StoreFailure
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .entities import EntityType
from .repository import EntityStore

logger = logging.getLogger(__name__)


def _quoted(names: Sequence[str]) -> str:
    return ", ".join(f"`{n}`" for n in names)


class MySQLEntityStore(EntityStore):
    """Table and column names come from the fixed entity registry only."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def fetch_all(self, entity: EntityType) -> Sequence[Dict[str, Any]]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_quoted(entity.column_names)} FROM `{entity.table}` ORDER BY `id`")
            return fetchall(cur)

    def delete_all(self, entity: EntityType) -> int:
        with db_cursor(self._conn_factory, operation="delete") as (_, cur):
            cur.execute(f"DELETE FROM `{entity.table}`")
            return int(cur.rowcount or 0)

    def insert_with_identity(self, entity: EntityType, row: Mapping[str, Any]) -> None:
        columns = [c for c in entity.column_names if c in row]
        if "id" not in columns:
            raise StoreFailure(f"{entity.table} row has no id", operation="write")

        placeholders = ", ".join(["%s"] * len(columns))
        with db_cursor(self._conn_factory, operation="write") as (_, cur):
            cur.execute(
                f"INSERT INTO `{entity.table}` ({_quoted(columns)}) VALUES ({placeholders})",
                tuple(row[c] for c in columns),
            )

    def unit_of_work(self):
        return self._conn_factory.unit_of_work()

    @contextmanager
    def savepoint(self, name: str = "restore_row") -> Iterator[None]:
        conn = self._conn_factory.current()
        if conn is None:
            # Outside a unit of work every statement commits on its own.
            yield
            return

        cur = conn.cursor()
        try:
            cur.execute(f"SAVEPOINT {name}")
            try:
                yield
            except Exception:
                cur.execute(f"ROLLBACK TO SAVEPOINT {name}")
                raise
            cur.execute(f"RELEASE SAVEPOINT {name}")
        except mysql.connector.Error as exc:
            raise StoreFailure(f"Savepoint {name} failed: {exc}", operation="write") from exc
        finally:
            cur.close()

    @contextmanager
    def exclusive_restore(self, *, timeout: int) -> Iterator[None]:
        # GET_LOCK is owned by the session, so the lock lives on its own
        # connection and is released only after the restore has committed.
        lock_name = f"{RESTORE_LOCK_NAME}:{self._conn_factory.database}"[:64]
        conn = self._conn_factory.connect()
        try:
            self._acquire(conn, lock_name, timeout)
            try:
                yield
            finally:
                self._release(conn, lock_name)
        finally:
            conn.close()

    @staticmethod
    def _acquire(conn, lock_name: str, timeout: int) -> None:
        try:
            cur = conn.cursor()
            cur.execute("SELECT GET_LOCK(%s, %s)", (lock_name, int(timeout)))
            (acquired,) = cur.fetchone()
            cur.close()
        except mysql.connector.Error as exc:
            raise StoreFailure(f"Cannot acquire restore lock: {exc}", operation="write") from exc
        if acquired != 1:
            raise RestoreInProgressError("Another restore is already running")
        logger.debug("Acquired restore lock %s", lock_name)

    @staticmethod
    def _release(conn, lock_name: str) -> None:
        try:
            cur = conn.cursor()
            cur.execute("SELECT RELEASE_LOCK(%s)", (lock_name,))
            cur.fetchone()
            cur.close()
        except mysql.connector.Error:
            # The lock dies with the session when the connection closes.
            logger.warning("Could not release restore lock %s", lock_name, exc_info=True)
