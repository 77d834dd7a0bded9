from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector

from ..core.exceptions import StoreFailure
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True, operation: str = "read"):
    """Yield ``(conn, cursor)``.

    Inside a unit of work the pinned connection is reused and left open for
    the unit of work to commit; otherwise the block owns its own transaction.
    Driver errors surface as ``StoreFailure`` tagged with ``operation``.
    """

    pinned = conn_factory.current()
    if pinned is not None:
        cur = pinned.cursor(dictionary=dictionary)
        try:
            yield pinned, cur
        except mysql.connector.Error as exc:
            raise StoreFailure(str(exc), operation=operation) from exc
        finally:
            cur.close()
        return

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as exc:
        conn.rollback()
        raise StoreFailure(str(exc), operation=operation) from exc
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])
