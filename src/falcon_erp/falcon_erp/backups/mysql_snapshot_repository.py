from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Snapshot, SnapshotMeta
from .repository import SnapshotRepository


class MySQLSnapshotRepository(SnapshotRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, snapshot: Snapshot) -> None:
        with db_cursor(self._conn_factory, operation="write") as (_, cur):
            cur.execute(
                """
                INSERT INTO backups(id, name, data, size, created_by, created_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    snapshot.snapshot_id,
                    snapshot.name,
                    snapshot.payload,
                    snapshot.size_bytes,
                    snapshot.created_by,
                    snapshot.created_at,
                ),
            )

    def list_meta(self) -> Sequence[SnapshotMeta]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, name, size, created_by, created_at
                FROM backups
                ORDER BY created_at DESC
                """
            )
            rows = fetchall(cur)
            return [
                SnapshotMeta(
                    snapshot_id=str(r["id"]),
                    name=r["name"],
                    size_bytes=int(r["size"]),
                    created_by=str(r["created_by"]),
                    created_at=r["created_at"],
                )
                for r in rows
            ]

    def get(self, snapshot_id: str) -> Optional[Snapshot]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, name, data, size, created_by, created_at
                FROM backups
                WHERE id=%s
                """,
                (snapshot_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Snapshot(
                snapshot_id=str(r["id"]),
                name=r["name"],
                size_bytes=int(r["size"]),
                created_by=str(r["created_by"]),
                created_at=r["created_at"],
                payload=r["data"],
            )

    def delete(self, snapshot_id: str) -> bool:
        with db_cursor(self._conn_factory, operation="delete") as (_, cur):
            cur.execute("DELETE FROM backups WHERE id=%s", (snapshot_id,))
            return cur.rowcount > 0
