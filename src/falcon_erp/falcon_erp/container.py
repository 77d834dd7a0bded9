from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .backups.exporter import SnapshotExporter
from .backups.importer import SnapshotImporter
from .backups.mysql_entity_store import MySQLEntityStore
from .backups.mysql_snapshot_repository import MySQLSnapshotRepository
from .backups.registry import SnapshotRegistry
from .backups.repository import EntityStore, SnapshotRepository
from .common.datetime_utils import now_utc
from .core.constants import DEFAULT_RESTORE_LOCK_TIMEOUT
from .database.connection import DBConfig, DatabaseConnection
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    entity_store: EntityStore
    snapshots_repo: SnapshotRepository

    auth_service: AuthService
    snapshot_exporter: SnapshotExporter
    snapshot_registry: SnapshotRegistry
    snapshot_importer: SnapshotImporter

    clock: Callable[[], datetime] = now_utc


def wire_services(
    *,
    users_repo: UserRepository,
    entity_store: EntityStore,
    snapshots_repo: SnapshotRepository,
    conn: Optional[DatabaseConnection] = None,
    clock: Callable[[], datetime] = now_utc,
    restore_lock_timeout: int = DEFAULT_RESTORE_LOCK_TIMEOUT,
) -> Container:
    """Build the service layer on top of any repository implementations."""

    registry = SnapshotRegistry(snapshots_repo, clock=clock)

    return Container(
        conn=conn,
        users_repo=users_repo,
        entity_store=entity_store,
        snapshots_repo=snapshots_repo,
        auth_service=AuthService(users_repo),
        snapshot_exporter=SnapshotExporter(entity_store, clock=clock),
        snapshot_registry=registry,
        snapshot_importer=SnapshotImporter(entity_store, registry, lock_timeout=restore_lock_timeout),
        clock=clock,
    )


def build_container(*, db_config: dict, restore_lock_timeout: int = DEFAULT_RESTORE_LOCK_TIMEOUT) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    return wire_services(
        users_repo=MySQLUserRepository(conn),
        entity_store=MySQLEntityStore(conn),
        snapshots_repo=MySQLSnapshotRepository(conn),
        conn=conn,
        restore_lock_timeout=restore_lock_timeout,
    )
