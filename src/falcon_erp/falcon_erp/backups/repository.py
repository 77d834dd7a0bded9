from __future__ import annotations

from typing import Any, ContextManager, Dict, Mapping, Optional, Protocol, Sequence

from .entities import EntityType
from .model import Snapshot, SnapshotMeta


class EntityStore(Protocol):
    """Per-entity-type access to the live tenant data.

    ``insert_with_identity`` keeps the caller-supplied primary key so that
    references inside a snapshot stay valid after a restore.
    """

    def fetch_all(self, entity: EntityType) -> Sequence[Dict[str, Any]]:
        raise NotImplementedError

    def delete_all(self, entity: EntityType) -> int:
        raise NotImplementedError

    def insert_with_identity(self, entity: EntityType, row: Mapping[str, Any]) -> None:
        raise NotImplementedError

    def unit_of_work(self) -> ContextManager[Any]:
        """All store calls inside share one transaction; any exception rolls it back."""

        raise NotImplementedError

    def savepoint(self) -> ContextManager[None]:
        """Undo only the calls made inside the block when it raises."""

        raise NotImplementedError

    def exclusive_restore(self, *, timeout: int) -> ContextManager[None]:
        """Hold the tenant-wide restore lock; raise RestoreInProgressError on timeout."""

        raise NotImplementedError


class SnapshotRepository(Protocol):
    def create(self, snapshot: Snapshot) -> None:
        raise NotImplementedError

    def list_meta(self) -> Sequence[SnapshotMeta]:
        """Newest first, without payloads."""

        raise NotImplementedError

    def get(self, snapshot_id: str) -> Optional[Snapshot]:
        raise NotImplementedError

    def delete(self, snapshot_id: str) -> bool:
        raise NotImplementedError
