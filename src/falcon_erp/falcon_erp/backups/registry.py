from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime
from typing import Callable, Optional, Sequence, Tuple

from ..common.datetime_utils import now_utc
from ..common.validators import optional_str, require_non_empty
from ..core.constants import DEFAULT_SNAPSHOT_NAME_FORMAT
from ..core.exceptions import NotFoundError
from . import codec
from .model import Snapshot, SnapshotDocument, SnapshotMeta
from .repository import SnapshotRepository

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def download_filename(name: str) -> str:
    return f"{_UNSAFE_FILENAME_CHARS.sub('_', name)}.json"


class SnapshotRegistry:
    """Named, immutable snapshots: store, list, fetch, delete. Never updates."""

    def __init__(
        self,
        snapshots: SnapshotRepository,
        *,
        clock: Callable[[], datetime] = now_utc,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self._snapshots = snapshots
        self._clock = clock
        self._id_factory = id_factory

    def store(self, name: Optional[str], document: SnapshotDocument, *, created_by: str) -> SnapshotMeta:
        created_by = require_non_empty(created_by, "createdBy")
        created_at = self._clock()
        name = optional_str(name, "name") or created_at.strftime(DEFAULT_SNAPSHOT_NAME_FORMAT)

        payload = codec.dumps(document)
        snapshot = Snapshot(
            snapshot_id=self._id_factory(),
            name=name,
            size_bytes=codec.size_of(payload),
            created_by=created_by,
            created_at=created_at,
            payload=payload,
        )
        self._snapshots.create(snapshot)
        logger.info("Stored snapshot %s (%s, %d bytes)", snapshot.snapshot_id, name, snapshot.size_bytes)
        return snapshot.meta

    def list(self) -> Sequence[SnapshotMeta]:
        return self._snapshots.list_meta()

    def get(self, snapshot_id: str) -> Snapshot:
        snapshot = self._snapshots.get(snapshot_id)
        if not snapshot:
            raise NotFoundError("Backup not found")
        return snapshot

    def delete(self, snapshot_id: str) -> None:
        if not self._snapshots.delete(snapshot_id):
            raise NotFoundError("Backup not found")
        logger.info("Deleted snapshot %s", snapshot_id)

    def download(self, snapshot_id: str) -> Tuple[str, bytes]:
        snapshot = self.get(snapshot_id)
        return download_filename(snapshot.name), snapshot.payload.encode("utf-8")
