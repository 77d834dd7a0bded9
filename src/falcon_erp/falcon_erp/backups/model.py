from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..common.datetime_utils import to_iso_utc
from .entities import EntityType


@dataclass(frozen=True)
class SnapshotMeta:
    """Listing view of a stored snapshot (no payload)."""

    snapshot_id: str
    name: str
    size_bytes: int
    created_by: str
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.snapshot_id,
            "name": self.name,
            "sizeBytes": self.size_bytes,
            "createdBy": self.created_by,
            "createdAt": to_iso_utc(self.created_at),
        }


@dataclass(frozen=True)
class Snapshot:
    """Domain entity: a named, immutable export of the tenant data graph."""

    snapshot_id: str
    name: str
    size_bytes: int
    created_by: str
    created_at: datetime
    payload: str

    @property
    def meta(self) -> SnapshotMeta:
        return SnapshotMeta(
            snapshot_id=self.snapshot_id,
            name=self.name,
            size_bytes=self.size_bytes,
            created_by=self.created_by,
            created_at=self.created_at,
        )


@dataclass(frozen=True)
class SnapshotDocument:
    """Logical payload: ``{version, timestamp, data: {entity key: [record, ...]}}``.

    Records are JSON-ready dicts keyed by camelCase field names.
    """

    version: str
    data: Mapping[str, Sequence[Mapping[str, Any]]]
    timestamp: Optional[str] = None

    def records(self, entity: EntityType) -> Sequence[Mapping[str, Any]]:
        return self.data.get(entity.key) or ()

    def count(self, entity: EntityType) -> int:
        return len(self.records(entity))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"version": self.version}
        if self.timestamp is not None:
            out["timestamp"] = self.timestamp
        out["data"] = {key: list(records) for key, records in self.data.items()}
        return out


@dataclass(frozen=True)
class RowFailure:
    """A best-effort row that could not be recreated."""

    entity: str
    row_id: str
    reason: str


@dataclass
class RestoreReport:
    deleted: Dict[str, int] = field(default_factory=dict)
    created: Dict[str, int] = field(default_factory=dict)
    failures: List[RowFailure] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deleted": dict(self.deleted),
            "created": dict(self.created),
            "failures": [
                {"entity": f.entity, "id": f.row_id, "reason": f.reason}
                for f in self.failures
            ],
        }
