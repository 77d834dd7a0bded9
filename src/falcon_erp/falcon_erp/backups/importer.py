"""Destructive replace of the tenant data graph from a snapshot document.

Pipeline: validate -> lock -> (clear -> recreate) in one unit of work.

- Validation (shape and value coercion) finishes before the first delete.
- Clear walks ``DELETE_ORDER``; recreate walks ``CREATE_ORDER`` and keeps
  every original identifier.
- Required entity types abort the restore on the first failure and the unit
  of work rolls everything back.
- Best-effort types (attendances) run each row in its own savepoint; a failed
  row is undone, reported and skipped.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from ..core.constants import DEFAULT_RESTORE_LOCK_TIMEOUT
from ..core.exceptions import StoreFailure
from . import codec
from .entities import CREATE_ORDER, DELETE_ORDER, EntityType
from .model import RestoreReport, RowFailure, SnapshotDocument
from .registry import SnapshotRegistry
from .repository import EntityStore

logger = logging.getLogger(__name__)


class SnapshotImporter:
    def __init__(
        self,
        store: EntityStore,
        registry: SnapshotRegistry,
        *,
        lock_timeout: int = DEFAULT_RESTORE_LOCK_TIMEOUT,
    ):
        self._store = store
        self._registry = registry
        self._lock_timeout = int(lock_timeout)

    def restore_snapshot(self, snapshot_id: str) -> RestoreReport:
        snapshot = self._registry.get(snapshot_id)
        logger.info("Restoring stored snapshot %s (%s)", snapshot.snapshot_id, snapshot.name)
        return self.restore(codec.loads(snapshot.payload))

    def restore_payload(self, body: Any) -> RestoreReport:
        return self.restore(codec.parse_document(body))

    def restore(self, document: SnapshotDocument) -> RestoreReport:
        plan = self._plan(document)
        report = RestoreReport()

        with self._store.exclusive_restore(timeout=self._lock_timeout):
            try:
                with self._store.unit_of_work():
                    self._clear(report)
                    self._recreate(plan, report)
            except StoreFailure:
                logger.error("Restore aborted and rolled back", exc_info=True)
                raise

        logger.info(
            "Restore finished: created=%s failures=%d",
            report.created,
            len(report.failures),
        )
        return report

    @staticmethod
    def _plan(document: SnapshotDocument) -> Dict[str, List[Dict[str, Any]]]:
        # Coerce every record up front so bad values fail before any delete.
        return {
            entity.key: [entity.from_record(record) for record in document.records(entity)]
            for entity in CREATE_ORDER
        }

    def _clear(self, report: RestoreReport) -> None:
        logger.warning("Deleting current data before restore")
        for entity in DELETE_ORDER:
            if entity.best_effort:
                try:
                    with self._store.savepoint():
                        report.deleted[entity.key] = self._store.delete_all(entity)
                except StoreFailure as exc:
                    logger.warning("Could not clear %s, continuing: %s", entity.key, exc)
                    report.deleted[entity.key] = 0
                continue

            report.deleted[entity.key] = self._store.delete_all(entity)
            logger.info("Deleted %d %s", report.deleted[entity.key], entity.key)

    def _recreate(self, plan: Mapping[str, List[Dict[str, Any]]], report: RestoreReport) -> None:
        for entity in CREATE_ORDER:
            rows = plan[entity.key]
            created = 0
            for row in rows:
                if entity.best_effort:
                    if self._insert_best_effort(entity, row, report):
                        created += 1
                    continue
                self._store.insert_with_identity(entity, row)
                created += 1
            report.created[entity.key] = created
            logger.info("Restored %d/%d %s", created, len(rows), entity.key)

    def _insert_best_effort(self, entity: EntityType, row: Mapping[str, Any], report: RestoreReport) -> bool:
        try:
            with self._store.savepoint():
                self._store.insert_with_identity(entity, row)
        except StoreFailure as exc:
            logger.warning("Skipped %s %s: %s", entity.key, row.get("id"), exc)
            report.failures.append(RowFailure(entity=entity.key, row_id=str(row.get("id")), reason=str(exc)))
            return False
        return True
