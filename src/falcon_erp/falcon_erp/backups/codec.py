"""Snapshot document codec.

``parse_document`` is the validation gate of the importer: it runs before
anything is deleted, so every shape problem surfaces as
``InvalidFormatError`` while the store is still untouched.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Union

from ..core.constants import SNAPSHOT_FORMAT_VERSION
from ..core.exceptions import InvalidFormatError
from .entities import ENTITY_TYPES, INVOICE_ITEMS, INVOICES
from .model import SnapshotDocument

logger = logging.getLogger(__name__)

FORMAT_VERSION = SNAPSHOT_FORMAT_VERSION


def dumps(document: SnapshotDocument) -> str:
    """Compact JSON text for storage and download."""
    return json.dumps(document.to_dict(), separators=(",", ":"), ensure_ascii=False)


def size_of(payload: str) -> int:
    return len(payload.encode("utf-8"))


def loads(payload: Union[str, bytes]) -> SnapshotDocument:
    try:
        obj = json.loads(payload)
    except (ValueError, UnicodeDecodeError) as exc:
        raise InvalidFormatError(f"Invalid backup format: {exc}") from exc
    return parse_document(obj)


def parse_document(obj: Any) -> SnapshotDocument:
    if not isinstance(obj, dict):
        raise InvalidFormatError("Invalid backup format")

    version = obj.get("version")
    if not isinstance(version, str) or not version.strip():
        raise InvalidFormatError("Invalid backup format: missing version")

    data = obj.get("data")
    if not isinstance(data, dict):
        raise InvalidFormatError("Invalid backup format: missing data")

    if version.strip() != FORMAT_VERSION:
        logger.warning("Snapshot version %s differs from current format %s", version, FORMAT_VERSION)

    parsed: Dict[str, List[Mapping[str, Any]]] = {}
    for key, records in data.items():
        if key not in ENTITY_TYPES:
            logger.info("Ignoring unsupported snapshot section %r", key)
            continue
        parsed[key] = _check_records(key, records)

    _check_invoice_items(parsed)

    timestamp = obj.get("timestamp")
    return SnapshotDocument(
        version=version.strip(),
        data=parsed,
        timestamp=timestamp if isinstance(timestamp, str) else None,
    )


def _check_records(key: str, records: Any) -> List[Mapping[str, Any]]:
    if records is None:
        return []
    if not isinstance(records, list):
        raise InvalidFormatError(f"Invalid backup format: data.{key} must be a list")

    seen: set[str] = set()
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise InvalidFormatError(f"Invalid backup format: data.{key}[{index}] must be an object")
        row_id = record.get("id")
        if row_id is None or not str(row_id).strip():
            raise InvalidFormatError(f"Invalid backup format: data.{key}[{index}] has no id")
        if str(row_id) in seen:
            raise InvalidFormatError(f"Invalid backup format: duplicate id {row_id!r} in data.{key}")
        seen.add(str(row_id))
    return records


def _check_invoice_items(parsed: Mapping[str, List[Mapping[str, Any]]]) -> None:
    invoice_ids = {str(r["id"]) for r in parsed.get(INVOICES.key, ())}
    for item in parsed.get(INVOICE_ITEMS.key, ()):
        invoice_id = item.get("invoiceId", item.get("invoice_id"))
        if invoice_id is None or str(invoice_id) not in invoice_ids:
            raise InvalidFormatError(
                f"Invalid backup format: invoice item {item['id']!r} references unknown invoice {invoice_id!r}"
            )
