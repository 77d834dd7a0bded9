"""Entity types covered by tenant snapshots.

Every type declares its table, typed columns and the foreign keys it holds.
Two fixed orders drive the importer:

- ``CREATE_ORDER``: parents before children.
- ``DELETE_ORDER``: children before parents.

Users are referenced (``user_id`` columns) but never exported, deleted or
recreated.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Tuple

from ..common.datetime_utils import parse_iso_date, parse_iso_datetime, to_iso_utc
from ..core.enums import ColumnKind
from ..core.exceptions import InvalidFormatError

_CAMEL_BOUNDARY = re.compile(r"_([a-z0-9])")


def snake_to_camel(name: str) -> str:
    return _CAMEL_BOUNDARY.sub(lambda m: m.group(1).upper(), name)


@dataclass(frozen=True)
class Column:
    name: str
    kind: ColumnKind = ColumnKind.STR

    @property
    def field(self) -> str:
        """Name of the column inside a snapshot record."""
        return snake_to_camel(self.name)


@dataclass(frozen=True)
class EntityType:
    key: str
    table: str
    columns: Tuple[Column, ...]
    # (column, referenced table); "users" targets live outside the snapshot
    references: Tuple[Tuple[str, str], ...] = ()
    best_effort: bool = False

    @property
    def column_names(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.columns)

    def parents(self) -> Tuple[str, ...]:
        return tuple(table for _, table in self.references)

    def to_record(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        """Store row (snake_case, native values) -> JSON-ready record."""
        return {c.field: _to_json(c.kind, row.get(c.name)) for c in self.columns if c.name in row}

    def from_record(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        """Snapshot record -> store row. Unknown keys are dropped."""
        row: Dict[str, Any] = {}
        for c in self.columns:
            if c.field in record:
                raw = record[c.field]
            elif c.name in record:
                raw = record[c.name]
            else:
                continue
            row[c.name] = _from_json(c.kind, raw, where=f"{self.key}.{c.field}")
        return row


def _to_json(kind: ColumnKind, value: Any) -> Any:
    if value is None:
        return None
    if kind == ColumnKind.DATETIME:
        if isinstance(value, datetime):
            return to_iso_utc(value)
        return str(value)
    if kind == ColumnKind.DATE:
        if isinstance(value, datetime):
            return value.date().isoformat()
        if isinstance(value, date):
            return value.isoformat()
        return str(value)
    if kind == ColumnKind.DECIMAL:
        return str(value if isinstance(value, Decimal) else Decimal(str(value)))
    if kind == ColumnKind.BOOL:
        return bool(value)
    if kind == ColumnKind.INT:
        return int(value)
    return str(value)


def _from_json(kind: ColumnKind, value: Any, *, where: str) -> Any:
    if value is None:
        return None
    try:
        if kind == ColumnKind.DATETIME:
            if isinstance(value, datetime):
                return value
            return parse_iso_datetime(_expect_str(value))
        if kind == ColumnKind.DATE:
            if isinstance(value, date) and not isinstance(value, datetime):
                return value
            return parse_iso_date(_expect_str(value))
        if kind == ColumnKind.DECIMAL:
            if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
                raise ValueError(value)
            return Decimal(str(value))
        if kind == ColumnKind.BOOL:
            if isinstance(value, bool):
                return value
            if value in (0, 1):
                return bool(value)
            raise ValueError(value)
        if kind == ColumnKind.INT:
            if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
                raise ValueError(value)
            return int(value)
        if isinstance(value, (dict, list)):
            raise ValueError(value)
        return str(value)
    except (ValueError, TypeError, InvalidOperation):
        raise InvalidFormatError(f"Invalid value for {where}: {value!r}")


def _expect_str(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(value)
    return value


COMPANIES = EntityType(
    key="companies",
    table="companies",
    columns=(
        Column("id"),
        Column("user_id"),
        Column("name"),
        Column("nif"),
        Column("email"),
        Column("phone"),
        Column("address"),
        Column("city"),
        Column("postal_code"),
        Column("country"),
        Column("logo"),
        Column("currency"),
        Column("primary_color"),
        Column("secondary_color"),
        Column("active", ColumnKind.BOOL),
        Column("created_at", ColumnKind.DATETIME),
        Column("updated_at", ColumnKind.DATETIME),
    ),
    references=(("user_id", "users"),),
)

CONTACTS = EntityType(
    key="contacts",
    table="contacts",
    columns=(
        Column("id"),
        Column("user_id"),
        Column("company_id"),
        Column("name"),
        Column("nif"),
        Column("email"),
        Column("phone"),
        Column("address"),
        Column("city"),
        Column("postal_code"),
        Column("country"),
        Column("is_customer", ColumnKind.BOOL),
        Column("is_supplier", ColumnKind.BOOL),
        Column("active", ColumnKind.BOOL),
        Column("created_at", ColumnKind.DATETIME),
        Column("updated_at", ColumnKind.DATETIME),
    ),
    references=(("user_id", "users"), ("company_id", "companies")),
)

PRODUCTS = EntityType(
    key="products",
    table="products",
    columns=(
        Column("id"),
        Column("user_id"),
        Column("company_id"),
        Column("code"),
        Column("name"),
        Column("description"),
        Column("price", ColumnKind.DECIMAL),
        Column("tax", ColumnKind.DECIMAL),
        Column("type"),
        Column("stock", ColumnKind.INT),
        Column("active", ColumnKind.BOOL),
        Column("created_at", ColumnKind.DATETIME),
        Column("updated_at", ColumnKind.DATETIME),
    ),
    references=(("user_id", "users"), ("company_id", "companies")),
)

INVOICES = EntityType(
    key="invoices",
    table="invoices",
    columns=(
        Column("id"),
        Column("user_id"),
        Column("company_id"),
        Column("contact_id"),
        Column("number"),
        Column("date", ColumnKind.DATE),
        Column("due_date", ColumnKind.DATE),
        Column("status"),
        Column("payment_status"),
        Column("currency"),
        Column("subtotal", ColumnKind.DECIMAL),
        Column("tax_amount", ColumnKind.DECIMAL),
        Column("total", ColumnKind.DECIMAL),
        Column("notes"),
        Column("created_at", ColumnKind.DATETIME),
        Column("updated_at", ColumnKind.DATETIME),
    ),
    references=(("user_id", "users"), ("company_id", "companies"), ("contact_id", "contacts")),
)

INVOICE_ITEMS = EntityType(
    key="invoiceItems",
    table="invoice_items",
    columns=(
        Column("id"),
        Column("invoice_id"),
        Column("product_id"),
        Column("description"),
        Column("quantity", ColumnKind.DECIMAL),
        Column("price", ColumnKind.DECIMAL),
        Column("tax", ColumnKind.DECIMAL),
        Column("total", ColumnKind.DECIMAL),
    ),
    references=(("invoice_id", "invoices"), ("product_id", "products")),
)

ATTENDANCES = EntityType(
    key="attendances",
    table="attendances",
    columns=(
        Column("id"),
        Column("user_id"),
        Column("company_id"),
        Column("date", ColumnKind.DATE),
        Column("check_in", ColumnKind.DATETIME),
        Column("check_out", ColumnKind.DATETIME),
        Column("hourly_rate", ColumnKind.DECIMAL),
        Column("notes"),
        Column("created_at", ColumnKind.DATETIME),
    ),
    references=(("user_id", "users"), ("company_id", "companies")),
    best_effort=True,
)

CREATE_ORDER: Tuple[EntityType, ...] = (COMPANIES, CONTACTS, PRODUCTS, INVOICES, INVOICE_ITEMS, ATTENDANCES)
DELETE_ORDER: Tuple[EntityType, ...] = (INVOICE_ITEMS, INVOICES, PRODUCTS, CONTACTS, ATTENDANCES, COMPANIES)

ENTITY_TYPES: Dict[str, EntityType] = {e.key: e for e in CREATE_ORDER}
