from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from src.falcon_erp.falcon_erp.backups.entities import (
    ATTENDANCES,
    COMPANIES,
    CREATE_ORDER,
    DELETE_ORDER,
    ENTITY_TYPES,
    INVOICES,
    PRODUCTS,
    snake_to_camel,
)
from src.falcon_erp.falcon_erp.core.exceptions import InvalidFormatError


def test_create_order_puts_parents_first():
    seen: set[str] = set()
    for entity in CREATE_ORDER:
        for parent in entity.parents():
            if parent == "users":
                continue
            assert parent in seen, f"{entity.table} created before its parent {parent}"
        seen.add(entity.table)


def test_delete_order_removes_children_first():
    deleted: set[str] = set()
    for entity in DELETE_ORDER:
        children = [e.table for e in CREATE_ORDER if entity.table in e.parents()]
        for child in children:
            assert child in deleted, f"{entity.table} deleted before its child {child}"
        deleted.add(entity.table)


def test_delete_order_matches_documented_sequence():
    assert [e.key for e in DELETE_ORDER] == [
        "invoiceItems",
        "invoices",
        "products",
        "contacts",
        "attendances",
        "companies",
    ]
    assert set(DELETE_ORDER) == set(CREATE_ORDER)


def test_only_attendances_are_best_effort():
    assert [e.key for e in CREATE_ORDER if e.best_effort] == [ATTENDANCES.key]
    assert "users" not in ENTITY_TYPES


def test_snake_to_camel():
    assert snake_to_camel("postal_code") == "postalCode"
    assert snake_to_camel("invoice_id") == "invoiceId"
    assert snake_to_camel("name") == "name"


def test_to_record_serialises_native_values():
    record = INVOICES.to_record({
        "id": "inv-1",
        "date": date(2026, 1, 15),
        "total": Decimal("145.79"),
        "created_at": datetime(2026, 1, 15, 9, 30),
        "notes": None,
    })

    assert record == {
        "id": "inv-1",
        "date": "2026-01-15",
        "total": "145.79",
        "createdAt": "2026-01-15T09:30:00.000Z",
        "notes": None,
    }


def test_from_record_coerces_and_drops_unknown_keys():
    row = PRODUCTS.from_record({
        "id": "p-1",
        "companyId": "c-1",
        "price": 10.5,
        "stock": "3",
        "active": 1,
        "createdAt": "2026-01-15T09:30:00.000Z",
        "somethingElse": "ignored",
    })

    assert row == {
        "id": "p-1",
        "company_id": "c-1",
        "price": Decimal("10.5"),
        "stock": 3,
        "active": True,
        "created_at": datetime(2026, 1, 15, 9, 30),
    }


def test_from_record_accepts_snake_case_keys():
    row = COMPANIES.from_record({"id": "c-1", "user_id": "u-1", "primary_color": "#fff"})
    assert row == {"id": "c-1", "user_id": "u-1", "primary_color": "#fff"}


def test_from_record_converts_offset_datetimes_to_utc():
    row = ATTENDANCES.from_record({"id": "a", "checkIn": "2026-01-15T10:00:00+02:00"})
    assert row["check_in"] == datetime(2026, 1, 15, 8, 0)


@pytest.mark.parametrize(
    "record",
    [
        {"id": "p", "price": "abc"},
        {"id": "p", "active": "yes"},
        {"id": "p", "stock": True},
        {"id": "p", "stock": 4.7},
        {"id": "p", "stock": "4.7"},
        {"id": "p", "createdAt": 12345},
        {"id": "p", "name": {"nested": True}},
    ],
)
def test_from_record_rejects_bad_values(record):
    with pytest.raises(InvalidFormatError):
        PRODUCTS.from_record(record)


def test_from_record_accepts_integral_int_values():
    assert PRODUCTS.from_record({"id": "p", "stock": 4.0})["stock"] == 4
    assert PRODUCTS.from_record({"id": "p", "stock": "12"})["stock"] == 12
