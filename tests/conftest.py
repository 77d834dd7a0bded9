from __future__ import annotations

import copy
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from src.falcon_erp.falcon_erp.backups.entities import (
    ATTENDANCES,
    COMPANIES,
    CONTACTS,
    CREATE_ORDER,
    INVOICE_ITEMS,
    INVOICES,
    PRODUCTS,
)
from src.falcon_erp.falcon_erp.container import wire_services
from src.falcon_erp.falcon_erp.core.enums import Role
from src.falcon_erp.falcon_erp.core.exceptions import RestoreInProgressError, StoreFailure
from src.falcon_erp.falcon_erp.users.model import User

ADMIN_ID = "u-admin"


class InMemoryEntityStore:
    """EntityStore fake with primary/foreign key checks and transactions."""

    def __init__(self, users=(ADMIN_ID,)):
        self.users = set(users)
        self.tables: dict[str, dict[str, dict]] = {e.table: {} for e in CREATE_ORDER}
        self.calls: list[tuple] = []
        self.fail_ids: set[str] = set()
        self.commits = 0
        self.rollbacks = 0
        self.lock_held = False
        self.lock_acquisitions = 0

    # helpers -----------------------------------------------------------
    def _exists(self, table: str, key) -> bool:
        if table == "users":
            return key in self.users
        return key in self.tables[table]

    def seed(self, entity, *rows) -> None:
        for row in rows:
            self.tables[entity.table][row["id"]] = dict(row)

    def writes(self) -> list[tuple]:
        return [c for c in self.calls if c[0] in ("delete", "insert")]

    # EntityStore -------------------------------------------------------
    def fetch_all(self, entity):
        self.calls.append(("fetch", entity.table))
        return [dict(self.tables[entity.table][k]) for k in sorted(self.tables[entity.table])]

    def delete_all(self, entity) -> int:
        self.calls.append(("delete", entity.table))
        for other in CREATE_ORDER:
            for column, parent in other.references:
                if parent != entity.table:
                    continue
                if any(r.get(column) is not None for r in self.tables[other.table].values()):
                    raise StoreFailure(
                        f"Cannot delete {entity.table}: referenced by {other.table}.{column}",
                        operation="delete",
                    )
        count = len(self.tables[entity.table])
        self.tables[entity.table].clear()
        return count

    def insert_with_identity(self, entity, row) -> None:
        self.calls.append(("insert", entity.table, row.get("id")))
        if row.get("id") in self.fail_ids:
            raise StoreFailure(f"Simulated failure for {row.get('id')}", operation="write")
        if row["id"] in self.tables[entity.table]:
            raise StoreFailure(f"Duplicate id {row['id']} in {entity.table}", operation="write")
        for column, parent in entity.references:
            value = row.get(column)
            if value is not None and not self._exists(parent, value):
                raise StoreFailure(
                    f"{entity.table}.{column}={value} references missing {parent}",
                    operation="write",
                )
        self.tables[entity.table][row["id"]] = dict(row)

    @contextmanager
    def unit_of_work(self):
        saved = copy.deepcopy(self.tables)
        try:
            yield self
        except BaseException:
            self.tables = saved
            self.rollbacks += 1
            raise
        self.commits += 1

    @contextmanager
    def savepoint(self):
        saved = copy.deepcopy(self.tables)
        try:
            yield
        except BaseException:
            self.tables = saved
            raise

    @contextmanager
    def exclusive_restore(self, *, timeout: int):
        if self.lock_held:
            raise RestoreInProgressError("Another restore is already running")
        self.lock_held = True
        self.lock_acquisitions += 1
        try:
            yield
        finally:
            self.lock_held = False


class InMemorySnapshots:
    def __init__(self):
        self.items: dict = {}
        self.fail_writes = False

    def create(self, snapshot) -> None:
        if self.fail_writes:
            raise StoreFailure("Simulated write failure", operation="write")
        self.items[snapshot.snapshot_id] = snapshot

    def list_meta(self):
        ordered = sorted(self.items.values(), key=lambda s: s.created_at, reverse=True)
        return [s.meta for s in ordered]

    def get(self, snapshot_id: str):
        return self.items.get(snapshot_id)

    def delete(self, snapshot_id: str) -> bool:
        return self.items.pop(snapshot_id, None) is not None


class InMemoryUsers:
    def __init__(self, *users: User):
        self.by_id = {u.user_id: u for u in users}

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self.by_id.get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.by_id.values() if u.email == email), None)


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now


def make_admin(password: str = "password123", *, verified: bool = True) -> User:
    return User(
        user_id=ADMIN_ID,
        email="admin@falconerp.com",
        name="Administrator",
        password_hash=generate_password_hash(password),
        role=Role.ADMIN,
        email_verified=verified,
    )


def seed_sample_tenant(store: InMemoryEntityStore) -> None:
    """1 company, 2 contacts, 3 products, 1 invoice with 2 items, 1 attendance."""

    ts = datetime(2026, 1, 15, 9, 30, 0)
    store.seed(COMPANIES, {
        "id": "c-1", "user_id": ADMIN_ID, "name": "Falcon SL", "nif": "B123", "email": "info@falcon.test",
        "phone": None, "address": None, "city": "Madrid", "postal_code": "28001", "country": "ES",
        "logo": None, "currency": "EUR", "primary_color": "#0d9488", "secondary_color": "#14b8a6",
        "active": True, "created_at": ts, "updated_at": ts,
    })
    store.seed(
        CONTACTS,
        {"id": "ct-1", "user_id": ADMIN_ID, "company_id": "c-1", "name": "Acme", "is_customer": True,
         "is_supplier": False, "active": True, "created_at": ts, "updated_at": ts},
        {"id": "ct-2", "user_id": ADMIN_ID, "company_id": "c-1", "name": "Globex", "is_customer": False,
         "is_supplier": True, "active": True, "created_at": ts, "updated_at": ts},
    )
    store.seed(
        PRODUCTS,
        {"id": "p-1", "user_id": ADMIN_ID, "company_id": "c-1", "code": "P1", "name": "Widget",
         "price": Decimal("10.50"), "tax": Decimal("21.00"), "type": "product", "stock": 4, "active": True},
        {"id": "p-2", "user_id": ADMIN_ID, "company_id": "c-1", "code": "P2", "name": "Gadget",
         "price": Decimal("99.99"), "tax": Decimal("21.00"), "type": "product", "stock": 0, "active": True},
        {"id": "p-3", "user_id": ADMIN_ID, "company_id": "c-1", "code": "S1", "name": "Support",
         "price": Decimal("45.00"), "tax": Decimal("0.00"), "type": "service", "stock": 0, "active": True},
    )
    store.seed(INVOICES, {
        "id": "inv-1", "user_id": ADMIN_ID, "company_id": "c-1", "contact_id": "ct-1", "number": "F-0001",
        "date": date(2026, 1, 15), "due_date": date(2026, 2, 15), "status": "sent", "payment_status": "unpaid",
        "currency": "EUR", "subtotal": Decimal("120.49"), "tax_amount": Decimal("25.30"),
        "total": Decimal("145.79"), "notes": None, "created_at": ts, "updated_at": ts,
    })
    store.seed(
        INVOICE_ITEMS,
        {"id": "it-1", "invoice_id": "inv-1", "product_id": "p-1", "description": "Widget",
         "quantity": Decimal("2.00"), "price": Decimal("10.50"), "tax": Decimal("21.00"), "total": Decimal("21.00")},
        {"id": "it-2", "invoice_id": "inv-1", "product_id": "p-2", "description": "Gadget",
         "quantity": Decimal("1.00"), "price": Decimal("99.99"), "tax": Decimal("21.00"), "total": Decimal("99.99")},
    )
    store.seed(ATTENDANCES, {
        "id": "att-1", "user_id": ADMIN_ID, "company_id": "c-1", "date": date(2026, 1, 15),
        "check_in": datetime(2026, 1, 15, 8, 0, 0), "check_out": datetime(2026, 1, 15, 17, 0, 0),
        "hourly_rate": Decimal("12.00"), "notes": None, "created_at": ts,
    })


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 2, 1, 10, 0, 0)


@pytest.fixture
def clock(fixed_now) -> FakeClock:
    return FakeClock(fixed_now)


@pytest.fixture
def store() -> InMemoryEntityStore:
    return InMemoryEntityStore()


@pytest.fixture
def seeded_store(store) -> InMemoryEntityStore:
    seed_sample_tenant(store)
    return store


@pytest.fixture
def snapshots() -> InMemorySnapshots:
    return InMemorySnapshots()


@pytest.fixture
def container(seeded_store, snapshots, clock):
    return wire_services(
        users_repo=InMemoryUsers(make_admin()),
        entity_store=seeded_store,
        snapshots_repo=snapshots,
        clock=clock,
    )
