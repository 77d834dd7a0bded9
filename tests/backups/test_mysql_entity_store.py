from __future__ import annotations

import mysql.connector
import pytest

from src.falcon_erp.falcon_erp.backups.entities import ATTENDANCES, PRODUCTS
from src.falcon_erp.falcon_erp.backups.mysql_entity_store import MySQLEntityStore
from src.falcon_erp.falcon_erp.core.exceptions import RestoreInProgressError, StoreFailure
from src.falcon_erp.falcon_erp.database.connection import DBConfig, DatabaseConnection


class FakeCursor:
    def __init__(self, conn):
        self._conn = conn
        self._result = None
        self.rowcount = 0

    def execute(self, sql, params=None):
        self._conn.events.append((self._conn.label, sql, params))
        if sql.startswith("SELECT GET_LOCK"):
            self._result = (self._conn.lock_result,)
        elif sql.startswith("SELECT RELEASE_LOCK"):
            self._result = (1,)
        elif sql.startswith("DELETE"):
            self.rowcount = 3
        elif sql.startswith("INSERT") and params and params[0] in self._conn.fail_ids:
            raise mysql.connector.Error(msg=f"Duplicate entry '{params[0]}'")

    def fetchone(self):
        return self._result

    def fetchall(self):
        return []

    def close(self):
        pass


class FakeConnection:
    def __init__(self, label, events, *, lock_result=1, fail_ids=()):
        self.label = label
        self.events = events
        self.lock_result = lock_result
        self.fail_ids = set(fail_ids)
        self.closed = False

    def cursor(self, dictionary=False):
        return FakeCursor(self)

    def start_transaction(self):
        self.events.append((self.label, "BEGIN", None))

    def commit(self):
        self.events.append((self.label, "COMMIT", None))

    def rollback(self):
        self.events.append((self.label, "ROLLBACK", None))

    def close(self):
        self.closed = True


class FakeFactory(DatabaseConnection):
    def __init__(self, *, lock_result=1, fail_ids=()):
        super().__init__(DBConfig(host="h", port=3306, user="u", password="p", database="falcon"))
        self.events: list[tuple] = []
        self.opened: list[FakeConnection] = []
        self._lock_result = lock_result
        self._fail_ids = fail_ids

    def connect(self):
        conn = FakeConnection(
            f"conn{len(self.opened)}", self.events, lock_result=self._lock_result, fail_ids=self._fail_ids
        )
        self.opened.append(conn)
        return conn

    def statements(self):
        return [sql for _, sql, _ in self.events]


def test_insert_uses_only_known_columns_in_registry_order():
    factory = FakeFactory()
    store = MySQLEntityStore(factory)

    store.insert_with_identity(PRODUCTS, {"name": "Widget", "id": "p-1", "bogus": "x"})

    _, sql, params = factory.events[0]
    assert sql == "INSERT INTO `products` (`id`, `name`) VALUES (%s, %s)"
    assert params == ("p-1", "Widget")


def test_insert_without_id_is_rejected_before_sql():
    factory = FakeFactory()

    with pytest.raises(StoreFailure):
        MySQLEntityStore(factory).insert_with_identity(PRODUCTS, {"name": "Widget"})

    assert factory.events == []


def test_delete_all_reports_rowcount():
    factory = FakeFactory()

    assert MySQLEntityStore(factory).delete_all(ATTENDANCES) == 3
    assert factory.statements()[0] == "DELETE FROM `attendances`"


def test_savepoint_releases_on_success():
    factory = FakeFactory()
    store = MySQLEntityStore(factory)

    with store.unit_of_work():
        with store.savepoint():
            store.insert_with_identity(ATTENDANCES, {"id": "att-1"})

    assert factory.statements() == [
        "BEGIN",
        "SAVEPOINT restore_row",
        "INSERT INTO `attendances` (`id`) VALUES (%s)",
        "RELEASE SAVEPOINT restore_row",
        "COMMIT",
    ]


def test_savepoint_rolls_back_failed_row_and_reraises():
    factory = FakeFactory(fail_ids={"att-2"})
    store = MySQLEntityStore(factory)

    with store.unit_of_work():
        with pytest.raises(StoreFailure):
            with store.savepoint():
                store.insert_with_identity(ATTENDANCES, {"id": "att-2"})
        store.insert_with_identity(ATTENDANCES, {"id": "att-3"})

    assert factory.statements() == [
        "BEGIN",
        "SAVEPOINT restore_row",
        "INSERT INTO `attendances` (`id`) VALUES (%s)",
        "ROLLBACK TO SAVEPOINT restore_row",
        "INSERT INTO `attendances` (`id`) VALUES (%s)",
        "COMMIT",
    ]
    assert len(factory.opened) == 1


@pytest.mark.parametrize("lock_result", [0, None])
def test_restore_lock_not_granted_raises_in_progress(lock_result):
    factory = FakeFactory(lock_result=lock_result)
    entered = []

    with pytest.raises(RestoreInProgressError):
        with MySQLEntityStore(factory).exclusive_restore(timeout=1):
            entered.append(True)

    assert entered == []
    assert "SELECT RELEASE_LOCK(%s)" not in factory.statements()
    assert factory.opened[0].closed


def test_restore_lock_is_released_after_commit_on_its_own_connection():
    factory = FakeFactory()
    store = MySQLEntityStore(factory)

    with store.exclusive_restore(timeout=5):
        with store.unit_of_work():
            store.delete_all(PRODUCTS)

    lock_conn, work_conn = factory.opened
    assert factory.events == [
        (lock_conn.label, "SELECT GET_LOCK(%s, %s)", ("falcon_erp.restore:falcon", 5)),
        (work_conn.label, "BEGIN", None),
        (work_conn.label, "DELETE FROM `products`", None),
        (work_conn.label, "COMMIT", None),
        (lock_conn.label, "SELECT RELEASE_LOCK(%s)", ("falcon_erp.restore:falcon",)),
    ]
    assert lock_conn.closed and work_conn.closed


def test_restore_lock_is_released_when_restore_fails():
    factory = FakeFactory()
    store = MySQLEntityStore(factory)

    with pytest.raises(StoreFailure):
        with store.exclusive_restore(timeout=5):
            raise StoreFailure("boom", operation="write")

    assert factory.statements()[-1] == "SELECT RELEASE_LOCK(%s)"
    assert factory.opened[0].closed
