"""Schema bootstrap and demo data for local installs.

These helpers open their own short-lived connections and never run inside a
unit of work.
"""
from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

import mysql.connector
from werkzeug.security import generate_password_hash

from ..core.enums import Role

logger = logging.getLogger(__name__)

DEMO_ADMIN_EMAIL = "admin@falconerp.com"
DEMO_ADMIN_PASSWORD = "password123"

# schema.sql may pin its own database; the configured one wins.
_DATABASE_DIRECTIVES = re.compile(r"(?im)^\s*(CREATE\s+DATABASE|USE)\b[^;]*;\s*$")
_LINE_COMMENT = re.compile(r"(?m)^\s*--.*$")
_QUOTES = "'\"`"


@dataclass(frozen=True)
class DBTarget:
    host: str
    port: int
    user: str
    password: str
    database: str

    @classmethod
    def from_config(cls, db_config: dict) -> "DBTarget":
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "falcon_erp")),
        )

    def connect(self, *, with_database: bool = True):
        kwargs = dict(host=self.host, port=self.port, user=self.user, password=self.password, use_pure=True)
        if with_database:
            kwargs["database"] = self.database
        return mysql.connector.connect(**kwargs)


def split_statements(sql: str) -> Iterator[str]:
    """Split a schema script on ``;`` outside quotes and backticks."""
    sql = _LINE_COMMENT.sub("", _DATABASE_DIRECTIVES.sub("", sql))

    start = 0
    quote = None
    i = 0
    while i < len(sql):
        ch = sql[i]
        if quote:
            if ch == "\\" and quote != "`":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in _QUOTES:
            quote = ch
        elif ch == ";":
            stmt = sql[start:i].strip()
            if stmt:
                yield stmt
            start = i + 1
        i += 1

    tail = sql[start:].strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    target = DBTarget.from_config(db_config)
    conn = target.connect(with_database=False)
    try:
        conn.cursor().execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)

    schema_path = Path(schema_path)
    conn = DBTarget.from_config(db_config).connect()
    try:
        cur = conn.cursor()
        for stmt in split_statements(schema_path.read_text(encoding="utf-8")):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("Applied schema %s", schema_path.name)


def ensure_demo_data(db_config: dict) -> None:
    """Upsert the default admin account and its company (idempotent)."""

    conn = DBTarget.from_config(db_config).connect()
    try:
        cur = conn.cursor(dictionary=True)

        cur.execute("SELECT id FROM users WHERE email=%s", (DEMO_ADMIN_EMAIL,))
        existing = cur.fetchone()
        if existing:
            admin_id = existing["id"]
        else:
            admin_id = str(uuid.uuid4())
            cur.execute(
                """
                INSERT INTO users (id, email, name, password_hash, role, email_verified)
                VALUES (%s, %s, %s, %s, %s, 1)
                """,
                (
                    admin_id,
                    DEMO_ADMIN_EMAIL,
                    "Administrator",
                    generate_password_hash(DEMO_ADMIN_PASSWORD),
                    Role.ADMIN.value,
                ),
            )
            logger.info("Created demo admin %s", DEMO_ADMIN_EMAIL)

        cur.execute("SELECT id FROM companies WHERE user_id=%s", (admin_id,))
        if not cur.fetchone():
            cur.execute(
                """
                INSERT INTO companies (id, user_id, name, email, currency, primary_color, secondary_color, active)
                VALUES (%s, %s, %s, %s, 'USD', '#0d9488', '#14b8a6', 1)
                """,
                (str(uuid.uuid4()), admin_id, "Default Company", "info@company.com"),
            )
            logger.info("Created default company for %s", DEMO_ADMIN_EMAIL)

        conn.commit()
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    conn = DBTarget.from_config(db_config).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()


def table_counts(db_config: dict, tables: Iterable[str]) -> dict[str, int]:
    conn = DBTarget.from_config(db_config).connect()
    try:
        cur = conn.cursor()
        counts: dict[str, int] = {}
        for table in tables:
            cur.execute(f"SELECT COUNT(*) FROM `{table}`")
            counts[table] = int(cur.fetchone()[0])
        return counts
    finally:
        conn.close()
