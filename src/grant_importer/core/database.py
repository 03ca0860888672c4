"""Database connection and CRUD operations - SQLite backend.

Zero-install database backend using aiosqlite. Auto-creates schema on connect.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any

import aiosqlite

from grant_importer.core.config import Settings
from grant_importer.core.models import Category, GrantRecord, UserRecord
from grant_importer.core.repository import GrantRepository, check_new_grant, check_new_user
from grant_importer.errors import RepositoryError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# SQLite schema (auto-created on first connect)
# ---------------------------------------------------------------------------

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS categories (
    slug                TEXT PRIMARY KEY,
    name                TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS grants (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    grant_number        TEXT NOT NULL UNIQUE,
    organization_name   TEXT NOT NULL,
    city                TEXT NOT NULL DEFAULT '',
    state               TEXT NOT NULL DEFAULT '',
    start_date          TEXT NOT NULL DEFAULT '',
    end_date            TEXT NOT NULL DEFAULT '',
    contact_name        TEXT NOT NULL DEFAULT '',
    contact_email       TEXT NOT NULL DEFAULT '',
    contact_phone       TEXT NOT NULL DEFAULT '',
    contact_phone_extension TEXT,
    category_slug       TEXT REFERENCES categories(slug) ON DELETE SET NULL,
    created_at          TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS users (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    login               TEXT NOT NULL UNIQUE,
    email               TEXT NOT NULL UNIQUE,
    first_name          TEXT NOT NULL DEFAULT '',
    last_name           TEXT NOT NULL DEFAULT '',
    role                TEXT NOT NULL,
    password_hash       TEXT NOT NULL,
    created_at          TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_grants_category ON grants(category_slug);
CREATE INDEX IF NOT EXISTS idx_users_role ON users(role);
CREATE UNIQUE INDEX IF NOT EXISTS idx_users_email_lower ON users(lower(email));
"""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_str() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_dict(row: sqlite3.Row) -> dict[str, Any]:
    """Convert sqlite3.Row to a plain dict."""
    return {k: row[k] for k in row.keys()}


def _row_to_grant(row: sqlite3.Row) -> GrantRecord:
    return GrantRecord(**_row_to_dict(row))


def _row_to_user(row: sqlite3.Row) -> UserRecord:
    return UserRecord(**_row_to_dict(row))


# ---------------------------------------------------------------------------
# Database class
# ---------------------------------------------------------------------------


class Database(GrantRepository):
    """Async SQLite database connection manager and CRUD operations."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()
        self._conn: aiosqlite.Connection | None = None

    def _resolve_path(self) -> str:
        url = self.settings.database_url
        if url.startswith("sqlite:///"):
            return url[len("sqlite:///"):]
        if url.startswith("sqlite://"):
            return url[len("sqlite://"):]
        return url

    async def connect(self) -> None:
        path = self._resolve_path()
        self._conn = await aiosqlite.connect(path)
        self._conn.row_factory = sqlite3.Row
        await self._conn.execute("PRAGMA journal_mode=WAL")
        await self._conn.execute("PRAGMA foreign_keys=ON")
        await self._init_schema()

    async def _init_schema(self) -> None:
        """Auto-create tables if they don't exist."""
        await self.conn.executescript(SCHEMA_SQL)
        await self.conn.commit()

    async def close(self) -> None:
        if self._conn:
            await self._conn.close()
            self._conn = None

    async def _rollback(self) -> None:
        try:
            await self.conn.rollback()
        except aiosqlite.Error:
            logger.warning("Rollback failed", exc_info=True)

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._conn

    # -----------------------------------------------------------------------
    # Grants
    # -----------------------------------------------------------------------

    async def get_grant_by_number(self, grant_number: str) -> GrantRecord | None:
        cursor = await self.conn.execute(
            "SELECT * FROM grants WHERE grant_number = ? LIMIT 1", (grant_number,)
        )
        row = await cursor.fetchone()
        return _row_to_grant(row) if row else None

    async def create_grant(self, grant: GrantRecord) -> GrantRecord:
        check_new_grant(grant)
        try:
            cursor = await self.conn.execute(
                """
                INSERT INTO grants (
                    grant_number, organization_name, city, state,
                    start_date, end_date, contact_name, contact_email,
                    contact_phone, contact_phone_extension, category_slug,
                    created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    grant.grant_number, grant.organization_name,
                    grant.city, grant.state, grant.start_date, grant.end_date,
                    grant.contact_name, grant.contact_email, grant.contact_phone,
                    grant.contact_phone_extension, grant.category_slug,
                    _now_str(),
                ),
            )
            await self.conn.commit()
            cursor = await self.conn.execute(
                "SELECT * FROM grants WHERE id = ?", (cursor.lastrowid,)
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            await self._rollback()
            raise RepositoryError(str(e)) from e
        if row is None:
            raise RepositoryError(f"Grant {grant.grant_number} was not stored.")
        return _row_to_grant(row)

    async def count_grants(self) -> int:
        cursor = await self.conn.execute("SELECT COUNT(*) FROM grants")
        row = await cursor.fetchone()
        return row[0] if row else 0

    # -----------------------------------------------------------------------
    # Users
    # -----------------------------------------------------------------------

    async def get_user_by_email(self, email: str) -> UserRecord | None:
        cursor = await self.conn.execute(
            "SELECT * FROM users WHERE lower(email) = lower(?)", (email,)
        )
        row = await cursor.fetchone()
        return _row_to_user(row) if row else None

    async def create_user(
        self, user: UserRecord, send_notification: bool = True
    ) -> UserRecord:
        """Insert a user. This backend has no mailer, so notifications never go out."""
        check_new_user(user)
        try:
            cursor = await self.conn.execute(
                """
                INSERT INTO users (
                    login, email, first_name, last_name, role,
                    password_hash, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user.login, user.email, user.first_name, user.last_name,
                    user.role, user.password_hash, _now_str(),
                ),
            )
            await self.conn.commit()
            cursor = await self.conn.execute(
                "SELECT * FROM users WHERE id = ?", (cursor.lastrowid,)
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            await self._rollback()
            raise RepositoryError(str(e)) from e
        if row is None:
            raise RepositoryError(f"User {user.email} was not stored.")
        return _row_to_user(row)

    async def count_users(self) -> int:
        cursor = await self.conn.execute("SELECT COUNT(*) FROM users")
        row = await cursor.fetchone()
        return row[0] if row else 0

    # -----------------------------------------------------------------------
    # Categories
    # -----------------------------------------------------------------------

    async def get_category(self, slug: str) -> Category | None:
        cursor = await self.conn.execute(
            "SELECT slug, name FROM categories WHERE slug = ?", (slug,)
        )
        row = await cursor.fetchone()
        return Category(**_row_to_dict(row)) if row else None

    async def list_categories(self) -> list[Category]:
        cursor = await self.conn.execute("SELECT slug, name FROM categories ORDER BY name")
        rows = await cursor.fetchall()
        return [Category(**_row_to_dict(r)) for r in rows]

    async def ensure_categories(self, categories: list[Category]) -> int:
        inserted = 0
        for category in categories:
            cursor = await self.conn.execute(
                "INSERT OR IGNORE INTO categories (slug, name) VALUES (?, ?)",
                (category.slug, category.name),
            )
            inserted += cursor.rowcount
        await self.conn.commit()
        return inserted
