"""Database connection and CRUD operations - PostgreSQL backend (asyncpg).

Production database backend using asyncpg connection pool.
"""

from __future__ import annotations

import asyncpg

from grant_importer.core.config import Settings
from grant_importer.core.models import Category, GrantRecord, UserRecord
from grant_importer.core.repository import GrantRepository, check_new_grant, check_new_user
from grant_importer.errors import RepositoryError


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS categories (
    slug                TEXT PRIMARY KEY,
    name                TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS grants (
    id                  BIGSERIAL PRIMARY KEY,
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
    created_at          TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS users (
    id                  BIGSERIAL PRIMARY KEY,
    login               TEXT NOT NULL UNIQUE,
    email               TEXT NOT NULL UNIQUE,
    first_name          TEXT NOT NULL DEFAULT '',
    last_name           TEXT NOT NULL DEFAULT '',
    role                TEXT NOT NULL,
    password_hash       TEXT NOT NULL,
    created_at          TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_grants_category ON grants(category_slug);
CREATE INDEX IF NOT EXISTS idx_users_role ON users(role);
CREATE UNIQUE INDEX IF NOT EXISTS idx_users_email_lower ON users(lower(email));
"""


def _row_to_grant(row: asyncpg.Record) -> GrantRecord:
    return GrantRecord(**dict(row))


def _row_to_user(row: asyncpg.Record) -> UserRecord:
    return UserRecord(**dict(row))


class PostgresDatabase(GrantRepository):
    """Async PostgreSQL database connection manager and CRUD operations."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()
        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        self._pool = await asyncpg.create_pool(
            self.settings.database_url, min_size=1, max_size=5,
        )

    async def init_schema(self) -> None:
        await self.pool.execute(SCHEMA_SQL)

    async def close(self) -> None:
        if self._pool:
            await self._pool.close()
            self._pool = None

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._pool

    # -----------------------------------------------------------------------
    # Grants
    # -----------------------------------------------------------------------

    async def get_grant_by_number(self, grant_number: str) -> GrantRecord | None:
        row = await self.pool.fetchrow(
            "SELECT * FROM grants WHERE grant_number = $1 LIMIT 1", grant_number
        )
        return _row_to_grant(row) if row else None

    async def create_grant(self, grant: GrantRecord) -> GrantRecord:
        check_new_grant(grant)
        try:
            row = await self.pool.fetchrow(
                """
                INSERT INTO grants (
                    grant_number, organization_name, city, state,
                    start_date, end_date, contact_name, contact_email,
                    contact_phone, contact_phone_extension, category_slug
                ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
                RETURNING *
                """,
                grant.grant_number, grant.organization_name,
                grant.city, grant.state, grant.start_date, grant.end_date,
                grant.contact_name, grant.contact_email, grant.contact_phone,
                grant.contact_phone_extension, grant.category_slug,
            )
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            raise RepositoryError(str(e)) from e
        return _row_to_grant(row)

    # -----------------------------------------------------------------------
    # Users
    # -----------------------------------------------------------------------

    async def get_user_by_email(self, email: str) -> UserRecord | None:
        row = await self.pool.fetchrow(
            "SELECT * FROM users WHERE lower(email) = lower($1)", email
        )
        return _row_to_user(row) if row else None

    async def create_user(
        self, user: UserRecord, send_notification: bool = True
    ) -> UserRecord:
        """Insert a user. This backend has no mailer, so notifications never go out."""
        check_new_user(user)
        try:
            row = await self.pool.fetchrow(
                """
                INSERT INTO users (
                    login, email, first_name, last_name, role, password_hash
                ) VALUES ($1, $2, $3, $4, $5, $6)
                RETURNING *
                """,
                user.login, user.email, user.first_name, user.last_name,
                user.role, user.password_hash,
            )
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            raise RepositoryError(str(e)) from e
        return _row_to_user(row)

    # -----------------------------------------------------------------------
    # Categories
    # -----------------------------------------------------------------------

    async def get_category(self, slug: str) -> Category | None:
        row = await self.pool.fetchrow(
            "SELECT slug, name FROM categories WHERE slug = $1", slug
        )
        return Category(**dict(row)) if row else None

    async def list_categories(self) -> list[Category]:
        rows = await self.pool.fetch("SELECT slug, name FROM categories ORDER BY name")
        return [Category(**dict(r)) for r in rows]

    async def ensure_categories(self, categories: list[Category]) -> int:
        inserted = 0
        async with self.pool.acquire() as conn:
            for category in categories:
                result = await conn.execute(
                    """
                    INSERT INTO categories (slug, name) VALUES ($1, $2)
                    ON CONFLICT (slug) DO NOTHING
                    """,
                    category.slug, category.name,
                )
                if result == "INSERT 0 1":
                    inserted += 1
        return inserted
