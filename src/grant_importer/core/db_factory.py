"""Database factory - selects backend based on configuration."""

from __future__ import annotations

from grant_importer.core.config import Settings
from grant_importer.core.repository import GrantRepository


def create_database(settings: Settings | None = None) -> GrantRepository:
    """Return the appropriate database backend.

    - use_sqlite=True uses the aiosqlite backend.
    - Otherwise uses the asyncpg PostgreSQL backend (default for production).
    """
    s = settings or Settings()
    if s.use_sqlite:
        from grant_importer.core.database import Database
        return Database(s)
    else:
        from grant_importer.core.database_pg import PostgresDatabase
        return PostgresDatabase(s)
