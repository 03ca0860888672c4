"""Initialize the grant database: create schema and seed the known categories."""

from __future__ import annotations

import asyncio

from grant_importer.core.config import Settings
from grant_importer.core.database_pg import PostgresDatabase
from grant_importer.core.db_factory import create_database
from grant_importer.core.models import Category
from grant_importer.roles import ROLE_MAP


def default_categories() -> list[Category]:
    """One category per slug in the role map, named after the slug."""
    return [Category(slug=slug, name=slug.upper()) for slug in ROLE_MAP]


async def run_init(settings: Settings | None = None) -> int:
    settings = settings or Settings()
    db = create_database(settings)
    await db.connect()  # SQLite creates its schema here
    try:
        if isinstance(db, PostgresDatabase):
            await db.init_schema()
        inserted = await db.ensure_categories(default_categories())
        print(f"Schema ready at {settings.database_url.split('@')[-1]}")
        print(f"Categories inserted: {inserted}")
        return inserted
    finally:
        await db.close()


def main() -> None:
    asyncio.run(run_init())


if __name__ == "__main__":
    main()
