"""Shared test fixtures."""

from __future__ import annotations

import csv
import io

import pytest

from grant_importer.core.config import Settings
from grant_importer.core.models import Category, ImportBatch
from grant_importer.core.repository import InMemoryRepository
from grant_importer.csv_parser import REQUIRED_COLUMNS
from grant_importer.roles import ROLE_MAP


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Minimum bcrypt cost so user creation stays fast."""
    monkeypatch.setenv("BCRYPT_LOG_ROUNDS", "4")


@pytest.fixture
def make_row():
    """Factory fixture for raw CSV rows keyed by the required headers."""

    def _make(n: int = 1, overrides: dict[str, str] | None = None) -> dict[str, str]:
        row = {
            "Organization Name": f"Org {n}",
            "Grant Number": f"T{n:04d}",
            "City": "Kansas City",
            "State": "MO",
            "Current Project Period Start Date": "9/1/2023",
            "Current Project Period End Date": "8/31/2027",
            "Project Director - Name": f"Pat Q Director{n}",
            "Project Director - Email": f"pd{n}@example.org",
            "Project Director - Phone": "816-555-0100",
        }
        row.update(overrides or {})
        return row

    return _make


@pytest.fixture
def make_batch(make_row):
    def _make(count: int = 3, category: str = "gpe") -> ImportBatch:
        return ImportBatch(
            filename="grant_import_test.csv",
            category_slug=category,
            rows=[make_row(i) for i in range(1, count + 1)],
        )

    return _make


@pytest.fixture
def csv_bytes():
    """Serialize rows (first row's keys as header) to CSV bytes."""

    def _encode(rows: list[dict[str, str]], header: list[str] | None = None, bom: bool = False) -> bytes:
        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\r\n")
        writer.writerow(header or (list(rows[0]) if rows else REQUIRED_COLUMNS))
        for row in rows:
            writer.writerow(list(row.values()))
        data = buf.getvalue().encode("utf-8")
        return (b"\xef\xbb\xbf" + data) if bom else data

    return _encode


@pytest.fixture
def categories() -> list[Category]:
    return [Category(slug=slug, name=slug.upper()) for slug in ROLE_MAP]


@pytest.fixture
def repo(categories) -> InMemoryRepository:
    return InMemoryRepository(categories)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        use_sqlite=True,
        sqlite_path=str(tmp_path / "grants.db"),
        upload_dir=str(tmp_path / "uploads"),
        bcrypt_log_rounds=4,
    )
