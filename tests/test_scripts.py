"""Tests for the command-line entry points."""

from __future__ import annotations

import asyncio

from grant_importer.core.database import Database
from grant_importer.scripts.init_db import default_categories, run_init
from grant_importer.scripts.run_import import build_parser, run_import


def count_rows(settings):
    async def _count():
        db = Database(settings)
        await db.connect()
        try:
            return await db.count_grants(), await db.count_users()
        finally:
            await db.close()

    return asyncio.run(_count())


class TestInitDb:
    def test_seeds_categories_once(self, settings):
        assert asyncio.run(run_init(settings)) == 7
        assert asyncio.run(run_init(settings)) == 0

    def test_default_categories(self):
        assert [c.slug for c in default_categories()][:2] == ["bhwet-para", "bhwet-pro"]


class TestRunImport:
    def test_imports_file(self, settings, tmp_path, make_row, csv_bytes, capsys):
        path = tmp_path / "grants.csv"
        path.write_bytes(csv_bytes([make_row(i) for i in range(1, 4)]))
        args = build_parser().parse_args([str(path), "--category", "gpe"])

        assert asyncio.run(run_import(args, settings)) == 0
        out = capsys.readouterr().out
        assert "Grants Created:  3" in out
        assert count_rows(settings) == (3, 3)

    def test_limit(self, settings, tmp_path, make_row, csv_bytes):
        path = tmp_path / "grants.csv"
        path.write_bytes(csv_bytes([make_row(i) for i in range(1, 8)]))
        args = build_parser().parse_args([str(path), "--category", "gpe", "--limit", "5"])
        asyncio.run(run_import(args, settings))
        assert count_rows(settings) == (5, 5)

    def test_validation_error(self, settings, tmp_path, capsys):
        path = tmp_path / "grants.csv"
        path.write_bytes(b"Name\nAcme\n")
        args = build_parser().parse_args([str(path), "--category", "gpe"])
        assert asyncio.run(run_import(args, settings)) == 2
        assert "Missing required columns" in capsys.readouterr().err

    def test_missing_file(self, settings, tmp_path):
        args = build_parser().parse_args([str(tmp_path / "nope.csv"), "--category", "gpe"])
        assert asyncio.run(run_import(args, settings)) == 2
