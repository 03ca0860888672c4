"""Tests for the expiring staging store."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from grant_importer.staging import ALL_SLOTS, BATCH, RESULTS, StagingStore


class FakeClock:
    def __init__(self):
        self.now = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class TestStagingStore:
    def setup_method(self):
        self.clock = FakeClock()
        self.store = StagingStore(ttl_seconds=3600, clock=self.clock)

    def test_set_get(self):
        self.store.set(BATCH, "rows")
        assert self.store.get(BATCH) == "rows"
        assert BATCH in self.store

    def test_missing(self):
        assert self.store.get(RESULTS) is None
        assert RESULTS not in self.store

    def test_expires_after_one_hour(self):
        self.store.set(BATCH, "rows")
        self.clock.advance(minutes=59)
        assert self.store.get(BATCH) == "rows"
        self.clock.advance(minutes=1)
        assert self.store.get(BATCH) is None

    def test_rewrite_extends_expiry(self):
        self.store.set(BATCH, "old")
        self.clock.advance(minutes=50)
        self.store.set(BATCH, "new")
        self.clock.advance(minutes=50)
        assert self.store.get(BATCH) == "new"
        assert self.store.expires_at(BATCH) == self.clock.now + timedelta(minutes=10)

    def test_delete_and_clear(self):
        for slot in ALL_SLOTS:
            self.store.set(slot, slot)
        self.store.delete(BATCH)
        assert self.store.get(BATCH) is None
        assert self.store.get(RESULTS) == RESULTS
        self.store.clear()
        assert all(self.store.get(slot) is None for slot in ALL_SLOTS)

    def test_delete_missing_is_noop(self):
        self.store.delete(BATCH)
        self.store.clear()
