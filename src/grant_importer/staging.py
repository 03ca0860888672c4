"""Time-bounded staging slots shared by the upload, execute and clear steps.

A StagingStore is created by the caller (the web app keeps one on
``app.state``, the CLI makes one per run) and passed to each workflow step.
Every slot expires ``ttl_seconds`` after it was last written.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

BATCH = "batch"
RESULTS = "results"
FILENAME = "filename"
CATEGORY = "category"

ALL_SLOTS = (BATCH, RESULTS, FILENAME, CATEGORY)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class StagingStore:
    """Key-value slots with a per-slot expiry. Last write wins."""

    def __init__(
        self,
        ttl_seconds: int = 3600,
        clock: Callable[[], datetime] = _now,
    ):
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._slots: dict[str, tuple[Any, datetime]] = {}

    def set(self, slot: str, value: Any) -> None:
        self._slots[slot] = (value, self._clock() + self.ttl)

    def get(self, slot: str) -> Any | None:
        entry = self._slots.get(slot)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._slots[slot]
            return None
        return value

    def expires_at(self, slot: str) -> datetime | None:
        if self.get(slot) is None:
            return None
        return self._slots[slot][1]

    def delete(self, slot: str) -> None:
        self._slots.pop(slot, None)

    def clear(self) -> None:
        self._slots.clear()

    def __contains__(self, slot: str) -> bool:
        return self.get(slot) is not None
