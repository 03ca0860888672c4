"""Pydantic models for the grant importer."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Iterable

from pydantic import BaseModel, Field


# A raw CSV row: header -> cell value, in header order.
RawRow = dict[str, str]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ImportLimit(str, enum.Enum):
    ONE = "1"
    FIVE = "5"
    ALL = "all"

    def select(self, rows: list[RawRow]) -> list[RawRow]:
        """Return the working subset of ``rows``, original order preserved."""
        if self is ImportLimit.ONE:
            return rows[:1]
        if self is ImportLimit.FIVE:
            return rows[:5]
        return list(rows)


class RowStatus(str, enum.Enum):
    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Parsed input
# ---------------------------------------------------------------------------

class ParsedGrantRow(BaseModel):
    """One CSV row after trimming and normalization."""

    model_config = {"frozen": True}

    organization_name: str
    grant_number: str
    city: str
    state: str
    start_date: str
    end_date: str
    contact_name: str
    contact_email: str
    contact_phone: str
    contact_phone_extension: str = ""
    category_slug: str


class ImportBatch(BaseModel):
    """Rows of one validated upload, staged between upload and execute."""

    filename: str
    category_slug: str
    rows: list[RawRow] = Field(default_factory=list)
    malformed_lines: list[int] = Field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


# ---------------------------------------------------------------------------
# Persisted records
# ---------------------------------------------------------------------------

class Category(BaseModel):
    slug: str
    name: str


class GrantRecord(BaseModel):
    id: int | None = None
    grant_number: str
    organization_name: str
    city: str = ""
    state: str = ""
    start_date: str = ""
    end_date: str = ""
    contact_name: str = ""
    contact_email: str = ""
    contact_phone: str = ""
    contact_phone_extension: str | None = None
    category_slug: str | None = None
    created_at: datetime | None = None


class UserRecord(BaseModel):
    id: int | None = None
    login: str
    email: str
    first_name: str = ""
    last_name: str = ""
    role: str
    password_hash: str = ""
    created_at: datetime | None = None


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class RowOutcome(BaseModel):
    """What happened to a single row during execute."""

    position: int  # 1-based
    grant: RowStatus
    user: RowStatus | None = None  # None when user processing was not attempted
    errors: list[str] = Field(default_factory=list)


class ImportSummary(BaseModel):
    """Counters and row errors of one execute run."""

    grants_created: int = 0
    grants_skipped: int = 0
    users_created: int = 0
    users_skipped: int = 0
    rows_processed: int = 0
    errors: list[str] = Field(default_factory=list)

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[RowOutcome]) -> ImportSummary:
        summary = cls()
        for outcome in outcomes:
            summary.rows_processed += 1
            if outcome.grant == RowStatus.CREATED:
                summary.grants_created += 1
            elif outcome.grant == RowStatus.SKIPPED:
                summary.grants_skipped += 1
            if outcome.user == RowStatus.CREATED:
                summary.users_created += 1
            elif outcome.user == RowStatus.SKIPPED:
                summary.users_skipped += 1
            summary.errors.extend(outcome.errors)
        return summary

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


class UploadResult(BaseModel):
    """Returned by a successful upload step."""

    message: str
    filename: str
    row_count: int
    malformed_lines: list[int] = Field(default_factory=list)
