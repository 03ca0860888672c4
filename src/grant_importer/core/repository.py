"""Repository interface for grant/user persistence, plus an in-memory backend.

The SQLite (``core.database``) and PostgreSQL (``core.database_pg``) backends
implement the same interface. Create operations raise RepositoryError on any
failure so callers only have one exception type to handle.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone

from grant_importer.core.models import Category, GrantRecord, UserRecord
from grant_importer.errors import RepositoryError


def check_new_grant(grant: GrantRecord) -> None:
    """Reject grants no backend can store."""
    if not grant.organization_name:
        raise RepositoryError("Organization name is empty.")
    if not grant.grant_number:
        raise RepositoryError("Grant number is empty.")


def check_new_user(user: UserRecord) -> None:
    """Reject users no backend can store."""
    if not user.login:
        raise RepositoryError("Cannot create a user with an empty login name.")
    if not user.email or "@" not in user.email:
        raise RepositoryError(f"Invalid email address: {user.email!r}")


class GrantRepository(ABC):
    """Async persistence for grants, users and categories."""

    async def connect(self) -> None:
        """Open connections / create schema. No-op by default."""

    async def close(self) -> None:
        """Release connections. No-op by default."""

    @abstractmethod
    async def get_grant_by_number(self, grant_number: str) -> GrantRecord | None:
        ...

    @abstractmethod
    async def create_grant(self, grant: GrantRecord) -> GrantRecord:
        ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> UserRecord | None:
        ...

    @abstractmethod
    async def create_user(
        self, user: UserRecord, send_notification: bool = True
    ) -> UserRecord:
        ...

    @abstractmethod
    async def get_category(self, slug: str) -> Category | None:
        ...

    @abstractmethod
    async def list_categories(self) -> list[Category]:
        ...

    @abstractmethod
    async def ensure_categories(self, categories: list[Category]) -> int:
        """Insert missing categories. Returns count inserted."""
        ...


class InMemoryRepository(GrantRepository):
    """Dict-backed repository for tests and dry runs."""

    def __init__(self, categories: list[Category] | None = None):
        self.grants: dict[str, GrantRecord] = {}
        self.users: dict[str, UserRecord] = {}  # keyed by lowercased email
        self.categories: dict[str, Category] = {c.slug: c for c in categories or []}
        self.notifications: list[str] = []
        self._next_id = 1

    def _new_id(self) -> int:
        new_id = self._next_id
        self._next_id += 1
        return new_id

    async def get_grant_by_number(self, grant_number: str) -> GrantRecord | None:
        return self.grants.get(grant_number)

    async def create_grant(self, grant: GrantRecord) -> GrantRecord:
        check_new_grant(grant)
        if grant.grant_number in self.grants:
            raise RepositoryError(f"Grant number {grant.grant_number} already exists.")
        created = grant.model_copy(
            update={"id": self._new_id(), "created_at": datetime.now(timezone.utc)}
        )
        self.grants[created.grant_number] = created
        return created

    async def get_user_by_email(self, email: str) -> UserRecord | None:
        return self.users.get(email.lower())

    async def create_user(
        self, user: UserRecord, send_notification: bool = True
    ) -> UserRecord:
        check_new_user(user)
        if user.email.lower() in self.users:
            raise RepositoryError("Sorry, that email address is already used!")
        if any(u.login == user.login for u in self.users.values()):
            raise RepositoryError("Sorry, that username already exists!")
        created = user.model_copy(
            update={"id": self._new_id(), "created_at": datetime.now(timezone.utc)}
        )
        self.users[created.email.lower()] = created
        if send_notification:
            self.notifications.append(created.email)
        return created

    async def get_category(self, slug: str) -> Category | None:
        return self.categories.get(slug)

    async def list_categories(self) -> list[Category]:
        return sorted(self.categories.values(), key=lambda c: c.name)

    async def ensure_categories(self, categories: list[Category]) -> int:
        inserted = 0
        for category in categories:
            if category.slug not in self.categories:
                self.categories[category.slug] = category
                inserted += 1
        return inserted
