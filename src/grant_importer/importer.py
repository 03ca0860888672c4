"""Import engine - maps staged CSV rows to grant and user records."""

from __future__ import annotations

import logging

from grant_importer.core.config import Settings
from grant_importer.core.models import (
    GrantRecord,
    ImportBatch,
    ImportLimit,
    ImportSummary,
    ParsedGrantRow,
    RowOutcome,
    RowStatus,
    UserRecord,
)
from grant_importer.core.passwords import generate_password, hash_password
from grant_importer.core.repository import GrantRepository
from grant_importer.errors import RepositoryError
from grant_importer.normalizer import login_from_email, parse_row, split_name
from grant_importer.roles import map_role

logger = logging.getLogger(__name__)


class ImportEngine:
    """Create grants and their project-director users from an ImportBatch.

    Rows are processed one at a time in upload order. Existing grants (by
    grant number) and users (by email) are skipped, so re-running a batch
    never creates duplicates. A failed row is recorded and the run
    continues with the next one.
    """

    def __init__(self, repository: GrantRepository, settings: Settings | None = None):
        self.repository = repository
        self.settings = settings or Settings()

    async def execute(
        self, batch: ImportBatch, limit: ImportLimit | str = ImportLimit.ALL
    ) -> ImportSummary:
        limit = ImportLimit(limit)
        rows = limit.select(batch.rows)
        role = map_role(batch.category_slug)

        outcomes: list[RowOutcome] = []
        for position, raw in enumerate(rows, start=1):
            parsed = parse_row(raw, batch.category_slug)
            outcome = await self.process_row(parsed, position, role)
            logger.debug(
                "Row %d (%s): grant=%s user=%s",
                position, parsed.grant_number, outcome.grant.value,
                outcome.user.value if outcome.user else "-",
            )
            outcomes.append(outcome)

        summary = ImportSummary.from_outcomes(outcomes)
        logger.info(
            "Import of %s (%s, limit=%s): grants %d created / %d skipped, "
            "users %d created / %d skipped, %d error(s)",
            batch.filename, batch.category_slug, limit.value,
            summary.grants_created, summary.grants_skipped,
            summary.users_created, summary.users_skipped, len(summary.errors),
        )
        return summary

    async def process_row(
        self, row: ParsedGrantRow, position: int, role: str
    ) -> RowOutcome:
        try:
            grant_status = await self._import_grant(row)
        except RepositoryError as e:
            return _grant_failed(position, e)
        except Exception as e:
            logger.exception("Row %d: unexpected error importing grant %s", position, row.grant_number)
            return _grant_failed(position, e)

        try:
            user_status = await self._import_user(row, role)
        except RepositoryError as e:
            return _user_failed(position, grant_status, e)
        except Exception as e:
            logger.exception("Row %d: unexpected error importing user %s", position, row.contact_email)
            return _user_failed(position, grant_status, e)
        return RowOutcome(position=position, grant=grant_status, user=user_status)

    async def _import_grant(self, row: ParsedGrantRow) -> RowStatus:
        if await self.repository.get_grant_by_number(row.grant_number):
            return RowStatus.SKIPPED
        await self._create_grant(row)
        return RowStatus.CREATED

    async def _import_user(self, row: ParsedGrantRow, role: str) -> RowStatus:
        if await self.repository.get_user_by_email(row.contact_email):
            return RowStatus.SKIPPED
        await self._create_user(row, role)
        return RowStatus.CREATED

    async def _create_grant(self, row: ParsedGrantRow) -> GrantRecord:
        category = await self.repository.get_category(row.category_slug)
        if category is None:
            logger.warning(
                "Category '%s' not found; grant %s created without one",
                row.category_slug, row.grant_number,
            )

        return await self.repository.create_grant(
            GrantRecord(
                grant_number=row.grant_number,
                organization_name=row.organization_name,
                city=row.city,
                state=row.state,
                start_date=row.start_date,
                end_date=row.end_date,
                contact_name=row.contact_name,
                contact_email=row.contact_email,
                contact_phone=row.contact_phone,
                contact_phone_extension=row.contact_phone_extension or None,
                category_slug=category.slug if category else None,
            )
        )

    async def _create_user(self, row: ParsedGrantRow, role: str) -> UserRecord:
        name = split_name(row.contact_name)
        password = generate_password(self.settings.password_length)
        return await self.repository.create_user(
            UserRecord(
                login=login_from_email(row.contact_email),
                email=row.contact_email,
                first_name=name.first,
                last_name=name.last,
                role=role,
                password_hash=hash_password(password, self.settings.bcrypt_log_rounds),
            ),
            send_notification=False,
        )


def _grant_failed(position: int, error: Exception) -> RowOutcome:
    # No user for a grant that does not exist
    return RowOutcome(
        position=position,
        grant=RowStatus.FAILED,
        errors=[f"Row {position}: Failed to create grant - {error}"],
    )


def _user_failed(position: int, grant_status: RowStatus, error: Exception) -> RowOutcome:
    return RowOutcome(
        position=position,
        grant=grant_status,
        user=RowStatus.FAILED,
        errors=[f"Row {position}: Failed to create user - {error}"],
    )
