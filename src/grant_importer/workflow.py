"""Upload -> review -> execute workflow on top of the import engine.

Each step takes the caller's StagingStore explicitly. User-facing failures
are raised as UploadError, ValidationError or StagingExpiredError; row-level
failures never raise and end up in the ImportSummary instead.
"""

from __future__ import annotations

import logging
import time
import uuid
from pathlib import Path

from grant_importer import staging as slots
from grant_importer.core.config import Settings
from grant_importer.core.models import (
    ImportBatch,
    ImportLimit,
    ImportSummary,
    ParsedGrantRow,
    UploadResult,
)
from grant_importer.core.repository import GrantRepository
from grant_importer.csv_parser import CsvParser, validate_columns
from grant_importer.errors import StagingExpiredError, UploadError
from grant_importer.importer import ImportEngine
from grant_importer.normalizer import parse_row
from grant_importer.staging import StagingStore

logger = logging.getLogger(__name__)


class ImportWorkflow:
    def __init__(self, repository: GrantRepository, settings: Settings | None = None):
        self.repository = repository
        self.settings = settings or Settings()
        self.engine = ImportEngine(repository, self.settings)

    # -----------------------------------------------------------------------
    # Step 1: upload
    # -----------------------------------------------------------------------

    def upload(
        self,
        staging: StagingStore,
        filename: str,
        content: bytes,
        category_slug: str,
    ) -> UploadResult:
        """Store, parse and validate an uploaded CSV, then stage it.

        Nothing is staged unless every check passes.
        """
        category_slug = (category_slug or "").strip()
        if not category_slug:
            raise UploadError("Please select a Group Program.")
        if Path(filename or "").suffix.lower() != ".csv":
            raise UploadError("Please upload a CSV file.")

        stored = self._store_upload(content)

        parser = CsvParser()
        rows = parser.parse_file(stored)
        validate_columns(rows)

        batch = ImportBatch(
            filename=stored.name,
            category_slug=category_slug,
            rows=rows,
            malformed_lines=parser.malformed_lines,
        )
        staging.set(slots.FILENAME, batch.filename)
        staging.set(slots.BATCH, batch)
        staging.set(slots.CATEGORY, category_slug)

        message = (
            f"CSV file uploaded successfully with {batch.row_count} row(s). "
            "Please review the mapping below."
        )
        if batch.malformed_lines:
            message += f" {len(batch.malformed_lines)} malformed row(s) were skipped."
        logger.info(
            "Staged %s: %d row(s), %d malformed, category=%s",
            batch.filename, batch.row_count, len(batch.malformed_lines), category_slug,
        )
        return UploadResult(
            message=message,
            filename=batch.filename,
            row_count=batch.row_count,
            malformed_lines=batch.malformed_lines,
        )

    def _store_upload(self, content: bytes) -> Path:
        upload_dir = Path(self.settings.upload_dir)
        name = f"grant_import_{int(time.time())}_{uuid.uuid4().hex}.csv"
        destination = upload_dir / name
        try:
            upload_dir.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(content)
        except OSError as e:
            logger.error("Could not store upload at %s: %s", destination, e)
            raise UploadError("Failed to upload file.") from e
        return destination

    # -----------------------------------------------------------------------
    # Step 2: review
    # -----------------------------------------------------------------------

    def staged_batch(self, staging: StagingStore) -> ImportBatch | None:
        return staging.get(slots.BATCH)

    def preview(self, staging: StagingStore, count: int | None = None) -> list[ParsedGrantRow]:
        batch = self.staged_batch(staging)
        if batch is None:
            return []
        count = self.settings.preview_rows if count is None else count
        return [parse_row(row, batch.category_slug) for row in batch.rows[:count]]

    # -----------------------------------------------------------------------
    # Step 3: execute
    # -----------------------------------------------------------------------

    async def execute(
        self, staging: StagingStore, limit: ImportLimit | str
    ) -> ImportSummary:
        limit = ImportLimit(limit)
        batch = self.staged_batch(staging)
        if batch is None:
            raise StagingExpiredError("CSV data not found. Please upload the file again.")
        category_slug = staging.get(slots.CATEGORY)
        if not category_slug:
            raise StagingExpiredError("Group Program not found. Please upload the file again.")

        if category_slug != batch.category_slug:
            batch = batch.model_copy(update={"category_slug": category_slug})

        summary = await self.engine.execute(batch, limit)
        staging.set(slots.RESULTS, summary)

        if limit is ImportLimit.ALL:
            for slot in (slots.BATCH, slots.FILENAME, slots.CATEGORY):
                staging.delete(slot)
        return summary

    def has_results(self, staging: StagingStore) -> bool:
        return slots.RESULTS in staging

    def pop_results(self, staging: StagingStore) -> ImportSummary | None:
        """Return the last summary and drop it; results are shown once."""
        summary = staging.get(slots.RESULTS)
        staging.delete(slots.RESULTS)
        return summary

    # -----------------------------------------------------------------------
    # Clear
    # -----------------------------------------------------------------------

    def clear(self, staging: StagingStore) -> str:
        """Drop every staging slot. Stored upload files are kept."""
        staging.clear()
        return "Import data cleared. You can start over with a new CSV file."
