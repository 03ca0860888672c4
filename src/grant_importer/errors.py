"""Exceptions raised by the import workflow and repository backends."""

from __future__ import annotations


class GrantImportError(Exception):
    """Base class for all importer errors. The message is user-facing."""


class UploadError(GrantImportError):
    """Raised when an upload is rejected before parsing (category, file type, storage)."""


class ValidationError(GrantImportError):
    """Raised when a parsed CSV is empty or lacks required columns."""


class StagingExpiredError(GrantImportError):
    """Raised when execute runs with nothing staged (expired or never uploaded)."""


class RepositoryError(GrantImportError):
    """Raised by a repository backend when a record cannot be created."""
