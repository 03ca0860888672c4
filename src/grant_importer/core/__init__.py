"""Core modules: models, repository backends, config."""

from grant_importer.core.config import Settings
from grant_importer.core.models import (
    Category,
    GrantRecord,
    ImportBatch,
    ImportLimit,
    ImportSummary,
    ParsedGrantRow,
    UserRecord,
)

__all__ = [
    "Settings",
    "Category",
    "GrantRecord",
    "UserRecord",
    "ImportBatch",
    "ImportLimit",
    "ImportSummary",
    "ParsedGrantRow",
]
