"""CSV parsing - header detection, BOM stripping, row-width validation."""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path

from grant_importer.core.models import RawRow
from grant_importer.errors import ValidationError

logger = logging.getLogger(__name__)


REQUIRED_COLUMNS = [
    "Organization Name",
    "Grant Number",
    "City",
    "State",
    "Current Project Period Start Date",
    "Current Project Period End Date",
    "Project Director - Name",
    "Project Director - Email",
    "Project Director - Phone",
]

EMPTY_CSV_MESSAGE = (
    "No valid data found in CSV file. Please ensure the file has a header row "
    "and at least one data row, and that all rows have the same number of columns."
)

BOM = "\ufeff"


class CsvParser:
    """Turn uploaded CSV bytes into uniform-width rows keyed by header.

    Lines whose width differs from the header are dropped; their 1-based
    line numbers from the most recent parse are kept in ``malformed_lines``.
    """

    def __init__(self) -> None:
        self.malformed_lines: list[int] = []

    def parse_file(self, file_path: str | Path) -> list[RawRow]:
        """Parse a CSV file on disk. Unreadable files yield no rows."""
        self.malformed_lines = []
        try:
            data = Path(file_path).read_bytes()
        except OSError as e:
            logger.warning("Could not read CSV file %s: %s", file_path, e)
            return []
        return self.parse(data)

    def parse(self, data: bytes) -> list[RawRow]:
        self.malformed_lines = []
        text = data.decode("utf-8-sig", errors="replace")
        reader = csv.reader(io.StringIO(text, newline=""))

        try:
            headers = next(reader)
        except StopIteration:
            return []
        if not headers:
            return []

        headers = [h.strip() for h in headers]
        headers[0] = headers[0].replace(BOM, "").strip()

        rows: list[RawRow] = []
        for cells in reader:
            if not any(cell.strip() for cell in cells):
                continue
            if len(cells) != len(headers):
                self.malformed_lines.append(reader.line_num)
                logger.warning(
                    "Row on line %d has %d columns, expected %d - skipped",
                    reader.line_num, len(cells), len(headers),
                )
                continue
            rows.append(dict(zip(headers, cells)))
        return rows


def parse_csv(data: bytes) -> list[RawRow]:
    """Shortcut for ``CsvParser().parse(data)``."""
    return CsvParser().parse(data)


def missing_columns(rows: list[RawRow]) -> list[str]:
    if not rows:
        return list(REQUIRED_COLUMNS)
    found = set(rows[0])
    return [col for col in REQUIRED_COLUMNS if col not in found]


def validate_columns(rows: list[RawRow]) -> None:
    """Raise ValidationError unless ``rows`` is non-empty and has every required column."""
    if not rows:
        raise ValidationError(EMPTY_CSV_MESSAGE)
    missing = missing_columns(rows)
    if missing:
        found = list(rows[0])
        raise ValidationError(
            f"Missing required columns: {', '.join(missing)}. "
            f"Found columns: {', '.join(found)}"
        )
