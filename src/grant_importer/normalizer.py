"""Row normalization - dates, phone numbers, names, and CSV row mapping.

Everything here is pure: no I/O and no exceptions for malformed input.
Values that cannot be normalized are passed through trimmed.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import NamedTuple

from grant_importer.core.models import ParsedGrantRow, RawRow


EXTENSION_RE = re.compile(r"^(.+?)\s+Ext:?\s*(.+)$", re.IGNORECASE)
NON_DIGIT_RE = re.compile(r"\D")


class PhoneNumber(NamedTuple):
    phone: str
    extension: str = ""


class PersonName(NamedTuple):
    first: str
    last: str = ""


def convert_date(value: str) -> str:
    """Convert ``M/D/YYYY`` to ``YYYY-MM-DD``; anything else comes back trimmed."""
    value = value.strip()
    if not value:
        return ""
    try:
        return datetime.strptime(value, "%m/%d/%Y").strftime("%Y-%m-%d")
    except ValueError:
        return value


def parse_phone(value: str) -> PhoneNumber:
    """Split off an ``Ext`` suffix and format 10-digit numbers as ``(AAA) BBB-CCCC``."""
    value = value.strip()
    extension = ""

    match = EXTENSION_RE.match(value)
    if match:
        value = match.group(1).strip()
        extension = match.group(2).strip()

    digits = NON_DIGIT_RE.sub("", value)
    if len(digits) == 10:
        return PhoneNumber(f"({digits[:3]}) {digits[3:6]}-{digits[6:]}", extension)
    return PhoneNumber(value, extension)


def split_name(full_name: str) -> PersonName:
    """Split a full name; middle names and initials stay with the first name."""
    parts = full_name.strip().split(" ")
    if len(parts) == 1:
        return PersonName(parts[0])
    if len(parts) == 2:
        return PersonName(parts[0], parts[1])
    return PersonName(" ".join(parts[:-1]), parts[-1])


def login_from_email(email: str) -> str:
    """The part of an email address before ``@``; empty if there is no ``@``."""
    login, sep, _ = email.partition("@")
    return login if sep else ""


def parse_row(row: RawRow, category_slug: str) -> ParsedGrantRow:
    """Map a raw CSV row (validated headers) to a ParsedGrantRow."""

    def cell(column: str) -> str:
        return (row.get(column) or "").strip()

    phone = parse_phone(cell("Project Director - Phone"))
    return ParsedGrantRow(
        organization_name=cell("Organization Name"),
        grant_number=cell("Grant Number"),
        city=cell("City"),
        state=cell("State"),
        start_date=convert_date(cell("Current Project Period Start Date")),
        end_date=convert_date(cell("Current Project Period End Date")),
        contact_name=cell("Project Director - Name"),
        contact_email=cell("Project Director - Email"),
        contact_phone=phone.phone,
        contact_phone_extension=phone.extension,
        category_slug=category_slug,
    )
