"""Tests for date, phone and name normalization."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from grant_importer.normalizer import (
    PersonName,
    PhoneNumber,
    convert_date,
    login_from_email,
    parse_phone,
    parse_row,
    split_name,
)


class TestConvertDate:
    def test_unpadded(self):
        assert convert_date("3/4/2024") == "2024-03-04"

    def test_padded(self):
        assert convert_date("09/01/2023") == "2023-09-01"

    def test_trims(self):
        assert convert_date("  12/31/2025 ") == "2025-12-31"

    def test_empty(self):
        assert convert_date("") == ""
        assert convert_date("   ") == ""

    @pytest.mark.parametrize("value", ["not-a-date", "2024-03-04", "3/4/24", "2/30/2024", "13/1/2024"])
    def test_unparseable_returned_unchanged(self, value):
        assert convert_date(value) == value

    def test_unparseable_returned_trimmed(self):
        assert convert_date(" TBD ") == "TBD"


class TestParsePhone:
    def test_extension_with_colon(self):
        assert parse_phone("555-123-4567 Ext: 22") == PhoneNumber("(555) 123-4567", "22")

    def test_extension_case_insensitive_no_colon(self):
        assert parse_phone("(555) 123 4567 ext 104") == PhoneNumber("(555) 123-4567", "104")

    def test_ten_digits(self):
        assert parse_phone("5551234567") == PhoneNumber("(555) 123-4567", "")

    def test_dotted(self):
        assert parse_phone(" 555.123.4567 ").phone == "(555) 123-4567"

    def test_nine_digits_unchanged(self):
        assert parse_phone(" 555-123-456 ") == PhoneNumber("555-123-456", "")

    def test_country_code_unchanged(self):
        assert parse_phone("+1 555 123 4567").phone == "+1 555 123 4567"

    def test_extension_kept_when_main_not_ten_digits(self):
        assert parse_phone("123-4567 Ext: 9") == PhoneNumber("123-4567", "9")

    def test_empty(self):
        assert parse_phone("") == PhoneNumber("", "")


class TestSplitName:
    def test_three_tokens(self):
        assert split_name("Mary Jane Watson") == PersonName("Mary Jane", "Watson")

    def test_single(self):
        assert split_name("Cher") == PersonName("Cher", "")

    def test_two(self):
        assert split_name(" Ada Lovelace ") == PersonName("Ada", "Lovelace")

    def test_initials_stay_with_first(self):
        assert split_name("John Q. R. Public") == PersonName("John Q. R.", "Public")

    def test_empty(self):
        assert split_name("") == PersonName("", "")


class TestLoginFromEmail:
    def test_local_part(self):
        assert login_from_email("pat.director@example.org") == "pat.director"

    def test_no_at(self):
        assert login_from_email("not-an-email") == ""


class TestParseRow:
    def test_maps_and_normalizes(self, make_row):
        row = make_row(7, {
            "Organization Name": "  Acme Health ",
            "Project Director - Phone": "816.555.0199 Ext: 12",
            "Current Project Period End Date": "pending",
        })
        parsed = parse_row(row, "istp")
        assert parsed.organization_name == "Acme Health"
        assert parsed.grant_number == "T0007"
        assert parsed.start_date == "2023-09-01"
        assert parsed.end_date == "pending"
        assert parsed.contact_phone == "(816) 555-0199"
        assert parsed.contact_phone_extension == "12"
        assert parsed.category_slug == "istp"

    def test_frozen(self, make_row):
        parsed = parse_row(make_row(1), "gpe")
        with pytest.raises(ValidationError):
            parsed.city = "Elsewhere"
