"""
Unit tests for payroll value conversion helpers.

Verifies:
- Decimal conversion never goes through binary floats
- Date parsing accepts dates, datetimes and ISO strings
- Calendar dates of aware timestamps are taken in UTC
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from payroll_kernel.domain.values import (
    calendar_date,
    iso_or_none,
    parse_date,
    parse_flag,
    parse_optional_date,
    parse_timestamp,
    to_decimal,
)


class TestToDecimal:
    """Tests for to_decimal."""

    def test_decimal_passthrough(self):
        value = Decimal("12.34")
        assert to_decimal(value) is value

    def test_int(self):
        assert to_decimal(2080) == Decimal("2080")

    def test_float_uses_string_form(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_numeric_string_stripped(self):
        assert to_decimal(" 85000.50 ") == Decimal("85000.50")

    def test_bool_rejected(self):
        with pytest.raises(TypeError):
            to_decimal(True)

    def test_non_numeric_string_rejected(self):
        with pytest.raises(ValueError):
            to_decimal("eighty")

    def test_unsupported_type_rejected(self):
        with pytest.raises(TypeError):
            to_decimal([1])


class TestParseDate:
    """Tests for parse_date and parse_optional_date."""

    def test_date_passthrough(self):
        assert parse_date(date(2024, 1, 15)) == date(2024, 1, 15)

    def test_datetime_truncated(self):
        assert parse_date(datetime(2024, 1, 15, 23, 59)) == date(2024, 1, 15)

    def test_iso_date_string(self):
        assert parse_date("2024-01-15") == date(2024, 1, 15)

    def test_iso_timestamp_string(self):
        assert parse_date("2024-01-15T08:30:00Z") == date(2024, 1, 15)

    def test_garbage_rejected(self):
        with pytest.raises(ValueError):
            parse_date("15/01/2024")

    def test_non_string_rejected(self):
        with pytest.raises(ValueError):
            parse_date(20240115)

    def test_optional_empty_is_none(self):
        assert parse_optional_date(None) is None
        assert parse_optional_date("  ") is None

    def test_optional_parses_value(self):
        assert parse_optional_date("2024-02-29") == date(2024, 2, 29)


class TestTimestamps:
    """Tests for parse_timestamp and calendar_date."""

    def test_z_suffix_accepted(self):
        ts = parse_timestamp("2024-03-04T09:00:00Z")
        assert ts.tzinfo is not None
        assert ts.hour == 9

    def test_calendar_date_normalizes_to_utc(self):
        # 2024-03-04 20:00 at UTC-8 is already 2024-03-05 in UTC
        ts = datetime(2024, 3, 4, 20, 0, tzinfo=timezone(timedelta(hours=-8)))
        assert calendar_date(ts) == date(2024, 3, 5)

    def test_calendar_date_naive(self):
        assert calendar_date(datetime(2024, 3, 4, 23, 59)) == date(2024, 3, 4)

    def test_iso_or_none(self):
        assert iso_or_none(None) is None
        assert iso_or_none(date(2024, 1, 1)) == "2024-01-01"


class TestParseFlag:

    @pytest.mark.parametrize("value", [True, "true", "TRUE", " Yes ", "y", "1", 1])
    def test_true(self, value):
        assert parse_flag(value) is True

    @pytest.mark.parametrize("value", [False, None, "", "false", "No", "0", 0])
    def test_false(self, value):
        assert parse_flag(value) is False

    def test_unknown_text_rejected(self):
        with pytest.raises(ValueError, match="Not a boolean"):
            parse_flag("maybe")
