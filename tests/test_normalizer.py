"""
Unit tests for the CellNormalizer.
"""

from __future__ import annotations

import math
from datetime import date, datetime

import pytest

from report_mapper.normalizer import CellNormalizer


@pytest.fixture
def normalizer() -> CellNormalizer:
    return CellNormalizer()


# ======================================================================
# Column names
# ======================================================================

class TestNormalizeColumn:
    def test_lowercase_and_strip(self, normalizer: CellNormalizer) -> None:
        assert normalizer.normalize_column("  Total Amount  ") == "total amount"

    def test_inner_whitespace_kept(self, normalizer: CellNormalizer) -> None:
        assert normalizer.normalize_column("Check  In") == "check  in"

    def test_non_string(self, normalizer: CellNormalizer) -> None:
        assert normalizer.normalize_column(2024) == "2024"


# ======================================================================
# Emptiness
# ======================================================================

class TestEmptiness:
    @pytest.mark.parametrize("value", [None, "", float("nan")])
    def test_empty_values(self, value) -> None:
        assert CellNormalizer.is_empty(value)

    @pytest.mark.parametrize("value", [0, "0", " ", False])
    def test_present_values(self, value) -> None:
        assert not CellNormalizer.is_empty(value)

    def test_nan_is_falsy(self) -> None:
        assert not CellNormalizer.is_truthy(float("nan"))
        assert CellNormalizer.is_truthy("n/a")
        assert not CellNormalizer.is_truthy("")


# ======================================================================
# Amounts
# ======================================================================

class TestParseAmount:
    def test_plain(self, normalizer: CellNormalizer) -> None:
        assert normalizer.parse_amount("100") == 100.0

    def test_currency_symbols_stripped(self, normalizer: CellNormalizer) -> None:
        assert normalizer.parse_amount("$1,234.50") == 1234.5

    def test_dot_thousands_read_as_decimal(self, normalizer: CellNormalizer) -> None:
        # "Rp 1.500" keeps "1.500" which reads as one and a half
        assert normalizer.parse_amount("Rp 1.500") == 1.5

    def test_negative(self, normalizer: CellNormalizer) -> None:
        assert normalizer.parse_amount("-50") == -50.0

    def test_leading_number_only(self, normalizer: CellNormalizer) -> None:
        assert normalizer.parse_amount("1-2") == 1.0

    @pytest.mark.parametrize("value", ["abc", "not-a-number", "", None])
    def test_unreadable_is_zero(self, normalizer: CellNormalizer, value) -> None:
        assert normalizer.parse_amount(value) == 0.0

    def test_numbers_pass_through(self, normalizer: CellNormalizer) -> None:
        assert normalizer.parse_amount(12) == 12.0
        assert normalizer.parse_amount(float("nan")) == 0.0


# ======================================================================
# Strict numbers
# ======================================================================

class TestToNumber:
    def test_decimal(self, normalizer: CellNormalizer) -> None:
        assert normalizer.to_number("12.5") == 12.5

    def test_whitespace_ignored(self, normalizer: CellNormalizer) -> None:
        assert normalizer.to_number(" 7 ") == 7.0

    def test_blank_is_zero(self, normalizer: CellNormalizer) -> None:
        assert normalizer.to_number("   ") == 0.0

    def test_exponent_and_hex(self, normalizer: CellNormalizer) -> None:
        assert normalizer.to_number("1e3") == 1000.0
        assert normalizer.to_number("0x1F") == 31.0

    def test_infinity(self, normalizer: CellNormalizer) -> None:
        assert normalizer.to_number("-Infinity") == -math.inf

    @pytest.mark.parametrize("value", ["1,000", "abc", "Rp 100", "12abc"])
    def test_rejected(self, normalizer: CellNormalizer, value: str) -> None:
        assert normalizer.to_number(value) is None


# ======================================================================
# Dates
# ======================================================================

class TestParseDate:
    def test_iso_string(self, normalizer: CellNormalizer) -> None:
        assert normalizer.parse_date("2024-01-15") == datetime(2024, 1, 15)

    def test_partial_date_uses_fixed_default(self, normalizer: CellNormalizer) -> None:
        assert normalizer.parse_date("March 2024") == datetime(2024, 3, 1)

    def test_timezone_converted_to_utc(self, normalizer: CellNormalizer) -> None:
        parsed = normalizer.parse_date("2024-01-01T10:00:00+02:00")
        assert parsed == datetime(2024, 1, 1, 8, 0)
        assert parsed.tzinfo is None

    def test_offset_out_of_range(self, normalizer: CellNormalizer) -> None:
        assert normalizer.parse_date("2024-01-01T00:00:00+25:00") is None

    def test_date_object(self, normalizer: CellNormalizer) -> None:
        assert normalizer.parse_date(date(2024, 3, 1)) == datetime(2024, 3, 1)

    def test_epoch_milliseconds(self, normalizer: CellNormalizer) -> None:
        assert normalizer.parse_date(86_400_000) == datetime(1970, 1, 2)

    @pytest.mark.parametrize("value", ["not a date", "", None, True, float("nan")])
    def test_unreadable(self, normalizer: CellNormalizer, value) -> None:
        assert normalizer.parse_date(value) is None
