"""
Unit tests for document numbering (heraclion_kernel/domain/numbering.py).

Verifies:
- PREFIX-YEAR-COUNTER generation and zero padding
- Parsing and rejection of malformed numbers
- Year window and counter arithmetic
- Round trip parse(generate(...)) for any valid input
"""

from datetime import datetime, timezone

import pytest
from hypothesis import given
from hypothesis import strategies as st

from heraclion_kernel.domain.clock import DeterministicClock
from heraclion_kernel.domain.numbering import (
    DocumentNumber,
    format_counter,
    generate,
    generate_sequential,
    is_valid_document_number,
    is_valid_year,
    next_counter,
    parse,
)
from heraclion_kernel.exceptions import (
    DocumentNumberParseError,
    InputError,
    InvalidArgumentError,
    ParseError,
)

CLOCK = DeterministicClock(datetime(2025, 10, 10, 9, 0, 0, tzinfo=timezone.utc))


class TestGenerate:
    def test_pads_counter_to_three_digits(self):
        assert generate("FAC", 2024, 1, clock=CLOCK) == "FAC-2024-001"

    def test_two_digit_counter(self):
        assert generate("PRO", 2024, 42, clock=CLOCK) == "PRO-2024-042"

    def test_wide_counter_is_not_truncated(self):
        assert generate("FAC", 2024, 9999, clock=CLOCK) == "FAC-2024-9999"

    def test_counter_zero(self):
        assert generate("FAC", 2024, 0, clock=CLOCK) == "FAC-2024-000"

    def test_custom_width(self):
        assert generate("FAC", 2024, 7, width=5, clock=CLOCK) == "FAC-2024-00007"

    @pytest.mark.parametrize("prefix", ["", None, "FA-C", "FAC ", "FAÇ", 12])
    def test_invalid_prefix_rejected(self, prefix):
        with pytest.raises(InvalidArgumentError) as exc_info:
            generate(prefix, 2024, 1, clock=CLOCK)
        assert exc_info.value.argument == "prefix"

    @pytest.mark.parametrize("year", [1900, 2100, "2024", None, True])
    def test_invalid_year_rejected(self, year):
        with pytest.raises(InvalidArgumentError) as exc_info:
            generate("FAC", year, 1, clock=CLOCK)
        assert exc_info.value.argument == "year"

    def test_negative_counter_rejected(self):
        with pytest.raises(InvalidArgumentError):
            generate("FAC", 2024, -1, clock=CLOCK)

    def test_invalid_argument_is_an_input_error(self):
        with pytest.raises(InputError):
            generate("", 2024, 1, clock=CLOCK)


class TestParse:
    def test_parses_parts(self):
        number = parse("FAC-2024-001")
        assert number == DocumentNumber(prefix="FAC", year=2024, counter=1)

    def test_single_digit_counter(self):
        assert parse("A-2020-1") == DocumentNumber("A", 2020, 1)

    def test_long_prefix_and_counter(self):
        assert parse("TRANSPORT-2024-9999") == DocumentNumber("TRANSPORT", 2024, 9999)

    def test_does_not_check_year_window(self):
        """Archived numbers keep parsing whatever the current year."""
        assert parse("FAC-1990-012").year == 1990

    @pytest.mark.parametrize(
        "text",
        ["INVALID", "FAC-2024", "2024-001", "FAC-INVALID-001", "", "FAC-24-001",
         "FAC-2024-", "-2024-001", "FAC-2024-001-X", " FAC-2024-001", None, 42],
    )
    def test_malformed_rejected(self, text):
        with pytest.raises(DocumentNumberParseError):
            parse(text)

    def test_parse_error_alias(self):
        with pytest.raises(ParseError):
            parse("INVALID")

    def test_classmethod_and_str(self):
        number = DocumentNumber.parse("PRO-2024-042")
        assert str(number) == "PRO-2024-042"

    def test_is_valid_document_number_never_raises(self):
        assert is_valid_document_number("FAC-2024-001") is True
        assert is_valid_document_number("FAC-2024") is False
        assert is_valid_document_number(None) is False


class TestFormatCounter:
    def test_zero(self):
        assert format_counter(0) == "000"

    def test_one(self):
        assert format_counter(1) == "001"

    def test_one_thousand(self):
        assert format_counter(1000) == "1000"

    def test_custom_width(self):
        assert format_counter(1, 5) == "00001"

    def test_width_smaller_than_value(self):
        assert format_counter(123, 2) == "123"

    def test_negative_rejected(self):
        with pytest.raises(InvalidArgumentError):
            format_counter(-1)

    def test_non_integer_rejected(self):
        with pytest.raises(InvalidArgumentError):
            format_counter("1")


class TestIsValidYear:
    def test_current_year(self):
        assert is_valid_year(2025, clock=CLOCK) is True

    def test_ten_years_ago(self):
        assert is_valid_year(2015, clock=CLOCK) is True

    def test_next_year(self):
        assert is_valid_year(2026, clock=CLOCK) is True

    def test_window_edges(self):
        assert is_valid_year(2005, clock=CLOCK) is True
        assert is_valid_year(2004, clock=CLOCK) is False
        assert is_valid_year(2030, clock=CLOCK) is True
        assert is_valid_year(2031, clock=CLOCK) is False

    @pytest.mark.parametrize("year", [1900, 2100, "2024", None, True, 2024.0])
    def test_rejected(self, year):
        assert is_valid_year(year, clock=CLOCK) is False

    def test_custom_window(self):
        assert is_valid_year(2023, clock=CLOCK, years_back=1) is False


class TestNextCounter:
    def test_increments(self):
        assert next_counter(42) == 43

    def test_first_counter(self):
        assert next_counter(0) == 1

    @pytest.mark.parametrize("value", [-1, None, "4", True])
    def test_invalid_rejected(self, value):
        with pytest.raises(InvalidArgumentError):
            next_counter(value)


class TestGenerateSequential:
    def test_five_from_one(self):
        assert generate_sequential("FAC", 2024, 1, 5, clock=CLOCK) == [
            "FAC-2024-001",
            "FAC-2024-002",
            "FAC-2024-003",
            "FAC-2024-004",
            "FAC-2024-005",
        ]

    def test_from_one_hundred(self):
        assert generate_sequential("FAC", 2024, 100, 3, clock=CLOCK) == [
            "FAC-2024-100",
            "FAC-2024-101",
            "FAC-2024-102",
        ]

    def test_zero_count(self):
        assert generate_sequential("FAC", 2024, 1, 0, clock=CLOCK) == []


PREFIXES = st.text(
    alphabet="ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789",
    min_size=1,
    max_size=12,
)


class TestRoundTrip:
    @given(
        prefix=PREFIXES,
        year=st.integers(min_value=2005, max_value=2030),
        counter=st.integers(min_value=1, max_value=9999),
    )
    def test_parse_inverts_generate(self, prefix, year, counter):
        number = generate(prefix, year, counter, clock=CLOCK)
        assert parse(number) == DocumentNumber(prefix, year, counter)

    @given(counter=st.integers(min_value=0, max_value=10**6))
    def test_counter_segment_has_at_least_three_digits(self, counter):
        segment = generate("FAC", 2024, counter, clock=CLOCK).rsplit("-", 1)[1]
        assert len(segment) >= 3
        assert int(segment) == counter
