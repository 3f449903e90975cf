"""
Unit tests for value helpers.

Verifies:
- Calendar-correct month bounds (leap years, 30/31-day months)
- Amount coercion and money rounding
- Currency validation
- Error payloads returned to callers
"""

from datetime import date
from decimal import Decimal

import pytest

from heraclion_kernel.db.types import (
    InvalidCurrencyError,
    check_magnitude,
    coerce_amount,
    round_money,
    validate_currency,
)
from heraclion_kernel.domain.values import month_bounds
from heraclion_kernel.exceptions import (
    CashMovementNotFoundError,
    FatalStorageError,
    NotFoundError,
    ValidationError,
)


class TestMonthBounds:
    def test_leap_february(self):
        assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_common_february(self):
        assert month_bounds(2023, 2) == (date(2023, 2, 1), date(2023, 2, 28))

    def test_thirty_day_month(self):
        assert month_bounds(2024, 4)[1] == date(2024, 4, 30)

    def test_december(self):
        assert month_bounds(2024, 12) == (date(2024, 12, 1), date(2024, 12, 31))

    @pytest.mark.parametrize("month", [0, 13, -1, True, "2"])
    def test_invalid_month(self, month):
        with pytest.raises(ValueError):
            month_bounds(2024, month)


class TestCoerceAmount:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (12345, Decimal("12345")),
            ("12345", Decimal("12345")),
            (" -20 000,50 ", Decimal("-20000.50")),
            (Decimal("1.005"), Decimal("1.005")),
            (0.1, Decimal("0.1")),
        ],
    )
    def test_accepted(self, value, expected):
        assert coerce_amount(value) == expected

    @pytest.mark.parametrize(
        "value", [None, True, False, "", "   ", "abc", float("inf"), "NaN", [1]]
    )
    def test_rejected(self, value):
        with pytest.raises(ValueError):
            coerce_amount(value)

    def test_round_half_up(self):
        assert round_money(Decimal("1.005")) == Decimal("1.01")
        assert round_money(Decimal("-1.005")) == Decimal("-1.01")

    def test_round_beyond_decimal_precision_is_value_error(self):
        with pytest.raises(ValueError):
            round_money(Decimal("1e30"))

    def test_magnitude_fits_money_column(self):
        largest = Decimal("9999999999999999.99")
        assert check_magnitude(largest) == largest
        with pytest.raises(ValueError):
            check_magnitude(Decimal("10000000000000000"))
        with pytest.raises(ValueError):
            check_magnitude(Decimal("-1e12"), 12)


class TestCurrency:
    def test_normalizes_case(self):
        assert validate_currency("usd") == "USD"

    @pytest.mark.parametrize("code", ["", None, "US", "XXX", 840])
    def test_invalid(self, code):
        with pytest.raises(InvalidCurrencyError):
            validate_currency(code)


class TestErrorPayload:
    def test_validation_error_payload(self):
        error = ValidationError("agent", "a non-empty text is required")
        assert error.to_payload() == {
            "code": "VALIDATION_ERROR",
            "message": "Invalid value for 'agent': a non-empty text is required",
        }

    def test_not_found_hierarchy(self):
        error = CashMovementNotFoundError(7)
        assert isinstance(error, NotFoundError)
        assert error.record_id == 7
        assert "7" in error.message

    def test_storage_error_message_has_no_sql(self):
        error = FatalStorageError("cash.insert", 3)
        assert "SELECT" not in error.message
        assert "INSERT" not in error.message
        assert error.to_payload()["code"] == "FATAL_STORAGE_ERROR"
