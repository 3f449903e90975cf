"""
Module: heraclion_kernel.db.types
Responsibility: Annotated column type aliases and the money/currency helpers
    shared by models, domain normalization and services.
Architecture position: Kernel > DB.  MUST NOT import from models/, services/,
    selectors/ or domain/.

Invariants enforced:
    - No floats in stored amounts.  Every amount passes through
      ``coerce_amount`` (Decimal, finite) and ``round_money`` (2 places,
      ROUND_HALF_UP) before it reaches a model.
    - Currencies are ISO 4217 codes (``validate_currency``).

Failure modes:
    - ValueError from ``coerce_amount`` on non-numeric, boolean or non-finite
      input, and from ``round_money``/``check_magnitude`` on amounts the
      Numeric columns cannot hold; callers translate it into
      ValidationError with the field name.
    - InvalidCurrencyError (a ValueError) from ``validate_currency``.
"""

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated, Any

from sqlalchemy import Numeric, String

# Signed monetary amount, 2 decimal places
Money = Annotated[Decimal, Numeric(18, 2)]

# Exchange rate (payroll currency -> cash currency)
Rate = Annotated[Decimal, Numeric(18, 6)]

# ISO 4217 currency code
Currency = Annotated[str, String(3)]


MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

# Integer digits that fit Numeric(18, 2) and Numeric(18, 6)
MONEY_INTEGER_DIGITS = 16
RATE_INTEGER_DIGITS = 12


def coerce_amount(value: Any) -> Decimal:
    """
    Coerce a caller-supplied amount into a finite Decimal.

    Accepts int, float, Decimal and numeric strings (surrounding blanks
    ignored, a decimal comma accepted).  Rejects bool, None, empty strings,
    NaN and infinities.

    Raises:
        ValueError: If the value is not a finite number.
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"not a finite number: {value!r}")
        result = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip().replace(" ", "").replace(",", ".")
        if not text:
            raise ValueError("empty amount")
        try:
            result = Decimal(text)
        except InvalidOperation as exc:
            raise ValueError(f"not a number: {value!r}") from exc
    else:
        raise ValueError(f"unsupported amount type: {type(value).__name__}")

    if not result.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return result


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """Round a monetary value; the only sanctioned rounding function."""
    quantize_str = "0." + "0" * decimal_places if decimal_places else "1"
    try:
        return value.quantize(Decimal(quantize_str), rounding=rounding)
    except InvalidOperation as exc:
        raise ValueError(f"amount too large: {value}") from exc


def check_magnitude(value: Decimal, integer_digits: int = MONEY_INTEGER_DIGITS) -> Decimal:
    """Return ``value`` unchanged, or raise ValueError if its column cannot hold it."""
    if abs(value) >= Decimal(10) ** integer_digits:
        raise ValueError(f"out of range: at most {integer_digits} integer digits")
    return value


# Currencies seen in the cash register and payroll of the companies
# served, plus the majors.
ISO_4217_CURRENCIES: set[str] = {
    "USD", "EUR", "GBP", "JPY", "CHF", "CAD", "AUD", "CNY", "ZAR",
    "CDF", "XAF", "XOF", "RWF", "BIF", "UGX", "KES", "TZS", "AOA",
    "ZMW", "NGN", "GHS", "MAD", "TND", "DZD", "EGP", "ETB", "MGA",
}


class InvalidCurrencyError(ValueError):
    """Raised when an invalid ISO 4217 currency code is provided."""

    def __init__(self, currency: Any):
        self.currency = currency
        super().__init__(f"Invalid ISO 4217 currency code: '{currency}'")


def validate_currency(currency: Any) -> str:
    """Return the uppercase currency code, or raise InvalidCurrencyError."""
    if not currency or not isinstance(currency, str):
        raise InvalidCurrencyError(currency)

    normalized = currency.upper().strip()
    if normalized not in ISO_4217_CURRENCIES:
        raise InvalidCurrencyError(currency)
    return normalized
