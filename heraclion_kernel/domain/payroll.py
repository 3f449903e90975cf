"""
Payroll -- validation of payroll entries and derivation of their cash mirror.

Kernel > Domain, pure (no I/O).

Every payroll entry is mirrored by exactly one cash register outflow:

    label    = "<label_prefix> <agent>"        ("Salaire Alice")
    category = <category>                      ("Salaire")
    kind     = SORTIE
    amount   = -abs(payroll amount)
    date     = payroll date

``mirror_cash_movement`` is the single definition of that rule; the
payroll service applies it on create and on update.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Mapping

from heraclion_kernel.db.types import (
    RATE_INTEGER_DIGITS,
    InvalidCurrencyError,
    check_magnitude,
    coerce_amount,
    validate_currency,
)
from heraclion_kernel.domain.cash import (
    CashMovementInput,
    parse_amount,
    parse_date,
    parse_text,
    pick_field,
    reject_unknown_fields,
)
from heraclion_kernel.domain.values import CashKind
from heraclion_kernel.exceptions import ValidationError

DEFAULT_LABEL_PREFIX = "Salaire"
DEFAULT_CATEGORY = "Salaire"
DEFAULT_CURRENCY = "USD"

_AMOUNT_KEYS = ("amount", "montant")
_COMMENT_KEYS = ("comment", "commentaire")
_CURRENCY_KEYS = ("currency", "devise")
_RATE_KEYS = ("rate", "taux")
_UPDATABLE_KEYS = frozenset(
    ("date", "agent") + _AMOUNT_KEYS + _COMMENT_KEYS + _CURRENCY_KEYS + _RATE_KEYS
)


@dataclass(frozen=True)
class PayrollInput:
    """Validated payroll entry, ready to persist."""

    date: date
    agent: str
    amount: Decimal
    comment: str = ""
    currency: str = DEFAULT_CURRENCY
    rate: Decimal | None = None


def _parse_currency(value: Any) -> str:
    try:
        return validate_currency(value)
    except InvalidCurrencyError as exc:
        raise ValidationError("currency", str(exc)) from exc


def _parse_rate(value: Any) -> Decimal:
    try:
        rate = check_magnitude(coerce_amount(value), RATE_INTEGER_DIGITS)
    except ValueError as exc:
        raise ValidationError("rate", str(exc)) from exc
    if rate <= 0:
        raise ValidationError("rate", "must be positive")
    return rate


def normalize_payroll_input(
    raw: Mapping[str, Any] | PayrollInput,
    *,
    default_currency: str = DEFAULT_CURRENCY,
) -> PayrollInput:
    """
    Validate a payroll entry.

    Required: ``date``, ``agent`` (non-empty), ``amount``/``montant`` (finite
    number or numeric string).  Optional: ``comment``/``commentaire``,
    ``currency``/``devise``, ``rate``/``taux``.
    """
    if isinstance(raw, PayrollInput):
        return raw

    _, date_value = pick_field(raw, ("date",))
    if date_value is None:
        raise ValidationError("date", "a date is required")

    _, comment = pick_field(raw, _COMMENT_KEYS)
    _, currency = pick_field(raw, _CURRENCY_KEYS)
    _, rate = pick_field(raw, _RATE_KEYS)
    _, amount = pick_field(raw, _AMOUNT_KEYS)

    return PayrollInput(
        date=parse_date(date_value, "date"),
        agent=parse_text(raw.get("agent"), "agent"),
        amount=parse_amount(amount),
        comment=str(comment).strip() if comment is not None else "",
        currency=_parse_currency(currency if currency is not None else default_currency),
        rate=_parse_rate(rate) if rate is not None else None,
    )


def normalize_payroll_changes(raw: Mapping[str, Any]) -> dict[str, Any]:
    """
    Partial payroll update: only fields present in ``raw``.

    Unknown keys are a ValidationError, not silently ignored.
    """
    reject_unknown_fields(raw, _UPDATABLE_KEYS)
    changes: dict[str, Any] = {}
    if "date" in raw:
        changes["date"] = parse_date(raw["date"], "date")
    if "agent" in raw:
        changes["agent"] = parse_text(raw["agent"], "agent")

    present, value = pick_field(raw, _AMOUNT_KEYS)
    if present:
        changes["amount"] = parse_amount(value)
    present, value = pick_field(raw, _COMMENT_KEYS)
    if present:
        changes["comment"] = str(value).strip() if value is not None else ""
    present, value = pick_field(raw, _CURRENCY_KEYS)
    if present:
        changes["currency"] = _parse_currency(value)
    present, value = pick_field(raw, _RATE_KEYS)
    if present:
        changes["rate"] = _parse_rate(value) if value is not None else None
    return changes


def mirror_label(agent: str, label_prefix: str = DEFAULT_LABEL_PREFIX) -> str:
    return f"{label_prefix} {agent}"


def mirror_cash_movement(
    payroll_date: date,
    agent: str,
    amount: Decimal,
    *,
    label_prefix: str = DEFAULT_LABEL_PREFIX,
    category: str = DEFAULT_CATEGORY,
    reference_document: str | None = None,
) -> CashMovementInput:
    """The cash outflow mirroring one payroll entry."""
    return CashMovementInput(
        date_operation=payroll_date,
        label=mirror_label(agent, label_prefix),
        kind=CashKind.SORTIE,
        amount=-abs(amount),
        category=category,
        reference_document=reference_document,
    )


def payroll_reference(payroll_id: int) -> str:
    return f"PAIE-{payroll_id}"


_REFERENCE_RE = re.compile(r"^PAIE-(\d+)$")


def payroll_id_from_reference(reference_document: str | None) -> int | None:
    """Payroll id named by a mirror's reference, or None for any other reference."""
    if not reference_document:
        return None
    match = _REFERENCE_RE.match(reference_document)
    return int(match.group(1)) if match else None
