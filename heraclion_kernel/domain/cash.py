"""
Cash -- input normalization for cash register movements and list filters.

Responsibility:
    Turn loosely-shaped caller input into the strict ``CashMovementInput``
    and ``CashFilter`` types before anything reaches a service.  Callers
    send either the current field names or the legacy French ones
    (``libelle``/``description``, ``type``/``type_operation``,
    ``date_operation``, ``montant``, ``categorie``); this module is the ONE
    place where those aliases are resolved.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - The amount sign follows the kind: SORTIE amounts are <= 0, ENTREE
      amounts >= 0.  A movement given without a kind takes it from the
      amount's sign.
    - Amounts are finite Decimals rounded to 2 places.

Failure modes:
    - ValidationError naming the offending field.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping

from heraclion_kernel.db.types import check_magnitude, coerce_amount, round_money
from heraclion_kernel.domain.values import CashKind
from heraclion_kernel.exceptions import ValidationError

_DATE_KEYS = ("date_operation", "date")
_LABEL_KEYS = ("label", "libelle", "description")
_KIND_KEYS = ("kind", "type", "type_operation")
_AMOUNT_KEYS = ("amount", "montant")
_CATEGORY_KEYS = ("category", "categorie")
_REFERENCE_KEYS = ("reference_document", "reference")
_UPDATABLE_KEYS = frozenset(
    _DATE_KEYS + _LABEL_KEYS + _KIND_KEYS + _AMOUNT_KEYS + _CATEGORY_KEYS + _REFERENCE_KEYS
)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def pick_field(raw: Mapping[str, Any], keys: tuple[str, ...]) -> tuple[bool, Any]:
    """(present, value) for the first alias carrying a non-blank value."""
    present = False
    for key in keys:
        if key in raw:
            present = True
            if not _is_blank(raw[key]):
                return True, raw[key]
    return present, None


def reject_unknown_fields(raw: Mapping[str, Any], known: frozenset[str]) -> None:
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValidationError("changes", f"unknown field(s): {', '.join(unknown)}")


def parse_date(value: Any, field: str) -> date:
    """Accept a date, a datetime, or an ISO ``YYYY-MM-DD[...]`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) > 10:
                return datetime.fromisoformat(text).date()
            return date.fromisoformat(text)
        except ValueError as exc:
            raise ValidationError(field, f"not an ISO date: {value!r}") from exc
    raise ValidationError(field, "a date is required")


def parse_amount(value: Any, field: str = "amount") -> Decimal:
    try:
        return check_magnitude(round_money(coerce_amount(value)))
    except ValueError as exc:
        raise ValidationError(field, str(exc)) from exc


def parse_kind(value: Any) -> CashKind:
    if isinstance(value, CashKind):
        return value
    if isinstance(value, str):
        text = value.strip().upper().replace("É", "E")
        try:
            return CashKind(text)
        except ValueError:
            pass
    raise ValidationError("kind", f"expected ENTREE or SORTIE, got {value!r}")


def parse_text(value: Any, field: str, *, max_length: int = 255) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field, "a non-empty text is required")
    text = value.strip()
    if len(text) > max_length:
        raise ValidationError(field, f"longer than {max_length} characters")
    return text


def signed_amount(kind: CashKind, amount: Decimal) -> Decimal:
    """Apply the sign convention of ``kind`` to ``amount``."""
    return -abs(amount) if kind is CashKind.SORTIE else abs(amount)


def kind_for_amount(amount: Decimal) -> CashKind:
    return CashKind.SORTIE if amount < 0 else CashKind.ENTREE


@dataclass(frozen=True)
class CashMovementInput:
    """Strict, validated shape of a new cash movement."""

    date_operation: date
    label: str
    kind: CashKind
    amount: Decimal
    category: str | None = None
    reference_document: str | None = None


def _optional_text(raw: Mapping[str, Any], keys: tuple[str, ...], field: str) -> str | None:
    _, value = pick_field(raw, keys)
    if value is None:
        return None
    return parse_text(value, field, max_length=100)


def normalize_cash_input(raw: Mapping[str, Any] | CashMovementInput) -> CashMovementInput:
    """Resolve aliases, validate, and apply the sign convention."""
    if isinstance(raw, CashMovementInput):
        return raw

    _, date_value = pick_field(raw, _DATE_KEYS)
    if date_value is None:
        raise ValidationError("date_operation", "a date is required")
    date_operation = parse_date(date_value, "date_operation")

    _, label_value = pick_field(raw, _LABEL_KEYS)
    label = parse_text(label_value, "label")

    _, amount_value = pick_field(raw, _AMOUNT_KEYS)
    amount = parse_amount(amount_value)

    _, kind_value = pick_field(raw, _KIND_KEYS)
    kind = parse_kind(kind_value) if kind_value is not None else kind_for_amount(amount)

    return CashMovementInput(
        date_operation=date_operation,
        label=label,
        kind=kind,
        amount=signed_amount(kind, amount),
        category=_optional_text(raw, _CATEGORY_KEYS, "category"),
        reference_document=_optional_text(raw, _REFERENCE_KEYS, "reference_document"),
    )


def normalize_cash_changes(raw: Mapping[str, Any]) -> dict[str, Any]:
    """
    Partial update: only the fields present in ``raw`` are returned.

    Required fields may not be blanked; optional ones (category, reference)
    are cleared by an explicit None.  The sign is NOT applied here since it
    depends on the stored kind when only one of kind/amount changes.
    """
    reject_unknown_fields(raw, _UPDATABLE_KEYS)
    changes: dict[str, Any] = {}

    present, value = pick_field(raw, _DATE_KEYS)
    if present:
        if value is None:
            raise ValidationError("date_operation", "cannot be blank")
        changes["date_operation"] = parse_date(value, "date_operation")

    present, value = pick_field(raw, _LABEL_KEYS)
    if present:
        changes["label"] = parse_text(value, "label")

    present, value = pick_field(raw, _AMOUNT_KEYS)
    if present:
        changes["amount"] = parse_amount(value)

    present, value = pick_field(raw, _KIND_KEYS)
    if present:
        changes["kind"] = parse_kind(value)

    for keys, field in ((_CATEGORY_KEYS, "category"), (_REFERENCE_KEYS, "reference_document")):
        present, value = pick_field(raw, keys)
        if present:
            changes[field] = None if value is None else parse_text(value, field, max_length=100)

    return changes


# ---------------------------------------------------------------------------
# List filter
# ---------------------------------------------------------------------------

_FILTER_ALIASES: dict[str, tuple[str, ...]] = {
    "date_from": ("date_from", "dateFrom", "date_debut"),
    "date_to": ("date_to", "dateTo", "date_fin"),
    "kind": ("kind", "type", "type_operation"),
    "category": ("category", "categorie"),
    "amount_min": ("amount_min", "amountMin", "montant_min"),
    "amount_max": ("amount_max", "amountMax", "montant_max"),
    "label_contains": ("label_contains", "labelContains", "libelle"),
    "archived": ("archived", "archive"),
}


def _parse_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "1", "yes", "oui"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("false", "0", "no", "non"):
        return False
    raise ValidationError(field, f"expected a boolean, got {value!r}")


@dataclass(frozen=True)
class CashFilter:
    """
    Optional, AND-combined narrowing of the cash ledger listing.

    None means "no constraint"; any other value (including 0) constrains.
    """

    date_from: date | None = None
    date_to: date | None = None
    kind: CashKind | None = None
    category: str | None = None
    amount_min: Decimal | None = None
    amount_max: Decimal | None = None
    label_contains: str | None = None
    archived: bool | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> CashFilter:
        """Build a filter from query-style input; blank values are absent."""
        if raw is None:
            return cls()
        known = {alias for aliases in _FILTER_ALIASES.values() for alias in aliases}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ValidationError("filter", f"unknown option(s): {', '.join(unknown)}")

        values: dict[str, Any] = {}
        for field, aliases in _FILTER_ALIASES.items():
            _, value = pick_field(raw, aliases)
            if value is None:
                continue
            if field in ("date_from", "date_to"):
                values[field] = parse_date(value, field)
            elif field == "kind":
                values[field] = parse_kind(value)
            elif field in ("amount_min", "amount_max"):
                values[field] = parse_amount(value, field)
            elif field == "archived":
                values[field] = _parse_bool(value, field)
            else:
                values[field] = parse_text(value, field)
        return cls(**values)

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))
