"""Unit tests for payroll validation and the cash mirror rule."""

from datetime import date
from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from heraclion_kernel.domain.payroll import (
    mirror_cash_movement,
    normalize_payroll_changes,
    normalize_payroll_input,
    payroll_reference,
)
from heraclion_kernel.domain.values import CashKind
from heraclion_kernel.exceptions import ValidationError


class TestNormalizePayrollInput:
    def test_minimal_entry(self):
        entry = normalize_payroll_input({"date": "2024-03-31", "agent": " Alice ", "amount": 12345})
        assert entry.date == date(2024, 3, 31)
        assert entry.agent == "Alice"
        assert entry.amount == Decimal("12345.00")
        assert entry.comment == ""
        assert entry.currency == "USD"
        assert entry.rate is None

    def test_french_field_names(self):
        entry = normalize_payroll_input({
            "date": "2024-03-31",
            "agent": "Bob",
            "montant": "800,5",
            "commentaire": "Avance",
            "devise": "cdf",
            "taux": "2800",
        })
        assert entry.amount == Decimal("800.50")
        assert entry.comment == "Avance"
        assert entry.currency == "CDF"
        assert entry.rate == Decimal("2800")

    def test_default_currency_override(self):
        entry = normalize_payroll_input(
            {"date": "2024-03-31", "agent": "Bob", "amount": 1}, default_currency="CDF"
        )
        assert entry.currency == "CDF"

    @pytest.mark.parametrize(
        "raw, field",
        [
            ({"agent": "Alice", "amount": 1}, "date"),
            ({"date": "not-a-date", "agent": "Alice", "amount": 1}, "date"),
            ({"date": "2024-03-31", "amount": 1}, "agent"),
            ({"date": "2024-03-31", "agent": "  ", "amount": 1}, "agent"),
            ({"date": "2024-03-31", "agent": "Alice"}, "amount"),
            ({"date": "2024-03-31", "agent": "Alice", "amount": "douze"}, "amount"),
            ({"date": "2024-03-31", "agent": "Alice", "amount": False}, "amount"),
            ({"date": "2024-03-31", "agent": "Alice", "amount": "1e30"}, "amount"),
            ({"date": "2024-03-31", "agent": "Alice", "amount": 1, "rate": "1e12"}, "rate"),
            ({"date": "2024-03-31", "agent": "Alice", "amount": 1, "currency": "XXX"}, "currency"),
            ({"date": "2024-03-31", "agent": "Alice", "amount": 1, "rate": 0}, "rate"),
        ],
    )
    def test_invalid_entry(self, raw, field):
        with pytest.raises(ValidationError) as exc_info:
            normalize_payroll_input(raw)
        assert exc_info.value.field == field

    def test_changes_keep_only_present_fields(self):
        assert normalize_payroll_changes({"montant": 900}) == {"amount": Decimal("900.00")}

    def test_changes_reject_misspelled_field(self):
        with pytest.raises(ValidationError) as exc_info:
            normalize_payroll_changes({"comment": "x", "montnat": 900})
        assert exc_info.value.field == "changes"
        assert "montnat" in exc_info.value.reason


class TestMirrorCashMovement:
    def test_mirror_of_12345(self):
        mirror = mirror_cash_movement(date(2024, 3, 31), "Alice", Decimal("12345"))
        assert mirror.amount == Decimal("-12345")
        assert mirror.kind is CashKind.SORTIE
        assert mirror.category == "Salaire"
        assert mirror.label == "Salaire Alice"
        assert mirror.date_operation == date(2024, 3, 31)

    def test_negative_payroll_amount_still_outflow(self):
        mirror = mirror_cash_movement(date(2024, 3, 31), "Alice", Decimal("-50"))
        assert mirror.amount == Decimal("-50")

    def test_custom_label_and_category(self):
        mirror = mirror_cash_movement(
            date(2024, 3, 31), "Alice", Decimal("1"), label_prefix="Paie", category="RH"
        )
        assert mirror.label == "Paie Alice"
        assert mirror.category == "RH"

    def test_reference(self):
        assert payroll_reference(17) == "PAIE-17"

    @given(
        agent=st.text(min_size=1, max_size=40).filter(lambda s: s.strip()),
        amount=st.decimals(min_value=0, max_value=10**9, places=2),
    )
    def test_mirror_is_always_an_outflow_of_the_same_magnitude(self, agent, amount):
        mirror = mirror_cash_movement(date(2024, 1, 1), agent, amount)
        assert mirror.amount == -amount
        assert mirror.kind is CashKind.SORTIE
        assert mirror.label == f"Salaire {agent}"
