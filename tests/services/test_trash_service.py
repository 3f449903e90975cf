"""
Tests for TrashService.

Covers:
- Pagination of trashed rows, newest first
- Restore under the original id
- Schema validation of payloads before reinsertion
- Conflict and not-found handling
"""

from datetime import date
from decimal import Decimal

import pytest

from heraclion_kernel.exceptions import (
    RestoreConflictError,
    RestoreSchemaError,
    TrashedRecordNotFoundError,
    ValidationError,
)
from heraclion_kernel.models.cash_movement import CashMovement
from heraclion_kernel.models.payroll import PayrollEntry
from heraclion_kernel.models.trash import TrashedRecord
from heraclion_kernel.selectors.cash_selector import CashSelector
from heraclion_kernel.services.cash_ledger_service import CashLedgerService
from heraclion_kernel.services.payroll_service import PayrollService
from heraclion_kernel.services.trash_service import TrashService, validate_payload


def _trash_movement(session, label="Loyer", amount=-20000):
    service = CashLedgerService(session)
    info = service.insert({"date": date(2024, 1, 6), "label": label, "amount": amount})
    return info, service.soft_delete(info.id, deleted_by="admin")


class TestRestore:
    def test_restores_original_id_and_values(self, session):
        info, trashed = _trash_movement(session)

        restored = TrashService(session).restore(trashed.id)

        assert restored["id"] == info.id
        again = CashSelector(session).get(info.id)
        assert again.label == "Loyer"
        assert again.amount == Decimal("-20000.00")
        assert again.date_operation == date(2024, 1, 6)
        assert session.get(TrashedRecord, trashed.id) is None

    def test_restores_payroll_row(self, session):
        record = PayrollService(session).record(
            {"date": "2024-03-31", "agent": "Alice", "amount": 100}
        )
        trashed = PayrollService(session).delete(record.payroll.id)
        service = TrashService(session)
        for item in trashed:
            service.restore(item.id)

        row = session.get(PayrollEntry, record.payroll.id)
        assert row.agent == "Alice"
        assert row.cash_movement_id == record.cash_movement.id
        assert session.get(CashMovement, record.cash_movement.id) is not None

    def test_conflict_when_id_is_live(self, session):
        info, trashed = _trash_movement(session)
        session.add(
            CashMovement(
                id=info.id,
                date_operation=date(2024, 1, 7),
                label="Occupant",
                kind="ENTREE",
                amount=Decimal("1"),
                archived=False,
            )
        )
        session.flush()

        with pytest.raises(RestoreConflictError):
            TrashService(session).restore(trashed.id)

    def test_not_found(self, session):
        with pytest.raises(TrashedRecordNotFoundError):
            TrashService(session).restore(31)

    def test_schema_mismatch_keeps_trash_entry(self, session):
        _, trashed = _trash_movement(session)
        record = session.get(TrashedRecord, trashed.id)
        record.payload = {**record.payload, "legacy_column": 1}
        session.flush()

        with pytest.raises(RestoreSchemaError):
            TrashService(session).restore(trashed.id)
        assert session.get(TrashedRecord, trashed.id) is not None


class TestValidatePayload:
    def _payload(self, **overrides):
        payload = {
            "id": 3,
            "date_operation": "2024-01-06",
            "label": "Loyer",
            "kind": "SORTIE",
            "amount": "-20000.00",
            "category": None,
            "reference_document": None,
            "archived": False,
            "created_at": "2024-01-06T10:00:00",
            "updated_at": "2024-01-06T10:00:00",
        }
        payload.update(overrides)
        return payload

    def test_valid_payload_is_coerced(self):
        values = validate_payload("caisse", self._payload())
        assert values["date_operation"] == date(2024, 1, 6)
        assert values["amount"] == Decimal("-20000.00")

    def test_unknown_table(self):
        with pytest.raises(RestoreSchemaError, match="not restorable"):
            validate_payload("factures", self._payload())

    def test_missing_required_column(self):
        payload = self._payload()
        del payload["label"]
        with pytest.raises(RestoreSchemaError) as exc_info:
            validate_payload("caisse", payload)
        assert "missing required column 'label'" in exc_info.value.problems

    @pytest.mark.parametrize(
        "overrides",
        [
            {"amount": "beaucoup"},
            {"amount": "Infinity"},
            {"date_operation": "06/01/2024"},
            {"kind": "CREDIT"},
            {"archived": "yes"},
            {"id": "3"},
            {"label": "x" * 300},
        ],
    )
    def test_uncoercible_values(self, overrides):
        with pytest.raises(RestoreSchemaError):
            validate_payload("caisse", self._payload(**overrides))

    def test_all_problems_reported(self):
        with pytest.raises(RestoreSchemaError) as exc_info:
            validate_payload("caisse", self._payload(amount="x", kind="y", extra=1))
        assert len(exc_info.value.problems) == 3

    def test_payload_must_be_an_object(self):
        with pytest.raises(RestoreSchemaError):
            validate_payload("caisse", ["not", "a", "dict"])


class TestList:
    def test_pagination_newest_first(self, session):
        trashed = [_trash_movement(session, label=f"m{i}")[1] for i in range(5)]

        page = TrashService(session).list(page=1, limit=2)
        assert page.total == 5
        assert page.total_pages == 3
        assert len(page.items) == 2

        all_ids = [
            item.id
            for p in (1, 2, 3)
            for item in TrashService(session).list(page=p, limit=2).items
        ]
        assert sorted(all_ids) == sorted(t.id for t in trashed)
        assert len(set(all_ids)) == 5

    def test_filter_by_source_table(self, session):
        _trash_movement(session)
        record = PayrollService(session).record(
            {"date": "2024-03-31", "agent": "Alice", "amount": 100}
        )
        PayrollService(session).delete(record.payroll.id)

        page = TrashService(session).list(source_table="paie")
        assert page.total == 1
        assert page.items[0].payload["agent"] == "Alice"

    @pytest.mark.parametrize("page, limit", [(0, 20), (1, 0), (1, 101), (True, 20)])
    def test_invalid_pagination(self, session, page, limit):
        with pytest.raises(ValidationError):
            TrashService(session).list(page=page, limit=limit)
