"""
Integration tests: document numbering through the facade, and the retry
behaviour every facade inherits from StorageClient.run().
"""

import os
import threading

import pytest
from sqlalchemy.exc import OperationalError

from heraclion_config import NumberingPolicy
from heraclion_kernel.exceptions import (
    FatalStorageError,
    InvalidArgumentError,
    TransientStorageError,
    ValidationError,
)
from heraclion_kernel.services.cash_ledger_service import CashLedgerService
from heraclion_services import DocumentNumbering


def _connection_lost() -> OperationalError:
    return OperationalError(
        "SELECT 1", {}, Exception("server closed the connection unexpectedly")
    )


class TestDocumentNumbering:
    def test_sequential_allocation(self, numbering):
        assert [numbering.allocate("FAC", 2024) for _ in range(3)] == [
            "FAC-2024-001",
            "FAC-2024-002",
            "FAC-2024-003",
        ]
        assert numbering.last_counter("FAC", 2024) == 3

    def test_year_defaults_to_clock(self, numbering):
        assert numbering.allocate("DEV") == "DEV-2025-001"

    def test_scopes_are_independent(self, numbering):
        numbering.allocate("FAC", 2024)
        assert numbering.allocate("FAC", 2025) == "FAC-2025-001"
        assert numbering.allocate("BL", 2024) == "BL-2024-001"

    def test_observe_skips_external_numbers(self, numbering):
        assert numbering.observe("FAC-2024-010") == 10
        assert numbering.allocate("FAC", 2024) == "FAC-2024-011"

    def test_observe_lower_number_keeps_counter(self, numbering):
        numbering.observe("FAC-2024-010")
        numbering.observe("FAC-2024-004")
        assert numbering.last_counter("FAC", 2024) == 10

    def test_configured_width(self, storage, deterministic_clock):
        numbering = DocumentNumbering(
            storage, NumberingPolicy(counter_width=5), clock=deterministic_clock
        )
        assert numbering.allocate("FAC", 2024) == "FAC-2024-00001"

    def test_invalid_input_is_not_retried(self, numbering, sleeps):
        with pytest.raises((InvalidArgumentError, ValidationError)):
            numbering.allocate("FAC", 1900)
        assert sleeps == []

    @pytest.mark.postgres
    @pytest.mark.skipif(
        not os.environ.get("DATABASE_URL", "").startswith("postgresql"),
        reason="row locking needs PostgreSQL",
    )
    def test_concurrent_allocations_are_distinct(self, numbering):
        results: list[str] = []
        lock = threading.Lock()

        def worker():
            for _ in range(10):
                number = numbering.allocate("FAC", 2024)
                with lock:
                    results.append(number)

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 50
        assert len(set(results)) == 50
        assert numbering.last_counter("FAC", 2024) == 50


class TestRetry:
    def test_transient_failure_then_success(self, cash_ledger, monkeypatch, sleeps):
        original = CashLedgerService.insert
        calls = {"count": 0}

        def flaky_insert(self, movement):
            calls["count"] += 1
            if calls["count"] == 1:
                raise _connection_lost()
            return original(self, movement)

        monkeypatch.setattr(CashLedgerService, "insert", flaky_insert)

        movement = cash_ledger.insert({"date": "2024-01-10", "label": "Vente", "amount": 10})

        assert calls["count"] == 2
        assert sleeps == [1.0]
        monkeypatch.undo()
        assert [m.id for m in cash_ledger.list()] == [movement.id]

    def test_exhausted_retries_raise_fatal(self, cash_ledger, monkeypatch, sleeps, captured_logs):
        def lost_insert(self, movement):
            raise _connection_lost()

        monkeypatch.setattr(CashLedgerService, "insert", lost_insert)

        with pytest.raises(FatalStorageError) as exc_info:
            cash_ledger.insert({"date": "2024-01-10", "label": "Vente", "amount": 10})

        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.__cause__, TransientStorageError)
        assert sleeps == [1.0, 1.0]
        messages = [r["message"] for r in captured_logs()]
        assert messages.count("storage_retry") == 2
        assert "storage_retries_exhausted" in messages

    def test_validation_error_propagates_unchanged(self, cash_ledger, sleeps):
        with pytest.raises(ValidationError) as exc_info:
            cash_ledger.insert({"date": "2024-01-10", "amount": 10})
        assert exc_info.value.field == "label"
        assert sleeps == []
