"""
Tests for DocumentSequenceService.

Covers:
- First number of a scope and monotonic allocation
- Independent (prefix, year) scopes
- Validation before any database access
- observe() raising the counter past imported numbers
"""

import pytest

from heraclion_kernel.exceptions import DocumentNumberParseError, InvalidArgumentError
from heraclion_kernel.models.sequence import DocumentSequenceCounter
from heraclion_kernel.services.document_sequence_service import DocumentSequenceService


@pytest.fixture
def sequences(session, deterministic_clock):
    return DocumentSequenceService(session, clock=deterministic_clock)


class TestNextNumber:
    def test_first_number(self, sequences):
        assert sequences.next_number("FAC", 2024) == "FAC-2024-001"

    def test_monotonic(self, sequences):
        numbers = [sequences.next_number("FAC", 2024) for _ in range(3)]
        assert numbers == ["FAC-2024-001", "FAC-2024-002", "FAC-2024-003"]

    def test_scopes_are_independent(self, sequences):
        sequences.next_number("FAC", 2024)
        sequences.next_number("FAC", 2024)
        assert sequences.next_number("FAC", 2025) == "FAC-2025-001"
        assert sequences.next_number("PRO", 2024) == "PRO-2024-001"

    def test_continues_after_existing_counter(self, session, sequences):
        session.add(DocumentSequenceCounter(prefix="FAC", year=2024, current_value=42))
        session.flush()
        assert sequences.next_number("FAC", 2024) == "FAC-2024-043"

    def test_custom_width(self, session, deterministic_clock):
        service = DocumentSequenceService(session, clock=deterministic_clock, width=5)
        assert service.next_number("BL", 2025) == "BL-2025-00001"

    def test_invalid_year_rejected_before_allocation(self, session, sequences):
        with pytest.raises(InvalidArgumentError):
            sequences.next_number("FAC", 1900)
        assert sequences.last_counter("FAC", 1900) == 0

    def test_invalid_prefix_rejected(self, sequences):
        with pytest.raises(InvalidArgumentError):
            sequences.next_number("FAC-X", 2024)

    def test_logs_allocation(self, sequences, captured_logs):
        sequences.next_number("FAC", 2024)
        logs = [r for r in captured_logs() if r["message"] == "document_number_allocated"]
        assert logs[0]["counter"] == 1


class TestLastCounter:
    def test_unknown_scope_is_zero(self, sequences):
        assert sequences.last_counter("FAC", 2024) == 0

    def test_after_allocations(self, sequences):
        sequences.next_number("FAC", 2024)
        sequences.next_number("FAC", 2024)
        assert sequences.last_counter("FAC", 2024) == 2


class TestObserve:
    def test_raises_counter(self, sequences):
        assert sequences.observe("FAC-2024-041") == 41
        assert sequences.next_number("FAC", 2024) == "FAC-2024-042"

    def test_never_lowers_counter(self, sequences):
        sequences.observe("FAC-2024-041")
        assert sequences.observe("FAC-2024-007") == 41

    def test_malformed_number(self, sequences):
        with pytest.raises(DocumentNumberParseError):
            sequences.observe("FAC-2024")
