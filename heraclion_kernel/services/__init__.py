"""Kernel write services. Flush-only: callers own the transaction."""

from heraclion_kernel.services.cash_ledger_service import CashLedgerService
from heraclion_kernel.services.document_sequence_service import DocumentSequenceService
from heraclion_kernel.services.payroll_service import PayrollService
from heraclion_kernel.services.trash_service import TrashService

__all__ = [
    "CashLedgerService",
    "DocumentSequenceService",
    "PayrollService",
    "TrashService",
]
