"""
heraclion_services -- public API of the Heraclion back-office core.

Responsibility:
    Component facades over the kernel.  Each facade receives an explicitly
    constructed ``StorageClient`` and runs every call as one unit of work
    through ``StorageClient.run`` (commit or rollback, bounded retries of
    transient storage failures).

Architecture position:
    Services -- above ``heraclion_kernel`` and ``heraclion_config``.
    The kernel must never import from this package.
"""

from heraclion_services.cash_ledger import CashLedger
from heraclion_services.numbering import DocumentNumbering
from heraclion_services.payroll_sync import PayrollCashSynchronizer
from heraclion_services.storage import build_storage
from heraclion_services.trash import Trash

__all__ = [
    "CashLedger",
    "DocumentNumbering",
    "PayrollCashSynchronizer",
    "Trash",
    "build_storage",
]
