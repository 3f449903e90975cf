"""ORM models. Importing this package registers every table on Base.metadata."""

from heraclion_kernel.models.cash_movement import CashKind, CashMovement
from heraclion_kernel.models.payroll import PayrollEntry
from heraclion_kernel.models.sequence import DocumentSequenceCounter
from heraclion_kernel.models.trash import TrashedRecord

__all__ = [
    "CashKind",
    "CashMovement",
    "PayrollEntry",
    "DocumentSequenceCounter",
    "TrashedRecord",
]
