"""
CashLedger -- public API of the cash register.

Each call is one unit of work on the StorageClient: committed on success,
rolled back on failure, retried on transient storage errors.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping

from heraclion_kernel.db.engine import StorageClient
from heraclion_kernel.domain.cash import CashFilter, CashMovementInput
from heraclion_kernel.domain.dtos import CashMovementInfo, TrashedRecordInfo
from heraclion_kernel.logging_config import LogContext
from heraclion_kernel.selectors.cash_selector import CashSelector
from heraclion_kernel.services.cash_ledger_service import CashLedgerService


class CashLedger:
    """Insert, update, soft delete, list, balance and archive cash movements."""

    def __init__(self, storage: StorageClient):
        self._storage = storage

    def insert(self, movement: Mapping[str, Any] | CashMovementInput) -> CashMovementInfo:
        with LogContext.bind(operation="cash.insert"):
            return self._storage.run(
                lambda session: CashLedgerService(session).insert(movement),
                operation="cash.insert",
            )

    def update(self, movement_id: int, changes: Mapping[str, Any]) -> CashMovementInfo:
        with LogContext.bind(operation="cash.update"):
            return self._storage.run(
                lambda session: CashLedgerService(session).update(movement_id, changes),
                operation="cash.update",
            )

    def soft_delete(self, movement_id: int, deleted_by: str | None = None) -> TrashedRecordInfo:
        """Move a movement to the trash; ``deleted_by`` is the acting user."""
        with LogContext.bind(operation="cash.soft_delete", actor=deleted_by):
            return self._storage.run(
                lambda session: CashLedgerService(session).soft_delete(movement_id, deleted_by),
                operation="cash.soft_delete",
            )

    def get(self, movement_id: int) -> CashMovementInfo:
        return self._storage.run(
            lambda session: CashSelector(session).get(movement_id),
            operation="cash.get",
        )

    def list(
        self,
        cash_filter: CashFilter | Mapping[str, Any] | None = None,
    ) -> list[CashMovementInfo]:
        """
        Movements matching the filter, by date then id.

        ``cash_filter`` may be a CashFilter or query-style mapping
        (``{"type": "SORTIE", "montant_min": -50000}``).
        """
        if not isinstance(cash_filter, CashFilter):
            cash_filter = CashFilter.from_mapping(cash_filter)
        return self._storage.run(
            lambda session: CashSelector(session).list(cash_filter),
            operation="cash.list",
        )

    def balance(self) -> Decimal:
        return self._storage.run(
            lambda session: CashSelector(session).balance(),
            operation="cash.balance",
        )

    def archive_month(self, year: int, month: int) -> int:
        """Flag the movements of one calendar month; returns how many."""
        with LogContext.bind(operation="cash.archive_month"):
            return self._storage.run(
                lambda session: CashLedgerService(session).archive_month(year, month),
                operation="cash.archive_month",
            )
