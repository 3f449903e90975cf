"""
PayrollCashSynchronizer -- public API of payroll.

Every write runs in ONE StorageClient unit of work so that a payroll entry
and its mirrored cash outflow are committed together or not at all.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from sqlalchemy.orm import Session

from heraclion_config import PayrollPolicy
from heraclion_kernel.db.engine import StorageClient
from heraclion_kernel.domain.dtos import PayrollInfo, PayrollRecord, TrashedRecordInfo
from heraclion_kernel.domain.payroll import PayrollInput
from heraclion_kernel.logging_config import LogContext
from heraclion_kernel.selectors.payroll_selector import PayrollSelector
from heraclion_kernel.services.payroll_service import PayrollService


class PayrollCashSynchronizer:
    """Records payroll and keeps the cash register mirrored."""

    def __init__(self, storage: StorageClient, policy: PayrollPolicy | None = None):
        self._storage = storage
        self.policy = policy or PayrollPolicy()

    def _service(self, session: Session) -> PayrollService:
        return PayrollService(
            session,
            label_prefix=self.policy.label_prefix,
            category=self.policy.category,
            default_currency=self.policy.default_currency,
        )

    def record_payroll(self, entry: Mapping[str, Any] | PayrollInput) -> PayrollRecord:
        """
        Record one payroll entry and its cash outflow atomically.

        Raises:
            ValidationError: before anything is written.
            FatalStorageError: storage failed; neither row was kept.
        """
        with LogContext.bind(operation="payroll.record"):
            return self._storage.run(
                lambda session: self._service(session).record(entry),
                operation="payroll.record",
            )

    def record_payroll_batch(
        self,
        entries: Iterable[Mapping[str, Any] | PayrollInput],
    ) -> list[PayrollRecord]:
        """Record N entries as N independent mirrors, all in one transaction."""
        entries = list(entries)
        with LogContext.bind(operation="payroll.record_batch"):
            return self._storage.run(
                lambda session: self._service(session).record_batch(entries),
                operation="payroll.record_batch",
            )

    def update_payroll(self, payroll_id: int, changes: Mapping[str, Any]) -> PayrollRecord:
        with LogContext.bind(operation="payroll.update"):
            return self._storage.run(
                lambda session: self._service(session).update(payroll_id, changes),
                operation="payroll.update",
            )

    def delete_payroll(
        self,
        payroll_id: int,
        deleted_by: str | None = None,
    ) -> list[TrashedRecordInfo]:
        with LogContext.bind(operation="payroll.delete", actor=deleted_by):
            return self._storage.run(
                lambda session: self._service(session).delete(payroll_id, deleted_by),
                operation="payroll.delete",
            )

    def get_payroll(self, payroll_id: int) -> PayrollInfo:
        return self._storage.run(
            lambda session: PayrollSelector(session).get(payroll_id),
            operation="payroll.get",
        )

    def list_payroll(self, agent: str | None = None) -> list[PayrollInfo]:
        return self._storage.run(
            lambda session: PayrollSelector(session).list(agent),
            operation="payroll.list",
        )
