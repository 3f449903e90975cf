"""
PayrollService -- payroll entries and their mirrored cash outflows.

Responsibility:
    Records salary payments and keeps the cash register in step with them:
    every payroll entry owns exactly one SORTIE movement in ``caisse``
    (label "Salaire <agent>", category "Salaire", amount -abs(amount),
    reference_document "PAIE-<payroll id>").

Architecture position:
    Kernel > Services -- imperative shell.  Flush-only; the
    PayrollCashSynchronizer facade runs every call in ONE transaction, so
    the payroll write and the cash write commit or roll back together.

Invariants enforced:
    - All input is validated before the first write.  A batch is validated
      entry by entry before any entry is written.
    - Write order: payroll row (flushed to get its id), then the cash
      movement, then the link ``payroll.cash_movement_id``.
    - Updates re-derive the mirror (date, label, amount); deletes trash the
      payroll row and its mirror together.

Failure modes:
    - ValidationError naming the field (prefixed ``entries[i].`` in batches).
    - PayrollEntryNotFoundError on update/delete of an unknown id.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from sqlalchemy.orm import Session

from heraclion_kernel.domain.dtos import PayrollRecord, TrashedRecordInfo
from heraclion_kernel.domain.payroll import (
    DEFAULT_CATEGORY,
    DEFAULT_CURRENCY,
    DEFAULT_LABEL_PREFIX,
    PayrollInput,
    mirror_cash_movement,
    normalize_payroll_changes,
    normalize_payroll_input,
    payroll_reference,
)
from heraclion_kernel.exceptions import PayrollEntryNotFoundError, ValidationError
from heraclion_kernel.logging_config import get_logger
from heraclion_kernel.models.cash_movement import CashMovement
from heraclion_kernel.models.payroll import PayrollEntry
from heraclion_kernel.selectors.cash_selector import to_cash_movement_info
from heraclion_kernel.selectors.payroll_selector import to_payroll_info
from heraclion_kernel.services.base import BaseService
from heraclion_kernel.services.cash_ledger_service import CashLedgerService
from heraclion_kernel.services.trash_service import TrashService

logger = get_logger("services.payroll")


class PayrollService(BaseService[PayrollEntry]):
    """
    Payroll writes with cash register synchronization.

    Args:
        session: SQLAlchemy session of the caller's transaction.
        label_prefix: First word of mirrored movement labels.
        category: Category of mirrored movements.
        default_currency: Currency of entries that do not name one.
    """

    def __init__(
        self,
        session: Session,
        *,
        label_prefix: str = DEFAULT_LABEL_PREFIX,
        category: str = DEFAULT_CATEGORY,
        default_currency: str = DEFAULT_CURRENCY,
    ):
        super().__init__(session)
        self.label_prefix = label_prefix
        self.category = category
        self.default_currency = default_currency
        self._cash = CashLedgerService(session)

    def _get_by_id(self, payroll_id: int) -> PayrollEntry:
        row = self.session.get(PayrollEntry, payroll_id)
        if row is None:
            raise PayrollEntryNotFoundError(payroll_id)
        return row

    def _record(self, entry: PayrollInput) -> PayrollRecord:
        payroll = PayrollEntry(
            date=entry.date,
            agent=entry.agent,
            amount=entry.amount,
            comment=entry.comment,
            currency=entry.currency,
            rate=entry.rate,
        )
        self.session.add(payroll)
        self.session.flush()

        cash = self._cash.insert(
            mirror_cash_movement(
                entry.date,
                entry.agent,
                entry.amount,
                label_prefix=self.label_prefix,
                category=self.category,
                reference_document=payroll_reference(payroll.id),
            )
        )

        payroll.cash_movement_id = cash.id
        self.session.flush()

        logger.info(
            "payroll_recorded",
            extra={
                "payroll_id": payroll.id,
                "cash_movement_id": cash.id,
                "agent": entry.agent,
                "amount": entry.amount,
                "currency": entry.currency,
            },
        )
        return PayrollRecord(payroll=to_payroll_info(payroll), cash_movement=cash)

    def record(self, entry: Mapping[str, Any] | PayrollInput) -> PayrollRecord:
        """Validate one payroll entry, then write it and its cash mirror."""
        data = normalize_payroll_input(entry, default_currency=self.default_currency)
        return self._record(data)

    def record_batch(
        self,
        entries: Iterable[Mapping[str, Any] | PayrollInput],
    ) -> list[PayrollRecord]:
        """
        Record several entries; one cash movement per entry, never aggregated.

        Every entry is validated before the first one is written.
        """
        validated: list[PayrollInput] = []
        for index, raw in enumerate(entries):
            try:
                validated.append(
                    normalize_payroll_input(raw, default_currency=self.default_currency)
                )
            except ValidationError as exc:
                raise ValidationError(f"entries[{index}].{exc.field}", exc.reason) from exc

        records = [self._record(entry) for entry in validated]
        logger.info("payroll_batch_recorded", extra={"count": len(records)})
        return records

    def update(self, payroll_id: int, changes: Mapping[str, Any]) -> PayrollRecord:
        """
        Partially update an entry and re-derive its cash mirror.

        A mirror that no longer exists (trashed on its own) is recreated.
        """
        fields = normalize_payroll_changes(changes)
        if not fields:
            raise ValidationError("changes", "no updatable field given")

        payroll = self._get_by_id(payroll_id)
        for name, value in fields.items():
            setattr(payroll, name, value)
        self.session.flush()

        mirror = mirror_cash_movement(
            payroll.date,
            payroll.agent,
            payroll.amount,
            label_prefix=self.label_prefix,
            category=self.category,
            reference_document=payroll_reference(payroll.id),
        )
        movement = (
            self.session.get(CashMovement, payroll.cash_movement_id)
            if payroll.cash_movement_id is not None
            else None
        )
        if movement is None:
            cash = self._cash.insert(mirror)
            payroll.cash_movement_id = cash.id
            self.session.flush()
            logger.warning(
                "payroll_mirror_recreated",
                extra={"payroll_id": payroll.id, "cash_movement_id": cash.id},
            )
        else:
            movement.date_operation = mirror.date_operation
            movement.label = mirror.label
            movement.kind = mirror.kind.value
            movement.amount = mirror.amount
            movement.category = mirror.category
            movement.reference_document = mirror.reference_document
            self.session.flush()
            cash = to_cash_movement_info(movement)

        logger.info(
            "payroll_updated",
            extra={"payroll_id": payroll.id, "fields": sorted(fields)},
        )
        return PayrollRecord(
            payroll=to_payroll_info(payroll),
            cash_movement=cash,
        )

    def delete(self, payroll_id: int, deleted_by: str | None = None) -> list[TrashedRecordInfo]:
        """Move an entry and its mirrored movement to the trash."""
        payroll = self._get_by_id(payroll_id)
        trash = TrashService(self.session)
        trashed: list[TrashedRecordInfo] = []

        if payroll.cash_movement_id is not None:
            movement = self.session.get(CashMovement, payroll.cash_movement_id)
            if movement is not None:
                trashed.append(trash.trash(CashMovement.__tablename__, movement, deleted_by))

        trashed.append(trash.trash(PayrollEntry.__tablename__, payroll, deleted_by))
        logger.info(
            "payroll_deleted",
            extra={"payroll_id": payroll_id, "trashed_count": len(trashed)},
        )
        return trashed
