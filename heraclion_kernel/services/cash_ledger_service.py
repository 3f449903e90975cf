"""
CashLedgerService -- writes against the cash register (``caisse``).

Responsibility:
    Insert, partial update, soft delete (via the trash) and month
    archiving of cash movements.  Reads live in
    selectors/cash_selector.py.

Architecture position:
    Kernel > Services -- imperative shell.  Flush-only; the CashLedger
    facade owns the transaction and the retry loop.

Invariants enforced:
    - Every write goes through ``normalize_cash_input`` /
      ``normalize_cash_changes`` first, so the model only ever sees strict,
      signed values (SORTIE <= 0, ENTREE >= 0).
    - Deletion is copy-then-delete into ``corbeille``; rows are never lost.
    - Archiving flags rows between the first and the true last day of the
      month (28, 29, 30 or 31) and never deletes anything.

Failure modes:
    - ValidationError: malformed input, empty update, month outside 1..12.
    - CashMovementNotFoundError: update/delete of an unknown id.
"""

from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import update

from heraclion_kernel.domain.cash import (
    CashMovementInput,
    normalize_cash_changes,
    normalize_cash_input,
    signed_amount,
)
from heraclion_kernel.domain.dtos import CashMovementInfo, TrashedRecordInfo
from heraclion_kernel.domain.values import CashKind, month_bounds
from heraclion_kernel.exceptions import CashMovementNotFoundError, ValidationError
from heraclion_kernel.logging_config import get_logger
from heraclion_kernel.models.cash_movement import CashMovement
from heraclion_kernel.selectors.cash_selector import to_cash_movement_info
from heraclion_kernel.services.base import BaseService
from heraclion_kernel.services.trash_service import TrashService

logger = get_logger("services.cash_ledger")


class CashLedgerService(BaseService[CashMovement]):
    """Write operations on cash movements."""

    def _get_by_id(self, movement_id: int) -> CashMovement:
        row = self.session.get(CashMovement, movement_id)
        if row is None:
            raise CashMovementNotFoundError(movement_id)
        return row

    def insert(self, movement: Mapping[str, Any] | CashMovementInput) -> CashMovementInfo:
        """
        Record one movement.

        Args:
            movement: A ``CashMovementInput`` or a raw mapping using either
                the current or the legacy French field names.

        Returns:
            The stored movement, with its generated id.
        """
        data = normalize_cash_input(movement)
        row = CashMovement(
            date_operation=data.date_operation,
            label=data.label,
            kind=data.kind.value,
            amount=data.amount,
            category=data.category,
            reference_document=data.reference_document,
            archived=False,
        )
        self.session.add(row)
        self.session.flush()

        logger.info(
            "cash_movement_inserted",
            extra={
                "movement_id": row.id,
                "kind": data.kind.value,
                "amount": data.amount,
                "date_operation": data.date_operation,
            },
        )
        return to_cash_movement_info(row)

    def update(self, movement_id: int, changes: Mapping[str, Any]) -> CashMovementInfo:
        """
        Apply a partial update.

        When only the amount changes, it takes the sign of the stored kind;
        when only the kind changes, the stored amount is re-signed.
        """
        fields = normalize_cash_changes(changes)
        if not fields:
            raise ValidationError("changes", "no updatable field given")

        row = self._get_by_id(movement_id)

        if "kind" in fields or "amount" in fields:
            kind = fields.pop("kind", None) or CashKind(row.kind)
            amount = fields.pop("amount", row.amount)
            row.kind = kind.value
            row.amount = signed_amount(kind, amount)

        for name, value in fields.items():
            setattr(row, name, value)
        self.session.flush()

        logger.info(
            "cash_movement_updated",
            extra={"movement_id": movement_id, "fields": sorted(changes)},
        )
        return to_cash_movement_info(row)

    def soft_delete(self, movement_id: int, deleted_by: str | None = None) -> TrashedRecordInfo:
        """Move a movement to the trash."""
        row = self._get_by_id(movement_id)
        return TrashService(self.session).trash(CashMovement.__tablename__, row, deleted_by)

    def archive_month(self, year: int, month: int) -> int:
        """
        Flag every not-yet-archived movement of ``year``-``month``.

        Returns:
            The number of movements newly flagged.
        """
        if isinstance(year, bool) or not isinstance(year, int):
            raise ValidationError("year", f"expected an integer, got {year!r}")
        try:
            first_day, last_day = month_bounds(year, month)
        except ValueError as exc:
            raise ValidationError("month", str(exc)) from exc

        result = self.session.execute(
            update(CashMovement)
            .where(CashMovement.date_operation >= first_day)
            .where(CashMovement.date_operation <= last_day)
            .where(CashMovement.archived.is_(False))
            .values(archived=True)
            .execution_options(synchronize_session="fetch")
        )
        self.session.flush()
        archived = result.rowcount or 0

        logger.info(
            "cash_month_archived",
            extra={
                "year": year,
                "month": month,
                "first_day": first_day,
                "last_day": last_day,
                "archived_count": archived,
            },
        )
        return archived
