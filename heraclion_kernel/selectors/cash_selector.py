"""
Module: heraclion_kernel.selectors.cash_selector
Responsibility: Read side of the cash ledger: single lookups, the filtered
    listing and the running balance.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Listing order is date_operation ASC, id ASC.  Ids ascend with
      insertion, so same-day movements keep their recording order.
    - Absent filter options (None) impose nothing; a present value,
      including 0, constrains.
    - The balance is the sum over every live row, archived rows included,
      and is Decimal("0") on an empty ledger.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func, select

from heraclion_kernel.db.types import round_money
from heraclion_kernel.domain.cash import CashFilter
from heraclion_kernel.domain.dtos import CashMovementInfo
from heraclion_kernel.domain.values import CashKind
from heraclion_kernel.exceptions import CashMovementNotFoundError
from heraclion_kernel.models.cash_movement import CashMovement
from heraclion_kernel.selectors.base import BaseSelector

_LIKE_ESCAPE = "\\"


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so ``text`` matches literally."""
    return (
        text.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )


def to_cash_movement_info(row: CashMovement) -> CashMovementInfo:
    """Convert an ORM CashMovement into its DTO."""
    return CashMovementInfo(
        id=row.id,
        date_operation=row.date_operation,
        label=row.label,
        kind=CashKind(row.kind),
        amount=round_money(Decimal(str(row.amount))),
        category=row.category,
        reference_document=row.reference_document,
        archived=bool(row.archived),
    )


class CashSelector(BaseSelector[CashMovement]):
    """Queries over the ``caisse`` table."""

    def get(self, movement_id: int) -> CashMovementInfo:
        row = self.session.get(CashMovement, movement_id)
        if row is None:
            raise CashMovementNotFoundError(movement_id)
        return to_cash_movement_info(row)

    def list(self, cash_filter: CashFilter | None = None) -> list[CashMovementInfo]:
        """
        Movements matching every present option of ``cash_filter``.

        ``category`` compares case-insensitively; ``label_contains`` is a
        case-insensitive substring match.
        """
        f = cash_filter or CashFilter()
        stmt = select(CashMovement)

        if f.date_from is not None:
            stmt = stmt.where(CashMovement.date_operation >= f.date_from)
        if f.date_to is not None:
            stmt = stmt.where(CashMovement.date_operation <= f.date_to)
        if f.kind is not None:
            stmt = stmt.where(CashMovement.kind == f.kind.value)
        if f.category is not None:
            stmt = stmt.where(func.lower(CashMovement.category) == f.category.lower())
        if f.amount_min is not None:
            stmt = stmt.where(CashMovement.amount >= f.amount_min)
        if f.amount_max is not None:
            stmt = stmt.where(CashMovement.amount <= f.amount_max)
        if f.label_contains is not None:
            pattern = f"%{escape_like(f.label_contains)}%"
            stmt = stmt.where(CashMovement.label.ilike(pattern, escape=_LIKE_ESCAPE))
        if f.archived is not None:
            stmt = stmt.where(CashMovement.archived == f.archived)

        stmt = stmt.order_by(CashMovement.date_operation, CashMovement.id)
        rows = self.session.execute(stmt).scalars().all()
        return [to_cash_movement_info(row) for row in rows]

    def balance(self) -> Decimal:
        """Signed sum of every movement in the register."""
        total = self.session.execute(
            select(func.coalesce(func.sum(CashMovement.amount), 0))
        ).scalar_one()
        return round_money(Decimal(str(total)))

    def find_by_reference(self, reference_document: str) -> CashMovementInfo | None:
        stmt = (
            select(CashMovement)
            .where(CashMovement.reference_document == reference_document)
            .order_by(CashMovement.id)
            .limit(1)
        )
        row = self.session.execute(stmt).scalar_one_or_none()
        return to_cash_movement_info(row) if row else None
