"""Read side of payroll: lookups and the payroll listing (newest first)."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select

from heraclion_kernel.db.types import round_money
from heraclion_kernel.domain.dtos import PayrollInfo
from heraclion_kernel.exceptions import PayrollEntryNotFoundError
from heraclion_kernel.models.payroll import PayrollEntry
from heraclion_kernel.selectors.base import BaseSelector


def to_payroll_info(row: PayrollEntry) -> PayrollInfo:
    """Convert an ORM PayrollEntry into its DTO."""
    return PayrollInfo(
        id=row.id,
        date=row.date,
        agent=row.agent,
        amount=round_money(Decimal(str(row.amount))),
        comment=row.comment or "",
        currency=row.currency,
        rate=Decimal(str(row.rate)) if row.rate is not None else None,
        cash_movement_id=row.cash_movement_id,
    )


class PayrollSelector(BaseSelector[PayrollEntry]):
    """Queries over the ``paie`` table."""

    def get(self, payroll_id: int) -> PayrollInfo:
        row = self.session.get(PayrollEntry, payroll_id)
        if row is None:
            raise PayrollEntryNotFoundError(payroll_id)
        return to_payroll_info(row)

    def list(self, agent: str | None = None) -> list[PayrollInfo]:
        """All payroll entries, most recent date first, then highest id first."""
        stmt = select(PayrollEntry)
        if agent is not None:
            stmt = stmt.where(PayrollEntry.agent == agent)
        stmt = stmt.order_by(PayrollEntry.date.desc(), PayrollEntry.id.desc())
        return [to_payroll_info(row) for row in self.session.execute(stmt).scalars().all()]
