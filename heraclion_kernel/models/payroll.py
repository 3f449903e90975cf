"""
Module: heraclion_kernel.models.payroll
Responsibility: ORM persistence for payroll ("paie") entries: one salary
    payment to one agent on one date.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - cash_movement_id links the entry to its mirrored cash outflow.  It is
      deliberately NOT a foreign key: the payroll synchronizer is the only
      writer of this link (services/payroll_service.py).
"""

import datetime as dt

from sqlalchemy import Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from heraclion_kernel.db.base import TrackedBase
from heraclion_kernel.db.types import Currency, Money, Rate


class PayrollEntry(TrackedBase):
    """A salary payment recorded in payroll."""

    __tablename__ = "paie"

    __table_args__ = (
        Index("idx_paie_date", "date"),
        Index("idx_paie_agent", "agent"),
        {"sqlite_autoincrement": True},
    )

    date: Mapped[dt.date] = mapped_column(nullable=False)

    agent: Mapped[str] = mapped_column(String(255), nullable=False)

    amount: Mapped[Money] = mapped_column(nullable=False)

    comment: Mapped[str] = mapped_column(String(1000), nullable=False, default="")

    currency: Mapped[Currency] = mapped_column(nullable=False, default="USD")

    # Exchange rate applied when the salary currency differs from the cash box
    rate: Mapped[Rate | None] = mapped_column(nullable=True)

    cash_movement_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<PayrollEntry {self.id} {self.date} '{self.agent}' {self.amount} {self.currency}>"
