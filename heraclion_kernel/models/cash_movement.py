"""
Module: heraclion_kernel.models.cash_movement
Responsibility: ORM persistence for cash register ("caisse") movements: dated,
    signed monetary entries and exits of the company cash box.
Architecture position: Kernel > Models.  May import from db/ and
    domain/values.py only.

Invariants enforced:
    - kind is ENTREE or SORTIE; the amount sign follows the kind
      (SORTIE <= 0, ENTREE >= 0).  The sign is normalized at the input
      boundary (domain/cash.py), the model only stores it.
    - archived is a flag, never a delete.  Archived rows still count in the
      balance.

Failure modes:
    - IntegrityError on a NULL date, label, kind or amount.
"""

from datetime import date

from sqlalchemy import Boolean, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from heraclion_kernel.db.base import TrackedBase
from heraclion_kernel.db.types import Money
from heraclion_kernel.domain.values import CashKind


class CashMovement(TrackedBase):
    """
    One dated movement of the cash register.

    Payroll-derived movements carry category "Salaire" and a
    reference_document of the form "PAIE-<payroll id>".
    """

    __tablename__ = "caisse"

    __table_args__ = (
        Index("idx_caisse_date_id", "date_operation", "id"),
        Index("idx_caisse_kind", "kind"),
        Index("idx_caisse_archived", "archived"),
        {"sqlite_autoincrement": True},
    )

    date_operation: Mapped[date] = mapped_column(nullable=False)

    label: Mapped[str] = mapped_column(String(255), nullable=False)

    kind: Mapped[CashKind] = mapped_column(String(10), nullable=False)

    amount: Mapped[Money] = mapped_column(nullable=False)

    category: Mapped[str | None] = mapped_column(String(100), nullable=True)

    reference_document: Mapped[str | None] = mapped_column(String(100), nullable=True)

    archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return (
            f"<CashMovement {self.id} {self.date_operation} {self.kind} "
            f"{self.amount} '{self.label}'>"
        )
