"""
Module: heraclion_kernel.models.sequence
Responsibility: Per-(prefix, year) counter rows backing document number
    allocation.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - One row per (prefix, year) (uq_document_sequence_scope).
    - current_value is the last counter handed out for the scope; the
      allocator increments it under a row lock, never via MAX(...) + 1.
"""

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from heraclion_kernel.db.base import Base


class DocumentSequenceCounter(Base):
    """Last allocated counter for one numbering scope."""

    __tablename__ = "document_sequences"

    __table_args__ = (
        UniqueConstraint("prefix", "year", name="uq_document_sequence_scope"),
    )

    prefix: Mapped[str] = mapped_column(String(50), nullable=False)

    year: Mapped[int] = mapped_column(Integer, nullable=False)

    current_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
