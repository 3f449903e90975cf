"""
Module: heraclion_kernel.db.base
Responsibility: Declarative base classes for all SQLAlchemy ORM models.  Provides
    the integer primary key convention, the type annotation map for consistent
    column types, and the TrackedBase mixin for audit timestamps.
Architecture position: Kernel > DB.  Lowest-level import target within the
    kernel.  ALL model files import from here.  This module MUST NOT import
    from models/, services/, selectors/, or domain/.

Invariants enforced:
    - Integer, database-generated primary keys.  Ids ascend with insertion
      order, which is what the ledger uses as its stable tie-break.
    - Decimal maps to Numeric(18, 2).  NEVER use float for monetary amounts.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, ClassVar

from sqlalchemy import Date, DateTime, Integer, Numeric, String, func, inspect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from heraclion_kernel.db.types import Currency, Money, Rate


class Base(DeclarativeBase):
    """
    Declarative base for all Heraclion models.

    Guarantees:
        - id is an autoincrementing Integer primary key.
        - Decimal maps to Numeric(18, 2), date to Date, datetime to a
          timezone-aware DateTime; the Money, Rate and Currency aliases of
          db/types.py to their own column types.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(18, 2),
        date: Date,
        datetime: DateTime(timezone=True),
        Money: Numeric(18, 2),
        Rate: Numeric(18, 6),
        Currency: String(3),
    }

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    def to_dict(self) -> dict[str, Any]:
        """Column values keyed by column name (used for trash payloads)."""
        mapper = inspect(type(self))
        return {col.key: getattr(self, col.key) for col in mapper.column_attrs}


class TrackedBase(Base):
    """
    Abstract base with creation/modification timestamps.

    ``created_at`` is set by the database on INSERT; ``updated_at`` is
    refreshed on every UPDATE.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
