"""
Module: heraclion_kernel.models.trash
Responsibility: The generic trash ("corbeille"): snapshots of deleted rows,
    tagged with the table they came from, so they can be reviewed and
    restored.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - payload is a JSON object holding every column of the deleted row,
      serialized with ISO dates and string decimals (services/trash_service.py).
    - A trashed row is written BEFORE the live row is deleted, in the same
      transaction.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from heraclion_kernel.db.base import Base


class TrashedRecord(Base):
    """Snapshot of a deleted row: {source_table, payload, deleted_by, deleted_at}."""

    __tablename__ = "corbeille"

    __table_args__ = (
        Index("idx_corbeille_source_table", "source_table"),
        Index("idx_corbeille_deleted_at", "deleted_at"),
    )

    source_table: Mapped[str] = mapped_column(String(100), nullable=False)

    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    # Username of the acting user; NULL for system deletions
    deleted_by: Mapped[str | None] = mapped_column(String(100), nullable=True)

    deleted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
