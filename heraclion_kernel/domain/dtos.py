"""
DTOs -- immutable data returned by services and selectors.

Kernel > Domain, pure.  Services convert ORM rows into these types at the
persistence boundary; callers never receive ORM instances.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from heraclion_kernel.domain.values import CashKind


@dataclass(frozen=True)
class CashMovementInfo:
    id: int
    date_operation: date
    label: str
    kind: CashKind
    amount: Decimal
    category: str | None
    reference_document: str | None
    archived: bool

    @property
    def is_outflow(self) -> bool:
        return self.kind is CashKind.SORTIE


@dataclass(frozen=True)
class PayrollInfo:
    id: int
    date: date
    agent: str
    amount: Decimal
    comment: str
    currency: str
    rate: Decimal | None
    cash_movement_id: int | None


@dataclass(frozen=True)
class PayrollRecord:
    """A payroll entry together with its mirrored cash outflow."""

    payroll: PayrollInfo
    cash_movement: CashMovementInfo


@dataclass(frozen=True)
class TrashedRecordInfo:
    id: int
    source_table: str
    payload: dict[str, Any]
    deleted_by: str | None
    deleted_at: datetime


@dataclass(frozen=True)
class TrashPage:
    items: tuple[TrashedRecordInfo, ...]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit) if self.limit else 0
