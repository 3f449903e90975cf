"""
TrashService -- copy-then-delete into the generic trash, and restoration.

Responsibility:
    Soft deletion for every restorable table: the full row is snapshotted
    into ``corbeille`` as a JSON payload tagged with its source table and
    the acting user, then the live row is deleted.  Restoration validates
    the payload against the target table's schema before reinserting it
    under its original id.

Architecture position:
    Kernel > Services -- imperative shell.  Called by CashLedgerService and
    PayrollService for deletes, and by the Trash facade for listing and
    restore.

Invariants enforced:
    - The trash row is written BEFORE the live row is deleted, in the
      caller's transaction: a failure leaves both or neither.
    - Payloads hold JSON-safe values only (ISO dates, string decimals).
    - A restore never overwrites a live row and never inserts a payload
      carrying unknown columns or values the column type cannot hold.
    - A restored payroll mirror never gives its payroll entry a second live
      mirror.

Failure modes:
    - RestoreSchemaError: unknown source table or payload/schema mismatch.
    - RestoreConflictError: the original id is taken by a live row, or the
      payroll entry of a restored mirror already has a live one.
    - TrashedRecordNotFoundError: no trash entry with that id.
    - ValidationError: bad pagination arguments.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from sqlalchemy import func, inspect, select

from heraclion_kernel.db.base import Base
from heraclion_kernel.domain.dtos import TrashedRecordInfo, TrashPage
from heraclion_kernel.domain.payroll import payroll_id_from_reference
from heraclion_kernel.domain.values import CashKind
from heraclion_kernel.exceptions import (
    RestoreConflictError,
    RestoreSchemaError,
    TrashedRecordNotFoundError,
    ValidationError,
)
from heraclion_kernel.logging_config import get_logger
from heraclion_kernel.models.cash_movement import CashMovement
from heraclion_kernel.models.payroll import PayrollEntry
from heraclion_kernel.models.trash import TrashedRecord
from heraclion_kernel.services.base import BaseService

logger = get_logger("services.trash")

# Tables whose rows can be trashed and restored
RESTORABLE_MODELS: dict[str, type[Base]] = {
    CashMovement.__tablename__: CashMovement,
    PayrollEntry.__tablename__: PayrollEntry,
}

# Columns whose stored strings are restricted to an enumeration
_ENUM_COLUMNS: dict[tuple[str, str], type[Enum]] = {
    (CashMovement.__tablename__, "kind"): CashKind,
}

MAX_PAGE_SIZE = 100


def serialize_value(value: Any) -> Any:
    """JSON-safe rendering of one column value."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


def snapshot(instance: Base) -> dict[str, Any]:
    return {key: serialize_value(value) for key, value in instance.to_dict().items()}


def _coerce(python_type: type, value: Any) -> Any:
    """Convert a payload value back to ``python_type``; ValueError if it cannot."""
    if python_type is bool:
        if isinstance(value, bool):
            return value
        raise ValueError(f"expected a boolean, got {value!r}")
    if python_type is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"expected an integer, got {value!r}")
        return value
    if python_type is Decimal:
        if isinstance(value, bool):
            raise ValueError(f"expected a number, got {value!r}")
        try:
            result = Decimal(str(value))
        except InvalidOperation as exc:
            raise ValueError(f"expected a number, got {value!r}") from exc
        if not result.is_finite():
            raise ValueError(f"expected a finite number, got {value!r}")
        return result
    if python_type is datetime:
        if not isinstance(value, str):
            raise ValueError(f"expected an ISO timestamp, got {value!r}")
        return datetime.fromisoformat(value)
    if python_type is date:
        if not isinstance(value, str):
            raise ValueError(f"expected an ISO date, got {value!r}")
        return date.fromisoformat(value[:10])
    if python_type is str:
        if not isinstance(value, str):
            raise ValueError(f"expected a string, got {value!r}")
        return value
    return value


def validate_payload(source_table: str, payload: Any) -> dict[str, Any]:
    """
    Check ``payload`` against the schema of ``source_table``.

    Returns the column values converted to their Python types.

    Raises:
        RestoreSchemaError: listing every problem found.
    """
    model = RESTORABLE_MODELS.get(source_table)
    if model is None:
        raise RestoreSchemaError(source_table, ["table is not restorable"])
    if not isinstance(payload, dict):
        raise RestoreSchemaError(source_table, ["payload is not an object"])

    table = model.__table__
    problems: list[str] = []

    unknown = sorted(set(payload) - set(table.columns.keys()))
    if unknown:
        problems.append(f"unknown column(s): {', '.join(unknown)}")

    values: dict[str, Any] = {}
    for column in table.columns:
        value = payload.get(column.key)
        if value is None:
            required = column.primary_key or (
                not column.nullable
                and column.default is None
                and column.server_default is None
            )
            if required:
                problems.append(f"missing required column '{column.key}'")
            elif column.key in payload and not column.nullable:
                problems.append(f"column '{column.key}' may not be null")
            continue

        try:
            coerced = _coerce(column.type.python_type, value)
            length = getattr(column.type, "length", None)
            if isinstance(coerced, str) and length is not None and len(coerced) > length:
                raise ValueError(f"longer than {length} characters")
            enum_type = _ENUM_COLUMNS.get((source_table, column.key))
            if enum_type is not None:
                coerced = enum_type(coerced).value
        except (ValueError, TypeError) as exc:
            problems.append(f"column '{column.key}': {exc}")
            continue
        values[column.key] = coerced

    if problems:
        raise RestoreSchemaError(source_table, problems)
    return values


class TrashService(BaseService[TrashedRecord]):
    """Soft delete, listing and restoration of trashed rows."""

    def _to_dto(self, record: TrashedRecord) -> TrashedRecordInfo:
        return TrashedRecordInfo(
            id=record.id,
            source_table=record.source_table,
            payload=dict(record.payload),
            deleted_by=record.deleted_by,
            deleted_at=record.deleted_at,
        )

    def trash(
        self,
        source_table: str,
        instance: Base,
        deleted_by: str | None = None,
    ) -> TrashedRecordInfo:
        """
        Snapshot ``instance`` into the trash, then delete it.

        Preconditions:
            ``instance`` is a persistent row of ``source_table``.
        """
        if RESTORABLE_MODELS.get(source_table) is not type(instance):
            raise ValueError(
                f"{type(instance).__name__} is not stored in '{source_table}'"
            )

        record = TrashedRecord(
            source_table=source_table,
            payload=snapshot(instance),
            deleted_by=deleted_by,
        )
        self.session.add(record)
        self.session.flush()

        self.session.delete(instance)
        self.session.flush()

        logger.info(
            "record_trashed",
            extra={
                "source_table": source_table,
                "record_id": instance.id,
                "trash_id": record.id,
                "deleted_by": deleted_by,
            },
        )
        return self._to_dto(record)

    def get(self, trash_id: int) -> TrashedRecordInfo:
        record = self.session.get(TrashedRecord, trash_id)
        if record is None:
            raise TrashedRecordNotFoundError(trash_id)
        return self._to_dto(record)

    def list(
        self,
        source_table: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> TrashPage:
        """One page of trashed rows, most recently deleted first."""
        if isinstance(page, bool) or not isinstance(page, int) or page < 1:
            raise ValidationError("page", "must be an integer >= 1")
        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError("limit", f"must be an integer between 1 and {MAX_PAGE_SIZE}")

        count_stmt = select(func.count()).select_from(TrashedRecord)
        stmt = select(TrashedRecord)
        if source_table is not None:
            count_stmt = count_stmt.where(TrashedRecord.source_table == source_table)
            stmt = stmt.where(TrashedRecord.source_table == source_table)

        total = self.session.execute(count_stmt).scalar_one()
        stmt = (
            stmt.order_by(TrashedRecord.deleted_at.desc(), TrashedRecord.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        records = self.session.execute(stmt).scalars().all()
        return TrashPage(
            items=tuple(self._to_dto(r) for r in records),
            total=total,
            page=page,
            limit=limit,
        )

    def _relink_payroll_mirror(self, values: dict[str, Any]) -> None:
        """
        Keep one live mirror per payroll entry when a mirror comes back.

        A payroll entry already mirrored by another live movement refuses the
        restore; one whose mirror is gone is linked to the restored movement.
        """
        payroll_id = payroll_id_from_reference(values.get("reference_document"))
        if payroll_id is None:
            return
        payroll = self.session.get(PayrollEntry, payroll_id)
        if payroll is None or payroll.cash_movement_id == values["id"]:
            return

        current = payroll.cash_movement_id
        if current is not None and self.session.get(CashMovement, current) is not None:
            raise RestoreConflictError(
                CashMovement.__tablename__,
                values["id"],
                f"payroll entry {payroll_id} is already mirrored by movement {current}",
            )
        payroll.cash_movement_id = values["id"]
        logger.info(
            "payroll_mirror_relinked",
            extra={"payroll_id": payroll_id, "cash_movement_id": values["id"]},
        )

    def restore(self, trash_id: int) -> dict[str, Any]:
        """
        Reinsert a trashed row under its original id and drop the trash entry.

        Returns:
            The restored row as a JSON-safe dict.
        """
        record = self.session.get(TrashedRecord, trash_id)
        if record is None:
            raise TrashedRecordNotFoundError(trash_id)

        values = validate_payload(record.source_table, record.payload)
        model = RESTORABLE_MODELS[record.source_table]

        if self.session.get(model, values["id"]) is not None:
            raise RestoreConflictError(record.source_table, values["id"])
        if model is CashMovement:
            self._relink_payroll_mirror(values)

        restored = model(**values)
        self.session.add(restored)
        self.session.flush()

        self.session.delete(record)
        self.session.flush()

        logger.info(
            "record_restored",
            extra={
                "source_table": record.source_table,
                "record_id": restored.id,
                "trash_id": trash_id,
            },
        )
        return snapshot(restored)
