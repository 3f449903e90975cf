"""Trash -- listing and restoring soft-deleted rows."""

from __future__ import annotations

from typing import Any

from heraclion_kernel.db.engine import StorageClient
from heraclion_kernel.domain.dtos import TrashedRecordInfo, TrashPage
from heraclion_kernel.logging_config import LogContext
from heraclion_kernel.services.trash_service import TrashService


class Trash:
    def __init__(self, storage: StorageClient):
        self._storage = storage

    def list(
        self,
        source_table: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> TrashPage:
        return self._storage.run(
            lambda session: TrashService(session).list(source_table, page, limit),
            operation="trash.list",
        )

    def get(self, trash_id: int) -> TrashedRecordInfo:
        return self._storage.run(
            lambda session: TrashService(session).get(trash_id),
            operation="trash.get",
        )

    def restore(self, trash_id: int) -> dict[str, Any]:
        """Reinsert a trashed row under its original id."""
        with LogContext.bind(operation="trash.restore"):
            return self._storage.run(
                lambda session: TrashService(session).restore(trash_id),
                operation="trash.restore",
            )
