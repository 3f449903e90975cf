"""DocumentNumbering -- transactional allocation of document numbers."""

from __future__ import annotations

from sqlalchemy.orm import Session

from heraclion_config import NumberingPolicy
from heraclion_kernel.db.engine import StorageClient
from heraclion_kernel.domain.clock import Clock, SystemClock
from heraclion_kernel.services.document_sequence_service import DocumentSequenceService


class DocumentNumbering:
    """
    Allocates PREFIX-YEAR-COUNTER numbers, one committed counter at a time.

    Two concurrent ``allocate("FAC", 2024)`` calls never return the same
    number: each runs in its own transaction on the locked counter row.
    """

    def __init__(
        self,
        storage: StorageClient,
        policy: NumberingPolicy | None = None,
        clock: Clock | None = None,
    ):
        self._storage = storage
        self.policy = policy or NumberingPolicy()
        self.clock = clock or SystemClock()

    def _service(self, session: Session) -> DocumentSequenceService:
        return DocumentSequenceService(
            session,
            clock=self.clock,
            width=self.policy.counter_width,
            years_back=self.policy.years_back,
            years_ahead=self.policy.years_ahead,
        )

    def allocate(self, prefix: str, year: int | None = None) -> str:
        """Next number of the scope; ``year`` defaults to the current year."""
        if year is None:
            year = self.clock.today().year
        return self._storage.run(
            lambda session: self._service(session).next_number(prefix, year),
            operation="numbering.allocate",
        )

    def last_counter(self, prefix: str, year: int) -> int:
        return self._storage.run(
            lambda session: self._service(session).last_counter(prefix, year),
            operation="numbering.last_counter",
        )

    def observe(self, number: str) -> int:
        """Record an externally issued number so it is never allocated again."""
        return self._storage.run(
            lambda session: self._service(session).observe(number),
            operation="numbering.observe",
        )
