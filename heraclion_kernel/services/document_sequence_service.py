"""
DocumentSequenceService -- allocation of PREFIX-YEAR-COUNTER numbers.

Responsibility:
    Hands out the next document number of a (prefix, year) scope from a
    dedicated counter row locked with ``SELECT ... FOR UPDATE``.  Two
    concurrent allocations for the same scope serialize on that row and
    can never receive the same counter.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.  Formatting and
    validation are delegated to the pure domain/numbering.py.

Invariants enforced:
    - The locked counter row is the sole source of truth; the
      aggregate-max-plus-one pattern is never used.
    - The increment is only visible once the caller's transaction
      commits.  A rolled-back allocation is returned to the scope.
    - Prefix and year are validated before the database is touched.

Failure modes:
    - InvalidArgumentError: bad prefix or year outside the accepted window.
    - DocumentNumberParseError: ``observe`` given text outside the grammar.
    - IntegrityError on concurrent first use of a scope is absorbed by a
      savepoint rollback and a re-read of the winner's row.
    - Lookup failures of the store propagate unchanged.

Note:
    SQLite ignores FOR UPDATE; it serializes writers at the database level
    instead, which gives the same guarantee for tests.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from heraclion_kernel.domain.clock import Clock, SystemClock
from heraclion_kernel.domain.numbering import (
    DEFAULT_COUNTER_WIDTH,
    DEFAULT_YEARS_AHEAD,
    DEFAULT_YEARS_BACK,
    generate,
    is_valid_year,
    next_counter,
    parse,
    validate_prefix,
)
from heraclion_kernel.exceptions import InvalidArgumentError
from heraclion_kernel.logging_config import get_logger
from heraclion_kernel.models.sequence import DocumentSequenceCounter
from heraclion_kernel.services.base import BaseService

logger = get_logger("services.document_sequence")


class DocumentSequenceService(BaseService[DocumentSequenceCounter]):
    """
    Transactional document number allocation.

    Usage:
        with storage.session_scope() as session:
            number = DocumentSequenceService(session).next_number("FAC", 2024)
            # "FAC-2024-001" on first use of the scope
    """

    def __init__(
        self,
        session: Session,
        *,
        clock: Clock | None = None,
        width: int = DEFAULT_COUNTER_WIDTH,
        years_back: int = DEFAULT_YEARS_BACK,
        years_ahead: int = DEFAULT_YEARS_AHEAD,
    ):
        super().__init__(session)
        self.clock = clock or SystemClock()
        self.width = width
        self.years_back = years_back
        self.years_ahead = years_ahead

    def _check_scope(self, prefix: str, year: int) -> None:
        validate_prefix(prefix)
        if not is_valid_year(
            year,
            clock=self.clock,
            years_back=self.years_back,
            years_ahead=self.years_ahead,
        ):
            raise InvalidArgumentError("year", year, "outside the accepted year window")

    def _select_counter(self, prefix: str, year: int, *, lock: bool):
        stmt = select(DocumentSequenceCounter).where(
            DocumentSequenceCounter.prefix == prefix,
            DocumentSequenceCounter.year == year,
        )
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.session.execute(stmt).scalar_one_or_none()

    def _lock_counter(self, prefix: str, year: int) -> DocumentSequenceCounter:
        """Locked counter row of the scope, created at 0 on first use."""
        self.session.expire_all()
        counter = self._select_counter(prefix, year, lock=True)
        if counter is not None:
            return counter

        # Another transaction may create the same row concurrently; the
        # savepoint keeps the rest of the caller's work intact.
        savepoint = self.session.begin_nested()
        try:
            counter = DocumentSequenceCounter(prefix=prefix, year=year, current_value=0)
            self.session.add(counter)
            self.session.flush()
            savepoint.commit()
            return counter
        except IntegrityError:
            logger.debug(
                "document_sequence_race_retry",
                extra={"prefix": prefix, "year": year},
            )
            savepoint.rollback()
            self.session.expire_all()
            counter = self._select_counter(prefix, year, lock=True)
            if counter is None:
                raise
            return counter

    def next_number(self, prefix: str, year: int) -> str:
        """
        Allocate the next number of the (prefix, year) scope.

        Returns:
            The formatted number, e.g. ``"FAC-2024-043"`` after 42.
        """
        self._check_scope(prefix, year)
        counter = self._lock_counter(prefix, year)
        counter.current_value = next_counter(counter.current_value)
        self.session.flush()

        number = generate(
            prefix,
            year,
            counter.current_value,
            width=self.width,
            clock=self.clock,
            years_back=self.years_back,
            years_ahead=self.years_ahead,
        )
        logger.info(
            "document_number_allocated",
            extra={"prefix": prefix, "year": year, "counter": counter.current_value},
        )
        return number

    def last_counter(self, prefix: str, year: int) -> int:
        """Last counter handed out for the scope; 0 when none was."""
        validate_prefix(prefix)
        counter = self._select_counter(prefix, year, lock=False)
        return counter.current_value if counter is not None else 0

    def observe(self, number: str) -> int:
        """
        Make sure the scope of an externally issued number never re-issues it.

        Raises the stored counter to at least the counter of ``number``.

        Returns:
            The scope's counter after the call.
        """
        parsed = parse(number)
        counter = self._lock_counter(parsed.prefix, parsed.year)
        if parsed.counter > counter.current_value:
            counter.current_value = parsed.counter
            self.session.flush()
            logger.info(
                "document_number_observed",
                extra={"prefix": parsed.prefix, "year": parsed.year, "counter": parsed.counter},
            )
        return counter.current_value
