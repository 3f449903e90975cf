"""
Module: heraclion_kernel.db.engine
Responsibility: The storage client: SQLAlchemy engine and session factory
    ownership, transactional scopes, raw parameterized queries, and the
    bounded retry loop for transient connectivity failures.
Architecture position: Kernel > DB.  May import from db/base.py and
    exceptions.py.  MUST NOT import from services/, selectors/, or outer
    layers (create_tables imports models/ lazily to register tables).

Invariants enforced:
    - No process-wide engine.  Every component receives an explicitly
      constructed StorageClient.
    - Every unit of work is commit-or-rollback: a failed attempt leaves no
      partial writes, so a retried attempt starts from clean state.
    - Only transient failures (connection loss, admin shutdown, too many
      connections, timeouts) are retried, a bounded number of times with a
      fixed delay.  Domain errors are never retried.

Failure modes:
    - FatalStorageError when retries are exhausted or the failure is not
      retryable.  The driver exception is chained for the logs; the message
      carries no SQL.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Callable, Generator, Mapping, TypeVar

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, RowMapping
from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from heraclion_kernel.exceptions import FatalStorageError, TransientStorageError
from heraclion_kernel.logging_config import get_logger

logger = get_logger("db.engine")

T = TypeVar("T")

# PostgreSQL SQLSTATEs worth a retry: connection exceptions (class 08),
# too_many_connections, admin/crash shutdown, cannot_connect_now.
RETRYABLE_SQLSTATES: frozenset[str] = frozenset({
    "08000", "08001", "08003", "08004", "08006",
    "53300",
    "57P01", "57P02", "57P03",
})

_RETRYABLE_MESSAGE_FRAGMENTS = (
    "connection terminated",
    "server closed the connection",
    "could not connect",
    "connection refused",
    "timeout",
    "timed out",
    "database is locked",
)


def is_transient_error(exc: BaseException) -> bool:
    """Classify a SQLAlchemy/driver exception as retryable or not."""
    if isinstance(exc, (DisconnectionError, PoolTimeoutError)):
        return True
    if isinstance(exc, DBAPIError):
        if exc.connection_invalidated:
            return True
        sqlstate = getattr(exc.orig, "pgcode", None) or getattr(exc.orig, "sqlstate", None)
        if sqlstate in RETRYABLE_SQLSTATES:
            return True
    if isinstance(exc, OperationalError):
        message = str(exc.orig if exc.orig is not None else exc).lower()
        return any(fragment in message for fragment in _RETRYABLE_MESSAGE_FRAGMENTS)
    return False


class StorageClient:
    """
    Explicitly constructed handle on the shared relational store.

    Contract:
        - ``execute(sql_text, params)`` runs one parameterized statement in
          its own transaction and returns the rows as mappings.
        - ``transaction(fn)`` runs ``fn(session)`` in one commit-or-rollback
          unit, without retries.
        - ``run(fn, operation=...)`` is ``transaction`` wrapped in the retry
          loop; this is what the component facades use.

    Non-goals:
        - Does NOT retry validation or not-found errors; they propagate
          unchanged on the first attempt.
        - Does NOT add cancellation; timeouts are the driver's.
    """

    def __init__(
        self,
        database_url: str,
        *,
        echo: bool = False,
        pool_size: int = 10,
        max_overflow: int = 5,
        pool_timeout: int = 30,
        pool_recycle: int = 1800,
        max_attempts: int = 3,
        retry_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        engine: Engine | None = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if retry_delay < 0:
            raise ValueError("retry_delay must not be negative")

        self.database_url = database_url
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._sleep = sleep
        self._engine = engine or _create_engine(
            database_url,
            echo=echo,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
        )
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

        logger.info(
            "storage_client_initialized",
            extra={
                "dialect": self._engine.dialect.name,
                "max_attempts": max_attempts,
                "retry_delay": retry_delay,
            },
        )

    @property
    def engine(self) -> Engine:
        return self._engine

    def new_session(self) -> Session:
        return self._session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Transactional scope: commit on normal exit, rollback on exception.

        The exception is re-raised to the caller.
        """
        session = self.new_session()
        logger.debug("transaction_started")
        try:
            yield session
            session.commit()
            logger.debug("transaction_committed")
        except Exception:
            session.rollback()
            logger.debug("transaction_rolled_back")
            raise
        finally:
            session.close()

    def transaction(self, fn: Callable[[Session], T]) -> T:
        """Run ``fn`` inside a single atomic unit of work."""
        with self.session_scope() as session:
            return fn(session)

    def run(self, fn: Callable[[Session], T], *, operation: str = "storage") -> T:
        """
        Run ``fn`` atomically, retrying transient storage failures.

        Each attempt gets a fresh session and transaction.

        Raises:
            FatalStorageError: retries exhausted, or a non-retryable
                storage failure.
            HeraclionError subclasses raised by ``fn``: unchanged.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return self.transaction(fn)
            except SQLAlchemyError as exc:
                if not is_transient_error(exc):
                    logger.error(
                        "storage_operation_failed",
                        extra={"operation": operation, "attempt": attempt},
                        exc_info=True,
                    )
                    raise FatalStorageError(operation, attempt) from exc

                transient = TransientStorageError(operation, attempt)
                transient.__cause__ = exc
                if attempt >= self.max_attempts:
                    logger.error(
                        "storage_retries_exhausted",
                        extra={"operation": operation, "attempts": attempt},
                        exc_info=True,
                    )
                    raise FatalStorageError(operation, attempt) from transient

                logger.warning(
                    "storage_retry",
                    extra={
                        "operation": operation,
                        "attempt": attempt,
                        "max_attempts": self.max_attempts,
                        "delay_seconds": self.retry_delay,
                        "error_type": type(exc).__name__,
                    },
                )
                self._sleep(self.retry_delay)

    def execute(
        self,
        sql_text: str,
        params: Mapping[str, Any] | None = None,
    ) -> list[RowMapping]:
        """Run one parameterized SQL statement; rows come back as mappings."""

        def _execute(session: Session) -> list[RowMapping]:
            result = session.execute(text(sql_text), dict(params or {}))
            if not result.returns_rows:
                return []
            return list(result.mappings().all())

        logger.debug("sql_execute", extra={"sql": sql_text[:100]})
        return self.run(_execute, operation="execute")

    def create_tables(self) -> None:
        """Create every table registered on Base.metadata."""
        from heraclion_kernel.db.base import Base
        import heraclion_kernel.models  # noqa: F401

        Base.metadata.create_all(self._engine)
        logger.info("tables_created", extra={"tables": sorted(Base.metadata.tables)})

    def drop_tables(self) -> None:
        """Drop all tables. Use with caution - primarily for testing."""
        from heraclion_kernel.db.base import Base
        import heraclion_kernel.models  # noqa: F401

        Base.metadata.drop_all(self._engine)

    def dispose(self) -> None:
        self._engine.dispose()


def _create_engine(
    database_url: str,
    *,
    echo: bool,
    pool_size: int,
    max_overflow: int,
    pool_timeout: int,
    pool_recycle: int,
) -> Engine:
    if database_url.startswith("sqlite"):
        if ":memory:" in database_url or database_url.rstrip("/") == "sqlite:":
            engine = create_engine(
                database_url,
                echo=echo,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            engine = create_engine(database_url, echo=echo)
        _enable_sqlite_savepoints(engine)
        return engine

    return create_engine(
        database_url,
        echo=echo,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
        isolation_level="READ COMMITTED",
    )


def _enable_sqlite_savepoints(engine: Engine) -> None:
    """
    Let SQLAlchemy emit BEGIN itself on SQLite.

    pysqlite's own transaction handling breaks SAVEPOINT, which the
    sequence allocator relies on (begin_nested).
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")
