"""
Structured JSON logging for Heraclion.

Every record under the ``heraclion`` logger is written as one JSON line:
the fixed keys ``ts``, ``level``, ``logger`` and ``message``, then the
bound request context (``correlation_id``, ``actor``, ``operation``), then
whatever the call site passed in ``extra=``.  Messages are snake_case event
names (``cash_movement_inserted``); the details live in the fields.

Usage::

    logger = get_logger("services.cash_ledger")
    with LogContext.bind(operation="cash.insert", actor="caissier"):
        logger.info("cash_movement_inserted", extra={"cash_movement_id": 7})
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

_ROOT = "heraclion"

_EMPTY: Mapping[str, str] = MappingProxyType({})

_context: ContextVar[Mapping[str, str]] = ContextVar("heraclion_log_context", default=_EMPTY)


class LogContext:
    """
    Request-scoped fields merged into every log line.

    Backed by one ContextVar holding an immutable mapping, so threads and
    asyncio tasks each see their own values.
    """

    FIELDS = ("correlation_id", "actor", "operation")

    @classmethod
    def _merged(cls, values: Mapping[str, Any]) -> Mapping[str, str]:
        current = dict(_context.get())
        for name, value in values.items():
            if name in cls.FIELDS and value is not None:
                current[name] = str(value)
        return MappingProxyType(current)

    @classmethod
    def set(
        cls,
        *,
        correlation_id: str | None = None,
        actor: str | None = None,
        operation: str | None = None,
    ) -> None:
        """Set fields for the rest of the current context; None is ignored."""
        _context.set(
            cls._merged(
                {"correlation_id": correlation_id, "actor": actor, "operation": operation}
            )
        )

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get())

    @classmethod
    def clear(cls) -> None:
        _context.set(_EMPTY)

    @classmethod
    def bind(cls, **fields: Any) -> "_Binding":
        """
        Fields for the duration of a ``with`` block only.

        None values and names outside ``FIELDS`` are skipped.
        """
        return _Binding(fields)


class _Binding:
    def __init__(self, fields: Mapping[str, Any]):
        self._fields = fields
        self._token = None

    def __enter__(self) -> type[LogContext]:
        self._token = _context.set(LogContext._merged(self._fields))
        return LogContext

    def __exit__(self, *exc: Any) -> None:
        _context.reset(self._token)


# Attributes every LogRecord carries; anything else came from ``extra=``.
_RESERVED: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _to_json(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return str(value)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        line.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RESERVED and key not in line
        )

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            line["exc_type"] = type(exc).__name__
            line["exc_message"] = str(exc)
            code = getattr(exc, "code", None)
            if code is not None:
                line["exc_code"] = code
            line["traceback"] = self.formatException(record.exc_info)

        return json.dumps(line, default=_to_json, ensure_ascii=False)


def get_logger(name: str) -> logging.Logger:
    """Logger ``heraclion.<name>``."""
    return logging.getLogger(f"{_ROOT}.{name}")


_state_lock = threading.Lock()
_configured = False


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach one JSON handler to the ``heraclion`` logger.

    Only the first call has an effect until ``reset_logging()``.  Records do
    not propagate to the root logger, so host applications keep their own
    formatting.
    """
    global _configured
    with _state_lock:
        if _configured:
            return
        _configured = True

        if handler is None:
            handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())

        logger = logging.getLogger(_ROOT)
        logger.setLevel(level)
        logger.propagate = False
        logger.addHandler(handler)


def reset_logging() -> None:
    """Drop handlers and allow ``configure_logging`` again. Tests only."""
    global _configured
    with _state_lock:
        _configured = False
        logger = logging.getLogger(_ROOT)
        logger.handlers.clear()
        logger.setLevel(logging.WARNING)
