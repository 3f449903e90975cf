"""
Typed exception hierarchy for the Heraclion kernel.

Every error a caller can receive is a typed subclass of ``HeraclionError``
with a machine-readable ``code`` class attribute and structured attributes,
so that the web layer maps errors by type instead of parsing messages.

    HeraclionError (base)
    |
    +-- InputError                  -- never retried, returned immediately
    |   +-- ValidationError
    |   +-- InvalidArgumentError
    |   +-- DocumentNumberParseError  (alias: ParseError)
    |
    +-- NotFoundError               -- never retried
    |   +-- CashMovementNotFoundError
    |   +-- PayrollEntryNotFoundError
    |   +-- TrashedRecordNotFoundError
    |
    +-- RestoreError
    |   +-- RestoreSchemaError
    |   +-- RestoreConflictError
    |
    +-- StorageError
        +-- TransientStorageError   -- retried by StorageClient.run()
        +-- FatalStorageError       -- retries exhausted or non-retryable

Storage errors keep the driver exception as ``__cause__`` for the internal
logs; their ``message`` never contains SQL text.
"""

from __future__ import annotations

from typing import Any


class HeraclionError(Exception):
    """Base exception for all Heraclion errors."""

    code: str = "HERACLION_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_payload(self) -> dict[str, Any]:
        """Caller-facing representation: the kind and a readable message."""
        return {"code": self.code, "message": self.message}


# Input errors


class InputError(HeraclionError):
    """Base exception for malformed caller input."""

    code: str = "INPUT_ERROR"


class ValidationError(InputError):
    """A required field is missing or cannot be coerced."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid value for '{field}': {reason}")


class InvalidArgumentError(InputError):
    """An argument to a pure numbering/formatting function is out of range."""

    code: str = "INVALID_ARGUMENT"

    def __init__(self, argument: str, value: Any, reason: str):
        self.argument = argument
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid argument '{argument}' ({value!r}): {reason}")


class DocumentNumberParseError(InputError):
    """Text does not follow the PREFIX-YEAR-COUNTER grammar."""

    code: str = "DOCUMENT_NUMBER_PARSE_ERROR"

    def __init__(self, text: Any):
        self.text = text
        super().__init__(
            f"Not a document number (expected PREFIX-YYYY-NNN): {text!r}"
        )


ParseError = DocumentNumberParseError


# Not-found errors


class NotFoundError(HeraclionError):
    """Base exception for a referenced row that does not exist."""

    code: str = "NOT_FOUND"
    entity: str = "record"

    def __init__(self, record_id: Any):
        self.record_id = record_id
        super().__init__(f"{self.entity} not found: {record_id}")


class CashMovementNotFoundError(NotFoundError):
    code: str = "CASH_MOVEMENT_NOT_FOUND"
    entity: str = "Cash movement"


class PayrollEntryNotFoundError(NotFoundError):
    code: str = "PAYROLL_ENTRY_NOT_FOUND"
    entity: str = "Payroll entry"


class TrashedRecordNotFoundError(NotFoundError):
    code: str = "TRASHED_RECORD_NOT_FOUND"
    entity: str = "Trashed record"


# Restore errors


class RestoreError(HeraclionError):
    """Base exception for trash restoration failures."""

    code: str = "RESTORE_ERROR"


class RestoreSchemaError(RestoreError):
    """The trashed payload does not fit the target table's schema."""

    code: str = "RESTORE_SCHEMA_MISMATCH"

    def __init__(self, source_table: str, problems: list[str]):
        self.source_table = source_table
        self.problems = problems
        super().__init__(
            f"Cannot restore into '{source_table}': " + "; ".join(problems)
        )


class RestoreConflictError(RestoreError):
    """The restored row would collide with live data (its id, or a payroll mirror)."""

    code: str = "RESTORE_CONFLICT"

    def __init__(self, source_table: str, record_id: Any, reason: str | None = None):
        self.source_table = source_table
        self.record_id = record_id
        self.reason = reason or f"id {record_id} is in use"
        super().__init__(f"Cannot restore into '{source_table}': {self.reason}")


# Storage errors


class StorageError(HeraclionError):
    """Base exception for failures of the shared database."""

    code: str = "STORAGE_ERROR"


class TransientStorageError(StorageError):
    """Connectivity or timeout failure that may succeed on retry."""

    code: str = "TRANSIENT_STORAGE_ERROR"

    def __init__(self, operation: str, attempt: int):
        self.operation = operation
        self.attempt = attempt
        super().__init__(
            f"Temporary storage failure during {operation} (attempt {attempt})"
        )


class FatalStorageError(StorageError):
    """Storage failure surfaced to the caller; the operation was aborted."""

    code: str = "FATAL_STORAGE_ERROR"

    def __init__(self, operation: str, attempts: int):
        self.operation = operation
        self.attempts = attempts
        super().__init__(
            f"Storage failure during {operation} after {attempts} attempt(s); "
            "no changes were saved"
        )
