"""Database layer - storage client, base classes and column types."""

from heraclion_kernel.db.base import Base, TrackedBase
from heraclion_kernel.db.engine import StorageClient, is_transient_error
from heraclion_kernel.db.types import Currency, Money, Rate

__all__ = [
    "StorageClient",
    "is_transient_error",
    "Base",
    "TrackedBase",
    "Money",
    "Rate",
    "Currency",
]
