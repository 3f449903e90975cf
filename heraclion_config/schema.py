"""
Heraclion configuration schema.

Frozen dataclasses describing one deployment of the back office.  YAML
files are parsed into these types by ``heraclion_config.loader``; the
runtime only ever sees a ``HeraclionConfig``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection to the shared relational store."""

    url: str = "postgresql://postgres@localhost:5432/heraclion"
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 5
    pool_timeout: int = 30
    pool_recycle: int = 1800


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry of transient storage failures (fixed delay)."""

    max_attempts: int = 3
    delay_seconds: float = 1.0


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NumberingPolicy:
    """Document number layout and accepted year window."""

    counter_width: int = 3
    years_back: int = 20
    years_ahead: int = 5


@dataclass(frozen=True)
class PayrollPolicy:
    """How payroll entries are mirrored into the cash register."""

    label_prefix: str = "Salaire"
    category: str = "Salaire"
    default_currency: str = "USD"


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class HeraclionConfig:
    """Complete configuration of one deployment."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    numbering: NumberingPolicy = field(default_factory=NumberingPolicy)
    payroll: PayrollPolicy = field(default_factory=PayrollPolicy)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
