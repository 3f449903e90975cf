"""
Configuration Loader (``heraclion_config.loader``).

Responsibility
--------------
Loads YAML configuration files and parses them into the frozen
``heraclion_config.schema`` dataclasses.  The packaged ``defaults.yaml``
is the baseline; a deployment file only overrides the keys it names.

Invariants enforced
-------------------
* Unknown sections and unknown keys are errors, never ignored.
* Values are type-checked (``bool`` is not accepted where an ``int`` is
  expected) and range-checked before a ``HeraclionConfig`` is built.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown key, wrong type or out-of-range value  -> ``ValueError``.
"""

from __future__ import annotations

import logging
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from heraclion_config.schema import (
    DatabaseConfig,
    HeraclionConfig,
    LoggingConfig,
    NumberingPolicy,
    PayrollPolicy,
    RetryPolicy,
)
from heraclion_kernel.db.types import InvalidCurrencyError, validate_currency

DEFAULTS_FILE = Path(__file__).parent / "defaults.yaml"

_SECTIONS: dict[str, type] = {
    "database": DatabaseConfig,
    "retry": RetryPolicy,
    "numbering": NumberingPolicy,
    "payroll": PayrollPolicy,
    "logging": LoggingConfig,
}

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Section-wise merge: keys of ``override`` win, sections are merged."""
    merged = {key: dict(value) if isinstance(value, dict) else value for key, value in base.items()}
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def _check_type(section: str, key: str, value: Any, expected: type) -> Any:
    where = f"{section}.{key}"
    if expected is bool:
        if not isinstance(value, bool):
            raise ValueError(f"{where}: expected true/false, got {value!r}")
        return value
    if expected is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{where}: expected an integer, got {value!r}")
        return value
    if expected is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{where}: expected a number, got {value!r}")
        return float(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{where}: expected a non-empty string, got {value!r}")
    return value.strip()


def parse_section(section: str, data: Any) -> Any:
    """Parse one section mapping into its dataclass."""
    cls = _SECTIONS[section]
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ValueError(f"{section}: expected a mapping, got {type(data).__name__}")

    declared = {f.name: f for f in fields(cls)}
    unknown = sorted(set(data) - set(declared))
    if unknown:
        raise ValueError(f"{section}: unknown key(s): {', '.join(unknown)}")

    defaults = cls()
    values = {}
    for key, value in data.items():
        expected = type(getattr(defaults, key))
        values[key] = _check_type(section, key, value, expected)
    return cls(**values)


def _validate(config: HeraclionConfig) -> None:
    errors: list[str] = []
    db = config.database
    if db.pool_size < 1:
        errors.append("database.pool_size must be >= 1")
    if db.max_overflow < 0:
        errors.append("database.max_overflow must be >= 0")
    if db.pool_timeout < 1:
        errors.append("database.pool_timeout must be >= 1")
    if config.retry.max_attempts < 1:
        errors.append("retry.max_attempts must be >= 1")
    if config.retry.delay_seconds < 0:
        errors.append("retry.delay_seconds must be >= 0")
    if config.numbering.counter_width < 1:
        errors.append("numbering.counter_width must be >= 1")
    if config.numbering.years_back < 0 or config.numbering.years_ahead < 0:
        errors.append("numbering year window must not be negative")
    try:
        validate_currency(config.payroll.default_currency)
    except InvalidCurrencyError as exc:
        errors.append(f"payroll.default_currency: {exc}")
    if config.logging.level.upper() not in _LOG_LEVELS:
        errors.append(f"logging.level must be one of {', '.join(_LOG_LEVELS)}")
    if errors:
        raise ValueError(
            "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        )


def parse_config(data: dict[str, Any]) -> HeraclionConfig:
    """Build and validate a ``HeraclionConfig`` from a (merged) mapping."""
    unknown = sorted(set(data) - set(_SECTIONS))
    if unknown:
        raise ValueError(f"unknown configuration section(s): {', '.join(unknown)}")
    config = HeraclionConfig(
        **{section: parse_section(section, data.get(section)) for section in _SECTIONS}
    )
    _validate(config)
    return config


def load_config(path: Path | str | None = None) -> HeraclionConfig:
    """
    Load the defaults, overlay ``path`` when given, and validate.

    Args:
        path: Deployment YAML file.  None loads the defaults alone.
    """
    data = load_yaml_file(DEFAULTS_FILE)
    if path is not None:
        data = merge(data, load_yaml_file(Path(path)))
    config = parse_config(data)
    logging.getLogger("heraclion.config").debug(
        "config_loaded",
        extra={"config_path": str(path) if path is not None else None},
    )
    return config
