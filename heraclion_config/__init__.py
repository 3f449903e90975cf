"""
heraclion_config -- single public entrypoint for configuration.

Responsibility:
    ``get_active_config()`` is the ONLY way runtime code obtains its
    configuration.  It loads the packaged defaults, overlays the file named
    by ``HERACLION_CONFIG`` (or the ``path`` argument) and applies the
    environment overrides:

        HERACLION_CONFIG        deployment YAML file
        HERACLION_DATABASE_URL  replaces database.url
        HERACLION_LOG_LEVEL     replaces logging.level

Architecture position:
    Configuration -- sits above ``heraclion_kernel`` and below
    ``heraclion_services``.  The kernel MUST NEVER import from this package.

Failure modes:
    - ``FileNotFoundError`` -- the named configuration file does not exist.
    - ``ValueError`` -- unknown keys, wrong types or out-of-range values.
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, replace
from pathlib import Path
from typing import Mapping

from heraclion_config.loader import load_config, parse_config
from heraclion_config.schema import (
    DatabaseConfig,
    HeraclionConfig,
    LoggingConfig,
    NumberingPolicy,
    PayrollPolicy,
    RetryPolicy,
)

__all__ = [
    "DatabaseConfig",
    "HeraclionConfig",
    "LoggingConfig",
    "NumberingPolicy",
    "PayrollPolicy",
    "RetryPolicy",
    "get_active_config",
    "load_config",
    "parse_config",
]

_logger = logging.getLogger("heraclion.config")

ENV_CONFIG_PATH = "HERACLION_CONFIG"
ENV_DATABASE_URL = "HERACLION_DATABASE_URL"
ENV_LOG_LEVEL = "HERACLION_LOG_LEVEL"


def get_active_config(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> HeraclionConfig:
    """The ONLY public configuration entrypoint.

    Args:
        path: Deployment file; defaults to ``$HERACLION_CONFIG`` when set.
        environ: Environment to read overrides from (``os.environ`` by
            default).

    Returns:
        A validated, frozen ``HeraclionConfig``.
    """
    env = os.environ if environ is None else environ
    config = load_config(path or env.get(ENV_CONFIG_PATH) or None)

    url = env.get(ENV_DATABASE_URL)
    if url:
        config = replace(config, database=replace(config.database, url=url))

    level = env.get(ENV_LOG_LEVEL)
    if level:
        overridden = replace(config, logging=replace(config.logging, level=level.upper()))
        # Re-validate: the override went around the YAML checks
        config = parse_config(asdict(overridden))

    _logger.info(
        "config_activated",
        extra={
            "dialect": config.database.url.split(":", 1)[0],
            "max_attempts": config.retry.max_attempts,
            "log_level": config.logging.level,
        },
    )
    return config
