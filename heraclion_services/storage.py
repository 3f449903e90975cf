"""Construction of the StorageClient from configuration."""

from __future__ import annotations

from heraclion_config import HeraclionConfig, get_active_config
from heraclion_kernel.db.engine import StorageClient


def build_storage(config: HeraclionConfig | None = None, **overrides) -> StorageClient:
    """
    Build the StorageClient described by ``config``.

    Args:
        config: Defaults to ``get_active_config()``.
        **overrides: Extra StorageClient keyword arguments (``sleep``,
            ``engine``) for tests and scripts.
    """
    config = config or get_active_config()
    db = config.database
    return StorageClient(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        pool_recycle=db.pool_recycle,
        max_attempts=config.retry.max_attempts,
        retry_delay=config.retry.delay_seconds,
        **overrides,
    )
