"""Database configuration: reads connection parameters from environment.

Supports two modes:
1. A single ``DATABASE_URL`` env var (takes precedence).
2. Individual ``PG_HOST``, ``PG_PORT``, ``PG_USER``, ``PG_PASSWORD``,
   ``PG_DATABASE`` env vars (convenient for docker-compose).

Alembic uses ``get_sync_url()``; the runtime engine uses ``get_async_url()``.
"""

import os

_ASYNC_PREFIX = "postgresql+asyncpg://"


def _build_url_from_parts() -> str:
    host = os.getenv("PG_HOST", "localhost")
    port = os.getenv("PG_PORT", "5432")
    user = os.getenv("PG_USER", "formflow")
    password = os.getenv("PG_PASSWORD", "formflow")
    database = os.getenv("PG_DATABASE", "formflow")
    return f"postgresql://{user}:{password}@{host}:{port}/{database}"


def get_sync_url() -> str:
    """Connection URL without an async driver, for Alembic."""
    url = os.getenv("DATABASE_URL") or _build_url_from_parts()
    return url.replace(_ASYNC_PREFIX, "postgresql://")


def get_async_url() -> str:
    """asyncpg connection URL for the SQLAlchemy async engine."""
    url = os.getenv("DATABASE_URL") or _build_url_from_parts()
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", _ASYNC_PREFIX, 1)
    return url


def get_pool_options() -> dict[str, int]:
    """Pool sizing from ``PG_POOL_SIZE`` / ``PG_MAX_OVERFLOW``."""
    return {
        "pool_size": int(os.getenv("PG_POOL_SIZE", "5")),
        "max_overflow": int(os.getenv("PG_MAX_OVERFLOW", "10")),
    }
