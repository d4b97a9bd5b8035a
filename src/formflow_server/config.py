"""Server configuration: reads settings from environment variables.

All settings have defaults for local development; deployments override
them with ``SERVER_*`` env vars.  Session behaviour flags come from
``formflow.config.load_session_options`` (``FORMFLOW_*``).
"""

import os
from dataclasses import dataclass, field

from formflow.config import SessionOptions, load_session_options

# Read at import time so FastAPI Query() defaults can reference them
DEFAULT_PAGE_LIMIT = int(os.getenv("DEFAULT_PAGE_LIMIT", "20"))
MAX_PAGE_LIMIT = int(os.getenv("MAX_PAGE_LIMIT", "100"))


@dataclass(frozen=True)
class ServerSettings:
    """Immutable server configuration read from environment at startup."""

    # Network
    host: str = "0.0.0.0"
    port: int = 8080

    # CORS: comma-separated origins, or "*" for wide-open dev mode
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # Schema directory (None → SchemaStore default, forms/ at the repo root)
    forms_dir: str | None = None
    # Schema served as "active" (None → the only loaded schema)
    active_form: str | None = None

    # Platform tags accepted by POST /sessions
    platforms: tuple[str, ...] = ("web", "miniapp")

    # Logging
    log_level: str = "INFO"

    # Engine behaviour for the step API
    session_options: SessionOptions = field(default_factory=SessionOptions)


def load_settings() -> ServerSettings:
    """Build settings from ``SERVER_*`` environment variables."""
    raw_origins = os.getenv("SERVER_CORS_ORIGINS", "*")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    raw_platforms = os.getenv("SERVER_PLATFORMS", "web,miniapp")
    platforms = tuple(p.strip() for p in raw_platforms.split(",") if p.strip())

    return ServerSettings(
        host=os.getenv("SERVER_HOST", "0.0.0.0"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        cors_origins=origins,
        forms_dir=os.getenv("SERVER_FORMS_DIR") or None,
        active_form=os.getenv("SERVER_ACTIVE_FORM") or None,
        platforms=platforms,
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
        session_options=load_session_options(),
    )
