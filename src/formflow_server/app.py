"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that loads the form schemas and builds the service
  - CORS middleware
  - Global exception handlers (formflow errors and ValueError → HTTP codes)
  - All API routes mounted under ``/api/v1``
  - A ``/health`` endpoint for readiness probes

The ``cli()`` function is the ``formflow-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from formflow.store import SchemaStore
from formflow_db.engine import dispose_engine, get_engine

from formflow_server.config import ServerSettings, load_settings
from formflow_server.errors import install_error_handlers
from formflow_server.routes import register_routes
from formflow_server.service import ApplicationService

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Lifespan: runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Load schemas and build the service at startup; dispose the pool on shutdown."""
    settings: ServerSettings = app.state.settings

    store = SchemaStore(forms_dir=settings.forms_dir, active_form=settings.active_form)
    store.load()
    active = store.active()
    logger.info("Active form: %s v%s", active.name, active.version)

    app.state.store = store
    app.state.service = ApplicationService(
        store,
        options=settings.session_options,
        platforms=settings.platforms,
    )

    yield

    await dispose_engine()
    logger.info("Database engine disposed")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Build and return the configured FastAPI application."""
    if settings is None:
        settings = load_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Formflow API Server",
        description="Backend for conversational form applications",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_error_handlers(app)

    @app.get("/health")
    async def health() -> dict:
        """Readiness probe: verifies DB connectivity."""
        try:
            async with get_engine().connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {"status": "ok"}
        except Exception as exc:
            logger.error("Health check failed: %s", exc)
            return {"status": "error", "detail": str(exc)}

    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn formflow_server.app:app)
# ------------------------------------------------------------------
app = create_app()


def cli() -> None:
    """Console-script entry point: ``formflow-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "formflow_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
