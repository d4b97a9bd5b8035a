"""FastAPI dependency injection: DB sessions, the schema store and the service.

``get_db()`` is the transaction boundary: the repository only flushes,
this dependency commits on success and rolls back on error.
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from formflow.store import SchemaStore
from formflow_db.engine import get_session_factory

from formflow_server.service import ApplicationService


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_service(request: Request) -> ApplicationService:
    """Return the ApplicationService built during lifespan."""
    return request.app.state.service


def get_store(request: Request) -> SchemaStore:
    return request.app.state.store
