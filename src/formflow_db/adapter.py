"""DatabasePersistenceAdapter: stores applications directly in PostgreSQL.

Hosts that run the SDK next to the database can skip the HTTP hop.  Each
adapter call runs in its own transaction: open a session from the
factory, use :class:`ApplicationRepository`, commit.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from formflow.errors import PersistenceError, SubmissionError
from formflow.interfaces import PersistenceAdapter
from formflow.models.schema import FormSchema

from formflow_db.engine import get_session_factory
from formflow_db.models.application import Application
from formflow_db.repository import ApplicationRepository

logger = logging.getLogger(__name__)


class DatabasePersistenceAdapter(PersistenceAdapter):
    """Persistence adapter backed by the ``applications`` table.

    Args:
        schema: the schema new applications are created for
        session_factory: async session factory; defaults to the shared one
    """

    def __init__(
        self,
        schema: FormSchema,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> None:
        self._schema = schema
        self._session_factory = session_factory
        self._repo = ApplicationRepository()

    async def load_schema(self) -> FormSchema:
        return self._schema

    async def create_session(self, platform: str) -> str:
        async with self._transaction("create_session") as db:
            app = await self._repo.create_application(
                db,
                platform=platform,
                schema_name=self._schema.name,
                schema_version=self._schema.version,
            )
            return str(app.id)

    async def load_answers(self, application_id: str) -> dict[str, Any]:
        async with self._transaction("load_answers") as db:
            app = await self._get(db, application_id, "load_answers")
            return dict(app.answers)

    async def save_answers(self, application_id: str, answers: dict[str, Any]) -> None:
        async with self._transaction("save_answers") as db:
            app = await self._get(db, application_id, "save_answers")
            if app.is_submitted:
                raise PersistenceError(
                    f"Application {application_id} is already submitted",
                    operation="save_answers",
                    retryable=False,
                )
            await self._repo.save_answers(db, app, answers)

    async def submit(self, application_id: str) -> None:
        async with self._transaction("submit", error_cls=SubmissionError) as db:
            app = await self._get(db, application_id, "submit")
            if app.is_submitted:
                raise SubmissionError(
                    f"Application {application_id} is already submitted",
                    operation="submit",
                    retryable=False,
                )
            await self._repo.mark_submitted(db, app)
        logger.info("Application %s submitted", application_id)

    async def link_file(
        self,
        application_id: str,
        file_id: str,
        field_id: str,
        filename: str,
    ) -> None:
        async with self._transaction("link_file") as db:
            app = await self._get(db, application_id, "link_file")
            await self._repo.link_file(
                db, app, file_id=file_id, field_id=field_id, filename=filename,
            )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _transaction(
        self,
        operation: str,
        error_cls: type[PersistenceError] = PersistenceError,
    ) -> AsyncIterator[AsyncSession]:
        factory = self._session_factory or get_session_factory()
        async with factory() as db:
            try:
                yield db
                await db.commit()
            except PersistenceError:
                await db.rollback()
                raise
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.error("%s failed: %s", operation, exc)
                raise error_cls(
                    f"{operation}: database error: {exc}", operation=operation,
                ) from exc

    async def _get(self, db: AsyncSession, application_id: str, operation: str) -> Application:
        try:
            pk = uuid.UUID(str(application_id))
        except ValueError:
            raise PersistenceError(
                f"Invalid application id: {application_id}",
                operation=operation,
                retryable=False,
            )
        app = await self._repo.get_by_id(db, pk)
        if app is None:
            raise PersistenceError(
                f"Application not found: {application_id}",
                operation=operation,
                retryable=False,
            )
        return app
