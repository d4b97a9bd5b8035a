"""ApplicationService: server-side orchestration of applications.

The service is stateless: every call receives a DB session, loads the
application row, rebuilds whatever engine state it needs, and persists the
result through :class:`ApplicationRepository`.  It never commits; the
``get_db`` dependency owns the transaction.

Two API surfaces are served from here:

  - the public backend contract used by client-side controllers
    (create session, read/replace answers, link files, submit)
  - the engine-driven step API, where the server walks the schema on the
    client's behalf (get step, answer step, back, restart)
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional, Union

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from formflow.config import SessionOptions
from formflow.engine import FormSession
from formflow.errors import SchemaError
from formflow.models.field import FileField
from formflow.models.presentation import StepView
from formflow.models.schema import FormSchema
from formflow.models.session import (
    Advanced,
    Blocked,
    NoHistory,
    SessionSnapshot,
    SteppedBack,
)
from formflow.presentation import PresentationAdapter
from formflow.store import SchemaStore
from formflow.validation import validate_step_answers
from formflow_db.models.application import Application
from formflow_db.models.enums import ApplicationStatus
from formflow_db.repository import ApplicationRepository

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Response models
# ------------------------------------------------------------------

class SessionCreated(BaseModel):
    application_uuid: str
    session_id: str


class ApplicationPublic(BaseModel):
    """Client-visible view of an application row."""

    application_uuid: str
    status: str
    schema_name: str
    data: dict[str, Any]
    files: list[dict[str, Any]] = []


class ApplicationSummary(BaseModel):
    application_uuid: str
    platform: str
    status: str
    current_step_id: Optional[str] = None
    created_at: str
    submitted_at: Optional[str] = None


class StepResponse(BaseModel):
    """Result of an engine transition plus the view of the new step."""

    outcome: Union[Advanced, Blocked, SteppedBack, NoHistory]
    step: StepView


class ApplicationService:
    """Application lifecycle on top of the repository and the engine.

    Args:
        store: loaded schema store
        options: engine behaviour for the step API
        platforms: accepted platform tags
    """

    def __init__(
        self,
        store: SchemaStore,
        options: SessionOptions | None = None,
        platforms: tuple[str, ...] = ("web", "miniapp"),
    ) -> None:
        self._store = store
        self._options = options or SessionOptions()
        self._platforms = platforms
        self._presenter = PresentationAdapter()
        self._repo = ApplicationRepository()

    # ==================================================================
    # Schema
    # ==================================================================

    def active_schema(self) -> FormSchema:
        return self._store.active()

    # ==================================================================
    # Public backend contract
    # ==================================================================

    async def create_session(self, db: AsyncSession, *, platform: str) -> SessionCreated:
        """Open a new draft application for the active schema.

        Raises:
            ValueError: unknown platform (→ 400)
        """
        if platform not in self._platforms:
            raise ValueError(f"Unsupported platform: {platform}")
        schema = self.active_schema()
        row = await self._repo.create_application(
            db,
            platform=platform,
            schema_name=schema.name,
            schema_version=schema.version,
        )
        logger.info("Created application %s (platform=%s)", row.id, platform)
        return SessionCreated(application_uuid=str(row.id), session_id=row.session_id)

    async def get_public(self, db: AsyncSession, application_id: str) -> ApplicationPublic:
        row = await self._load(db, application_id)
        return _to_public(row)

    async def replace_answers(
        self, db: AsyncSession, application_id: str, answers: dict[str, Any]
    ) -> ApplicationPublic:
        """Replace the stored answer set (client-driven save).

        Raises:
            ValueError: application not found (→ 404) or already submitted (→ 409)
        """
        row = await self._load_editable(db, application_id)
        await self._repo.save_answers(db, row, answers)
        return _to_public(row)

    async def link_file(
        self,
        db: AsyncSession,
        application_id: str,
        *,
        file_id: str,
        field_id: str,
        filename: str,
    ) -> ApplicationPublic:
        """Attach an uploaded file to a file field of the application's schema."""
        row = await self._load_editable(db, application_id)
        schema = self._store.get(row.schema_name)
        if not isinstance(schema.find_field(field_id), FileField):
            raise ValueError(f"Field '{field_id}' is not a file field of {schema.name}")
        await self._repo.link_file(
            db, row, file_id=file_id, field_id=field_id, filename=filename,
        )
        return _to_public(row)

    async def submit(self, db: AsyncSession, application_id: str) -> ApplicationPublic:
        """Mark the application submitted.

        The client decides when the form is complete; the server does not
        re-check it.  A second submit is a conflict.
        """
        row = await self._load(db, application_id)
        if row.is_submitted:
            raise ValueError(f"Application {application_id} already submitted")
        await self._repo.mark_submitted(db, row)
        logger.info("Application %s submitted", row.id)
        return _to_public(row)

    async def list_applications(
        self,
        db: AsyncSession,
        *,
        status: ApplicationStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[ApplicationSummary]:
        rows = await self._repo.list_recent(db, status=status, limit=limit, offset=offset)
        return [
            ApplicationSummary(
                application_uuid=str(r.id),
                platform=r.platform,
                status=str(ApplicationStatus(r.status).value),
                current_step_id=r.current_step_id,
                created_at=r.created_at.isoformat(),
                submitted_at=r.submitted_at.isoformat() if r.submitted_at else None,
            )
            for r in rows
        ]

    # ==================================================================
    # Engine-driven step API
    # ==================================================================

    async def get_step(self, db: AsyncSession, application_id: str) -> StepView:
        row = await self._load(db, application_id)
        session = self._session_for(row)
        if row.current_step_id is None:
            await self._persist(db, row, session)
        return self._presenter.render(session)

    async def submit_step(
        self, db: AsyncSession, application_id: str, answers: dict[str, Any]
    ) -> StepResponse:
        """Validate and apply answers for the current step.

        Raises:
            ValidationError: bad answer format (→ 422)
            SessionClosedError: the dialogue already ended (→ 409)
        """
        row = await self._load_editable(db, application_id)
        session = self._session_for(row)
        cleaned = validate_step_answers(session.current_step, answers, schema=session.schema)
        outcome = session.submit_step_answers(cleaned)
        await self._persist(db, row, session)
        return StepResponse(outcome=outcome, step=self._presenter.render(session))

    async def step_back(self, db: AsyncSession, application_id: str) -> StepResponse:
        row = await self._load_editable(db, application_id)
        session = self._session_for(row)
        outcome = session.go_back()
        if isinstance(outcome, SteppedBack):
            await self._persist(db, row, session)
        return StepResponse(outcome=outcome, step=self._presenter.render(session))

    async def restart(self, db: AsyncSession, application_id: str) -> StepView:
        """Clear the application's answers and return the first step.

        The row (and its uuid) is reused.
        """
        row = await self._load_editable(db, application_id)
        await self._repo.reset(db, row)
        session = self._session_for(row)
        await self._persist(db, row, session)
        return self._presenter.render(session)

    # ==================================================================
    # Internals
    # ==================================================================

    def _session_for(self, row: Application) -> FormSession:
        """Rebuild the FormSession a row describes.

        Rows without a position (fresh, or filled via PATCH) are replayed
        from their answers.  A stored position the schema no longer knows is
        also replayed rather than rejected.
        """
        schema = self._store.get(row.schema_name)
        application_id = str(row.id)

        if row.current_step_id is not None:
            snapshot = SessionSnapshot(
                current_step_id=row.current_step_id,
                answers=dict(row.answers or {}),
                history=list(row.history or []),
                application_id=application_id,
                is_complete=row.end_reason is not None,
                end_reason=row.end_reason,
            )
            try:
                return FormSession.restore(schema, snapshot, options=self._options)
            except SchemaError as exc:
                logger.warning(
                    "Application %s: stored position invalid for %s, replaying: %s",
                    application_id, schema.name, exc,
                )

        session = FormSession(schema, options=self._options)
        session.initialize(dict(row.answers or {}), application_id=application_id)
        return session

    async def _persist(self, db: AsyncSession, row: Application, session: FormSession) -> None:
        state = session.state
        await self._repo.save_progress(
            db,
            row,
            current_step_id=state.current_step_id,
            answers=state.answers,
            history=state.history,
            is_complete=state.is_complete,
            end_reason=state.end_reason.value if state.end_reason else None,
        )

    async def _load(self, db: AsyncSession, application_id: str) -> Application:
        try:
            pk = uuid.UUID(application_id)
        except ValueError:
            raise ValueError(f"Application not found: {application_id}")
        row = await self._repo.get_by_id(db, pk)
        if row is None:
            raise ValueError(f"Application not found: {application_id}")
        return row

    async def _load_editable(self, db: AsyncSession, application_id: str) -> Application:
        row = await self._load(db, application_id)
        if row.is_submitted:
            raise ValueError(f"Application {application_id} already submitted")
        return row


def _to_public(row: Application) -> ApplicationPublic:
    return ApplicationPublic(
        application_uuid=str(row.id),
        status=str(ApplicationStatus(row.status).value),
        schema_name=row.schema_name,
        data=dict(row.answers or {}),
        files=list(row.files or []),
    )
