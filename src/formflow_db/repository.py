"""Async CRUD repository for Application rows.

All public methods accept an ``AsyncSession`` so the caller controls
transaction boundaries.  Methods ``flush()`` but never ``commit()``.

The repository avoids business rules (e.g. "no edits after submit"); those
live in the service layer.  Structural invariants such as "a submitted
row has submitted_at" are enforced by DB constraints.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from formflow_db.models.application import Application
from formflow_db.models.enums import ApplicationStatus

# Engine end reason -> row status for a finished dialogue
_END_STATUS = {
    "terminate": ApplicationStatus.TERMINATED,
    "submit": ApplicationStatus.COMPLETE,
    "form_end": ApplicationStatus.COMPLETE,
}


class ApplicationRepository:
    """Async read/write operations on the ``applications`` table."""

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_application(
        self,
        db: AsyncSession,
        *,
        platform: str,
        schema_name: str,
        schema_version: str | None = None,
        session_id: str | None = None,
    ) -> Application:
        """Insert a new draft application and return it."""
        app = Application(
            session_id=session_id or uuid.uuid4().hex,
            platform=platform,
            schema_name=schema_name,
            schema_version=schema_version,
            status=ApplicationStatus.DRAFT,
            answers={},
            history=[],
            files=[],
        )
        db.add(app)
        await db.flush()  # populate id and timestamps
        return app

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_id(
        self, db: AsyncSession, application_id: uuid.UUID
    ) -> Application | None:
        return await db.get(Application, application_id)

    async def list_recent(
        self,
        db: AsyncSession,
        *,
        status: ApplicationStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Application]:
        """List applications, most recently created first."""
        stmt = select(Application)
        if status is not None:
            stmt = stmt.where(Application.status == status)
        stmt = stmt.order_by(Application.created_at.desc()).limit(limit).offset(offset)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def save_answers(
        self, db: AsyncSession, app: Application, answers: dict[str, Any]
    ) -> Application:
        """Replace the stored answer set.

        The stored engine position is cleared so the next step-API call
        replays the new answers.  The status follows the answers: draft
        when empty, ``in_progress`` otherwise.
        """
        # New dict so SQLAlchemy sees the JSONB change
        app.answers = dict(answers)
        app.current_step_id = None
        app.history = []
        app.end_reason = None
        app.status = ApplicationStatus.IN_PROGRESS if answers else ApplicationStatus.DRAFT
        app.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return app

    async def save_progress(
        self,
        db: AsyncSession,
        app: Application,
        *,
        current_step_id: str,
        answers: dict[str, Any],
        history: list[str],
        is_complete: bool = False,
        end_reason: str | None = None,
    ) -> Application:
        """Store the full engine position (step, answers, history, end state)."""
        app.current_step_id = current_step_id
        app.answers = dict(answers)
        app.history = list(history)
        if is_complete:
            app.end_reason = end_reason
            app.status = _END_STATUS.get(end_reason or "", ApplicationStatus.COMPLETE)
        else:
            app.end_reason = None
            app.status = ApplicationStatus.IN_PROGRESS if answers else ApplicationStatus.DRAFT
        app.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return app

    async def link_file(
        self,
        db: AsyncSession,
        app: Application,
        *,
        file_id: str,
        field_id: str,
        filename: str,
    ) -> Application:
        """Append a file link; relinking the same file_id to a field replaces it."""
        now = datetime.now(timezone.utc)
        files = [
            f for f in app.files
            if not (f.get("file_id") == file_id and f.get("field_id") == field_id)
        ]
        files.append({
            "file_id": file_id,
            "field_id": field_id,
            "filename": filename,
            "linked_at": now.isoformat(),
        })
        app.files = files
        app.updated_at = now
        await db.flush()
        return app

    async def mark_submitted(self, db: AsyncSession, app: Application) -> Application:
        """Set status ``submitted``.  ``ck_submitted_has_timestamp`` requires submitted_at."""
        now = datetime.now(timezone.utc)
        app.status = ApplicationStatus.SUBMITTED
        app.submitted_at = now
        app.updated_at = now
        await db.flush()
        return app

    async def reset(self, db: AsyncSession, app: Application) -> Application:
        """Clear answers, history and position (restart keeping the row)."""
        app.answers = {}
        app.history = []
        app.current_step_id = None
        app.end_reason = None
        app.status = ApplicationStatus.DRAFT
        app.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return app
