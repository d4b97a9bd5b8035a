"""FormController: glues a FormSession to a persistence adapter and a view.

The controller is what a chat host talks to.  It owns exactly one
``FormSession`` and one ``PersistenceAdapter``:

    start()       load schema, load or create the backend application,
                  initialise (resuming from stored answers)
    answer()      validate -> submit_step_answers -> save
    go_back()     step back -> save
    restart()     clear the session (new backend application if the
                  restart policy asks for one) -> save
    attach_file() link an uploaded file and record it as the field answer
    submit()      final submission once the session is complete

Saving is best-effort during the dialogue: a failed save is logged, the
in-memory answers are kept and ``has_unsaved_changes`` stays set until
the next successful ``save()``.  Submission is strict: it raises
``SubmissionError`` and can be retried.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from pydantic import BaseModel

from formflow.config import RestartPolicy, SessionOptions
from formflow.engine import FormSession
from formflow.errors import PersistenceError, SubmissionError
from formflow.interfaces import PersistenceAdapter
from formflow.models.presentation import StepView
from formflow.models.session import (
    Advanced,
    Blocked,
    EndReason,
    NoHistory,
    SteppedBack,
)
from formflow.presentation import PresentationAdapter
from formflow.validation import validate_step_answers

logger = logging.getLogger(__name__)


class ControllerResult(BaseModel):
    """Outcome of a controller transition plus the view to render next."""

    outcome: Optional[Union[Advanced, Blocked, SteppedBack, NoHistory]] = None
    step: StepView
    # False when the follow-up save failed; answers are still held in memory
    saved: bool = True


class FormController:
    """Drives one form dialogue against a persistence backend.

    Args:
        adapter: where schemas come from and answers go to
        options: session behaviour flags
        presentation: view builder; defaults to :class:`PresentationAdapter`
        platform: tag passed to ``create_session``
    """

    def __init__(
        self,
        adapter: PersistenceAdapter,
        *,
        options: SessionOptions | None = None,
        presentation: PresentationAdapter | None = None,
        platform: str = "web",
    ) -> None:
        self._adapter = adapter
        self._options = options or SessionOptions()
        self._presentation = presentation or PresentationAdapter()
        self._platform = platform
        self._session: FormSession | None = None
        self._dirty = False
        self._submitted = False

    @property
    def session(self) -> FormSession:
        if self._session is None:
            raise ValueError("Controller not started: call start() first")
        return self._session

    @property
    def has_unsaved_changes(self) -> bool:
        return self._dirty

    @property
    def submitted(self) -> bool:
        return self._submitted

    # ==================================================================
    # Lifecycle
    # ==================================================================

    async def start(self, application_id: str | None = None) -> StepView:
        """Load the schema and open (or resume) the backend application.

        A failed answer load is not fatal: the dialogue starts from scratch
        on the same application.
        """
        schema = await self._adapter.load_schema()
        self._session = FormSession(schema, options=self._options)
        self._submitted = False
        self._dirty = False

        answers: dict[str, Any] = {}
        if application_id:
            try:
                answers = await self._adapter.load_answers(application_id)
            except PersistenceError as exc:
                logger.warning(
                    "Could not load answers for application %s, starting empty: %s",
                    application_id, exc,
                )
        else:
            application_id = await self._adapter.create_session(self._platform)

        self._session.initialize(answers, application_id=application_id)
        return self.view()

    def view(self) -> StepView:
        return self._presentation.render(self.session)

    # ==================================================================
    # Transitions
    # ==================================================================

    async def answer(self, partial_answers: dict[str, Any]) -> ControllerResult:
        """Validate, apply and save answers for the current step.

        Raises:
            ValidationError: a value has the wrong format (nothing applied)
            SessionClosedError: the session is already complete
        """
        session = self.session
        cleaned = validate_step_answers(
            session.current_step, partial_answers, schema=session.schema,
        )
        outcome = session.submit_step_answers(cleaned)
        saved = await self._save_quietly()
        return ControllerResult(outcome=outcome, step=self.view(), saved=saved)

    async def go_back(self) -> ControllerResult:
        outcome = self.session.go_back()
        saved = True
        if isinstance(outcome, SteppedBack):
            saved = await self._save_quietly()
        return ControllerResult(outcome=outcome, step=self.view(), saved=saved)

    async def restart(self) -> ControllerResult:
        """Clear answers and history and return to the first step.

        Raises:
            PersistenceError: under ``NEW_APPLICATION`` the backend could not
                open a new application; the session is left as it was
        """
        session = self.session

        if self._options.restart_policy == RestartPolicy.NEW_APPLICATION:
            application_id = await self._adapter.create_session(self._platform)
            session.restart()
            session.bind_application(application_id)
            self._submitted = False
            self._dirty = False
            return ControllerResult(step=self.view())

        session.restart()
        self._submitted = False

        saved = await self._save_quietly()
        return ControllerResult(step=self.view(), saved=saved)

    async def attach_file(self, field_id: str, file_id: str, filename: str) -> ControllerResult:
        """Link an already-uploaded file and record it as the field's answer.

        Raises:
            PersistenceError: the backend refused the link (nothing recorded)
            ValidationError: ``field_id`` is not a file field
        """
        session = self.session
        if session.application_id:
            await self._adapter.link_file(session.application_id, file_id, field_id, filename)
        session.record_file(field_id, {"file_id": file_id, "filename": filename})
        saved = await self._save_quietly()
        return ControllerResult(step=self.view(), saved=saved)

    # ==================================================================
    # Persistence
    # ==================================================================

    async def save(self) -> None:
        """Push the full answer set to the backend.

        Raises:
            PersistenceError: the save failed or the session has no backend
                application; answers stay in memory
        """
        session = self.session
        if not session.application_id:
            raise PersistenceError(
                "No backend application to save to", operation="save_answers", retryable=False,
            )
        await self._adapter.save_answers(session.application_id, session.answers)
        self._dirty = False

    async def submit(self) -> None:
        """Submit the application once the dialogue has ended.

        Unsaved answers are flushed first.  A second call after a successful
        submit does nothing.

        Raises:
            ValueError: the session is not complete, or ended on a
                terminate step
            SubmissionError: the backend rejected or did not answer; the
                session is untouched and submit may be retried
        """
        if self._submitted:
            logger.info("Application %s already submitted", self.session.application_id)
            return

        session = self.session
        if not session.is_complete:
            raise ValueError("Cannot submit: the form is not complete")
        if session.end_reason == EndReason.TERMINATE:
            raise ValueError("Cannot submit: the form ended on a terminate step")
        if not session.application_id:
            raise SubmissionError(
                "Cannot submit: no backend application", operation="submit", retryable=False,
            )

        try:
            if self._dirty:
                await self.save()
            await self._adapter.submit(session.application_id)
        except SubmissionError:
            raise
        except PersistenceError as exc:
            raise SubmissionError(
                f"Submission failed: {exc}",
                operation="submit",
                retryable=exc.retryable,
                status_code=exc.status_code,
            ) from exc

        self._submitted = True
        logger.info("Application %s submitted", session.application_id)

    async def _save_quietly(self) -> bool:
        self._dirty = True
        try:
            await self.save()
        except PersistenceError as exc:
            logger.error(
                "Saving answers for application %s failed; kept in memory: %s",
                self.session.application_id, exc,
            )
            return False
        return True
