"""FormSession: the state machine that walks a form schema.

One ``FormSession`` owns one :class:`~formflow.models.session.SessionState`:
the current step, the accumulated answers, the history stack used for
back-navigation, the backend application id and the completion flag.
Sessions are explicitly constructed and passed around; there is no
module-level session.

Transitions are synchronous, pure computations over the in-memory state.
Persistence is the caller's concern (see :mod:`formflow.controller`).

Status flow::

    initializing --initialize()--> active --submit_step_answers()--> active
                                      |                                |
                                      +--go_back()--> active           +--> complete
    restart(): any status -> initializing -> active

Policy flags (:class:`~formflow.config.SessionOptions`):
    back_navigation_erases_answers: go_back drops the left step's answers
    restart_policy                : restart keeps or drops application_id
    record_continue_actions       : continuing past a step without input
                                     fields stores ``answers["_continued.<step_id>"] = True``

A single session is not thread-safe; it is meant to be driven by one
causal actor (a UI event loop or one server request at a time).
"""

from __future__ import annotations

import logging
from typing import Any

from formflow.config import RestartPolicy, SessionOptions
from formflow.errors import (
    NavigationCycleError,
    SchemaError,
    SessionClosedError,
    ValidationError,
)
from formflow.evaluator import ConditionEvaluator
from formflow.models.field import BaseField, FileField, FileReference
from formflow.models.navigation import SubmitNavigation
from formflow.models.schema import FormSchema, FormStep, continue_marker
from formflow.models.session import (
    Advanced,
    BackOutcome,
    Blocked,
    EndReason,
    NoHistory,
    SessionSnapshot,
    SessionState,
    SessionStatus,
    SteppedBack,
    StepOutcome,
)
from formflow.navigation import NavigationResolver
from formflow.validation import is_empty

logger = logging.getLogger(__name__)


class FormSession:
    """Drives one user's walk through a form schema.

    Args:
        schema: a validated :class:`FormSchema`
        options: behaviour flags; defaults to :class:`SessionOptions`
        evaluator: condition evaluator shared with the resolver
        resolver: navigation resolver (built from ``evaluator`` if omitted)

    Raises:
        SchemaError: if a computed navigation names an unknown function
    """

    def __init__(
        self,
        schema: FormSchema,
        *,
        options: SessionOptions | None = None,
        evaluator: ConditionEvaluator | None = None,
        resolver: NavigationResolver | None = None,
    ) -> None:
        self._schema = schema
        self._options = options or SessionOptions()
        self._evaluator = evaluator or ConditionEvaluator()
        self._resolver = resolver or NavigationResolver(self._evaluator)
        self._resolver.check_functions(schema)

        self._status = SessionStatus.INITIALIZING
        self._state: SessionState | None = None

    # ==================================================================
    # Read-only views
    # ==================================================================

    @property
    def schema(self) -> FormSchema:
        return self._schema

    @property
    def options(self) -> SessionOptions:
        return self._options

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def state(self) -> SessionState:
        """Copy of the current state; mutating it does not affect the session."""
        state = self._require_started()
        return state.model_copy(
            update={"answers": dict(state.answers), "history": list(state.history)}
        )

    @property
    def current_step_id(self) -> str:
        return self._require_started().current_step_id

    @property
    def current_step(self) -> FormStep:
        return self._get_step(self.current_step_id)

    @property
    def answers(self) -> dict[str, Any]:
        return dict(self._require_started().answers)

    @property
    def history(self) -> list[str]:
        return list(self._require_started().history)

    @property
    def application_id(self) -> str | None:
        return self._require_started().application_id

    @property
    def is_complete(self) -> bool:
        return self._state is not None and self._state.is_complete

    @property
    def end_reason(self) -> EndReason | None:
        return self._state.end_reason if self._state is not None else None

    # ==================================================================
    # Lifecycle
    # ==================================================================

    def initialize(
        self,
        resumed_answers: dict[str, Any] | None = None,
        start_step_id: str | None = None,
        application_id: str | None = None,
    ) -> SessionState:
        """Create the session state and position it on the right step.

        Without prior answers the session starts at ``start_step_id`` (or
        the schema's start step).  With prior answers it replays the graph
        the way a user would and stops at the first unsatisfied step.

        Raises:
            SchemaError: if the start step does not exist
            NavigationCycleError: if the resumption walk does not settle
        """
        start = start_step_id or self._schema.start_step_id
        if not self._schema.has_step(start):
            raise SchemaError(f"Start step '{start}' does not exist in schema {self._schema.name}")

        self._status = SessionStatus.INITIALIZING
        self._state = SessionState(
            form_schema=self._schema,
            current_step_id=start,
            answers=dict(resumed_answers or {}),
            application_id=application_id,
        )

        if self._state.answers:
            self._resume_from(start)
        else:
            self._settle_on(start)

        logger.info(
            "Session initialised: schema=%s application=%s step=%s resumed=%s",
            self._schema.name, application_id, self._state.current_step_id,
            bool(resumed_answers),
        )
        return self.state

    def restart(self) -> SessionState:
        """Clear answers and history and go back to the schema's start step.

        ``restart_policy`` decides whether ``application_id`` survives.
        """
        previous = self._require_started()
        if self._options.restart_policy == RestartPolicy.KEEP_APPLICATION:
            application_id = previous.application_id
        else:
            application_id = None

        self._status = SessionStatus.INITIALIZING
        self._state = SessionState(
            form_schema=self._schema,
            current_step_id=self._schema.start_step_id,
            application_id=application_id,
        )
        self._settle_on(self._schema.start_step_id)
        logger.info(
            "Session restarted: schema=%s application=%s (policy=%s)",
            self._schema.name, application_id, self._options.restart_policy.value,
        )
        return self.state

    def bind_application(self, application_id: str | None) -> None:
        """Attach the backend application id (e.g. after a restart)."""
        self._require_started().application_id = application_id

    # ==================================================================
    # Transitions
    # ==================================================================

    def submit_step_answers(self, partial_answers: dict[str, Any]) -> StepOutcome:
        """Merge answers for the current step and advance if it is satisfied.

        Answers are merged even when the step stays blocked, so the caller
        only re-prompts the missing fields.

        Returns:
            Blocked with the missing field ids, or Advanced.

        Raises:
            SessionClosedError: if the session is already complete
            SchemaError: if navigation points at a step that does not exist
        """
        state = self._require_open()
        step = self._get_step(state.current_step_id)
        self._merge(step, partial_answers)

        missing = self.missing_required_fields(step)
        if missing:
            logger.debug("Step '%s' blocked, missing: %s", step.step_id, missing)
            return Blocked(step_id=step.step_id, missing_field_ids=missing)

        if self._options.record_continue_actions and not step.input_fields:
            state.answers[continue_marker(step.step_id)] = True

        next_id = self._resolver.resolve_next(step, state.answers)
        if next_id is None:
            if isinstance(step.navigation, SubmitNavigation):
                reason = EndReason.SUBMIT
            else:
                reason = EndReason.FORM_END
            self._mark_complete(reason)
            logger.debug("Step '%s' ended the form (%s)", step.step_id, reason.value)
            return Advanced(
                from_step_id=step.step_id,
                current_step_id=step.step_id,
                is_complete=True,
                end_reason=reason,
            )

        next_step = self._get_step(next_id)
        state.history.append(step.step_id)
        state.current_step_id = next_id
        if next_step.type == "terminate":
            self._mark_complete(EndReason.TERMINATE)
        logger.debug("Advanced '%s' -> '%s'", step.step_id, next_id)
        return Advanced(
            from_step_id=step.step_id,
            current_step_id=next_id,
            is_complete=state.is_complete,
            end_reason=state.end_reason,
        )

    def go_back(self) -> BackOutcome:
        """Return to the previous step in history.

        A session that ended on its current step (submit / form end) is
        reopened on that same step.  Answers are kept unless
        ``back_navigation_erases_answers`` is set, in which case the
        answers of the step being left are removed.

        Returns:
            NoHistory (nothing changed) or SteppedBack.
        """
        state = self._require_started()
        left = state.current_step_id

        if state.is_complete and state.end_reason != EndReason.TERMINATE:
            self._reopen()
            return SteppedBack(left_step_id=left, current_step_id=left)

        if not state.history:
            return NoHistory(current_step_id=left)

        if self._options.back_navigation_erases_answers:
            self._erase_step_answers(self._get_step(left))

        state.current_step_id = state.history.pop()
        self._reopen()
        logger.debug("Stepped back '%s' -> '%s'", left, state.current_step_id)
        return SteppedBack(left_step_id=left, current_step_id=state.current_step_id)

    def record_file(self, field_id: str, file: FileReference | dict[str, Any]) -> None:
        """Store a linked file as the answer of a file field.

        Appends for ``allow_multiple`` fields, replaces otherwise.  Does not
        advance the session.

        Raises:
            ValidationError: if ``field_id`` is not a file field
        """
        state = self._require_open()
        field = self._schema.find_field(field_id)
        if not isinstance(field, FileField):
            raise ValidationError.for_field(field_id, "Not a file field")

        ref = FileReference.model_validate(file).model_dump()
        if field.allow_multiple:
            existing = state.answers.get(field_id)
            if isinstance(existing, dict):
                existing = [existing]
            state.answers[field_id] = [*(existing or []), ref]
        else:
            state.answers[field_id] = ref

    # ==================================================================
    # Field visibility & satisfaction
    # ==================================================================

    def is_visible_field(self, field: BaseField) -> bool:
        """Evaluate the field's condition against the current answers."""
        if field.condition is None:
            return True
        return self._evaluator.evaluate(field.condition, self._current_answers())

    def visible_fields_of(self, step: FormStep) -> list[BaseField]:
        return [f for f in step.fields if self.is_visible_field(f)]

    def missing_required_fields(self, step: FormStep) -> list[str]:
        """Ids of visible required fields without a recorded value."""
        answers = self._current_answers()
        return [
            f.field_id
            for f in self.visible_fields_of(step)
            if f.collects_value and f.required and is_empty(answers.get(f.field_id))
        ]

    def is_step_satisfied(self, step: FormStep) -> bool:
        """True iff every visible required field has a recorded answer."""
        return not self.missing_required_fields(step)

    # ==================================================================
    # Snapshot / restore
    # ==================================================================

    def snapshot(self) -> SessionSnapshot:
        """Serialisable copy of the state, without the schema."""
        state = self._require_started()
        return SessionSnapshot(
            current_step_id=state.current_step_id,
            answers=dict(state.answers),
            history=list(state.history),
            application_id=state.application_id,
            is_complete=state.is_complete,
            end_reason=state.end_reason,
        )

    @classmethod
    def restore(
        cls,
        schema: FormSchema,
        snapshot: SessionSnapshot,
        *,
        options: SessionOptions | None = None,
        evaluator: ConditionEvaluator | None = None,
        resolver: NavigationResolver | None = None,
    ) -> FormSession:
        """Rebuild a session exactly as it was when ``snapshot`` was taken.

        Raises:
            SchemaError: if the snapshot references steps the schema lacks
        """
        unknown = [
            s for s in [snapshot.current_step_id, *snapshot.history]
            if not schema.has_step(s)
        ]
        if unknown:
            raise SchemaError(
                f"Snapshot references steps missing from schema {schema.name}: {unknown}"
            )

        session = cls(schema, options=options, evaluator=evaluator, resolver=resolver)
        session._state = SessionState(
            form_schema=schema,
            current_step_id=snapshot.current_step_id,
            answers=dict(snapshot.answers),
            history=list(snapshot.history),
            application_id=snapshot.application_id,
            is_complete=snapshot.is_complete,
            end_reason=snapshot.end_reason,
        )
        session._status = (
            SessionStatus.COMPLETE if snapshot.is_complete else SessionStatus.ACTIVE
        )
        return session

    # ==================================================================
    # Internal helpers
    # ==================================================================

    def _resume_from(self, start: str) -> None:
        """Walk forward from ``start`` over satisfied steps.

        Stops at the first unsatisfied step, at a terminate step, or at the
        last step before end of form.  The walk is capped at one visit per
        schema step; exceeding it means the graph loops.
        """
        state = self._state
        limit = len(self._schema.steps)
        step_id = start

        for _ in range(limit):
            step = self._get_step(step_id)
            if step.type == "terminate" or not self.is_step_satisfied(step):
                self._settle_on(step_id)
                return

            next_id = self._resolver.resolve_next(step, state.answers)
            if next_id is None:
                # Every step answered: resume on the final step for review
                self._settle_on(step_id)
                return

            state.history.append(step_id)
            step_id = next_id

        logger.error(
            "Resumption walk exceeded %d steps in schema %s (last step '%s')",
            limit, self._schema.name, step_id,
        )
        raise NavigationCycleError(step_id, limit)

    def _settle_on(self, step_id: str) -> None:
        state = self._state
        state.current_step_id = step_id
        if self._get_step(step_id).type == "terminate":
            self._mark_complete(EndReason.TERMINATE)
        else:
            self._status = SessionStatus.ACTIVE

    def _merge(self, step: FormStep, partial: dict[str, Any]) -> None:
        answers = self._state.answers
        for field_id, value in partial.items():
            field = step.get_field(field_id) or self._schema.find_field(field_id)
            if field is not None and not field.collects_value:
                logger.debug("Ignoring value for info field '%s'", field_id)
                continue
            answers[field_id] = value

    def _erase_step_answers(self, step: FormStep) -> None:
        answers = self._state.answers
        for f in step.input_fields:
            answers.pop(f.field_id, None)
        answers.pop(continue_marker(step.step_id), None)

    def _mark_complete(self, reason: EndReason) -> None:
        self._state.is_complete = True
        self._state.end_reason = reason
        self._status = SessionStatus.COMPLETE

    def _reopen(self) -> None:
        self._state.is_complete = False
        self._state.end_reason = None
        self._status = SessionStatus.ACTIVE

    def _get_step(self, step_id: str) -> FormStep:
        try:
            return self._schema.get_step(step_id)
        except KeyError:
            raise SchemaError(f"Step '{step_id}' does not exist in schema {self._schema.name}")

    def _current_answers(self) -> dict[str, Any]:
        return self._state.answers if self._state is not None else {}

    def _require_started(self) -> SessionState:
        if self._state is None:
            raise SessionClosedError("Session not initialised: call initialize() first")
        return self._state

    def _require_open(self) -> SessionState:
        state = self._require_started()
        if state.is_complete:
            raise SessionClosedError(
                f"Session is complete ({state.end_reason.value if state.end_reason else 'done'}); "
                "restart or go back first"
            )
        return state
