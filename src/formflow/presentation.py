"""PresentationAdapter: turns the session's current step into a StepView.

The adapter is read-only: it never mutates the session.  It decides

  - which messages to show (step headline, info fields, prompts for the
    visible fields that still lack an answer),
  - which fields are pending (all of them, or only the first one, per
    ``FieldPresentationMode``),
  - which actions the host should offer.

Action rules:
  - terminate step:           restart
  - summary step:             submit, back (restart once complete)
  - no pending input fields:  continue
  - any step with history:    back
"""

from __future__ import annotations

import logging
from typing import Any

from formflow.config import FieldPresentationMode
from formflow.engine import FormSession
from formflow.models.field import (
    BaseField,
    FileField,
    InfoField,
    MultipleChoiceField,
    SingleChoiceField,
)
from formflow.models.presentation import (
    ButtonsMessage,
    CheckboxesMessage,
    FileUploadMessage,
    InputMessage,
    StepAction,
    StepView,
    SummaryItem,
    TextMessage,
)
from formflow.models.schema import FormStep
from formflow.validation import is_empty

logger = logging.getLogger(__name__)


class PresentationAdapter:
    """Builds StepViews for a session.

    Args:
        mode: overrides the session's ``field_presentation_mode``
    """

    def __init__(self, mode: FieldPresentationMode | None = None) -> None:
        self._mode = mode

    def render(self, session: FormSession) -> StepView:
        step = session.current_step
        answers = session.answers
        mode = self._mode or session.options.field_presentation_mode

        visible = session.visible_fields_of(step)
        pending = [
            f for f in visible
            if f.collects_value and is_empty(answers.get(f.field_id))
        ]
        if mode == FieldPresentationMode.ONE_AT_A_TIME:
            pending = pending[:1]
        pending_ids = {f.field_id for f in pending}

        messages: list[Any] = [TextMessage(text=step.display_text)]
        for f in visible:
            if isinstance(f, InfoField):
                messages.append(TextMessage(text=f.display_text, field_id=f.field_id))
            elif f.field_id in pending_ids:
                messages.append(_prompt_for(f, answers.get(f.field_id)))

        can_go_back = bool(session.history) or (
            session.is_complete and step.type != "terminate"
        )
        view = StepView(
            step_id=step.step_id,
            title=step.title,
            type=step.type,
            messages=messages,
            pending_field_ids=[f.field_id for f in pending],
            actions=_actions_for(step, session, bool(pending), can_go_back),
            can_go_back=can_go_back,
            is_complete=session.is_complete,
            end_reason=session.end_reason,
        )
        if step.type == "summary":
            view.summary = build_summary(session)
        return view


def build_summary(session: FormSession) -> list[SummaryItem]:
    """List the answered visible fields of every visited step, in walk order."""
    answers = session.answers
    visited: list[str] = []
    for step_id in [*session.history, session.current_step_id]:
        if step_id not in visited:
            visited.append(step_id)

    items: list[SummaryItem] = []
    for step_id in visited:
        step = session.schema.get_step(step_id)
        for f in session.visible_fields_of(step):
            value = answers.get(f.field_id)
            if not f.collects_value or is_empty(value):
                continue
            items.append(SummaryItem(
                step_id=step_id,
                field_id=f.field_id,
                label=f.label,
                value=format_answer(value),
            ))
    return items


def format_answer(value: Any) -> str:
    """Human-readable rendering of a stored answer."""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, dict):
        return str(value.get("filename", value))
    if isinstance(value, list):
        return ", ".join(format_answer(v) for v in value)
    return str(value)


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------

def _prompt_for(field: BaseField, current: Any):
    if isinstance(field, SingleChoiceField):
        return ButtonsMessage(
            field_id=field.field_id, label=field.label,
            options=field.options, required=field.required, value=current,
        )
    if isinstance(field, MultipleChoiceField):
        return CheckboxesMessage(
            field_id=field.field_id, label=field.label,
            options=field.options, required=field.required,
            selected=list(current or []),
        )
    if isinstance(field, FileField):
        if isinstance(current, dict):
            files = [current]
        else:
            files = list(current or [])
        return FileUploadMessage(
            field_id=field.field_id, label=field.label, required=field.required,
            allow_multiple=field.allow_multiple, files=files,
        )

    rules = field.validation
    return InputMessage(
        field_id=field.field_id,
        label=field.label,
        input_type=field.type,
        required=field.required,
        mask=rules.mask if rules else None,
        max_date=rules.max_date if rules else None,
        value=current,
    )


def _actions_for(
    step: FormStep,
    session: FormSession,
    has_pending: bool,
    can_go_back: bool,
) -> list[StepAction]:
    if step.type == "terminate":
        return ["restart"]

    actions: list[StepAction] = []
    if step.type == "summary":
        if session.is_complete:
            actions.append("restart")
        else:
            actions.append("submit")
    elif not has_pending and not session.is_complete:
        actions.append("continue")

    if can_go_back:
        actions.append("back")
    return actions
