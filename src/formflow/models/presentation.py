"""Presentation models: what a chat UI needs to render the current step.

The presentation adapter flattens a step into ``ChatMessage`` items and a
set of allowed actions.  Rendering (bubbles, CSS, widgets) is left to the
host; these models only describe *what* to show.

Message kinds:
  - text: a bot bubble (step title/text, info fields)
  - input: free-text style input (text, textarea, date, phone, email)
  - buttons: single choice
  - checkboxes: multiple choice
  - file_upload: attachment slot

``ChatMessage`` is discriminated on ``kind`` so hosts can dispatch on it.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field

from .session import EndReason

StepAction = Literal["continue", "back", "restart", "submit"]


class TextMessage(BaseModel):
    kind: Literal["text"] = "text"
    text: str
    field_id: Optional[str] = None


class InputMessage(BaseModel):
    """Prompt for a free-input field."""

    kind: Literal["input"] = "input"
    field_id: str
    label: str
    # text | textarea | date | phone | email
    input_type: str
    required: bool = False
    mask: Optional[str] = None
    max_date: Optional[str] = None
    # Previously recorded answer, for pre-filling
    value: Any = None


class ButtonsMessage(BaseModel):
    kind: Literal["buttons"] = "buttons"
    field_id: str
    label: str
    options: list[str]
    required: bool = False
    value: Any = None


class CheckboxesMessage(BaseModel):
    kind: Literal["checkboxes"] = "checkboxes"
    field_id: str
    label: str
    options: list[str]
    required: bool = False
    selected: list[str] = []


class FileUploadMessage(BaseModel):
    kind: Literal["file_upload"] = "file_upload"
    field_id: str
    label: str
    required: bool = False
    allow_multiple: bool = False
    # Files already linked to this field
    files: list[dict[str, Any]] = []


ChatMessage = Annotated[
    Union[TextMessage, InputMessage, ButtonsMessage, CheckboxesMessage, FileUploadMessage],
    Field(discriminator="kind"),
]


class SummaryItem(BaseModel):
    """One answered field as shown on the review step."""

    step_id: str
    field_id: str
    label: str
    value: str


class StepView(BaseModel):
    """Renderable view of the session's current step."""

    step_id: str
    title: str
    type: str
    messages: list[ChatMessage] = []
    pending_field_ids: list[str] = []
    actions: list[StepAction] = []
    can_go_back: bool = False
    is_complete: bool = False
    end_reason: Optional[EndReason] = None
    # Only filled for summary steps
    summary: Optional[list[SummaryItem]] = None
