"""Field type models for form steps.

Each field type maps to a specific chat widget and answer shape:

  Display only (never collects a value):
    - info: a text bubble

  Free input:
    - text, textarea: string input
    - date: DD.MM.YYYY or ISO date string
    - phone: phone number string
    - email: e-mail address string

  Choice:
    - single_choice_buttons: one option (string) or a yes/no boolean
    - multiple_choice_checkbox: list of option strings

  Attachment:
    - file: a FileReference dict (or a list of them when allow_multiple)

The discriminated ``FormField`` union uses ``type`` as its discriminator.
The ``field_mapper`` dict maps type strings to their Pydantic classes.
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .condition import Condition

FieldType = Literal[
    "info",
    "text",
    "textarea",
    "date",
    "phone",
    "email",
    "single_choice_buttons",
    "multiple_choice_checkbox",
    "file",
]


# --- Shared models ---

class FieldValidation(BaseModel):
    """Optional per-field format constraints.

    ``maxDate`` is either ``"today"`` or an ISO date; ``mask`` is a display
    hint for the input widget and is not enforced.
    """

    model_config = ConfigDict(populate_by_name=True)

    max_date: Optional[str] = Field(None, alias="maxDate")
    mask: Optional[str] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None


class FileReference(BaseModel):
    """An uploaded file linked to an application, stored as a field answer."""

    file_id: str
    filename: str


class BaseField(BaseModel):
    """Attributes shared by all field types."""

    field_id: str
    label: str
    required: bool = False
    condition: Optional[Condition] = None
    validation: Optional[FieldValidation] = None

    @property
    def collects_value(self) -> bool:
        """False for display-only fields."""
        return True


# --- Display ---

class InfoField(BaseField):
    """Static text shown in the chat; never collects a value."""

    type: Literal["info"] = "info"
    text: Optional[str] = None

    @property
    def collects_value(self) -> bool:
        return False

    @property
    def display_text(self) -> str:
        return self.text or self.label


# --- Free input ---

class TextField(BaseField):
    type: Literal["text"] = "text"


class TextareaField(BaseField):
    type: Literal["textarea"] = "textarea"


class DateField(BaseField):
    type: Literal["date"] = "date"


class PhoneField(BaseField):
    type: Literal["phone"] = "phone"


class EmailField(BaseField):
    type: Literal["email"] = "email"


# --- Choice ---

class _ChoiceField(BaseField):
    options: list[str]

    @model_validator(mode="after")
    def _chk_options(self):
        if not self.options:
            raise ValueError(
                f"Field '{self.field_id}' of type {self.type} requires non-empty options"
            )
        return self


class SingleChoiceField(_ChoiceField):
    """Pick one option via buttons."""

    type: Literal["single_choice_buttons"] = "single_choice_buttons"


class MultipleChoiceField(_ChoiceField):
    """Pick any number of options via checkboxes."""

    type: Literal["multiple_choice_checkbox"] = "multiple_choice_checkbox"


# --- Attachment ---

class FileField(BaseField):
    """File upload; the answer is one FileReference or a list of them."""

    type: Literal["file"] = "file"
    allow_multiple: bool = False


FormField = Annotated[
    Union[
        InfoField,
        TextField,
        TextareaField,
        DateField,
        PhoneField,
        EmailField,
        SingleChoiceField,
        MultipleChoiceField,
        FileField,
    ],
    Field(discriminator="type"),
]

# Map type string → Pydantic class (used by tests and the presentation layer)
field_mapper: dict[str, type[BaseField]] = {
    "info": InfoField,
    "text": TextField,
    "textarea": TextareaField,
    "date": DateField,
    "phone": PhoneField,
    "email": EmailField,
    "single_choice_buttons": SingleChoiceField,
    "multiple_choice_checkbox": MultipleChoiceField,
    "file": FileField,
}
