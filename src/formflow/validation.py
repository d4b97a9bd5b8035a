"""Field-level format validation at the input boundary.

Answers are checked here *before* they reach the state machine; a bad
value raises :class:`~formflow.errors.ValidationError` and the caller
re-prompts the same field.  The state machine itself only checks whether
required fields are filled.

Per-type rules:
  - email: ``local@domain.tld`` without whitespace
  - phone: digits and ``+`` only after cleaning; Russian 10-digit numbers
    with optional +7/7/8 prefix, or E.164 international numbers
  - date: DD.MM.YYYY or ISO YYYY-MM-DD, must exist, year >= 1900, not
    after ``validation.maxDate`` (``today`` by default)
  - text/textarea: optional min/max length
  - single_choice_buttons: one of the options (or a bool for yes/no pairs)
  - multiple_choice_checkbox: list of options
  - file: FileReference mapping (list when allow_multiple)
  - info: never accepts a value

Empty values (None, blank string, empty list) pass through untouched;
required-ness is enforced by the state machine, not here.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Any

from dateutil import parser as dateutil_parser
from pydantic import ValidationError as PydanticValidationError

from formflow.errors import ValidationError
from formflow.models.field import (
    BaseField,
    DateField,
    EmailField,
    FileField,
    FileReference,
    InfoField,
    MultipleChoiceField,
    PhoneField,
    SingleChoiceField,
    TextareaField,
    TextField,
)
from formflow.models.schema import FormSchema, FormStep

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_RE = re.compile(r"^(\+7|7|8)?[0-9]{10}$|^\+[1-9]\d{1,14}$")
_DOTTED_DATE_RE = re.compile(r"^\d{2}\.\d{2}\.\d{4}$")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

MIN_YEAR = 1900

# Option labels that make a button field a yes/no question
_YES_NO = {"yes", "no", "да", "нет"}


def is_empty(value: Any) -> bool:
    """True for values that do not count as an answer."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def parse_date(value: Any) -> date | None:
    """Parse ``DD.MM.YYYY`` or ISO ``YYYY-MM-DD``; None if unparsable."""
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    # dateutil accepts far looser input, so the layout is checked first
    if _DOTTED_DATE_RE.match(stripped):
        dayfirst = True
    elif _ISO_DATE_RE.match(stripped):
        dayfirst = False
    else:
        return None
    try:
        return dateutil_parser.parse(stripped, dayfirst=dayfirst, yearfirst=not dayfirst).date()
    except (ValueError, OverflowError):
        return None


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def validate_answer(field: BaseField, value: Any, *, today: date | None = None) -> Any:
    """Validate one answer against its field definition.

    Returns:
        The normalised value (e.g. trimmed text, cleaned phone number).

    Raises:
        ValidationError: if the value does not fit the field type.
    """
    if isinstance(field, InfoField):
        raise ValidationError.for_field(field.field_id, "Info fields do not accept a value")

    if is_empty(value):
        return value

    if isinstance(field, (TextField, TextareaField)):
        return _validate_text(field, value)
    if isinstance(field, EmailField):
        return _validate_email(field, value)
    if isinstance(field, PhoneField):
        return _validate_phone(field, value)
    if isinstance(field, DateField):
        return _validate_date(field, value, today or date.today())
    if isinstance(field, SingleChoiceField):
        return _validate_single_choice(field, value)
    if isinstance(field, MultipleChoiceField):
        return _validate_multiple_choice(field, value)
    if isinstance(field, FileField):
        return _validate_file(field, value)

    raise ValidationError.for_field(
        field.field_id, f"Unsupported field type: {type(field).__name__}"
    )


def validate_step_answers(
    step: FormStep,
    partial: dict[str, Any],
    *,
    schema: FormSchema | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    """Validate every answer in ``partial``.

    Keys are looked up in ``step`` first, then anywhere in ``schema`` so
    answers given ahead of their step get the same format checks.  A key
    that names no field is rejected.  All failures are collected into a
    single ValidationError.

    Returns:
        A new dict with normalised values.
    """
    cleaned: dict[str, Any] = {}
    errors: dict[str, str] = {}
    for field_id, value in partial.items():
        field = step.get_field(field_id)
        if field is None and schema is not None:
            field = schema.find_field(field_id)
        if field is None:
            errors[field_id] = "Unknown field"
            continue
        try:
            cleaned[field_id] = validate_answer(field, value, today=today)
        except ValidationError as exc:
            errors.update(exc.errors)
    if errors:
        raise ValidationError(errors)
    return cleaned


# ----------------------------------------------------------------------
# Type-specific validators
# ----------------------------------------------------------------------

def _require_str(field: BaseField, value: Any, what: str) -> str:
    if not isinstance(value, str):
        raise ValidationError.for_field(
            field.field_id, f"{what} must be a string, got {type(value).__name__}"
        )
    return value.strip()


def _validate_text(field: BaseField, value: Any) -> str:
    text = _require_str(field, value, "Text")
    rules = field.validation
    if rules is not None:
        if rules.min_length is not None and len(text) < rules.min_length:
            raise ValidationError.for_field(
                field.field_id, f"Minimum length is {rules.min_length} characters"
            )
        if rules.max_length is not None and len(text) > rules.max_length:
            raise ValidationError.for_field(
                field.field_id, f"Maximum length is {rules.max_length} characters"
            )
    return text


def _validate_email(field: BaseField, value: Any) -> str:
    email = _require_str(field, value, "Email")
    if not _EMAIL_RE.match(email):
        raise ValidationError.for_field(field.field_id, "Enter a valid e-mail address")
    return email


def _validate_phone(field: BaseField, value: Any) -> str:
    phone = _require_str(field, value, "Phone number")
    cleaned = re.sub(r"[^\d+]", "", phone)
    if not _PHONE_RE.match(cleaned):
        raise ValidationError.for_field(field.field_id, "Enter a valid phone number")
    return cleaned


def _validate_date(field: BaseField, value: Any, today: date) -> str:
    raw = _require_str(field, value, "Date")
    parsed = parse_date(raw)
    if parsed is None:
        raise ValidationError.for_field(
            field.field_id, f"'{raw}' is not a valid date (expected DD.MM.YYYY)"
        )
    if parsed.year < MIN_YEAR:
        raise ValidationError.for_field(
            field.field_id, f"Year must not be earlier than {MIN_YEAR}"
        )

    max_date = today
    rules = field.validation
    if rules is not None and rules.max_date and rules.max_date != "today":
        limit = parse_date(rules.max_date)
        if limit is not None:
            max_date = limit
    if parsed > max_date:
        raise ValidationError.for_field(
            field.field_id, f"Date must not be after {max_date.strftime('%d.%m.%Y')}"
        )
    return raw


def _validate_single_choice(field: SingleChoiceField, value: Any) -> Any:
    if isinstance(value, bool):
        # Yes/no button pairs record a boolean rather than the label
        if {o.lower() for o in field.options} <= _YES_NO:
            return value
        raise ValidationError.for_field(
            field.field_id, f"Choose one of: {field.options}"
        )
    if value not in field.options:
        raise ValidationError.for_field(
            field.field_id, f"'{value}' is not a valid option. Choose from: {field.options}"
        )
    return value


def _validate_multiple_choice(field: MultipleChoiceField, value: Any) -> list[str]:
    if not isinstance(value, list):
        raise ValidationError.for_field(field.field_id, "Checkbox answer must be a list")
    invalid = [v for v in value if v not in field.options]
    if invalid:
        raise ValidationError.for_field(
            field.field_id, f"Invalid options: {invalid}. Choose from: {field.options}"
        )
    return list(value)


def _validate_file(field: FileField, value: Any) -> Any:
    items = value if isinstance(value, list) else [value]
    if isinstance(value, list) and not field.allow_multiple and len(items) > 1:
        raise ValidationError.for_field(field.field_id, "Only one file is allowed")
    refs = []
    for item in items:
        try:
            refs.append(FileReference.model_validate(item).model_dump())
        except PydanticValidationError:
            raise ValidationError.for_field(
                field.field_id, "File answer must carry file_id and filename"
            )
    if field.allow_multiple:
        return refs
    return refs[0]
