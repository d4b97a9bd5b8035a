"""Public model re-exports for formflow.

Consumers should import from ``formflow.models`` rather than reaching into
sub-modules directly.
"""

# --- Conditions ---
from formflow.models.condition import Condition, ConditionOperator

# --- Fields ---
from formflow.models.field import (
    BaseField,
    DateField,
    EmailField,
    FieldType,
    FieldValidation,
    FileField,
    FileReference,
    FormField,
    InfoField,
    MultipleChoiceField,
    PhoneField,
    SingleChoiceField,
    TextareaField,
    TextField,
    field_mapper,
)

# --- Navigation ---
from formflow.models.navigation import (
    ComputedNavigation,
    ConditionalNavigation,
    ConditionalRule,
    DirectNavigation,
    Navigation,
    SubmitNavigation,
)

# --- Schema ---
from formflow.models.schema import FormSchema, FormStep, StepType, parse_schema

# --- Session / transitions ---
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

# --- Presentation ---
from formflow.models.presentation import (
    ButtonsMessage,
    ChatMessage,
    CheckboxesMessage,
    FileUploadMessage,
    InputMessage,
    StepAction,
    StepView,
    SummaryItem,
    TextMessage,
)

__all__ = [
    # Conditions
    "Condition",
    "ConditionOperator",
    # Fields
    "BaseField",
    "DateField",
    "EmailField",
    "FieldType",
    "FieldValidation",
    "FileField",
    "FileReference",
    "FormField",
    "InfoField",
    "MultipleChoiceField",
    "PhoneField",
    "SingleChoiceField",
    "TextareaField",
    "TextField",
    "field_mapper",
    # Navigation
    "ComputedNavigation",
    "ConditionalNavigation",
    "ConditionalRule",
    "DirectNavigation",
    "Navigation",
    "SubmitNavigation",
    # Schema
    "FormSchema",
    "FormStep",
    "StepType",
    "parse_schema",
    # Session
    "Advanced",
    "BackOutcome",
    "Blocked",
    "EndReason",
    "NoHistory",
    "SessionSnapshot",
    "SessionState",
    "SessionStatus",
    "SteppedBack",
    "StepOutcome",
    # Presentation
    "ButtonsMessage",
    "ChatMessage",
    "CheckboxesMessage",
    "FileUploadMessage",
    "InputMessage",
    "StepAction",
    "StepView",
    "SummaryItem",
    "TextMessage",
]
