"""formflow: conversational form-filling SDK.

Public API:
    FormSession       : state machine walking a form schema
    FormController    : drives a session against a persistence backend
    SchemaStore       : loads YAML/JSON schemas into typed models
    parse_schema      : build a FormSchema from wire data
    ConditionEvaluator: evaluates field/navigation conditions
    NavigationResolver: computes the successor of a step
    PresentationAdapter: renders the current step as chat messages

Persistence:
    PersistenceAdapter        : ABC for schema/answer storage
    HttpPersistenceAdapter    : hosted REST API (httpx)
    InMemoryPersistenceAdapter: process-local storage

Configuration:
    SessionOptions, FieldPresentationMode, RestartPolicy, HttpAdapterSettings

Errors:
    FormFlowError and its subclasses SchemaError, ValidationError,
    NavigationCycleError, SessionClosedError, PersistenceError,
    SubmissionError
"""

from formflow.adapters import HttpPersistenceAdapter, InMemoryPersistenceAdapter
from formflow.computed import register_navigation_function
from formflow.config import (
    FieldPresentationMode,
    HttpAdapterSettings,
    RestartPolicy,
    SessionOptions,
    load_http_settings,
    load_session_options,
)
from formflow.controller import ControllerResult, FormController
from formflow.engine import FormSession
from formflow.errors import (
    FormFlowError,
    NavigationCycleError,
    PersistenceError,
    SchemaError,
    SessionClosedError,
    SubmissionError,
    ValidationError,
)
from formflow.evaluator import ConditionEvaluator
from formflow.interfaces import PersistenceAdapter
from formflow.models.schema import FormSchema, FormStep, parse_schema
from formflow.models.session import (
    Advanced,
    Blocked,
    EndReason,
    NoHistory,
    SessionSnapshot,
    SessionState,
    SteppedBack,
)
from formflow.navigation import NavigationResolver
from formflow.presentation import PresentationAdapter, build_summary
from formflow.store import SchemaStore
from formflow.validation import validate_answer, validate_step_answers

__all__ = [
    # Engine & store
    "FormSession",
    "FormController",
    "ControllerResult",
    "SchemaStore",
    "ConditionEvaluator",
    "NavigationResolver",
    "PresentationAdapter",
    "build_summary",
    "register_navigation_function",
    # Schema
    "FormSchema",
    "FormStep",
    "parse_schema",
    # Session / outcomes
    "Advanced",
    "Blocked",
    "EndReason",
    "NoHistory",
    "SessionSnapshot",
    "SessionState",
    "SteppedBack",
    # Validation
    "validate_answer",
    "validate_step_answers",
    # Persistence
    "PersistenceAdapter",
    "HttpPersistenceAdapter",
    "InMemoryPersistenceAdapter",
    # Config
    "FieldPresentationMode",
    "HttpAdapterSettings",
    "RestartPolicy",
    "SessionOptions",
    "load_http_settings",
    "load_session_options",
    # Errors
    "FormFlowError",
    "NavigationCycleError",
    "PersistenceError",
    "SchemaError",
    "SessionClosedError",
    "SubmissionError",
    "ValidationError",
]
