"""Session and adapter configuration: policy flags read from environment.

Chat front-ends differ on a handful of behaviours (whether
going back erases answers, whether unanswered fields are asked together
or one by one, what restart does to the backend application).  Each of
these is a named flag here.

All settings have defaults suitable for local development; deployments
override them via ``FORMFLOW_*`` env vars.
"""

import enum
import os
from dataclasses import dataclass


class FieldPresentationMode(str, enum.Enum):
    """How the unanswered fields of a multi-field step are presented."""

    ALL_AT_ONCE = "all_at_once"
    ONE_AT_A_TIME = "one_at_a_time"


class RestartPolicy(str, enum.Enum):
    """What restart does to the backend application.

    KEEP_APPLICATION keeps the application id so the backend row is reused.
    NEW_APPLICATION drops it and a fresh backend session is created.
    """

    KEEP_APPLICATION = "keep_application"
    NEW_APPLICATION = "new_application"


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class SessionOptions:
    """Immutable behaviour flags for one FormSession."""

    # Remove the answers of the step being left on go_back
    back_navigation_erases_answers: bool = False

    # Presentation of unanswered visible fields within a step
    field_presentation_mode: FieldPresentationMode = FieldPresentationMode.ALL_AT_ONCE

    # Keep or drop the application id on restart
    restart_policy: RestartPolicy = RestartPolicy.KEEP_APPLICATION

    # Store ``answers[step_id] = True`` when a step without input fields is
    # continued past
    record_continue_actions: bool = False


def load_session_options() -> SessionOptions:
    """Build session options from ``FORMFLOW_*`` environment variables."""
    return SessionOptions(
        back_navigation_erases_answers=_env_flag(
            "FORMFLOW_BACK_ERASES_ANSWERS", False,
        ),
        field_presentation_mode=FieldPresentationMode(
            os.getenv("FORMFLOW_FIELD_PRESENTATION", "all_at_once").lower()
        ),
        restart_policy=RestartPolicy(
            os.getenv("FORMFLOW_RESTART_POLICY", "keep_application").lower()
        ),
        record_continue_actions=_env_flag("FORMFLOW_RECORD_CONTINUE", False),
    )


@dataclass(frozen=True)
class HttpAdapterSettings:
    """Connection and retry policy for the HTTP persistence adapter."""

    base_url: str = "http://localhost:8080"

    # Per-request timeout in seconds
    timeout: float = 10.0

    # Attempts per call (1 = no retry); waits ``retry_delay * attempt``
    # seconds between attempts
    max_retries: int = 3
    retry_delay: float = 1.0

    # Tag sent to POST /sessions
    platform: str = "web"


def load_http_settings() -> HttpAdapterSettings:
    """Build HTTP adapter settings from ``FORMFLOW_API_*`` environment variables."""
    return HttpAdapterSettings(
        base_url=os.getenv("FORMFLOW_API_URL", "http://localhost:8080").rstrip("/"),
        timeout=float(os.getenv("FORMFLOW_API_TIMEOUT", "10")),
        max_retries=int(os.getenv("FORMFLOW_API_MAX_RETRIES", "3")),
        retry_delay=float(os.getenv("FORMFLOW_API_RETRY_DELAY", "1")),
        platform=os.getenv("FORMFLOW_API_PLATFORM", "web"),
    )
