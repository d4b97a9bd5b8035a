"""Session and transition models: the contract between the state machine and callers.

These models describe what :class:`formflow.engine.FormSession` holds and
returns.  They are decoupled from the ORM models in ``formflow_db`` so
that callers never see database internals.

Transition results:
  - Advanced / Blocked: outcome of submit_step_answers
  - SteppedBack / NoHistory: outcome of go_back

Each union carries a ``type`` literal so callers can dispatch on it.
"""

import enum
from typing import Any, Literal, Optional

from pydantic import BaseModel

from .schema import FormSchema


class SessionStatus(str, enum.Enum):
    """Lifecycle of a FormSession.

    Transitions:
        initializing -> active    (initialize)
        active -> active          (submit_step_answers, go_back)
        active -> complete        (end of form or terminate step reached)
        any -> initializing -> active  (restart)
    """

    INITIALIZING = "initializing"
    ACTIVE = "active"
    COMPLETE = "complete"


class EndReason(str, enum.Enum):
    """Why a session became complete."""

    # Submit navigation reached; the application should be submitted
    SUBMIT = "submit"
    # A terminate step (dead end) was reached
    TERMINATE = "terminate"
    # Conditional / computed navigation found no successor
    FORM_END = "form_end"


class SessionState(BaseModel):
    """Full state of one form session.

    Owned by a single FormSession; callers only ever see copies.
    """

    form_schema: FormSchema
    current_step_id: str
    answers: dict[str, Any] = {}
    # Stack of visited step ids, most recent last
    history: list[str] = []
    application_id: Optional[str] = None
    is_complete: bool = False
    end_reason: Optional[EndReason] = None


class SessionSnapshot(BaseModel):
    """Serialisable session state without the schema.

    Produced by ``FormSession.snapshot()`` and consumed by
    ``FormSession.restore()`` so a stateless server can rebuild a session
    from a database row.
    """

    current_step_id: str
    answers: dict[str, Any] = {}
    history: list[str] = []
    application_id: Optional[str] = None
    is_complete: bool = False
    end_reason: Optional[EndReason] = None


# ----------------------------------------------------------------------
# submit_step_answers outcomes
# ----------------------------------------------------------------------

class Advanced(BaseModel):
    """The step was satisfied and the session moved on."""

    type: Literal["advanced"] = "advanced"
    from_step_id: str
    current_step_id: str
    is_complete: bool = False
    end_reason: Optional[EndReason] = None


class Blocked(BaseModel):
    """Visible required fields are still empty; the step did not change."""

    type: Literal["blocked"] = "blocked"
    step_id: str
    missing_field_ids: list[str]


StepOutcome = Advanced | Blocked


# ----------------------------------------------------------------------
# go_back outcomes
# ----------------------------------------------------------------------

class SteppedBack(BaseModel):
    """Moved back to the previous step in history."""

    type: Literal["ok"] = "ok"
    left_step_id: str
    current_step_id: str


class NoHistory(BaseModel):
    """Already at the first step; nothing changed."""

    type: Literal["no_history"] = "no_history"
    current_step_id: str


BackOutcome = SteppedBack | NoHistory
