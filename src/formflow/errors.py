"""Error taxonomy for the form engine.

Every exception the SDK raises derives from :class:`FormFlowError` so
callers can catch the whole family at once.  Several also subclass a
builtin (``ValueError`` / ``RuntimeError``) so that generic handlers, such
as the server's ``ValueError`` handler, keep working.

``Blocked`` is deliberately absent: an unfilled required field is ordinary
control flow and is returned by the state machine, never raised.
"""

from __future__ import annotations


class FormFlowError(Exception):
    """Base class for all formflow errors."""


class SchemaError(FormFlowError, ValueError):
    """The form schema is malformed or inconsistent.

    Fatal: the session cannot be created until the schema is corrected.
    """


class ValidationError(FormFlowError, ValueError):
    """One or more submitted answers failed field-level format validation.

    Recoverable: the caller re-prompts the offending fields.

    Attributes:
        errors: mapping of field_id -> human-readable message
    """

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        detail = "; ".join(f"'{fid}': {msg}" for fid, msg in self.errors.items())
        super().__init__(f"Invalid answer(s): {detail}")

    @classmethod
    def for_field(cls, field_id: str, message: str) -> ValidationError:
        """Build an error for a single field."""
        return cls({field_id: message})


class NavigationCycleError(FormFlowError, RuntimeError):
    """The schema graph loops during a resumption walk.

    Never occurs for a well-formed schema; indicates an authoring bug.
    """

    def __init__(self, step_id: str, limit: int) -> None:
        self.step_id = step_id
        self.limit = limit
        super().__init__(
            f"Navigation did not settle after {limit} steps (last step: '{step_id}')"
        )


class SessionClosedError(FormFlowError, ValueError):
    """A transition was attempted on a session that is already complete."""


class PersistenceError(FormFlowError):
    """A save/load/link call to the persistence backend failed.

    The in-memory session state is untouched; the caller may retry.

    Attributes:
        operation: adapter operation name (e.g. ``"save_answers"``)
        retryable: True for timeouts, connection errors and 5xx responses
        status_code: HTTP status when the failure came from a response
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        retryable: bool = True,
        status_code: int | None = None,
    ) -> None:
        self.operation = operation
        self.retryable = retryable
        self.status_code = status_code
        super().__init__(message)


class SubmissionError(PersistenceError):
    """The final submission failed; answers are kept and submit can be retried."""
