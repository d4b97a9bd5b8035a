"""Abstract interface for the persistence backend.

The state machine never talks to storage itself.  A controller (see
:mod:`formflow.controller`) drives a ``FormSession`` and hands its answers
to a ``PersistenceAdapter`` after each transition.

The SDK ships three implementations:

  - ``formflow.adapters.http.HttpPersistenceAdapter``    : hosted REST API
  - ``formflow.adapters.memory.InMemoryPersistenceAdapter``: local / tests
  - ``formflow_db.adapter.DatabasePersistenceAdapter``   : PostgreSQL

Typical integration flow::

    adapter = HttpPersistenceAdapter(load_http_settings())
    controller = FormController(adapter)
    view = await controller.start(application_id=stored_id)
    # ... render view.messages, collect input ...
    result = await controller.answer({"full_name": "Ivan Petrov"})
    # ... once the session is complete ...
    await controller.submit()
"""

from abc import ABC, abstractmethod
from typing import Any

from formflow.models.schema import FormSchema


class PersistenceAdapter(ABC):
    """Interface for loading schemas and storing application answers.

    Implementations raise :class:`formflow.errors.PersistenceError` for
    transport/storage failures and
    :class:`formflow.errors.SubmissionError` when the final submit fails.
    """

    @abstractmethod
    async def load_schema(self) -> FormSchema:
        """Fetch the active form schema.

        Returns
        -------
        FormSchema
            The validated schema the session should walk.
        """
        ...

    @abstractmethod
    async def create_session(self, platform: str) -> str:
        """Open a new application on the backend.

        Parameters
        ----------
        platform:
            Host platform tag (e.g. ``"web"``, ``"telegram"``).

        Returns
        -------
        str
            The new application id.
        """
        ...

    @abstractmethod
    async def load_answers(self, application_id: str) -> dict[str, Any]:
        """Return the answers previously stored for ``application_id``."""
        ...

    @abstractmethod
    async def save_answers(self, application_id: str, answers: dict[str, Any]) -> None:
        """Replace the stored answers with the full ``answers`` set.

        Parameters
        ----------
        application_id:
            Application returned by :meth:`create_session`.
        answers:
            The complete answer set (not a delta).
        """
        ...

    @abstractmethod
    async def submit(self, application_id: str) -> None:
        """Mark the application as submitted."""
        ...

    @abstractmethod
    async def link_file(
        self,
        application_id: str,
        file_id: str,
        field_id: str,
        filename: str,
    ) -> None:
        """Associate an already-uploaded file with a file field.

        Parameters
        ----------
        application_id:
            Target application.
        file_id:
            Id returned by the upload transport (out of scope here).
        field_id:
            The file field the upload answers.
        filename:
            Original file name shown back to the user.
        """
        ...
