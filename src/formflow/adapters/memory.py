"""InMemoryPersistenceAdapter: process-local storage for offline use and tests."""

from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from formflow.errors import PersistenceError, SubmissionError
from formflow.interfaces import PersistenceAdapter
from formflow.models.schema import FormSchema

logger = logging.getLogger(__name__)


@dataclass
class StoredApplication:
    application_id: str
    platform: str
    answers: dict[str, Any] = field(default_factory=dict)
    files: list[dict[str, Any]] = field(default_factory=list)
    submitted_at: datetime | None = None


class InMemoryPersistenceAdapter(PersistenceAdapter):
    """Keeps applications in a dict; nothing survives the process.

    Answers are deep-copied on the way in and out so callers cannot
    mutate stored state by accident.
    """

    def __init__(self, schema: FormSchema) -> None:
        self._schema = schema
        self.applications: dict[str, StoredApplication] = {}

    async def load_schema(self) -> FormSchema:
        return self._schema

    async def create_session(self, platform: str) -> str:
        application_id = str(uuid.uuid4())
        self.applications[application_id] = StoredApplication(application_id, platform)
        logger.debug("Created in-memory application %s (%s)", application_id, platform)
        return application_id

    async def load_answers(self, application_id: str) -> dict[str, Any]:
        return copy.deepcopy(self._get(application_id, "load_answers").answers)

    async def save_answers(self, application_id: str, answers: dict[str, Any]) -> None:
        app = self._get(application_id, "save_answers")
        if app.submitted_at is not None:
            raise PersistenceError(
                f"Application {application_id} is already submitted",
                operation="save_answers",
                retryable=False,
            )
        app.answers = copy.deepcopy(answers)

    async def submit(self, application_id: str) -> None:
        app = self._get(application_id, "submit")
        if app.submitted_at is not None:
            raise SubmissionError(
                f"Application {application_id} is already submitted",
                operation="submit",
                retryable=False,
            )
        app.submitted_at = datetime.now(timezone.utc)

    async def link_file(
        self,
        application_id: str,
        file_id: str,
        field_id: str,
        filename: str,
    ) -> None:
        app = self._get(application_id, "link_file")
        app.files.append({"file_id": file_id, "field_id": field_id, "filename": filename})

    def _get(self, application_id: str, operation: str) -> StoredApplication:
        app = self.applications.get(application_id)
        if app is None:
            raise PersistenceError(
                f"Application not found: {application_id}",
                operation=operation,
                retryable=False,
            )
        return app
