"""HttpPersistenceAdapter: talks to the hosted application API over httpx.

Endpoints (relative to ``HttpAdapterSettings.base_url``)::

    GET   /api/v1/forms/schema/active
    POST  /api/v1/sessions                      {platform}
    GET   /api/v1/applications/{uuid}/public
    PATCH /api/v1/applications/{uuid}/public    <full answer set>
    POST  /api/v1/applications/{uuid}/files     {file_id, field_id, filename}
    POST  /api/v1/applications/{uuid}/submit

Every call gets ``settings.max_retries`` attempts with a linear backoff of
``retry_delay * attempt`` seconds.  Timeouts, connection errors and 5xx
responses are retried; 4xx responses fail immediately.  ``create_session``
is not idempotent and is only retried when the request was never sent.
``submit`` treats 409 (already submitted) as success.  Failures surface
as :class:`PersistenceError` (``SubmissionError`` for submit).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from formflow.config import HttpAdapterSettings, load_http_settings
from formflow.errors import PersistenceError, SubmissionError
from formflow.interfaces import PersistenceAdapter
from formflow.models.schema import FormSchema, parse_schema

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


class HttpPersistenceAdapter(PersistenceAdapter):
    """Persistence adapter for the REST backend.

    Args:
        settings: connection/retry settings; read from env when omitted
        client: pre-built ``httpx.AsyncClient`` (tests pass one with a
            ``MockTransport``); the adapter does not close a client it
            did not create
    """

    def __init__(
        self,
        settings: HttpAdapterSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or load_http_settings()
        self._client = client
        self._owns_client = client is None

    @property
    def settings(self) -> HttpAdapterSettings:
        return self._settings

    async def __aenter__(self) -> HttpPersistenceAdapter:
        self._get_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # PersistenceAdapter API
    # ------------------------------------------------------------------

    async def load_schema(self) -> FormSchema:
        resp = await self._request("load_schema", "GET", f"{API_PREFIX}/forms/schema/active")
        schema = parse_schema(self._json(resp, "load_schema"))
        logger.info("Loaded schema %s v%s from API", schema.name, schema.version)
        return schema

    async def create_session(self, platform: str) -> str:
        resp = await self._request(
            "create_session", "POST", f"{API_PREFIX}/sessions",
            json={"platform": platform},
            idempotent=False,
        )
        body = self._json(resp, "create_session")
        application_id = body.get("application_uuid") if isinstance(body, dict) else None
        if not application_id:
            raise PersistenceError(
                "create_session: response has no application_uuid",
                operation="create_session",
                retryable=False,
            )
        logger.info(
            "Created application %s (session %s, platform=%s)",
            application_id, body.get("session_id"), platform,
        )
        return str(application_id)

    async def load_answers(self, application_id: str) -> dict[str, Any]:
        resp = await self._request(
            "load_answers", "GET", f"{API_PREFIX}/applications/{application_id}/public",
        )
        body = self._json(resp, "load_answers")
        if isinstance(body, dict) and isinstance(body.get("data"), dict):
            return dict(body["data"])
        return {}

    async def save_answers(self, application_id: str, answers: dict[str, Any]) -> None:
        await self._request(
            "save_answers", "PATCH", f"{API_PREFIX}/applications/{application_id}/public",
            json=answers,
        )

    async def submit(self, application_id: str) -> None:
        """Submit the application.

        A 409 means the backend already holds a submission, typically from
        an earlier attempt whose response was lost, and counts as success.
        """
        try:
            await self._request(
                "submit", "POST", f"{API_PREFIX}/applications/{application_id}/submit",
                error_cls=SubmissionError,
            )
        except SubmissionError as exc:
            if exc.status_code != 409:
                raise
            logger.warning("Application %s was already submitted: %s", application_id, exc)
            return
        logger.info("Application %s submitted", application_id)

    async def link_file(
        self,
        application_id: str,
        file_id: str,
        field_id: str,
        filename: str,
    ) -> None:
        await self._request(
            "link_file", "POST", f"{API_PREFIX}/applications/{application_id}/files",
            json={"file_id": file_id, "field_id": field_id, "filename": filename},
        )

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._settings.base_url,
                timeout=self._settings.timeout,
            )
        return self._client

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        json: Any = None,
        error_cls: type[PersistenceError] = PersistenceError,
        idempotent: bool = True,
    ) -> httpx.Response:
        """Send one request with retry; return the successful response.

        A non-idempotent request is only retried when it never reached the
        server (connect errors and connect timeouts).  Read timeouts and 5xx
        responses may hide a request the server already applied.

        Raises:
            PersistenceError (or ``error_cls``): after the last failed attempt,
                or immediately for 4xx responses
        """
        client = self._get_client()
        attempts = max(1, self._settings.max_retries)
        error: PersistenceError | None = None

        for attempt in range(1, attempts + 1):
            try:
                resp = await client.request(method, path, json=json)
            except httpx.TimeoutException as exc:
                error = error_cls(
                    f"{operation}: request timed out after {self._settings.timeout}s",
                    operation=operation,
                    retryable=idempotent or isinstance(exc, httpx.ConnectTimeout),
                )
                error.__cause__ = exc
            except httpx.TransportError as exc:
                error = error_cls(
                    f"{operation}: connection failed: {exc}",
                    operation=operation,
                    retryable=idempotent or isinstance(exc, httpx.ConnectError),
                )
                error.__cause__ = exc
            else:
                if resp.status_code < 400:
                    return resp
                error = error_cls(
                    f"{operation}: HTTP {resp.status_code}: {_detail(resp)}",
                    operation=operation,
                    retryable=idempotent and resp.status_code >= 500,
                    status_code=resp.status_code,
                )

            if not error.retryable or attempt == attempts:
                break
            delay = self._settings.retry_delay * attempt
            logger.warning(
                "%s attempt %d/%d failed (%s); retrying in %.1fs",
                operation, attempt, attempts, error, delay,
            )
            await asyncio.sleep(delay)

        logger.error("%s failed: %s", operation, error)
        raise error

    @staticmethod
    def _json(resp: httpx.Response, operation: str) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise PersistenceError(
                f"{operation}: response is not valid JSON",
                operation=operation,
                retryable=False,
                status_code=resp.status_code,
            ) from exc


def _detail(resp: httpx.Response) -> str:
    """Extract the server's error detail, falling back to the raw body."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(body, dict) and "detail" in body:
        return str(body["detail"])
    return str(body)[:200]
