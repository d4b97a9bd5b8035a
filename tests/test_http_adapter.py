"""HttpPersistenceAdapter tests against an httpx.MockTransport.

No network: every request is answered by a handler function that records
what it saw.  retry_delay is 0 so retries do not slow the suite down.
"""

import json

import httpx
import pytest

from formflow.adapters.http import HttpPersistenceAdapter
from formflow.config import HttpAdapterSettings
from formflow.errors import PersistenceError, SubmissionError

APP_ID = "6f1c1f4e-8a55-4a53-9d0d-3f4c2b7f0a11"


class Recorder:
    """Mock transport handler that replays queued responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item


def _adapter(recorder, max_retries=3):
    settings = HttpAdapterSettings(
        base_url="http://api.test", max_retries=max_retries, retry_delay=0,
    )
    client = httpx.AsyncClient(
        base_url=settings.base_url, transport=httpx.MockTransport(recorder),
    )
    return HttpPersistenceAdapter(settings, client=client)


def _body(request):
    return json.loads(request.content) if request.content else None


# =====================================================================
# Requests
# =====================================================================


class TestRequests:
    """Each operation hits the right endpoint with the right body."""

    @pytest.mark.asyncio
    async def test_load_schema(self, sample_form):
        """The active schema is fetched and parsed."""
        rec = Recorder(httpx.Response(200, json=sample_form.to_wire()))
        schema = await _adapter(rec).load_schema()
        assert schema == sample_form
        assert rec.requests[0].url.path == "/api/v1/forms/schema/active"

    @pytest.mark.asyncio
    async def test_create_session(self):
        """POST /sessions with the platform tag."""
        rec = Recorder(httpx.Response(201, json={"application_uuid": APP_ID, "session_id": "s"}))
        app_id = await _adapter(rec).create_session("miniapp")
        assert app_id == APP_ID
        req = rec.requests[0]
        assert (req.method, req.url.path) == ("POST", "/api/v1/sessions")
        assert _body(req) == {"platform": "miniapp"}

    @pytest.mark.asyncio
    async def test_create_session_without_id(self):
        """A response without application_uuid is an error."""
        rec = Recorder(httpx.Response(201, json={"session_id": "s"}))
        with pytest.raises(PersistenceError, match="application_uuid"):
            await _adapter(rec).create_session("web")

    @pytest.mark.asyncio
    async def test_load_answers(self):
        """Answers come from the data key of the public view."""
        rec = Recorder(httpx.Response(200, json={"application_uuid": APP_ID, "data": {"a": 1}}))
        assert await _adapter(rec).load_answers(APP_ID) == {"a": 1}
        assert rec.requests[0].url.path == f"/api/v1/applications/{APP_ID}/public"

    @pytest.mark.asyncio
    async def test_load_answers_without_data(self):
        """A body without data means no answers yet."""
        rec = Recorder(httpx.Response(200, json={"application_uuid": APP_ID}))
        assert await _adapter(rec).load_answers(APP_ID) == {}

    @pytest.mark.asyncio
    async def test_save_answers_sends_full_set(self):
        """PATCH carries the whole answer dict."""
        rec = Recorder(httpx.Response(200, json={}))
        await _adapter(rec).save_answers(APP_ID, {"a": 1, "b": [1, 2]})
        req = rec.requests[0]
        assert req.method == "PATCH"
        assert _body(req) == {"a": 1, "b": [1, 2]}

    @pytest.mark.asyncio
    async def test_link_file(self):
        """POST /files with the three identifiers."""
        rec = Recorder(httpx.Response(201, json={}))
        await _adapter(rec).link_file(APP_ID, "f-1", "passport", "p.jpg")
        req = rec.requests[0]
        assert req.url.path == f"/api/v1/applications/{APP_ID}/files"
        assert _body(req) == {"file_id": "f-1", "field_id": "passport", "filename": "p.jpg"}

    @pytest.mark.asyncio
    async def test_submit(self):
        """POST /submit without a body."""
        rec = Recorder(httpx.Response(200, json={"status": "submitted"}))
        await _adapter(rec).submit(APP_ID)
        req = rec.requests[0]
        assert (req.method, req.url.path) == ("POST", f"/api/v1/applications/{APP_ID}/submit")


# =====================================================================
# Retry and error mapping
# =====================================================================


class TestRetry:
    """Which failures are retried and how they surface."""

    @pytest.mark.asyncio
    async def test_5xx_retried_then_succeeds(self):
        """A 503 followed by a 200 succeeds on the second attempt."""
        rec = Recorder(httpx.Response(503), httpx.Response(200, json={}))
        await _adapter(rec).save_answers(APP_ID, {"a": 1})
        assert len(rec.requests) == 2

    @pytest.mark.asyncio
    async def test_5xx_exhausts_attempts(self):
        """Persistent 500s fail after max_retries attempts."""
        rec = Recorder(httpx.Response(500, json={"detail": "boom"}))
        with pytest.raises(PersistenceError) as exc_info:
            await _adapter(rec, max_retries=3).save_answers(APP_ID, {})
        assert len(rec.requests) == 3
        err = exc_info.value
        assert err.status_code == 500
        assert err.retryable
        assert err.operation == "save_answers"
        assert "boom" in str(err)

    @pytest.mark.asyncio
    async def test_4xx_not_retried(self):
        """Client errors fail on the first attempt."""
        rec = Recorder(httpx.Response(404, json={"detail": "Resource not found"}))
        with pytest.raises(PersistenceError) as exc_info:
            await _adapter(rec).load_answers(APP_ID)
        assert len(rec.requests) == 1
        assert exc_info.value.status_code == 404
        assert not exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_timeout_retried(self):
        """Timeouts are retried and reported as retryable."""
        rec = Recorder(httpx.ReadTimeout("slow"))
        with pytest.raises(PersistenceError, match="timed out") as exc_info:
            await _adapter(rec, max_retries=2).save_answers(APP_ID, {})
        assert len(rec.requests) == 2
        assert exc_info.value.retryable
        assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)

    @pytest.mark.asyncio
    async def test_connection_error(self):
        """Connection failures map to PersistenceError."""
        rec = Recorder(httpx.ConnectError("refused"), httpx.Response(200, json={"data": {}}))
        assert await _adapter(rec).load_answers(APP_ID) == {}
        assert len(rec.requests) == 2

    @pytest.mark.asyncio
    async def test_submit_raises_submission_error(self):
        """submit failures use the SubmissionError subclass."""
        rec = Recorder(httpx.Response(404, json={"detail": "Resource not found"}))
        with pytest.raises(SubmissionError) as exc_info:
            await _adapter(rec).submit(APP_ID)
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_submit_conflict_is_success(self):
        """409 means already submitted; a lost response plus retry still succeeds."""
        rec = Recorder(
            httpx.ReadTimeout("slow"),
            httpx.Response(409, json={"detail": "already submitted"}),
        )
        await _adapter(rec).submit(APP_ID)
        assert len(rec.requests) == 2, "the timed-out attempt is retried once"

    @pytest.mark.asyncio
    async def test_create_session_not_retried_after_5xx(self):
        """A 5xx may hide a created application, so create_session fails at once."""
        rec = Recorder(httpx.Response(503), httpx.Response(201, json={"application_uuid": APP_ID}))
        with pytest.raises(PersistenceError) as exc_info:
            await _adapter(rec).create_session("web")
        assert len(rec.requests) == 1, "no second POST /sessions"
        assert not exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_create_session_not_retried_after_read_timeout(self):
        """A read timeout on create_session is not retried."""
        rec = Recorder(httpx.ReadTimeout("slow"))
        with pytest.raises(PersistenceError, match="timed out"):
            await _adapter(rec).create_session("web")
        assert len(rec.requests) == 1

    @pytest.mark.asyncio
    async def test_create_session_retried_when_unsent(self):
        """Connect failures never reached the server and are retried."""
        rec = Recorder(
            httpx.ConnectError("refused"),
            httpx.Response(201, json={"application_uuid": APP_ID, "session_id": "s"}),
        )
        assert await _adapter(rec).create_session("web") == APP_ID
        assert len(rec.requests) == 2

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        """A 200 with garbage where JSON was expected is not retried."""
        rec = Recorder(httpx.Response(200, text="<html>"))
        with pytest.raises(PersistenceError, match="not valid JSON"):
            await _adapter(rec).load_answers(APP_ID)
        assert len(rec.requests) == 1

    @pytest.mark.asyncio
    async def test_single_attempt_setting(self):
        """max_retries=1 disables retrying."""
        rec = Recorder(httpx.Response(503))
        with pytest.raises(PersistenceError):
            await _adapter(rec, max_retries=1).submit(APP_ID)
        assert len(rec.requests) == 1


class TestClientLifecycle:
    """Ownership of the underlying httpx client."""

    @pytest.mark.asyncio
    async def test_owned_client_closed(self):
        """A client the adapter created is closed on exit."""
        async with HttpPersistenceAdapter(HttpAdapterSettings()) as adapter:
            client = adapter._get_client()
        assert client.is_closed

    @pytest.mark.asyncio
    async def test_injected_client_left_open(self):
        """A caller-provided client is the caller's to close."""
        rec = Recorder(httpx.Response(200, json={}))
        adapter = _adapter(rec)
        await adapter.aclose()
        assert not adapter._client.is_closed
        await adapter._client.aclose()
