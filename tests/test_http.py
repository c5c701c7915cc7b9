import asyncio

import aiohttp
import pytest

from workline_search.exceptions import FetchError
from workline_search.http import HttpClient, RetryPolicy


class FakeResponse:
    def __init__(self, status, body="", payload=None):
        self.status = status
        self._body = body
        self._payload = payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def text(self, errors="strict"):
        return self._body

    async def json(self, content_type="application/json"):
        return self._payload


class FakeSession:
    def __init__(self, responses):
        self._responses = list(responses)
        self.requests = []

    def get(self, url, headers=None, params=None, timeout=None):
        self.requests.append({"url": url, "headers": headers, "params": params})
        nxt = self._responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt


def _client(session, attempts=3):
    retry = RetryPolicy(max_attempts=attempts, base_delay_seconds=0, max_delay_seconds=0, retry_statuses={503})
    return HttpClient(session, retry=retry, user_agent="WorklineSearchBot/1.0 (test)", timeout_seconds=10)


def test_get_text_sends_identifying_headers():
    session = FakeSession([FakeResponse(200, "<html></html>")])
    assert asyncio.run(_client(session).get_text("https://example.com/a")) == "<html></html>"
    headers = session.requests[0]["headers"]
    assert headers["User-Agent"] == "WorklineSearchBot/1.0 (test)"
    assert headers["Accept"].startswith("text/html")


def test_retries_retryable_status_then_succeeds():
    session = FakeSession([FakeResponse(503), aiohttp.ClientConnectionError("reset"), FakeResponse(200, "ok")])
    assert asyncio.run(_client(session).get_text("https://example.com/a")) == "ok"
    assert len(session.requests) == 3


def test_client_error_status_fails_without_retry():
    session = FakeSession([FakeResponse(404)])
    with pytest.raises(FetchError):
        asyncio.run(_client(session).get_text("https://example.com/missing"))
    assert len(session.requests) == 1


def test_timeouts_exhaust_retries():
    session = FakeSession([asyncio.TimeoutError(), asyncio.TimeoutError()])
    with pytest.raises(FetchError):
        asyncio.run(_client(session, attempts=2).get_text("https://example.com/slow"))


def test_get_json_passes_params_and_requires_object():
    session = FakeSession([FakeResponse(200, payload={"items": []}), FakeResponse(200, payload=[1, 2])])
    client = _client(session)

    assert asyncio.run(client.get_json("https://api.example.com", params={"q": "x"})) == {"items": []}
    assert session.requests[0]["params"] == {"q": "x"}

    with pytest.raises(FetchError):
        asyncio.run(client.get_json("https://api.example.com"))
