"""Tests for news_aggregator.http module."""

import asyncio

import aiohttp
import pytest

from news_aggregator.errors import FetchError
from news_aggregator.http import DomainRateLimiter, HttpClient, RetryPolicy, _clean_params, _decode


class FakeResponse:
    def __init__(self, status, body="{}") -> None:
        self.status = status
        self.body = body
        self.request_info = None
        self.history = ()
        self.headers = {}

    async def text(self, errors="strict"):
        return self.body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append((url, params, headers))
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def make_client(session, max_attempts=3):
    return HttpClient(
        session=session,
        limiter=DomainRateLimiter(max_requests_per_period=100, period_seconds=1.0),
        retry=RetryPolicy(
            max_attempts=max_attempts,
            base_delay_seconds=0.0,
            max_delay_seconds=0.0,
            retry_statuses={429, 503},
        ),
        semaphore=asyncio.Semaphore(4),
        user_agent="test-agent",
        timeout_seconds=5,
    )


def fetch(session, params=None, max_attempts=3):
    async def go():
        return await make_client(session, max_attempts).get_json("https://api.example.com/search", params=params)

    return asyncio.run(go())


class TestHttpClient:
    def test_returns_decoded_object(self) -> None:
        session = FakeSession(FakeResponse(200, '{"status": "ok"}'))

        assert fetch(session, params={"q": "storm", "section": None}) == {"status": "ok"}

        url, params, headers = session.calls[0]
        assert params == {"q": "storm"}
        assert headers["User-Agent"] == "test-agent"

    def test_retries_retryable_status(self) -> None:
        session = FakeSession(FakeResponse(503), FakeResponse(200, '{"ok": true}'))

        assert fetch(session) == {"ok": True}
        assert len(session.calls) == 2

    def test_gives_up_after_max_attempts(self) -> None:
        session = FakeSession(FakeResponse(429), FakeResponse(429))

        with pytest.raises(FetchError) as excinfo:
            fetch(session, max_attempts=2)

        assert excinfo.value.status == 429
        assert len(session.calls) == 2

    def test_client_error_status_is_not_retried(self) -> None:
        session = FakeSession(FakeResponse(401), FakeResponse(200))

        with pytest.raises(FetchError) as excinfo:
            fetch(session)

        assert excinfo.value.status == 401
        assert len(session.calls) == 1

    def test_network_error_becomes_fetch_error(self) -> None:
        session = FakeSession(aiohttp.ClientConnectionError("refused"), asyncio.TimeoutError())

        with pytest.raises(FetchError) as excinfo:
            fetch(session, max_attempts=2)

        assert "TimeoutError" in excinfo.value.reason

    def test_malformed_body(self) -> None:
        with pytest.raises(FetchError):
            fetch(FakeSession(FakeResponse(200, "<html>oops</html>")))

    def test_zero_attempts_raises_fetch_error(self) -> None:
        session = FakeSession(FakeResponse(200))

        with pytest.raises(FetchError):
            fetch(session, max_attempts=0)

        assert session.calls == []


class TestHelpers:
    def test_clean_params_drops_empty_values(self) -> None:
        assert _clean_params({"q": "x", "a": None, "b": "", "n": 20}) == {"q": "x", "n": "20"}
        assert _clean_params(None) == {}

    def test_decode_rejects_non_object(self) -> None:
        with pytest.raises(FetchError):
            _decode("https://x", "[1, 2]")
        assert _decode("https://x", '{"a": 1}') == {"a": 1}

    def test_delay_is_capped(self) -> None:
        policy = RetryPolicy(max_attempts=5, base_delay_seconds=1.0, max_delay_seconds=2.0, retry_statuses=set())
        assert 0.7 <= policy.delay_for(1) <= 1.3
        assert policy.delay_for(5) <= 2.0 * 1.3


class TestDomainRateLimiter:
    def test_allows_burst_up_to_limit(self) -> None:
        async def go():
            limiter = DomainRateLimiter(max_requests_per_period=3, period_seconds=60.0)
            for _ in range(3):
                await asyncio.wait_for(limiter.acquire("https://a.example.com/x"), timeout=1)
            # a different domain has its own bucket
            await asyncio.wait_for(limiter.acquire("https://b.example.com/x"), timeout=1)
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(limiter.acquire("https://a.example.com/y"), timeout=0.05)

        asyncio.run(go())
