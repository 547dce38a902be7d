from __future__ import annotations

import asyncio
import json
import logging
import random
from dataclasses import dataclass
from typing import Any, Mapping, Optional
from urllib.parse import urlparse

import aiohttp

from news_aggregator.errors import FetchError

logger = logging.getLogger(__name__)


@dataclass
class RetryPolicy:
    max_attempts: int
    base_delay_seconds: float
    max_delay_seconds: float
    retry_statuses: set[int]

    def delay_for(self, attempt: int) -> float:
        delay = min(self.max_delay_seconds, self.base_delay_seconds * (2 ** (attempt - 1)))
        # jitter to avoid thundering herd
        return delay * random.uniform(0.7, 1.3)


class DomainRateLimiter:
    """Simple per-domain token bucket implemented with asyncio primitives."""

    def __init__(self, max_requests_per_period: int, period_seconds: float) -> None:
        self._max = max_requests_per_period
        self._period = period_seconds
        self._domain_locks: dict[str, asyncio.Lock] = {}
        self._domain_times: dict[str, list[float]] = {}

    async def acquire(self, url: str) -> None:
        domain = urlparse(url).netloc.lower()
        lock = self._domain_locks.setdefault(domain, asyncio.Lock())
        loop = asyncio.get_running_loop()

        while True:
            async with lock:
                now = loop.time()
                times = self._domain_times.setdefault(domain, [])
                cutoff = now - self._period
                while times and times[0] < cutoff:
                    times.pop(0)

                if len(times) < self._max:
                    times.append(now)
                    return

                # wait until the oldest token expires
                wait_for = (times[0] + self._period) - now

            await asyncio.sleep(max(0.0, wait_for))


def _clean_params(params: Optional[Mapping[str, Any]]) -> dict[str, str]:
    # aiohttp rejects None values; providers treat a missing param as "no filter"
    out: dict[str, str] = {}
    for k, v in (params or {}).items():
        if v is None or v == "":
            continue
        out[str(k)] = str(v)
    return out


class HttpClient:
    """JSON GET client shared by the provider adapters.

    Every failure mode (network error, timeout, non-2xx status once retries are
    exhausted, body that is not a JSON object) is reported as a FetchError.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        limiter: DomainRateLimiter,
        retry: RetryPolicy,
        semaphore: asyncio.Semaphore,
        user_agent: str,
        timeout_seconds: int,
    ) -> None:
        self._session = session
        self._limiter = limiter
        self._retry = retry
        self._sem = semaphore
        self._ua = user_agent
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def get_json(
        self,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> dict[str, Any]:
        req_headers = {"User-Agent": self._ua, "Accept": "application/json"}
        req_headers.update(headers or {})
        query = _clean_params(params)

        last_error: FetchError | None = None
        for attempt in range(1, self._retry.max_attempts + 1):
            await self._limiter.acquire(url)
            async with self._sem:
                try:
                    async with self._session.get(
                        url, params=query, headers=req_headers, timeout=self._timeout
                    ) as r:
                        status = r.status
                        if status in self._retry.retry_statuses:
                            raise aiohttp.ClientResponseError(
                                request_info=r.request_info,
                                history=r.history,
                                status=status,
                                message=f"retryable status {status}",
                                headers=r.headers,
                            )
                        if status >= 400:
                            raise FetchError(url, f"HTTP {status}", status=status)
                        body = await r.text(errors="ignore")
                except aiohttp.ClientResponseError as exc:
                    last_error = FetchError(url, exc.message or f"HTTP {exc.status}", status=exc.status)
                except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                    last_error = FetchError(url, f"{type(exc).__name__}: {exc}")
                else:
                    return _decode(url, body)

            if attempt < self._retry.max_attempts:
                delay = self._retry.delay_for(attempt)
                logger.debug("Retrying %s in %.2fs (attempt %d): %s", url, delay, attempt, last_error)
                await asyncio.sleep(delay)

        if last_error is None:
            raise FetchError(url, f"no request attempted (max_attempts={self._retry.max_attempts})")
        raise last_error


def _decode(url: str, body: str) -> dict[str, Any]:
    try:
        data = json.loads(body)
    except ValueError as exc:
        raise FetchError(url, f"malformed JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise FetchError(url, "unexpected JSON payload (not an object)")
    return data
