from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

import aiohttp

from workline_search.exceptions import FetchError


_HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


class Fetcher(Protocol):
    async def get_text(self, url: str) -> str: ...

    async def get_json(self, url: str, params: Optional[Mapping[str, Any]] = None) -> dict[str, Any]: ...


@dataclass
class RetryPolicy:
    max_attempts: int
    base_delay_seconds: float
    max_delay_seconds: float
    retry_statuses: set[int]

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "RetryPolicy":
        return cls(
            max_attempts=max(1, int(raw.get("max_attempts", 1))),
            base_delay_seconds=float(raw.get("base_delay_seconds", 0.5)),
            max_delay_seconds=float(raw.get("max_delay_seconds", 4.0)),
            retry_statuses=set(int(x) for x in raw.get("retry_statuses", [])),
        )


class HttpClient:
    """aiohttp-backed fetcher. Every failure surfaces as FetchError once retries are spent."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        retry: RetryPolicy,
        user_agent: str,
        timeout_seconds: float,
    ) -> None:
        self._session = session
        self._retry = retry
        self._ua = user_agent
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def get_text(self, url: str) -> str:
        headers = {
            "User-Agent": self._ua,
            "Accept": _HTML_ACCEPT,
            "Accept-Language": "en-US,en;q=0.9",
        }
        return await self._request(url, headers=headers, params=None, as_json=False)

    async def get_json(self, url: str, params: Optional[Mapping[str, Any]] = None) -> dict[str, Any]:
        headers = {"User-Agent": self._ua, "Accept": "application/json"}
        data = await self._request(url, headers=headers, params=params, as_json=True)
        if not isinstance(data, dict):
            raise FetchError(f"{url}: expected a JSON object, got {type(data).__name__}")
        return data

    async def _request(
        self,
        url: str,
        *,
        headers: dict[str, str],
        params: Optional[Mapping[str, Any]],
        as_json: bool,
    ) -> Any:
        last_error = "no attempt made"
        for attempt in range(1, self._retry.max_attempts + 1):
            try:
                async with self._session.get(url, headers=headers, params=params, timeout=self._timeout) as r:
                    status = r.status
                    if status in self._retry.retry_statuses:
                        last_error = f"retryable status {status}"
                    elif status >= 400:
                        raise FetchError(f"{url}: HTTP {status}")
                    elif as_json:
                        return await r.json(content_type=None)
                    else:
                        return await r.text(errors="ignore")
            except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                last_error = f"{type(e).__name__}: {e}"

            if attempt < self._retry.max_attempts:
                delay = min(
                    self._retry.max_delay_seconds,
                    self._retry.base_delay_seconds * (2 ** (attempt - 1)),
                )
                # jitter to avoid thundering herd
                delay *= random.uniform(0.7, 1.3)
                await asyncio.sleep(delay)

        raise FetchError(f"{url}: {last_error}")
