# jet/expand/fetch.py
from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from jet.config.settings import FetchSettings
from jet.core.errors import FetchFailure
from jet.http.client import HTTPError, backoffDelayMs, request

logger = logging.getLogger(__name__)

__all__ = ["Fetcher", "RetryPolicy", "HttpFetcher"]



class Fetcher(Protocol):
    """Retrieves the bytes behind a URL. Raises FetchFailure (path = url) on failure."""
    async def fetch(self, url: str) -> bytes: ...



@dataclass(frozen=True, slots=True)
class RetryPolicy:
    attempts: int = 3
    backoffBaseMs: int = 500
    backoffMaxMs: int = 8_000

    @classmethod
    def fromSettings(cls, settings: FetchSettings) -> "RetryPolicy":
        return cls(
            attempts=settings.attempts,
            backoffBaseMs=settings.backoffBaseMs,
            backoffMaxMs=settings.backoffMaxMs,
        )

    def delaySeconds(self, attempt: int, retryAfter: float | None = None) -> float:
        """
        Wait before retry number `attempt` (0-based). A server Retry-After hint
        replaces the computed backoff but is still capped at backoffMaxMs.
        """
        if retryAfter is not None:
            return min(max(0.0, retryAfter), self.backoffMaxMs / 1000.0)
        return backoffDelayMs(attempt, self.backoffBaseMs, self.backoffMaxMs) / 1000.0



class HttpFetcher:
    """
    Fetcher over jet.http.client. Makes exactly one request per call; retry
    policy belongs to the expansion engine.

    One AsyncClient is opened on first use and shared by every concurrent
    fetch, so parallel workers reuse its connection pool. Close it with
    `aclose()` or use the fetcher as an async context manager.
    """
    def __init__(self, settings: FetchSettings | None = None) -> None:
        self._settings = settings or FetchSettings()
        self._headers = {"User-Agent": self._settings.userAgent}
        self._clientCm = None
        self._client: httpx.AsyncClient | None = None
        self._lock = asyncio.Lock()

    async def _getClient(self) -> httpx.AsyncClient:
        async with self._lock:
            if self._client is None:
                self._clientCm = httpx.AsyncClient(timeout=httpx.Timeout(self._settings.timeoutMs / 1_000), http2=True)
                self._client = await self._clientCm.__aenter__()
            return self._client

    async def aclose(self) -> None:
        async with self._lock:
            clientCm, self._clientCm, self._client = self._clientCm, None, None
            if clientCm is not None:
                await clientCm.__aexit__(None, None, None)

    async def __aenter__(self) -> "HttpFetcher":
        await self._getClient()
        return self

    async def __aexit__(self, excType, exc, tb) -> None:
        await self.aclose()

    async def fetch(self, url: str) -> bytes:
        client = await self._getClient()
        try:
            resp = await request(
                "GET", url, headers=self._headers, timeoutMs=self._settings.timeoutMs, retries=0, client=client,
            )
        except HTTPError as err:
            raise FetchFailure(url, f"HTTP {err.status}", retryAfter=err.retryAfter) from err
        except httpx.InvalidURL as err:
            raise FetchFailure(url, f"invalid URL: {err}", retryable=False) from err
        except httpx.HTTPError as err:
            raise FetchFailure(url, f"{type(err).__name__}: {err}") from err
        except ValueError as err:
            # urlparse rejects some malformed URLs (e.g. unbalanced IPv6 brackets) before httpx sees them
            raise FetchFailure(url, f"invalid URL: {err}", retryable=False) from err

        status = resp["status"]
        if not 200 <= status < 300:
            # Remaining statuses are 4xx other than 408/429; repeating them will not help
            raise FetchFailure(url, f"HTTP {status}", retryable=False)
        return resp["content"]
