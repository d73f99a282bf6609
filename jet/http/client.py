# jet/http/client.py
from __future__ import annotations
import asyncio
import logging
import random
from typing import Any
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from urllib.parse import urlparse

import httpx

logger = logging.getLogger(__name__)

__all__ = ["HTTPError", "request", "backoffDelayMs"]



class HTTPError(Exception):
    def __init__(self, status: int, body: str, *, retryAfter: float | None = None):
        super().__init__(f"HTTP {status}: {body[:200]}")
        self.status = status
        self.body = body
        self.retryAfter = retryAfter



def _parseRetryAfter(value: str | None) -> float | None:
    """Return seconds suggested by Retry-After header, if parsable."""
    if not value:
        return None
    # Retry-After: seconds
    try:
        secondsF = float(value)
        if secondsF >= 0:
            return secondsF
    except ValueError:
        pass
    # Retry-After: HTTP-date
    try:
        dt = parsedate_to_datetime(value)
        # Normalize to aware UTC for safe subtraction
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        now = datetime.now(timezone.utc).timestamp()
        return max(0.0, dt.timestamp() - now)
    except Exception:
        return None



def _shouldRetry(status: int) -> bool:
    # Typical transient HTTP errors upon which retry makes sense
    return status in (408, 429, 500, 502, 503, 504)



def backoffDelayMs(attempt: int, backoffBaseMs: int, backoffMaxMs: int) -> float:
    """Exponential backoff with +-25% jitter. `attempt` is 0-based."""
    base = min(backoffMaxMs, backoffBaseMs * (2 ** attempt))
    jitter = base * 0.25
    return max(0.0, base + random.uniform(-jitter, jitter))



async def request(
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
    timeoutMs: int = 30_000,
    retries: int = 2,
    backoffBaseMs: int = 250,
    backoffMaxMs: int = 1_000,
    followRedirects: bool = True,
    client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """
    Simple outbound HTTP client with timeout and retries (408/429/5xx).

    Returns:
    {
        "status": int,
        "headers": dict[str,str],
        "content": bytes,
        "json": Any? # Present when response looks like JSON and parses
    }

    - Raises HTTPError for 408/429/5xx after exhausting retries.
    - Re-raises httpx.HTTPError for transport errors after exhausting retries.
    - `client` reuses a long-lived AsyncClient (and its connection pool); the
      caller owns it. Without one, a client is opened for this call only.
    """
    if timeoutMs <= 0:
        timeoutMs = 1
    timeout = httpx.Timeout(timeoutMs / 1_000)
    method = str(method).upper()
    retries = max(0, retries)
    host = urlparse(url).hostname

    logger.debug("%s %s (timeout %dms, retries %d)", method, url, timeoutMs, retries)

    if client is not None:
        return await _send(client, method, url, host, headers, params, timeout, retries, backoffBaseMs, backoffMaxMs, followRedirects)
    async with httpx.AsyncClient(timeout=timeout, http2=True) as cli:
        return await _send(cli, method, url, host, headers, params, timeout, retries, backoffBaseMs, backoffMaxMs, followRedirects)



async def _send(
    cli: httpx.AsyncClient,
    method: str,
    url: str,
    host: str | None,
    headers: dict[str, str] | None,
    params: dict[str, Any] | None,
    timeout: httpx.Timeout,
    retries: int,
    backoffBaseMs: int,
    backoffMaxMs: int,
    followRedirects: bool,
) -> dict[str, Any]:
    attempt = 0
    while True:
        try:
            resp = await cli.request(
                method,
                url,
                headers=headers,
                params=params,
                timeout=timeout,
                follow_redirects=followRedirects
            )
            status = resp.status_code
            retryAfter = _parseRetryAfter(resp.headers.get("Retry-After"))

            # Retry policy based on status
            if _shouldRetry(status) and attempt < retries:
                if retryAfter is not None:
                    delayMs = retryAfter * 1000.0
                else:
                    delayMs = backoffDelayMs(attempt, backoffBaseMs, backoffMaxMs)
                logger.info("HTTP %d from %s, retry %d in %.0fms", status, host, attempt + 1, delayMs)
                attempt += 1
                await asyncio.sleep(delayMs / 1000.0)
                continue

            if status >= 500 or status in (408, 429):
                raise HTTPError(status, resp.text, retryAfter=retryAfter)

            # Success or non-retryable 4xx: return payload (no exception)
            out: dict[str, Any] = {
                "status": status,
                "headers": dict(resp.headers), # note: Duplicate header keys are collapsed
                "content": resp.content,
            }

            # Best-effort JSON parse
            ctype = resp.headers.get("Content-Type", "")
            if "json" in ctype.lower():
                try:
                    out["json"] = resp.json()
                except Exception:
                    # Keep going; caller still has "content"
                    pass

            logger.debug("%s %s -> %d (%d bytes, attempt %d)", method, url, status, len(resp.content), attempt)
            return out

        except httpx.HTTPError as err:
            # Transport-level error. Retry with backoff.
            attempt += 1
            if attempt > retries:
                logger.warning("%s %s failed: %s", method, url, err)
                raise
            delayMs = backoffDelayMs(attempt - 1, backoffBaseMs, backoffMaxMs)
            logger.info("Transport error from %s (%s), retry %d in %.0fms", host, err, attempt, delayMs)
            await asyncio.sleep(delayMs / 1000.0)
