"""Async HTTP fetcher for blobs missing from the cache."""

from __future__ import annotations

import logging
from typing import Protocol

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from imgcache.errors.exceptions import TerminalFetchError, TransientFetchError

logger = logging.getLogger(__name__)

# Transient HTTP status codes that warrant retry
_TRANSIENT_STATUS = frozenset({408, 425, 429, 500, 502, 503, 504})


class Fetcher(Protocol):
    """Retrieves the raw bytes behind a key."""

    async def fetch(self, url: str) -> bytes: ...


class HttpFetcher:
    """Downloads blobs over HTTP(S) with retry on transient failures."""

    def __init__(
        self,
        timeout: float = 30.0,
        max_attempts: int = 3,
        client: httpx.AsyncClient | None = None,
        wait: wait_base | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        self._owns_client = client is None
        self._max_attempts = max(1, max_attempts)
        self._wait = wait or wait_exponential(multiplier=1, min=1, max=30)

    async def fetch(self, url: str) -> bytes:
        """Return the response body for ``url``.

        Raises TransientFetchError once retries are exhausted, or
        TerminalFetchError immediately for non-retryable failures.
        """
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(TransientFetchError),
            wait=self._wait,
            stop=stop_after_attempt(self._max_attempts),
            before_sleep=self._log_retry,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._fetch_once(url)
        raise TransientFetchError("Max fetch attempts exhausted", url=url)

    async def _fetch_once(self, url: str) -> bytes:
        try:
            response = await self._client.get(url)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise TerminalFetchError(str(e), url=url, original=e) from e
        except httpx.TransportError as e:
            raise TransientFetchError(str(e), url=url, original=e) from e
        except httpx.HTTPError as e:
            raise TerminalFetchError(str(e), url=url, original=e) from e

        status = response.status_code
        if status in _TRANSIENT_STATUS:
            raise TransientFetchError(f"HTTP {status}", url=url, http_status=status)
        if status >= 400:
            raise TerminalFetchError(f"HTTP {status}", url=url, http_status=status)
        return response.content

    @staticmethod
    def _log_retry(retry_state: object) -> None:
        outcome = getattr(retry_state, "outcome", None)
        attempt = getattr(retry_state, "attempt_number", 0)
        error = outcome.exception() if outcome is not None else None
        logger.warning("Transient fetch error (attempt %d): %s. Retrying", attempt, error)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpFetcher:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
