"""Custom exception hierarchy for imgcache."""

from __future__ import annotations

from typing import Any


class ImageCacheError(Exception):
    """Base exception for all imgcache errors."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        super().__init__(message)
        self.message = message


class CodecError(ImageCacheError):
    """A blob could not be encoded to bytes or decoded from them."""

    def __init__(
        self,
        message: str = "",
        operation: str = "decode",
        original: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.original = original


class FetchError(ImageCacheError):
    """Base for failures retrieving a blob over the network."""

    def __init__(
        self,
        message: str = "",
        url: str = "",
        http_status: int | None = None,
        original: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.http_status = http_status
        self.original = original


class TransientFetchError(FetchError):
    """Transient fetch failure, safe to retry with backoff.

    Examples: 429 rate limit, 500/502/503 server error, timeout, connection error.
    """


class TerminalFetchError(FetchError):
    """Terminal fetch failure; retrying will not help.

    Examples: 404 not found, 403 forbidden, malformed URL.
    """
