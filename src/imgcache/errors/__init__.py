"""Error handling: exception hierarchy for codecs and fetching."""

from imgcache.errors.exceptions import (
    CodecError,
    FetchError,
    ImageCacheError,
    TerminalFetchError,
    TransientFetchError,
)

__all__ = [
    "ImageCacheError",
    "CodecError",
    "FetchError",
    "TransientFetchError",
    "TerminalFetchError",
]
