"""Cache file naming: filesystem-safe names derived from logical keys."""

from __future__ import annotations

import string
import uuid
from pathlib import PurePosixPath
from urllib.parse import urlsplit

MAX_BASE_LENGTH = 200
DEFAULT_EXTENSION = "img"

_ALLOWED = frozenset((string.ascii_letters + string.digits + "-._@").encode("ascii"))


def encode_file_name(key: str, extension_hint: str | None = None) -> str:
    """Derive the on-disk file name for a logical key.

    The key is percent-encoded against a small allow-list and, when longer
    than 200 characters, cut down to its last 200. This is stable but not
    collision-free: two long keys sharing a 200 character suffix map to the
    same file. Hashing the key would avoid that at the cost of readable names.

    A leading dot is written as ``%2E`` so the file is never hidden from
    listings or eviction.
    """
    try:
        base = _percent_encode(key)
    except (UnicodeError, TypeError, AttributeError):
        base = str(uuid.uuid4()).upper()

    if len(base) > MAX_BASE_LENGTH:
        base = base[-MAX_BASE_LENGTH:]
    if base.startswith("."):
        base = "%2E" + base[1:]

    ext = DEFAULT_EXTENSION
    if extension_hint:
        try:
            ext = _percent_encode(extension_hint) or DEFAULT_EXTENSION
        except (UnicodeError, TypeError, AttributeError):
            ext = DEFAULT_EXTENSION
    return f"{base}.{ext}"


def extension_hint_for(key: str) -> str | None:
    """Return the path extension of a URL-like key (``png`` for ``.../a.png``)."""
    try:
        path = urlsplit(key).path
    except ValueError:
        return None
    suffix = PurePosixPath(path).suffix
    return suffix[1:] or None


def _percent_encode(value: str) -> str:
    parts: list[str] = []
    for byte in value.encode("utf-8"):
        if byte in _ALLOWED:
            parts.append(chr(byte))
        else:
            parts.append(f"%{byte:02X}")
    return "".join(parts)
