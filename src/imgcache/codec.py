"""Blob codecs: convert between cached objects and the bytes stored on disk."""

from __future__ import annotations

import io
import logging
from typing import Any, Protocol

from PIL import Image, UnidentifiedImageError

from imgcache.errors.exceptions import CodecError

logger = logging.getLogger(__name__)

_JPEG_MODES = {"RGB", "L", "CMYK"}


class BlobCodec(Protocol):
    """Encodes blobs for storage and decodes stored bytes back into blobs."""

    def decode(self, data: bytes) -> Any:
        """Return the blob for ``data``; raise CodecError if it cannot be decoded."""
        ...

    def encode(self, blob: Any, quality: float | None = None) -> bytes:
        """Return bytes for ``blob``; raise CodecError if no encoding succeeds."""
        ...


class PillowImageCodec:
    """Stores ``PIL.Image.Image`` blobs as JPEG (when a quality is given) or PNG.

    ``quality`` is a 0.0–1.0 compression quality. Lossy encoding falls back to
    PNG when it fails.
    """

    def decode(self, data: bytes) -> Image.Image:
        if not data:
            raise CodecError("Empty image payload", operation="decode")
        try:
            img = Image.open(io.BytesIO(data))
            img.load()
        except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
            raise CodecError(f"Cannot decode image: {e}", operation="decode", original=e) from e
        return img

    def encode(self, blob: Any, quality: float | None = None) -> bytes:
        if not isinstance(blob, Image.Image):
            raise CodecError(
                f"Expected a PIL image, got {type(blob).__name__}", operation="encode"
            )
        if quality is not None:
            try:
                return self._to_jpeg(blob, quality)
            except (OSError, ValueError) as e:
                logger.debug("JPEG encoding failed, falling back to PNG: %s", e)
        try:
            return _save(blob, "PNG")
        except (OSError, ValueError) as e:
            raise CodecError(f"Cannot encode image: {e}", operation="encode", original=e) from e

    @staticmethod
    def _to_jpeg(img: Image.Image, quality: float) -> bytes:
        if img.mode not in _JPEG_MODES:
            img = img.convert("RGB")
        return _save(img, "JPEG", quality=jpeg_quality(quality))


class RawBytesCodec:
    """Identity codec for blobs that are already opaque byte strings."""

    def decode(self, data: bytes) -> bytes:
        return bytes(data)

    def encode(self, blob: Any, quality: float | None = None) -> bytes:
        if not isinstance(blob, (bytes, bytearray, memoryview)):
            raise CodecError(
                f"Expected bytes, got {type(blob).__name__}", operation="encode"
            )
        return bytes(blob)


def jpeg_quality(quality: float) -> int:
    """Map a 0.0–1.0 compression quality onto Pillow's 1–100 scale."""
    return max(1, min(100, round(quality * 100)))


def _save(img: Image.Image, fmt: str, **params: Any) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format=fmt, **params)
    return buf.getvalue()
