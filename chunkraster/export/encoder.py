"""Lossless PNG encoding of the finished output buffer."""

from __future__ import annotations

import io
import logging

import numpy as np
from numpy.typing import NDArray
from PIL import Image

from ..core.errors import EncodingFailedError

logger = logging.getLogger(__name__)

# zlib level; PNG is lossless at every level
PNG_COMPRESS_LEVEL = 6


def encode_png(
    pixels: NDArray[np.uint8] | bytes,
    width: int,
    height: int,
    compress_level: int = PNG_COMPRESS_LEVEL,
) -> bytes:
    """Encode an RGBA buffer as a true-color PNG.

    Always writes 8-bit RGBA; no palette reduction or quantization.

    Args:
        pixels: Row-major RGBA bytes, flat or HxWx4
        width: Image width
        height: Image height
        compress_level: zlib compression level (0-9)

    Returns:
        PNG file bytes

    Raises:
        EncodingFailedError: If the buffer does not match the size or
            Pillow fails to encode
    """
    expected = width * height * 4
    if isinstance(pixels, (bytes, bytearray)):
        data: bytes | bytearray | NDArray[np.uint8] = pixels
        size = len(pixels)
    else:
        # Pillow reads the array through the buffer protocol, no copy
        data = np.ascontiguousarray(pixels, dtype=np.uint8)
        size = int(data.nbytes)
    if size != expected:
        raise EncodingFailedError(
            f"Buffer holds {size} bytes, expected {expected} for {width}x{height} RGBA"
        )

    try:
        image = Image.frombuffer("RGBA", (width, height), data, "raw", "RGBA", 0, 1)
        out = io.BytesIO()
        image.save(out, format="PNG", compress_level=compress_level)
    except Exception as e:
        raise EncodingFailedError(f"PNG encoding failed: {e}") from e

    encoded = out.getvalue()
    logger.debug(f"Encoded {width}x{height} PNG: {len(encoded):,} bytes")
    return encoded


def decode_png(data: bytes) -> tuple[int, int, NDArray[np.uint8]]:
    """Decode PNG bytes into (width, height, HxWx4 RGBA array)."""
    with Image.open(io.BytesIO(data)) as img:
        rgba = np.asarray(img.convert("RGBA"), dtype=np.uint8)
        return img.width, img.height, rgba
