"""CSS color parsing.

Colors in export options follow CSS syntax. Pillow's ``ImageColor`` covers
named colors, hex and ``hsl()``, but expects an integer alpha in ``rgba()``;
CSS uses a 0-1 float (``rgba(0, 0, 0, 0.1)``), which is handled here first.
"""

from __future__ import annotations

import re

from PIL import ImageColor

RGBA = tuple[int, int, int, int]

_FUNC_RE = re.compile(r"^(rgba?)\(\s*([^)]*)\)$", re.IGNORECASE)


def _channel(token: str) -> int:
    if token.endswith("%"):
        value = float(token[:-1]) * 255.0 / 100.0
    else:
        value = float(token)
    return max(0, min(255, int(round(value))))


def _alpha(token: str) -> int:
    if token.endswith("%"):
        value = float(token[:-1]) / 100.0
    else:
        value = float(token)
    return max(0, min(255, int(round(max(0.0, min(1.0, value)) * 255))))


def parse_color(value: str) -> RGBA:
    """Parse a CSS color string into an RGBA tuple.

    Args:
        value: Any CSS color Pillow understands, plus ``rgb()``/``rgba()``
            with a fractional or percentage alpha and ``transparent``.

    Returns:
        (r, g, b, a) with each channel in 0-255

    Raises:
        ValueError: If the string is not a recognizable color
    """
    text = value.strip()
    if not text:
        raise ValueError("Empty color value")
    if text.lower() == "transparent":
        return (0, 0, 0, 0)

    match = _FUNC_RE.match(text)
    if match:
        # Accept both "r, g, b, a" and "r g b / a"
        parts = [p for p in re.split(r"[\s,/]+", match.group(2).strip()) if p]
        if len(parts) not in (3, 4):
            raise ValueError(f"Invalid color: {value!r}")
        try:
            r, g, b = (_channel(p) for p in parts[:3])
            a = _alpha(parts[3]) if len(parts) == 4 else 255
        except ValueError as e:
            raise ValueError(f"Invalid color: {value!r}") from e
        return (r, g, b, a)

    try:
        rgb = ImageColor.getrgb(text)
    except ValueError as e:
        raise ValueError(f"Invalid color: {value!r}") from e
    if len(rgb) == 4:
        return (rgb[0], rgb[1], rgb[2], rgb[3])
    return (rgb[0], rgb[1], rgb[2], 255)
