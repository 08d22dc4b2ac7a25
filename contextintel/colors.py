"""Colour parsing and WCAG contrast math."""

from __future__ import annotations

import math
import re
from typing import Any, Mapping, NamedTuple, Optional


class RGB(NamedTuple):
    r: int
    g: int
    b: int


_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_RGB_RE = re.compile(
    r"^rgba?\(\s*([\d.]+)\s*,\s*([\d.]+)\s*,\s*([\d.]+)(?:\s*,\s*[\d.]+)?\s*\)$",
    re.IGNORECASE,
)
_NAMED = {
    "white": RGB(255, 255, 255),
    "black": RGB(0, 0, 0),
}
_MAX_DISTANCE = math.sqrt(3 * 255**2)


def parse_color(value: Any) -> Optional[RGB]:
    """Parse hex, ``rgb()``/``rgba()``, a few names or an ``{r, g, b}`` mapping."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Mapping):
        return _from_mapping(value)
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    named = _NAMED.get(text.lower())
    if named is not None:
        return named
    match = _HEX_RE.match(text)
    if match:
        digits = match.group(1)
        if len(digits) in (3, 4):
            digits = "".join(ch * 2 for ch in digits[:3])
        return RGB(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))
    match = _RGB_RE.match(text)
    if match:
        try:
            channels = [_clamp_channel(float(part)) for part in match.groups()]
        except ValueError:
            return None
        return RGB(*channels)
    return None


def _from_mapping(value: Mapping[str, Any]) -> Optional[RGB]:
    try:
        raw = [float(value[key]) for key in ("r", "g", "b")]
    except (KeyError, OverflowError, TypeError, ValueError):
        return None
    if not all(math.isfinite(channel) for channel in raw):
        return None
    # Figma style 0..1 channels
    if all(0.0 <= channel <= 1.0 for channel in raw):
        raw = [channel * 255 for channel in raw]
    return RGB(*(_clamp_channel(channel) for channel in raw))


def _clamp_channel(value: float) -> int:
    return int(round(min(max(value, 0.0), 255.0)))


def to_hex(color: RGB) -> str:
    return "#{:02X}{:02X}{:02X}".format(*color)


def relative_luminance(color: RGB) -> float:
    """WCAG 2.x relative luminance."""

    def _linear(channel: int) -> float:
        srgb = channel / 255
        if srgb <= 0.03928:
            return srgb / 12.92
        return ((srgb + 0.055) / 1.055) ** 2.4

    r, g, b = (_linear(channel) for channel in color)
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def contrast_ratio(first: RGB, second: RGB) -> float:
    lighter, darker = sorted(
        (relative_luminance(first), relative_luminance(second)), reverse=True
    )
    return (lighter + 0.05) / (darker + 0.05)


def color_similarity(first: RGB, second: RGB) -> float:
    """1.0 for identical colours, 0.0 for black against white."""
    distance = math.sqrt(sum((a - b) ** 2 for a, b in zip(first, second)))
    return max(0.0, 1.0 - distance / _MAX_DISTANCE)


__all__ = [
    "RGB",
    "color_similarity",
    "contrast_ratio",
    "parse_color",
    "relative_luminance",
    "to_hex",
]
