"""Conversion of CSS-style color strings to Qt colors."""

from __future__ import annotations

import logging
import re

from PyQt6.QtGui import QColor

logger = logging.getLogger(__name__)

_RGBA_PATTERN = re.compile(
    r"^\s*rgba?\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*(?:,\s*([\d.]+)\s*)?\)\s*$",
    re.IGNORECASE
)

FALLBACK_COLOR = QColor(255, 255, 255, 179)


def parse_color(value: str) -> QColor:
    """
    Parse a color string.

    Accepts "rgb(r, g, b)" and "rgba(r, g, b, a)" with alpha in 0..1, as
    well as anything QColor understands ("#rrggbb", "#aarrggbb", names).
    Unparseable strings give a translucent white fallback.
    """
    match = _RGBA_PATTERN.match(value)
    if match:
        r, g, b = (min(int(c), 255) for c in match.group(1, 2, 3))
        alpha = match.group(4)
        a = 255 if alpha is None else round(max(0.0, min(float(alpha), 1.0)) * 255)
        return QColor(r, g, b, a)

    color = QColor(value)
    if not color.isValid():
        logger.warning(f"Invalid color {value!r}, using fallback")
        return QColor(FALLBACK_COLOR)
    return color


def solid_color(value: str) -> QColor:
    """Parse a color string and force it fully opaque."""
    color = parse_color(value)
    color.setAlpha(255)
    return color
