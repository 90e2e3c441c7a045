"""
Text metrics: headless measurement of display names.

The layout engine only sees the TextMetricsProvider protocol, so the same
layout can be computed for the browser canvas, PDF export, or tests.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, Optional, Protocol, Tuple

from PIL import ImageFont

logger = logging.getLogger(__name__)

ELLIPSIS = "..."
_SAINT_PREFIX = re.compile(r"^(Saint|St\.|St)\s+", re.IGNORECASE)


@dataclass(frozen=True)
class Font:
    family: str
    size: int


@dataclass(frozen=True)
class TextMeasurement:
    width: float
    height: float


class TextMetricsProvider(Protocol):
    def measure(self, text: str, font: Font) -> TextMeasurement:
        ...


class EstimatedTextMetrics:
    """Character-count estimate; deterministic and font-file free."""

    WIDTH_FACTOR = 0.6
    LINE_HEIGHT = 1.2

    def measure(self, text: str, font: Font) -> TextMeasurement:
        return TextMeasurement(
            width=len(text) * font.size * self.WIDTH_FACTOR,
            height=font.size * self.LINE_HEIGHT,
        )


class PillowTextMetrics:
    """Measures with a TrueType font through Pillow; no display needed."""

    def __init__(self, font_path: Optional[str] = None):
        self.font_path = font_path
        self._fonts: Dict[Tuple[str, int], ImageFont.ImageFont] = {}

    def _font(self, font: Font):
        key = (font.family, font.size)
        if key not in self._fonts:
            loaded = None
            if self.font_path:
                try:
                    loaded = ImageFont.truetype(self.font_path, font.size)
                except OSError as e:
                    logger.warning(f"Failed to load font {self.font_path}: {e}; using Pillow default")
            if loaded is None:
                loaded = ImageFont.load_default(font.size)
            self._fonts[key] = loaded
        return self._fonts[key]

    def measure(self, text: str, font: Font) -> TextMeasurement:
        pil_font = self._font(font)
        width = pil_font.getlength(text)
        # Height from the ascender/descender box of a reference string so
        # every name in a font measures to the same row height
        left, top, right, bottom = pil_font.getbbox("Mg")
        return TextMeasurement(width=float(width), height=float(bottom - top))


def fit_text(text: str, max_width: float, metrics: TextMetricsProvider, font: Font) -> str:
    """
    Shorten a display name until it fits *max_width*.

    Order: as-is, without a "Saint"/"St." prefix, first and last word
    only, then truncated with an ellipsis.
    """
    if metrics.measure(text, font).width <= max_width:
        return text

    shortened = _SAINT_PREFIX.sub("", text)
    if metrics.measure(shortened, font).width <= max_width:
        return shortened

    parts = shortened.split(" ")
    if len(parts) > 2:
        shortened = f"{parts[0]} {parts[-1]}"
        if metrics.measure(shortened, font).width <= max_width:
            return shortened

    available = max_width - metrics.measure(ELLIPSIS, font).width
    truncated = shortened
    while len(truncated) > 1:
        truncated = truncated[:-1]
        if metrics.measure(truncated, font).width <= available:
            return truncated + ELLIPSIS
    return ELLIPSIS
