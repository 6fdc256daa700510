"""
Color interpolation and palettes.

Colors are "#rrggbb" strings throughout so the same values feed QColor,
Rich styles and test assertions.
"""

from __future__ import annotations

import math
from typing import NamedTuple

BACKGROUND = "#000000"
AXIS_COLOR = "#666666"
LABEL_COLOR = "#ffffff"

BID_BAR_COLOR = "#073247"
ASK_BAR_COLOR = "#2e0704"


class ColorRange(NamedTuple):
    low: str
    high: str


# Heatmap cell palettes per theme: (bid, ask)
HEATMAP_PALETTES: dict[str, tuple[ColorRange, ColorRange]] = {
    "color": (ColorRange("#073247", "#00aaff"), ColorRange("#2e0704", "#ff0000")),
    "monochrome": (ColorRange("#222222", "#ffffff"), ColorRange("#222222", "#ffffff")),
}

BUY_DELTA_RANGE = ColorRange("#00d7ff", "#56fffa")
SELL_DELTA_RANGE = ColorRange("#ff9100", "#fff400")


def parse_hex(color: str) -> tuple[int, int, int]:
    """"#rrggbb" -> (r, g, b)."""
    return int(color[1:3], 16), int(color[3:5], 16), int(color[5:7], 16)


def to_hex(r: int, g: int, b: int) -> str:
    return f"#{r:02x}{g:02x}{b:02x}"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def interpolate_color(color1: str, color2: str, factor: float) -> str:
    """
    Linear RGB interpolation between two colors.

    factor is clamped to [0, 1]: 0 gives color1, 1 gives color2. Channels
    round half up.
    """
    factor = min(1.0, max(0.0, factor))
    r1, g1, b1 = parse_hex(color1)
    r2, g2, b2 = parse_hex(color2)
    return to_hex(
        _round_half_up(r1 + factor * (r2 - r1)),
        _round_half_up(g1 + factor * (g2 - g1)),
        _round_half_up(b1 + factor * (b2 - b1)),
    )
