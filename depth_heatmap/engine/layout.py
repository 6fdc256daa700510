"""
Plot geometry shared by the renderers and the hit tester.

Both sides of the pixel <-> data mapping go through PlotGeometry so a dot or
cell is hit exactly where it was drawn.
"""

from __future__ import annotations

import math
from typing import Iterable, NamedTuple


class Margins(NamedTuple):
    top: float
    right: float
    bottom: float
    left: float


HEATMAP_MARGINS = Margins(top=25, right=100, bottom=25, left=25)
BARCHART_MARGINS = Margins(top=20, right=40, bottom=25, left=0)

# Delta dot radius as a multiple of the row height: base + scaled up to max
DOT_BASE_MULTIPLIER = 0.25
DOT_MAX_MULTIPLIER = 1.0


class PlotGeometry(NamedTuple):
    """Plot area inside the margins, split into n_cols x n_rows cells."""
    margins: Margins
    width: float         # Plot width (canvas width minus margins)
    height: float
    n_cols: int
    n_rows: int

    @classmethod
    def for_canvas(
        cls, margins: Margins, canvas_width: float, canvas_height: float,
        n_cols: int, n_rows: int,
    ) -> PlotGeometry:
        return cls(
            margins,
            max(0.0, canvas_width - margins.left - margins.right),
            max(0.0, canvas_height - margins.top - margins.bottom),
            n_cols,
            n_rows,
        )

    @property
    def cell_width(self) -> float:
        return self.width / self.n_cols if self.n_cols else 0.0

    @property
    def cell_height(self) -> float:
        return self.height / self.n_rows if self.n_rows else 0.0

    def cell_origin(self, col: int, row: int) -> tuple[float, float]:
        """Top-left corner of a cell in canvas pixels."""
        return (
            self.margins.left + col * self.cell_width,
            self.margins.top + row * self.cell_height,
        )

    def cell_center(self, col: float, row: float) -> tuple[float, float]:
        return (
            self.margins.left + (col + 0.5) * self.cell_width,
            self.margins.top + (row + 0.5) * self.cell_height,
        )

    def locate(self, x: float, y: float) -> tuple[int, int] | None:
        """
        Canvas pixel -> (col, row), or None outside the plot or the axes.
        """
        local_x = x - self.margins.left
        local_y = y - self.margins.top
        if local_x < 0 or local_x > self.width or local_y < 0 or local_y > self.height:
            return None
        if not self.n_cols or not self.n_rows or not self.width or not self.height:
            return None

        col = math.floor(local_x / self.cell_width)
        row = math.floor(local_y / self.cell_height)
        if col >= self.n_cols or row >= self.n_rows:
            return None
        return col, row


def axis_index(axis: Iterable) -> dict:
    """Value -> first position on the axis."""
    index: dict = {}
    for i, value in enumerate(axis):
        index.setdefault(value, i)
    return index


def max_traded_size(deltas: Iterable) -> float:
    """Largest delta total size in the window, floored at 1."""
    return max([d.total_size for d in deltas] + [1.0])


def delta_dot_radius(size: float, row_height: float, max_size: float) -> float:
    """
    Dot radius for a delta point.

    Grows linearly from 0.25 to 1.25 row heights as size approaches max_size.
    """
    scale = min(size / max_size, 1.0) if max_size > 0 else 0.0
    return row_height * (DOT_BASE_MULTIPLIER + scale * DOT_MAX_MULTIPLIER)


def heatmap_geometry(store, width: float, height: float) -> PlotGeometry:
    """Time axis across, price axis down."""
    return PlotGeometry.for_canvas(
        HEATMAP_MARGINS, width, height, len(store.time_axis), len(store.price_axis),
    )


def barchart_geometry(store, width: float, height: float) -> PlotGeometry:
    """One column per price row, a single row spanning the plot height."""
    return PlotGeometry.for_canvas(BARCHART_MARGINS, width, height, len(store.price_axis), 1)
