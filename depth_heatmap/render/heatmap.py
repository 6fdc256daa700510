"""
Order book heatmap renderer.

Time x price grid colored by resting size, with market order delta dots.

Performance notes:
- Full-frame redraw every tick from the store; no incremental diffing
- Axis positions are looked up through dicts built once per frame
"""

from __future__ import annotations

import math

from ..config import DashboardConfig
from ..datafeed.tick import Tick
from ..engine.colors import (
    AXIS_COLOR, BACKGROUND, BUY_DELTA_RANGE, HEATMAP_PALETTES, LABEL_COLOR,
    SELL_DELTA_RANGE, interpolate_color,
)
from ..engine.layout import (
    PlotGeometry, axis_index, delta_dot_radius, heatmap_geometry, max_traded_size,
)
from ..engine.series import WindowedSeriesStore
from ..types import ASK, BID
from .canvas import Canvas


def intensity(value: float, max_depth: float, scale: str, linear_cutoff: float) -> float:
    """Normalized color factor for a cell size, clamped to [0, 1]."""
    watermark = max_depth or 1.0
    if scale == "log2":
        denom = math.log2(watermark)
        # log2(1) == 0: an unbounded factor, clamped to 1 below
        factor = math.log(value + 1) / denom if denom != 0 else 1.0
    else:
        factor = value / (linear_cutoff * watermark)
    return min(1.0, max(0.0, factor))


class HeatmapRenderer:
    """Stateless: every render() rebuilds the whole frame from the store."""

    def __init__(self, store: WindowedSeriesStore, config: DashboardConfig, tick: Tick) -> None:
        self.store = store
        self.config = config
        self.tick = tick
        self.bid_range, self.ask_range = HEATMAP_PALETTES[config.theme]

    def render(self, canvas: Canvas) -> None:
        with canvas.frame():
            canvas.fill_rect(0, 0, canvas.width, canvas.height, BACKGROUND)
            store = self.store
            if not store.time_axis or not store.price_axis:
                return
            geo = heatmap_geometry(store, canvas.width, canvas.height)
            x_index = axis_index(store.time_axis)
            y_index = axis_index(store.price_axis)
            self._draw_cells(canvas, geo, x_index, y_index)
            self._draw_deltas(canvas, geo, x_index, y_index)
            self._draw_axes(canvas, geo)

    def _draw_cells(self, canvas: Canvas, geo: PlotGeometry, x_index: dict, y_index: dict) -> None:
        store = self.store
        low, high = store.price_axis[0], store.price_axis[-1]
        cw, ch = geo.cell_width, geo.cell_height
        scale = self.config.scale
        cutoff = self.config.linear_cutoff

        for cell in store.cells:
            if cell.y < low or cell.y > high:
                continue
            col = x_index.get(cell.x)
            row = y_index.get(cell.y)
            # Stale timestamp or price no longer on the axes
            if col is None or row is None:
                continue

            if cell.value == 0:
                color = BACKGROUND
            else:
                factor = intensity(cell.value, store.max_depth, scale, cutoff)
                rng = self.bid_range if cell.side == BID else self.ask_range
                color = interpolate_color(rng.low, rng.high, factor)

            x, y = geo.cell_origin(col, row)
            canvas.fill_rect(x, y, cw, ch, color)

    def _draw_deltas(self, canvas: Canvas, geo: PlotGeometry, x_index: dict, y_index: dict) -> None:
        store = self.store
        if not store.deltas:
            return
        low, high = store.price_axis[0], store.price_axis[-1]
        values = [d.value for d in store.deltas]
        min_value, max_value = min(values), max(values)
        max_size = max_traded_size(store.deltas)

        for d in store.deltas:
            if d.total_size <= 0 or d.y < low or d.y > high:
                continue
            col = x_index.get(d.x)
            row = y_index.get(d.y)
            if col is None or row is None:
                continue

            if max_value > min_value:
                factor = (d.value - min_value) / (max_value - min_value)
            else:
                factor = 0.5
            rng = SELL_DELTA_RANGE if d.side == ASK else BUY_DELTA_RANGE
            cx, cy = geo.cell_center(col, row)
            radius = delta_dot_radius(d.total_size, geo.cell_height, max_size)
            canvas.fill_circle(cx, cy, radius, interpolate_color(rng.low, rng.high, factor))

    def _draw_axes(self, canvas: Canvas, geo: PlotGeometry) -> None:
        store = self.store
        m = geo.margins
        bottom = m.top + geo.height
        right = m.left + geo.width

        canvas.line(m.left, bottom, right, bottom, AXIS_COLOR)
        period = math.ceil(self.config.max_series_length / 10)
        for i in range(0, len(store.time_axis), period):
            x, _ = geo.cell_center(i, 0)
            canvas.text(x, bottom + 15, store.time_axis[i], LABEL_COLOR, align="center")

        canvas.line(right, m.top, right, bottom, AXIS_COLOR)
        for i, price in enumerate(store.price_axis):
            _, y = geo.cell_center(0, i)
            canvas.text(right + 5, y, self.tick.parse(price), LABEL_COLOR)
