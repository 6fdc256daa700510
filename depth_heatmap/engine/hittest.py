"""
Pointer hit testing: canvas pixel -> data record.

Uses the same PlotGeometry and dot radius as the renderers. Any coordinate
that cannot be resolved yields NO_HIT; nothing here raises.
"""

from __future__ import annotations

import math

from ..types import NO_HIT, HitResult
from .layout import (
    axis_index, barchart_geometry, delta_dot_radius, heatmap_geometry, max_traded_size,
)
from .series import WindowedSeriesStore


class HitTester:
    """Read-only view over the store for tooltip lookups."""

    def __init__(self, store: WindowedSeriesStore) -> None:
        self.store = store

    def heatmap(self, x: float, y: float, width: float, height: float) -> HitResult:
        """Order book cell under the pointer, else an enclosing delta dot."""
        store = self.store
        geo = heatmap_geometry(store, width, height)
        loc = geo.locate(x, y)
        if loc is None:
            return NO_HIT
        col, row = loc
        ts = store.time_axis[col]
        price = store.price_axis[row]

        for cell in store.cells:
            if cell.x == ts and cell.y == price:
                return HitResult("orderbook", cell)

        y_index = axis_index(store.price_axis)
        max_size = max_traded_size(store.deltas)
        for delta in store.deltas:
            if delta.x != ts or delta.total_size <= 0:
                continue
            delta_row = y_index.get(delta.y)
            if delta_row is None or abs(delta_row - row) > 1:
                continue
            cx, cy = geo.cell_center(col, delta_row)
            radius = delta_dot_radius(delta.total_size, geo.cell_height, max_size)
            if math.hypot(x - cx, y - cy) <= radius:
                return HitResult("delta", delta)

        return NO_HIT

    def barchart(self, x: float, y: float, width: float, height: float) -> HitResult:
        """Latest-slice level for the price column under the pointer."""
        store = self.store
        geo = barchart_geometry(store, width, height)
        loc = geo.locate(x, y)
        if loc is None:
            return NO_HIT
        price = store.price_axis[loc[0]]

        for cell in store.latest_cells():
            if cell.y == price:
                return HitResult("bar", cell)
        return NO_HIT
