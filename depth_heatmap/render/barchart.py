"""Depth bar chart: resting size per price row for the latest timestamp."""

from __future__ import annotations

import math

from ..config import DashboardConfig
from ..datafeed.tick import Tick
from ..engine.colors import ASK_BAR_COLOR, AXIS_COLOR, BACKGROUND, BID_BAR_COLOR, LABEL_COLOR
from ..engine.layout import PlotGeometry, axis_index, barchart_geometry
from ..engine.series import WindowedSeriesStore
from ..fmt import fmt_num
from ..types import ASK, BID, OrderBookCell
from .canvas import Canvas

BAR_FILL = 0.8
VALUE_LABEL_STEPS = 5


def latest_levels(store: WindowedSeriesStore) -> list[OrderBookCell]:
    """Latest slice on the price axis: bids then asks, each ascending by price."""
    prices = set(store.price_axis)
    bids: list[OrderBookCell] = []
    asks: list[OrderBookCell] = []
    for cell in store.latest_cells():
        if cell.y not in prices:
            continue
        if cell.side == ASK:
            asks.append(cell)
        elif cell.side == BID:
            bids.append(cell)
    bids.sort(key=lambda c: c.y)
    asks.sort(key=lambda c: c.y)
    return bids + asks


class BarChartRenderer:
    """Stateless: every render() rebuilds the whole frame from the store."""

    def __init__(self, store: WindowedSeriesStore, config: DashboardConfig, tick: Tick) -> None:
        self.store = store
        self.config = config
        self.tick = tick

    def render(self, canvas: Canvas) -> None:
        with canvas.frame():
            canvas.fill_rect(0, 0, canvas.width, canvas.height, BACKGROUND)
            store = self.store
            if not store.price_axis:
                return
            geo = barchart_geometry(store, canvas.width, canvas.height)
            levels = latest_levels(store)
            max_value = max([lvl.value for lvl in levels] + [1])
            y_index = axis_index(store.price_axis)
            bar_width = geo.cell_width
            m = geo.margins

            for lvl in levels:
                col = y_index[lvl.y]
                bar_height = lvl.value / max_value * geo.height
                x = m.left + col * bar_width
                y = m.top + geo.height - bar_height
                color = BID_BAR_COLOR if lvl.side == BID else ASK_BAR_COLOR
                canvas.fill_rect(x, y, bar_width * BAR_FILL, bar_height, color)

            self._draw_axes(canvas, geo, max_value)

    def _draw_axes(self, canvas: Canvas, geo: PlotGeometry, max_value: float) -> None:
        m = geo.margins
        bottom = m.top + geo.height
        right = m.left + geo.width
        prices = self.store.price_axis

        canvas.line(m.left, bottom, right, bottom, AXIS_COLOR)
        period = math.ceil(self.config.levels / 2)
        for i in range(0, len(prices), period):
            x, _ = geo.cell_center(i, 0)
            canvas.text(x, bottom + 15, self.tick.parse(prices[i]), LABEL_COLOR, align="center")

        canvas.line(right, m.top, right, bottom, AXIS_COLOR)
        for i in range(VALUE_LABEL_STEPS + 1):
            frac = i / VALUE_LABEL_STEPS
            canvas.text(right + 5, bottom - frac * geo.height, fmt_num(frac * max_value), LABEL_COLOR)
