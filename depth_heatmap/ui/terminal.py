"""
Terminal dashboard using Textual.

Displays:
- Left: order book heatmap with delta dots
- Right top: depth bar chart for the latest timestamp
- Right bottom: time & sales tape

Performance notes:
- Renderers draw in logical pixels onto a character grid (8x16 px per cell)
- Each frame is converted to one Rich Text with style runs merged
"""

from __future__ import annotations

import asyncio
import math
from contextlib import contextmanager
from typing import Callable, Iterator

from rich.style import Style
from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widget import Widget
from textual.widgets import DataTable, Footer, Static

from ..config import DashboardConfig
from ..dashboard import Dashboard
from ..datafeed.binance_client import BinanceClient
from ..engine.colors import BACKGROUND
from ..engine.scheduler import guarded
from ..log import get_logger
from ..render.canvas import Canvas
from ..types import TapeRow, TooltipStyle

# Logical pixels per terminal character
CELL_W = 8
CELL_H = 16

BUY_COLOR = "#22c55e"
SELL_COLOR = "#ef4444"

logger = get_logger("terminal")


class TerminalCanvas(Canvas):
    """Character grid canvas: rects paint backgrounds, dots and text paint glyphs."""

    def __init__(self, cols: int = 80, rows: int = 24) -> None:
        self.on_frame: Callable[[TerminalCanvas], None] | None = None
        self._alloc(cols, rows)

    def _alloc(self, cols: int, rows: int) -> None:
        self.cols = max(1, cols)
        self.rows = max(1, rows)
        self.width = self.cols * CELL_W
        self.height = self.rows * CELL_H
        self.bg = [[BACKGROUND] * self.cols for _ in range(self.rows)]
        self.fg = [["#ffffff"] * self.cols for _ in range(self.rows)]
        self.chars = [[" "] * self.cols for _ in range(self.rows)]

    def resize(self, width: float, height: float) -> None:
        """Width/height in characters for this backend."""
        self._alloc(int(width), int(height))

    @contextmanager
    def frame(self) -> Iterator[Canvas]:
        for row in self.chars:
            row[:] = [" "] * self.cols
        yield self
        if self.on_frame is not None:
            self.on_frame(self)

    def _span(self, start: float, length: float, size: int, n: int) -> range:
        """Character indices whose centers fall inside [start, start + length)."""
        first = max(0, math.ceil(start / size - 0.5))
        last = min(n, math.ceil((start + length) / size - 0.5))
        return range(first, last)

    def fill_rect(self, x, y, w, h, color) -> None:
        cols = self._span(x, w, CELL_W, self.cols)
        for r in self._span(y, h, CELL_H, self.rows):
            row = self.bg[r]
            for c in cols:
                row[c] = color

    def fill_circle(self, cx, cy, radius, color) -> None:
        c0, r0 = int(cx // CELL_W), int(cy // CELL_H)
        hit = False
        for r in self._span(cy - radius, 2 * radius, CELL_H, self.rows):
            for c in self._span(cx - radius, 2 * radius, CELL_W, self.cols):
                px, py = (c + 0.5) * CELL_W, (r + 0.5) * CELL_H
                if math.hypot(px - cx, py - cy) <= radius:
                    self._glyph(c, r, "●", color)
                    hit = True
        # Dots smaller than a character still show up
        if not hit and 0 <= c0 < self.cols and 0 <= r0 < self.rows:
            self._glyph(c0, r0, "•", color)

    def line(self, x0, y0, x1, y1, color) -> None:
        if y0 == y1:
            r = int(y0 // CELL_H)
            for c in self._span(min(x0, x1), abs(x1 - x0), CELL_W, self.cols):
                self._glyph(c, r, "─", color)
        else:
            c = int(x0 // CELL_W)
            for r in self._span(min(y0, y1), abs(y1 - y0), CELL_H, self.rows):
                self._glyph(c, r, "│", color)

    def text(self, x, y, label, color, align="left") -> None:
        c = int(x // CELL_W)
        if align == "center":
            c -= len(label) // 2
        r = int(y // CELL_H)
        for i, ch in enumerate(label):
            self._glyph(c + i, r, ch, color)

    def _glyph(self, c: int, r: int, ch: str, color: str) -> None:
        if 0 <= c < self.cols and 0 <= r < self.rows:
            self.chars[r][c] = ch
            self.fg[r][c] = color

    def to_rich(self) -> Text:
        """Whole grid as Rich Text, merging runs of identical style."""
        out = Text(no_wrap=True, overflow="crop")
        for r in range(self.rows):
            run: list[str] = []
            run_style: tuple[str, str] | None = None
            for c in range(self.cols):
                style = (self.fg[r][c], self.bg[r][c])
                if style != run_style and run:
                    out.append("".join(run), Style(color=run_style[0], bgcolor=run_style[1]))
                    run = []
                run_style = style
                run.append(self.chars[r][c])
            if run:
                out.append("".join(run), Style(color=run_style[0], bgcolor=run_style[1]))
            if r < self.rows - 1:
                out.append("\n")
        return out


class CanvasView(Static):
    """Static widget mirroring a TerminalCanvas; forwards pointer events."""

    def __init__(self, on_move: Callable[[float, float], object], on_leave: Callable[[], None], **kwargs) -> None:
        super().__init__(**kwargs)
        self.canvas = TerminalCanvas()
        self.canvas.on_frame = lambda canvas: self.update(canvas.to_rich())
        self._on_move = on_move
        self._on_leave = on_leave

    def on_resize(self, event: events.Resize) -> None:
        self.canvas.resize(event.size.width, event.size.height)
        self.app.call_later(self.app.refresh_frames)

    def on_mouse_move(self, event: events.MouseMove) -> None:
        self.app.hover_widget = self
        self._on_move((event.x + 0.5) * CELL_W, (event.y + 0.5) * CELL_H)

    def on_leave(self, event: events.Leave) -> None:
        self._on_leave()


class _TimerHandle:
    def __init__(self, timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.stop()


class DashboardApp(App):
    """Main terminal application."""

    CSS = """
    Screen {
        background: #000000;
    }

    #heatmap {
        width: 2fr;
        height: 100%;
    }

    #side {
        width: 1fr;
    }

    #barchart {
        height: 1fr;
    }

    #tape {
        height: 1fr;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("r", "reset", "Reset"),
    ]

    def __init__(self, config: DashboardConfig, feed) -> None:
        super().__init__()
        self.config = config
        self.feed = feed
        self.hover_widget: Widget | None = None
        self.dashboard: Dashboard | None = None

    def compose(self) -> ComposeResult:
        self.heatmap_view = CanvasView(self._heatmap_move, self._pointer_out, id="heatmap")
        self.barchart_view = CanvasView(self._barchart_move, self._pointer_out, id="barchart")
        self.tape_table = DataTable(id="tape", show_cursor=False)
        yield Horizontal(
            self.heatmap_view,
            Vertical(self.barchart_view, self.tape_table, id="side"),
        )
        yield Footer()

    def on_mount(self) -> None:
        self.title = f"{self.config.symbol} depth"
        self.tape_table.add_columns("Size", "Price", "Time")
        self.dashboard = Dashboard(
            self.config,
            self.feed,
            self.heatmap_view.canvas,
            self.barchart_view.canvas,
            tape_sink=self._update_tape,
            present_tooltip=self._present_tooltip,
        )
        self.dashboard.start(lambda interval, callback: _TimerHandle(self.set_interval(interval, guarded(callback))))

    def on_unmount(self) -> None:
        if self.dashboard is not None:
            self.dashboard.stop()

    def refresh_frames(self) -> None:
        if self.dashboard is not None:
            self.dashboard.resize()

    def _heatmap_move(self, x: float, y: float) -> None:
        if self.dashboard is not None:
            self.dashboard.heatmap_pointer_move(x, y)

    def _barchart_move(self, x: float, y: float) -> None:
        if self.dashboard is not None:
            self.dashboard.barchart_pointer_move(x, y)

    def _pointer_out(self) -> None:
        if self.dashboard is not None:
            self.dashboard.pointer_out()

    def _present_tooltip(
        self, content: str | None, position: tuple[float, float], style: TooltipStyle | None,
    ) -> None:
        widget = self.hover_widget
        if widget is None:
            return
        if content is None:
            widget.tooltip = None
            return
        widget.tooltip = Text(content, style=Style(color=style.border, bgcolor=style.background))

    def _update_tape(self, rows: list[TapeRow]) -> None:
        table = self.tape_table
        table.clear()
        for row in rows:
            color = BUY_COLOR if row.side == "buy" else SELL_COLOR
            style = Style(color=color, bold=row.is_top)
            table.add_row(
                Text(f"{row.size:g}", style=style),
                Text(row.price, style=style),
                Text(row.time, style=style),
            )

    def action_reset(self) -> None:
        """Drop buffered series (bound to 'r' key)."""
        if self.dashboard is not None:
            self.dashboard.reset()


async def run_ui(config: DashboardConfig, client: BinanceClient) -> None:
    """Run the terminal application alongside the feed task."""
    async def run_feed() -> None:
        try:
            await client.run()
        except Exception:
            logger.exception("feed_failed", symbol=client.symbol)

    feed_task = asyncio.create_task(run_feed())
    try:
        await DashboardApp(config, client).run_async()
    finally:
        client.stop()
        feed_task.cancel()
        try:
            await feed_task
        except asyncio.CancelledError:
            pass
