"""
Dashboard: wires a feed, the series store, renderers and hit tester together.

One tick = read snapshot -> ingest -> heatmap, bar chart and trade tape
redraw, all synchronous. A separate, slower task rescans the depth
watermark. Both run on one injected scheduler.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Protocol

from .config import DashboardConfig
from .datafeed.tick import Tick
from .engine.hittest import HitTester
from .engine.ingest import SnapshotIngestor
from .engine.scheduler import PeriodicHandle, Scheduler
from .engine.series import WindowedSeriesStore
from .fmt import fmt_num
from .log import get_logger
from .render.barchart import BarChartRenderer
from .render.canvas import Canvas
from .render.heatmap import HeatmapRenderer
from .render.tape import TradeTapeRenderer
from .types import ASK, HitResult, Snapshot, TapeRow, TooltipStyle

# Presenter receives (content, position, style); content None hides the tooltip
TooltipPresenter = Callable[[str | None, tuple[float, float], TooltipStyle | None], None]
TapeSink = Callable[[list[TapeRow]], None]

ASK_TOOLTIP = TooltipStyle(background="#faeaea", border="red")
BID_TOOLTIP = TooltipStyle(background="#eafaea", border="green")
TOOLTIP_OFFSET = 10

logger = get_logger("dashboard")


class SnapshotFeed(Protocol):
    def get_snapshot(self, depth: int, aggregation: int) -> Snapshot | None: ...


def _noop_presenter(content, position, style) -> None:
    pass


def _noop_sink(rows) -> None:
    pass


class Dashboard:
    """
    Heatmap + bar chart + trade tape for one symbol.

    Thread-safety: NOT thread-safe. All entry points must be called from the
    scheduler's thread.
    """

    def __init__(
        self,
        config: DashboardConfig,
        feed: SnapshotFeed,
        heatmap_canvas: Canvas,
        barchart_canvas: Canvas,
        *,
        tape_sink: TapeSink = _noop_sink,
        present_tooltip: TooltipPresenter = _noop_presenter,
        scheduler: Scheduler | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config
        self.feed = feed
        self.heatmap_canvas = heatmap_canvas
        self.barchart_canvas = barchart_canvas
        self.tape_sink = tape_sink
        self.present_tooltip = present_tooltip

        self.tick_helper = Tick(config.tick_size, config.aggregation)
        self.store = WindowedSeriesStore(config.max_series_length, config.block_size)
        self.ingestor = SnapshotIngestor(self.store, config, self.tick_helper, clock=clock)
        self.heatmap = HeatmapRenderer(self.store, config, self.tick_helper)
        self.barchart = BarChartRenderer(self.store, config, self.tick_helper)
        self.tape = TradeTapeRenderer(self.store, self.tick_helper)
        self.hits = HitTester(self.store)

        self._tasks: list[PeriodicHandle] = []
        if scheduler is not None:
            self.start(scheduler)

    # -- lifecycle ---------------------------------------------------------

    def start(self, scheduler: Scheduler) -> None:
        """Register the ingest+render and watermark rescan tasks."""
        if self._tasks:
            return
        cfg = self.config
        self._tasks.append(scheduler(cfg.update_interval / 1000, self.tick))
        self._tasks.append(scheduler(cfg.rescan_interval / 1000, self.rescan))
        logger.info(
            "dashboard_started", symbol=cfg.symbol,
            update_interval=cfg.update_interval, levels=cfg.levels,
        )

    def stop(self) -> None:
        """Cancel both periodic tasks. No mutation happens afterwards."""
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()
        logger.info("dashboard_stopped", symbol=self.config.symbol)

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    # -- periodic tasks ----------------------------------------------------

    def tick(self) -> bool:
        """
        One ingest + render cycle.

        Returns False (and touches nothing) when the feed has no update.
        """
        snapshot = self.feed.get_snapshot(self.config.depth, self.config.aggregation)
        if snapshot is None:
            logger.debug("snapshot_unavailable")
            return False
        self.ingestor.ingest(snapshot)
        self.render()
        return True

    def rescan(self) -> None:
        self.ingestor.rescan_watermark()

    def render(self) -> None:
        """Rebuild every frame from current buffers."""
        self.heatmap.render(self.heatmap_canvas)
        self.barchart.render(self.barchart_canvas)
        self.tape_sink(self.tape.rows())

    def resize(self) -> None:
        """Redraw after a surface size change, without ingesting."""
        if self.store.time_axis and self.store.price_axis:
            self.heatmap.render(self.heatmap_canvas)
            self.barchart.render(self.barchart_canvas)

    def reset(self) -> None:
        """Drop all buffered series."""
        self.store.clear()
        self.render()

    # -- pointer handlers --------------------------------------------------

    def heatmap_pointer_move(self, x: float, y: float) -> HitResult:
        canvas = self.heatmap_canvas
        hit = self.hits.heatmap(x, y, canvas.width, canvas.height)
        if hit.kind == "orderbook":
            content = f"{hit.record.side}: {fmt_num(hit.record.value)}"
        elif hit.kind == "delta":
            content = hit.record.tooltip
        else:
            content = None
        self._present(hit, content, x, y)
        return hit

    def barchart_pointer_move(self, x: float, y: float) -> HitResult:
        canvas = self.barchart_canvas
        hit = self.hits.barchart(x, y, canvas.width, canvas.height)
        content = None
        if hit.kind == "bar":
            cell = hit.record
            content = f"Price: {self.tick_helper.parse(cell.y)}\n{cell.side}: {fmt_num(cell.value)}"
        self._present(hit, content, x, y)
        return hit

    def pointer_out(self) -> None:
        self.present_tooltip(None, (0.0, 0.0), None)

    def _present(self, hit: HitResult, content: str | None, x: float, y: float) -> None:
        position = (x + TOOLTIP_OFFSET, y + TOOLTIP_OFFSET)
        if content is None:
            self.present_tooltip(None, position, None)
            return
        style = ASK_TOOLTIP if hit.record.side == ASK else BID_TOOLTIP
        self.present_tooltip(content, position, style)
