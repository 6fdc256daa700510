"""
Windowed series store.

Bounded buffers turning a stream of snapshots into time/price series for the
heatmap, the bar chart and the trade tape.

Ownership: only SnapshotIngestor mutates the store. Renderers and the hit
tester read it between ticks.

Thread-safety: NOT thread-safe. Designed for a single-threaded scheduler.
"""

from __future__ import annotations

from collections import deque
from typing import Iterator

from ..types import MidPoint, OrderBookCell, TradeAggregate, TradeDeltaPoint, TradeRecord


class WindowedSeriesStore:
    """Bounded buffers plus the depth watermark and top trade size."""

    __slots__ = (
        'max_series_length', 'block_size',
        'time_axis', 'price_axis', 'cells', 'deltas',
        'bid_line', 'ask_line', 'mkt_buys', 'mkt_sells', 'trades',
        'max_depth', 'top_trade_size', 'bid', 'ask',
    )

    def __init__(self, max_series_length: int, block_size: int) -> None:
        self.max_series_length = max_series_length
        # Cells appended per snapshot: (levels + buffer_levels) * 2
        self.block_size = block_size

        self.time_axis: deque[str] = deque()
        # Recomputed every ingest, not a sliding window
        self.price_axis: list[float] = []

        self.cells: deque[OrderBookCell] = deque()
        self.deltas: deque[TradeDeltaPoint] = deque()
        self.bid_line: deque[MidPoint] = deque()
        self.ask_line: deque[MidPoint] = deque()
        self.mkt_buys: deque[TradeAggregate] = deque()
        self.mkt_sells: deque[TradeAggregate] = deque()
        self.trades: deque[TradeRecord] = deque()

        self.max_depth: float = 1.0
        self.top_trade_size: float = 0.0
        self.bid: float = 0.0
        self.ask: float = 0.0

    @property
    def cell_capacity(self) -> int:
        return self.max_series_length * self.block_size

    # -- time axis ---------------------------------------------------------

    def push_time(self, label: str) -> None:
        self.time_axis.append(label)
        while len(self.time_axis) > self.max_series_length:
            self.time_axis.popleft()

    @property
    def latest_time(self) -> str | None:
        return self.time_axis[-1] if self.time_axis else None

    # -- order book cells --------------------------------------------------

    def push_cell(self, cell: OrderBookCell) -> None:
        self.cells.append(cell)

    def trim_cells(self) -> int:
        """
        Drop whole timestamp blocks from the front while over capacity.

        Returns number of cells removed.
        """
        removed = 0
        while len(self.cells) > self.cell_capacity:
            for _ in range(self.block_size):
                self.cells.popleft()
            removed += self.block_size
        return removed

    def latest_cells(self) -> Iterator[OrderBookCell]:
        """
        Cells of the most recent time slice, newest first.

        Scans backward from the tail and stops at the first timestamp change.
        """
        latest = self.latest_time
        if latest is None:
            return
        for cell in reversed(self.cells):
            if cell.x != latest:
                break
            yield cell

    # -- per-tick series ---------------------------------------------------

    def push_tick_series(
        self,
        bid_point: MidPoint,
        ask_point: MidPoint,
        buys: TradeAggregate,
        sells: TradeAggregate,
        delta: TradeDeltaPoint,
    ) -> None:
        self.bid_line.append(bid_point)
        self.ask_line.append(ask_point)
        self.mkt_buys.append(buys)
        self.mkt_sells.append(sells)
        self.deltas.append(delta)

    def evict_tick_series(self) -> None:
        """
        Evict the oldest entry of every per-tick series in lockstep.

        Driven by the market-buy aggregate length only, so the mid-lines and
        delta points always share that window.
        """
        while len(self.mkt_buys) > self.max_series_length:
            self.mkt_buys.popleft()
            self.mkt_sells.popleft()
            self.deltas.popleft()
            self.bid_line.popleft()
            self.ask_line.popleft()

    # -- trades ------------------------------------------------------------

    def extend_trades(self, trades: list[TradeRecord]) -> None:
        """Append trades and keep the most recent max_series_length by count."""
        self.trades.extend(trades)
        while len(self.trades) > self.max_series_length:
            self.trades.popleft()

    def clear(self) -> None:
        """Reset every buffer and scalar."""
        for buf in (self.time_axis, self.cells, self.deltas, self.bid_line,
                    self.ask_line, self.mkt_buys, self.mkt_sells, self.trades):
            buf.clear()
        self.price_axis = []
        self.max_depth = 1.0
        self.top_trade_size = 0.0
        self.bid = 0.0
        self.ask = 0.0
