"""
Snapshot ingestion.

HOT PATH: ingest() runs once per update interval, before the render passes.
It must stay well inside the interval together with rendering.

Not idempotent: ingesting the same snapshot twice appends it twice.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Callable

import numpy as np

from ..config import DashboardConfig
from ..datafeed.tick import Tick
from ..fmt import fmt_time
from ..log import get_logger
from ..types import (
    ASK, BID, MidPoint, OrderBookCell, Snapshot, TradeAggregate, TradeDeltaPoint,
)
from .series import WindowedSeriesStore

# Upper bound on spread rows so non tick-aligned quotes cannot loop forever
MAX_SPREAD_ROWS = 500

logger = get_logger("ingest")


def build_price_axis(
    snapshot: Snapshot, tick: Tick, levels: int, buffer_levels: int,
) -> list[float]:
    """
    Price axis for one snapshot, ascending.

    Bids (minus the buffer margin), then spread rows stepped from the last bid
    up to the best ask, then asks.
    """
    axis = list(reversed(snapshot.agg_bid_prices))
    if buffer_levels:
        axis = axis[buffer_levels - 1:]

    if axis and snapshot.agg_ask_prices:
        best_ask = snapshot.agg_ask_prices[0]
        next_price = tick.incr_step(axis[-1])
        spread_rows = 0
        while next_price < best_ask:
            if spread_rows >= MAX_SPREAD_ROWS:
                logger.warning(
                    "spread_rows_capped",
                    last_bid=axis[-1 - spread_rows], best_ask=best_ask, rows=spread_rows,
                )
                break
            axis.append(next_price)
            spread_rows += 1
            next_price = tick.incr_step(next_price)

    axis.extend(snapshot.agg_ask_prices[:levels - 1])
    return axis


def percentile_rank_value(sizes: list[float]) -> float:
    """
    Value at ascending rank floor(n - 1 - n/10): the top-10% trade size.

    Returns 0 when there are no trades or the rank falls below zero.
    """
    n = len(sizes)
    rank = math.floor(n - 1 - n / 10)
    if n == 0 or rank < 0:
        return 0.0
    return float(np.sort(np.asarray(sizes, dtype=float))[rank])


class SnapshotIngestor:
    """
    Single writer of a WindowedSeriesStore.

    Thread-safety: NOT thread-safe. The ingest and rescan tasks must be
    serialized by one scheduler.
    """

    def __init__(
        self,
        store: WindowedSeriesStore,
        config: DashboardConfig,
        tick: Tick,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.config = config
        self.tick = tick
        self.clock = clock

    def ingest(self, snapshot: Snapshot) -> None:
        """Fold one snapshot into the store and evict stale entries."""
        store = self.store
        cfg = self.config
        ts = fmt_time(self.clock(), cfg.update_interval)

        # 1. Time axis
        store.push_time(ts)

        # 2. Price axis
        store.price_axis = build_price_axis(snapshot, self.tick, cfg.levels, cfg.buffer_levels)

        # 3. Order book cells + opportunistic watermark rise
        max_depth = store.max_depth
        for i in range(cfg.depth):
            ask_size = snapshot.agg_ask_sizes[i]
            bid_size = snapshot.agg_bid_sizes[i]
            store.push_cell(OrderBookCell(ask_size, snapshot.agg_ask_prices[i], ts, ASK))
            store.push_cell(OrderBookCell(bid_size, snapshot.agg_bid_prices[i], ts, BID))
            if ask_size > max_depth:
                max_depth = ask_size
            if bid_size > max_depth:
                max_depth = bid_size
        store.max_depth = max_depth

        # 4. Whole-block trim
        store.trim_cells()

        # 5. Market order delta
        stats = snapshot.stats
        size_delta = stats.mkt_buy_size - stats.mkt_sell_size
        total_size = self.tick.round(stats.mkt_buy_size + stats.mkt_sell_size)
        tooltip = (
            f"{total_size} contracts traded\n"
            f"{stats.mkt_buy_size} contracts bought ({stats.mkt_buy_orders}) orders\n"
            f"{stats.mkt_sell_size} contracts sold ({stats.mkt_sell_orders}) orders"
        )
        if size_delta > 0:
            price, side = stats.avg_buy_vwap, BID
        else:
            price, side = stats.avg_sell_vwap, ASK
        delta = TradeDeltaPoint(ts, abs(size_delta), total_size, price, side, tooltip)

        # 6. Per-tick series, evicted together
        store.bid, store.ask = snapshot.bid, snapshot.ask
        store.push_tick_series(
            MidPoint(ts, snapshot.bid),
            MidPoint(ts, snapshot.ask),
            TradeAggregate(stats.mkt_buy_size, stats.mkt_buy_orders, stats.avg_buy_vwap, ts),
            TradeAggregate(stats.mkt_sell_size, stats.mkt_sell_orders, stats.avg_sell_vwap, ts),
            delta,
        )
        store.evict_tick_series()

        # 7. Trades, bounded by count
        store.extend_trades(snapshot.trades)

        # 8. Top-10% trade size
        store.top_trade_size = percentile_rank_value([t.size for t in store.trades])

    def rescan_watermark(self) -> float:
        """
        Recompute the depth watermark from retained cells.

        The only path that lowers the watermark, so evicted deep levels stop
        inflating the color scale.
        """
        store = self.store
        if store.cells:
            values = np.fromiter((c.value for c in store.cells), dtype=float, count=len(store.cells))
            store.max_depth = float(values.max())
        else:
            store.max_depth = 0.0
        logger.debug("watermark_rescanned", max_depth=store.max_depth, cells=len(store.cells))
        return store.max_depth
