"""
Trade flow accumulation between snapshots.

HOT PATH: process_trade() is called for every trade (~100s per second for active symbols).

Performance strategy:
1. O(1) per-trade updates of running size/notional sums
2. Trades are buffered only until the next snapshot drains them
"""

from __future__ import annotations

from datetime import datetime

from ..datafeed.tick import Tick
from ..types import Trade, TradeRecord, TradeStats


class TradeFlow:
    """
    Market order statistics since the previous drain().

    Thread-safety: NOT thread-safe. Designed for single-threaded use.
    """

    __slots__ = (
        '_trades',
        '_buy_size', '_buy_notional', '_buy_orders',
        '_sell_size', '_sell_notional', '_sell_orders',
    )

    def __init__(self) -> None:
        self._trades: list[TradeRecord] = []
        self._reset_sums()

    def _reset_sums(self) -> None:
        self._buy_size = 0.0
        self._buy_notional = 0.0
        self._buy_orders = 0
        self._sell_size = 0.0
        self._sell_notional = 0.0
        self._sell_orders = 0

    def process_trade(self, trade: Trade) -> None:
        """
        Process a single trade from the WebSocket stream.

        HOT PATH - called for every trade.
        """
        # is_buyer_maker=True means the seller aggressed (market sell)
        is_buy = not trade.is_buyer_maker

        if is_buy:
            self._buy_size += trade.qty
            self._buy_notional += trade.qty * trade.price
            self._buy_orders += 1
        else:
            self._sell_size += trade.qty
            self._sell_notional += trade.qty * trade.price
            self._sell_orders += 1

        when = datetime.fromtimestamp(trade.timestamp_ms / 1000)
        self._trades.append(TradeRecord(
            size=trade.qty,
            price=trade.price,
            time=when.strftime("%H:%M:%S"),
            is_buy=is_buy,
        ))

    def drain(self, tick: Tick) -> tuple[list[TradeRecord], TradeStats]:
        """
        Return trades and stats accumulated since the last drain, then reset.

        VWAPs are snapped to the nearest price bucket so delta dots land on
        price axis rows.
        """
        buy_vwap = self._buy_notional / self._buy_size if self._buy_size > 0 else 0.0
        sell_vwap = self._sell_notional / self._sell_size if self._sell_size > 0 else 0.0

        stats = TradeStats(
            mkt_buy_size=self._buy_size,
            mkt_buy_orders=self._buy_orders,
            avg_buy_vwap=tick.nearest_bucket(buy_vwap),
            mkt_sell_size=self._sell_size,
            mkt_sell_orders=self._sell_orders,
            avg_sell_vwap=tick.nearest_bucket(sell_vwap),
        )
        trades = self._trades
        self._trades = []
        self._reset_sums()
        return trades, stats
