"""
Data types for the depth heatmap dashboard.

Performance notes:
- Using NamedTuple for immutable, memory-efficient structures
- Records are appended once per tick and never mutated afterwards
"""

from typing import Any, NamedTuple

BID = "bid"
ASK = "ask"


class Trade(NamedTuple):
    """Single trade from the trade stream."""
    price: float
    qty: float
    is_buyer_maker: bool  # True = sell aggressor, False = buy aggressor
    timestamp_ms: int


class TradeRecord(NamedTuple):
    """Single trade as shown on the trade tape."""
    size: float
    price: float
    time: str       # Formatted trade time
    is_buy: bool    # True = buy aggressor


class TradeStats(NamedTuple):
    """Market order statistics since the previous snapshot."""
    mkt_buy_size: float
    mkt_buy_orders: int
    avg_buy_vwap: float
    mkt_sell_size: float
    mkt_sell_orders: int
    avg_sell_vwap: float


class Snapshot(NamedTuple):
    """
    One coherent read of the order book plus trades since the last read.

    Bid prices are sorted descending (best bid first), ask prices ascending
    (best ask first). Both sides hold the same number of contiguous buckets.
    """
    agg_bid_prices: list[float]
    agg_bid_sizes: list[float]
    agg_ask_prices: list[float]
    agg_ask_sizes: list[float]
    ask: float
    bid: float
    trades: list[TradeRecord]
    stats: TradeStats


class OrderBookCell(NamedTuple):
    """Resting size at one price for one timestamp."""
    value: float
    y: float        # Price
    x: str          # Timestamp label
    side: str       # BID or ASK


class TradeDeltaPoint(NamedTuple):
    """Net market order imbalance for one timestamp, plotted at the dominant VWAP."""
    x: str
    value: float        # |buy size - sell size|
    total_size: float
    y: float
    side: str
    tooltip: str


class TradeAggregate(NamedTuple):
    """Market buys or sells summed over one timestamp."""
    value: float
    count: int
    vwap: float
    x: str


class MidPoint(NamedTuple):
    x: str
    y: float


class TapeRow(NamedTuple):
    """One trade tape row, ready for display."""
    size: float
    price: str
    time: str
    side: str       # "buy" or "sell"
    is_top: bool    # size >= top trade size


class TooltipStyle(NamedTuple):
    background: str
    border: str


class HitResult(NamedTuple):
    """
    Outcome of a pointer hit test.

    kind is one of "orderbook", "delta", "bar" or "none".
    """
    kind: str
    record: Any = None


NO_HIT = HitResult("none", None)
