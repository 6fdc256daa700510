"""
Local order book for Binance Futures, read as aggregated snapshots.

HOT PATH: apply_update() is called 10x per second with potentially 1000s of price updates.

Performance strategy:
1. Use dict[float, float] for O(1) lookup/update of individual prices
2. Maintain sorted best prices lazily (only rebuild when a snapshot is read)
3. Aggregate into buckets with one pass per side per snapshot

Future optimization targets:
- Replace dicts with contiguous price arrays (known tick size)
- Vectorized bucket aggregation with numpy
"""

from __future__ import annotations

from ..engine.flows import TradeFlow
from ..log import get_logger
from ..types import Snapshot, Trade
from .tick import Tick

logger = get_logger("orderbook")


def _apply_levels(side: dict[float, float], levels) -> None:
    """Set [price, qty] string pairs on one side; qty 0 removes the level."""
    for price_str, qty_str in levels:
        price, qty = float(price_str), float(qty_str)
        if qty > 0:
            side[price] = qty
        else:
            side.pop(price, None)


class OrderBook:
    """
    Local order book with REST snapshot + WS incremental updates.

    get_snapshot() returns None until the book is loaded and whenever nothing
    changed since the previous read.

    Thread-safety: NOT thread-safe. Designed for single-threaded use.
    """

    __slots__ = (
        'symbol', 'tick_size', 'bids', 'asks', 'last_update_id', 'flow',
        '_best_bid', '_best_ask', '_dirty', '_changed', '_ticks',
    )

    def __init__(self, symbol: str, tick_size: float) -> None:
        self.symbol = symbol
        self.tick_size = tick_size

        # Core data: price -> quantity
        # HOT PATH: These dicts are updated every ~100ms with 100s of changes
        self.bids: dict[float, float] = {}
        self.asks: dict[float, float] = {}
        self.last_update_id: int = 0

        self.flow = TradeFlow()

        # Cached best prices - rebuilt lazily
        self._best_bid: float = 0.0
        self._best_ask: float = 0.0
        self._dirty: bool = True
        # Anything new since the last get_snapshot()
        self._changed: bool = False
        self._ticks: dict[int, Tick] = {}

    @property
    def loaded(self) -> bool:
        return self.last_update_id > 0

    def load_snapshot(self, data: dict) -> None:
        """
        Replace the book with a REST depth snapshot.

        {"lastUpdateId": int, "bids": [[price, qty], ...], "asks": [[price, qty], ...]}
        """
        self.last_update_id = data['lastUpdateId']

        self.bids.clear()
        self.asks.clear()
        _apply_levels(self.bids, data["bids"])
        _apply_levels(self.asks, data["asks"])

        self._dirty = True
        self._changed = True
        logger.info("book_loaded", symbol=self.symbol, bids=len(self.bids), asks=len(self.asks))

    def apply_update(self, update: dict) -> bool:
        """
        Apply one websocket depth diff.

        HOT PATH: one call per diff, thousands of levels per second on busy symbols.

        {"U": first_id, "u": last_id, "b": [[price, qty], ...], "a": [[price, qty], ...]}

        Returns False on a sequence gap (book untouched), True otherwise.
        Diffs already covered by the book are skipped.
        """
        first_id = update.get('U', update.get('u', 0))
        last_id = update['u']

        if first_id > self.last_update_id + 1:
            return False
        if last_id <= self.last_update_id:
            return True

        _apply_levels(self.bids, update.get("b", ()))
        _apply_levels(self.asks, update.get("a", ()))

        self.last_update_id = last_id
        self._dirty = True
        self._changed = True

        return True

    def process_trade(self, trade: Trade) -> None:
        self.flow.process_trade(trade)
        self._changed = True

    def _ensure_sorted(self) -> None:
        """Refresh best prices if dirty. Called lazily before reads."""
        if not self._dirty:
            return
        self._best_bid = max(self.bids) if self.bids else 0.0
        self._best_ask = min(self.asks) if self.asks else 0.0
        self._dirty = False

    @property
    def best_bid(self) -> float:
        """Best bid price. Returns 0.0 if no bids."""
        self._ensure_sorted()
        return self._best_bid

    @property
    def best_ask(self) -> float:
        """Best ask price. Returns 0.0 if no asks."""
        self._ensure_sorted()
        return self._best_ask

    @property
    def mid_price(self) -> float:
        """Mid price. Returns 0.0 if no book."""
        bb, ba = self.best_bid, self.best_ask
        if bb > 0 and ba > 0:
            return (bb + ba) / 2.0
        return bb or ba

    def _tick(self, aggregation: int) -> Tick:
        tick = self._ticks.get(aggregation)
        if tick is None:
            tick = self._ticks[aggregation] = Tick(self.tick_size, aggregation)
        return tick

    def get_snapshot(self, depth: int, aggregation: int = 1) -> Snapshot | None:
        """
        Aggregated view of the book plus trades since the previous read.

        Args:
            depth: Buckets per side
            aggregation: Bucket size in ticks

        Bids are floored and asks ceiled onto contiguous buckets starting at
        the best prices; empty buckets have size 0.
        """
        if not self.loaded or not self._changed:
            return None
        best_bid, best_ask = self.best_bid, self.best_ask
        if best_bid <= 0 or best_ask <= 0:
            return None

        tick = self._tick(aggregation)
        step = tick.step

        top_bid = tick.floor_bucket(best_bid)
        bid_prices = [tick.round(top_bid - i * step) for i in range(depth)]
        bid_sizes = dict.fromkeys(bid_prices, 0.0)
        for price, qty in self.bids.items():
            bucket = tick.floor_bucket(price)
            if bucket in bid_sizes:
                bid_sizes[bucket] += qty

        top_ask = tick.ceil_bucket(best_ask)
        ask_prices = [tick.round(top_ask + i * step) for i in range(depth)]
        ask_sizes = dict.fromkeys(ask_prices, 0.0)
        for price, qty in self.asks.items():
            bucket = tick.ceil_bucket(price)
            if bucket in ask_sizes:
                ask_sizes[bucket] += qty

        trades, stats = self.flow.drain(tick)
        self._changed = False

        return Snapshot(
            agg_bid_prices=bid_prices,
            agg_bid_sizes=[bid_sizes[p] for p in bid_prices],
            agg_ask_prices=ask_prices,
            agg_ask_sizes=[ask_sizes[p] for p in ask_prices],
            ask=best_ask,
            bid=best_bid,
            trades=trades,
            stats=stats,
        )
