"""Time & sales tape rows."""

from __future__ import annotations

from ..datafeed.tick import Tick
from ..engine.series import WindowedSeriesStore
from ..types import TapeRow


class TradeTapeRenderer:
    """Retained trades, newest first, with the top-10% sizes flagged."""

    def __init__(self, store: WindowedSeriesStore, tick: Tick) -> None:
        self.store = store
        self.tick = tick

    def rows(self) -> list[TapeRow]:
        top = self.store.top_trade_size
        return [
            TapeRow(
                size=t.size,
                price=self.tick.parse(t.price),
                time=t.time,
                side="buy" if t.is_buy else "sell",
                is_top=t.size >= top,
            )
            for t in reversed(self.store.trades)
        ]
