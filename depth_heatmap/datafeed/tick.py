"""
Tick-size helper: price stepping, rounding and display.

All results are rounded to the tick's decimal precision so that prices built
by repeated stepping compare equal to prices parsed from the feed.
"""

from __future__ import annotations

import math
from decimal import Decimal

# Tolerance for float division before floor/ceil bucketing
_EPS = 1e-9


class Tick:
    """Price arithmetic for one instrument at one aggregation level."""

    __slots__ = ('tick_size', 'aggregation', 'step', 'precision')

    def __init__(self, tick_size: float, aggregation: int = 1) -> None:
        self.tick_size = tick_size
        self.aggregation = aggregation
        exponent = Decimal(str(tick_size)).normalize().as_tuple().exponent
        self.precision = max(0, -int(exponent))
        self.step = self.round(tick_size * aggregation)

    def round(self, value: float) -> float:
        return round(value, self.precision)

    def incr_step(self, price: float) -> float:
        """Next bucket price above `price`."""
        return self.round(price + self.step)

    def parse(self, price: float) -> str:
        """Display string with the tick's precision."""
        return f"{price:.{self.precision}f}"

    def floor_bucket(self, price: float) -> float:
        """Bucket a bid price (rounded down to the step)."""
        return self.round(math.floor(price / self.step + _EPS) * self.step)

    def ceil_bucket(self, price: float) -> float:
        """Bucket an ask price (rounded up to the step)."""
        return self.round(math.ceil(price / self.step - _EPS) * self.step)

    def nearest_bucket(self, price: float) -> float:
        return self.round(round(price / self.step) * self.step)
