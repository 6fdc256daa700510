#!/usr/bin/env python3
"""
Micro-benchmark for per-frame dashboard cost.

Tests:
1. Order book snapshot aggregation speed
2. Snapshot ingestion speed
3. Heatmap + bar chart render speed (recording canvas)
4. Full tick (snapshot -> ingest -> render) against the update interval

Usage:
    python -m depth_heatmap.benchmark
"""

from __future__ import annotations

import random
import time
from datetime import datetime, timedelta
from statistics import mean, stdev

from .config import DashboardConfig
from .dashboard import Dashboard
from .datafeed.orderbook import OrderBook
from .render.canvas import RecordingCanvas
from .types import Trade

TICK_SIZE = 0.1


def generate_mock_snapshot(base_price: float = 60000.0, levels: int = 1000) -> dict:
    """Generate a mock order book snapshot."""
    bids = []
    asks = []

    for i in range(levels):
        bid_price = round(base_price - (i + 1) * TICK_SIZE, 1)
        ask_price = round(base_price + (i + 1) * TICK_SIZE, 1)

        bids.append([str(bid_price), str(random.uniform(1, 100))])
        asks.append([str(ask_price), str(random.uniform(1, 100))])

    return {
        'lastUpdateId': 1000000,
        'bids': bids,
        'asks': asks,
    }


def generate_mock_update(base_price: float, update_id: int, changes: int = 50) -> dict:
    """Generate a mock depth update."""
    bids = []
    asks = []

    for _ in range(changes // 2):
        offset = random.randint(1, 500)
        bid_price = round(base_price - offset * TICK_SIZE, 1)
        ask_price = round(base_price + offset * TICK_SIZE, 1)

        # Random qty (0 = remove level)
        bid_qty = random.uniform(0, 100) if random.random() > 0.2 else 0
        ask_qty = random.uniform(0, 100) if random.random() > 0.2 else 0

        bids.append([str(bid_price), str(bid_qty)])
        asks.append([str(ask_price), str(ask_qty)])

    return {
        'U': update_id,
        'u': update_id,
        'b': bids,
        'a': asks,
    }


class MockFeed:
    """Order book fed with random updates and trades before every read."""

    def __init__(self, base_price: float = 60000.0) -> None:
        self.base_price = base_price
        self.book = OrderBook("BTCUSDT", TICK_SIZE)
        self.book.load_snapshot(generate_mock_snapshot(base_price))
        self._update_id = self.book.last_update_id

    def get_snapshot(self, depth: int, aggregation: int):
        self._update_id += 1
        self.book.apply_update(generate_mock_update(self.base_price, self._update_id))
        now_ms = int(time.time() * 1000)
        for _ in range(random.randint(0, 20)):
            self.book.process_trade(Trade(
                price=round(self.base_price + random.uniform(-1, 1), 1),
                qty=round(random.uniform(0.001, 5), 3),
                is_buyer_maker=random.random() > 0.5,
                timestamp_ms=now_ms,
            ))
        return self.book.get_snapshot(depth, aggregation)


def _stepping_clock(step_ms: int):
    current = [datetime(2024, 1, 1)]

    def clock() -> datetime:
        current[0] += timedelta(milliseconds=step_ms)
        return current[0]
    return clock


def _report(name: str, times: list[float], budget_ms: float | None = None) -> None:
    avg_ms = mean(times) * 1000
    std_ms = stdev(times) * 1000 if len(times) > 1 else 0.0
    print(f"  {name}")
    print(f"    Avg time: {avg_ms:.3f}ms  (std {std_ms:.3f}ms, max {max(times) * 1000:.3f}ms)")
    if budget_ms is not None:
        print(f"    Budget used: {avg_ms / budget_ms * 100:.1f}% of {budget_ms:.0f}ms interval")


def benchmark_snapshot(iterations: int = 1000) -> None:
    """Benchmark order book aggregation into snapshots."""
    print("\n=== Snapshot Aggregation Benchmark ===")
    feed = MockFeed()
    times = []
    for _ in range(iterations):
        start = time.perf_counter()
        feed.get_snapshot(15, 1)
        times.append(time.perf_counter() - start)
    _report(f"{iterations} snapshots (update + trades + aggregation)", times)


def benchmark_frames(iterations: int = 500, config: DashboardConfig | None = None) -> None:
    """Benchmark full ticks: ingest and all render passes."""
    config = config or DashboardConfig(max_series_length=120, levels=20)
    print(f"\n=== Frame Benchmark (levels={config.levels}, window={config.max_series_length}) ===")

    feed = MockFeed()
    dash = Dashboard(
        config, feed, RecordingCanvas(1200, 800), RecordingCanvas(600, 400),
        clock=_stepping_clock(config.update_interval),
    )

    # Warm up: fill the window so eviction paths run
    for _ in range(config.max_series_length):
        dash.tick()

    ingest_times, render_times, tick_times = [], [], []
    for _ in range(iterations):
        snapshot = feed.get_snapshot(config.depth, config.aggregation)

        start = time.perf_counter()
        dash.ingestor.ingest(snapshot)
        mid = time.perf_counter()
        dash.render()
        end = time.perf_counter()

        ingest_times.append(mid - start)
        render_times.append(end - mid)
        tick_times.append(end - start)

    _report("Ingest", ingest_times)
    _report("Render (heatmap + bar chart + tape)", render_times)
    _report("Full tick", tick_times, budget_ms=config.update_interval)


def main() -> None:
    """Run all benchmarks."""
    print("=" * 60)
    print("Depth Heatmap Performance Benchmark")
    print("=" * 60)

    benchmark_snapshot()
    benchmark_frames()
    benchmark_frames(config=DashboardConfig(max_series_length=300, levels=40, scale="log2"))

    print("\n" + "=" * 60)
    print("Benchmark complete.")
    print("=" * 60)


if __name__ == "__main__":
    main()
