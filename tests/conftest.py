import asyncio
import inspect
from datetime import datetime, timedelta

import pytest

from depth_heatmap.config import DashboardConfig
from depth_heatmap.datafeed.tick import Tick
from depth_heatmap.engine.ingest import SnapshotIngestor
from depth_heatmap.engine.series import WindowedSeriesStore
from depth_heatmap.types import Snapshot, TradeStats


def pytest_configure(config):
    config.addinivalue_line("markers", "asyncio: mark test as requiring an event loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem):
    test_function = pyfuncitem.obj
    if inspect.iscoroutinefunction(test_function):
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            signature = inspect.signature(test_function)
            filtered_args = {
                name: value
                for name, value in pyfuncitem.funcargs.items()
                if name in signature.parameters
            }
            loop.run_until_complete(test_function(**filtered_args))
        finally:
            loop.run_until_complete(asyncio.sleep(0))
            loop.close()
            asyncio.set_event_loop(None)
        return True
    return None


EMPTY_STATS = TradeStats(0.0, 0, 0.0, 0.0, 0, 0.0)


def make_snapshot(
    best_bid=100.0,
    best_ask=100.3,
    depth=5,
    bid_sizes=None,
    ask_sizes=None,
    trades=(),
    stats=EMPTY_STATS,
    step=0.1,
):
    """Snapshot with `depth` contiguous buckets per side; sizes default to 1..depth."""
    return Snapshot(
        agg_bid_prices=[round(best_bid - i * step, 2) for i in range(depth)],
        agg_bid_sizes=list(bid_sizes or [float(i + 1) for i in range(depth)]),
        agg_ask_prices=[round(best_ask + i * step, 2) for i in range(depth)],
        agg_ask_sizes=list(ask_sizes or [float(i + 1) for i in range(depth)]),
        ask=best_ask,
        bid=best_bid,
        trades=list(trades),
        stats=stats,
    )


@pytest.fixture
def config():
    # depth 5, block 10 cells, 4 timestamps
    return DashboardConfig(
        symbol="BTCUSDT",
        tick_size=0.1,
        update_interval=1000,
        levels=3,
        buffer_levels=2,
        max_series_length=4,
    )


@pytest.fixture
def tick(config):
    return Tick(config.tick_size, config.aggregation)


@pytest.fixture
def clock():
    current = [datetime(2024, 1, 1, 12, 0, 0)]

    def _clock():
        current[0] += timedelta(seconds=1)
        return current[0]
    return _clock


@pytest.fixture
def store(config):
    return WindowedSeriesStore(config.max_series_length, config.block_size)


@pytest.fixture
def ingestor(store, config, tick, clock):
    return SnapshotIngestor(store, config, tick, clock=clock)


@pytest.fixture
def snapshot_factory():
    return make_snapshot
