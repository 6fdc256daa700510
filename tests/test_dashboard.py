import asyncio
import time

import pytest

from depth_heatmap.dashboard import ASK_TOOLTIP, BID_TOOLTIP, Dashboard
from depth_heatmap.engine import scheduler as scheduler_mod
from depth_heatmap.engine.scheduler import asyncio_scheduler, guarded
from depth_heatmap.render.canvas import RecordingCanvas
from depth_heatmap.types import TradeRecord, TradeStats


class FakeFeed:
    def __init__(self, snapshots=()):
        self.snapshots = list(snapshots)
        self.requests = []

    def get_snapshot(self, depth, aggregation):
        self.requests.append((depth, aggregation))
        if not self.snapshots:
            return None
        return self.snapshots.pop(0)


class FakeHandle:
    def __init__(self):
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    def __init__(self):
        self.tasks = []

    def __call__(self, interval, callback):
        handle = FakeHandle()
        self.tasks.append((interval, callback, handle))
        return handle


@pytest.fixture
def tooltips():
    return []


@pytest.fixture
def tape():
    return []


@pytest.fixture
def make_dashboard(config, clock, tooltips, tape):
    def _make(snapshots=(), scheduler=None):
        return Dashboard(
            config,
            FakeFeed(snapshots),
            RecordingCanvas(800, 600),
            RecordingCanvas(400, 300),
            tape_sink=tape.append,
            present_tooltip=lambda *args: tooltips.append(args),
            scheduler=scheduler,
            clock=clock,
        )
    return _make


def test_tick_without_snapshot_does_nothing(make_dashboard, tape):
    dash = make_dashboard()
    assert dash.tick() is False
    assert dash.feed.requests == [(5, 1)]
    assert dash.heatmap_canvas.frames == 0
    assert not dash.store.time_axis
    assert tape == []


def store_state(store):
    return (
        [list(buf) for buf in (
            store.time_axis, store.cells, store.deltas, store.bid_line, store.ask_line,
            store.mkt_buys, store.mkt_sells, store.trades,
        )],
        list(store.price_axis),
        store.max_depth, store.top_trade_size, store.bid, store.ask,
    )


def test_missing_snapshot_leaves_state_unchanged(make_dashboard, snapshot_factory):
    trades = [TradeRecord(float(s), 100.0, "12:00:00", True) for s in range(1, 6)]
    stats = TradeStats(3.0, 2, 100.1, 1.0, 1, 99.9)
    dash = make_dashboard([snapshot_factory(trades=trades, stats=stats)])
    assert dash.tick() is True
    before = store_state(dash.store)
    frames = dash.heatmap_canvas.frames

    assert dash.tick() is False
    assert store_state(dash.store) == before
    assert dash.heatmap_canvas.frames == frames


def test_tick_ingests_and_renders(make_dashboard, snapshot_factory, tape):
    trades = [TradeRecord(2.0, 100.0, "12:00:00", True)]
    dash = make_dashboard([snapshot_factory(trades=trades)])
    assert dash.tick() is True
    assert list(dash.store.time_axis) == ["12:00:01"]
    assert dash.heatmap_canvas.frames == 1
    assert dash.barchart_canvas.frames == 1
    assert [[r.size for r in rows] for rows in tape] == [[2.0]]


def test_scheduler_registers_both_tasks(make_dashboard):
    scheduler = FakeScheduler()
    dash = make_dashboard(scheduler=scheduler)
    assert dash.running
    assert [(interval, cb) for interval, cb, _ in scheduler.tasks] == [
        (1.0, dash.tick), (2.0, dash.rescan),
    ]

    dash.start(scheduler)
    assert len(scheduler.tasks) == 2

    dash.stop()
    assert not dash.running
    assert all(handle.cancelled for _, _, handle in scheduler.tasks)


def test_rescan_task_lowers_watermark(make_dashboard, snapshot_factory):
    dash = make_dashboard([snapshot_factory(ask_sizes=[50.0, 1.0, 1.0, 1.0, 1.0])])
    dash.tick()
    dash.store.clear()
    dash.rescan()
    assert dash.store.max_depth == 0.0


def test_heatmap_tooltip_for_cell(make_dashboard, snapshot_factory, tooltips):
    dash = make_dashboard([snapshot_factory()])
    dash.tick()
    hit = dash.heatmap_pointer_move(100, 447.5)
    assert hit.kind == "orderbook"
    assert tooltips == [("ask: 1", (110, 457.5), ASK_TOOLTIP)]


def test_heatmap_tooltip_for_delta(make_dashboard, snapshot_factory, tooltips):
    stats = TradeStats(3.0, 2, 100.1, 1.0, 1, 99.9)
    dash = make_dashboard([snapshot_factory(stats=stats)])
    dash.tick()
    dash.heatmap_pointer_move(362.5, 334.375)
    content, _, style = tooltips[-1]
    assert content.startswith("4.0 contracts traded\n")
    assert style == BID_TOOLTIP


def test_heatmap_miss_hides_tooltip(make_dashboard, snapshot_factory, tooltips):
    dash = make_dashboard([snapshot_factory()])
    dash.tick()
    dash.heatmap_pointer_move(5, 5)
    assert tooltips == [(None, (15, 15), None)]


def test_barchart_tooltip(make_dashboard, snapshot_factory, tooltips):
    dash = make_dashboard([snapshot_factory()])
    dash.tick()
    hit = dash.barchart_pointer_move(280, 100)
    assert hit.kind == "bar"
    assert tooltips == [("Price: 100.3\nask: 1", (290, 110), ASK_TOOLTIP)]


def test_pointer_out_hides_tooltip(make_dashboard, tooltips):
    make_dashboard().pointer_out()
    assert tooltips == [(None, (0.0, 0.0), None)]


def test_resize_redraws_without_ingesting(make_dashboard, snapshot_factory):
    dash = make_dashboard([snapshot_factory()])
    dash.tick()
    dash.heatmap_canvas.resize(400, 300)
    dash.resize()
    assert dash.heatmap_canvas.frames == 2
    assert len(dash.store.time_axis) == 1
    assert dash.heatmap_canvas.calls[0].args == (0, 0, 400, 300)


def test_resize_before_first_snapshot_is_noop(make_dashboard):
    dash = make_dashboard()
    dash.resize()
    assert dash.heatmap_canvas.frames == 0


def test_reset_clears_store(make_dashboard, snapshot_factory):
    dash = make_dashboard([snapshot_factory()])
    dash.tick()
    dash.reset()
    assert not dash.store.cells
    assert dash.store.price_axis == []
    assert len(dash.heatmap_canvas.calls) == 1


@pytest.mark.asyncio
async def test_asyncio_scheduler_runs_and_cancels():
    calls = []
    task = asyncio_scheduler(0.001, lambda: calls.append(1))
    await asyncio.sleep(0.05)
    task.cancel()
    count = len(calls)
    assert count > 0
    await asyncio.sleep(0.01)
    assert len(calls) == count


@pytest.mark.asyncio
async def test_asyncio_scheduler_survives_callback_errors():
    calls = []

    def flaky():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")

    task = asyncio_scheduler(0.001, flaky)
    # The first failure logs a traceback, which can take a while
    deadline = time.monotonic() + 2.0
    while len(calls) < 2 and time.monotonic() < deadline:
        await asyncio.sleep(0.01)
    task.cancel()
    assert len(calls) > 1


class RecordingLogger:
    def __init__(self):
        self.events = []

    def exception(self, event, **kw):
        self.events.append((event, kw))


def test_guarded_callback_logs_and_returns(monkeypatch):
    log = RecordingLogger()
    monkeypatch.setattr(scheduler_mod, "logger", log)

    def failing():
        raise RuntimeError("boom")

    run = guarded(failing)
    run()
    run()
    assert log.events == [("periodic_task_failed", {"callback": "failing"})] * 2


def test_guarded_callback_passes_through(monkeypatch):
    log = RecordingLogger()
    monkeypatch.setattr(scheduler_mod, "logger", log)
    calls = []
    guarded(lambda: calls.append(1))()
    assert calls == [1]
    assert log.events == []
