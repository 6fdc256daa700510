from datetime import datetime

import orjson
import pytest

from depth_heatmap.datafeed.binance_client import BinanceClient
from depth_heatmap.datafeed.orderbook import OrderBook
from depth_heatmap.datafeed.tick import Tick
from depth_heatmap.engine.flows import TradeFlow
from depth_heatmap.types import Trade

TS_MS = 1_704_110_400_000


@pytest.fixture
def book():
    book = OrderBook("BTCUSDT", 0.1)
    book.load_snapshot({
        'lastUpdateId': 10,
        'bids': [["100.0", "1"], ["99.9", "2"], ["99.7", "3"], ["99.5", "0"]],
        'asks': [["100.1", "1"], ["100.3", "2"]],
    })
    return book


def trade(price, qty, is_buyer_maker=False):
    return Trade(price=price, qty=qty, is_buyer_maker=is_buyer_maker, timestamp_ms=TS_MS)


class TestOrderBook:

    def test_load_snapshot_skips_empty_levels(self, book):
        assert book.loaded
        assert 99.5 not in book.bids
        assert book.best_bid == 100.0
        assert book.best_ask == 100.1
        assert book.mid_price == pytest.approx(100.05)

    def test_unloaded_book_has_no_snapshot(self):
        assert OrderBook("BTCUSDT", 0.1).get_snapshot(3) is None

    def test_snapshot_contiguous_buckets(self, book):
        snap = book.get_snapshot(3, 1)
        assert snap.agg_bid_prices == [100.0, 99.9, 99.8]
        assert snap.agg_bid_sizes == [1.0, 2.0, 0.0]
        assert snap.agg_ask_prices == [100.1, 100.2, 100.3]
        assert snap.agg_ask_sizes == [1.0, 0.0, 2.0]
        assert (snap.bid, snap.ask) == (100.0, 100.1)

    def test_snapshot_aggregated(self, book):
        snap = book.get_snapshot(3, 5)
        assert snap.agg_bid_prices == [100.0, 99.5, 99.0]
        assert snap.agg_bid_sizes == [1.0, 5.0, 0.0]
        assert snap.agg_ask_prices == [100.5, 101.0, 101.5]
        assert snap.agg_ask_sizes == [3.0, 0.0, 0.0]

    def test_unchanged_book_returns_none(self, book):
        assert book.get_snapshot(3) is not None
        assert book.get_snapshot(3) is None

        book.process_trade(trade(100.0, 1.0))
        assert book.get_snapshot(3) is not None

    def test_apply_update(self, book):
        assert book.apply_update({'U': 11, 'u': 12, 'b': [["100.0", "0"]], 'a': [["100.0", "4"]]})
        assert book.last_update_id == 12
        assert book.best_bid == 99.9
        assert book.best_ask == 100.0

    def test_apply_update_gap(self, book):
        assert not book.apply_update({'U': 15, 'u': 16, 'b': [["100.0", "9"]], 'a': []})
        assert book.bids[100.0] == 1.0

    def test_apply_update_stale(self, book):
        assert book.apply_update({'U': 5, 'u': 8, 'b': [["100.0", "9"]], 'a': []})
        assert book.bids[100.0] == 1.0

    def test_one_sided_book_has_no_snapshot(self):
        book = OrderBook("BTCUSDT", 0.1)
        book.load_snapshot({'lastUpdateId': 1, 'bids': [["100.0", "1"]], 'asks': []})
        assert book.get_snapshot(3) is None


class TestTradeFlow:

    def test_drain_stats(self):
        flow = TradeFlow()
        flow.process_trade(trade(100.0, 2.0))
        flow.process_trade(trade(100.2, 1.0))
        flow.process_trade(trade(99.9, 1.0, is_buyer_maker=True))
        trades, stats = flow.drain(Tick(0.1))
        assert stats.mkt_buy_size == 3.0
        assert stats.mkt_buy_orders == 2
        # 300.2 / 3 snaps to the nearest bucket
        assert stats.avg_buy_vwap == 100.1
        assert stats.mkt_sell_size == 1.0
        assert stats.avg_sell_vwap == 99.9
        assert [t.is_buy for t in trades] == [True, True, False]
        assert trades[0].time == datetime.fromtimestamp(TS_MS / 1000).strftime("%H:%M:%S")

    def test_drain_resets(self):
        flow = TradeFlow()
        flow.process_trade(trade(100.0, 2.0))
        flow.drain(Tick(0.1))
        trades, stats = flow.drain(Tick(0.1))
        assert trades == []
        assert stats.mkt_buy_size == 0.0
        assert stats.avg_buy_vwap == 0.0

    def test_snapshot_carries_drained_trades(self, book):
        book.process_trade(trade(100.0, 2.0))
        snap = book.get_snapshot(3)
        assert [t.size for t in snap.trades] == [2.0]
        assert snap.stats.mkt_buy_orders == 1
        # Drained: a second read after another trade only carries the new one
        book.process_trade(trade(100.1, 1.0))
        assert [t.size for t in book.get_snapshot(3).trades] == [1.0]


class TestBinanceClient:

    SNAPSHOT = {
        'lastUpdateId': 10,
        'bids': [["100.0", "1"]],
        'asks': [["100.1", "1"]],
    }

    def test_no_snapshot_before_load(self):
        client = BinanceClient("btcusdt", tick_size=0.1)
        assert client.symbol == "BTCUSDT"
        assert client.get_snapshot(3, 1) is None

    def test_updates_before_snapshot_are_replayed(self):
        client = BinanceClient("BTCUSDT", tick_size=0.1)
        client.pending.put(('depth', {'U': 5, 'u': 8, 'b': [["100.0", "7"]], 'a': []}))
        client.pending.put(('depth', {'U': 9, 'u': 12, 'b': [["99.9", "5"]], 'a': []}))
        client.pending.put(('snapshot', self.SNAPSHOT))

        assert client.apply_pending() == 3
        book = client.orderbook
        assert book.last_update_id == 12
        # The first update predates the snapshot and is skipped
        assert book.bids == {100.0: 1.0, 99.9: 5.0}

    def test_ws_messages_are_queued_then_applied(self):
        client = BinanceClient("BTCUSDT", tick_size=0.1)
        client.pending.put(('snapshot', self.SNAPSHOT))
        client._handle_ws_message(orjson.dumps({
            'stream': 'btcusdt@depth',
            'data': {'U': 11, 'u': 11, 'b': [], 'a': [["100.2", "3"]]},
        }))
        client._handle_ws_message(orjson.dumps({
            'stream': 'btcusdt@trade',
            'data': {'p': "100.1", 'q': "0.5", 'm': True, 'T': TS_MS},
        }))
        assert client.pending.qsize() == 3

        snap = client.get_snapshot(3, 1)
        assert snap.agg_ask_sizes == [1.0, 3.0, 0.0]
        assert snap.stats.mkt_sell_size == 0.5
        assert snap.trades[0].is_buy is False

    def test_apply_pending_is_bounded(self):
        client = BinanceClient("BTCUSDT", tick_size=0.1)
        client.pending.put(('snapshot', self.SNAPSHOT))
        client.pending.put(('depth', {'U': 11, 'u': 11, 'b': [], 'a': []}))
        assert client.apply_pending(limit=1) == 1
        assert client.pending.qsize() == 1

    def test_sequence_gap_flagged_once(self):
        client = BinanceClient("BTCUSDT", tick_size=0.1)
        client.pending.put(('snapshot', self.SNAPSHOT))
        client.pending.put(('depth', {'U': 20, 'u': 21, 'b': [["100.0", "9"]], 'a': []}))
        client.pending.put(('depth', {'U': 22, 'u': 23, 'b': [["100.0", "9"]], 'a': []}))
        client.apply_pending()
        assert client._gap_logged
        assert client.orderbook.bids[100.0] == 1.0
