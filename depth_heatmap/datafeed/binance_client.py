"""
Binance Futures feed for the dashboard.

The websocket carries depth diffs and trades on one combined stream; a REST
depth snapshot seeds the book after the stream is open, and diffs that
arrived earlier are replayed on top of it.

The network side only parses and enqueues messages. They are applied to the
order book inside get_snapshot(), on the dashboard's thread, so the book is
never mutated concurrently with a read.

Performance notes:
- orjson for message parsing
- The network task never touches the book; applying is batched per read
"""

from __future__ import annotations

import queue

import aiohttp
import orjson

from ..log import get_logger
from ..types import Snapshot, Trade
from .orderbook import OrderBook

# USD-M futures endpoints
REST_BASE = "https://fapi.binance.com"
WS_BASE = "wss://fstream.binance.com"

# Bound on messages applied per get_snapshot() so one read stays cheap
MAX_PENDING_PER_READ = 10_000
DEPTH_LIMIT = 1000

logger = get_logger("binance")


class BinanceClient:
    """
    Feed object: network task on one side, get_snapshot() on the other.

    Usage:
        client = BinanceClient("BTCUSDT", tick_size=0.1)
        asyncio.create_task(client.run())
        snapshot = client.get_snapshot(depth=15, aggregation=1)
    """

    def __init__(self, symbol: str, tick_size: float) -> None:
        self.symbol = symbol.upper()
        self.symbol_lower = symbol.lower()

        self.orderbook = OrderBook(self.symbol, tick_size)

        self._running = False
        self._gap_logged = False
        self._buffered_updates: list[dict] = []

        # Raw messages from the network thread/task: (kind, payload)
        self.pending: queue.Queue[tuple[str, dict]] = queue.Queue()

    async def _fetch_depth(self, session: aiohttp.ClientSession) -> dict:
        params = {"symbol": self.symbol, "limit": DEPTH_LIMIT}
        async with session.get(f"{REST_BASE}/fapi/v1/depth", params=params) as resp:
            resp.raise_for_status()
            return orjson.loads(await resp.read())

    @property
    def stream_url(self) -> str:
        """Combined depth + trade stream; unthrottled depth diffs."""
        streams = "/".join(f"{self.symbol_lower}@{name}" for name in ("depth", "trade"))
        return f"{WS_BASE}/stream?streams={streams}"

    def _handle_ws_message(self, raw: str | bytes) -> None:
        """
        Parse and enqueue one WebSocket message.

        HOT PATH: one call per websocket frame.
        """
        data = orjson.loads(raw)

        # {"stream": "<symbol>@<kind>", "data": {...}}
        stream = data.get('stream', '')
        payload = data.get('data', data)

        if '@depth' in stream:
            self.pending.put(('depth', payload))
        elif '@trade' in stream:
            self.pending.put(('trade', payload))

    def apply_pending(self, limit: int = MAX_PENDING_PER_READ) -> int:
        """Apply queued messages to the order book. Returns number applied."""
        applied = 0
        while applied < limit:
            try:
                kind, payload = self.pending.get_nowait()
            except queue.Empty:
                break
            applied += 1

            if kind == 'snapshot':
                self.orderbook.load_snapshot(payload)
                self._gap_logged = False
                # Replay updates that arrived before the snapshot; stale ones are skipped
                for update in self._buffered_updates:
                    self.orderbook.apply_update(update)
                self._buffered_updates.clear()
            elif kind == 'depth':
                if not self.orderbook.loaded:
                    self._buffered_updates.append(payload)
                    continue
                if not self.orderbook.apply_update(payload) and not self._gap_logged:
                    logger.warning(
                        "depth_sequence_gap",
                        symbol=self.symbol,
                        first_id=payload.get('U'),
                        book_last=self.orderbook.last_update_id,
                    )
                    self._gap_logged = True
            elif kind == 'trade':
                self.orderbook.process_trade(Trade(
                    price=float(payload['p']),
                    qty=float(payload['q']),
                    is_buyer_maker=payload['m'],
                    timestamp_ms=payload['T'],
                ))
        return applied

    def get_snapshot(self, depth: int, aggregation: int) -> Snapshot | None:
        """Apply pending messages, then read the aggregated book."""
        self.apply_pending()
        return self.orderbook.get_snapshot(depth, aggregation)

    async def run(self) -> None:
        """
        Main run loop. Connects to Binance and enqueues messages.
        """
        self._running = True

        async with aiohttp.ClientSession() as session:
            # 1. Connect first so no depth update between snapshot and stream is lost
            ws_url = self.stream_url
            async with session.ws_connect(ws_url) as ws:
                # 2. Fetch initial snapshot; queued ahead of later updates
                self.pending.put(("snapshot", await self._fetch_depth(session)))
                logger.info("feed_connected", symbol=self.symbol, url=ws_url)

                async for msg in ws:
                    if not self._running:
                        break

                    if msg.type == aiohttp.WSMsgType.TEXT:
                        self._handle_ws_message(msg.data)
                    elif msg.type == aiohttp.WSMsgType.ERROR:
                        logger.warning("feed_ws_error", symbol=self.symbol, error=str(ws.exception()))
                        break

    def stop(self) -> None:
        """Stop after the next websocket message."""
        self._running = False
