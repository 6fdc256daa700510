#!/usr/bin/env python3
"""
Depth Heatmap GUI - Standalone window version.

Usage:
    python -m depth_heatmap.gui BTCUSDT --tick-size 0.1 --levels 20
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import threading

from pydantic import ValidationError

from .config import DashboardConfig
from .log import get_logger, setup_logging
from .main import add_dashboard_args, config_from_args

logger = get_logger("gui")


def run_async_feed(client, loop: asyncio.AbstractEventLoop) -> None:
    """Feed thread body: own event loop, runs until the client stops."""
    try:
        logger.info("feed_thread_started", symbol=client.symbol)
        asyncio.set_event_loop(loop)
        loop.run_until_complete(client.run())
    except Exception:
        logger.exception("feed_thread_failed", symbol=client.symbol)


def main(config: DashboardConfig) -> None:
    """Start the feed thread, then block in the Qt event loop."""
    from .datafeed.binance_client import BinanceClient
    from .ui.window import run_gui

    # The feed thread only enqueues; the GUI thread applies and reads the book
    client = BinanceClient(config.symbol, tick_size=config.tick_size)

    loop = asyncio.new_event_loop()
    feed_thread = threading.Thread(
        target=run_async_feed,
        args=(client, loop),
        daemon=True
    )
    feed_thread.start()

    # Qt widgets live on the main thread
    try:
        run_gui(config, client)
    finally:
        # Daemon thread; exits with the process if the stream is idle
        client.stop()


def cli() -> None:
    """Console script: depth-heatmap-gui."""
    parser = argparse.ArgumentParser(
        description="Depth Heatmap GUI - Standalone window for Binance Futures",
    )
    add_dashboard_args(parser)
    args = parser.parse_args()
    setup_logging(args.log_level)

    try:
        config = config_from_args(args)
    except ValidationError as e:
        parser.error(str(e))

    try:
        main(config)
    except KeyboardInterrupt:
        print("\nShutdown requested.")
        sys.exit(0)


if __name__ == "__main__":
    cli()
