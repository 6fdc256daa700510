#!/usr/bin/env python3
"""
Depth Heatmap - order book heatmap, depth bars and trade tape for Binance Futures.

Usage:
    python -m depth_heatmap.main BTCUSDT --tick-size 0.1 --levels 20

Controls:
    q - Quit
    r - Reset buffered series
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from pydantic import ValidationError

from .config import DashboardConfig
from .log import get_logger, setup_logging


def add_dashboard_args(parser: argparse.ArgumentParser) -> None:
    """Options shared by the terminal and window frontends."""
    parser.add_argument(
        "symbol",
        nargs="?",
        default="BTCUSDT",
        help="Trading symbol (default: BTCUSDT)"
    )
    parser.add_argument(
        "--tick-size",
        type=float,
        default=0.1,
        help="Instrument tick size (default: 0.1)"
    )
    parser.add_argument(
        "--levels",
        type=int,
        default=10,
        help="Number of price levels to show per side (default: 10)"
    )
    parser.add_argument(
        "--aggregation",
        type=int,
        default=1,
        help="Price bucket size in ticks (default: 1)"
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=250,
        help="Update interval in ms (default: 250)"
    )
    parser.add_argument(
        "--series-length",
        type=int,
        default=60,
        help="Timestamps kept on the heatmap (default: 60)"
    )
    parser.add_argument(
        "--scale",
        choices=["linear", "log2"],
        default="linear",
        help="Heatmap intensity scale (default: linear)"
    )
    parser.add_argument(
        "--theme",
        choices=["color", "monochrome"],
        default="color",
        help="Heatmap palette (default: color)"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level (default: WARNING)"
    )


def config_from_args(args: argparse.Namespace) -> DashboardConfig:
    return DashboardConfig(
        symbol=args.symbol.upper(),
        tick_size=args.tick_size,
        levels=args.levels,
        aggregation=args.aggregation,
        update_interval=args.interval,
        max_series_length=args.series_length,
        scale=args.scale,
        theme=args.theme,
    )


async def main(config: DashboardConfig) -> None:
    """Main entry point - runs data feed and UI concurrently."""

    # Import here to avoid slow startup for --help
    from .datafeed.binance_client import BinanceClient
    from .ui.terminal import run_ui

    client = BinanceClient(config.symbol, tick_size=config.tick_size)
    await run_ui(config, client)


def cli() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Depth Heatmap - order book heatmap for Binance Futures",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m depth_heatmap.main BTCUSDT
    python -m depth_heatmap.main BTCUSDT --aggregation 10 --levels 20
    python -m depth_heatmap.main ETHUSDT --tick-size 0.01 --scale log2
        """
    )
    add_dashboard_args(parser)
    args = parser.parse_args()
    setup_logging(args.log_level)

    try:
        config = config_from_args(args)
    except ValidationError as e:
        parser.error(str(e))

    get_logger("main").info("starting", symbol=config.symbol, levels=config.levels)

    try:
        asyncio.run(main(config))
    except KeyboardInterrupt:
        print("\nShutdown requested.")
        sys.exit(0)


if __name__ == "__main__":
    cli()
