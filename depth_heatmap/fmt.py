"""Display formatting for quantities and timestamps."""

from __future__ import annotations

from datetime import datetime


def fmt_num(qty: float) -> str:
    """Format quantity for display."""
    if abs(qty) >= 1_000_000:
        return f"{qty/1_000_000:.1f}M"
    elif abs(qty) >= 1000:
        return f"{qty/1000:.1f}K"
    elif qty == int(qty):
        return f"{int(qty)}"
    elif abs(qty) >= 1:
        return f"{qty:.1f}"
    return f"{qty:.3f}"


def fmt_time(when: datetime, interval_ms: int) -> str:
    """
    Format a timestamp label for the time axis.

    Sub-second update intervals need milliseconds to keep labels unique.
    """
    if interval_ms < 1000:
        return when.strftime("%H:%M:%S.") + f"{when.microsecond // 1000:03d}"
    return when.strftime("%H:%M:%S")
