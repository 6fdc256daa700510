"""Dashboard configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class DashboardConfig(BaseModel):
    """Recognized dashboard options, validated at construction."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    symbol: str = Field(default="BTCUSDT", min_length=1)
    tick_size: float = Field(default=0.1, gt=0, description="Instrument minimum price increment")
    update_interval: int = Field(default=250, gt=0, description="Ingest + render period (ms)")
    levels: int = Field(default=10, gt=0, description="Price levels shown per side")
    aggregation: int = Field(default=1, gt=0, description="Price bucket size in ticks")
    max_series_length: int = Field(default=60, gt=0, description="Timestamps kept in the window")
    scale: Literal["linear", "log2"] = "linear"
    theme: Literal["color", "monochrome"] = "color"

    # Extra levels fetched past the visible ladder so volatile moves still have depth
    buffer_levels: int = Field(default=5, ge=0)
    linear_cutoff: float = Field(default=0.5, gt=0, le=1)
    rescan_interval: int = Field(default=2000, gt=0, description="Depth watermark rescan period (ms)")

    @property
    def depth(self) -> int:
        """Levels requested from the feed per side."""
        return self.levels + self.buffer_levels

    @property
    def block_size(self) -> int:
        """Cells appended per snapshot."""
        return self.depth * 2
