"""
Drawing surface abstraction.

Renderers draw in logical pixels through this small immediate-mode API.
Backends: QtCanvas (QImage + QPainter), TerminalCanvas (character grid),
RecordingCanvas (headless, for benchmarks and tests).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, NamedTuple


class Canvas(ABC):
    """Fixed-size surface; width/height in logical pixels."""

    width: float
    height: float

    @contextmanager
    def frame(self) -> Iterator[Canvas]:
        """Bracket one full redraw. Backends acquire/release painters here."""
        yield self

    @abstractmethod
    def fill_rect(self, x: float, y: float, w: float, h: float, color: str) -> None: ...

    @abstractmethod
    def fill_circle(self, cx: float, cy: float, radius: float, color: str) -> None: ...

    @abstractmethod
    def line(self, x0: float, y0: float, x1: float, y1: float, color: str) -> None: ...

    @abstractmethod
    def text(self, x: float, y: float, label: str, color: str, align: str = "left") -> None: ...

    def resize(self, width: float, height: float) -> None:
        self.width = width
        self.height = height


class DrawCall(NamedTuple):
    op: str
    args: tuple
    color: str


class RecordingCanvas(Canvas):
    """Records draw calls instead of rasterizing them."""

    def __init__(self, width: float = 800, height: float = 600) -> None:
        self.width = width
        self.height = height
        self.calls: list[DrawCall] = []
        self.frames = 0

    @contextmanager
    def frame(self) -> Iterator[Canvas]:
        self.calls.clear()
        self.frames += 1
        yield self

    def fill_rect(self, x, y, w, h, color) -> None:
        self.calls.append(DrawCall("rect", (x, y, w, h), color))

    def fill_circle(self, cx, cy, radius, color) -> None:
        self.calls.append(DrawCall("circle", (cx, cy, radius), color))

    def line(self, x0, y0, x1, y1, color) -> None:
        self.calls.append(DrawCall("line", (x0, y0, x1, y1), color))

    def text(self, x, y, label, color, align="left") -> None:
        self.calls.append(DrawCall("text", (x, y, label, align), color))

    def of(self, op: str) -> list[DrawCall]:
        return [c for c in self.calls if c.op == op]
