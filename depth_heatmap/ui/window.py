"""
Dashboard GUI using PyQt6 - pops out as a standalone window.

Real-time visualization with:
- Order book heatmap with delta dots (left)
- Depth bar chart for the latest timestamp (right top)
- Time & sales tape (right bottom)
"""

from __future__ import annotations

import sys
from contextlib import contextmanager
from typing import Callable, Iterator

from PyQt6.QtCore import QLineF, QPoint, QPointF, QRectF, Qt, QTimer
from PyQt6.QtGui import QColor, QFont, QImage, QPainter
from PyQt6.QtWidgets import (
    QApplication, QHeaderView, QLabel, QMainWindow, QSplitter, QTableWidget,
    QTableWidgetItem, QToolTip, QVBoxLayout, QWidget,
)

from ..config import DashboardConfig
from ..dashboard import Dashboard
from ..engine.colors import BACKGROUND
from ..engine.scheduler import guarded
from ..render.canvas import Canvas
from ..types import TapeRow, TooltipStyle

# Colors
BUY_COLOR = QColor(34, 197, 94)      # Green
SELL_COLOR = QColor(239, 68, 68)     # Red
BG_COLOR = QColor(15, 23, 42)        # Dark blue-gray
HEADER_BG = QColor(30, 41, 59)
TEXT_COLOR = QColor(248, 250, 252)


class QtCanvas(Canvas):
    """Canvas backed by a QImage; painted onto its widget after each frame."""

    def __init__(self, width: float = 1, height: float = 1, pixel_ratio: float = 1.0) -> None:
        self.on_frame: Callable[[QtCanvas], None] | None = None
        self.pixel_ratio = pixel_ratio
        self._painter: QPainter | None = None
        self._font = QFont("Arial")
        self._font.setPixelSize(10)
        self.resize(width, height)

    def resize(self, width: float, height: float) -> None:
        self.width = max(1.0, float(width))
        self.height = max(1.0, float(height))
        # Backing store in device pixels, painted in logical pixels
        self.image = QImage(
            int(self.width * self.pixel_ratio), int(self.height * self.pixel_ratio),
            QImage.Format.Format_RGB32,
        )
        self.image.setDevicePixelRatio(self.pixel_ratio)
        self.image.fill(QColor(BACKGROUND))

    @contextmanager
    def frame(self) -> Iterator[Canvas]:
        painter = QPainter(self.image)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setFont(self._font)
        self._painter = painter
        try:
            yield self
        finally:
            painter.end()
            self._painter = None
        if self.on_frame is not None:
            self.on_frame(self)

    def fill_rect(self, x, y, w, h, color) -> None:
        self._painter.fillRect(QRectF(x, y, w, h), QColor(color))

    def fill_circle(self, cx, cy, radius, color) -> None:
        p = self._painter
        p.setPen(Qt.PenStyle.NoPen)
        p.setBrush(QColor(color))
        p.drawEllipse(QPointF(cx, cy), radius, radius)

    def line(self, x0, y0, x1, y1, color) -> None:
        p = self._painter
        p.setPen(QColor(color))
        p.drawLine(QLineF(x0, y0, x1, y1))

    def text(self, x, y, label, color, align="left") -> None:
        p = self._painter
        p.setPen(QColor(color))
        if align == "center":
            x -= p.fontMetrics().horizontalAdvance(label) / 2
        p.drawText(QPointF(x, y), label)


class CanvasWidget(QWidget):
    """Shows a QtCanvas and forwards resize/pointer events."""

    def __init__(self) -> None:
        super().__init__()
        self.canvas = QtCanvas(pixel_ratio=self.devicePixelRatioF())
        self.canvas.on_frame = lambda canvas: self.update()
        self.on_resize: Callable[[], None] | None = None
        self.on_move: Callable[[float, float], object] | None = None
        self.on_leave: Callable[[], None] | None = None
        self.setMouseTracking(True)
        self.setMinimumSize(200, 150)

    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        painter.drawImage(0, 0, self.canvas.image)
        painter.end()

    def resizeEvent(self, event) -> None:
        self.canvas.pixel_ratio = self.devicePixelRatioF()
        self.canvas.resize(self.width(), self.height())
        if self.on_resize is not None:
            self.on_resize()

    def mouseMoveEvent(self, event) -> None:
        if self.on_move is not None:
            pos = event.position()
            self.on_move(pos.x(), pos.y())

    def leaveEvent(self, event) -> None:
        if self.on_leave is not None:
            self.on_leave()


class _TimerHandle:
    def __init__(self, timer: QTimer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.stop()


class DashboardWindow(QMainWindow):
    """Main dashboard window."""

    def __init__(self, config: DashboardConfig, feed) -> None:
        super().__init__()
        self.config = config
        self._hover: CanvasWidget | None = None

        self.setWindowTitle(f"Depth Heatmap - {config.symbol}")
        self.setMinimumSize(1000, 700)
        self.setStyleSheet(f"background-color: {BG_COLOR.name()}; color: {TEXT_COLOR.name()};")

        self._setup_ui()
        self.dashboard = Dashboard(
            config,
            feed,
            self.heatmap_widget.canvas,
            self.barchart_widget.canvas,
            tape_sink=self._update_tape,
            present_tooltip=self._present_tooltip,
            scheduler=self._schedule,
        )
        self._wire_events()

    def _setup_ui(self) -> None:
        """Build the UI."""
        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(10, 10, 10, 10)

        # Header
        self.header = QLabel(
            f"  {self.config.symbol}  │  levels: {self.config.levels}  │  "
            f"aggregation: {self.config.aggregation}  │  scale: {self.config.scale}"
        )
        self.header.setFont(QFont("Consolas", 14, QFont.Weight.Bold))
        self.header.setStyleSheet(f"background-color: {HEADER_BG.name()}; padding: 10px;")
        layout.addWidget(self.header)

        self.heatmap_widget = CanvasWidget()
        self.barchart_widget = CanvasWidget()

        # Trade tape
        self.tape = QTableWidget()
        self.tape.setColumnCount(3)
        self.tape.setHorizontalHeaderLabels(["Size", "Price", "Time"])
        self.tape.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        self.tape.verticalHeader().setVisible(False)
        self.tape.setShowGrid(False)
        self.tape.setStyleSheet(f"""
            QTableWidget {{
                background-color: {BG_COLOR.name()};
                font-family: Consolas;
                font-size: 12px;
            }}
            QHeaderView::section {{
                background-color: {HEADER_BG.name()};
                color: {TEXT_COLOR.name()};
                padding: 5px;
                border: none;
            }}
        """)

        side = QSplitter(Qt.Orientation.Vertical)
        side.addWidget(self.barchart_widget)
        side.addWidget(self.tape)

        main = QSplitter(Qt.Orientation.Horizontal)
        main.addWidget(self.heatmap_widget)
        main.addWidget(side)
        main.setStretchFactor(0, 2)
        main.setStretchFactor(1, 1)
        layout.addWidget(main)

    def _wire_events(self) -> None:
        dash = self.dashboard
        self.heatmap_widget.on_resize = dash.resize
        self.barchart_widget.on_resize = dash.resize
        self.heatmap_widget.on_move = lambda x, y: self._hovered(self.heatmap_widget, dash.heatmap_pointer_move, x, y)
        self.barchart_widget.on_move = lambda x, y: self._hovered(self.barchart_widget, dash.barchart_pointer_move, x, y)
        self.heatmap_widget.on_leave = dash.pointer_out
        self.barchart_widget.on_leave = dash.pointer_out

    def _hovered(self, widget: CanvasWidget, handler, x: float, y: float) -> None:
        self._hover = widget
        handler(x, y)

    def _schedule(self, interval_sec: float, callback) -> _TimerHandle:
        timer = QTimer(self)
        timer.timeout.connect(guarded(callback))
        timer.start(int(interval_sec * 1000))
        return _TimerHandle(timer)

    def _present_tooltip(
        self, content: str | None, position: tuple[float, float], style: TooltipStyle | None,
    ) -> None:
        if content is None or self._hover is None:
            QToolTip.hideText()
            return
        QToolTip.setPalette(self.palette())
        html = (
            f"<div style='background-color: {style.background}; color: black; "
            f"border: 2px solid {style.border}; padding: 5px;'>"
            + content.replace("\n", "<br/>")
            + "</div>"
        )
        global_pos = self._hover.mapToGlobal(QPoint(int(position[0]), int(position[1])))
        QToolTip.showText(global_pos, html, self._hover)

    def _update_tape(self, rows: list[TapeRow]) -> None:
        """Rebuild the trade tape, newest first."""
        table = self.tape
        table.setRowCount(len(rows))
        bold = QFont("Consolas")
        bold.setBold(True)
        for i, row in enumerate(rows):
            color = BUY_COLOR if row.side == "buy" else SELL_COLOR
            for col, value in enumerate((f"{row.size:g}", row.price, row.time)):
                item = QTableWidgetItem(value)
                item.setFlags(item.flags() & ~Qt.ItemFlag.ItemIsEditable)
                item.setForeground(color)
                if row.is_top:
                    item.setFont(bold)
                table.setItem(i, col, item)

    def closeEvent(self, event) -> None:
        self.dashboard.stop()
        super().closeEvent(event)


def run_gui(config: DashboardConfig, feed) -> None:
    """Run the GUI application (blocking)."""
    app = QApplication(sys.argv)
    app.setStyle("Fusion")  # Modern look

    window = DashboardWindow(config, feed)
    window.show()

    app.exec()
