"""
Depth Heatmap - Real-time order book heatmap, depth bars and trade tape.

Architecture:
- datafeed/: WebSocket connection, local order book, tick-size helper
- engine/: Windowed series store, snapshot ingestion, hit testing
- render/: Stateless full-frame renderers onto a Canvas
- ui/: Terminal (Textual) and standalone window (PyQt6) frontends
"""

__version__ = "0.1.0"
