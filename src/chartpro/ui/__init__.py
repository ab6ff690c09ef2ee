"""UI components for ChartPro."""

from .chart_canvas import ChartCanvas
from .history_panel import HistoryPanel
from .main_window import MainWindow

__all__ = [
    "ChartCanvas",
    "HistoryPanel",
    "MainWindow",
]
