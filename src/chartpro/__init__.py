"""
ChartPro - interactive annotation tools for candlestick price charts.

Built with PyQt6. Draw trend lines, horizontal and vertical levels, boxes,
circles and Fibonacci retracements over a chart, with undo/redo, snapping
and JSON persistence of the annotations.
"""

__version__ = "1.0.0"
__author__ = "ChartPro Team"
