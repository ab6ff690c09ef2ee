"""Data models for ChartPro annotations."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .plottables import Plottable

logger = logging.getLogger(__name__)


class ChartDrawMode(str, Enum):
    """Drawing tool armed for the next pointer drag.

    Values double as the ``ShapeType`` discriminators of saved annotations.
    """

    NONE = "None"
    TREND_LINE = "TrendLine"
    HORIZONTAL_LINE = "HorizontalLine"
    VERTICAL_LINE = "VerticalLine"
    RECTANGLE = "Rectangle"
    CIRCLE = "Circle"
    FIBONACCI_RETRACEMENT = "FibonacciRetracement"
    FIBONACCI_EXTENSION = "FibonacciExtension"

    @property
    def display_name(self) -> str:
        """Human-readable name for toolbars and the status bar."""
        return _DISPLAY_NAMES.get(self, self.value)


_DISPLAY_NAMES = {
    ChartDrawMode.NONE: "None",
    ChartDrawMode.TREND_LINE: "Trend Line",
    ChartDrawMode.HORIZONTAL_LINE: "Horizontal Line",
    ChartDrawMode.VERTICAL_LINE: "Vertical Line",
    ChartDrawMode.RECTANGLE: "Rectangle",
    ChartDrawMode.CIRCLE: "Circle",
    ChartDrawMode.FIBONACCI_RETRACEMENT: "Fib Retracement",
    ChartDrawMode.FIBONACCI_EXTENSION: "Fib Extension",
}


class SnapMode(str, Enum):
    """How raw cursor coordinates are adjusted before drawing."""

    NONE = "None"
    PRICE = "Price"
    CANDLE_OHLC = "CandleOHLC"


@dataclass(frozen=True)
class Candle:
    """
    A single OHLC candle.

    ``timestamp`` is expressed in chart x (data) coordinates so candles can
    be compared directly with cursor positions.
    """

    open: float
    high: float
    low: float
    close: float
    timestamp: float
    duration: float = 1.0

    @property
    def prices(self) -> tuple[float, float, float, float]:
        """Open, high, low and close as a tuple."""
        return (self.open, self.high, self.low, self.close)

    @property
    def is_bullish(self) -> bool:
        """True when the candle closed at or above its open."""
        return self.close >= self.open


class DrawnShape:
    """
    A drawn annotation: an owned plottable plus its metadata.

    Shapes are compared by identity. Only the visibility and selection
    flags may change after construction; everything else is fixed.
    """

    def __init__(self, plottable: Plottable, draw_mode: ChartDrawMode) -> None:
        """
        Create a shape.

        Args:
            plottable: The geometric primitive this shape owns
            draw_mode: The draw mode that produced the primitive

        Raises:
            ValueError: If no plottable is given
        """
        if plottable is None:
            raise ValueError("plottable must not be None")

        self._id = uuid.uuid4()
        self._plottable = plottable
        self._draw_mode = ChartDrawMode(draw_mode)
        self._created_at = datetime.now(timezone.utc)
        self._is_visible = True
        self.is_selected = False

    @property
    def id(self) -> uuid.UUID:
        return self._id

    @property
    def plottable(self) -> Plottable:
        return self._plottable

    @property
    def draw_mode(self) -> ChartDrawMode:
        return self._draw_mode

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def is_visible(self) -> bool:
        return self._is_visible

    @is_visible.setter
    def is_visible(self, value: bool) -> None:
        self._is_visible = bool(value)
        self._plottable.visible = self._is_visible

    def describe(self) -> str:
        """Short text summary, e.g. ``Trend Line: (10.00, 100.00) to (50.00, 110.00)``."""
        x1, y1, x2, y2 = self._plottable.defining_coordinates()
        return (
            f"{self._draw_mode.display_name}: "
            f"({x1:.2f}, {y1:.2f}) to ({x2:.2f}, {y2:.2f})"
        )

    def __repr__(self) -> str:
        return f"DrawnShape(id={self._id}, draw_mode={self._draw_mode.value})"
