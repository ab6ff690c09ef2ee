"""Rendering surface contract and the in-memory plot model."""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import Callable, List, Sequence, Tuple

from PyQt6.QtCore import QPointF

from .models import Candle
from .plottables import Plottable

logger = logging.getLogger(__name__)


def nice_step(raw_step: float) -> float:
    """
    Round a raw tick spacing up to a 1/2/5 x 10^n value.

    Args:
        raw_step: Unrounded spacing

    Returns:
        The rounded spacing, or 0.0 for non-positive input
    """
    if raw_step <= 0 or not math.isfinite(raw_step):
        return 0.0

    exponent = math.floor(math.log10(raw_step))
    magnitude = 10.0 ** exponent
    fraction = raw_step / magnitude

    if fraction <= 1.0:
        nice = 1.0
    elif fraction <= 2.0:
        nice = 2.0
    elif fraction <= 5.0:
        nice = 5.0
    else:
        nice = 10.0
    return nice * magnitude


class ChartSurface(ABC):
    """
    Abstract rendering surface that annotation primitives are drawn on.

    The surface only holds non-owning references to plottables; shapes
    own them.
    """

    @property
    @abstractmethod
    def plottables(self) -> Sequence[Plottable]:
        """Primitives currently on the surface, in drawing order."""
        pass

    @abstractmethod
    def add_plottable(self, plottable: Plottable) -> Plottable:
        """Register a primitive. Adding one that is already present is a no-op."""
        pass

    @abstractmethod
    def remove_plottable(self, plottable: Plottable) -> None:
        """Remove a primitive. Removing one that is absent is a no-op."""
        pass

    @abstractmethod
    def data_to_pixel(self, point: QPointF) -> QPointF:
        """Transform data coordinates to pixel coordinates."""
        pass

    @abstractmethod
    def pixel_to_data(self, point: QPointF) -> QPointF:
        """Transform pixel coordinates to data coordinates."""
        pass

    @abstractmethod
    def price_grid_step(self) -> float:
        """Spacing of the visible price grid, in data units."""
        pass

    @abstractmethod
    def refresh(self) -> None:
        """Request a repaint."""
        pass

    def contains(self, plottable: Plottable) -> bool:
        """Check whether a primitive is on the surface."""
        return any(item is plottable for item in self.plottables)


class PlotModel(ChartSurface):
    """
    In-memory chart surface with linear axes.

    Pixel y grows downwards while price grows upwards. The Qt canvas keeps
    one of these and repaints whenever it refreshes.
    """

    GRID_TARGET_TICKS = 10
    AUTO_SCALE_MARGIN = 0.05

    def __init__(
        self,
        width: float = 800.0,
        height: float = 600.0,
        x_limits: Tuple[float, float] = (0.0, 100.0),
        y_limits: Tuple[float, float] = (0.0, 100.0)
    ) -> None:
        """
        Initialize the plot model.

        Args:
            width: Pixel width of the plotting area
            height: Pixel height of the plotting area
            x_limits: Visible (min, max) time range in data units
            y_limits: Visible (min, max) price range in data units
        """
        self._width = float(width)
        self._height = float(height)
        self._x_min, self._x_max = (float(v) for v in x_limits)
        self._y_min, self._y_max = (float(v) for v in y_limits)
        self._plottables: List[Plottable] = []
        self._candles: List[Candle] = []
        self._refresh_listeners: List[Callable[[], None]] = []

    # === Primitives ===

    @property
    def plottables(self) -> Tuple[Plottable, ...]:
        return tuple(self._plottables)

    def add_plottable(self, plottable: Plottable) -> Plottable:
        if not self.contains(plottable):
            self._plottables.append(plottable)
        return plottable

    def remove_plottable(self, plottable: Plottable) -> None:
        for i, item in enumerate(self._plottables):
            if item is plottable:
                del self._plottables[i]
                return

    def clear_plottables(self) -> None:
        """Remove every primitive."""
        self._plottables.clear()

    # === Candles ===

    @property
    def candles(self) -> Tuple[Candle, ...]:
        return tuple(self._candles)

    def set_candles(self, candles: Sequence[Candle]) -> None:
        """Replace the candle series shown under the annotations."""
        self._candles = list(candles)

    # === Axes ===

    @property
    def pixel_size(self) -> Tuple[float, float]:
        return (self._width, self._height)

    def set_pixel_size(self, width: float, height: float) -> None:
        """Update the pixel dimensions of the plotting area."""
        self._width = max(1.0, float(width))
        self._height = max(1.0, float(height))

    @property
    def x_limits(self) -> Tuple[float, float]:
        return (self._x_min, self._x_max)

    @property
    def y_limits(self) -> Tuple[float, float]:
        return (self._y_min, self._y_max)

    def set_limits(self, x_min: float, x_max: float, y_min: float, y_max: float) -> None:
        """Set the visible data range."""
        if x_max <= x_min or y_max <= y_min:
            raise ValueError("Axis limits must have max greater than min")
        self._x_min, self._x_max = float(x_min), float(x_max)
        self._y_min, self._y_max = float(y_min), float(y_max)

    def auto_scale(self) -> None:
        """Fit the axes to the bound candles, with a small margin."""
        if not self._candles:
            return

        x_min = min(c.timestamp for c in self._candles)
        x_max = max(c.timestamp + c.duration for c in self._candles)
        y_min = min(c.low for c in self._candles)
        y_max = max(c.high for c in self._candles)

        x_pad = (x_max - x_min) * self.AUTO_SCALE_MARGIN or 1.0
        y_pad = (y_max - y_min) * self.AUTO_SCALE_MARGIN or 1.0
        self.set_limits(x_min - x_pad, x_max + x_pad, y_min - y_pad, y_max + y_pad)
        logger.debug(f"Auto-scaled axes to x={self.x_limits}, y={self.y_limits}")

    def data_to_pixel(self, point: QPointF) -> QPointF:
        x_span = self._x_max - self._x_min
        y_span = self._y_max - self._y_min
        px = (point.x() - self._x_min) / x_span * self._width
        py = self._height - (point.y() - self._y_min) / y_span * self._height
        return QPointF(px, py)

    def pixel_to_data(self, point: QPointF) -> QPointF:
        x_span = self._x_max - self._x_min
        y_span = self._y_max - self._y_min
        x = self._x_min + point.x() / self._width * x_span
        y = self._y_min + (self._height - point.y()) / self._height * y_span
        return QPointF(x, y)

    def price_grid_step(self) -> float:
        return nice_step((self._y_max - self._y_min) / self.GRID_TARGET_TICKS)

    def time_grid_step(self) -> float:
        """Spacing of the visible time grid, in data units."""
        return nice_step((self._x_max - self._x_min) / self.GRID_TARGET_TICKS)

    # === Refresh ===

    def add_refresh_listener(self, callback: Callable[[], None]) -> None:
        """Register a callback invoked on every refresh."""
        if callback not in self._refresh_listeners:
            self._refresh_listeners.append(callback)

    def remove_refresh_listener(self, callback: Callable[[], None]) -> None:
        """Unregister a refresh callback."""
        if callback in self._refresh_listeners:
            self._refresh_listeners.remove(callback)

    def refresh(self) -> None:
        for callback in list(self._refresh_listeners):
            callback()
