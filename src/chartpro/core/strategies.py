"""Draw strategies: one constructor pair per shape type."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, List, Optional, Type

from PyQt6.QtCore import QPointF
from PyQt6.QtGui import QColor

from .models import ChartDrawMode
from .plottables import (
    EllipsePlottable, FibonacciLevel, FibonacciPlottable, HorizontalLinePlottable,
    LinePlottable, Plottable, RectanglePlottable, VerticalLinePlottable
)

if TYPE_CHECKING:
    from .surface import ChartSurface

logger = logging.getLogger(__name__)

PREVIEW_COLOR = "#808080"
PREVIEW_WIDTH = 1
FINAL_WIDTH = 2

TREND_LINE_COLOR = "#0000FF"
HORIZONTAL_LINE_COLOR = "#008000"
VERTICAL_LINE_COLOR = "#FFA500"
RECTANGLE_COLOR = "#800080"
RECTANGLE_FILL_ALPHA = 25
CIRCLE_COLOR = "#00FFFF"
FIBONACCI_COLOR = "#FFD700"

FIBONACCI_RATIOS = (0.0, 0.236, 0.382, 0.5, 0.618, 0.786, 1.0)


class DrawModeStrategy(ABC):
    """
    Builds the primitive for one draw mode.

    Strategies are stateless. Both constructors take the drag start and end
    in data coordinates; when a surface is given the new primitive is
    registered on it.
    """

    @property
    @abstractmethod
    def draw_mode(self) -> ChartDrawMode:
        """The draw mode this strategy implements."""
        pass

    def create_preview(
        self,
        start: QPointF,
        end: QPointF,
        surface: Optional[ChartSurface] = None
    ) -> Plottable:
        """Build the thin gray primitive shown while dragging."""
        return self._register(self._build(start, end, preview=True), surface)

    def create_final(
        self,
        start: QPointF,
        end: QPointF,
        surface: Optional[ChartSurface] = None
    ) -> Plottable:
        """Build the styled primitive kept once the drag completes."""
        return self._register(self._build(start, end, preview=False), surface)

    @abstractmethod
    def _build(self, start: QPointF, end: QPointF, preview: bool) -> Plottable:
        pass

    @staticmethod
    def _register(plottable: Plottable, surface: Optional[ChartSurface]) -> Plottable:
        if surface is not None:
            surface.add_plottable(plottable)
        return plottable

    @staticmethod
    def _style(preview: bool, color: str) -> dict:
        if preview:
            return {"line_color": QColor(PREVIEW_COLOR), "line_width": PREVIEW_WIDTH}
        return {"line_color": QColor(color), "line_width": FINAL_WIDTH}


class TrendLineStrategy(DrawModeStrategy):
    """Segment from the drag start to the drag end."""

    @property
    def draw_mode(self) -> ChartDrawMode:
        return ChartDrawMode.TREND_LINE

    def _build(self, start: QPointF, end: QPointF, preview: bool) -> Plottable:
        return LinePlottable(
            QPointF(start), QPointF(end), **self._style(preview, TREND_LINE_COLOR)
        )


class HorizontalLineStrategy(DrawModeStrategy):
    """Horizontal line at the release price."""

    @property
    def draw_mode(self) -> ChartDrawMode:
        return ChartDrawMode.HORIZONTAL_LINE

    def _build(self, start: QPointF, end: QPointF, preview: bool) -> Plottable:
        return HorizontalLinePlottable(
            y=end.y(),
            x1=start.x(),
            x2=end.x(),
            **self._style(preview, HORIZONTAL_LINE_COLOR)
        )


class VerticalLineStrategy(DrawModeStrategy):
    """Vertical line at the release time."""

    @property
    def draw_mode(self) -> ChartDrawMode:
        return ChartDrawMode.VERTICAL_LINE

    def _build(self, start: QPointF, end: QPointF, preview: bool) -> Plottable:
        return VerticalLinePlottable(
            x=end.x(),
            y1=start.y(),
            y2=end.y(),
            **self._style(preview, VERTICAL_LINE_COLOR)
        )


class RectangleStrategy(DrawModeStrategy):
    """Axis-aligned box spanning the drag, whatever its direction."""

    @property
    def draw_mode(self) -> ChartDrawMode:
        return ChartDrawMode.RECTANGLE

    def _build(self, start: QPointF, end: QPointF, preview: bool) -> Plottable:
        rect = RectanglePlottable(
            left=min(start.x(), end.x()),
            right=max(start.x(), end.x()),
            bottom=min(start.y(), end.y()),
            top=max(start.y(), end.y()),
            **self._style(preview, RECTANGLE_COLOR)
        )
        if not preview:
            rect.fill_color = QColor(RECTANGLE_COLOR)
            rect.fill_alpha = RECTANGLE_FILL_ALPHA
        return rect


class CircleStrategy(DrawModeStrategy):
    """Ellipse inscribed in the drag box."""

    @property
    def draw_mode(self) -> ChartDrawMode:
        return ChartDrawMode.CIRCLE

    def _build(self, start: QPointF, end: QPointF, preview: bool) -> Plottable:
        center = QPointF((start.x() + end.x()) / 2, (start.y() + end.y()) / 2)
        return EllipsePlottable(
            center=center,
            radius_x=abs(end.x() - start.x()) / 2,
            radius_y=abs(end.y() - start.y()) / 2,
            **self._style(preview, CIRCLE_COLOR)
        )


class FibonacciRetracementStrategy(DrawModeStrategy):
    """Retracement levels interpolated between the start and end prices."""

    @property
    def draw_mode(self) -> ChartDrawMode:
        return ChartDrawMode.FIBONACCI_RETRACEMENT

    @staticmethod
    def compute_levels(start_price: float, end_price: float) -> List[FibonacciLevel]:
        """Price of each retracement ratio between two prices."""
        diff = end_price - start_price
        return [FibonacciLevel(ratio, start_price + diff * ratio) for ratio in FIBONACCI_RATIOS]

    def _build(self, start: QPointF, end: QPointF, preview: bool) -> Plottable:
        return FibonacciPlottable(
            start=QPointF(start),
            end=QPointF(end),
            levels=self.compute_levels(start.y(), end.y()),
            **self._style(preview, FIBONACCI_COLOR)
        )


class DrawModeStrategyFactory:
    """Maps draw modes to strategies."""

    _strategies: Dict[ChartDrawMode, Type[DrawModeStrategy]] = {
        ChartDrawMode.TREND_LINE: TrendLineStrategy,
        ChartDrawMode.HORIZONTAL_LINE: HorizontalLineStrategy,
        ChartDrawMode.VERTICAL_LINE: VerticalLineStrategy,
        ChartDrawMode.RECTANGLE: RectangleStrategy,
        ChartDrawMode.CIRCLE: CircleStrategy,
        ChartDrawMode.FIBONACCI_RETRACEMENT: FibonacciRetracementStrategy,
    }

    @classmethod
    def create_strategy(cls, mode: ChartDrawMode) -> Optional[DrawModeStrategy]:
        """
        Get the strategy for a draw mode.

        Args:
            mode: The draw mode

        Returns:
            A strategy instance, or None for ``NONE`` and unimplemented modes
        """
        strategy_class = cls._strategies.get(mode)
        if strategy_class is None:
            return None
        return strategy_class()

    @classmethod
    def supported_modes(cls) -> List[ChartDrawMode]:
        """Draw modes that have a strategy."""
        return list(cls._strategies.keys())
