"""Chart canvas widget: paints candles and annotations, forwards input."""

from __future__ import annotations

import logging
from typing import Optional, Set

from PyQt6.QtCore import QPointF, QRectF, Qt
from PyQt6.QtGui import QColor, QKeyEvent, QMouseEvent, QPainter, QPen, QResizeEvent
from PyQt6.QtWidgets import QWidget

from ..core.interactions import ChartInteractions
from ..core.models import Candle
from ..core.plottables import (
    EllipsePlottable, FibonacciPlottable, HorizontalLinePlottable, LinePlottable,
    Plottable, RectanglePlottable, VerticalLinePlottable
)
from ..core.surface import PlotModel

logger = logging.getLogger(__name__)


class ChartCanvas(QWidget):
    """
    On-screen chart surface.

    The canvas owns a :class:`PlotModel`, repaints whenever the model is
    refreshed and hands mouse and keyboard input to a
    :class:`ChartInteractions` controller.
    """

    BACKGROUND_COLOR = QColor("#FFFFFF")
    GRID_COLOR = QColor("#E6E6E6")
    BULL_COLOR = QColor("#26A69A")
    BEAR_COLOR = QColor("#EF5350")
    SELECTION_COLOR = QColor(255, 200, 0, 160)
    CANDLE_BODY_RATIO = 0.6
    SELECTION_EXTRA_WIDTH = 4

    def __init__(
        self,
        interactions: Optional[ChartInteractions] = None,
        parent: Optional[QWidget] = None
    ) -> None:
        """
        Initialize the canvas.

        Args:
            interactions: Controller to attach to this canvas's plot model
            parent: Parent widget
        """
        super().__init__(parent)
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setMinimumSize(320, 240)

        self.plot = PlotModel(self.width(), self.height())
        self.plot.add_refresh_listener(self.update)

        self.interactions: Optional[ChartInteractions] = None
        if interactions is not None:
            self.set_interactions(interactions)

    def set_interactions(self, interactions: ChartInteractions) -> None:
        """Attach a controller to this canvas."""
        interactions.attach(self.plot)
        self.interactions = interactions

    # === Events ===

    def resizeEvent(self, event: QResizeEvent) -> None:
        """Keep the plot model's pixel size in step with the widget."""
        self.plot.set_pixel_size(event.size().width(), event.size().height())
        super().resizeEvent(event)

    def mousePressEvent(self, event: QMouseEvent) -> None:
        self.setFocus()
        if self.interactions is None or event.button() != Qt.MouseButton.LeftButton:
            return
        pos = event.position()
        self.interactions.handle_pointer_down(pos.x(), pos.y(), event.modifiers())

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        if self.interactions is None:
            return
        pos = event.position()
        self.interactions.handle_pointer_move(pos.x(), pos.y(), event.modifiers())

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        if self.interactions is None or event.button() != Qt.MouseButton.LeftButton:
            return
        pos = event.position()
        self.interactions.handle_pointer_up(pos.x(), pos.y(), event.modifiers())

    def keyPressEvent(self, event: QKeyEvent) -> None:
        if self.interactions is not None and self.interactions.handle_key_press(
            event.key(), event.modifiers()
        ):
            event.accept()
            return
        super().keyPressEvent(event)

    # === Painting ===

    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.fillRect(self.rect(), self.BACKGROUND_COLOR)

        self._draw_grid(painter)
        for candle in self.plot.candles:
            self._draw_candle(painter, candle)

        selected = self._selected_plottables()
        for plottable in self.plot.plottables:
            if plottable.visible:
                self._draw_plottable(painter, plottable, id(plottable) in selected)

        painter.end()

    def _selected_plottables(self) -> Set[int]:
        if self.interactions is None:
            return set()
        return {id(s.plottable) for s in self.interactions.shape_manager.selected_shapes}

    def _draw_grid(self, painter: QPainter) -> None:
        painter.setPen(QPen(self.GRID_COLOR, 1))
        width, height = self.plot.pixel_size

        step = self.plot.price_grid_step()
        if step > 0:
            y_min, y_max = self.plot.y_limits
            price = (y_min // step) * step
            while price <= y_max:
                py = self.plot.data_to_pixel(QPointF(0.0, price)).y()
                painter.drawLine(QPointF(0.0, py), QPointF(width, py))
                price += step

        step = self.plot.time_grid_step()
        if step > 0:
            x_min, x_max = self.plot.x_limits
            t = (x_min // step) * step
            while t <= x_max:
                px = self.plot.data_to_pixel(QPointF(t, 0.0)).x()
                painter.drawLine(QPointF(px, 0.0), QPointF(px, height))
                t += step

    def _draw_candle(self, painter: QPainter, candle: Candle) -> None:
        color = self.BULL_COLOR if candle.is_bullish else self.BEAR_COLOR
        to_pixel = self.plot.data_to_pixel

        high = to_pixel(QPointF(candle.timestamp, candle.high))
        low = to_pixel(QPointF(candle.timestamp, candle.low))
        painter.setPen(QPen(color, 1))
        painter.drawLine(high, low)

        half_width = candle.duration * self.CANDLE_BODY_RATIO / 2
        top_left = to_pixel(QPointF(candle.timestamp - half_width, max(candle.open, candle.close)))
        bottom_right = to_pixel(QPointF(candle.timestamp + half_width, min(candle.open, candle.close)))
        painter.fillRect(QRectF(top_left, bottom_right).normalized(), color)

    def _draw_plottable(self, painter: QPainter, plottable: Plottable, selected: bool) -> None:
        if selected:
            painter.setPen(QPen(
                self.SELECTION_COLOR, plottable.line_width + self.SELECTION_EXTRA_WIDTH
            ))
            painter.setBrush(Qt.BrushStyle.NoBrush)
            self._draw_geometry(painter, plottable)

        painter.setPen(QPen(plottable.line_color, plottable.line_width))
        if isinstance(plottable, RectanglePlottable) and plottable.is_filled:
            fill = QColor(plottable.fill_color)
            fill.setAlpha(plottable.fill_alpha if plottable.fill_alpha is not None else 255)
            painter.setBrush(fill)
        else:
            painter.setBrush(Qt.BrushStyle.NoBrush)
        self._draw_geometry(painter, plottable)

        if isinstance(plottable, FibonacciPlottable) and plottable.show_labels:
            self._draw_fibonacci_labels(painter, plottable)

    def _draw_geometry(self, painter: QPainter, plottable: Plottable) -> None:
        to_pixel = self.plot.data_to_pixel
        width, height = self.plot.pixel_size

        if isinstance(plottable, LinePlottable):
            painter.drawLine(to_pixel(plottable.start), to_pixel(plottable.end))
        elif isinstance(plottable, HorizontalLinePlottable):
            py = to_pixel(QPointF(0.0, plottable.y)).y()
            painter.drawLine(QPointF(0.0, py), QPointF(width, py))
        elif isinstance(plottable, VerticalLinePlottable):
            px = to_pixel(QPointF(plottable.x, 0.0)).x()
            painter.drawLine(QPointF(px, 0.0), QPointF(px, height))
        elif isinstance(plottable, RectanglePlottable):
            painter.drawRect(plottable.pixel_rect(to_pixel))
        elif isinstance(plottable, EllipsePlottable):
            center = to_pixel(plottable.center)
            edge = to_pixel(QPointF(
                plottable.center.x() + plottable.radius_x,
                plottable.center.y() + plottable.radius_y
            ))
            painter.drawEllipse(center, abs(edge.x() - center.x()), abs(edge.y() - center.y()))
        elif isinstance(plottable, FibonacciPlottable):
            for a, b in plottable.level_segments():
                painter.drawLine(to_pixel(a), to_pixel(b))
        else:
            logger.warning(f"Don't know how to paint {type(plottable).__name__}")

    def _draw_fibonacci_labels(self, painter: QPainter, plottable: FibonacciPlottable) -> None:
        x_max = plottable.x_range[1]
        for level in plottable.levels:
            anchor = self.plot.data_to_pixel(QPointF(x_max, level.price))
            painter.drawText(anchor + QPointF(4.0, -2.0), level.label)
