"""Tests for draw strategies and the strategy factory."""

import pytest
from PyQt6.QtCore import QPointF
from PyQt6.QtGui import QColor

from chartpro.core.models import ChartDrawMode
from chartpro.core.plottables import (
    EllipsePlottable, FibonacciPlottable, HorizontalLinePlottable, LinePlottable,
    RectanglePlottable, VerticalLinePlottable
)
from chartpro.core.strategies import (
    CircleStrategy, DrawModeStrategyFactory, FibonacciRetracementStrategy,
    HorizontalLineStrategy, RectangleStrategy, TrendLineStrategy, VerticalLineStrategy
)

START = QPointF(10, 100)
END = QPointF(50, 110)


class TestTrendLineStrategy:
    """Tests for trend lines."""

    def test_draw_mode(self):
        assert TrendLineStrategy().draw_mode == ChartDrawMode.TREND_LINE

    def test_preview_style(self):
        """Test that previews are thin and gray."""
        line = TrendLineStrategy().create_preview(START, END)

        assert isinstance(line, LinePlottable)
        assert line.line_color == QColor("#808080")
        assert line.line_width == 1

    def test_final(self):
        line = TrendLineStrategy().create_final(START, END)

        assert line.defining_coordinates() == (10.0, 100.0, 50.0, 110.0)
        assert line.line_color == QColor("#0000FF")
        assert line.line_width == 2

    def test_registers_on_surface(self, plot):
        """Test that a given surface receives the primitive."""
        line = TrendLineStrategy().create_preview(START, END, plot)

        assert plot.contains(line)

    def test_without_surface_nothing_registered(self, plot):
        TrendLineStrategy().create_final(START, END)

        assert plot.plottables == ()

    def test_points_are_copied(self):
        """Test that later changes to the input points do not leak in."""
        start = QPointF(1, 1)
        line = TrendLineStrategy().create_final(start, END)
        start.setX(99)

        assert line.start.x() == 1


class TestHorizontalLineStrategy:
    """Tests for horizontal lines."""

    def test_final_at_release_price(self):
        line = HorizontalLineStrategy().create_final(START, END)

        assert isinstance(line, HorizontalLinePlottable)
        assert line.y == 110
        assert line.line_color == QColor("#008000")
        assert line.defining_coordinates() == (10, 110, 50, 110)


class TestVerticalLineStrategy:
    """Tests for vertical lines."""

    def test_final_at_release_time(self):
        line = VerticalLineStrategy().create_final(START, END)

        assert isinstance(line, VerticalLinePlottable)
        assert line.x == 50
        assert line.line_color == QColor("#FFA500")
        assert line.defining_coordinates() == (50, 100, 50, 110)


class TestRectangleStrategy:
    """Tests for rectangles."""

    def test_normalized_whatever_the_drag_direction(self):
        """Test that dragging up-left gives the same box as down-right."""
        a = RectangleStrategy().create_final(START, END)
        b = RectangleStrategy().create_final(END, START)

        assert a.defining_coordinates() == b.defining_coordinates() == (10, 100, 50, 110)

    def test_final_is_filled(self):
        rect = RectangleStrategy().create_final(START, END)

        assert isinstance(rect, RectanglePlottable)
        assert rect.line_color == QColor("#800080")
        assert rect.fill_color == QColor("#800080")
        assert rect.fill_alpha == 25

    def test_preview_is_not_filled(self):
        rect = RectangleStrategy().create_preview(START, END)

        assert rect.is_filled is False


class TestCircleStrategy:
    """Tests for circles."""

    def test_inscribed_in_drag_box(self):
        circle = CircleStrategy().create_final(START, END)

        assert isinstance(circle, EllipsePlottable)
        assert circle.center == QPointF(30, 105)
        assert circle.radius_x == 20
        assert circle.radius_y == 5
        assert circle.line_color == QColor("#00FFFF")

    def test_zero_size(self):
        """Test a click without drag gives a degenerate circle."""
        circle = CircleStrategy().create_final(START, START)

        assert circle.radius_x == 0
        assert circle.radius_y == 0


class TestFibonacciRetracementStrategy:
    """Tests for Fibonacci retracements."""

    def test_levels(self):
        """Test level prices between start and end."""
        levels = FibonacciRetracementStrategy.compute_levels(100.0, 200.0)

        assert [level.ratio for level in levels] == [0.0, 0.236, 0.382, 0.5, 0.618, 0.786, 1.0]
        assert levels[0].price == pytest.approx(100.0)
        assert levels[3].price == pytest.approx(150.0)
        assert levels[-1].price == pytest.approx(200.0)

    def test_final(self):
        fib = FibonacciRetracementStrategy().create_final(START, END)

        assert isinstance(fib, FibonacciPlottable)
        assert fib.line_color == QColor("#FFD700")
        assert fib.defining_coordinates() == (10, 100, 50, 110)
        assert len(fib.levels) == 7


class TestDrawModeStrategyFactory:
    """Tests for strategy lookup."""

    @pytest.mark.parametrize("mode, strategy_class", [
        (ChartDrawMode.TREND_LINE, TrendLineStrategy),
        (ChartDrawMode.HORIZONTAL_LINE, HorizontalLineStrategy),
        (ChartDrawMode.VERTICAL_LINE, VerticalLineStrategy),
        (ChartDrawMode.RECTANGLE, RectangleStrategy),
        (ChartDrawMode.CIRCLE, CircleStrategy),
        (ChartDrawMode.FIBONACCI_RETRACEMENT, FibonacciRetracementStrategy),
    ])
    def test_create_strategy(self, mode, strategy_class):
        strategy = DrawModeStrategyFactory.create_strategy(mode)

        assert isinstance(strategy, strategy_class)
        assert strategy.draw_mode == mode

    def test_none_has_no_strategy(self):
        assert DrawModeStrategyFactory.create_strategy(ChartDrawMode.NONE) is None

    def test_fibonacci_extension_not_drawable(self):
        assert DrawModeStrategyFactory.create_strategy(ChartDrawMode.FIBONACCI_EXTENSION) is None

    def test_supported_modes(self):
        modes = DrawModeStrategyFactory.supported_modes()

        assert len(modes) == 6
        assert ChartDrawMode.NONE not in modes
