"""Pytest configuration and fixtures."""

import os
import sys
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Widgets are created without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(scope="session")
def qapp():
    """Create a QApplication for tests that need it."""
    from PyQt6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is None:
        app = QApplication([])

    yield app


@pytest.fixture
def temp_dir(tmp_path):
    """Provide a temporary directory for tests."""
    return tmp_path


@pytest.fixture
def plot():
    """
    An 800x600 plot over x 0..100 and y 0..200.

    One x unit is 8 px and one y unit is 3 px, with pixel y pointing down:
    pixel (80, 300) is data (10, 100) and pixel (400, 270) is data (50, 110).
    """
    from chartpro.core.surface import PlotModel

    return PlotModel(width=800, height=600, x_limits=(0.0, 100.0), y_limits=(0.0, 200.0))


@pytest.fixture
def shape_manager(qapp, plot):
    """A shape manager attached to the test plot."""
    from chartpro.core.shape_manager import ShapeManager

    manager = ShapeManager()
    manager.attach(plot)
    return manager


@pytest.fixture
def interactions(qapp, plot):
    """An attached interaction controller."""
    from chartpro.core.interactions import ChartInteractions

    controller = ChartInteractions()
    controller.attach(plot)
    return controller


@pytest.fixture
def sample_candles():
    """Five hand-made candles at timestamps 10, 20, 30, 40, 50."""
    from chartpro.core.models import Candle

    return [
        Candle(open=100.0, high=110.0, low=95.0, close=105.0, timestamp=10.0),
        Candle(open=105.0, high=112.0, low=101.0, close=108.0, timestamp=20.0),
        Candle(open=108.0, high=109.0, low=98.0, close=99.0, timestamp=30.0),
        Candle(open=99.0, high=104.0, low=96.0, close=103.0, timestamp=40.0),
        Candle(open=103.0, high=120.0, low=102.0, close=118.0, timestamp=50.0),
    ]


@pytest.fixture
def make_trend_line():
    """Factory for final trend line shapes from data coordinates."""
    from PyQt6.QtCore import QPointF

    from chartpro.core.models import ChartDrawMode, DrawnShape
    from chartpro.core.strategies import TrendLineStrategy

    def _make(x1, y1, x2, y2):
        plottable = TrendLineStrategy().create_final(QPointF(x1, y1), QPointF(x2, y2))
        return DrawnShape(plottable, ChartDrawMode.TREND_LINE)

    return _make
