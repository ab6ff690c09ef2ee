"""Cursor snapping to the price grid or to candle OHLC values."""

from __future__ import annotations

import bisect
import logging
from typing import Optional, Sequence

from PyQt6.QtCore import QPointF

from .models import Candle, SnapMode
from .surface import ChartSurface

logger = logging.getLogger(__name__)


def snap_to_price_grid(point: QPointF, step: float) -> QPointF:
    """
    Round the price of a point to the nearest grid line.

    Args:
        point: Point in data coordinates
        step: Grid spacing in price units; non-positive means no grid

    Returns:
        The snapped point
    """
    if step <= 0:
        return QPointF(point)
    return QPointF(point.x(), round(point.y() / step) * step)


def _timestamp(candle: Candle) -> float:
    return candle.timestamp


def find_nearest_candle(candles: Sequence[Candle], x: float) -> Optional[Candle]:
    """
    Find the candle whose timestamp is closest to ``x``.

    Args:
        candles: Candles sorted by timestamp
        x: Time in data coordinates

    Returns:
        The nearest candle, or None for an empty series
    """
    if not candles:
        return None

    index = bisect.bisect_left(candles, x, key=_timestamp)
    if index == 0:
        return candles[0]
    if index == len(candles):
        return candles[-1]

    before = candles[index - 1]
    after = candles[index]
    return before if x - before.timestamp <= after.timestamp - x else after


def snap_to_candle(point: QPointF, candles: Sequence[Candle]) -> QPointF:
    """
    Snap to the nearest candle's timestamp and closest OHLC price.

    Args:
        point: Point in data coordinates
        candles: Candles sorted by timestamp

    Returns:
        The snapped point, or the point unchanged if there are no candles
    """
    candle = find_nearest_candle(candles, point.x())
    if candle is None:
        return QPointF(point)

    price = min(candle.prices, key=lambda p: abs(p - point.y()))
    return QPointF(candle.timestamp, price)


class SnapResolver:
    """Applies the configured snap mode to cursor positions."""

    def __init__(self, surface: Optional[ChartSurface] = None) -> None:
        self.surface = surface
        self._candles: list[Candle] = []

    @property
    def candles(self) -> tuple[Candle, ...]:
        return tuple(self._candles)

    def bind_candles(self, candles: Sequence[Candle]) -> None:
        """Bind a candle series; it is kept sorted by timestamp."""
        self._candles = sorted(candles, key=_timestamp)
        logger.debug(f"Bound {len(self._candles)} candles for snapping")

    def add_candle(self, candle: Candle) -> None:
        """Append a new candle to the bound series."""
        bisect.insort(self._candles, candle, key=_timestamp)

    def update_last_candle(self, candle: Candle) -> None:
        """Replace the most recent candle, or add it if the series is empty."""
        if self._candles:
            self._candles[-1] = candle
            self._candles.sort(key=lambda c: c.timestamp)
        else:
            self._candles.append(candle)

    def resolve(self, point: QPointF, mode: SnapMode) -> QPointF:
        """
        Snap a data-space point.

        ``CandleOHLC`` without bound candles and ``Price`` without a surface
        both leave the point unchanged.
        """
        if mode == SnapMode.PRICE and self.surface is not None:
            return snap_to_price_grid(point, self.surface.price_grid_step())
        if mode == SnapMode.CANDLE_OHLC:
            return snap_to_candle(point, self._candles)
        return QPointF(point)
