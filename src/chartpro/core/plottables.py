"""Geometric primitives drawn on top of the price chart."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from PyQt6.QtCore import QPointF, QRectF
from PyQt6.QtGui import QColor

# Maps a data-space point to a pixel-space point
ToPixel = Callable[[QPointF], QPointF]

DEFAULT_LINE_COLOR = "#808080"


def _gray() -> QColor:
    return QColor(DEFAULT_LINE_COLOR)


def point_distance(a: QPointF, b: QPointF) -> float:
    """Euclidean distance between two points."""
    return math.hypot(a.x() - b.x(), a.y() - b.y())


def closest_point_on_segment(p: QPointF, a: QPointF, b: QPointF) -> QPointF:
    """Find the closest point on line segment a-b to point p."""
    if a == b:
        return QPointF(a)

    ab = b - a
    ap = p - a

    # Project ap onto ab and clamp to stay on the segment
    ab_squared = ab.x() ** 2 + ab.y() ** 2
    t = (ap.x() * ab.x() + ap.y() * ab.y()) / ab_squared
    t = max(0.0, min(1.0, t))

    return QPointF(a.x() + t * ab.x(), a.y() + t * ab.y())


def segment_distance(p: QPointF, a: QPointF, b: QPointF) -> float:
    """Distance from point p to line segment a-b."""
    return point_distance(p, closest_point_on_segment(p, a, b))


class Plottable(ABC):
    """
    Base class for chart primitives.

    Subclasses are dataclasses declared with ``eq=False`` so that two
    primitives with identical geometry stay distinct objects everywhere
    they are stored.
    """

    line_color: QColor
    line_width: int
    visible: bool

    @abstractmethod
    def defining_coordinates(self) -> Tuple[float, float, float, float]:
        """Return the (x1, y1, x2, y2) data coordinates that define the geometry."""

    @abstractmethod
    def pixel_distance(self, point: QPointF, to_pixel: ToPixel) -> float:
        """
        Distance in pixels from a pixel position to the rendered geometry.

        Args:
            point: Position in pixel coordinates
            to_pixel: Transform from data to pixel coordinates

        Returns:
            Distance in pixels (0 when the point lies on or inside a filled shape)
        """


@dataclass(eq=False)
class LinePlottable(Plottable):
    """Straight segment between two data points."""

    start: QPointF
    end: QPointF
    line_color: QColor = field(default_factory=_gray)
    line_width: int = 1
    visible: bool = True

    def defining_coordinates(self) -> Tuple[float, float, float, float]:
        return (self.start.x(), self.start.y(), self.end.x(), self.end.y())

    def pixel_distance(self, point: QPointF, to_pixel: ToPixel) -> float:
        return segment_distance(point, to_pixel(self.start), to_pixel(self.end))


@dataclass(eq=False)
class HorizontalLinePlottable(Plottable):
    """
    Horizontal line spanning the whole chart at price ``y``.

    ``x1`` and ``x2`` only remember where the drag happened.
    """

    y: float
    x1: float = 0.0
    x2: float = 0.0
    line_color: QColor = field(default_factory=_gray)
    line_width: int = 1
    visible: bool = True

    def defining_coordinates(self) -> Tuple[float, float, float, float]:
        return (self.x1, self.y, self.x2, self.y)

    def pixel_distance(self, point: QPointF, to_pixel: ToPixel) -> float:
        return abs(point.y() - to_pixel(QPointF(self.x1, self.y)).y())


@dataclass(eq=False)
class VerticalLinePlottable(Plottable):
    """
    Vertical line spanning the whole chart at time ``x``.

    ``y1`` and ``y2`` only remember where the drag happened.
    """

    x: float
    y1: float = 0.0
    y2: float = 0.0
    line_color: QColor = field(default_factory=_gray)
    line_width: int = 1
    visible: bool = True

    def defining_coordinates(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y1, self.x, self.y2)

    def pixel_distance(self, point: QPointF, to_pixel: ToPixel) -> float:
        return abs(point.x() - to_pixel(QPointF(self.x, self.y1)).x())


@dataclass(eq=False)
class RectanglePlottable(Plottable):
    """Axis-aligned box in data coordinates, optionally filled."""

    left: float
    right: float
    bottom: float
    top: float
    line_color: QColor = field(default_factory=_gray)
    line_width: int = 1
    fill_color: Optional[QColor] = None
    fill_alpha: Optional[int] = None
    visible: bool = True

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.top - self.bottom

    @property
    def is_filled(self) -> bool:
        return self.fill_color is not None and bool(self.fill_alpha)

    def defining_coordinates(self) -> Tuple[float, float, float, float]:
        return (self.left, self.bottom, self.right, self.top)

    def pixel_rect(self, to_pixel: ToPixel) -> QRectF:
        """The box in pixel coordinates."""
        return QRectF(
            to_pixel(QPointF(self.left, self.top)),
            to_pixel(QPointF(self.right, self.bottom))
        ).normalized()

    def pixel_distance(self, point: QPointF, to_pixel: ToPixel) -> float:
        rect = self.pixel_rect(to_pixel)
        if self.is_filled and rect.contains(point):
            return 0.0

        corners = [rect.topLeft(), rect.topRight(), rect.bottomRight(), rect.bottomLeft()]
        return min(
            segment_distance(point, corners[i], corners[(i + 1) % 4])
            for i in range(4)
        )


@dataclass(eq=False)
class EllipsePlottable(Plottable):
    """Axis-aligned ellipse outline."""

    center: QPointF
    radius_x: float
    radius_y: float
    line_color: QColor = field(default_factory=_gray)
    line_width: int = 1
    visible: bool = True

    def defining_coordinates(self) -> Tuple[float, float, float, float]:
        return (
            self.center.x() - self.radius_x,
            self.center.y() - self.radius_y,
            self.center.x() + self.radius_x,
            self.center.y() + self.radius_y,
        )

    def pixel_distance(self, point: QPointF, to_pixel: ToPixel) -> float:
        center = to_pixel(self.center)
        corner = to_pixel(QPointF(self.center.x() + self.radius_x, self.center.y() + self.radius_y))
        rx = abs(corner.x() - center.x())
        ry = abs(corner.y() - center.y())

        # Degenerate ellipses collapse to a segment
        if rx == 0 or ry == 0:
            return segment_distance(
                point,
                QPointF(center.x() - rx, center.y() - ry),
                QPointF(center.x() + rx, center.y() + ry)
            )

        dx = point.x() - center.x()
        dy = point.y() - center.y()
        d = math.hypot(dx, dy)
        if d == 0:
            return min(rx, ry)

        cos_t = dx / d
        sin_t = dy / d
        radius_along = (rx * ry) / math.hypot(ry * cos_t, rx * sin_t)
        return abs(d - radius_along)


@dataclass(frozen=True)
class FibonacciLevel:
    """One retracement level."""

    ratio: float
    price: float

    @property
    def label(self) -> str:
        return f"{self.ratio * 100:.1f}% ({self.price:.2f})"


@dataclass(eq=False)
class FibonacciPlottable(Plottable):
    """Set of labeled horizontal levels between two anchor points."""

    start: QPointF
    end: QPointF
    levels: List[FibonacciLevel] = field(default_factory=list)
    line_color: QColor = field(default_factory=_gray)
    line_width: int = 1
    show_labels: bool = True
    visible: bool = True

    @property
    def x_range(self) -> Tuple[float, float]:
        return (min(self.start.x(), self.end.x()), max(self.start.x(), self.end.x()))

    def defining_coordinates(self) -> Tuple[float, float, float, float]:
        return (self.start.x(), self.start.y(), self.end.x(), self.end.y())

    def level_segments(self) -> List[Tuple[QPointF, QPointF]]:
        """Each level as a data-space segment."""
        x_min, x_max = self.x_range
        return [
            (QPointF(x_min, level.price), QPointF(x_max, level.price))
            for level in self.levels
        ]

    def pixel_distance(self, point: QPointF, to_pixel: ToPixel) -> float:
        segments = self.level_segments()
        if not segments:
            return math.inf
        return min(
            segment_distance(point, to_pixel(a), to_pixel(b))
            for a, b in segments
        )
