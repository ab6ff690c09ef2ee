"""Saving and loading chart annotations as versioned JSON."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from PyQt6.QtCore import QPointF
from PyQt6.QtGui import QColor

from .errors import AnnotationFormatError, AnnotationNotFoundError
from .models import ChartDrawMode, DrawnShape
from .plottables import RectanglePlottable
from .strategies import DrawModeStrategyFactory

logger = logging.getLogger(__name__)

ANNOTATIONS_VERSION = 1
DEFAULT_LINE_COLOR = "#0000FF"
DEFAULT_LINE_WIDTH = 2


def color_to_hex(color: QColor) -> str:
    """Format a colour as ``#RRGGBB``."""
    return color.name(QColor.NameFormat.HexRgb).upper()


@dataclass
class ShapeAnnotation:
    """
    Persisted form of one drawn shape.

    JSON keys are PascalCase: ShapeType, X1, Y1, X2, Y2, LineColor,
    LineWidth, FillColor, FillAlpha.
    """

    shape_type: str
    x1: float = 0.0
    y1: float = 0.0
    x2: float = 0.0
    y2: float = 0.0
    line_color: str = DEFAULT_LINE_COLOR
    line_width: int = DEFAULT_LINE_WIDTH
    fill_color: Optional[str] = None
    fill_alpha: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-ready dictionary."""
        return {
            "ShapeType": self.shape_type,
            "X1": self.x1,
            "Y1": self.y1,
            "X2": self.x2,
            "Y2": self.y2,
            "LineColor": self.line_color,
            "LineWidth": self.line_width,
            "FillColor": self.fill_color,
            "FillAlpha": self.fill_alpha,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ShapeAnnotation:
        """
        Create a record from a decoded JSON object.

        Raises:
            AnnotationFormatError: If a field has the wrong type
        """
        if not isinstance(data, dict):
            raise AnnotationFormatError(f"Shape record must be an object, got {type(data).__name__}")

        shape_type = data.get("ShapeType")
        if not isinstance(shape_type, str):
            raise AnnotationFormatError("Shape record is missing a string 'ShapeType'")

        line_color = data.get("LineColor") or DEFAULT_LINE_COLOR
        fill_color = data.get("FillColor")
        if not isinstance(line_color, str) or (fill_color is not None and not isinstance(fill_color, str)):
            raise AnnotationFormatError(f"Invalid colour in '{shape_type}' record")

        line_width = data.get("LineWidth")
        fill_alpha = data.get("FillAlpha")
        return cls(
            shape_type=shape_type,
            x1=_coordinate(data, "X1"),
            y1=_coordinate(data, "Y1"),
            x2=_coordinate(data, "X2"),
            y2=_coordinate(data, "Y2"),
            line_color=line_color,
            line_width=DEFAULT_LINE_WIDTH if line_width is None else _integer(line_width, "LineWidth"),
            fill_color=fill_color,
            fill_alpha=None if fill_alpha is None else _integer(fill_alpha, "FillAlpha"),
        )


@dataclass
class ChartAnnotations:
    """A saved annotations document."""

    version: int = ANNOTATIONS_VERSION
    shapes: List[ShapeAnnotation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Version": self.version,
            "Shapes": [s.to_dict() for s in self.shapes],
        }


def _coordinate(data: Dict[str, Any], key: str) -> float:
    value = data.get(key, 0.0)
    if value is None:
        return 0.0
    return _finite(value, key)


def _integer(value: Any, key: str) -> int:
    return int(_finite(value, key))


def _finite(value: Any, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise AnnotationFormatError(f"'{key}' must be a number, got {value!r}")
    try:
        result = float(value)
    except OverflowError:
        raise AnnotationFormatError(f"'{key}' is out of range") from None
    if not math.isfinite(result):
        raise AnnotationFormatError(f"'{key}' must be a finite number, got {value!r}")
    return result


def parse_annotations(data: Any) -> Optional[ChartAnnotations]:
    """
    Validate a decoded JSON value as an annotations document.

    Args:
        data: Result of ``json.loads``

    Returns:
        The document, or None when the JSON value is ``null``

    Raises:
        AnnotationFormatError: If the structure or version is invalid
    """
    if data is None:
        return None
    if not isinstance(data, dict):
        raise AnnotationFormatError(f"Annotations document must be an object, got {type(data).__name__}")

    version = data.get("Version")
    if version != ANNOTATIONS_VERSION or isinstance(version, bool):
        raise AnnotationFormatError(
            f"Unsupported annotations version {version!r} (expected {ANNOTATIONS_VERSION})"
        )

    shapes = data.get("Shapes")
    if not isinstance(shapes, list):
        raise AnnotationFormatError("Annotations document must contain a 'Shapes' list")

    return ChartAnnotations(
        version=ANNOTATIONS_VERSION,
        shapes=[ShapeAnnotation.from_dict(record) for record in shapes],
    )


def serialize_shapes(shapes: Iterable[DrawnShape]) -> ChartAnnotations:
    """
    Map shapes to an annotations document, preserving order.

    Args:
        shapes: Shapes to save

    Returns:
        A version 1 document
    """
    records = []
    for shape in shapes:
        plottable = shape.plottable
        x1, y1, x2, y2 = plottable.defining_coordinates()
        record = ShapeAnnotation(
            shape_type=shape.draw_mode.value,
            x1=x1, y1=y1, x2=x2, y2=y2,
            line_color=color_to_hex(plottable.line_color),
            line_width=int(plottable.line_width),
        )
        if isinstance(plottable, RectanglePlottable) and plottable.fill_color is not None:
            record.fill_color = color_to_hex(plottable.fill_color)
            record.fill_alpha = plottable.fill_alpha
        records.append(record)

    return ChartAnnotations(version=ANNOTATIONS_VERSION, shapes=records)


def deserialize_annotations(document: Optional[ChartAnnotations]) -> List[DrawnShape]:
    """
    Rebuild shapes from an annotations document.

    Records with an unknown or undrawable shape type are skipped. The
    returned shapes are not registered on any surface.

    Args:
        document: The document, or None

    Returns:
        Shapes in document order
    """
    if document is None:
        return []

    shapes: List[DrawnShape] = []
    for record in document.shapes:
        try:
            mode = ChartDrawMode(record.shape_type)
        except ValueError:
            logger.warning(f"Skipping annotation with unknown shape type '{record.shape_type}'")
            continue

        strategy = DrawModeStrategyFactory.create_strategy(mode)
        if strategy is None:
            logger.warning(f"Skipping annotation with undrawable shape type '{record.shape_type}'")
            continue

        plottable = strategy.create_final(
            QPointF(record.x1, record.y1), QPointF(record.x2, record.y2)
        )
        _apply_style(plottable, record)
        shapes.append(DrawnShape(plottable, mode))

    return shapes


def _apply_style(plottable, record: ShapeAnnotation) -> None:
    color = QColor(record.line_color)
    if color.isValid():
        plottable.line_color = color
    else:
        logger.warning(f"Ignoring invalid line colour '{record.line_color}'")
    if record.line_width > 0:
        plottable.line_width = record.line_width

    if isinstance(plottable, RectanglePlottable) and record.fill_color is not None:
        fill = QColor(record.fill_color)
        if fill.isValid():
            plottable.fill_color = fill
            if record.fill_alpha is not None:
                plottable.fill_alpha = max(0, min(255, record.fill_alpha))


def write_annotations_file(path: Union[str, Path], document: ChartAnnotations) -> None:
    """
    Write an annotations document as indented JSON.

    Args:
        path: Destination file
        document: The document to write
    """
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(document.to_dict(), f, indent=2)
    logger.info(f"Saved {len(document.shapes)} annotation(s) to {path}")


def read_annotations_file(path: Union[str, Path]) -> Optional[ChartAnnotations]:
    """
    Read and validate an annotations file.

    Args:
        path: Source file

    Returns:
        The document, or None if the file holds JSON ``null``

    Raises:
        AnnotationNotFoundError: If the file does not exist
        AnnotationFormatError: If the file is not a valid annotations document
    """
    path = Path(path)
    if not path.is_file():
        raise AnnotationNotFoundError(f"Annotations file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise AnnotationFormatError(f"Invalid JSON in {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise AnnotationFormatError(f"Annotations file {path} is not UTF-8 text") from e

    document = parse_annotations(data)
    logger.info(
        f"Read {0 if document is None else len(document.shapes)} annotation record(s) from {path}"
    )
    return document
