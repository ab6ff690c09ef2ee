"""Core business logic modules for ChartPro."""

from .models import Candle, ChartDrawMode, DrawnShape, SnapMode
from .config import ChartConfig, ConfigManager
from .errors import (
    AnnotationFormatError, AnnotationNotFoundError, AttachmentError,
    ChartProError, UnmanagedShapeError
)
from .surface import ChartSurface, PlotModel
from .shape_manager import ShapeManager
from .interactions import ChartInteractions, InteractionEvent, InteractionState

__all__ = [
    "Candle",
    "ChartDrawMode",
    "DrawnShape",
    "SnapMode",
    "ChartConfig",
    "ConfigManager",
    "AnnotationFormatError",
    "AnnotationNotFoundError",
    "AttachmentError",
    "ChartProError",
    "UnmanagedShapeError",
    "ChartSurface",
    "PlotModel",
    "ShapeManager",
    "ChartInteractions",
    "InteractionEvent",
    "InteractionState",
]
