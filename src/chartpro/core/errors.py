"""Exception types raised by the ChartPro core."""

from __future__ import annotations


class ChartProError(Exception):
    """Base class for all ChartPro errors."""


class AttachmentError(ChartProError, RuntimeError):
    """Raised when a component is used before attach or attached twice."""


class AnnotationNotFoundError(ChartProError, FileNotFoundError):
    """Raised when an annotations file does not exist."""


class AnnotationFormatError(ChartProError, ValueError):
    """Raised when an annotations document is malformed."""


class UnmanagedShapeError(ChartProError, KeyError):
    """Raised when deleting a shape the manager does not track."""

    def __str__(self) -> str:
        # KeyError quotes its message; keep it readable
        return str(self.args[0]) if self.args else ""
