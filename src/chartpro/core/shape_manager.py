"""Ownership of drawn shapes, their history, and selection."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from PyQt6.QtCore import QObject, QPointF, pyqtSignal

from .errors import AttachmentError, UnmanagedShapeError
from .models import DrawnShape
from .surface import ChartSurface
from .undo_redo import AddShapeCommand, CompositeCommand, DeleteShapeCommand, UndoRedoManager

logger = logging.getLogger(__name__)


class ShapeManager(QObject):
    """
    Owns the live shape collection and its undo/redo history.

    All changes to the collection go through commands so the chart surface
    and the collection stay in step. The manager must be attached to a
    surface exactly once before it can be used.
    """

    shapes_changed = pyqtSignal()
    selection_changed = pyqtSignal()

    DEFAULT_HIT_TEST_RADIUS = 10.0

    def __init__(
        self,
        hit_test_radius: float = DEFAULT_HIT_TEST_RADIUS,
        max_history: int = 100
    ) -> None:
        """
        Initialize the shape manager.

        Args:
            hit_test_radius: Pixel distance within which a click hits a shape
            max_history: Maximum number of undo steps to keep
        """
        super().__init__()
        self.hit_test_radius = hit_test_radius
        self.undo_manager = UndoRedoManager(max_history)
        self._surface: Optional[ChartSurface] = None
        self._shapes: List[DrawnShape] = []

    # === Attachment ===

    def attach(self, surface: ChartSurface) -> None:
        """
        Attach to a chart surface.

        Raises:
            AttachmentError: If the manager is already attached
        """
        if self._surface is not None:
            raise AttachmentError("ShapeManager is already attached to a chart")
        if surface is None:
            raise ValueError("surface must not be None")
        self._surface = surface
        logger.debug("ShapeManager attached")

    @property
    def is_attached(self) -> bool:
        return self._surface is not None

    @property
    def surface(self) -> Optional[ChartSurface]:
        return self._surface

    def _require_surface(self) -> ChartSurface:
        if self._surface is None:
            raise AttachmentError("Chart is not attached")
        return self._surface

    # === Collection ===

    @property
    def shapes(self) -> Tuple[DrawnShape, ...]:
        """Managed shapes in insertion order."""
        return tuple(self._shapes)

    @property
    def selected_shapes(self) -> Tuple[DrawnShape, ...]:
        """Managed shapes that are currently selected."""
        return tuple(s for s in self._shapes if s.is_selected)

    def is_managed(self, shape: DrawnShape) -> bool:
        """Check whether a shape is in the collection."""
        return any(s is shape for s in self._shapes)

    def add_shape(self, shape: DrawnShape) -> None:
        """
        Add a shape as an undoable step.

        Args:
            shape: The shape to add
        """
        surface = self._require_surface()
        if self.is_managed(shape):
            raise ValueError(f"{shape!r} is already managed")

        cmd = AddShapeCommand(self._shapes, shape, surface, self._on_change)
        self.undo_manager.execute(cmd)

    def delete_shape(self, shape: DrawnShape) -> None:
        """
        Delete a shape as an undoable step.

        Raises:
            UnmanagedShapeError: If the shape is not in the collection
        """
        surface = self._require_surface()
        if not self.is_managed(shape):
            raise UnmanagedShapeError(f"{shape!r} is not managed by this ShapeManager")

        was_selected = shape.is_selected
        cmd = DeleteShapeCommand(
            self._shapes, shape, self._index_of(shape), surface, self._on_change
        )
        self.undo_manager.execute(cmd)
        if was_selected:
            self.selection_changed.emit()

    def delete_selected_shapes(self) -> int:
        """
        Delete every selected shape as a single undo step.

        Returns:
            Number of shapes deleted
        """
        surface = self._require_surface()
        selected = self.selected_shapes
        if not selected:
            return 0

        # Remove from the back so that undo re-inserts front to back
        commands = [
            DeleteShapeCommand(self._shapes, shape, index, surface, self._on_change)
            for index, shape in sorted(
                ((self._index_of(s), s) for s in selected),
                key=lambda pair: pair[0],
                reverse=True
            )
        ]
        if len(commands) == 1:
            self.undo_manager.execute(commands[0])
        else:
            self.undo_manager.execute(
                CompositeCommand(commands, f"Delete {len(commands)} Shapes")
            )

        logger.debug(f"Deleted {len(commands)} selected shape(s)")
        self.selection_changed.emit()
        return len(commands)

    def load_shapes(self, shapes: Iterable[DrawnShape]) -> None:
        """
        Replace the whole collection and forget all history.

        Loading is not undoable.

        Args:
            shapes: The new shapes, in order
        """
        surface = self._require_surface()
        new_shapes = list(shapes)

        for shape in self._shapes:
            surface.remove_plottable(shape.plottable)
            shape.is_selected = False

        # Commands keep a reference to this list, so mutate it in place
        self._shapes.clear()
        for shape in new_shapes:
            shape.is_selected = False
            surface.add_plottable(shape.plottable)
            self._shapes.append(shape)

        self.undo_manager.clear()
        surface.refresh()
        logger.debug(f"Loaded {len(new_shapes)} shape(s), history cleared")
        self.shapes_changed.emit()
        self.selection_changed.emit()

    def clear(self) -> None:
        """Remove every shape and forget all history."""
        self.load_shapes([])

    # === History ===

    def undo(self) -> bool:
        """Undo the most recent add or delete."""
        self._require_surface()
        return self.undo_manager.undo()

    def redo(self) -> bool:
        """Redo the most recently undone step."""
        self._require_surface()
        return self.undo_manager.redo()

    @property
    def can_undo(self) -> bool:
        return self.undo_manager.can_undo()

    @property
    def can_redo(self) -> bool:
        return self.undo_manager.can_redo()

    # === Selection ===

    def find_shape_at(self, pixel_x: float, pixel_y: float) -> Optional[DrawnShape]:
        """
        Hit-test without changing the selection.

        Returns:
            The visible shape nearest the pixel position within the hit-test
            radius, or None
        """
        surface = self._require_surface()
        point = QPointF(pixel_x, pixel_y)

        nearest: Optional[DrawnShape] = None
        nearest_distance = self.hit_test_radius
        for shape in self._shapes:
            if not shape.is_visible:
                continue
            distance = shape.plottable.pixel_distance(point, surface.data_to_pixel)
            # Later shapes are drawn on top and win ties
            if distance <= nearest_distance:
                nearest = shape
                nearest_distance = distance
        return nearest

    def select_shape_at(
        self,
        pixel_x: float,
        pixel_y: float,
        add_to_selection: bool = False
    ) -> Optional[DrawnShape]:
        """
        Select the shape under a pixel position.

        Args:
            pixel_x: X position in pixels
            pixel_y: Y position in pixels
            add_to_selection: Toggle the hit shape in the current selection
                instead of replacing the selection

        Returns:
            The shape that was hit, or None
        """
        surface = self._require_surface()
        hit = self.find_shape_at(pixel_x, pixel_y)

        if add_to_selection:
            if hit is not None:
                hit.is_selected = not hit.is_selected
        else:
            for shape in self._shapes:
                shape.is_selected = False
            if hit is not None:
                hit.is_selected = True

        surface.refresh()
        self.selection_changed.emit()
        return hit

    def toggle_selection(self, shape: DrawnShape) -> None:
        """
        Flip the selection flag of a managed shape.

        Raises:
            UnmanagedShapeError: If the shape is not in the collection
        """
        if not self.is_managed(shape):
            raise UnmanagedShapeError(f"{shape!r} is not managed by this ShapeManager")
        shape.is_selected = not shape.is_selected
        self._selection_updated()

    def clear_selection(self) -> None:
        """Deselect every shape."""
        for shape in self._shapes:
            shape.is_selected = False
        self._selection_updated()

    # === Internal ===

    def _index_of(self, shape: DrawnShape) -> int:
        for i, s in enumerate(self._shapes):
            if s is shape:
                return i
        raise UnmanagedShapeError(f"{shape!r} is not managed by this ShapeManager")

    def _selection_updated(self) -> None:
        if self._surface is not None:
            self._surface.refresh()
        self.selection_changed.emit()

    def _on_change(self) -> None:
        self.shapes_changed.emit()
