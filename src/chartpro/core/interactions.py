"""Pointer and keyboard handling for drawing, selecting and editing shapes."""

from __future__ import annotations

import logging
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from PyQt6.QtCore import QObject, QPointF, Qt, pyqtSignal

from .config import ChartConfig
from .errors import AttachmentError
from .models import Candle, ChartDrawMode, DrawnShape, SnapMode
from .persistence import (
    deserialize_annotations, read_annotations_file, serialize_shapes, write_annotations_file
)
from .plottables import Plottable
from .shape_manager import ShapeManager
from .snapping import SnapResolver
from .strategies import DrawModeStrategy, DrawModeStrategyFactory
from .surface import ChartSurface, PlotModel

logger = logging.getLogger(__name__)

NO_MODIFIER = Qt.KeyboardModifier.NoModifier

# Number keys arm draw modes in toolbar order
_MODE_KEYS: Dict[int, ChartDrawMode] = {
    Qt.Key.Key_1.value: ChartDrawMode.TREND_LINE,
    Qt.Key.Key_2.value: ChartDrawMode.HORIZONTAL_LINE,
    Qt.Key.Key_3.value: ChartDrawMode.VERTICAL_LINE,
    Qt.Key.Key_4.value: ChartDrawMode.RECTANGLE,
    Qt.Key.Key_5.value: ChartDrawMode.CIRCLE,
    Qt.Key.Key_6.value: ChartDrawMode.FIBONACCI_RETRACEMENT,
}


def _key_code(key: Union[int, Qt.Key]) -> int:
    return key.value if isinstance(key, Enum) else int(key)


class InteractionState(Enum):
    """Controller state."""

    IDLE = auto()
    DRAWING = auto()


class InteractionEvent(Enum):
    """Notifications a host UI can subscribe to."""

    DRAW_MODE = auto()  # payload: ChartDrawMode
    COORDINATES = auto()  # payload: QPointF in data coordinates
    SHAPE_INFO = auto()  # payload: str


class ChartInteractions(QObject):
    """
    Turns pointer and keyboard input into shape edits.

    A drag with a draw mode armed shows a preview and commits a shape on
    release; a click with no mode armed selects. All changes to the shape
    collection go through the shape manager, so every committed shape can
    be undone.
    """

    draw_mode_changed = pyqtSignal(object)
    mouse_coordinates_changed = pyqtSignal(QPointF)
    shape_info_changed = pyqtSignal(str)

    def __init__(
        self,
        shape_manager: Optional[ShapeManager] = None,
        config: Optional[ChartConfig] = None
    ) -> None:
        """
        Initialize the controller.

        Args:
            shape_manager: Manager to edit, or None to create one from the config
            config: Source of the snap, hit-test and history defaults
        """
        super().__init__()
        config = config or ChartConfig()
        if shape_manager is None:
            shape_manager = ShapeManager(
                hit_test_radius=config.hit_test_radius,
                max_history=config.max_history_entries
            )

        self._shape_manager = shape_manager
        self._surface: Optional[ChartSurface] = None
        self._snapper = SnapResolver()
        self._subscriptions: Dict[InteractionEvent, List[Callable]] = {
            event: [] for event in InteractionEvent
        }

        self.snap_enabled = config.snap_enabled
        self.snap_mode = config.snap_mode

        self._state = InteractionState.IDLE
        self._draw_mode = ChartDrawMode.NONE
        self._strategy: Optional[DrawModeStrategy] = None
        self._anchor: Optional[QPointF] = None
        self._preview: Optional[Plottable] = None
        self._mouse_coordinates: Optional[QPointF] = None
        self._shape_info = ""

        shape_manager.selection_changed.connect(self._refresh_shape_info)
        shape_manager.shapes_changed.connect(self._refresh_shape_info)

    # === Properties ===

    @property
    def shape_manager(self) -> ShapeManager:
        return self._shape_manager

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def is_drawing(self) -> bool:
        return self._state is InteractionState.DRAWING

    @property
    def is_attached(self) -> bool:
        return self._surface is not None

    @property
    def current_draw_mode(self) -> ChartDrawMode:
        return self._draw_mode

    @property
    def current_mouse_coordinates(self) -> Optional[QPointF]:
        """Last snapped pointer position in data coordinates."""
        return None if self._mouse_coordinates is None else QPointF(self._mouse_coordinates)

    @property
    def current_shape_info(self) -> str:
        return self._shape_info

    @property
    def candles(self) -> Tuple[Candle, ...]:
        return self._snapper.candles

    @property
    def preview(self) -> Optional[Plottable]:
        """The preview primitive of the drag in progress, if any."""
        return self._preview

    # === Observers ===

    def subscribe(self, event: InteractionEvent, callback: Callable) -> None:
        """
        Register a callback for a notification.

        Subscribing the same callback twice has no effect.
        """
        callbacks = self._subscriptions[event]
        if callback in callbacks:
            return
        self._signal_for(event).connect(callback)
        callbacks.append(callback)

    def unsubscribe(self, event: InteractionEvent, callback: Callable) -> None:
        """Remove a callback registered with :meth:`subscribe`."""
        callbacks = self._subscriptions[event]
        if callback not in callbacks:
            return
        self._signal_for(event).disconnect(callback)
        callbacks.remove(callback)

    def _signal_for(self, event: InteractionEvent):
        if event is InteractionEvent.DRAW_MODE:
            return self.draw_mode_changed
        if event is InteractionEvent.COORDINATES:
            return self.mouse_coordinates_changed
        return self.shape_info_changed

    # === Setup ===

    def attach(self, surface: ChartSurface) -> None:
        """
        Attach the controller and its shape manager to a chart surface.

        Raises:
            AttachmentError: If already attached
        """
        self._shape_manager.attach(surface)
        self._surface = surface
        self._snapper.surface = surface
        self._sync_candles()
        logger.debug("ChartInteractions attached")

    def _require_surface(self) -> ChartSurface:
        if self._surface is None:
            raise AttachmentError("Chart is not attached")
        return self._surface

    def set_draw_mode(self, mode: ChartDrawMode) -> None:
        """
        Arm a draw mode.

        Any drag in progress is cancelled first so its preview is not
        left on the chart.
        """
        mode = ChartDrawMode(mode)
        if self.is_drawing:
            self.cancel_drawing()
        if mode == self._draw_mode:
            return

        self._draw_mode = mode
        logger.debug(f"Draw mode set to {mode.value}")
        self.draw_mode_changed.emit(mode)

    def bind_candles(self, candles: Sequence[Candle]) -> None:
        """Bind the candle series used for OHLC snapping and painting."""
        self._snapper.bind_candles(candles)
        self._sync_candles()

    def add_candle(self, candle: Candle) -> None:
        """Append a candle to the bound series."""
        self._snapper.add_candle(candle)
        self._sync_candles()

    def update_last_candle(self, candle: Candle) -> None:
        """Replace the most recent candle of the bound series."""
        self._snapper.update_last_candle(candle)
        self._sync_candles()

    def _sync_candles(self) -> None:
        if isinstance(self._surface, PlotModel):
            self._surface.set_candles(self._snapper.candles)
            self._surface.refresh()

    # === Pointer input ===

    def handle_pointer_down(
        self,
        x: float,
        y: float,
        modifiers: Qt.KeyboardModifier = NO_MODIFIER
    ) -> None:
        """
        Handle a primary button press at a pixel position.

        With no draw mode armed this selects; Ctrl toggles the hit shape
        in the current selection.
        """
        surface = self._require_surface()
        if self.is_drawing:
            return

        if self._draw_mode == ChartDrawMode.NONE:
            add_to_selection = bool(modifiers & Qt.KeyboardModifier.ControlModifier)
            self._shape_manager.select_shape_at(x, y, add_to_selection)
            return

        strategy = DrawModeStrategyFactory.create_strategy(self._draw_mode)
        if strategy is None:
            logger.debug(f"No strategy for {self._draw_mode.value}, ignoring press")
            return

        anchor = self._to_data(x, y, modifiers)
        self._strategy = strategy
        self._anchor = anchor
        self._preview = strategy.create_preview(anchor, anchor, surface)
        self._state = InteractionState.DRAWING
        surface.refresh()

        self._set_mouse_coordinates(anchor)
        self._set_shape_info(self._drawing_info(anchor))

    def handle_pointer_move(
        self,
        x: float,
        y: float,
        modifiers: Qt.KeyboardModifier = NO_MODIFIER
    ) -> None:
        """Handle pointer movement; while drawing, the preview follows."""
        surface = self._require_surface()
        point = self._to_data(x, y, modifiers)

        if self.is_drawing:
            surface.remove_plottable(self._preview)
            self._preview = self._strategy.create_preview(self._anchor, point, surface)
            surface.refresh()
            self._set_shape_info(self._drawing_info(point))

        self._set_mouse_coordinates(point)

    def handle_pointer_up(
        self,
        x: float,
        y: float,
        modifiers: Qt.KeyboardModifier = NO_MODIFIER
    ) -> None:
        """Handle a primary button release; commits the shape being drawn."""
        surface = self._require_surface()
        if not self.is_drawing:
            return

        release = self._to_data(x, y, modifiers)
        strategy, anchor, mode = self._strategy, self._anchor, self._draw_mode
        self._discard_preview(surface)

        shape = DrawnShape(strategy.create_final(anchor, release), mode)
        self._shape_manager.add_shape(shape)
        logger.debug(f"Committed {shape.describe()}")

        self._set_mouse_coordinates(release)
        self._refresh_shape_info()

    # === Keyboard input ===

    def handle_key_press(
        self,
        key: Union[int, Qt.Key],
        modifiers: Qt.KeyboardModifier = NO_MODIFIER
    ) -> bool:
        """
        Handle a key press.

        Args:
            key: Qt key code
            modifiers: Keyboard modifiers held

        Returns:
            True if the key was consumed
        """
        code = _key_code(key)
        ctrl = bool(modifiers & Qt.KeyboardModifier.ControlModifier)
        shift = bool(modifiers & Qt.KeyboardModifier.ShiftModifier)

        if code == Qt.Key.Key_Escape.value:
            self.cancel_drawing()
            self.set_draw_mode(ChartDrawMode.NONE)
            return True
        if code == Qt.Key.Key_Delete.value:
            self.delete_selected_shapes()
            return True
        if ctrl and code == Qt.Key.Key_Z.value:
            if shift:
                self.redo()
            else:
                self.undo()
            return True
        if ctrl and code == Qt.Key.Key_Y.value:
            self.redo()
            return True
        if not ctrl and code in _MODE_KEYS:
            self.set_draw_mode(_MODE_KEYS[code])
            return True
        return False

    # === Editing ===

    def cancel_drawing(self) -> None:
        """Discard the drag in progress without recording anything."""
        if not self.is_drawing:
            return
        surface = self._require_surface()
        self._discard_preview(surface)
        surface.refresh()
        logger.debug("Drawing cancelled")
        self._refresh_shape_info()

    def undo(self) -> bool:
        """Undo the most recent add or delete."""
        self.cancel_drawing()
        return self._shape_manager.undo()

    def redo(self) -> bool:
        """Redo the most recently undone step."""
        self.cancel_drawing()
        return self._shape_manager.redo()

    def delete_selected_shapes(self) -> int:
        """Delete the current selection as one undo step."""
        return self._shape_manager.delete_selected_shapes()

    # === Persistence ===

    def save_shapes_to_file(self, path: Union[str, Path]) -> None:
        """
        Save the current shapes as an annotations file.

        Raises:
            AttachmentError: If the controller is not attached
        """
        self._require_surface()
        write_annotations_file(path, serialize_shapes(self._shape_manager.shapes))

    def load_shapes_from_file(self, path: Union[str, Path]) -> int:
        """
        Replace the current shapes with those in an annotations file.

        The file is fully read and validated before anything changes. A file
        holding JSON ``null`` leaves the chart untouched.

        Returns:
            Number of shapes loaded

        Raises:
            AttachmentError: If the controller is not attached
            AnnotationNotFoundError: If the file does not exist
            AnnotationFormatError: If the file is malformed
        """
        self._require_surface()
        document = read_annotations_file(path)
        if document is None:
            logger.info(f"{path} holds no annotations, nothing loaded")
            return 0

        shapes = deserialize_annotations(document)
        self.cancel_drawing()
        self._shape_manager.load_shapes(shapes)
        skipped = len(document.shapes) - len(shapes)
        if skipped:
            logger.warning(f"Skipped {skipped} unrecognised annotation(s) in {path}")
        return len(shapes)

    # === Internal ===

    def _to_data(self, x: float, y: float, modifiers: Qt.KeyboardModifier) -> QPointF:
        point = self._require_surface().pixel_to_data(QPointF(x, y))
        snap = self.snap_enabled or bool(modifiers & Qt.KeyboardModifier.ShiftModifier)
        if not snap or self.snap_mode == SnapMode.NONE:
            return point
        return self._snapper.resolve(point, self.snap_mode)

    def _discard_preview(self, surface: ChartSurface) -> None:
        if self._preview is not None:
            surface.remove_plottable(self._preview)
        self._preview = None
        self._strategy = None
        self._anchor = None
        self._state = InteractionState.IDLE

    def _drawing_info(self, point: QPointF) -> str:
        return (
            f"Drawing {self._draw_mode.value}: "
            f"({self._anchor.x():.2f}, {self._anchor.y():.2f}) to "
            f"({point.x():.2f}, {point.y():.2f})"
        )

    def _selection_info(self) -> str:
        selected = self._shape_manager.selected_shapes
        if len(selected) == 1:
            return selected[0].describe()
        if selected:
            return f"{len(selected)} shapes selected"
        return ""

    def _refresh_shape_info(self) -> None:
        if not self.is_drawing:
            self._set_shape_info(self._selection_info())

    def _set_shape_info(self, info: str) -> None:
        if info != self._shape_info:
            self._shape_info = info
            self.shape_info_changed.emit(info)

    def _set_mouse_coordinates(self, point: QPointF) -> None:
        self._mouse_coordinates = QPointF(point)
        self.mouse_coordinates_changed.emit(QPointF(point))
