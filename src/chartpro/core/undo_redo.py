"""Undo/Redo system using the Command pattern."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence, Tuple

from PyQt6.QtCore import QObject, pyqtSignal

if TYPE_CHECKING:
    from .models import DrawnShape
    from .surface import ChartSurface

logger = logging.getLogger(__name__)


class Command(ABC):
    """Abstract base class for undoable commands."""

    @abstractmethod
    def execute(self) -> None:
        """Execute the command."""
        pass

    @abstractmethod
    def undo(self) -> None:
        """Undo the command."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of the command."""
        pass


class _ShapeCommand(Command):
    """Shared plumbing for commands that move one shape in or out of the chart."""

    def __init__(
        self,
        shapes_list: List[DrawnShape],
        shape: DrawnShape,
        surface: ChartSurface,
        on_change: Optional[Callable[[], None]] = None
    ) -> None:
        self._shapes_list = shapes_list
        self._shape = shape
        self._surface = surface
        self._on_change = on_change

    @property
    def shape(self) -> DrawnShape:
        return self._shape

    def _contains(self) -> bool:
        return any(s is self._shape for s in self._shapes_list)

    def _insert(self, index: Optional[int] = None) -> None:
        self._surface.add_plottable(self._shape.plottable)
        if not self._contains():
            if index is None or index >= len(self._shapes_list):
                self._shapes_list.append(self._shape)
            else:
                self._shapes_list.insert(index, self._shape)
        self._changed()

    def _remove(self) -> None:
        self._surface.remove_plottable(self._shape.plottable)
        if self._contains():
            self._shapes_list.remove(self._shape)
        self._shape.is_selected = False
        self._changed()

    def _changed(self) -> None:
        self._surface.refresh()
        if self._on_change:
            self._on_change()


class AddShapeCommand(_ShapeCommand):
    """Command for adding a shape to the chart."""

    def execute(self) -> None:
        self._insert()

    def undo(self) -> None:
        self._remove()

    @property
    def description(self) -> str:
        return f"Add {self._shape.draw_mode.display_name}"


class DeleteShapeCommand(_ShapeCommand):
    """Command for deleting a shape; undo puts it back where it was."""

    def __init__(
        self,
        shapes_list: List[DrawnShape],
        shape: DrawnShape,
        index: int,
        surface: ChartSurface,
        on_change: Optional[Callable[[], None]] = None
    ) -> None:
        super().__init__(shapes_list, shape, surface, on_change)
        self._index = index

    def execute(self) -> None:
        self._remove()

    def undo(self) -> None:
        self._insert(self._index)

    @property
    def description(self) -> str:
        return f"Delete {self._shape.draw_mode.display_name}"


class CompositeCommand(Command):
    """Several commands applied and reverted as a single history step."""

    def __init__(self, commands: Sequence[Command], description: str) -> None:
        self._commands = list(commands)
        self._description = description

    @property
    def commands(self) -> Tuple[Command, ...]:
        return tuple(self._commands)

    def execute(self) -> None:
        for command in self._commands:
            command.execute()

    def undo(self) -> None:
        for command in reversed(self._commands):
            command.undo()

    @property
    def description(self) -> str:
        return self._description


class UndoRedoManager(QObject):
    """
    Manages the undo and redo stacks.

    Emits ``state_changed`` whenever undo/redo availability changes so the
    UI can update.
    """

    state_changed = pyqtSignal()

    def __init__(self, max_history: int = 100) -> None:
        """
        Initialize the undo/redo manager.

        Args:
            max_history: Maximum number of commands to keep in history
        """
        super().__init__()
        self._undo_stack: List[Command] = []
        self._redo_stack: List[Command] = []
        self._max_history = max(1, max_history)

    def execute(self, command: Command) -> None:
        """
        Execute a command and push it onto the undo stack.

        Any pending redo history is discarded.

        Args:
            command: The command to execute
        """
        command.execute()
        self._undo_stack.append(command)
        self._redo_stack.clear()
        self._trim()

        logger.debug(f"Executed: {command.description}")
        self.state_changed.emit()

    def undo(self) -> bool:
        """
        Undo the last command.

        Returns:
            True if a command was undone
        """
        return self.undo_to(1)

    def redo(self) -> bool:
        """
        Redo the last undone command.

        Returns:
            True if a command was redone
        """
        return self.redo_to(1)

    def undo_to(self, steps: int) -> bool:
        """
        Undo several steps at once.

        Args:
            steps: Number of steps to undo

        Returns:
            True if at least one command was undone
        """
        moved = 0
        while moved < steps and self._undo_stack:
            command = self._undo_stack.pop()
            command.undo()
            self._redo_stack.append(command)
            logger.debug(f"Undone: {command.description}")
            moved += 1

        # Emit once after all steps
        if moved:
            self.state_changed.emit()
        return moved > 0

    def redo_to(self, steps: int) -> bool:
        """
        Redo several steps at once.

        Args:
            steps: Number of steps to redo

        Returns:
            True if at least one command was redone
        """
        moved = 0
        while moved < steps and self._redo_stack:
            command = self._redo_stack.pop()
            command.execute()
            self._undo_stack.append(command)
            logger.debug(f"Redone: {command.description}")
            moved += 1

        if moved:
            self.state_changed.emit()
        return moved > 0

    def can_undo(self) -> bool:
        """Check if undo is available."""
        return bool(self._undo_stack)

    def can_redo(self) -> bool:
        """Check if redo is available."""
        return bool(self._redo_stack)

    def undo_description(self) -> str:
        """Description of the command that would be undone."""
        return self._undo_stack[-1].description if self._undo_stack else ""

    def redo_description(self) -> str:
        """Description of the command that would be redone."""
        return self._redo_stack[-1].description if self._redo_stack else ""

    def clear(self) -> None:
        """Clear all undo/redo history."""
        self._undo_stack.clear()
        self._redo_stack.clear()
        self.state_changed.emit()

    @property
    def undo_count(self) -> int:
        return len(self._undo_stack)

    @property
    def redo_count(self) -> int:
        return len(self._redo_stack)

    @property
    def max_history(self) -> int:
        return self._max_history

    def get_history(self) -> List[Tuple[int, str, bool]]:
        """
        Get the full history as a list of tuples.

        Returns:
            List of (index, description, is_undo_stack) tuples. Undo entries
            come first, oldest first; redo entries follow with the next one
            to redo first. Index is the position in the respective stack.
        """
        history = [(i, cmd.description, True) for i, cmd in enumerate(self._undo_stack)]
        last = len(self._redo_stack) - 1
        history.extend(
            (last - i, cmd.description, False)
            for i, cmd in enumerate(reversed(self._redo_stack))
        )
        return history

    def set_max_history(self, max_history: int) -> None:
        """
        Update the maximum history size.

        Args:
            max_history: New maximum number of commands to keep
        """
        self._max_history = max(1, max_history)
        self._trim()
        self.state_changed.emit()

    def _trim(self) -> None:
        while len(self._undo_stack) > self._max_history:
            dropped = self._undo_stack.pop(0)
            logger.debug(f"History limit reached, dropped: {dropped.description}")
