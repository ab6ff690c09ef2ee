"""Dock panel listing the drawing history with click-to-navigate."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QPalette
from PyQt6.QtWidgets import QLabel, QListWidget, QListWidgetItem, QVBoxLayout, QWidget

if TYPE_CHECKING:
    from ..core.undo_redo import UndoRedoManager

logger = logging.getLogger(__name__)

INITIAL_ENTRY = "(Initial State)"


class HistoryPanel(QWidget):
    """
    List of shape additions and deletions.

    Undone steps are shown greyed out below the current position. Clicking
    an entry undoes or redoes up to that entry.
    """

    history_navigated = pyqtSignal()

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._undo_manager: Optional[UndoRedoManager] = None
        self._updating = False
        self._navigating = False
        self._init_ui()

    def _init_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        self.history_list = QListWidget()
        self.history_list.setAlternatingRowColors(True)
        self.history_list.itemClicked.connect(self._on_item_clicked)
        layout.addWidget(self.history_list)

        self.empty_label = QLabel("No history")
        self.empty_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.empty_label.setEnabled(False)
        layout.addWidget(self.empty_label)

        self.history_list.hide()

    def set_undo_manager(self, undo_manager: UndoRedoManager) -> None:
        """
        Track an undo/redo manager.

        Args:
            undo_manager: The manager whose history is shown
        """
        if self._undo_manager is not None:
            self._undo_manager.state_changed.disconnect(self._update_history)

        self._undo_manager = undo_manager
        self._undo_manager.state_changed.connect(self._update_history)
        self._update_history()

    def _update_history(self) -> None:
        if self._updating or self._undo_manager is None:
            return

        self._updating = True
        try:
            self.history_list.clear()
            history = self._undo_manager.get_history()
            if not history:
                self.history_list.hide()
                self.empty_label.show()
                return

            self.empty_label.hide()
            self.history_list.show()

            palette = self.palette()
            active = palette.color(QPalette.ColorRole.Text)
            muted = palette.color(QPalette.ColorGroup.Disabled, QPalette.ColorRole.Text)
            undo_count = self._undo_manager.undo_count
            redo_count = self._undo_manager.redo_count

            initial = QListWidgetItem(INITIAL_ENTRY)
            initial.setData(Qt.ItemDataRole.UserRole, ("initial", None))
            initial.setForeground(muted if undo_count else active)
            initial.setToolTip(
                f"Click to undo all {undo_count} step(s)" if undo_count else "Current state (initial)"
            )
            self.history_list.addItem(initial)

            for idx, description, is_undo_stack in history:
                item = QListWidgetItem(description)
                item.setData(Qt.ItemDataRole.UserRole, (idx, is_undo_stack))
                if is_undo_stack:
                    item.setForeground(active)
                    steps_back = undo_count - idx - 1
                    item.setToolTip(
                        f"Click to undo {steps_back} step(s)" if steps_back else "Current state"
                    )
                else:
                    # Redo entries are listed next-to-redo first, idx counts down
                    item.setForeground(muted)
                    item.setToolTip(f"Click to redo {redo_count - idx} step(s)")
                self.history_list.addItem(item)

            # Row 0 is the initial state entry
            self.history_list.setCurrentRow(undo_count)
        finally:
            self._updating = False

    def _on_item_clicked(self, item: QListWidgetItem) -> None:
        if self._updating or self._navigating or self._undo_manager is None:
            return

        data = item.data(Qt.ItemDataRole.UserRole)
        if data is None:
            return

        idx, is_undo_stack = data
        undo_count = self._undo_manager.undo_count

        self._navigating = True
        try:
            if idx == "initial":
                moved = self._undo_manager.undo_to(undo_count)
            elif is_undo_stack:
                moved = self._undo_manager.undo_to(undo_count - idx - 1)
            else:
                moved = self._undo_manager.redo_to(self._undo_manager.redo_count - idx)
        finally:
            self._navigating = False

        if moved:
            logger.debug(f"History navigated to '{item.text()}'")
            self.history_navigated.emit()

    def clear(self) -> None:
        """Clear the history display."""
        self.history_list.clear()
        self.history_list.hide()
        self.empty_label.show()
