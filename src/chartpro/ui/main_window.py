"""Main application window for ChartPro."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

from PyQt6.QtCore import QPointF, Qt
from PyQt6.QtGui import QAction, QActionGroup, QKeySequence
from PyQt6.QtWidgets import (
    QCheckBox, QComboBox, QDockWidget, QFileDialog, QLabel, QMainWindow,
    QMessageBox, QStatusBar, QToolBar
)

from .. import __version__
from ..core.config import ChartConfig, ConfigManager, DEFAULT_CONFIG_PATH
from ..core.errors import ChartProError
from ..core.interactions import ChartInteractions
from ..core.models import ChartDrawMode, SnapMode
from ..core.sample_data import generate_sample_candles
from ..core.strategies import DrawModeStrategyFactory
from .chart_canvas import ChartCanvas
from .history_panel import HistoryPanel

logger = logging.getLogger(__name__)

ANNOTATION_FILE_FILTER = "Chart Annotations (*.json);;All Files (*)"

_SNAP_MODE_LABELS = {
    SnapMode.NONE: "No Snap",
    SnapMode.PRICE: "Snap to Price Grid",
    SnapMode.CANDLE_OHLC: "Snap to Candle OHLC",
}


class MainWindow(QMainWindow):
    """
    Main application window.

    Hosts the chart canvas with:
    - Draw mode toolbar and snap controls
    - Undo/redo history dock
    - Annotation save/load with recent files
    - Status bar with mode, cursor coordinates and shape info
    """

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH) -> None:
        """
        Initialize the main window.

        Args:
            config_path: Location of the YAML settings file
        """
        super().__init__()

        self.config_manager = ConfigManager(config_path)
        self.interactions = ChartInteractions(config=self.config)

        self.canvas: Optional[ChartCanvas] = None
        self.history_panel: Optional[HistoryPanel] = None
        self.mode_actions: Dict[ChartDrawMode, QAction] = {}
        self.snap_checkbox: Optional[QCheckBox] = None
        self.snap_combo: Optional[QComboBox] = None

        self.status_bar: Optional[QStatusBar] = None
        self.mode_label: Optional[QLabel] = None
        self.coordinates_label: Optional[QLabel] = None
        self.shape_info_label: Optional[QLabel] = None

        self._init_ui()
        self._setup_connections()
        self._update_mode_label(self.interactions.current_draw_mode)
        self._update_undo_redo_state()

        logger.info("MainWindow initialization complete")

    @property
    def config(self) -> ChartConfig:
        """Get the current configuration."""
        return self.config_manager.config

    # === UI construction ===

    def _init_ui(self) -> None:
        self.setWindowTitle("ChartPro - Chart Annotations")
        self.setGeometry(100, 100, 1200, 800)

        self.canvas = ChartCanvas(self.interactions)
        self.setCentralWidget(self.canvas)

        self._create_status_bar()
        self._create_dock_widgets()
        self._create_toolbar()
        self._create_menus()

    def _create_status_bar(self) -> None:
        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)

        self.mode_label = QLabel()
        self.status_bar.addWidget(self.mode_label)

        self.coordinates_label = QLabel("X: -, Y: -")
        self.status_bar.addWidget(self.coordinates_label)

        self.shape_info_label = QLabel()
        self.status_bar.addPermanentWidget(self.shape_info_label)

    def _create_dock_widgets(self) -> None:
        self.history_panel = HistoryPanel()
        self.history_panel.set_undo_manager(self.interactions.shape_manager.undo_manager)

        self.history_dock = QDockWidget("History", self)
        self.history_dock.setObjectName("HistoryDock")
        self.history_dock.setAllowedAreas(
            Qt.DockWidgetArea.LeftDockWidgetArea | Qt.DockWidgetArea.RightDockWidgetArea
        )
        self.history_dock.setWidget(self.history_panel)
        self.addDockWidget(Qt.DockWidgetArea.RightDockWidgetArea, self.history_dock)

    def _create_toolbar(self) -> None:
        self.toolbar = QToolBar("Tools")
        self.toolbar.setObjectName("MainToolBar")
        self.addToolBar(self.toolbar)

        # Draw modes
        draw_modes = QActionGroup(self)
        modes = [ChartDrawMode.NONE] + DrawModeStrategyFactory.supported_modes()
        for shortcut, mode in enumerate(modes):
            text = "Select" if mode == ChartDrawMode.NONE else mode.display_name
            action = QAction(text, self)
            action.setCheckable(True)
            if mode != ChartDrawMode.NONE:
                action.setToolTip(f"{text} ({shortcut})")
            action.triggered.connect(lambda checked, m=mode: self.interactions.set_draw_mode(m))
            draw_modes.addAction(action)
            self.mode_actions[mode] = action
        self.toolbar.addActions(draw_modes.actions())
        self.mode_actions[ChartDrawMode.NONE].setChecked(True)

        self.toolbar.addSeparator()

        # Snap controls
        self.snap_checkbox = QCheckBox("Enable Snap (or hold Shift)")
        self.snap_checkbox.setChecked(self.interactions.snap_enabled)
        self.snap_checkbox.toggled.connect(self._on_snap_enabled_changed)
        self.toolbar.addWidget(self.snap_checkbox)

        self.snap_combo = QComboBox()
        for snap_mode, label in _SNAP_MODE_LABELS.items():
            self.snap_combo.addItem(label, snap_mode.value)
        self.snap_combo.setCurrentIndex(self.snap_combo.findData(self.interactions.snap_mode.value))
        self.snap_combo.currentIndexChanged.connect(self._on_snap_mode_changed)
        self.toolbar.addWidget(self.snap_combo)

        self.toolbar.addSeparator()

        sample_action = QAction("Generate Sample Data", self)
        sample_action.triggered.connect(self._generate_sample_data)
        self.toolbar.addAction(sample_action)

    def _create_menus(self) -> None:
        menubar = self.menuBar()

        # File menu
        file_menu = menubar.addMenu("File")

        save_action = QAction("Save Annotations...", self)
        save_action.setShortcut(QKeySequence.StandardKey.Save)
        save_action.triggered.connect(self._save_annotations)
        file_menu.addAction(save_action)

        load_action = QAction("Load Annotations...", self)
        load_action.setShortcut(QKeySequence.StandardKey.Open)
        load_action.triggered.connect(self._load_annotations)
        file_menu.addAction(load_action)

        self.recent_files_menu = file_menu.addMenu("Recent Files")
        self._update_recent_files_menu()

        file_menu.addSeparator()
        exit_action = QAction("Exit", self)
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

        # Edit menu
        edit_menu = menubar.addMenu("Edit")

        self.undo_action = QAction("Undo", self)
        self.undo_action.setShortcut("Ctrl+Z")
        self.undo_action.triggered.connect(self.interactions.undo)
        edit_menu.addAction(self.undo_action)

        self.redo_action = QAction("Redo", self)
        self.redo_action.setShortcuts([QKeySequence("Ctrl+Y"), QKeySequence("Ctrl+Shift+Z")])
        self.redo_action.triggered.connect(self.interactions.redo)
        edit_menu.addAction(self.redo_action)

        edit_menu.addSeparator()
        delete_action = QAction("Delete Selected", self)
        delete_action.setShortcut("Delete")
        delete_action.triggered.connect(self.interactions.delete_selected_shapes)
        edit_menu.addAction(delete_action)

        clear_action = QAction("Clear All Shapes", self)
        clear_action.triggered.connect(self._clear_shapes)
        edit_menu.addAction(clear_action)

        # View menu
        view_menu = menubar.addMenu("View")
        view_menu.addAction(self.history_dock.toggleViewAction())

        # Info menu
        info_menu = menubar.addMenu("Info")
        about_action = QAction("About", self)
        about_action.triggered.connect(self._show_about)
        info_menu.addAction(about_action)

    def _setup_connections(self) -> None:
        self.interactions.draw_mode_changed.connect(self._on_draw_mode_changed)
        self.interactions.mouse_coordinates_changed.connect(self._on_mouse_coordinates_changed)
        self.interactions.shape_info_changed.connect(self._on_shape_info_changed)
        self.interactions.shape_manager.undo_manager.state_changed.connect(
            self._update_undo_redo_state
        )
        self.history_panel.history_navigated.connect(self.canvas.update)

    # === Slots ===

    def _on_draw_mode_changed(self, mode: ChartDrawMode) -> None:
        action = self.mode_actions.get(mode)
        if action is not None:
            action.setChecked(True)
        self._update_mode_label(mode)

    def _update_mode_label(self, mode: ChartDrawMode) -> None:
        self.mode_label.setText(f"Mode: {mode.display_name}")

    def _on_mouse_coordinates_changed(self, point: QPointF) -> None:
        self.coordinates_label.setText(f"X: {point.x():.2f}, Y: {point.y():.2f}")

    def _on_shape_info_changed(self, info: str) -> None:
        self.shape_info_label.setText(info)

    def _update_undo_redo_state(self) -> None:
        undo_manager = self.interactions.shape_manager.undo_manager
        self.undo_action.setEnabled(undo_manager.can_undo())
        self.redo_action.setEnabled(undo_manager.can_redo())

        undo_text = undo_manager.undo_description()
        redo_text = undo_manager.redo_description()
        self.undo_action.setText(f"Undo {undo_text}" if undo_text else "Undo")
        self.redo_action.setText(f"Redo {redo_text}" if redo_text else "Redo")

    def _on_snap_enabled_changed(self, enabled: bool) -> None:
        self.interactions.snap_enabled = enabled
        self.config_manager.update(snap_enabled=enabled)

    def _on_snap_mode_changed(self, index: int) -> None:
        value = self.snap_combo.itemData(index)
        if value is None:
            return
        snap_mode = SnapMode(value)
        self.interactions.snap_mode = snap_mode
        self.config_manager.update(snap_mode=snap_mode)

    # === Actions ===

    def _generate_sample_data(self) -> None:
        candles = generate_sample_candles(self.config.sample_candle_count)
        self.interactions.bind_candles(candles)
        self.canvas.plot.auto_scale()
        self.canvas.plot.refresh()
        self.status_bar.showMessage(f"Generated {len(candles)} sample candles", 3000)

    def _clear_shapes(self) -> None:
        if not self.interactions.shape_manager.shapes:
            return
        reply = QMessageBox.question(
            self,
            "Clear All Shapes",
            "Remove every shape? This also clears the undo history.",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No
        )
        if reply == QMessageBox.StandardButton.Yes:
            self.interactions.cancel_drawing()
            self.interactions.shape_manager.clear()

    def _save_annotations(self) -> None:
        path, _ = QFileDialog.getSaveFileName(
            self, "Save Annotations", self._dialog_directory(), ANNOTATION_FILE_FILTER
        )
        if not path:
            return

        try:
            self.interactions.save_shapes_to_file(path)
        except (ChartProError, OSError) as e:
            logger.exception("Error saving annotations")
            QMessageBox.critical(self, "Save Error", f"Failed to save annotations: {e}")
            return

        self._add_recent_file(path)
        self.status_bar.showMessage(f"Saved annotations to {path}", 3000)

    def _load_annotations(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, "Load Annotations", self._dialog_directory(), ANNOTATION_FILE_FILTER
        )
        if path:
            self._load_annotations_from(path)

    def _load_annotations_from(self, path: str) -> None:
        try:
            count = self.interactions.load_shapes_from_file(path)
        except (ChartProError, OSError) as e:
            logger.error(f"Error loading annotations from {path}: {e}")
            QMessageBox.critical(self, "Load Error", f"Failed to load annotations: {e}")
            return

        self._add_recent_file(path)
        self.status_bar.showMessage(f"Loaded {count} shape(s) from {path}", 3000)

    def _dialog_directory(self) -> str:
        if self.config.recent_files:
            return str(Path(self.config.recent_files[0]).parent)
        return self.config.default_directory

    # === Recent files ===

    def _add_recent_file(self, path: str) -> None:
        self.config.add_recent_file(path)
        self.config_manager.save()
        self._update_recent_files_menu()

    def _update_recent_files_menu(self) -> None:
        self.recent_files_menu.clear()

        if self.config.max_recent_files <= 0:
            disabled_action = self.recent_files_menu.addAction("(Disabled in settings)")
            disabled_action.setEnabled(False)
            return

        if not self.config.recent_files:
            no_recent_action = self.recent_files_menu.addAction("No recent files")
            no_recent_action.setEnabled(False)
            return

        for path in self.config.recent_files:
            action = self.recent_files_menu.addAction(path)
            action.triggered.connect(lambda checked, p=path: self._load_annotations_from(p))

        self.recent_files_menu.addSeparator()
        clear_action = self.recent_files_menu.addAction("Clear Recent Files")
        clear_action.triggered.connect(self._clear_recent_files)

    def _clear_recent_files(self) -> None:
        self.config_manager.update(recent_files=[])
        self._update_recent_files_menu()

    def _show_about(self) -> None:
        QMessageBox.about(
            self,
            "About ChartPro",
            f"ChartPro {__version__}\n\n"
            "Draw trend lines, levels, boxes, circles and Fibonacci retracements "
            "on candlestick charts."
        )

    def closeEvent(self, event) -> None:
        """Save settings on close."""
        self.config_manager.save()
        super().closeEvent(event)
