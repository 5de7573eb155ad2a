"""Main application window for Image Annotator."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QActionGroup, QImage, QImageReader, QKeySequence
from PyQt6.QtWidgets import (
    QAbstractItemView, QDockWidget, QFileDialog, QInputDialog, QLabel,
    QListWidget, QListWidgetItem, QMainWindow, QMessageBox, QPushButton,
    QStatusBar, QToolBar, QVBoxLayout, QWidget
)

from ..core.config import AppConfig, ConfigManager
from ..core.export import DEFAULT_DATA_FILE_NAME, read_annotations, save_annotations
from ..core.models import AnnotationFormatError
from ..core.raster_export import export_image
from ..core.store import AnnotationMode, AnnotationStore
from .canvas import AnnotationCanvas

logger = logging.getLogger(__name__)

IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.bmp *.gif *.webp)"
JSON_FILTER = "Annotations (*.json)"


def increase_image_allocation_limit() -> None:
    """Remove image allocation limit for large images."""
    QImageReader.setAllocationLimit(0)


class MainWindow(QMainWindow):
    """
    Main application window for Image Annotator.

    Hosts the annotation canvas plus:
    - Opening an image
    - Point / polygon mode switch
    - Label list with rename
    - Undo/redo and polygon drawing commands
    - Annotated image export and JSON save/load
    """

    def __init__(self, config_manager: Optional[ConfigManager] = None) -> None:
        """Initialize the main window."""
        super().__init__()

        increase_image_allocation_limit()

        self.config_manager = config_manager or ConfigManager()
        config = self.config

        self.labels = config.create_label_set()
        try:
            mode = AnnotationMode(config.default_mode)
        except ValueError:
            logger.warning(f"Unknown default mode {config.default_mode!r}, using point")
            mode = AnnotationMode.POINT
        self.store = AnnotationStore(mode, config.max_history)

        self.current_image_path: Optional[Path] = None

        # UI elements (initialized in _init_ui)
        self.canvas: Optional[AnnotationCanvas] = None
        self.label_list: Optional[QListWidget] = None
        self.mode_actions: dict = {}
        self.file_label: Optional[QLabel] = None
        self.count_label: Optional[QLabel] = None

        self._init_ui()
        self._setup_connections()
        self._refresh_label_list()
        self._update_state()

        logger.info("MainWindow initialization complete")

    @property
    def config(self) -> AppConfig:
        """Get the current configuration."""
        return self.config_manager.config

    def _init_ui(self) -> None:
        """Initialize the user interface."""
        self.setWindowTitle("Image Annotator")
        self.setGeometry(100, 100, 1200, 800)

        self.canvas = AnnotationCanvas(self.store, self.labels, self.config)
        self.setCentralWidget(self.canvas)

        self._create_status_bar()
        self._create_label_dock()
        self._create_actions()
        self._create_toolbar()
        self._create_menus()

    def _create_status_bar(self) -> None:
        """Create the status bar."""
        self.setStatusBar(QStatusBar())

        self.file_label = QLabel()
        self.statusBar().addPermanentWidget(self.file_label)

        self.count_label = QLabel()
        self.statusBar().addPermanentWidget(self.count_label)

    def _create_label_dock(self) -> None:
        """Create the labels dock widget."""
        widget = QWidget()
        layout = QVBoxLayout(widget)

        self.label_list = QListWidget()
        self.label_list.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        self.label_list.itemDoubleClicked.connect(self._rename_label_item)
        layout.addWidget(self.label_list)

        add_button = QPushButton("Add Label")
        add_button.clicked.connect(self._add_label)
        layout.addWidget(add_button)

        rename_button = QPushButton("Rename Label")
        rename_button.clicked.connect(self._rename_selected_label)
        layout.addWidget(rename_button)

        dock = QDockWidget("Labels", self)
        dock.setObjectName("LabelsDock")
        dock.setWidget(widget)
        self.addDockWidget(Qt.DockWidgetArea.RightDockWidgetArea, dock)

    def _create_actions(self) -> None:
        """Create the shared window actions."""
        self.open_action = QAction("Open Image...", self)
        self.open_action.setShortcut(QKeySequence.StandardKey.Open)
        self.open_action.triggered.connect(self._open_image)

        self.export_action = QAction("Save Annotated Image...", self)
        self.export_action.setShortcut("Ctrl+E")
        self.export_action.triggered.connect(self._export_image)

        self.save_json_action = QAction("Save Annotations...", self)
        self.save_json_action.setShortcut(QKeySequence.StandardKey.Save)
        self.save_json_action.triggered.connect(self._save_json)

        self.load_json_action = QAction("Load Annotations...", self)
        self.load_json_action.setShortcut("Ctrl+L")
        self.load_json_action.triggered.connect(self._load_json)

        self.undo_action = QAction("Undo", self)
        self.undo_action.setShortcut("Ctrl+Z")
        self.undo_action.triggered.connect(self._undo)

        self.redo_action = QAction("Redo", self)
        self.redo_action.setShortcut("Ctrl+Shift+Z")
        self.redo_action.triggered.connect(self._redo)

        self.complete_action = QAction("Complete Polygon", self)
        self.complete_action.setShortcut("Return")
        self.complete_action.triggered.connect(self._complete_polygon)

        self.undo_point_action = QAction("Undo Point", self)
        self.undo_point_action.setShortcut("Backspace")
        self.undo_point_action.triggered.connect(self.store.undo_last_point)

        self.clear_current_action = QAction("Clear Current", self)
        self.clear_current_action.setShortcut("Escape")
        self.clear_current_action.triggered.connect(self.store.clear_current)

        self.clear_all_action = QAction("Clear All", self)
        self.clear_all_action.triggered.connect(self._clear_all)

        mode_group = QActionGroup(self)
        for mode, text in ((AnnotationMode.POINT, "Point"), (AnnotationMode.POLYGON, "Polygon")):
            action = QAction(text, self)
            action.setCheckable(True)
            action.setChecked(self.store.mode == mode)
            action.triggered.connect(lambda checked, m=mode: self._set_mode(m))
            mode_group.addAction(action)
            self.mode_actions[mode] = action

    def _create_toolbar(self) -> None:
        """Create the main toolbar."""
        toolbar = QToolBar()
        toolbar.setObjectName("MainToolBar")
        self.addToolBar(toolbar)

        toolbar.addAction(self.open_action)
        toolbar.addSeparator()
        toolbar.addAction(self.undo_action)
        toolbar.addAction(self.redo_action)
        toolbar.addSeparator()
        toolbar.addActions(list(self.mode_actions.values()))
        toolbar.addSeparator()
        toolbar.addAction(self.complete_action)
        toolbar.addAction(self.undo_point_action)
        toolbar.addAction(self.clear_current_action)
        toolbar.addAction(self.clear_all_action)
        toolbar.addSeparator()
        toolbar.addAction(self.export_action)

    def _create_menus(self) -> None:
        """Create the menu bar."""
        menubar = self.menuBar()

        file_menu = menubar.addMenu("File")
        file_menu.addAction(self.open_action)
        file_menu.addSeparator()
        file_menu.addAction(self.save_json_action)
        file_menu.addAction(self.load_json_action)
        file_menu.addAction(self.export_action)
        file_menu.addSeparator()

        exit_action = QAction("Exit", self)
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

        edit_menu = menubar.addMenu("Edit")
        edit_menu.addAction(self.undo_action)
        edit_menu.addAction(self.redo_action)
        edit_menu.addSeparator()
        edit_menu.addAction(self.complete_action)
        edit_menu.addAction(self.undo_point_action)
        edit_menu.addAction(self.clear_current_action)
        edit_menu.addAction(self.clear_all_action)

        mode_menu = menubar.addMenu("Mode")
        mode_menu.addActions(list(self.mode_actions.values()))

    def _setup_connections(self) -> None:
        """Set up signal/slot connections."""
        self.store.state_changed.connect(self._update_state)
        self.label_list.currentRowChanged.connect(self._select_label_row)

    # === Image ===

    def _open_image(self) -> None:
        """Ask for an image file and load it."""
        file_path, _ = QFileDialog.getOpenFileName(
            self, "Open Image", self.config.last_directory, IMAGE_FILTER
        )
        if file_path:
            self.open_image_path(Path(file_path))

    def open_image_path(self, path: Path) -> bool:
        """
        Decode and display an image.

        Args:
            path: Image file to open

        Returns:
            True if the image was loaded
        """
        reader = QImageReader(str(path))
        reader.setAutoTransform(True)
        image = reader.read()
        if image.isNull():
            logger.error(f"Failed to load image {path}: {reader.errorString()}")
            QMessageBox.warning(self, "Error", f"Failed to load image: {path.name}")
            return False

        self.current_image_path = path
        self.canvas.set_image(image)
        self.config_manager.update(last_directory=str(path.parent))
        self.file_label.setText(path.name)
        logger.info(f"Opened image {path} ({image.width()}x{image.height()})")
        return True

    def _require_image(self) -> Optional[QImage]:
        image = self.canvas.image()
        if image is None:
            QMessageBox.warning(self, "Warning", "No image loaded.")
        return image

    # === Export / Persistence ===

    def _export_image(self) -> None:
        """Save the image with annotations burned in."""
        image = self._require_image()
        if image is None:
            return

        fmt = self.config.export_image_format
        suffix = "jpg" if fmt.lower() in ("jpg", "jpeg") else "png"
        default_name = "annotated.png"
        if self.current_image_path is not None:
            default_name = f"{self.current_image_path.stem}_annotated.{suffix}"

        file_path, _ = QFileDialog.getSaveFileName(
            self, "Save Annotated Image",
            str(Path(self.config.last_directory) / default_name),
            "PNG (*.png);;JPEG (*.jpg *.jpeg)"
        )
        if not file_path:
            return

        path = Path(file_path)
        if path.suffix.lower() in (".jpg", ".jpeg"):
            fmt = "jpeg"
        elif path.suffix.lower() == ".png":
            fmt = "png"

        if export_image(image, self.store.annotations, path, fmt, self.config.jpeg_quality):
            self.statusBar().showMessage(f"Saved {path.name}", 3000)
        else:
            QMessageBox.critical(self, "Error", f"Failed to save image: {path.name}")

    def _save_json(self) -> None:
        """Save the annotations as JSON."""
        default_name = DEFAULT_DATA_FILE_NAME
        if self.current_image_path is not None:
            default_name = f"{self.current_image_path.stem}.json"

        file_path, _ = QFileDialog.getSaveFileName(
            self, "Save Annotations",
            str(Path(self.config.last_directory) / default_name),
            JSON_FILTER
        )
        if not file_path:
            return

        if save_annotations(Path(file_path), self.store.annotations):
            self.statusBar().showMessage(f"Saved {Path(file_path).name}", 3000)
        else:
            QMessageBox.critical(self, "Error", f"Failed to save annotations: {file_path}")

    def _load_json(self) -> None:
        """Replace the annotations with ones loaded from JSON."""
        if self._require_image() is None:
            return

        file_path, _ = QFileDialog.getOpenFileName(
            self, "Load Annotations", self.config.last_directory, JSON_FILTER
        )
        if not file_path:
            return

        try:
            annotations = read_annotations(Path(file_path))
        except (OSError, AnnotationFormatError) as e:
            logger.error(f"Failed to load annotations from {file_path}: {e}")
            QMessageBox.critical(self, "Error", f"Failed to load annotations: {e}")
            return

        self.store.clear_current()
        self.store.set_annotations(annotations)
        self._add_missing_labels()

    def _add_missing_labels(self) -> None:
        """Register labels used by loaded annotations."""
        added = False
        for annotation in self.store.annotations:
            if annotation.label not in self.labels:
                added = self.labels.add(annotation.label, annotation.color) or added
        if added:
            self._refresh_label_list()

    # === Labels ===

    def _refresh_label_list(self) -> None:
        """Rebuild the label list from the label set."""
        self.label_list.blockSignals(True)
        self.label_list.clear()
        for name in self.labels.names:
            self.label_list.addItem(QListWidgetItem(name))
            if name == self.labels.active_name:
                self.label_list.setCurrentRow(self.label_list.count() - 1)
        self.label_list.blockSignals(False)

    def _select_label_row(self, row: int) -> None:
        if 0 <= row < len(self.labels):
            self.labels.set_active(self.labels.names[row])

    def _add_label(self) -> None:
        """Add a new label."""
        name, ok = QInputDialog.getText(self, "Add Label", "Enter new label:")
        if ok and self.labels.add(name, self.config.default_annotation_color):
            self._refresh_label_list()

    def _rename_label_item(self, item: QListWidgetItem) -> None:
        """Rename a label and every annotation that uses it."""
        old_name = item.text()
        new_name, ok = QInputDialog.getText(
            self, "Rename Label", "Enter new label:", text=old_name
        )
        if not ok:
            return
        new_name = new_name.strip()
        if new_name == old_name:
            return

        self.store.rename_label(self.labels, old_name, new_name)
        if old_name in self.labels:
            QMessageBox.warning(self, "Warning", f"Cannot rename label to '{new_name}'.")
            return
        self._refresh_label_list()

    def _rename_selected_label(self) -> None:
        item = self.label_list.currentItem()
        if item is not None:
            self._rename_label_item(item)

    # === Editing ===

    def _set_mode(self, mode: AnnotationMode) -> None:
        """Switch annotation mode, discarding an unfinished polygon."""
        self.store.clear_current()
        self.store.set_mode(mode)

    def _complete_polygon(self) -> None:
        if not self.canvas.gestures.complete_polygon() and self.store.is_drawing:
            self.statusBar().showMessage("A polygon needs at least 3 points", 3000)

    def _clear_all(self) -> None:
        """Remove all annotations after confirmation."""
        if not self.store.annotations and not self.store.is_drawing:
            return
        confirm = QMessageBox.question(
            self, "Confirm Clear",
            "Remove all annotations?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No
        )
        if confirm == QMessageBox.StandardButton.Yes:
            self.store.clear_all()

    def _undo(self) -> None:
        """Undo the last action."""
        self.store.undo()

    def _redo(self) -> None:
        """Redo the last undone action."""
        self.store.redo()

    def _update_state(self) -> None:
        """Update action states and status text after a store change."""
        self.undo_action.setEnabled(self.store.can_undo())
        self.redo_action.setEnabled(self.store.can_redo())
        self.complete_action.setEnabled(self.store.is_drawing)
        self.undo_point_action.setEnabled(self.store.is_drawing)
        self.clear_current_action.setEnabled(self.store.is_drawing)

        for mode, action in self.mode_actions.items():
            action.setChecked(self.store.mode == mode)

        count = len(self.store.annotations)
        self.count_label.setText(f"{count} annotation{'s' if count != 1 else ''}")

    def closeEvent(self, event) -> None:
        """Handle window close."""
        self.config_manager.update(default_mode=self.store.mode.value)
        if self.config_manager.dirty:
            self.config_manager.save()
        super().closeEvent(event)
