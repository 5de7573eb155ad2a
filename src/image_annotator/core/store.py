"""Annotation store: committed annotations, draw buffer and history."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Hashable, List, Optional, Tuple

from PyQt6.QtCore import QObject, pyqtSignal

from .geometry import Point
from .history import History
from .labels import LabelSet
from .models import (
    Annotation, AnnotationList, Label, MIN_POLYGON_POINTS,
    create_point_annotation, create_polygon_annotation
)

logger = logging.getLogger(__name__)


class AnnotationMode(str, Enum):
    """What a click on empty canvas creates."""

    POINT = "point"
    POLYGON = "polygon"


class AnnotationStore(QObject):
    """
    Owner of the annotations of the currently loaded image.

    Committed annotations live in an undo/redo history of immutable
    snapshots; every mutation replaces the whole list. The in-progress
    polygon vertices live in a separate buffer outside the history.

    Emits state_changed whenever annotations, the draw buffer or the
    undo/redo availability change.
    """

    state_changed = pyqtSignal()

    def __init__(
        self,
        mode: AnnotationMode = AnnotationMode.POINT,
        max_history: Optional[int] = None
    ) -> None:
        """
        Initialize the store with an empty history.

        Args:
            mode: Initial annotation mode
            max_history: Maximum undo steps kept per image, or None
        """
        super().__init__()
        self._history: History[AnnotationList] = History((), max_history)
        self._current_points: List[Point] = []
        self._mode = AnnotationMode(mode)
        self.image_size: Optional[Tuple[int, int]] = None

    # === State Access ===

    @property
    def annotations(self) -> AnnotationList:
        return self._history.present

    @property
    def current_points(self) -> Tuple[Point, ...]:
        """Vertices of the polygon being drawn."""
        return tuple(self._current_points)

    @property
    def is_drawing(self) -> bool:
        return len(self._current_points) > 0

    @property
    def mode(self) -> AnnotationMode:
        return self._mode

    def set_mode(self, mode: AnnotationMode) -> None:
        """Switch between point and polygon mode."""
        self._mode = AnnotationMode(mode)
        self.state_changed.emit()

    @property
    def history(self) -> History[AnnotationList]:
        return self._history

    # === Lifecycle ===

    def load_image(self, width: int, height: int) -> None:
        """
        Start a fresh annotation session for a newly loaded image.

        Discards the previous image's history and draw buffer.
        """
        self.image_size = (width, height)
        self._history.reset(())
        self._current_points.clear()
        logger.info(f"Started annotation session for {width}x{height} image")
        self.state_changed.emit()

    # === Committed Annotations ===

    def set_annotations(
        self,
        annotations: AnnotationList,
        coalesce_key: Optional[Hashable] = None
    ) -> bool:
        """Commit a whole annotation list as one history entry."""
        changed = self._history.set_state(tuple(annotations), coalesce_key)
        if changed:
            self.state_changed.emit()
        return changed

    def add_annotation(self, annotation: Annotation) -> bool:
        """Append an annotation as one history entry."""
        return self.set_annotations(self.annotations + (annotation,))

    def update_annotation(
        self,
        index: int,
        annotation: Annotation,
        coalesce_key: Optional[Hashable] = None
    ) -> bool:
        """
        Replace the annotation at index.

        Stale indexes are ignored.

        Returns:
            True if the history changed
        """
        current = self.annotations
        if not 0 <= index < len(current):
            logger.debug(f"Ignored update of stale annotation index {index}")
            return False
        return self.set_annotations(
            current[:index] + (annotation,) + current[index + 1:],
            coalesce_key
        )

    def clear_all(self) -> bool:
        """Remove all annotations and discard the polygon in progress."""
        had_points = bool(self._current_points)
        self._current_points.clear()
        changed = self.set_annotations(())
        if had_points and not changed:
            self.state_changed.emit()
        return changed

    def rename_label(self, labels: LabelSet, old_name: str, new_name: str) -> bool:
        """
        Rename a label and rewrite every annotation tagged with it.

        The label set validates the new name first; a rejected rename
        leaves both the labels and the annotations untouched.

        Args:
            labels: Label set owning old_name
            old_name: Current label name
            new_name: Desired label name

        Returns:
            True if the annotation history changed
        """
        if not labels.rename(old_name, new_name):
            return False

        new_name = new_name.strip()
        return self.set_annotations(tuple(
            ann.relabelled(new_name) if ann.label == old_name else ann
            for ann in self.annotations
        ))

    def place_point(self, point: Point, label: Label) -> bool:
        """Commit a new point annotation at an image-space position."""
        return self.add_annotation(create_point_annotation(point, label))

    # === Polygon Draw Buffer ===

    def append_vertex(self, point: Point) -> None:
        """Add a vertex to the polygon being drawn."""
        self._current_points.append(point)
        self.state_changed.emit()

    def undo_last_point(self) -> bool:
        """Remove the most recent vertex of the polygon being drawn."""
        if not self._current_points:
            return False
        self._current_points.pop()
        self.state_changed.emit()
        return True

    def clear_current(self) -> None:
        """Discard the polygon being drawn."""
        if self._current_points:
            self._current_points.clear()
            self.state_changed.emit()

    def complete_polygon(self, label: Optional[Label]) -> bool:
        """
        Commit the polygon being drawn.

        Needs at least 3 vertices and a label; otherwise nothing changes
        and the buffer is kept.

        Returns:
            True if a polygon annotation was created
        """
        if len(self._current_points) < MIN_POLYGON_POINTS:
            logger.debug(
                f"Polygon needs {MIN_POLYGON_POINTS} points, have {len(self._current_points)}"
            )
            return False
        if label is None:
            logger.warning("Cannot complete polygon without an active label")
            return False

        polygon = create_polygon_annotation(list(self._current_points), label)
        self._current_points.clear()
        self.add_annotation(polygon)
        logger.debug(f"Completed polygon with {len(polygon.points)} points")
        return True

    # === Undo / Redo ===

    def undo(self) -> bool:
        """Undo the last committed change."""
        changed = self._history.undo()
        if changed:
            self.state_changed.emit()
        return changed

    def redo(self) -> bool:
        """Redo the last undone change."""
        changed = self._history.redo()
        if changed:
            self.state_changed.emit()
        return changed

    def can_undo(self) -> bool:
        return self._history.can_undo()

    def can_redo(self) -> bool:
        return self._history.can_redo()
