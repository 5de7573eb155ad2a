"""Gesture state machine turning pointer and touch input into edits."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .geometry import Point
from .hit_test import Hit, HitTarget, HitTestResolver
from .labels import LabelSet
from .store import AnnotationMode, AnnotationStore

logger = logging.getLogger(__name__)

CURSOR_MOVE = "move"
CURSOR_CROSSHAIR = "crosshair"


class InputKind(str, Enum):
    """Toolkit-independent kinds of input events."""

    PRESS = "press"
    MOVE = "move"
    RELEASE = "release"
    DOUBLE_CLICK = "double_click"
    LEAVE = "leave"


class InputSource(str, Enum):
    """Device an input event came from."""

    POINTER = "pointer"
    TOUCH = "touch"


@dataclass(frozen=True)
class InputEvent:
    """
    A single input event in screen coordinates.

    Mouse and touch events are both reduced to one position. Leave events
    carry no position.
    """

    kind: InputKind
    position: Optional[Point] = None
    source: InputSource = InputSource.POINTER


@dataclass(frozen=True)
class ViewTransform:
    """Mapping between screen coordinates and image coordinates."""

    origin: Point = Point(0.0, 0.0)
    scale: float = 1.0

    def to_image(self, screen: Point) -> Point:
        """Transform a screen position to image coordinates."""
        return Point((screen.x - self.origin.x) / self.scale, (screen.y - self.origin.y) / self.scale)

    def to_screen(self, image: Point) -> Point:
        """Transform image coordinates to a screen position."""
        return Point(image.x * self.scale + self.origin.x, image.y * self.scale + self.origin.y)


def fit_scale(
    container_width: float,
    container_height: float,
    image_width: float,
    image_height: float,
    padding: float = 0.0
) -> float:
    """
    Compute the scale that fits an image inside a container.

    Images are shrunk to fit but never enlarged.

    Args:
        container_width: Container width in screen pixels
        container_height: Container height in screen pixels
        image_width: Image width in pixels
        image_height: Image height in pixels
        padding: Total padding subtracted from each container dimension

    Returns:
        Scale factor in (0, 1]
    """
    if image_width <= 0 or image_height <= 0:
        return 1.0
    available_width = max(container_width - padding, 1.0)
    available_height = max(container_height - padding, 1.0)
    return min(available_width / image_width, available_height / image_height, 1.0)


class GestureState(str, Enum):
    """Interaction state of the canvas."""

    IDLE = "idle"
    DRAGGING_SHAPE = "dragging_shape"
    DRAGGING_LABEL = "dragging_label"
    DRAWING_POLYGON = "drawing_polygon"


@dataclass
class DragSession:
    """An active drag of one annotation's shape or label."""

    index: int
    target: HitTarget
    last_point: Point
    session_id: int


class GestureStateMachine:
    """
    Interprets canvas input and applies the resulting edits to the store.

    Press on an annotation starts a drag; each move commits the moved
    annotation. A press and release without a drag session or movement is
    a click: it places a point or appends a polygon vertex depending on the
    store's mode. A double click completes the polygon being drawn.
    """

    def __init__(
        self,
        store: AnnotationStore,
        labels: LabelSet,
        resolver: Optional[HitTestResolver] = None,
        transform: ViewTransform = ViewTransform(),
        coalesce_drag: bool = False
    ) -> None:
        """
        Initialize the state machine.

        Args:
            store: Annotation store receiving edits
            labels: Label set supplying the active label
            resolver: Hit-test resolver, created with defaults if omitted
            transform: Initial screen to image transform
            coalesce_drag: Merge each drag session into one history entry
                instead of one entry per move event
        """
        self.store = store
        self.labels = labels
        self.resolver = resolver or HitTestResolver()
        self.transform = transform
        self.coalesce_drag = coalesce_drag

        self.hover_point: Optional[Point] = None
        self.hover_target: Optional[Hit] = None
        self._drag: Optional[DragSession] = None
        self._did_drag = False
        self._suppress_click = False
        self._session_ids = itertools.count(1)

        self.set_transform(transform)

    # === View ===

    def set_transform(self, transform: ViewTransform) -> None:
        """Update the view transform and keep hit radii screen-constant."""
        self.transform = transform
        self.resolver.scale = transform.scale

    # === State ===

    @property
    def state(self) -> GestureState:
        if self._drag is not None:
            if self._drag.target == HitTarget.LABEL:
                return GestureState.DRAGGING_LABEL
            return GestureState.DRAGGING_SHAPE
        if self.store.mode == AnnotationMode.POLYGON and self.store.is_drawing:
            return GestureState.DRAWING_POLYGON
        return GestureState.IDLE

    @property
    def drag_session(self) -> Optional[DragSession]:
        return self._drag

    @property
    def cursor(self) -> str:
        """Cursor affordance for the current hover or drag."""
        if self._drag is not None or self.hover_target is not None:
            return CURSOR_MOVE
        return CURSOR_CROSSHAIR

    # === Event Dispatch ===

    def handle(self, event: InputEvent) -> None:
        """Process one input event."""
        if event.kind == InputKind.LEAVE:
            self.leave()
            return

        if event.position is None:
            logger.debug(f"Ignored {event.kind.value} event without a position")
            return

        point = self.transform.to_image(event.position)
        if event.kind == InputKind.PRESS:
            self.press(point)
        elif event.kind == InputKind.MOVE:
            self.move(point, event.source)
        elif event.kind == InputKind.RELEASE:
            self.release(point)
        elif event.kind == InputKind.DOUBLE_CLICK:
            self.double_click()

    # === Transitions (image coordinates) ===

    def press(self, point: Point) -> None:
        """Start a drag if the press lands on a label or shape."""
        self._did_drag = False
        self._suppress_click = False

        hit = self.resolver.resolve(point, self.store.annotations)
        if hit is None:
            return

        self._drag = DragSession(hit.index, hit.target, point, next(self._session_ids))
        logger.debug(f"Started {hit.target.value} drag of annotation {hit.index}")

    def move(self, point: Point, source: InputSource = InputSource.POINTER) -> None:
        """Drag the grabbed target, or update hover state."""
        self.hover_point = point

        if self._drag is not None:
            self._drag_to(point)
        elif source == InputSource.POINTER:
            self.hover_target = self.resolver.resolve(point, self.store.annotations)

    def release(self, point: Point) -> None:
        """Finish a drag, or treat the press/release pair as a click."""
        if self._suppress_click:
            # Release that belongs to a double click
            self._suppress_click = False
        elif not self._did_drag and self._drag is None:
            self._click(point)

        self._drag = None

    def double_click(self) -> None:
        """Complete the polygon being drawn."""
        if self._drag is not None:
            return
        self._suppress_click = True
        self.complete_polygon()

    def complete_polygon(self) -> bool:
        """Commit the polygon being drawn with the active label."""
        if self._drag is not None:
            return False
        return self.store.complete_polygon(self.labels.active_label)

    def leave(self) -> None:
        """Cancel any drag without rolling back committed moves."""
        if self._drag is not None:
            logger.debug(f"Cancelled drag of annotation {self._drag.index}")
        self._drag = None
        self.hover_point = None
        self.hover_target = None

    # === Helpers ===

    def _drag_to(self, point: Point) -> None:
        drag = self._drag
        annotations = self.store.annotations
        if not 0 <= drag.index < len(annotations):
            logger.debug(f"Dropped drag of stale annotation index {drag.index}")
            self._drag = None
            return

        self._did_drag = True
        dx = point.x - drag.last_point.x
        dy = point.y - drag.last_point.y
        annotation = annotations[drag.index]

        if drag.target == HitTarget.LABEL:
            updated = annotation.with_label_position(
                annotation.effective_label_position.translated(dx, dy)
            )
        else:
            updated = annotation.translated(dx, dy)

        coalesce_key = ("drag", drag.session_id) if self.coalesce_drag else None
        self.store.update_annotation(drag.index, updated, coalesce_key)
        drag.last_point = point

    def _click(self, point: Point) -> None:
        if self.store.mode == AnnotationMode.POINT:
            label = self.labels.active_label
            if label is None:
                logger.warning("Ignored click: no active label")
                return
            self.store.place_point(point, label)
        else:
            self.store.append_vertex(point)
