"""Canvas widget for placing and editing annotations on an image."""

from __future__ import annotations

import logging
from typing import Optional

from PyQt6.QtCore import QEvent, QPointF, Qt
from PyQt6.QtGui import QImage, QMouseEvent, QPainter, QTouchEvent
from PyQt6.QtWidgets import QSizePolicy, QWidget

from ..core.config import AppConfig
from ..core.geometry import Point
from ..core.gestures import (
    CURSOR_MOVE, GestureStateMachine, InputEvent, InputKind, InputSource,
    ViewTransform, fit_scale
)
from ..core.hit_test import HitTestResolver
from ..core.labels import LabelSet
from ..core.renderer import AnnotationRenderer, RenderStyle, qt_text_measurer
from ..core.store import AnnotationStore

logger = logging.getLogger(__name__)

BACKGROUND_COLOR = Qt.GlobalColor.darkGray


class AnnotationCanvas(QWidget):
    """
    Widget showing the image with its annotations.

    Mouse and touch events are reduced to toolkit-independent input
    events and handed to the gesture state machine. The image is scaled
    to fit the widget (never enlarged) and centered.
    """

    def __init__(
        self,
        store: AnnotationStore,
        labels: LabelSet,
        config: Optional[AppConfig] = None,
        parent: Optional[QWidget] = None
    ) -> None:
        """
        Initialize the canvas.

        Args:
            store: Annotation store to display and edit
            labels: Label set supplying the active label
            config: Application configuration
            parent: Parent widget
        """
        super().__init__(parent)
        config = config or AppConfig()

        self.store = store
        self.labels = labels
        self.padding = config.canvas_padding
        self._image: Optional[QImage] = None

        measure_text = qt_text_measurer()
        self._renderer = AnnotationRenderer(measure_text)
        self.gestures = GestureStateMachine(
            store,
            labels,
            HitTestResolver(measure_text=measure_text, hit_radius=config.point_hit_radius),
            coalesce_drag=config.coalesce_drag_history
        )

        self.store.state_changed.connect(self.update)

        self.setMouseTracking(True)
        self.setAttribute(Qt.WidgetAttribute.WA_AcceptTouchEvents, True)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.setCursor(Qt.CursorShape.CrossCursor)

    # === Image ===

    def image(self) -> Optional[QImage]:
        """Return the displayed image."""
        return self._image

    def set_image(self, image: QImage) -> None:
        """Display a new image and start a fresh annotation session."""
        self._image = image
        self.store.load_image(image.width(), image.height())
        self.gestures.leave()
        self._update_transform()
        self.update()

    @property
    def scale(self) -> float:
        return self.gestures.transform.scale

    def _update_transform(self) -> None:
        """Recompute the fit scale and centered origin."""
        if self._image is None or self._image.isNull():
            return

        scale = fit_scale(
            self.width(), self.height(),
            self._image.width(), self._image.height(),
            self.padding
        )
        origin = Point(
            (self.width() - self._image.width() * scale) / 2,
            (self.height() - self._image.height() * scale) / 2
        )
        self.gestures.set_transform(ViewTransform(origin, scale))
        logger.debug(f"Canvas scale set to {scale:.3f}")

    # === Painting ===

    def paintEvent(self, event) -> None:
        """Paint the image, annotations and polygon in progress."""
        painter = QPainter(self)
        painter.fillRect(self.rect(), BACKGROUND_COLOR)

        if self._image is None:
            painter.end()
            return

        transform = self.gestures.transform
        painter.translate(transform.origin.x, transform.origin.y)
        painter.scale(transform.scale, transform.scale)

        active = self.labels.active_label
        self._renderer.paint(
            painter,
            self._image,
            self.store.annotations,
            RenderStyle.for_screen(transform.scale),
            current_points=self.store.current_points,
            hover_point=self.gestures.hover_point,
            active_color=active.color if active else None
        )
        painter.end()

    def resizeEvent(self, event) -> None:
        """Refit the image when the widget is resized."""
        super().resizeEvent(event)
        self._update_transform()

    # === Input ===

    def _dispatch(self, kind: InputKind, pos: Optional[QPointF], source: InputSource) -> None:
        position = Point(pos.x(), pos.y()) if pos is not None else None
        if position is not None and not self._is_over_image(position):
            # The letterbox margin behaves like leaving the canvas
            kind, position = InputKind.LEAVE, None
        self.gestures.handle(InputEvent(kind, position, source))

        if self.gestures.cursor == CURSOR_MOVE:
            self.setCursor(Qt.CursorShape.SizeAllCursor)
        else:
            self.setCursor(Qt.CursorShape.CrossCursor)
        self.update()

    def _is_over_image(self, position: Point) -> bool:
        """Check whether a screen position lies on the displayed image."""
        if self._image is None:
            return False
        point = self.gestures.transform.to_image(position)
        return (0 <= point.x <= self._image.width()
                and 0 <= point.y <= self._image.height())

    def mousePressEvent(self, event: QMouseEvent) -> None:
        """Handle mouse press events."""
        if self._image is None:
            return
        if event.button() == Qt.MouseButton.RightButton:
            self.gestures.complete_polygon()
            return
        if event.button() == Qt.MouseButton.LeftButton:
            self._dispatch(InputKind.PRESS, event.position(), InputSource.POINTER)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        """Handle mouse move events."""
        if self._image is not None:
            self._dispatch(InputKind.MOVE, event.position(), InputSource.POINTER)

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        """Handle mouse release events."""
        if self._image is not None and event.button() == Qt.MouseButton.LeftButton:
            self._dispatch(InputKind.RELEASE, event.position(), InputSource.POINTER)

    def mouseDoubleClickEvent(self, event: QMouseEvent) -> None:
        """Handle double-click to finish a polygon."""
        if self._image is not None and event.button() == Qt.MouseButton.LeftButton:
            self._dispatch(InputKind.DOUBLE_CLICK, event.position(), InputSource.POINTER)

    def leaveEvent(self, event) -> None:
        """Cancel drags when the pointer leaves the canvas."""
        self._dispatch(InputKind.LEAVE, None, InputSource.POINTER)
        super().leaveEvent(event)

    def event(self, event: QEvent) -> bool:
        """Handle touch events alongside regular widget events."""
        touch_kinds = {
            QEvent.Type.TouchBegin: InputKind.PRESS,
            QEvent.Type.TouchUpdate: InputKind.MOVE,
            QEvent.Type.TouchEnd: InputKind.RELEASE,
            QEvent.Type.TouchCancel: InputKind.LEAVE,
        }
        kind = touch_kinds.get(event.type())
        if kind is not None:
            return self._handle_touch(event, kind)
        return super().event(event)

    def _handle_touch(self, event: QTouchEvent, kind: InputKind) -> bool:
        if self._image is None:
            return False

        points = event.points()
        if kind == InputKind.LEAVE or not points:
            self._dispatch(InputKind.LEAVE, None, InputSource.TOUCH)
        else:
            self._dispatch(kind, points[0].position(), InputSource.TOUCH)
        event.accept()
        return True
