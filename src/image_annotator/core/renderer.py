"""QPainter rendering of images, annotations and the polygon in progress."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from PyQt6.QtCore import QPointF, QRectF, Qt
from PyQt6.QtGui import QBrush, QColor, QFont, QFontMetricsF, QImage, QPainter, QPen, QPolygonF

from ..utils.colors import parse_color, solid_color
from .geometry import Point, arrowhead
from .hit_test import LabelBoxMetrics, TextMeasurer, label_box
from .models import Annotation, PointAnnotation, PolygonAnnotation

LABEL_BOX_FILL = QColor(40, 40, 40, 230)
LABEL_BOX_BORDER = QColor(10, 10, 10)
LABEL_TEXT_COLOR = QColor(255, 255, 255)
ARROW_COLOR = QColor(0, 0, 0)

FONT_FAMILY = "Sans Serif"

# Exported images grow their markers with resolution above this height
EXPORT_REFERENCE_HEIGHT = 720


def make_font(pixel_size: float, bold: bool = False) -> QFont:
    """Create the label font at an image-space pixel size."""
    font = QFont(FONT_FAMILY)
    font.setPixelSize(max(1, round(pixel_size)))
    font.setBold(bold)
    return font


def qt_text_measurer(bold: bool = False) -> TextMeasurer:
    """Return a text measurer backed by Qt font metrics."""

    def measure(text: str, pixel_size: float) -> float:
        return QFontMetricsF(make_font(pixel_size, bold)).horizontalAdvance(text)

    return measure


@dataclass(frozen=True)
class RenderStyle:
    """
    Marker and label sizes.

    Sizes are given in output pixels and divided by `scale` when drawn in
    image coordinates, so they keep a constant size on screen.
    """

    scale: float = 1.0
    point_radius: float = 6.0
    point_stroke_width: float = 2.0
    vertex_radius: float = 4.0
    outline_width: float = 2.0
    arrow_width: float = 2.0
    arrowhead_size: float = 8.0
    label_border_width: float = 1.0
    label_metrics: LabelBoxMetrics = LabelBoxMetrics()
    bold_labels: bool = False

    @classmethod
    def for_screen(cls, scale: float) -> RenderStyle:
        """Style for the interactive canvas at a given render scale."""
        return cls(scale=scale)

    @classmethod
    def for_export(cls, image_height: int) -> RenderStyle:
        """Style for full-resolution export, growing with image height."""
        factor = max(1.0, image_height / EXPORT_REFERENCE_HEIGHT)
        return cls(
            scale=1.0 / factor,
            point_radius=7.0,
            arrowhead_size=9.0,
            label_metrics=LabelBoxMetrics(font_size=18.0, horizontal_padding=10.0, box_height=24.0),
            bold_labels=True,
        )

    def size(self, value: float) -> float:
        """Convert an output pixel size to image coordinates."""
        return value / self.scale


class AnnotationRenderer:
    """
    Draws annotations with a QPainter set up in image coordinates.

    Draw order: base image, then every annotation (shape, label box and
    arrow), then the polygon in progress on top.
    """

    def __init__(self, measure_text: Optional[TextMeasurer] = None) -> None:
        self._measure_text = measure_text

    def paint(
        self,
        painter: QPainter,
        image: Optional[QImage],
        annotations: Sequence[Annotation],
        style: RenderStyle,
        current_points: Sequence[Point] = (),
        hover_point: Optional[Point] = None,
        active_color: Optional[str] = None
    ) -> None:
        """
        Paint a full frame.

        Args:
            painter: Painter already transformed to image coordinates
            image: Base image, drawn at the origin
            annotations: Committed annotations in draw order
            style: Marker and label sizes
            current_points: Vertices of the polygon being drawn
            hover_point: Cursor position for the live polygon segment
            active_color: Color of the active label
        """
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        if image is not None and not image.isNull():
            painter.drawImage(QPointF(0, 0), image)

        for annotation in annotations:
            self.draw_annotation(painter, annotation, style)

        if current_points:
            self.draw_current_polygon(
                painter, current_points, hover_point,
                active_color or "rgba(255, 255, 255, 0.7)", style
            )

    def draw_annotation(self, painter: QPainter, annotation: Annotation, style: RenderStyle) -> None:
        """Draw one annotation's shape followed by its label and arrow."""
        if isinstance(annotation, PolygonAnnotation):
            self._draw_polygon(painter, annotation)
        elif isinstance(annotation, PointAnnotation):
            self._draw_point(painter, annotation, style)
        else:
            raise TypeError(f"Unsupported annotation: {type(annotation).__name__}")

        self._draw_label(painter, annotation, style)

    def draw_current_polygon(
        self,
        painter: QPainter,
        points: Sequence[Point],
        hover_point: Optional[Point],
        color: str,
        style: RenderStyle
    ) -> None:
        """Draw the open outline, live segment and vertices of a polygon in progress."""
        stroke = solid_color(color)
        path = [QPointF(p.x, p.y) for p in points]
        if hover_point is not None:
            path.append(QPointF(hover_point.x, hover_point.y))

        painter.setPen(QPen(stroke, style.size(style.outline_width)))
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawPolyline(QPolygonF(path))

        radius = style.size(style.vertex_radius)
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(stroke)
        for p in points:
            painter.drawEllipse(QPointF(p.x, p.y), radius, radius)

    # === Drawing Helpers ===

    def _draw_polygon(self, painter: QPainter, annotation: PolygonAnnotation) -> None:
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QBrush(parse_color(annotation.color)))
        polygon = QPolygonF([QPointF(p.x, p.y) for p in annotation.points])
        painter.drawPolygon(polygon, Qt.FillRule.WindingFill)

    def _draw_point(self, painter: QPainter, annotation: PointAnnotation, style: RenderStyle) -> None:
        radius = style.size(style.point_radius)
        painter.setPen(QPen(solid_color(annotation.color), style.size(style.point_stroke_width)))
        painter.setBrush(QBrush(parse_color(annotation.color)))
        painter.drawEllipse(QPointF(annotation.point.x, annotation.point.y), radius, radius)

    def _draw_label(self, painter: QPainter, annotation: Annotation, style: RenderStyle) -> None:
        measure = self._measure_text or qt_text_measurer(style.bold_labels)
        box = label_box(annotation, style.scale, measure, style.label_metrics)
        rect = QRectF(box.x, box.y, box.width, box.height)

        painter.setPen(QPen(LABEL_BOX_BORDER, style.size(style.label_border_width)))
        painter.setBrush(LABEL_BOX_FILL)
        painter.drawRect(rect)

        padding = style.size(style.label_metrics.horizontal_padding)
        painter.setFont(make_font(style.size(style.label_metrics.font_size), style.bold_labels))
        painter.setPen(LABEL_TEXT_COLOR)
        painter.drawText(
            rect.adjusted(padding, 0, 0, 0),
            Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter,
            annotation.label
        )

        start = box.bottom_center
        end = annotation.anchor
        painter.setPen(QPen(ARROW_COLOR, style.size(style.arrow_width)))
        painter.drawLine(QPointF(start.x, start.y), QPointF(end.x, end.y))

        tip, left, right = arrowhead(start, end, style.size(style.arrowhead_size))
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(ARROW_COLOR)
        painter.drawPolygon(QPolygonF([QPointF(p.x, p.y) for p in (tip, left, right)]))
