"""Data models for image annotations."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from .geometry import Point

# Offset of a label from its anchor when the user has not moved it
DEFAULT_LABEL_OFFSET = Point(20, -20)

MIN_POLYGON_POINTS = 3


class AnnotationType(str, Enum):
    """Type of annotation shape."""

    POINT = "point"
    POLYGON = "polygon"


class AnnotationFormatError(ValueError):
    """Raised when serialized annotation data cannot be decoded."""


@dataclass(frozen=True)
class Label:
    """A named label and the color annotations inherit from it."""

    name: str
    color: str


@dataclass(frozen=True)
class PointAnnotation:
    """A single labelled point."""

    label: str
    point: Point
    color: str
    label_position: Optional[Point] = None

    @property
    def type(self) -> AnnotationType:
        return AnnotationType.POINT

    @property
    def anchor(self) -> Point:
        """Point the label arrow is drawn to."""
        return self.point

    @property
    def default_label_position(self) -> Point:
        return self.anchor + DEFAULT_LABEL_OFFSET

    @property
    def effective_label_position(self) -> Point:
        """Explicit label position, or the default one next to the anchor."""
        return self.label_position or self.default_label_position

    def translated(self, dx: float, dy: float) -> PointAnnotation:
        """Move the point and its label by the same delta."""
        return replace(
            self,
            point=self.point.translated(dx, dy),
            label_position=self.effective_label_position.translated(dx, dy)
        )

    def with_label_position(self, position: Point) -> PointAnnotation:
        return replace(self, label_position=position)

    def relabelled(self, label: str) -> PointAnnotation:
        return replace(self, label=label)


@dataclass(frozen=True)
class PolygonAnnotation:
    """
    A labelled closed polygon.

    Vertices are stored open (the last vertex is not repeated); the
    closing edge from the last vertex back to the first is implicit.
    """

    label: str
    points: Tuple[Point, ...]
    color: str
    label_position: Optional[Point] = None

    def __post_init__(self) -> None:
        """Normalize vertices to a tuple so equality is structural."""
        if not isinstance(self.points, tuple):
            object.__setattr__(self, "points", tuple(self.points))

    @property
    def type(self) -> AnnotationType:
        return AnnotationType.POLYGON

    @property
    def anchor(self) -> Point:
        """Point the label arrow is drawn to (first vertex)."""
        return self.points[0]

    @property
    def default_label_position(self) -> Point:
        return self.anchor + DEFAULT_LABEL_OFFSET

    @property
    def effective_label_position(self) -> Point:
        """Explicit label position, or the default one next to the anchor."""
        return self.label_position or self.default_label_position

    def translated(self, dx: float, dy: float) -> PolygonAnnotation:
        """Move every vertex and the label by the same delta."""
        return replace(
            self,
            points=tuple(p.translated(dx, dy) for p in self.points),
            label_position=self.effective_label_position.translated(dx, dy)
        )

    def with_label_position(self, position: Point) -> PolygonAnnotation:
        return replace(self, label_position=position)

    def relabelled(self, label: str) -> PolygonAnnotation:
        return replace(self, label=label)


Annotation = Union[PointAnnotation, PolygonAnnotation]
AnnotationList = Tuple[Annotation, ...]


def create_point_annotation(point: Point, label: Label) -> PointAnnotation:
    """Create a point annotation with its label at the default offset."""
    return PointAnnotation(
        label=label.name,
        point=point,
        color=label.color,
        label_position=point + DEFAULT_LABEL_OFFSET
    )


def create_polygon_annotation(points: List[Point], label: Label) -> PolygonAnnotation:
    """
    Create a polygon annotation from a snapshot of drawn vertices.

    Args:
        points: Polygon vertices in drawing order
        label: Label to tag the polygon with

    Returns:
        New PolygonAnnotation

    Raises:
        ValueError: If fewer than 3 vertices are given
    """
    if len(points) < MIN_POLYGON_POINTS:
        raise ValueError(
            f"Polygon needs at least {MIN_POLYGON_POINTS} points, got {len(points)}"
        )
    return PolygonAnnotation(
        label=label.name,
        points=tuple(points),
        color=label.color,
        label_position=points[0] + DEFAULT_LABEL_OFFSET
    )


# === Serialization ===

def _point_to_dict(point: Point) -> Dict[str, float]:
    return {"x": point.x, "y": point.y}


def _point_from_dict(data: Any) -> Point:
    try:
        return Point(float(data["x"]), float(data["y"]))
    except (KeyError, TypeError, ValueError) as e:
        raise AnnotationFormatError(f"Invalid point: {data!r}") from e


def annotation_to_dict(annotation: Annotation) -> Dict[str, Any]:
    """Convert an annotation to its JSON interchange dictionary."""
    data: Dict[str, Any] = {
        "type": annotation.type.value,
        "label": annotation.label,
    }
    if isinstance(annotation, PointAnnotation):
        data["point"] = _point_to_dict(annotation.point)
    else:
        data["points"] = [_point_to_dict(p) for p in annotation.points]
    data["color"] = annotation.color
    if annotation.label_position is not None:
        data["labelPosition"] = _point_to_dict(annotation.label_position)
    return data


def annotation_from_dict(data: Dict[str, Any]) -> Annotation:
    """
    Create an annotation from its JSON interchange dictionary.

    Raises:
        AnnotationFormatError: If the dictionary is malformed
    """
    if not isinstance(data, dict):
        raise AnnotationFormatError(f"Annotation must be an object, got {type(data).__name__}")

    try:
        annotation_type = AnnotationType(data.get("type"))
    except ValueError as e:
        raise AnnotationFormatError(f"Unknown annotation type: {data.get('type')!r}") from e

    label = data.get("label")
    color = data.get("color")
    if not isinstance(label, str) or not isinstance(color, str):
        raise AnnotationFormatError("Annotation needs string 'label' and 'color' fields")

    label_position = None
    if data.get("labelPosition") is not None:
        label_position = _point_from_dict(data["labelPosition"])

    if annotation_type == AnnotationType.POINT:
        return PointAnnotation(
            label=label,
            point=_point_from_dict(data.get("point")),
            color=color,
            label_position=label_position
        )

    raw_points = data.get("points")
    if not isinstance(raw_points, list):
        raise AnnotationFormatError("Polygon annotation needs a 'points' list")
    points = tuple(_point_from_dict(p) for p in raw_points)
    if len(points) < MIN_POLYGON_POINTS:
        raise AnnotationFormatError(
            f"Polygon needs at least {MIN_POLYGON_POINTS} points, got {len(points)}"
        )
    return PolygonAnnotation(
        label=label,
        points=points,
        color=color,
        label_position=label_position
    )
