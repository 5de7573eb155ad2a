"""Geometry primitives used for hit-testing and rendering."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

FILL_RULE_NONZERO = "nonzero"
FILL_RULE_EVENODD = "evenodd"

# Tolerance for treating a point as lying on a polygon edge
EDGE_EPSILON = 1e-9


@dataclass(frozen=True)
class Point:
    """A point in image-space coordinates."""

    x: float
    y: float

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)

    def translated(self, dx: float, dy: float) -> Point:
        """Return a copy of this point moved by (dx, dy)."""
        return Point(self.x + dx, self.y + dy)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle with its origin at the top-left corner."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def bottom_center(self) -> Point:
        return Point(self.x + self.width / 2, self.bottom)

    def contains(self, point: Point) -> bool:
        """Check if a point lies inside the rectangle, edges included."""
        return self.x <= point.x <= self.right and self.y <= point.y <= self.bottom


def distance(a: Point, b: Point) -> float:
    """Euclidean distance between two points."""
    return math.hypot(a.x - b.x, a.y - b.y)


def _on_segment(p: Point, a: Point, b: Point) -> bool:
    """Check if p lies on the closed segment a-b."""
    cross = (b.x - a.x) * (p.y - a.y) - (b.y - a.y) * (p.x - a.x)
    scale = max(abs(b.x - a.x), abs(b.y - a.y), 1.0)
    if abs(cross) > EDGE_EPSILON * scale:
        return False
    return (
        min(a.x, b.x) - EDGE_EPSILON <= p.x <= max(a.x, b.x) + EDGE_EPSILON and
        min(a.y, b.y) - EDGE_EPSILON <= p.y <= max(a.y, b.y) + EDGE_EPSILON
    )


def _is_left(a: Point, b: Point, p: Point) -> float:
    """Positive if p is left of the directed line a->b, negative if right."""
    return (b.x - a.x) * (p.y - a.y) - (p.x - a.x) * (b.y - a.y)


def winding_number(point: Point, vertices: Sequence[Point]) -> int:
    """
    Compute the winding number of a closed polygon around a point.

    The polygon is implicitly closed from the last vertex back to the first.
    """
    wn = 0
    count = len(vertices)
    for i in range(count):
        a = vertices[i]
        b = vertices[(i + 1) % count]
        if a.y <= point.y:
            if b.y > point.y and _is_left(a, b, point) > 0:
                wn += 1
        elif b.y <= point.y and _is_left(a, b, point) < 0:
            wn -= 1
    return wn


def crossing_count(point: Point, vertices: Sequence[Point]) -> int:
    """Count edges crossed by a ray cast from the point towards +x."""
    crossings = 0
    count = len(vertices)
    for i in range(count):
        a = vertices[i]
        b = vertices[(i + 1) % count]
        if (a.y > point.y) != (b.y > point.y):
            x_at_y = a.x + (point.y - a.y) * (b.x - a.x) / (b.y - a.y)
            if point.x < x_at_y:
                crossings += 1
    return crossings


def point_in_polygon(
    point: Point,
    vertices: Sequence[Point],
    fill_rule: str = FILL_RULE_NONZERO
) -> bool:
    """
    Test whether a point lies inside a polygon.

    Points exactly on an edge or a vertex are classified as inside.
    Self-intersecting polygons follow the given fill rule.

    Args:
        point: Point to test
        vertices: Polygon vertices, implicitly closed
        fill_rule: "nonzero" or "evenodd"

    Returns:
        True if the point is inside or on the boundary
    """
    count = len(vertices)
    if count < 3:
        return False

    for i in range(count):
        if _on_segment(point, vertices[i], vertices[(i + 1) % count]):
            return True

    if fill_rule == FILL_RULE_EVENODD:
        return crossing_count(point, vertices) % 2 == 1
    if fill_rule == FILL_RULE_NONZERO:
        return winding_number(point, vertices) != 0
    raise ValueError(f"Unknown fill rule: {fill_rule}")


def arrowhead(start: Point, end: Point, size: float) -> Tuple[Point, Point, Point]:
    """
    Compute the triangle of an arrowhead pointing at `end`.

    Each side is angled 30 degrees off the shaft.

    Returns:
        Tuple of (tip, left, right) vertices
    """
    angle = math.atan2(end.y - start.y, end.x - start.x)
    left = Point(
        end.x - size * math.cos(angle - math.pi / 6),
        end.y - size * math.sin(angle - math.pi / 6)
    )
    right = Point(
        end.x - size * math.cos(angle + math.pi / 6),
        end.y - size * math.sin(angle + math.pi / 6)
    )
    return (end, left, right)
