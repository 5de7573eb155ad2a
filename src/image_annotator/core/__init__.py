"""Core annotation engine modules for Image Annotator."""

from .geometry import Point, Rect, point_in_polygon
from .models import (
    Annotation, AnnotationFormatError, AnnotationType, Label,
    PointAnnotation, PolygonAnnotation
)
from .history import History
from .labels import LabelSet
from .store import AnnotationMode, AnnotationStore
from .hit_test import Hit, HitTarget, HitTestResolver
from .gestures import GestureStateMachine, InputEvent, InputKind, InputSource, ViewTransform
from .config import AppConfig, ConfigManager

__all__ = [
    "Point",
    "Rect",
    "point_in_polygon",
    "Annotation",
    "AnnotationFormatError",
    "AnnotationType",
    "Label",
    "PointAnnotation",
    "PolygonAnnotation",
    "History",
    "LabelSet",
    "AnnotationMode",
    "AnnotationStore",
    "Hit",
    "HitTarget",
    "HitTestResolver",
    "GestureStateMachine",
    "InputEvent",
    "InputKind",
    "InputSource",
    "ViewTransform",
    "AppConfig",
    "ConfigManager",
]
