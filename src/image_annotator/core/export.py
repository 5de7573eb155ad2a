"""JSON export and import of annotation data."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Sequence

from .models import (
    Annotation, AnnotationFormatError, AnnotationList,
    annotation_from_dict, annotation_to_dict
)

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE_NAME = "annotations.json"


def dump_annotations(annotations: Sequence[Annotation]) -> str:
    """
    Serialize annotations to pretty-printed JSON.

    The output is a JSON array of annotation objects:
    [
        {
            "type": "point",
            "label": "dog",
            "point": {"x": 100.0, "y": 100.0},
            "color": "rgba(239, 68, 68, 0.5)",
            "labelPosition": {"x": 120.0, "y": 80.0}
        },
        {
            "type": "polygon",
            "label": "car",
            "points": [{"x": 0.0, "y": 0.0}, ...],
            "color": "rgba(59, 130, 246, 0.5)"
        }
    ]
    """
    return json.dumps([annotation_to_dict(ann) for ann in annotations], indent=2)


def load_annotations(text: str) -> AnnotationList:
    """
    Parse annotations from JSON produced by dump_annotations.

    Raises:
        AnnotationFormatError: If the text is not a valid annotation list
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise AnnotationFormatError(f"Invalid JSON: {e}") from e

    if not isinstance(data, list):
        raise AnnotationFormatError("Annotation data must be a JSON array")

    return tuple(annotation_from_dict(item) for item in data)


def save_annotations(path: Path, annotations: Sequence[Annotation]) -> bool:
    """
    Write annotations to a JSON file.

    Args:
        path: Destination file
        annotations: Annotations to write

    Returns:
        True if the file was written
    """
    try:
        Path(path).write_text(dump_annotations(annotations), encoding="utf-8")
        logger.info(f"Saved {len(annotations)} annotations to {path}")
        return True
    except OSError as e:
        logger.error(f"Error saving annotations to {path}: {e}")
        return False


def read_annotations(path: Path) -> AnnotationList:
    """
    Read annotations from a JSON file.

    Raises:
        OSError: If the file cannot be read
        AnnotationFormatError: If the file content is malformed
    """
    annotations = load_annotations(Path(path).read_text(encoding="utf-8"))
    logger.info(f"Loaded {len(annotations)} annotations from {path}")
    return annotations
