"""Export of annotated images at full resolution."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from PyQt6.QtGui import QImage, QPainter

from .models import Annotation
from .renderer import AnnotationRenderer, RenderStyle

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("png", "jpeg")
DEFAULT_JPEG_QUALITY = 92


def render_annotated_image(image: QImage, annotations: Sequence[Annotation]) -> QImage:
    """
    Draw annotations onto a copy of the image at its native resolution.

    Marker and label sizes grow with image height so they stay legible
    on large images, independent of the on-screen zoom.

    Args:
        image: Source image
        annotations: Annotations in draw order

    Returns:
        New ARGB32 image with annotations burned in
    """
    result = QImage(image.size(), QImage.Format.Format_ARGB32_Premultiplied)
    result.fill(0)

    painter = QPainter(result)
    try:
        AnnotationRenderer().paint(
            painter, image, annotations, RenderStyle.for_export(image.height())
        )
    finally:
        painter.end()
    return result


def export_image(
    image: QImage,
    annotations: Sequence[Annotation],
    path: Path,
    fmt: str = "png",
    quality: int = DEFAULT_JPEG_QUALITY
) -> bool:
    """
    Render annotations onto the image and save it.

    Args:
        image: Source image
        annotations: Annotations to draw
        path: Destination file
        fmt: "png" or "jpeg"
        quality: JPEG quality (0-100), ignored for PNG

    Returns:
        True if the file was written
    """
    fmt = fmt.lower()
    if fmt == "jpg":
        fmt = "jpeg"
    if fmt not in SUPPORTED_FORMATS:
        logger.error(f"Unsupported export format: {fmt}")
        return False
    if image.isNull():
        logger.error("Cannot export an empty image")
        return False

    rendered = render_annotated_image(image, annotations)
    if fmt == "jpeg":
        rendered = rendered.convertToFormat(QImage.Format.Format_RGB32)
        saved = rendered.save(str(path), "JPEG", quality)
    else:
        saved = rendered.save(str(path), "PNG")

    if saved:
        logger.info(f"Exported annotated image to {path}")
    else:
        logger.error(f"Failed to write annotated image to {path}")
    return saved
