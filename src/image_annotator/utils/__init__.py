"""Utility helpers for Image Annotator."""

from .colors import parse_color, solid_color

__all__ = [
    "parse_color",
    "solid_color",
]
