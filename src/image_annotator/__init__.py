"""
Image Annotator - A desktop tool for point and polygon image annotation.

Built with PyQt6. Annotations are placed, dragged, relabelled and undone
on a canvas, then exported as JSON or burned into the image.
"""

__version__ = "1.0.0"
__author__ = "Image Annotator Team"
