"""Tests for rendering and exporting annotated images."""

import pytest
from PyQt6.QtGui import QColor, QImage

from image_annotator.core.geometry import Point
from image_annotator.core.models import Label, create_point_annotation, create_polygon_annotation
from image_annotator.core.raster_export import export_image, render_annotated_image
from image_annotator.core.renderer import RenderStyle

RED = Label("dog", "rgba(255, 0, 0, 1)")


@pytest.fixture
def white_image(qapp):
    image = QImage(100, 50, QImage.Format.Format_RGB32)
    image.fill(QColor(255, 255, 255))
    return image


class TestRenderStyle:
    """Tests for RenderStyle sizing."""

    def test_screen_sizes_follow_scale(self):
        """Test screen markers keep a constant on-screen size."""
        style = RenderStyle.for_screen(0.5)

        assert style.size(style.point_radius) == 12

    def test_export_small_image(self):
        """Test images up to 720px tall use the base export sizes."""
        style = RenderStyle.for_export(500)

        assert style.size(style.point_radius) == 7
        assert style.size(style.label_metrics.box_height) == 24
        assert style.bold_labels

    def test_export_grows_with_height(self):
        """Test markers grow with image height."""
        style = RenderStyle.for_export(1440)

        assert style.size(style.point_radius) == pytest.approx(14)
        assert style.size(style.arrowhead_size) == pytest.approx(18)


class TestRenderAnnotatedImage:
    """Tests for render_annotated_image."""

    def test_same_size(self, white_image):
        """Test the rendered image keeps native resolution."""
        rendered = render_annotated_image(white_image, ())

        assert rendered.size() == white_image.size()
        assert rendered.pixelColor(10, 10) == QColor(255, 255, 255)

    def test_point_drawn(self, white_image):
        """Test a point marker is burned into the image."""
        ann = create_point_annotation(Point(50, 25), RED)

        rendered = render_annotated_image(white_image, [ann])

        # Inside the marker, away from the arrow coming from the upper right
        color = rendered.pixelColor(46, 28)
        assert color.red() > 200
        assert color.green() < 60
        assert color.blue() < 60

    def test_polygon_filled(self, qapp):
        """Test polygon interiors are filled with the annotation color."""
        image = QImage(200, 200, QImage.Format.Format_RGB32)
        image.fill(QColor(255, 255, 255))
        ann = create_polygon_annotation([Point(100, 100), Point(190, 100), Point(190, 190)], RED)

        rendered = render_annotated_image(image, [ann])

        color = rendered.pixelColor(170, 130)
        assert (color.red(), color.green(), color.blue()) == (255, 0, 0)

    def test_source_unchanged(self, white_image):
        """Test the source image is not painted on."""
        render_annotated_image(white_image, [create_point_annotation(Point(50, 25), RED)])

        assert white_image.pixelColor(50, 25) == QColor(255, 255, 255)


class TestExportImage:
    """Tests for export_image."""

    def test_export_png(self, white_image, temp_dir):
        """Test writing a PNG."""
        path = temp_dir / "out.png"

        assert export_image(white_image, [create_point_annotation(Point(50, 25), RED)], path)

        saved = QImage(str(path))
        assert saved.width() == 100
        assert saved.height() == 50

    def test_export_jpeg(self, white_image, temp_dir):
        """Test writing a JPEG with the jpg alias."""
        path = temp_dir / "out.jpg"

        assert export_image(white_image, [], path, fmt="jpg", quality=80)
        assert path.exists()

    def test_unsupported_format(self, white_image, temp_dir):
        """Test unknown formats are rejected."""
        assert not export_image(white_image, [], temp_dir / "out.bmp", fmt="bmp")

    def test_null_image(self, qapp, temp_dir):
        """Test an empty image cannot be exported."""
        assert not export_image(QImage(), [], temp_dir / "out.png")
