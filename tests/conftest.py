"""Pytest configuration and fixtures."""

import os
import pytest
import sys
from pathlib import Path

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Headless Qt for widget and painter tests
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(scope="session")
def qapp():
    """Create a QApplication for tests that need it."""
    from PyQt6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is None:
        app = QApplication([])

    yield app


@pytest.fixture
def temp_dir(tmp_path):
    """Provide a temporary directory for tests."""
    return tmp_path


@pytest.fixture
def labels():
    """Label set with "dog" active."""
    from image_annotator.core.labels import LabelSet

    label_set = LabelSet.from_names(["dog", "car", "cat"], "rgba(239, 68, 68, 0.5)")
    label_set.set_active("dog")
    return label_set


@pytest.fixture
def store(qapp):
    """Annotation store in point mode with an 800x600 image loaded."""
    from image_annotator.core.store import AnnotationStore

    annotation_store = AnnotationStore()
    annotation_store.load_image(800, 600)
    return annotation_store


@pytest.fixture
def sample_annotation_file(tmp_path):
    """Create a sample annotation JSON file."""
    json_path = tmp_path / "annotations.json"
    json_path.write_text(
        '[\n'
        '  {"type": "point", "label": "dog", "point": {"x": 100, "y": 100},\n'
        '   "color": "rgba(239, 68, 68, 0.5)", "labelPosition": {"x": 120, "y": 80}},\n'
        '  {"type": "polygon", "label": "car",\n'
        '   "points": [{"x": 0, "y": 0}, {"x": 10, "y": 0}, {"x": 10, "y": 10}],\n'
        '   "color": "rgba(59, 130, 246, 0.5)"}\n'
        ']\n'
    )
    return json_path
