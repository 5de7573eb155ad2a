"""Tests for the gesture state machine."""

import pytest

from image_annotator.core.geometry import Point
from image_annotator.core.gestures import (
    CURSOR_CROSSHAIR,
    CURSOR_MOVE,
    GestureState,
    GestureStateMachine,
    InputEvent,
    InputKind,
    InputSource,
    ViewTransform,
    fit_scale,
)
from image_annotator.core.hit_test import HitTarget
from image_annotator.core.labels import LabelSet
from image_annotator.core.store import AnnotationMode


@pytest.fixture
def machine(store, labels):
    return GestureStateMachine(store, labels)


def click(machine, x, y, source=InputSource.POINTER):
    machine.handle(InputEvent(InputKind.PRESS, Point(x, y), source))
    machine.handle(InputEvent(InputKind.RELEASE, Point(x, y), source))


def drag(machine, start, end, source=InputSource.POINTER):
    machine.handle(InputEvent(InputKind.PRESS, start, source))
    machine.handle(InputEvent(InputKind.MOVE, end, source))
    machine.handle(InputEvent(InputKind.RELEASE, end, source))


class TestFitScale:
    """Tests for fit_scale."""

    def test_shrinks_large_image(self):
        """Test large images are scaled down to fit."""
        assert fit_scale(400, 600, 800, 600) == 0.5
        assert fit_scale(800, 150, 800, 600) == 0.25

    def test_never_enlarges(self):
        """Test small images are shown at 1:1."""
        assert fit_scale(2000, 2000, 800, 600) == 1.0

    def test_padding(self):
        """Test padding reduces the available area."""
        assert fit_scale(416, 316, 800, 600, padding=16) == 0.5


class TestViewTransform:
    """Tests for ViewTransform."""

    def test_round_trip(self):
        """Test screen and image mappings are inverses."""
        transform = ViewTransform(Point(10, 20), 0.5)

        assert transform.to_image(Point(60, 70)) == Point(100, 100)
        assert transform.to_screen(Point(100, 100)) == Point(60, 70)


class TestPointMode:
    """Tests for clicking and dragging in point mode."""

    def test_click_places_point(self, machine, store):
        """Test a click on empty canvas places a point with the active label."""
        click(machine, 100, 100)

        assert len(store.annotations) == 1
        ann = store.annotations[0]
        assert ann.label == "dog"
        assert ann.point == Point(100, 100)
        assert ann.label_position == Point(120, 80)

    def test_click_then_drag_point(self, machine, store):
        """Test placing a point and dragging it once gives two entries."""
        click(machine, 100, 100)
        drag(machine, Point(100, 100), Point(110, 105))

        ann = store.annotations[0]
        assert len(store.annotations) == 1
        assert ann.point == Point(110, 105)
        assert ann.label_position == Point(130, 85)
        assert store.history.undo_count == 2

    def test_press_release_on_shape_is_not_click(self, machine, store):
        """Test pressing an annotation without moving adds nothing."""
        click(machine, 100, 100)

        click(machine, 102, 100)

        assert len(store.annotations) == 1
        assert store.history.undo_count == 1

    def test_drag_label_moves_only_label(self, machine, store):
        """Test dragging a label box leaves the shape in place."""
        click(machine, 100, 100)

        drag(machine, Point(125, 75), Point(135, 65))

        ann = store.annotations[0]
        assert ann.point == Point(100, 100)
        assert ann.label_position == Point(130, 70)

    def test_each_move_is_one_entry(self, machine, store):
        """Test every drag move commits its own entry by default."""
        click(machine, 100, 100)

        machine.handle(InputEvent(InputKind.PRESS, Point(100, 100)))
        for x in (101, 102, 103):
            machine.handle(InputEvent(InputKind.MOVE, Point(x, 100)))
        machine.handle(InputEvent(InputKind.RELEASE, Point(103, 100)))

        assert store.history.undo_count == 4
        assert store.annotations[0].point == Point(103, 100)

    def test_coalesced_drag_is_one_entry(self, store, labels):
        """Test a whole drag merges into one entry when coalescing."""
        machine = GestureStateMachine(store, labels, coalesce_drag=True)
        click(machine, 100, 100)

        machine.handle(InputEvent(InputKind.PRESS, Point(100, 100)))
        for x in (101, 102, 103):
            machine.handle(InputEvent(InputKind.MOVE, Point(x, 100)))
        machine.handle(InputEvent(InputKind.RELEASE, Point(103, 100)))

        assert store.history.undo_count == 2
        store.undo()
        assert store.annotations[0].point == Point(100, 100)

    def test_separate_coalesced_drags(self, store, labels):
        """Test two drags stay two entries when coalescing."""
        machine = GestureStateMachine(store, labels, coalesce_drag=True)
        click(machine, 100, 100)

        drag(machine, Point(100, 100), Point(105, 100))
        drag(machine, Point(105, 100), Point(110, 100))

        assert store.history.undo_count == 3

    def test_no_active_label(self, store):
        """Test clicks do nothing without an active label."""
        machine = GestureStateMachine(store, LabelSet())

        click(machine, 100, 100)

        assert store.annotations == ()

    def test_drag_state(self, machine, store):
        """Test state while dragging shape and label."""
        click(machine, 100, 100)

        machine.handle(InputEvent(InputKind.PRESS, Point(100, 100)))
        assert machine.state == GestureState.DRAGGING_SHAPE
        assert machine.drag_session.index == 0
        assert machine.drag_session.target == HitTarget.SHAPE
        machine.handle(InputEvent(InputKind.RELEASE, Point(100, 100)))

        machine.handle(InputEvent(InputKind.PRESS, Point(125, 75)))
        assert machine.state == GestureState.DRAGGING_LABEL
        machine.handle(InputEvent(InputKind.RELEASE, Point(125, 75)))

        assert machine.state == GestureState.IDLE

    def test_leave_cancels_drag_without_rollback(self, machine, store):
        """Test leaving mid-drag keeps moves already committed."""
        click(machine, 100, 100)

        machine.handle(InputEvent(InputKind.PRESS, Point(100, 100)))
        machine.handle(InputEvent(InputKind.MOVE, Point(110, 100)))
        machine.handle(InputEvent(InputKind.LEAVE))

        assert machine.drag_session is None
        assert machine.hover_point is None
        assert machine.cursor == CURSOR_CROSSHAIR
        assert store.annotations[0].point == Point(110, 100)

    def test_stale_drag_index(self, machine, store):
        """Test a drag whose annotation disappeared is dropped."""
        click(machine, 100, 100)

        machine.handle(InputEvent(InputKind.PRESS, Point(100, 100)))
        store.clear_all()
        machine.handle(InputEvent(InputKind.MOVE, Point(120, 100)))

        assert machine.drag_session is None
        assert store.annotations == ()

    def test_touch_drag(self, machine, store):
        """Test touch input drags like the pointer."""
        click(machine, 100, 100, InputSource.TOUCH)

        drag(machine, Point(100, 100), Point(90, 90), InputSource.TOUCH)

        assert store.annotations[0].point == Point(90, 90)


class TestHover:
    """Tests for hover feedback."""

    def test_hover_cursor(self, machine):
        """Test the cursor shows a move affordance over annotations."""
        click(machine, 100, 100)

        machine.handle(InputEvent(InputKind.MOVE, Point(105, 100)))
        assert machine.cursor == CURSOR_MOVE

        machine.handle(InputEvent(InputKind.MOVE, Point(300, 300)))
        assert machine.cursor == CURSOR_CROSSHAIR

    def test_touch_does_not_hover(self, machine):
        """Test touch moves update the hover point but not the hover target."""
        click(machine, 100, 100)

        machine.handle(InputEvent(InputKind.MOVE, Point(105, 100), InputSource.TOUCH))

        assert machine.hover_point == Point(105, 100)
        assert machine.hover_target is None


class TestPolygonMode:
    """Tests for drawing polygons."""

    @pytest.fixture(autouse=True)
    def polygon_mode(self, store):
        store.set_mode(AnnotationMode.POLYGON)

    def test_clicks_then_double_click(self, machine, store):
        """Test three clicks and a double click commit one polygon."""
        click(machine, 0, 0)
        click(machine, 10, 0)
        click(machine, 10, 10)
        assert machine.state == GestureState.DRAWING_POLYGON
        assert not store.can_undo()

        machine.handle(InputEvent(InputKind.DOUBLE_CLICK, Point(10, 10)))
        machine.handle(InputEvent(InputKind.RELEASE, Point(10, 10)))

        assert len(store.annotations) == 1
        assert store.annotations[0].points == (Point(0, 0), Point(10, 0), Point(10, 10))
        assert store.annotations[0].label == "dog"
        assert store.current_points == ()
        assert store.history.undo_count == 1
        assert machine.state == GestureState.IDLE

    def test_release_after_double_click_does_not_add_vertex(self, machine, store):
        """Test the release closing a double click starts no new polygon."""
        click(machine, 0, 0)
        machine.handle(InputEvent(InputKind.DOUBLE_CLICK, Point(0, 0)))
        machine.handle(InputEvent(InputKind.RELEASE, Point(0, 0)))

        assert store.current_points == (Point(0, 0),)

        click(machine, 10, 0)
        assert store.current_points == (Point(0, 0), Point(10, 0))

    def test_double_click_with_too_few_points(self, machine, store):
        """Test a double click with fewer than 3 vertices keeps drawing."""
        click(machine, 0, 0)
        click(machine, 10, 0)

        machine.handle(InputEvent(InputKind.DOUBLE_CLICK, Point(10, 0)))

        assert store.annotations == ()
        assert len(store.current_points) == 2

    def test_complete_polygon_command(self, machine, store):
        """Test completing a polygon without a double click."""
        for x, y in ((0, 0), (10, 0), (10, 10)):
            click(machine, x, y)

        assert machine.complete_polygon()
        assert len(store.annotations) == 1

    def test_drag_polygon(self, machine, store):
        """Test dragging a committed polygon by its interior."""
        for x, y in ((0, 0), (100, 0), (100, 100)):
            click(machine, x, y)
        machine.complete_polygon()

        drag(machine, Point(80, 20), Point(90, 30))

        assert store.annotations[0].points == (Point(10, 10), Point(110, 10), Point(110, 110))
        assert store.current_points == ()


class TestTransform:
    """Tests for screen to image mapping."""

    def test_events_mapped_to_image_space(self, store, labels):
        """Test screen positions are converted through the view transform."""
        machine = GestureStateMachine(store, labels, transform=ViewTransform(Point(8, 8), 0.5))

        click(machine, 58, 58)

        assert store.annotations[0].point == Point(100, 100)

    def test_set_transform_updates_hit_scale(self, machine):
        """Test changing the transform rescales hit radii."""
        machine.set_transform(ViewTransform(Point(0, 0), 2.0))

        assert machine.resolver.scale == 2.0
