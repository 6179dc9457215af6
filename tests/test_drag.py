import pytest

from plateconfig.drag import DragController
from plateconfig.geometry import Plate, SocketGroup
from plateconfig.layout import compute_layout

PLATES = [Plate("p", 100.0, 60.0)]


@pytest.fixture
def layout():
    # 10 px per cm, plate fills the box
    return compute_layout(PLATES, 1000, 600)


def test_pointer_down_on_a_socket_starts_dragging(layout):
    drag = DragController()
    info = drag.pointer_down(layout, [SocketGroup("g", "p", 10.0, 10.0)], 135.0, 465.0)
    assert info is not None
    assert info.group_id == "g"
    assert (info.x_cm, info.y_cm) == (10.0, 10.0)
    assert (info.screen_offset_x, info.screen_offset_y) == pytest.approx((35.0, -35.0))
    assert drag.is_dragging


def test_pointer_down_outside_sockets_is_ignored(layout):
    drag = DragController()
    assert drag.pointer_down(layout, [SocketGroup("g", "p", 10.0, 10.0)], 500.0, 100.0) is None
    assert not drag.is_dragging


def test_most_recent_group_wins_the_hit_test(layout):
    groups = [SocketGroup("old", "p", 10.0, 10.0), SocketGroup("new", "p", 10.0, 10.0)]
    assert DragController().hit_test(layout, groups, 135.0, 465.0).id == "new"


def test_pointer_move_keeps_the_grab_offset(layout):
    drag = DragController()
    groups = [SocketGroup("g", "p", 10.0, 10.0)]
    drag.pointer_down(layout, groups, 135.0, 465.0)
    moved = drag.pointer_move(layout, PLATES, groups, 335.0, 465.0)
    assert (moved[0].x_cm, moved[0].y_cm) == pytest.approx((30.0, 10.0))
    assert (drag.info.x_cm, drag.info.y_cm) == pytest.approx((30.0, 10.0))
    # inputs are left untouched
    assert groups[0].x_cm == 10.0


def test_pointer_move_clamps_to_the_drag_clearance(layout):
    drag = DragController()
    groups = [SocketGroup("g", "p", 10.0, 10.0)]
    drag.pointer_down(layout, groups, 135.0, 465.0)
    moved = drag.pointer_move(layout, PLATES, groups, 5000.0, 5000.0)
    assert (moved[0].x_cm, moved[0].y_cm) == pytest.approx((100.0 - 7.0 - 0.3, 0.3))


def test_pointer_move_resolves_collisions(layout):
    drag = DragController()
    groups = [SocketGroup("a", "p", 10.0, 10.0), SocketGroup("b", "p", 40.0, 10.0)]
    drag.pointer_down(layout, groups, 135.0, 465.0)
    moved = drag.pointer_move(layout, PLATES, groups, 415.0, 465.0)
    assert (moved[0].x_cm, moved[0].y_cm) == pytest.approx((29.0, 10.0))
    assert moved[1] == groups[1]


def test_pointer_move_without_drag_changes_nothing(layout):
    groups = [SocketGroup("g", "p", 10.0, 10.0)]
    assert DragController().pointer_move(layout, PLATES, groups, 300.0, 300.0) == groups


def test_pointer_up_ends_the_drag(layout):
    drag = DragController()
    groups = [SocketGroup("g", "p", 10.0, 10.0)]
    drag.pointer_down(layout, groups, 135.0, 465.0)
    drag.pointer_move(layout, PLATES, groups, 335.0, 465.0)
    last = drag.pointer_up()
    assert last.x_cm == pytest.approx(30.0)
    assert drag.info is None
    assert drag.pointer_up() is None


def test_cancel_behaves_like_pointer_up(layout):
    drag = DragController()
    drag.pointer_down(layout, [SocketGroup("g", "p", 10.0, 10.0)], 135.0, 465.0)
    assert drag.cancel().group_id == "g"
    assert not drag.is_dragging


def test_only_one_drag_at_a_time(layout):
    drag = DragController()
    groups = [SocketGroup("a", "p", 10.0, 10.0), SocketGroup("b", "p", 40.0, 10.0)]
    drag.pointer_down(layout, groups, 135.0, 465.0)
    assert drag.pointer_down(layout, groups, 435.0, 465.0) is None
    assert drag.info.group_id == "a"
