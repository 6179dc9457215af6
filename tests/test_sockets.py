import math

import pytest

from plateconfig.config import SocketRules
from plateconfig.geometry import Plate, SocketGroup, VERTICAL
from plateconfig.layout import compute_layout
from plateconfig.sockets import (
    SocketCapacityError,
    SocketPolicyError,
    add_group,
    boxes_conflict,
    clamp_to_plate,
    delete_group,
    enable_sockets,
    group_box,
    group_length,
    group_size,
    groups_conflict,
    max_socket_count,
    prune_orphans,
    resolve_collision,
    socket_centers_cm,
    socket_screen_coords,
    update_group,
    validate_group,
)

RULES = SocketRules()
PLATE = Plate("p", 100.0, 60.0)


def _group(gid="g", x=10.0, y=10.0, count=1, direction="horizontal", plate_id="p"):
    return SocketGroup(gid, plate_id, x, y, count, direction)


def test_group_length():
    assert group_length(1, RULES) == pytest.approx(7.0)
    assert group_length(3, RULES) == pytest.approx(21.4)


def test_group_size_follows_direction():
    assert group_size(_group(count=2), RULES) == pytest.approx((14.2, 7.0))
    assert group_size(_group(count=2, direction=VERTICAL), RULES) == pytest.approx((7.0, 14.2))


def test_socket_centers():
    centers = socket_centers_cm(_group(count=2), RULES)
    assert centers == [pytest.approx((13.5, 13.5)), pytest.approx((20.7, 13.5))]


def test_clamp_pulls_anchor_inside_the_clearance():
    assert clamp_to_plate(_group(), 0.0, 0.0, PLATE, RULES, 3.5) == (3.5, 3.5)
    x, y = clamp_to_plate(_group(), 500.0, 500.0, PLATE, RULES, 3.5)
    assert x == pytest.approx(100.0 - 7.0 - 3.5)
    assert y == pytest.approx(60.0 - 7.0 - 3.5)


def test_validate_rejects_left_edge():
    result = validate_group(_group(x=0.0), PLATE, [], RULES)
    assert not result
    assert "left edge" in result.message


def test_validate_rejects_right_edge():
    result = validate_group(_group(x=100.0 - 3.5 - 7.0 + 0.01), PLATE, [], RULES)
    assert not result
    assert "right edge" in result.message


def test_validate_accepts_exact_clearance():
    assert validate_group(_group(x=3.5, y=3.5), PLATE, [], RULES)


def test_spacing_between_groups():
    a = _group("a", x=10.0)
    assert groups_conflict(_group("b", x=20.9), a, RULES)
    assert not groups_conflict(_group("b", x=21.0), a, RULES)


def test_groups_on_different_plates_never_conflict():
    a = _group("a", x=10.0)
    b = _group("b", x=10.0, plate_id="other")
    assert not groups_conflict(a, b, RULES)


def test_boxes_conflict_needs_overlap_on_both_axes():
    assert not boxes_conflict((0, 0, 7, 7), (0, 20, 7, 27), 4.0)
    assert boxes_conflict((0, 0, 7, 7), (0, 10, 7, 17), 4.0)


def test_validate_reports_spacing():
    other = _group("other", x=20.0)
    result = validate_group(_group(x=12.0), PLATE, [other], RULES)
    assert not result
    assert "Distance" in result.message


@pytest.mark.parametrize("plate, expected", [
    (Plate("s", 30.0, 30.0), 3),
    (Plate("m", 45.0, 30.0), 5),
    (Plate("l", 250.0, 128.0), 5),
    (Plate("t", 20.0, 30.0), 3),
])
def test_max_socket_count(plate, expected):
    assert max_socket_count(plate, RULES) == expected


def test_resolve_pushes_along_the_smaller_axis():
    other = _group("other", x=20.0, y=20.0)
    moving = _group("moving")
    pos = resolve_collision(moving, 22.0, 21.0, PLATE, [other], RULES, 0.3)
    assert pos == pytest.approx((31.0, 21.0))
    assert pos == resolve_collision(moving, 22.0, 21.0, PLATE, [other], RULES, 0.3)


def test_resolve_falls_back_when_the_edge_blocks_the_push():
    other = _group("other", x=90.0, y=20.0)
    pos = resolve_collision(_group("moving"), 91.0, 20.0, PLATE, [other], RULES, 0.3)
    assert pos == pytest.approx((91.0, 31.0))
    assert not groups_conflict(_group("moving"), other, RULES, pos)


def test_resolve_without_siblings_only_clamps():
    pos = resolve_collision(_group(), -4.0, 200.0, PLATE, [], RULES, 0.3)
    assert pos == pytest.approx((0.3, 60.0 - 7.0 - 0.3))


def test_resolve_gives_up_when_no_room():
    small = Plate("p", 30.0, 30.0)
    blocker = _group("blocker", x=11.5, y=11.5)
    pos = resolve_collision(_group("moving"), 12.0, 12.0, small, [blocker], RULES, 3.5)
    assert pos is None


def test_socket_screen_coords():
    layout = compute_layout([PLATE], 1000, 600)
    coords = socket_screen_coords(layout, _group(count=2), RULES)
    assert [(c.x, c.y) for c in coords] == [pytest.approx((135.0, 465.0)), pytest.approx((207.0, 465.0))]
    assert coords[0].r == pytest.approx(35.0)
    assert coords[0].contains(150.0, 470.0)
    assert not coords[0].contains(171.0, 465.0)


def test_orphaned_groups_have_no_screen_coords():
    layout = compute_layout([PLATE], 1000, 600)
    assert socket_screen_coords(layout, _group(plate_id="gone"), RULES) == []
    assert prune_orphans([_group(plate_id="gone"), _group("kept")], [PLATE]) == [_group("kept")]


def test_enable_sockets_seeds_first_eligible_plate():
    plates = [Plate("tiny", 20.0, 30.0), PLATE]
    groups = enable_sockets([], plates, RULES, group_id="seed")
    assert groups == [SocketGroup("seed", "p", 3.5, 3.5)]


def test_enable_sockets_keeps_existing_groups():
    existing = [_group()]
    assert enable_sockets(existing, [PLATE], RULES) == existing


def test_enable_sockets_without_eligible_plate():
    with pytest.raises(SocketCapacityError):
        enable_sockets([], [Plate("tiny", 20.0, 30.0)], RULES)


def test_add_group_finds_the_next_free_anchor():
    plate = Plate("s", 30.0, 30.0)
    first = SocketGroup("first", "s", 3.5, 3.5)
    groups = add_group([first], [plate], RULES, group_id="second")
    added = groups[-1]
    assert added.id == "second"
    assert (added.x_cm, added.y_cm) == pytest.approx((14.5, 3.5))
    assert validate_group(added, plate, [first], RULES)


def test_add_group_reports_a_full_plate():
    plate = Plate("s", 30.0, 30.0)
    groups = [
        SocketGroup("a", "s", 3.5, 3.5, 3),
        SocketGroup("b", "s", 3.5, 14.5, 3),
    ]
    with pytest.raises(SocketCapacityError):
        add_group(groups, [plate], RULES)


def test_add_group_on_a_small_plate_is_rejected():
    plates = [Plate("tiny", 20.0, 30.0), PLATE]
    with pytest.raises(SocketPolicyError):
        add_group([], plates, RULES, plate_id="tiny")


def test_update_group_rejects_typed_edge_violation():
    groups = [_group(x=3.5, y=3.5)]
    with pytest.raises(SocketPolicyError):
        update_group(groups, [PLATE], _group(x=0.0, y=3.5), RULES)
    assert groups == [_group(x=3.5, y=3.5)]


def test_update_group_rejects_too_many_sockets():
    plate = Plate("s", 30.0, 30.0)
    groups = [SocketGroup("g", "s", 3.5, 3.5)]
    with pytest.raises(SocketCapacityError):
        update_group(groups, [plate], SocketGroup("g", "s", 3.5, 3.5, 4), RULES)


def test_update_group_replaces_nan_with_the_clearance():
    groups = [_group()]
    out = update_group(groups, [PLATE], _group(x=math.nan, y=20.0), RULES)
    assert (out[0].x_cm, out[0].y_cm) == (3.5, 20.0)


def test_update_group_can_move_to_another_plate():
    other = Plate("q", 40.0, 40.0)
    out = update_group([_group()], [PLATE, other], _group(plate_id="q"), RULES)
    assert out[0].plate_id == "q"


def test_delete_last_group_while_enabled():
    with pytest.raises(SocketPolicyError):
        delete_group([_group()], [PLATE], "g", enabled=True)
    assert delete_group([_group()], [PLATE], "g", enabled=False) == []
    assert delete_group([_group()], [PLATE], "missing", enabled=True) == [_group()]


def test_group_box():
    assert group_box(_group(count=2, direction=VERTICAL), RULES) == pytest.approx((10.0, 10.0, 17.0, 24.2))


def test_orphans_do_not_count_as_the_last_group():
    groups = [_group("orphan", plate_id="gone"), _group("live")]
    with pytest.raises(SocketPolicyError):
        delete_group(groups, [PLATE], "live", enabled=True)
    assert delete_group(groups, [PLATE], "orphan", enabled=True) == [_group("live")]


def test_validate_rejects_fractional_count():
    result = validate_group(_group(x=3.5, y=3.5, count=2.5), PLATE, [], RULES)
    assert not result
    assert "whole number" in result.message


def test_update_group_rejects_fractional_count():
    groups = [_group()]
    with pytest.raises(SocketCapacityError):
        update_group(groups, [PLATE], _group(count=2.5), RULES)
    assert groups == [_group()]


@pytest.mark.parametrize("changes", [
    {"x_cm": None},
    {"y_cm": "12"},
    {"count": "3"},
    {"count": True},
    {"plate_id": None},
])
def test_update_group_rejects_wrong_field_types(changes):
    fields = dict(gid="g", x=10.0, y=10.0, count=1, plate_id="p")
    renames = {"x_cm": "x", "y_cm": "y"}
    for key, value in changes.items():
        fields[renames.get(key, key)] = value
    with pytest.raises(SocketPolicyError):
        update_group([_group()], [PLATE], _group(**fields), RULES)


def test_add_group_rejects_fractional_count():
    with pytest.raises(SocketCapacityError):
        add_group([], [PLATE], RULES, count=1.5)
