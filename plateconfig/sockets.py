"""Socket group geometry, edge clearance and collision handling.

Groups are described by the anchor of their first socket (lower-left corner,
in cm from the plate's lower-left corner), a socket count and a direction.
Typed edits are validated and rejected when they break a rule; dragging
auto-resolves instead (see :func:`resolve_collision`).
"""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .config import SocketRules
from .geometry import (
    HORIZONTAL,
    DIRECTIONS,
    XY,
    DraggingInfo,
    Plate,
    SocketGroup,
    effective_position,
    new_id,
)
from .layout import Layout
from .transform import cm_to_screen

TOL = 1e-9
BoxCm = Tuple[float, float, float, float]

MSG_NO_ELIGIBLE_PLATE = "No eligible plate (at least 30 x 30 cm) available"
MSG_LAST_GROUP = "At least one socket is required"
MSG_GROUP_SPACING = "Distance to another socket group is too small"
MSG_PLATE_TOO_SMALL = "This plate is smaller than 30 x 30 cm and cannot hold sockets"
MSG_NO_ROOM = "No room left for another socket group"


class SocketError(ValueError):
    """Base class for rejected socket edits."""


class SocketPolicyError(SocketError):
    """An edit breaks the edge or spacing rules."""


class SocketCapacityError(SocketError):
    """More sockets were requested than the plates can hold."""


@dataclass(frozen=True)
class Validation:
    ok: bool
    message: str = ""

    def __bool__(self) -> bool:
        return self.ok


@dataclass(frozen=True)
class SocketScreen:
    """Socket center and radius in surface pixels."""

    x: float
    y: float
    r: float

    def contains(self, px: float, py: float) -> bool:
        return math.hypot(px - self.x, py - self.y) <= self.r


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_count(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_count_type(count: object) -> None:
    if not _is_number(count):
        raise SocketPolicyError("Socket count must be a number")
    if not _is_count(count):
        raise SocketCapacityError("Socket count must be a whole number")


# ---------------------------------------------------------------------------
# Shape
# ---------------------------------------------------------------------------


def group_length(count: int, rules: SocketRules) -> float:
    """Length of a group along its own direction."""
    return rules.diameter_cm * count + rules.gap_cm * (count - 1)


def group_size(group: SocketGroup, rules: SocketRules) -> XY:
    length = group_length(group.count, rules)
    if group.direction == HORIZONTAL:
        return length, rules.diameter_cm
    return rules.diameter_cm, length


def socket_offsets(group: SocketGroup, rules: SocketRules) -> List[XY]:
    step = rules.step_cm
    if group.direction == HORIZONTAL:
        return [(i * step, 0.0) for i in range(group.count)]
    return [(0.0, i * step) for i in range(group.count)]


def socket_centers_cm(group: SocketGroup, rules: SocketRules,
                      position: Optional[XY] = None) -> List[XY]:
    x, y = position if position is not None else (group.x_cm, group.y_cm)
    radius = rules.diameter_cm / 2.0
    return [(x + dx + radius, y + dy + radius) for dx, dy in socket_offsets(group, rules)]


def group_box(group: SocketGroup, rules: SocketRules, position: Optional[XY] = None) -> BoxCm:
    x, y = position if position is not None else (group.x_cm, group.y_cm)
    w, h = group_size(group, rules)
    return x, y, x + w, y + h


# ---------------------------------------------------------------------------
# Plate capacity
# ---------------------------------------------------------------------------


def is_eligible_plate(plate: Plate, rules: SocketRules) -> bool:
    return plate.width_cm >= rules.min_plate_cm and plate.height_cm >= rules.min_plate_cm


def max_socket_count(plate: Plate, rules: SocketRules, clearance: Optional[float] = None) -> int:
    """Largest count offered for ``plate``, along whichever axis has more room."""
    c = rules.edge_clearance_cm if clearance is None else clearance

    def fit(dimension: float) -> int:
        return int(math.floor((dimension - 2 * c + rules.gap_cm) / rules.step_cm))

    return max(0, min(rules.max_count, max(fit(plate.width_cm), fit(plate.height_cm))))


# ---------------------------------------------------------------------------
# Constraints
# ---------------------------------------------------------------------------


def clamp_to_plate(group: SocketGroup, x_cm: float, y_cm: float, plate: Plate,
                   rules: SocketRules, clearance: float) -> XY:
    """Pull an anchor inside ``[clearance, dimension - clearance]`` on both axes.

    When the group is longer than the usable span the anchor is pinned to the
    lower bound.
    """
    w, h = group_size(group, rules)
    x = min(max(clearance, x_cm), plate.width_cm - w - clearance)
    y = min(max(clearance, y_cm), plate.height_cm - h - clearance)
    return max(clearance, x), max(clearance, y)


def boxes_conflict(a: BoxCm, b: BoxCm, spacing: float) -> bool:
    """True when the boxes, each grown by ``spacing / 2``, overlap on both axes."""
    overlap_x = a[0] < b[2] + spacing - TOL and b[0] < a[2] + spacing - TOL
    overlap_y = a[1] < b[3] + spacing - TOL and b[1] < a[3] + spacing - TOL
    return overlap_x and overlap_y


def groups_conflict(a: SocketGroup, b: SocketGroup, rules: SocketRules,
                    a_position: Optional[XY] = None) -> bool:
    if a.plate_id != b.plate_id or a.id == b.id:
        return False
    return boxes_conflict(group_box(a, rules, a_position), group_box(b, rules), rules.group_spacing_cm)


def siblings_of(group: SocketGroup, groups: Iterable[SocketGroup]) -> List[SocketGroup]:
    return [g for g in groups if g.plate_id == group.plate_id and g.id != group.id]


def _edge_violation(group: SocketGroup, plate: Plate, rules: SocketRules,
                    clearance: float) -> Optional[str]:
    x0, y0, x1, y1 = group_box(group, rules)
    if x0 < clearance - TOL:
        return f"Distance from the left edge must be at least {clearance:g} cm"
    if x1 > plate.width_cm - clearance + TOL:
        return "Sockets are too close to the right edge"
    if y0 < clearance - TOL:
        return f"Distance from the bottom edge must be at least {clearance:g} cm"
    if y1 > plate.height_cm - clearance + TOL:
        return "Sockets are too close to the top edge"
    return None


def validate_group(group: SocketGroup, plate: Plate, siblings: Sequence[SocketGroup],
                   rules: SocketRules, clearance: Optional[float] = None) -> Validation:
    """Check a committed position against plate size, edges and siblings."""
    c = rules.edge_clearance_cm if clearance is None else clearance
    if group.direction not in DIRECTIONS:
        return Validation(False, f"Unsupported direction: {group.direction}")
    if not _is_count(group.count):
        return Validation(False, "Socket count must be a whole number")
    if not 1 <= group.count <= rules.max_count:
        return Validation(False, f"Socket count must be between 1 and {rules.max_count}")
    if not is_eligible_plate(plate, rules):
        return Validation(False, MSG_PLATE_TOO_SMALL)
    if group.count > max_socket_count(plate, rules, c):
        return Validation(False, f"At most {max_socket_count(plate, rules, c)} sockets fit on this plate")
    message = _edge_violation(group, plate, rules, c)
    if message:
        return Validation(False, message)
    for other in siblings:
        if groups_conflict(group, other, rules):
            return Validation(False, MSG_GROUP_SPACING)
    return Validation(True)


# ---------------------------------------------------------------------------
# Interactive resolution
# ---------------------------------------------------------------------------


def _push_candidates(moving: BoxCm, other: BoxCm, spacing: float) -> List[XY]:
    """Displacements that clear ``other``: away-directions first, smallest first."""
    left = (other[0] - spacing) - moving[2]
    right = (other[2] + spacing) - moving[0]
    down = (other[1] - spacing) - moving[3]
    up = (other[3] + spacing) - moving[1]

    cx = (moving[0] + moving[2]) / 2.0
    ocx = (other[0] + other[2]) / 2.0
    cy = (moving[1] + moving[3]) / 2.0
    ocy = (other[1] + other[3]) / 2.0

    away_x, back_x = (left, right) if cx < ocx else (right, left)
    away_y, back_y = (down, up) if cy < ocy else (up, down)

    away = sorted([((away_x, 0.0), 0), ((0.0, away_y), 1)], key=lambda c: (abs(sum(c[0])), c[1]))
    back = sorted([((back_x, 0.0), 0), ((0.0, back_y), 1)], key=lambda c: (abs(sum(c[0])), c[1]))
    return [d for d, _ in away] + [d for d, _ in back]


def resolve_collision(group: SocketGroup, x_cm: float, y_cm: float, plate: Plate,
                      siblings: Sequence[SocketGroup], rules: SocketRules,
                      clearance: float) -> Optional[XY]:
    """Move a dragged group off its siblings and back inside the plate.

    Each conflicting sibling, in list order, pushes the group along the axis
    needing the smaller displacement, then the position is re-clamped. Returns
    ``None`` if no conflict-free position is reached.
    """
    pos = clamp_to_plate(group, x_cm, y_cm, plate, rules, clearance)
    spacing = rules.group_spacing_cm
    for _ in range(len(siblings) + 1):
        offending = next((o for o in siblings if groups_conflict(group, o, rules, pos)), None)
        if offending is None:
            return pos
        moving = group_box(group, rules, pos)
        other = group_box(offending, rules)
        for dx, dy in _push_candidates(moving, other, spacing):
            candidate = clamp_to_plate(group, pos[0] + dx, pos[1] + dy, plate, rules, clearance)
            if not groups_conflict(group, offending, rules, candidate):
                pos = candidate
                break
        else:
            return None
    if any(groups_conflict(group, o, rules, pos) for o in siblings):
        return None
    return pos


# ---------------------------------------------------------------------------
# Screen geometry
# ---------------------------------------------------------------------------


def socket_screen_coords(layout: Layout, group: SocketGroup, rules: SocketRules,
                         dragging: Optional[DraggingInfo] = None) -> List[SocketScreen]:
    """Pixel centers and radius of every socket of ``group``; empty for orphans."""
    meta = layout.meta_for(group.plate_id)
    if meta is None:
        return []
    position = effective_position(group, dragging)
    radius = rules.diameter_cm / 2.0 * meta.scale
    coords: List[SocketScreen] = []
    for cx, cy in socket_centers_cm(group, rules, position):
        point = cm_to_screen(layout, group.plate_id, cx, cy)
        if point is not None:
            coords.append(SocketScreen(point[0], point[1], radius))
    return coords


# ---------------------------------------------------------------------------
# Group list operations
# ---------------------------------------------------------------------------


def prune_orphans(groups: Iterable[SocketGroup], plates: Iterable[Plate]) -> List[SocketGroup]:
    ids = {p.id for p in plates}
    return [g for g in groups if g.plate_id in ids]


def _plates_by_id(plates: Iterable[Plate]) -> Dict[str, Plate]:
    return {p.id: p for p in plates}


def find_free_anchor(group: SocketGroup, plate: Plate, siblings: Sequence[SocketGroup],
                     rules: SocketRules, clearance: Optional[float] = None,
                     step_cm: float = 1.0) -> Optional[XY]:
    """First valid anchor scanning rows bottom-up, left to right."""
    c = rules.edge_clearance_cm if clearance is None else clearance
    w, h = group_size(group, rules)
    y = c
    while y + h <= plate.height_cm - c + TOL:
        x = c
        while x + w <= plate.width_cm - c + TOL:
            candidate = replace(group, plate_id=plate.id, x_cm=x, y_cm=y)
            if validate_group(candidate, plate, siblings, rules, c):
                return x, y
            x += step_cm
        y += step_cm
    return None


def enable_sockets(groups: Sequence[SocketGroup], plates: Sequence[Plate],
                   rules: SocketRules, *, group_id: Optional[str] = None) -> List[SocketGroup]:
    """Groups to use once sockets are switched on; seeds a default group."""
    live = prune_orphans(groups, plates)
    if live:
        return list(groups)
    plate = next((p for p in plates if is_eligible_plate(p, rules)), None)
    if plate is None:
        raise SocketCapacityError(MSG_NO_ELIGIBLE_PLATE)
    c = rules.edge_clearance_cm
    return [SocketGroup(id=group_id or new_id(), plate_id=plate.id, x_cm=c, y_cm=c)]


def add_group(groups: Sequence[SocketGroup], plates: Sequence[Plate], rules: SocketRules, *,
              plate_id: Optional[str] = None, count: int = 1, direction: str = HORIZONTAL,
              group_id: Optional[str] = None) -> List[SocketGroup]:
    eligible = [p for p in plates if is_eligible_plate(p, rules)]
    if not eligible:
        raise SocketCapacityError(MSG_NO_ELIGIBLE_PLATE)
    if plate_id is not None:
        eligible = [p for p in eligible if p.id == plate_id]
        if not eligible:
            raise SocketPolicyError(MSG_PLATE_TOO_SMALL)
    _check_count_type(count)
    if direction not in DIRECTIONS:
        raise SocketPolicyError(f"Unsupported direction: {direction}")
    if not 1 <= count <= rules.max_count:
        raise SocketCapacityError(f"Socket count must be between 1 and {rules.max_count}")

    template = SocketGroup(id=group_id or new_id(), plate_id=eligible[0].id,
                           x_cm=0.0, y_cm=0.0, count=count, direction=direction)
    for plate in eligible:
        if count > max_socket_count(plate, rules):
            continue
        siblings = [g for g in groups if g.plate_id == plate.id]
        anchor = find_free_anchor(replace(template, plate_id=plate.id), plate, siblings, rules)
        if anchor is not None:
            placed = replace(template, plate_id=plate.id, x_cm=anchor[0], y_cm=anchor[1])
            return list(groups) + [placed]
    raise SocketCapacityError(MSG_NO_ROOM)


def update_group(groups: Sequence[SocketGroup], plates: Sequence[Plate],
                 updated: SocketGroup, rules: SocketRules) -> List[SocketGroup]:
    """Replace a group after validating the typed edit; raise instead of fixing it."""
    index = next((i for i, g in enumerate(groups) if g.id == updated.id), None)
    if index is None:
        raise SocketPolicyError(f"Unknown socket group: {updated.id}")
    if not isinstance(updated.plate_id, str):
        raise SocketPolicyError("Plate id must be a string")
    if not _is_number(updated.x_cm) or not _is_number(updated.y_cm):
        raise SocketPolicyError("Socket position must be a number in cm")
    _check_count_type(updated.count)
    plate = _plates_by_id(plates).get(updated.plate_id)
    if plate is None:
        raise SocketPolicyError(f"Unknown plate: {updated.plate_id}")

    c = rules.edge_clearance_cm
    x = c if math.isnan(updated.x_cm) else updated.x_cm
    y = c if math.isnan(updated.y_cm) else updated.y_cm
    candidate = replace(updated, x_cm=x, y_cm=y)

    if not is_eligible_plate(plate, rules):
        raise SocketPolicyError(MSG_PLATE_TOO_SMALL)
    if not 1 <= candidate.count <= max_socket_count(plate, rules):
        raise SocketCapacityError(
            f"Between 1 and {max_socket_count(plate, rules)} sockets fit on this plate"
        )
    result = validate_group(candidate, plate, siblings_of(candidate, groups), rules)
    if not result:
        raise SocketPolicyError(result.message)

    out = list(groups)
    out[index] = candidate
    return out


def delete_group(groups: Sequence[SocketGroup], plates: Sequence[Plate], group_id: str, *,
                 enabled: bool) -> List[SocketGroup]:
    """Drop a group; the last group attached to a plate stays while sockets are enabled."""
    if not any(g.id == group_id for g in groups):
        return list(groups)
    live = prune_orphans(groups, plates)
    if enabled and len(live) == 1 and live[0].id == group_id:
        raise SocketPolicyError(MSG_LAST_GROUP)
    return [g for g in groups if g.id != group_id]


__all__ = [
    "SocketError",
    "SocketPolicyError",
    "SocketCapacityError",
    "Validation",
    "SocketScreen",
    "group_length",
    "group_size",
    "group_box",
    "socket_offsets",
    "socket_centers_cm",
    "is_eligible_plate",
    "max_socket_count",
    "clamp_to_plate",
    "boxes_conflict",
    "groups_conflict",
    "siblings_of",
    "validate_group",
    "resolve_collision",
    "socket_screen_coords",
    "prune_orphans",
    "find_free_anchor",
    "enable_sockets",
    "add_group",
    "update_group",
    "delete_group",
]
