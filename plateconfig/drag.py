"""Pointer driven dragging of socket groups.

Idle -> Dragging on a pointer-down inside a socket, Dragging -> Idle on
pointer-up or when pointer capture is lost. The drag state lives on the
controller instance and is handed to the renderer explicitly; there is no
cancel gesture, the last resolved position is what stays committed.
"""
from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Sequence

from .config import SocketRules
from .geometry import DraggingInfo, Plate, SocketGroup
from .layout import Layout
from .sockets import resolve_collision, siblings_of, socket_screen_coords
from .transform import cm_to_screen, screen_to_cm


class DragController:
    """Translate pointer events into socket group positions."""

    def __init__(self, rules: Optional[SocketRules] = None, *, clearance: Optional[float] = None) -> None:
        self.rules = rules or SocketRules()
        self.clearance = self.rules.drag_edge_clearance_cm if clearance is None else clearance
        self.info: Optional[DraggingInfo] = None

    @property
    def is_dragging(self) -> bool:
        return self.info is not None

    # ------------------------------------------------------------------
    def hit_test(self, layout: Layout, groups: Sequence[SocketGroup],
                 x: float, y: float) -> Optional[SocketGroup]:
        """Topmost group with a socket under the point; later groups win."""
        for group in reversed(groups):
            for socket in socket_screen_coords(layout, group, self.rules):
                if socket.contains(x, y):
                    return group
        return None

    def pointer_down(self, layout: Layout, groups: Sequence[SocketGroup],
                     x: float, y: float) -> Optional[DraggingInfo]:
        if self.info is not None:
            return None
        group = self.hit_test(layout, groups, x, y)
        if group is None:
            return None
        anchor = cm_to_screen(layout, group.plate_id, group.x_cm, group.y_cm)
        if anchor is None:
            return None
        self.info = DraggingInfo(
            group_id=group.id,
            x_cm=group.x_cm,
            y_cm=group.y_cm,
            screen_offset_x=x - anchor[0],
            screen_offset_y=y - anchor[1],
        )
        return self.info

    def pointer_move(self, layout: Layout, plates: Sequence[Plate], groups: Sequence[SocketGroup],
                     x: float, y: float) -> List[SocketGroup]:
        """Groups with the dragged one moved to the resolved pointer position."""
        info = self.info
        if info is None:
            return list(groups)
        group = next((g for g in groups if g.id == info.group_id), None)
        if group is None:
            self.info = None
            return list(groups)
        plate = next((p for p in plates if p.id == group.plate_id), None)
        if plate is None:
            return list(groups)

        target = screen_to_cm(layout, group.plate_id, x - info.screen_offset_x, y - info.screen_offset_y)
        if target is None:
            return list(groups)
        resolved = resolve_collision(
            group, target[0], target[1], plate, siblings_of(group, groups), self.rules, self.clearance
        )
        if resolved is None:
            resolved = (info.x_cm, info.y_cm)

        self.info = replace(info, x_cm=resolved[0], y_cm=resolved[1])
        moved = replace(group, x_cm=resolved[0], y_cm=resolved[1])
        return [moved if g.id == group.id else g for g in groups]

    def pointer_up(self) -> Optional[DraggingInfo]:
        last, self.info = self.info, None
        return last

    def cancel(self) -> Optional[DraggingInfo]:
        """Pointer capture lost: behaves like a pointer-up."""
        return self.pointer_up()


__all__ = ["DragController"]
