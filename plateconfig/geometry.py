"""Data model for plates, socket groups and derived layout records.

Plates and socket groups are owned by the surrounding application and are
treated as read-only inputs by the geometry code: every operation that
"changes" a group returns a new instance (see :func:`dataclasses.replace`).
"""
from __future__ import annotations

import math
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

XY = Tuple[float, float]
Box = Tuple[int, int, int, int]

HORIZONTAL = "horizontal"
VERTICAL = "vertical"
DIRECTIONS = (HORIZONTAL, VERTICAL)


def new_id() -> str:
    """Short opaque identifier for plates and socket groups."""
    return uuid.uuid4().hex[:7]


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Plate:
    """Rectangular panel measured in centimeters."""

    id: str
    width_cm: float
    height_cm: float

    def is_drawable(self) -> bool:
        return (
            math.isfinite(self.width_cm)
            and math.isfinite(self.height_cm)
            and self.width_cm > 0
            and self.height_cm > 0
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "width_cm": float(self.width_cm), "height_cm": float(self.height_cm)}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Plate":
        return Plate(
            id=str(data.get("id") or new_id()),
            width_cm=float(data["width_cm"]),
            height_cm=float(data["height_cm"]),
        )


@dataclass(frozen=True)
class SocketGroup:
    """Row of 1-5 sockets on one plate.

    ``x_cm``/``y_cm`` is the lower-left corner of the first socket measured
    from the plate's lower-left corner.
    """

    id: str
    plate_id: str
    x_cm: float
    y_cm: float
    count: int = 1
    direction: str = HORIZONTAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "plate_id": self.plate_id,
            "x_cm": float(self.x_cm),
            "y_cm": float(self.y_cm),
            "count": int(self.count),
            "direction": self.direction,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "SocketGroup":
        direction = data.get("direction", HORIZONTAL)
        if direction not in DIRECTIONS:
            raise ValueError(f"Unsupported direction: {direction!r}")
        return SocketGroup(
            id=str(data.get("id") or new_id()),
            plate_id=str(data["plate_id"]),
            x_cm=float(data.get("x_cm", 0.0)),
            y_cm=float(data.get("y_cm", 0.0)),
            count=int(data.get("count", 1)),
            direction=direction,
        )


# ---------------------------------------------------------------------------
# Derived, per frame
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PlateLayoutMeta:
    """Pixel placement of one plate for a single layout pass."""

    plate_id: str
    pixel_x: int
    pixel_y: int
    pixel_width: int
    pixel_height: int
    scale: float
    offset_cm: float = 0.0  # left edge position within the assembled row
    width_cm: float = 0.0
    height_cm: float = 0.0

    @property
    def bottom(self) -> int:
        return self.pixel_y + self.pixel_height

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plate_id": self.plate_id,
            "pixel_x": self.pixel_x,
            "pixel_y": self.pixel_y,
            "pixel_width": self.pixel_width,
            "pixel_height": self.pixel_height,
            "scale": self.scale,
        }


@dataclass(frozen=True)
class DraggingInfo:
    """Live state of the one group currently being dragged."""

    group_id: str
    x_cm: float
    y_cm: float
    screen_offset_x: float = 0.0
    screen_offset_y: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "group_id": self.group_id,
            "x_cm": self.x_cm,
            "y_cm": self.y_cm,
            "screen_offset_x": self.screen_offset_x,
            "screen_offset_y": self.screen_offset_y,
        }


def effective_position(group: SocketGroup, dragging: Optional[DraggingInfo]) -> XY:
    """Anchor to draw for ``group``, preferring the live drag position."""
    if dragging is not None and dragging.group_id == group.id:
        return dragging.x_cm, dragging.y_cm
    return group.x_cm, group.y_cm


__all__ = [
    "XY",
    "Box",
    "HORIZONTAL",
    "VERTICAL",
    "DIRECTIONS",
    "Plate",
    "SocketGroup",
    "PlateLayoutMeta",
    "DraggingInfo",
    "effective_position",
    "new_id",
]
