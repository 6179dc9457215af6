"""Pixel layout for a row of plates.

All plates share one cm->px scale so their relative proportions survive the
fit into the drawing box. Plates sit on the box's bottom edge, left to right
in list order, separated by a fixed spacing in centimeters.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .config import LayoutSettings
from .geometry import Plate, PlateLayoutMeta


@dataclass
class Layout:
    """Result of a single layout pass."""

    scale: float
    box_width: int
    box_height: int
    spacing_cm: float
    total_width_cm: float
    max_height_cm: float
    metas: List[PlateLayoutMeta] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._by_id: Dict[str, PlateLayoutMeta] = {m.plate_id: m for m in self.metas}

    def meta_for(self, plate_id: str) -> Optional[PlateLayoutMeta]:
        return self._by_id.get(plate_id)

    def __contains__(self, plate_id: object) -> bool:
        return plate_id in self._by_id

    def to_dict(self) -> Dict[str, object]:
        return {
            "scale": self.scale,
            "box": [self.box_width, self.box_height],
            "total_width_cm": self.total_width_cm,
            "max_height_cm": self.max_height_cm,
            "plates": [m.to_dict() for m in self.metas],
        }


def row_extent(plates: Sequence[Plate], spacing_cm: float = 1.0) -> Tuple[float, float]:
    """Return ``(total_width_cm, max_height_cm)`` of the assembled row."""
    if not plates:
        return 0.0, 0.0
    total = sum(p.width_cm for p in plates) + spacing_cm * (len(plates) - 1)
    return total, max(p.height_cm for p in plates)


def available_box(viewport_width: float, viewport_height: float,
                  settings: Optional[LayoutSettings] = None) -> Tuple[int, int]:
    """Drawing box for a viewport: padding removed, minimum size enforced."""
    settings = settings or LayoutSettings()
    pad = settings.padding_px
    width = max(settings.min_width_px, int(viewport_width) - pad * 2)
    height = max(settings.min_height_px, int(viewport_height) - pad * 2)
    return width, height


def compute_layout(
    plates: Sequence[Plate],
    box_width: float,
    box_height: float,
    *,
    spacing_cm: float = 1.0,
) -> Optional[Layout]:
    """Lay out ``plates`` inside a ``box_width`` x ``box_height`` pixel box.

    Returns ``None`` when there is nothing sensible to draw: no plates, a
    plate with a non-positive or non-finite dimension, or a box without area.
    """

    if not plates or box_width <= 0 or box_height <= 0:
        return None
    if not all(p.is_drawable() for p in plates):
        return None

    total_width_cm, max_height_cm = row_extent(plates, spacing_cm)
    if total_width_cm <= 0 or max_height_cm <= 0:
        return None

    scale = min(box_width / total_width_cm, box_height / max_height_cm)
    box_h = int(box_height)

    metas: List[PlateLayoutMeta] = []
    cursor_cm = 0.0
    for plate in plates:
        plate_w = max(1, int(math.floor(plate.width_cm * scale)))
        plate_h = max(1, int(math.floor(plate.height_cm * scale)))
        metas.append(
            PlateLayoutMeta(
                plate_id=plate.id,
                pixel_x=int(math.floor(cursor_cm * scale)),
                pixel_y=box_h - plate_h,
                pixel_width=plate_w,
                pixel_height=plate_h,
                scale=scale,
                offset_cm=cursor_cm,
                width_cm=plate.width_cm,
                height_cm=plate.height_cm,
            )
        )
        cursor_cm += plate.width_cm + spacing_cm

    return Layout(
        scale=scale,
        box_width=int(box_width),
        box_height=box_h,
        spacing_cm=spacing_cm,
        total_width_cm=total_width_cm,
        max_height_cm=max_height_cm,
        metas=metas,
    )


__all__ = ["Layout", "available_box", "compute_layout", "row_extent"]
