"""Centimeter <-> pixel mapping for positions on a plate.

Centimeter ``y`` grows upward from the plate's bottom edge, pixel ``y``
grows downward from the top of the surface.
"""
from __future__ import annotations

from typing import Optional

from .geometry import XY
from .layout import Layout


def cm_to_screen(layout: Layout, plate_id: str, x_cm: float, y_cm: float) -> Optional[XY]:
    meta = layout.meta_for(plate_id)
    if meta is None:
        return None
    sx = meta.pixel_x + x_cm * meta.scale
    sy = meta.bottom - y_cm * meta.scale
    return sx, sy


def screen_to_cm(layout: Layout, plate_id: str, screen_x: float, screen_y: float) -> Optional[XY]:
    meta = layout.meta_for(plate_id)
    if meta is None or meta.scale <= 0:
        return None
    x_cm = (screen_x - meta.pixel_x) / meta.scale
    y_cm = (meta.bottom - screen_y) / meta.scale
    return x_cm, y_cm


def plate_at(layout: Layout, screen_x: float, screen_y: float) -> Optional[str]:
    """Id of the plate whose pixel box contains the point, if any."""
    for meta in layout.metas:
        if (meta.pixel_x <= screen_x <= meta.pixel_x + meta.pixel_width
                and meta.pixel_y <= screen_y <= meta.bottom):
            return meta.plate_id
    return None


__all__ = ["cm_to_screen", "screen_to_cm", "plate_at"]
