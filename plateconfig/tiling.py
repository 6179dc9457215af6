"""Seam-free tiling of the motif image across the plate row.

The motif covers ``base_width_cm`` x ``base_height_cm`` of wall. Beyond that
it repeats, and every other repetition is mirrored on each axis, so
neighbouring tiles always meet at identical pixel rows/columns. Corner tiles
end up mirrored on both axes.

Positions along the row are absolute: the horizontal tile grid starts at
the left edge of the first plate and includes the spacing between plates,
the vertical grid starts at the common bottom edge.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Tuple

from .geometry import Box, PlateLayoutMeta

EPS = 1e-9


@dataclass(frozen=True)
class AxisRun:
    """Part of a segment that falls inside a single tile period."""

    start_cm: float
    length_cm: float
    offset_cm: float  # position inside the tile period
    index: int
    mirrored: bool

    @property
    def end_cm(self) -> float:
        return self.start_cm + self.length_cm


@dataclass(frozen=True)
class TileDraw:
    """One draw call: copy ``src`` from the motif into ``dest`` on the surface."""

    src: Box
    dest: Box
    mirror_x: bool
    mirror_y: bool
    tile_x: int
    tile_y: int

    @property
    def dest_size(self) -> Tuple[int, int]:
        return self.dest[2] - self.dest[0], self.dest[3] - self.dest[1]


def tile_index(start_cm: float, base_cm: float) -> Tuple[int, bool]:
    """Tile period containing ``start_cm`` and whether it is mirrored."""
    index = int(math.floor(start_cm / base_cm))
    return index, index % 2 == 1


def axis_runs(start_cm: float, length_cm: float, base_cm: float) -> List[AxisRun]:
    """Split ``[start_cm, start_cm + length_cm)`` at every tile boundary."""
    runs: List[AxisRun] = []
    if base_cm <= 0 or length_cm <= 0:
        return runs
    pos = start_cm
    remaining = length_cm
    while remaining > EPS:
        index, mirrored = tile_index(pos, base_cm)
        offset = pos - index * base_cm
        if base_cm - offset <= EPS:
            # floating point left us on the boundary
            index += 1
            mirrored = index % 2 == 1
            offset = 0.0
        run = min(base_cm - offset, remaining)
        runs.append(AxisRun(start_cm=pos, length_cm=run, offset_cm=offset, index=index, mirrored=mirrored))
        remaining -= run
        pos += run
    return runs


def _source_span(run: AxisRun, base_cm: float) -> Tuple[float, float]:
    # Mirrored tiles read the reflected range so partial tiles stay contiguous.
    if run.mirrored:
        return base_cm - run.offset_cm - run.length_cm, base_cm - run.offset_cm
    return run.offset_cm, run.offset_cm + run.length_cm


def _edge(value: float) -> int:
    return int(round(value))


def plate_tiles(
    meta: PlateLayoutMeta,
    image_size: Tuple[int, int],
    base_width_cm: float,
    base_height_cm: float,
) -> List[TileDraw]:
    """Draw calls that cover the plate described by ``meta`` with the motif."""
    img_w, img_h = image_size
    if img_w <= 0 or img_h <= 0 or meta.width_cm <= 0 or meta.height_cm <= 0:
        return []
    if base_width_cm <= 0 or base_height_cm <= 0:
        return []

    rx = img_w / base_width_cm
    ry = img_h / base_height_cm
    kx = meta.pixel_width / meta.width_cm
    ky = meta.pixel_height / meta.height_cm

    x_runs = axis_runs(meta.offset_cm, meta.width_cm, base_width_cm)
    y_runs = axis_runs(0.0, meta.height_cm, base_height_cm)

    draws: List[TileDraw] = []
    for xr in x_runs:
        sx0, sx1 = _source_span(xr, base_width_cm)
        src_x0 = max(0, _edge(sx0 * rx))
        src_x1 = min(img_w, max(src_x0 + 1, _edge(sx1 * rx)))
        local_x0 = xr.start_cm - meta.offset_cm
        dest_x0 = meta.pixel_x + _edge(local_x0 * kx)
        dest_x1 = meta.pixel_x + _edge((local_x0 + xr.length_cm) * kx)
        if dest_x1 <= dest_x0:
            continue
        for yr in y_runs:
            # source spans are measured from the image's bottom edge
            lo, hi = _source_span(yr, base_height_cm)
            src_y0 = max(0, img_h - _edge(hi * ry))
            src_y1 = min(img_h, max(src_y0 + 1, img_h - _edge(lo * ry)))
            dest_y0 = meta.bottom - _edge(yr.end_cm * ky)
            dest_y1 = meta.bottom - _edge(yr.start_cm * ky)
            if dest_y1 <= dest_y0:
                continue
            draws.append(
                TileDraw(
                    src=(src_x0, src_y0, src_x1, src_y1),
                    dest=(dest_x0, dest_y0, dest_x1, dest_y1),
                    mirror_x=xr.mirrored,
                    mirror_y=yr.mirrored,
                    tile_x=xr.index,
                    tile_y=yr.index,
                )
            )
    return draws


__all__ = ["AxisRun", "TileDraw", "tile_index", "axis_runs", "plate_tiles"]
