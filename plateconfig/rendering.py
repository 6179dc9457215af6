"""Raster composition of the plate row.

The renderer consumes a :class:`~plateconfig.layout.Layout`, the decoded
motif and the socket groups and paints them onto a Pillow surface. It never
changes any input; the drag state is passed in explicitly.
"""
from __future__ import annotations

import io
from datetime import datetime
from typing import Optional, Sequence

from PIL import Image, ImageDraw

from .config import RenderOptions, SocketRules
from .geometry import DraggingInfo, Plate, PlateLayoutMeta, SocketGroup, effective_position
from .layout import Layout
from .motif import Motif
from .sockets import socket_screen_coords
from .tiling import TileDraw, plate_tiles
from .transform import cm_to_screen


class PlateRenderer:
    """Paint plates, tiled motif and sockets.

    ``socket_icon`` is an optional decoded image drawn for every socket. While
    it is missing each socket is drawn as a plain filled circle.
    """

    def __init__(
        self,
        *,
        options: Optional[RenderOptions] = None,
        rules: Optional[SocketRules] = None,
        socket_icon: Optional[Image.Image] = None,
    ) -> None:
        self.options = options or RenderOptions()
        self.rules = rules or SocketRules()
        self.socket_icon = socket_icon

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------
    def render(
        self,
        layout: Optional[Layout],
        plates: Sequence[Plate],
        motif: Optional[Motif],
        groups: Sequence[SocketGroup] = (),
        *,
        dragging: Optional[DraggingInfo] = None,
    ) -> Optional[Image.Image]:
        """Return the composed surface, or ``None`` when inputs are not ready."""
        if layout is None or motif is None or not plates:
            return None

        opts = self.options
        surface = Image.new("RGBA", (layout.box_width, layout.box_height), opts.background)
        draw = ImageDraw.Draw(surface)

        for meta in layout.metas:
            box = [meta.pixel_x, meta.pixel_y, meta.pixel_x + meta.pixel_width - 1, meta.bottom - 1]
            draw.rectangle(box, fill=opts.plate_fill)
            for tile in plate_tiles(meta, motif.size_px, motif.base_width_cm, motif.base_height_cm):
                self._draw_tile(surface, motif.image, tile)
            draw.rectangle(box, outline=opts.plate_outline, width=1)

        for group in groups:
            self._draw_group(surface, draw, layout, group, dragging)

        if dragging is not None:
            self._draw_guides(draw, layout, groups, dragging)

        if opts.show_labels:
            for meta in layout.metas:
                self._draw_label(draw, meta)
        return surface

    # ------------------------------------------------------------------
    # internal helpers
    # ------------------------------------------------------------------
    def _draw_tile(self, surface: Image.Image, image: Image.Image, tile: TileDraw) -> None:
        region = image.crop(tile.src).resize(tile.dest_size, Image.Resampling.BILINEAR)
        # flipping the resized region mirrors it about the destination center
        if tile.mirror_x:
            region = region.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
        if tile.mirror_y:
            region = region.transpose(Image.Transpose.FLIP_TOP_BOTTOM)
        mask = region if region.mode == "RGBA" else None
        surface.paste(region, (tile.dest[0], tile.dest[1]), mask)

    def _draw_group(self, surface: Image.Image, draw: ImageDraw.ImageDraw, layout: Layout,
                    group: SocketGroup, dragging: Optional[DraggingInfo]) -> None:
        opts = self.options
        sockets = socket_screen_coords(layout, group, self.rules, dragging)
        if not sockets:
            return
        meta = layout.meta_for(group.plate_id)
        for s in sockets:
            if self.socket_icon is not None:
                size = max(1, int(round(s.r * 2)))
                aspect = self.socket_icon.width / max(1, self.socket_icon.height)
                icon = self.socket_icon.convert("RGBA").resize(
                    (size, max(1, int(round(size / aspect)))), Image.Resampling.BILINEAR
                )
                surface.paste(icon, (int(round(s.x - s.r)), int(round(s.y - s.r))), icon)
            else:
                draw.ellipse(
                    [s.x - s.r, s.y - s.r, s.x + s.r, s.y + s.r],
                    fill=opts.socket_fill,
                    outline=opts.socket_outline,
                    width=max(1, int(round(meta.scale))),
                )

        if dragging is not None and dragging.group_id == group.id:
            first = sockets[0]
            r = opts.anchor_radius_px
            draw.ellipse([first.x - r, first.y - r, first.x + r, first.y + r], fill=opts.anchor_color)

    def _draw_guides(self, draw: ImageDraw.ImageDraw, layout: Layout,
                     groups: Sequence[SocketGroup], dragging: DraggingInfo) -> None:
        group = next((g for g in groups if g.id == dragging.group_id), None)
        if group is None:
            return
        meta = layout.meta_for(group.plate_id)
        if meta is None:
            return
        x_cm, y_cm = effective_position(group, dragging)
        ax, ay = cm_to_screen(layout, group.plate_id, x_cm, y_cm)
        color = self.options.guide_color
        # left edge -> anchor, bottom edge -> anchor
        draw.line([(meta.pixel_x, ay), (ax, ay)], fill=color, width=1)
        draw.text(((meta.pixel_x + ax) / 2.0, ay + 2), f"{x_cm:.2f} cm", fill=color)
        draw.line([(ax, meta.bottom), (ax, ay)], fill=color, width=1)
        draw.text((ax + 4, (meta.bottom + ay) / 2.0), f"{y_cm:.2f} cm", fill=color)

    def _draw_label(self, draw: ImageDraw.ImageDraw, meta: PlateLayoutMeta) -> None:
        text = f"{meta.width_cm:g} x {meta.height_cm:g} cm"
        draw.text((meta.pixel_x + 4, meta.pixel_y + 4), text, fill=self.options.label_color)


def export_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def export_filename(now: Optional[datetime] = None) -> str:
    stamp = (now or datetime.now()).isoformat()
    return "plates-{}.png".format(stamp.replace(":", "-").replace(".", "-"))


__all__ = ["PlateRenderer", "export_png", "export_filename"]
