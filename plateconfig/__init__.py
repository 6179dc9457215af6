"""Top-level package for the plate configurator.

This package exposes the layout, motif tiling and socket placement engine
for a row of wall plates, plus the HTTP server and browser UI built on it.
"""

from .geometry import Plate, SocketGroup, PlateLayoutMeta, DraggingInfo, XY
from .layout import Layout, compute_layout
from .transform import cm_to_screen, screen_to_cm
from .rendering import PlateRenderer
from .controller import ConfiguratorController

__all__ = [
    "Plate",
    "SocketGroup",
    "PlateLayoutMeta",
    "DraggingInfo",
    "XY",
    "Layout",
    "compute_layout",
    "cm_to_screen",
    "screen_to_cm",
    "PlateRenderer",
    "ConfiguratorController",
]
