"""Configuration models for the plate configurator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass
class PlateLimits:
    """Product bounds for plate dimensions, in centimeters."""

    min_width_cm: float = 20.0
    max_width_cm: float = 300.0
    min_height_cm: float = 30.0
    max_height_cm: float = 128.0
    max_plates: int = 10
    default_width_cm: float = 30.0
    default_height_cm: float = 30.0

    def width_ok(self, value: float) -> bool:
        return self.min_width_cm <= value <= self.max_width_cm

    def height_ok(self, value: float) -> bool:
        return self.min_height_cm <= value <= self.max_height_cm


@dataclass
class SocketRules:
    """Fixed socket geometry plus the clearance policy.

    ``edge_clearance_cm`` applies to typed edits, ``drag_edge_clearance_cm``
    to pointer dragging. Both values are product policy and still open for
    clarification, so they live here rather than in the geometry code.
    """

    diameter_cm: float = 7.0
    gap_cm: float = 0.2
    group_spacing_cm: float = 4.0
    edge_clearance_cm: float = 3.5
    drag_edge_clearance_cm: float = 0.3
    max_count: int = 5
    min_plate_cm: float = 30.0

    @property
    def step_cm(self) -> float:
        return self.diameter_cm + self.gap_cm


@dataclass
class MotifSettings:
    """Physical size the motif image represents."""

    base_width_cm: float = 300.0
    base_height_cm: float = 128.0


@dataclass
class LayoutSettings:
    spacing_cm: float = 1.0
    padding_px: int = 24
    min_width_px: int = 200
    min_height_px: int = 180


@dataclass
class RenderOptions:
    plate_fill: str = "#f9fafb"
    plate_outline: str = "#e5e7eb"
    background: Tuple[int, int, int, int] = (255, 255, 255, 0)
    socket_fill: Tuple[int, int, int, int] = (200, 200, 200, 230)
    socket_outline: str = "#222222"
    anchor_color: Tuple[int, int, int, int] = (255, 0, 0, 230)
    anchor_radius_px: int = 6
    guide_color: str = "#dc2626"
    show_labels: bool = True
    label_color: str = "#111111"


@dataclass
class ConfiguratorSettings:
    """Aggregate settings shared by the controller, server and UI."""

    plates: PlateLimits = field(default_factory=PlateLimits)
    sockets: SocketRules = field(default_factory=SocketRules)
    motif: MotifSettings = field(default_factory=MotifSettings)
    layout: LayoutSettings = field(default_factory=LayoutSettings)
    render: RenderOptions = field(default_factory=RenderOptions)
    default_plates: List[Tuple[float, float]] = field(
        default_factory=lambda: [(250.0, 128.0), (30.0, 30.0)]
    )
