"""High level orchestration for the configurator server and UI."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from PIL import Image

from .config import ConfiguratorSettings
from .drag import DragController
from .geometry import DraggingInfo, Plate, SocketGroup, new_id
from .layout import Layout, available_box, compute_layout, row_extent
from .motif import Motif
from .rendering import PlateRenderer, export_png
from . import sockets as socket_ops
from .sockets import SocketError, max_socket_count, prune_orphans, socket_screen_coords

StatusCallback = Callable[[str], None]


class PlateError(ValueError):
    """Raised when a plate edit is rejected."""


def _dimension(value: Any, fallback: float) -> float:
    if value is None:
        return fallback
    if isinstance(value, bool):
        raise PlateError("Plate size must be a number in cm")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise PlateError("Plate size must be a number in cm") from exc


@dataclass
class ConfiguratorState:
    plates: List[Plate] = field(default_factory=list)
    groups: List[SocketGroup] = field(default_factory=list)
    sockets_enabled: bool = False
    motif: Optional[Motif] = None
    box: Tuple[int, int] = (0, 0)
    revision: int = 0
    last_status: Optional[str] = None
    last_error: Optional[str] = None


@dataclass
class ConfiguratorController:
    """Coordinate plates, motif, socket groups, dragging and rendering."""

    settings: ConfiguratorSettings = field(default_factory=ConfiguratorSettings)
    status_cb: Optional[StatusCallback] = None
    socket_icon: Optional[Image.Image] = None

    def __post_init__(self) -> None:
        self._lock = threading.Lock()
        self._state = ConfiguratorState(
            plates=[Plate(new_id(), w, h) for w, h in self.settings.default_plates]
        )
        self.renderer = PlateRenderer(
            options=self.settings.render, rules=self.settings.sockets, socket_icon=self.socket_icon
        )
        self.drag = DragController(self.settings.sockets)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------
    def _status(self, message: str) -> None:
        self._state.last_status = message
        if self.status_cb:
            self.status_cb(message)

    def _reject(self, exc: Exception) -> None:
        self._state.last_error = str(exc)
        self._status(f"Rejected: {exc}")

    def _committed(self, message: str) -> None:
        # redraws key off the revision, so bump it only after the state is complete
        self._state.revision += 1
        self._state.last_error = None
        self._status(message)

    @property
    def revision(self) -> int:
        return self._state.revision

    @property
    def last_error(self) -> Optional[str]:
        return self._state.last_error

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------
    @property
    def plates(self) -> List[Plate]:
        with self._lock:
            return list(self._state.plates)

    @property
    def groups(self) -> List[SocketGroup]:
        with self._lock:
            return list(self._state.groups)

    @property
    def sockets_enabled(self) -> bool:
        return self._state.sockets_enabled

    @property
    def dragging(self) -> Optional[DraggingInfo]:
        return self.drag.info

    @property
    def motif(self) -> Optional[Motif]:
        return self._state.motif

    def visible_groups(self) -> List[SocketGroup]:
        """Groups that take part in layout: enabled and attached to a plate."""
        with self._lock:
            return self._visible_groups()

    def _visible_groups(self) -> List[SocketGroup]:
        if not self._state.sockets_enabled:
            return []
        return prune_orphans(self._state.groups, self._state.plates)

    # ------------------------------------------------------------------
    # Viewport and layout
    # ------------------------------------------------------------------
    def set_box(self, width: int, height: int) -> None:
        with self._lock:
            self._state.box = (int(width), int(height))
            self._committed(f"Drawing box set to {int(width)} x {int(height)} px")

    def set_viewport(self, width: float, height: float) -> None:
        w, h = available_box(width, height, self.settings.layout)
        self.set_box(w, h)

    def layout(self) -> Optional[Layout]:
        with self._lock:
            return self._layout()

    def _layout(self) -> Optional[Layout]:
        w, h = self._state.box
        return compute_layout(self._state.plates, w, h, spacing_cm=self.settings.layout.spacing_cm)

    # ------------------------------------------------------------------
    # Plates
    # ------------------------------------------------------------------
    def add_plate(self, width_cm: Optional[float] = None, height_cm: Optional[float] = None) -> Plate:
        limits = self.settings.plates
        with self._lock:
            try:
                width = _dimension(width_cm, limits.default_width_cm)
                height = _dimension(height_cm, limits.default_height_cm)
                if len(self._state.plates) >= limits.max_plates:
                    raise PlateError(f"At most {limits.max_plates} plates are allowed")
                self._check_dimensions(width, height)
            except PlateError as exc:
                self._reject(exc)
                raise
            plate = Plate(new_id(), width, height)
            self._state.plates = self._state.plates + [plate]
            self._committed(f"Plate added: {width:g} x {height:g} cm")
            return plate

    def remove_plate(self, plate_id: str) -> None:
        with self._lock:
            try:
                if not any(p.id == plate_id for p in self._state.plates):
                    raise PlateError(f"Unknown plate: {plate_id}")
                if len(self._state.plates) <= 1:
                    raise PlateError("At least one plate is required")
            except PlateError as exc:
                self._reject(exc)
                raise
            self._state.plates = [p for p in self._state.plates if p.id != plate_id]
            self._state.groups = prune_orphans(self._state.groups, self._state.plates)
            if self.drag.info and not any(g.id == self.drag.info.group_id for g in self._state.groups):
                self.drag.cancel()
            self._committed("Plate removed")

    def resize_plate(self, plate_id: str, width_cm: Optional[float] = None,
                     height_cm: Optional[float] = None) -> Plate:
        with self._lock:
            try:
                index = self._plate_index(plate_id)
                current = self._state.plates[index]
                width = _dimension(width_cm, current.width_cm)
                height = _dimension(height_cm, current.height_cm)
                self._check_dimensions(width, height)
                resized = replace(current, width_cm=width, height_cm=height)
                self._check_groups_fit(resized)
            except (PlateError, SocketError) as exc:
                self._reject(exc)
                raise
            plates = list(self._state.plates)
            plates[index] = resized
            self._state.plates = plates
            self._committed(f"Plate resized: {width:g} x {height:g} cm")
            return resized

    def move_plate(self, plate_id: str, new_index: int) -> None:
        with self._lock:
            try:
                index = self._plate_index(plate_id)
            except PlateError as exc:
                self._reject(exc)
                raise
            plates = list(self._state.plates)
            plate = plates.pop(index)
            new_index = max(0, min(len(plates), int(new_index)))
            plates.insert(new_index, plate)
            self._state.plates = plates
            self._committed(f"Plate moved to position {new_index + 1}")

    def _plate_index(self, plate_id: str) -> int:
        for i, plate in enumerate(self._state.plates):
            if plate.id == plate_id:
                return i
        raise PlateError(f"Unknown plate: {plate_id}")

    def _check_dimensions(self, width: float, height: float) -> None:
        limits = self.settings.plates
        if not limits.width_ok(width):
            raise PlateError(f"Width must be between {limits.min_width_cm:g} and {limits.max_width_cm:g} cm")
        if not limits.height_ok(height):
            raise PlateError(f"Height must be between {limits.min_height_cm:g} and {limits.max_height_cm:g} cm")

    def _check_groups_fit(self, plate: Plate) -> None:
        rules = self.settings.sockets
        mine = [g for g in self._state.groups if g.plate_id == plate.id]
        # dragged groups only honour the drag clearance
        clearance = min(rules.edge_clearance_cm, rules.drag_edge_clearance_cm)
        for group in mine:
            others = socket_ops.siblings_of(group, mine)
            result = socket_ops.validate_group(group, plate, others, rules, clearance)
            if not result:
                raise socket_ops.SocketPolicyError(f"Socket group no longer fits: {result.message}")

    # ------------------------------------------------------------------
    # Motif
    # ------------------------------------------------------------------
    def set_motif(self, motif: Optional[Motif]) -> None:
        with self._lock:
            self._state.motif = motif
            if motif is None:
                self._committed("Motif cleared")
            else:
                w, h = motif.size_px
                self._committed(f"Motif loaded: {w} x {h} px")

    def load_motif_bytes(self, data: bytes) -> Motif:
        motif = Motif.from_bytes(data, self.settings.motif)
        self.set_motif(motif)
        return motif

    # ------------------------------------------------------------------
    # Socket groups
    # ------------------------------------------------------------------
    def set_sockets_enabled(self, enabled: bool) -> None:
        with self._lock:
            if enabled:
                try:
                    groups = socket_ops.enable_sockets(
                        self._state.groups, self._state.plates, self.settings.sockets
                    )
                except SocketError as exc:
                    self._reject(exc)
                    raise
                self._state.groups = groups
            else:
                self.drag.cancel()
            self._state.sockets_enabled = bool(enabled)
            self._committed("Sockets enabled" if enabled else "Sockets disabled")

    def add_socket_group(self, **kwargs: Any) -> SocketGroup:
        with self._lock:
            try:
                groups = socket_ops.add_group(
                    self._state.groups, self._state.plates, self.settings.sockets, **kwargs
                )
            except SocketError as exc:
                self._reject(exc)
                raise
            self._state.groups = groups
            added = groups[-1]
            self._committed(f"Socket group added at {added.x_cm:.2f} / {added.y_cm:.2f} cm")
            return added

    def update_socket_group(self, group_id: str, **changes: Any) -> SocketGroup:
        with self._lock:
            current = next((g for g in self._state.groups if g.id == group_id), None)
            try:
                if current is None:
                    raise socket_ops.SocketPolicyError(f"Unknown socket group: {group_id}")
                updated = replace(current, **changes)
                groups = socket_ops.update_group(
                    self._state.groups, self._state.plates, updated, self.settings.sockets
                )
            except SocketError as exc:
                self._reject(exc)
                raise
            self._state.groups = groups
            result = next(g for g in groups if g.id == group_id)
            self._committed(f"Socket group updated: {result.count} x {result.direction}")
            return result

    def delete_socket_group(self, group_id: str) -> None:
        with self._lock:
            try:
                groups = socket_ops.delete_group(
                    self._state.groups, self._state.plates, group_id, enabled=self._state.sockets_enabled
                )
            except SocketError as exc:
                self._reject(exc)
                raise
            self._state.groups = groups
            self._committed("Socket group deleted")

    def max_sockets(self, plate_id: str) -> int:
        with self._lock:
            plate = next((p for p in self._state.plates if p.id == plate_id), None)
        if plate is None:
            return 0
        return max_socket_count(plate, self.settings.sockets)

    def socket_coords(self) -> Dict[str, List[Dict[str, float]]]:
        """Screen centers and radius per group, for hit-testing and badges."""
        with self._lock:
            layout = self._layout()
            if layout is None:
                return {}
            out: Dict[str, List[Dict[str, float]]] = {}
            for group in self._visible_groups():
                coords = socket_screen_coords(layout, group, self.settings.sockets, self.drag.info)
                out[group.id] = [{"x": c.x, "y": c.y, "r": c.r} for c in coords]
            return out

    # ------------------------------------------------------------------
    # Dragging
    # ------------------------------------------------------------------
    def pointer_down(self, x: float, y: float) -> Optional[DraggingInfo]:
        with self._lock:
            layout = self._layout()
            if layout is None:
                return None
            info = self.drag.pointer_down(layout, self._visible_groups(), x, y)
            if info is not None:
                self._committed(f"Dragging socket group {info.group_id}")
            return info

    def pointer_move(self, x: float, y: float) -> Optional[DraggingInfo]:
        with self._lock:
            if not self.drag.is_dragging:
                return None
            layout = self._layout()
            if layout is None:
                return self.drag.info
            moved = self.drag.pointer_move(layout, self._state.plates, self._visible_groups(), x, y)
            by_id = {g.id: g for g in moved}
            self._state.groups = [by_id.get(g.id, g) for g in self._state.groups]
            self._state.revision += 1
            return self.drag.info

    def pointer_up(self) -> Optional[DraggingInfo]:
        with self._lock:
            last = self.drag.pointer_up()
            if last is not None:
                self._committed(f"Socket group placed at {last.x_cm:.2f} / {last.y_cm:.2f} cm")
            return last

    def pointer_cancel(self) -> Optional[DraggingInfo]:
        """Pointer capture lost; keeps the last resolved position."""
        return self.pointer_up()

    # ------------------------------------------------------------------
    # Rendering and export
    # ------------------------------------------------------------------
    def render(self) -> Optional[Image.Image]:
        with self._lock:
            return self.renderer.render(
                self._layout(),
                self._state.plates,
                self._state.motif,
                self._visible_groups(),
                dragging=self.drag.info,
            )

    def export_png(self) -> Optional[bytes]:
        image = self.render()
        if image is None:
            return None
        return export_png(image)

    def summary(self) -> Dict[str, Any]:
        with self._lock:
            plates = list(self._state.plates)
            total, max_height = row_extent(plates, self.settings.layout.spacing_cm)
            return {
                "plates": len(plates),
                "total_width_cm": total,
                "max_height_cm": max_height,
                "sockets_enabled": self._state.sockets_enabled,
                "socket_groups": len(self._state.groups),
                "motif_ready": self._state.motif is not None,
                "dragging": self.drag.info.to_dict() if self.drag.info else None,
                "revision": self._state.revision,
                "last_status": self._state.last_status,
                "last_error": self._state.last_error,
            }


__all__ = ["ConfiguratorController", "ConfiguratorState", "PlateError"]
