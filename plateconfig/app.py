"""NiceGUI application for configuring plates, motif and sockets."""

from __future__ import annotations

import base64
import threading
import time
from typing import Dict, List, Optional

from nicegui import events, ui

from .config import ConfiguratorSettings
from .controller import ConfiguratorController, PlateError
from .geometry import DIRECTIONS
from .rendering import export_filename, export_png
from .sockets import SocketError

# ---------------------------------------------------------------------------
# Global state shared between UI and backend
# ---------------------------------------------------------------------------
settings = ConfiguratorSettings()
status_messages: List[str] = []
status_lock = threading.Lock()
rendered_revision = -1

VIEWPORT = (1100, 520)


def _append_status(message: str) -> None:
    timestamp = time.strftime("%H:%M:%S")
    with status_lock:
        status_messages.append(f"[{timestamp}] {message}")


controller = ConfiguratorController(settings, status_cb=_append_status)
controller.set_viewport(*VIEWPORT)

# UI element references (populated in create_ui)
preview_image: Optional[ui.interactive_image] = None  # type: ignore[assignment]
plate_container: Optional[ui.column] = None  # type: ignore[assignment]
socket_container: Optional[ui.column] = None  # type: ignore[assignment]
summary_label: Optional[ui.label] = None  # type: ignore[assignment]
drag_label: Optional[ui.label] = None  # type: ignore[assignment]
error_label: Optional[ui.label] = None  # type: ignore[assignment]
status_area: Optional[ui.textarea] = None  # type: ignore[assignment]
sockets_switch: Optional[ui.switch] = None  # type: ignore[assignment]


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------

def _data_url(png: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


def _render_preview(force: bool = False) -> None:
    global rendered_revision
    if preview_image is None:
        return
    if not force and controller.revision == rendered_revision:
        return
    rendered_revision = controller.revision
    image = controller.render()
    if image is None:
        return
    preview_image.set_source(_data_url(export_png(image)))


def _sync_status_to_ui() -> None:
    if status_area is not None:
        with status_lock:
            status_area.value = "\n".join(status_messages[-250:])
    if summary_label is not None:
        info = controller.summary()
        summary_label.text = (
            f"{info['plates']} plate{'s' if info['plates'] != 1 else ''}, "
            f"{info['total_width_cm']:g} x {info['max_height_cm']:g} cm"
        )
    if error_label is not None:
        error_label.text = controller.last_error or ""
    if drag_label is not None:
        dragging = controller.dragging
        drag_label.text = (
            f"x {dragging.x_cm:.2f} cm / y {dragging.y_cm:.2f} cm" if dragging else ""
        )
    _render_preview()


def _refresh_controls() -> None:
    _update_plate_controls()
    _update_socket_controls()
    _sync_status_to_ui()


def _attempt(action, *args, **kwargs) -> None:
    try:
        action(*args, **kwargs)
    except (PlateError, SocketError):
        # the controller has already reported the rejection; redraw the last valid values
        pass
    _refresh_controls()


# ---------------------------------------------------------------------------
# Plates
# ---------------------------------------------------------------------------

def _update_plate_controls() -> None:
    if plate_container is None:
        return
    limits = settings.plates
    plate_container.clear()
    _pending.clear()
    plates = controller.plates
    for index, plate in enumerate(plates):
        _pending[f"{plate.id}:w"] = plate.width_cm
        _pending[f"{plate.id}:h"] = plate.height_cm
        with plate_container:
            with ui.row().classes("items-center gap-2"):
                ui.label(str(index + 1)).classes("w-6 text-center font-semibold")
                ui.number(
                    label=f"Width ({limits.min_width_cm:g}-{limits.max_width_cm:g} cm)",
                    value=plate.width_cm, step=0.1, format="%.2f",
                    on_change=lambda e, key=f"{plate.id}:w": _pending.__setitem__(key, e.value),
                ).props("dense").classes("w-40")
                ui.number(
                    label=f"Height ({limits.min_height_cm:g}-{limits.max_height_cm:g} cm)",
                    value=plate.height_cm, step=0.1, format="%.2f",
                    on_change=lambda e, key=f"{plate.id}:h": _pending.__setitem__(key, e.value),
                ).props("dense").classes("w-40")
                ui.button("Apply", on_click=lambda p=plate.id: _commit_plate(p)).props("dense flat")
                ui.button(icon="arrow_upward", on_click=lambda p=plate.id, i=index: _attempt(
                    controller.move_plate, p, i - 1)).props("dense flat").set_enabled(index > 0)
                ui.button(icon="remove", on_click=lambda p=plate.id: _attempt(
                    controller.remove_plate, p)).props("dense flat").set_enabled(len(plates) > 1)


_pending: Dict[str, Optional[float]] = {}


def _commit_plate(plate_id: str) -> None:
    width = _pending.get(f"{plate_id}:w")
    height = _pending.get(f"{plate_id}:h")
    _attempt(controller.resize_plate, plate_id, width, height)


def _add_plate() -> None:
    _attempt(controller.add_plate)


# ---------------------------------------------------------------------------
# Sockets
# ---------------------------------------------------------------------------

def _update_socket_controls() -> None:
    if socket_container is None:
        return
    socket_container.clear()
    if not controller.sockets_enabled:
        return
    plates = controller.plates
    plate_names = {p.id: f"{i + 1}: {p.width_cm:g} x {p.height_cm:g} cm" for i, p in enumerate(plates)}
    for group in controller.groups:
        if group.plate_id not in plate_names:
            continue
        max_count = controller.max_sockets(group.plate_id)
        with socket_container:
            with ui.card().classes("w-full"):
                with ui.row().classes("items-center gap-2"):
                    ui.select(
                        plate_names, value=group.plate_id, label="Plate",
                        on_change=lambda e, g=group.id: _attempt(
                            controller.update_socket_group, g, plate_id=e.value),
                    ).classes("w-48")
                    ui.select(
                        list(range(1, max(1, max_count) + 1)), value=group.count, label="Count",
                        on_change=lambda e, g=group.id: _attempt(
                            controller.update_socket_group, g, count=int(e.value)),
                    ).classes("w-24")
                    ui.select(
                        list(DIRECTIONS), value=group.direction, label="Direction",
                        on_change=lambda e, g=group.id: _attempt(
                            controller.update_socket_group, g, direction=e.value),
                    ).classes("w-32")
                with ui.row().classes("items-center gap-2"):
                    ui.number(
                        label="From left (cm)", value=round(group.x_cm, 2), step=0.1, format="%.2f",
                        on_change=lambda e, g=group.id: _set_socket_coordinate(g, "x_cm", e.value),
                    ).props("dense debounce=600").classes("w-36")
                    ui.number(
                        label="From bottom (cm)", value=round(group.y_cm, 2), step=0.1, format="%.2f",
                        on_change=lambda e, g=group.id: _set_socket_coordinate(g, "y_cm", e.value),
                    ).props("dense debounce=600").classes("w-36")
                    ui.button(icon="delete", on_click=lambda g=group.id: _attempt(
                        controller.delete_socket_group, g)).props("dense flat color=red")


def _set_socket_coordinate(group_id: str, field_name: str, value) -> None:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return
    _attempt(controller.update_socket_group, group_id, **{field_name: number})


def _toggle_sockets(value: bool) -> None:
    try:
        controller.set_sockets_enabled(bool(value))
    except SocketError:
        if sockets_switch is not None:
            sockets_switch.value = False
    _refresh_controls()


def _add_socket_group() -> None:
    _attempt(controller.add_socket_group)


# ---------------------------------------------------------------------------
# Motif, preview and export
# ---------------------------------------------------------------------------

def _handle_upload(event: events.UploadEventArguments) -> None:
    content = event.content.read()
    try:
        controller.load_motif_bytes(content)
    except Exception as exc:  # pragma: no cover - depends on the uploaded file
        _append_status(f"Failed to load motif {event.name}: {exc}")
        return
    _render_preview(force=True)


def _handle_mouse(event: events.MouseEventArguments) -> None:
    if event.type == "mousedown":
        controller.pointer_down(event.image_x, event.image_y)
    elif event.type == "mousemove":
        if controller.dragging is None:
            return
        controller.pointer_move(event.image_x, event.image_y)
    elif event.type in ("mouseup", "mouseleave"):
        if controller.pointer_up() is not None:
            _update_socket_controls()
    _sync_status_to_ui()


def _export() -> None:
    data = controller.export_png()
    if data is None:
        _append_status("Nothing to export yet: load a motif first.")
        return
    ui.download(data, export_filename())


# ---------------------------------------------------------------------------
# UI construction
# ---------------------------------------------------------------------------

def create_ui() -> None:
    global preview_image, plate_container, socket_container, summary_label
    global drag_label, error_label, status_area, sockets_switch

    ui.page_title("Plate Configurator")
    ui.markdown("# Plate Configurator")

    with ui.row().classes("w-full gap-6 no-wrap"):
        with ui.column().classes("w-2/3 gap-4"):
            with ui.card().classes("w-full"):
                with ui.row().classes("w-full items-center justify-between"):
                    summary_label = ui.label("").classes("text-sm text-gray-500")
                    ui.button("Export PNG", on_click=_export)
                preview_image = ui.interactive_image(
                    on_mouse=_handle_mouse,
                    events=["mousedown", "mousemove", "mouseup", "mouseleave"],
                    cross=False,
                ).classes("w-full")
                drag_label = ui.label("").classes("text-sm text-red-600")

            with ui.card().classes("w-full"):
                ui.label("Status log").classes("text-lg font-semibold")
                status_area = ui.textarea(value="", auto_resize=True).classes("w-full")
                status_area.props("readonly")

        with ui.column().classes("w-1/3 gap-4"):
            with ui.card().classes("w-full"):
                ui.label("Plates").classes("text-lg font-semibold")
                ui.label(f"1-{settings.plates.max_plates} plates").classes("text-xs text-gray-500")
                plate_container = ui.column().classes("gap-2")
                ui.button("Add plate", on_click=_add_plate)

            with ui.card().classes("w-full"):
                ui.label("Motif").classes("text-lg font-semibold")
                ui.upload(label="Upload motif", auto_upload=True, on_upload=_handle_upload).props(
                    "accept=image/*"
                )

            with ui.card().classes("w-full"):
                ui.label("Sockets").classes("text-lg font-semibold")
                sockets_switch = ui.switch(
                    "Cut-outs for sockets", value=controller.sockets_enabled,
                    on_change=lambda e: _toggle_sockets(e.value),
                )
                socket_container = ui.column().classes("w-full gap-2")
                ui.button("Add socket group", on_click=_add_socket_group)

            error_label = ui.label("").classes("text-sm text-red-600")

    ui.timer(0.5, _sync_status_to_ui)
    _refresh_controls()
    _render_preview(force=True)


def run(**kwargs) -> None:
    ui.run(**kwargs)


@ui.page("/")
def index() -> None:
    create_ui()
