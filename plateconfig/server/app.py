"""FastAPI application exposing the configurator to browser clients."""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from ..controller import ConfiguratorController, PlateError
from ..rendering import export_filename
from ..sockets import SocketCapacityError, SocketError


def create_controller() -> ConfiguratorController:
    controller = ConfiguratorController()
    controller.set_box(800, 400)
    return controller


def _http_error(exc: Exception) -> HTTPException:
    status = 409 if isinstance(exc, SocketCapacityError) else 400
    return HTTPException(status_code=status, detail=str(exc))


def _xy(payload: Dict[str, Any]) -> tuple:
    try:
        return float(payload["x"]), float(payload["y"])
    except (KeyError, TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail="x and y are required") from exc


def create_app(controller: Optional[ConfiguratorController] = None) -> FastAPI:
    controller = controller or create_controller()
    app = FastAPI(title="Plate Configurator Server")
    app.state.controller = controller
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/status")
    def status() -> Dict[str, Any]:
        return controller.summary()

    # -------------------------------------------------------------- layout
    @app.get("/api/layout")
    def get_layout() -> Dict[str, Any]:
        layout = controller.layout()
        return {"layout": layout.to_dict() if layout else None}

    @app.post("/api/viewport")
    def post_viewport(payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            width = float(payload["width"])
            height = float(payload["height"])
        except (KeyError, TypeError, ValueError) as exc:
            raise HTTPException(status_code=400, detail="width and height are required") from exc
        controller.set_viewport(width, height)
        return get_layout()

    # -------------------------------------------------------------- plates
    @app.get("/api/plates")
    def get_plates() -> Dict[str, Any]:
        return {"plates": [p.to_dict() for p in controller.plates]}

    @app.post("/api/plates")
    def post_plate(payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        payload = payload or {}
        try:
            plate = controller.add_plate(payload.get("width_cm"), payload.get("height_cm"))
        except PlateError as exc:
            raise _http_error(exc) from exc
        return plate.to_dict()

    @app.patch("/api/plates/{plate_id}")
    def patch_plate(plate_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            plate = controller.resize_plate(plate_id, payload.get("width_cm"), payload.get("height_cm"))
        except (PlateError, SocketError) as exc:
            raise _http_error(exc) from exc
        return plate.to_dict()

    @app.post("/api/plates/{plate_id}/move")
    def move_plate(plate_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            controller.move_plate(plate_id, int(payload.get("index", 0)))
        except PlateError as exc:
            raise _http_error(exc) from exc
        return get_plates()

    @app.delete("/api/plates/{plate_id}")
    def delete_plate(plate_id: str) -> Dict[str, Any]:
        try:
            controller.remove_plate(plate_id)
        except PlateError as exc:
            raise _http_error(exc) from exc
        return {"ok": True}

    # --------------------------------------------------------------- motif
    @app.post("/api/motif")
    async def post_motif(request: Request) -> Dict[str, Any]:
        data = await request.body()
        try:
            motif = controller.load_motif_bytes(data)
        except Exception as exc:  # pragma: no cover - runtime validation
            raise HTTPException(status_code=400, detail=f"Cannot decode motif: {exc}") from exc
        width, height = motif.size_px
        return {"ok": True, "width_px": width, "height_px": height}

    # ------------------------------------------------------------- sockets
    @app.get("/api/sockets")
    def get_sockets() -> Dict[str, Any]:
        return {
            "enabled": controller.sockets_enabled,
            "groups": [g.to_dict() for g in controller.groups],
            "screen": controller.socket_coords(),
        }

    @app.post("/api/sockets/enabled")
    def post_sockets_enabled(payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            controller.set_sockets_enabled(bool(payload.get("enabled", True)))
        except SocketError as exc:
            raise _http_error(exc) from exc
        return get_sockets()

    @app.post("/api/sockets")
    def post_socket_group(payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        payload = payload or {}
        kwargs = {k: payload[k] for k in ("plate_id", "count", "direction") if k in payload}
        try:
            group = controller.add_socket_group(**kwargs)
        except SocketError as exc:
            raise _http_error(exc) from exc
        return group.to_dict()

    @app.patch("/api/sockets/{group_id}")
    def patch_socket_group(group_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        changes = {k: payload[k] for k in ("plate_id", "x_cm", "y_cm", "count", "direction") if k in payload}
        try:
            group = controller.update_socket_group(group_id, **changes)
        except SocketError as exc:
            raise _http_error(exc) from exc
        return group.to_dict()

    @app.delete("/api/sockets/{group_id}")
    def delete_socket_group(group_id: str) -> Dict[str, Any]:
        try:
            controller.delete_socket_group(group_id)
        except SocketError as exc:
            raise _http_error(exc) from exc
        return {"ok": True}

    # ---------------------------------------------------------------- drag
    @app.post("/api/drag/down")
    def drag_down(payload: Dict[str, Any]) -> Dict[str, Any]:
        info = controller.pointer_down(*_xy(payload))
        return {"dragging": info.to_dict() if info else None}

    @app.post("/api/drag/move")
    def drag_move(payload: Dict[str, Any]) -> Dict[str, Any]:
        info = controller.pointer_move(*_xy(payload))
        return {"dragging": info.to_dict() if info else None}

    @app.post("/api/drag/up")
    def drag_up() -> Dict[str, Any]:
        last = controller.pointer_up()
        return {"committed": last.to_dict() if last else None}

    @app.post("/api/drag/cancel")
    def drag_cancel() -> Dict[str, Any]:
        last = controller.pointer_cancel()
        return {"committed": last.to_dict() if last else None}

    # -------------------------------------------------------------- export
    @app.get("/api/export.png")
    def export() -> Response:
        data = controller.export_png()
        if data is None:
            raise HTTPException(status_code=409, detail="Nothing to export yet")
        headers = {"Content-Disposition": f'attachment; filename="{export_filename()}"'}
        return Response(content=data, media_type="image/png", headers=headers)

    return app


app = create_app()


__all__ = ["app", "create_app", "create_controller"]
