import pytest
from fastapi.testclient import TestClient

from plateconfig.server.app import create_app, create_controller

from motifs import png_bytes


@pytest.fixture
def client():
    return TestClient(create_app(create_controller()))


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_layout_reports_every_plate(client):
    layout = client.get("/api/layout").json()["layout"]
    assert layout["box"] == [800, 400]
    assert len(layout["plates"]) == 2
    assert layout["scale"] == pytest.approx(800 / 281)


def test_viewport_resizes_the_box(client):
    layout = client.post("/api/viewport", json={"width": 1000, "height": 300}).json()["layout"]
    assert layout["box"] == [952, 252]
    assert client.post("/api/viewport", json={}).status_code == 400


def test_plate_edits(client):
    created = client.post("/api/plates", json={"width_cm": 80, "height_cm": 60}).json()
    assert created["width_cm"] == 80.0

    response = client.patch(f"/api/plates/{created['id']}", json={"width_cm": 500})
    assert response.status_code == 400
    assert "Width" in response.json()["detail"]

    client.post(f"/api/plates/{created['id']}/move", json={"index": 0})
    plates = client.get("/api/plates").json()["plates"]
    assert plates[0]["id"] == created["id"]

    assert client.delete(f"/api/plates/{created['id']}").json() == {"ok": True}
    assert len(client.get("/api/plates").json()["plates"]) == 2


def test_socket_lifecycle(client):
    body = client.post("/api/sockets/enabled", json={"enabled": True}).json()
    assert body["enabled"] is True
    assert len(body["groups"]) == 1
    first = body["groups"][0]
    assert len(body["screen"][first["id"]]) == 1

    added = client.post("/api/sockets", json={"count": 2}).json()
    assert added["count"] == 2

    response = client.patch(f"/api/sockets/{added['id']}", json={"x_cm": 0})
    assert response.status_code == 400

    response = client.patch(f"/api/sockets/{added['id']}", json={"count": 6})
    assert response.status_code == 409

    assert client.delete(f"/api/sockets/{added['id']}").status_code == 200
    assert client.delete(f"/api/sockets/{first['id']}").status_code == 400


def test_drag_endpoints(client):
    body = client.post("/api/sockets/enabled", json={"enabled": True}).json()
    group_id = body["groups"][0]["id"]
    socket = body["screen"][group_id][0]

    assert client.post("/api/drag/down", json={"x": 1, "y": 1}).json() == {"dragging": None}

    down = client.post("/api/drag/down", json={"x": socket["x"], "y": socket["y"]}).json()
    assert down["dragging"]["group_id"] == group_id
    moved = client.post("/api/drag/move", json={"x": socket["x"] + 40, "y": socket["y"]}).json()
    assert moved["dragging"]["x_cm"] > 3.5
    committed = client.post("/api/drag/up").json()["committed"]
    assert committed["x_cm"] == pytest.approx(moved["dragging"]["x_cm"])
    assert client.post("/api/drag/cancel").json() == {"committed": None}


def test_export_needs_a_motif(client):
    assert client.get("/api/export.png").status_code == 409

    loaded = client.post("/api/motif", content=png_bytes()).json()
    assert (loaded["width_px"], loaded["height_px"]) == (60, 40)

    response = client.get("/api/export.png")
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert "plates-" in response.headers["content-disposition"]
    assert response.content.startswith(b"\x89PNG")


@pytest.mark.parametrize("payload", [{"x_cm": None}, {"count": "3"}, {"direction": 5}])
def test_malformed_socket_edit_is_a_bad_request(client, payload):
    group = client.post("/api/sockets/enabled", json={"enabled": True}).json()["groups"][0]
    response = client.patch(f"/api/sockets/{group['id']}", json=payload)
    assert response.status_code == 400
    assert client.get("/api/sockets").json()["groups"] == [group]


def test_fractional_socket_count_is_a_conflict(client):
    group = client.post("/api/sockets/enabled", json={"enabled": True}).json()["groups"][0]
    assert client.patch(f"/api/sockets/{group['id']}", json={"count": 2.5}).status_code == 409


def test_non_numeric_plate_size_is_a_bad_request(client):
    plate = client.get("/api/plates").json()["plates"][0]
    response = client.patch(f"/api/plates/{plate['id']}", json={"width_cm": "abc"})
    assert response.status_code == 400
    assert client.get("/api/plates").json()["plates"][0] == plate
