"""Example script that configures a kitchen wall on a running server and saves the export."""
from __future__ import annotations

import io
from pathlib import Path

import requests
from PIL import Image, ImageDraw

SERVER = "http://localhost:8000"


def build_motif(width: int = 600, height: int = 256) -> bytes:
    """Gradient with a diagonal stripe, so mirrored tiles are easy to spot."""
    img = Image.new("RGB", (width, height))
    draw = ImageDraw.Draw(img)
    for x in range(width):
        shade = int(255 * x / (width - 1))
        draw.line([(x, 0), (x, height)], fill=(shade, 160, 255 - shade))
    draw.line([(0, height), (width, 0)], fill=(20, 20, 20), width=12)
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def main() -> None:
    plates = requests.get(f"{SERVER}/api/plates", timeout=5).json()["plates"]
    first = plates[0]["id"]
    requests.patch(f"{SERVER}/api/plates/{first}", json={"width_cm": 280, "height_cm": 90}, timeout=5).raise_for_status()
    requests.post(f"{SERVER}/api/plates", json={"width_cm": 120, "height_cm": 60}, timeout=5).raise_for_status()

    res = requests.post(f"{SERVER}/api/motif", data=build_motif(), timeout=5)
    res.raise_for_status()
    print(res.json())

    requests.post(f"{SERVER}/api/sockets/enabled", json={"enabled": True}, timeout=5).raise_for_status()
    group = requests.post(f"{SERVER}/api/sockets", json={"plate_id": first, "count": 3}, timeout=5).json()
    print(group)

    export = requests.get(f"{SERVER}/api/export.png", timeout=10)
    export.raise_for_status()
    out = Path("plates.png")
    out.write_bytes(export.content)
    print(f"Wrote {out} ({len(export.content)} bytes)")


if __name__ == "__main__":
    main()
