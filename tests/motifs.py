"""Synthetic motif images for the tests."""
import io

from PIL import Image

from plateconfig.motif import Motif


def split_motif(width=100, height=128, base_width_cm=100.0, base_height_cm=128.0):
    """Left half red, right half blue."""
    img = Image.new("RGBA", (width, height), (0, 0, 255, 255))
    img.paste((255, 0, 0, 255), (0, 0, width // 2, height))
    return Motif(image=img, base_width_cm=base_width_cm, base_height_cm=base_height_cm)


def png_bytes(size=(60, 40), color=(10, 120, 30)):
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()
