"""Decoded motif image plus the physical area it represents."""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

from PIL import Image

from .config import MotifSettings


@dataclass
class Motif:
    image: Image.Image
    base_width_cm: float = 300.0
    base_height_cm: float = 128.0

    @property
    def size_px(self) -> Tuple[int, int]:
        return self.image.size

    @classmethod
    def from_bytes(cls, data: bytes, settings: Optional[MotifSettings] = None) -> "Motif":
        settings = settings or MotifSettings()
        with Image.open(io.BytesIO(data)) as im:
            image = im.convert("RGBA")
        return cls(image=image, base_width_cm=settings.base_width_cm, base_height_cm=settings.base_height_cm)

    @classmethod
    def from_file(cls, path: Union[str, Path], settings: Optional[MotifSettings] = None) -> "Motif":
        return cls.from_bytes(Path(path).read_bytes(), settings)


__all__ = ["Motif"]
