from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

import numpy as np
from PIL import Image


class VersionOrigin(str, Enum):
    UPLOAD = "upload"
    RETOUCH = "retouch"
    ADJUST = "adjust"
    FILTER = "filter"
    CROP = "crop"


@dataclass(frozen=True, eq=False)
class ImageVersion:
    """Immutable raster held by the edit history.

    Pixels are uint8 RGB or RGBA, (H, W, C). The array is flagged read-only
    on creation so nothing downstream can paint into a committed version.
    Equality is identity: two versions with the same pixels are still
    different history entries.
    """

    pixels: np.ndarray
    origin: VersionOrigin
    filename: str = "image.png"
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        arr = np.ascontiguousarray(self.pixels, dtype=np.uint8)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ValueError(f"Expected an (H, W, 3|4) raster, got shape {arr.shape}")
        if arr is self.pixels:
            arr = arr.copy()
        arr.setflags(write=False)
        object.__setattr__(self, "pixels", arr)

    @classmethod
    def from_pil(
        cls, image: Image.Image, origin: VersionOrigin, filename: str = "image.png"
    ) -> ImageVersion:
        mode = "RGBA" if "A" in image.getbands() else "RGB"
        return cls(pixels=np.asarray(image.convert(mode)), origin=origin, filename=filename)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def to_pil(self) -> Image.Image:
        return Image.fromarray(np.array(self.pixels))
