from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from PIL import Image

from retoucher.domain.errors import EditorValidationError


class AspectPreset(str, Enum):
    FREE = "free"
    SQUARE = "1:1"
    WIDE = "16:9"

    @property
    def ratio(self) -> float | None:
        if self is AspectPreset.FREE:
            return None
        if self is AspectPreset.SQUARE:
            return 1.0
        if self is AspectPreset.WIDE:
            return 16 / 9
        raise ValueError(f"Unknown aspect preset: {self}")  # pragma: no cover


@dataclass(frozen=True)
class CropSelection:
    """Rectangle in displayed-image (CSS pixel) coordinates."""

    x: float
    y: float
    width: float
    height: float

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def constrained(self, aspect: AspectPreset | float | None) -> CropSelection:
        # Shrink the longer side so width/height matches the aspect, keeping the origin.
        if isinstance(aspect, AspectPreset):
            aspect = aspect.ratio
        if not aspect or self.is_empty:
            return self
        if self.width / self.height > aspect:
            return CropSelection(self.x, self.y, self.height * aspect, self.height)
        return CropSelection(self.x, self.y, self.width, self.width / aspect)

    def clipped(self, bound_width: float, bound_height: float) -> CropSelection:
        left, top = max(0.0, self.x), max(0.0, self.y)
        right = min(float(bound_width), self.x + self.width)
        bottom = min(float(bound_height), self.y + self.height)
        if right <= left or bottom <= top:
            raise EditorValidationError("Crop selection lies outside the image")
        return CropSelection(left, top, right - left, bottom - top)

    def scaled(self, scale_x: float, scale_y: float) -> tuple[float, float, float, float]:
        return (
            self.x * scale_x,
            self.y * scale_y,
            (self.x + self.width) * scale_x,
            (self.y + self.height) * scale_y,
        )


class CropTransformer:
    """Rasterizes a display-space selection from the native image.

    The destination buffer is sized in device pixels (selection * dpr) while
    the selection itself is expressed in CSS pixels, which keeps the crop
    sharp on high-density screens regardless of how large the native image is.
    """

    def __init__(self, resample: Image.Resampling = Image.Resampling.LANCZOS) -> None:
        self.resample = resample

    @staticmethod
    def validate(selection: CropSelection | None) -> CropSelection:
        if selection is None:
            raise EditorValidationError("Select an area to crop first")
        if selection.is_empty:
            raise EditorValidationError(
                f"Crop selection has zero area ({selection.width}x{selection.height})"
            )
        return selection

    @staticmethod
    def source_box(
        selection: CropSelection, scale_x: float, scale_y: float, native_size: tuple[int, int]
    ) -> tuple[float, float, float, float]:
        left, top, right, bottom = selection.scaled(scale_x, scale_y)
        native_w, native_h = native_size
        left, right = max(0.0, left), min(float(native_w), right)
        top, bottom = max(0.0, top), min(float(native_h), bottom)
        if right <= left or bottom <= top:
            raise EditorValidationError("Crop selection lies outside the image")
        return left, top, right, bottom

    @staticmethod
    def destination_size(selection: CropSelection, device_pixel_ratio: float) -> tuple[int, int]:
        dpr = device_pixel_ratio or 1.0
        # canvas dimensions truncate
        width = int(selection.width * dpr)
        height = int(selection.height * dpr)
        if width <= 0 or height <= 0:
            raise EditorValidationError("Crop selection is smaller than one device pixel")
        return width, height

    def crop(
        self,
        image: Image.Image,
        selection: CropSelection | None,
        scale_x: float,
        scale_y: float,
        device_pixel_ratio: float = 1.0,
    ) -> Image.Image:
        selection = self.validate(selection)
        # clip in display space so source and destination shrink together
        selection = selection.clipped(image.width / scale_x, image.height / scale_y)
        box = self.source_box(selection, scale_x, scale_y, image.size)
        dest = self.destination_size(selection, device_pixel_ratio)
        return image.resize(dest, self.resample, box=box)
