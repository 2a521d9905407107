from __future__ import annotations

from dataclasses import dataclass

from retoucher.domain.entities.output_size import round_half_up
from retoucher.domain.errors import EditorValidationError


@dataclass(frozen=True)
class Point:
    x: float
    y: float


class CoordinateMapper:
    """Maps pointer input to the mask canvas and to native image pixels.

    Three spaces are involved:
    - client: raw pointer coordinates reported by the viewer
    - canvas: local to the mask canvas, whose backing buffer is sized to the
      *displayed* image, not the native one
    - native: pixels of the loaded image

    ``sync`` must be called on every image load and viewport resize so the
    canvas keeps matching what the user sees.
    """

    def __init__(
        self,
        natural_width: int = 0,
        natural_height: int = 0,
        *,
        device_pixel_ratio: float = 1.0,
    ) -> None:
        self.natural_width = int(natural_width)
        self.natural_height = int(natural_height)
        self.display_width = float(natural_width)
        self.display_height = float(natural_height)
        self.offset = Point(0.0, 0.0)
        self.device_pixel_ratio = float(device_pixel_ratio) or 1.0

    def load_image(self, natural_width: int, natural_height: int) -> None:
        self.natural_width = int(natural_width)
        self.natural_height = int(natural_height)
        # until the viewer reports otherwise, assume 1:1 display
        self.display_width = float(natural_width)
        self.display_height = float(natural_height)

    def set_natural_size(self, natural_width: int, natural_height: int) -> None:
        # the displayed size stays whatever the viewer last reported
        self.natural_width = int(natural_width)
        self.natural_height = int(natural_height)

    def sync(
        self,
        display_width: float,
        display_height: float,
        offset: Point | None = None,
        device_pixel_ratio: float | None = None,
    ) -> tuple[int, int]:
        if display_width <= 0 or display_height <= 0:
            raise EditorValidationError("Displayed image size must be positive")
        self.display_width = float(display_width)
        self.display_height = float(display_height)
        if offset is not None:
            self.offset = offset
        if device_pixel_ratio:
            self.device_pixel_ratio = float(device_pixel_ratio)
        return self.canvas_size

    @property
    def canvas_size(self) -> tuple[int, int]:
        # canvas width/height attributes truncate fractional CSS sizes
        return max(1, int(self.display_width)), max(1, int(self.display_height))

    @property
    def scale_x(self) -> float:
        return self.natural_width / self.display_width if self.display_width else 1.0

    @property
    def scale_y(self) -> float:
        return self.natural_height / self.display_height if self.display_height else 1.0

    def pointer_to_canvas(self, client: Point) -> Point:
        return Point(client.x - self.offset.x, client.y - self.offset.y)

    def canvas_to_native(self, point: Point) -> tuple[int, int]:
        return round_half_up(point.x * self.scale_x), round_half_up(point.y * self.scale_y)

    def pointer_to_native(self, client: Point) -> tuple[int, int]:
        return self.canvas_to_native(self.pointer_to_canvas(client))
