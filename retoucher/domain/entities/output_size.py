from __future__ import annotations

import math
from dataclasses import dataclass

from retoucher.domain.errors import EditorValidationError


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class OutputSize:
    """Target raster dimensions applied to every generated result."""

    width: int
    height: int

    def __post_init__(self) -> None:
        if int(self.width) <= 0 or int(self.height) <= 0:
            raise EditorValidationError(
                f"Output size must be positive, got {self.width}x{self.height}"
            )
        object.__setattr__(self, "width", int(self.width))
        object.__setattr__(self, "height", int(self.height))

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    @property
    def longer_edge(self) -> int:
        return max(self.width, self.height)

    def exceeds(self, max_dimension: int) -> bool:
        return self.width > max_dimension or self.height > max_dimension

    # Aspect-preserving shrink so the longer edge equals max_dimension.
    # Sizes already within the limit are returned unchanged.
    def downscaled_to(self, max_dimension: int) -> OutputSize:
        if not self.exceeds(max_dimension):
            return self
        if self.width > self.height:
            width = float(max_dimension)
            height = width / self.aspect_ratio
        else:
            height = float(max_dimension)
            width = height * self.aspect_ratio
        return OutputSize(max(1, round_half_up(width)), max(1, round_half_up(height)))

    def as_tuple(self) -> tuple[int, int]:
        return self.width, self.height
