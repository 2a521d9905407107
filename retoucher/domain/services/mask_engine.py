from __future__ import annotations

import math
from enum import Enum

import numpy as np
from PIL import Image

from retoucher.domain.errors import EditorValidationError
from retoucher.domain.services.coordinate_mapper import Point


class MaskTool(str, Enum):
    BRUSH = "brush"
    ERASER = "eraser"
    MAGIC_PRESERVE = "magic-preserve"

    @property
    def is_stroke_tool(self) -> bool:
        return self is not MaskTool.MAGIC_PRESERVE


class MaskRole(str, Enum):
    EDIT = "edit"
    PRESERVE = "preserve"


class CompositeMode(str, Enum):
    UNION = "union"  # source-over
    SUBTRACT = "subtract"  # destination-out
    REPLACE = "replace"  # clear, then draw


EDIT_MARKER = (75, 128, 255)
PRESERVE_MARKER = (75, 255, 128)
MARKER_OPACITY = 0.7

MIN_BRUSH_SIZE = 5
MAX_BRUSH_SIZE = 100
DEFAULT_BRUSH_SIZE = 40


def clamp_brush_size(size: float) -> int:
    return int(min(MAX_BRUSH_SIZE, max(MIN_BRUSH_SIZE, round(size))))


def segment_coverage(
    height: int, width: int, start: Point, end: Point, line_width: float
) -> tuple[np.ndarray, tuple[slice, slice]] | None:
    """Anti-aliased coverage of a round-capped segment.

    Returns the coverage in [0, 1] for the bounding box of the stroke plus the
    slices locating that box in the layer, or None when the stroke misses the
    raster entirely. Pixel centers sit at +0.5 like a 2D canvas.
    """
    radius = line_width / 2.0
    x0 = max(int(math.floor(min(start.x, end.x) - radius - 1)), 0)
    y0 = max(int(math.floor(min(start.y, end.y) - radius - 1)), 0)
    x1 = min(int(math.ceil(max(start.x, end.x) + radius + 1)), width)
    y1 = min(int(math.ceil(max(start.y, end.y) + radius + 1)), height)
    if x0 >= x1 or y0 >= y1:
        return None

    ys, xs = np.mgrid[y0:y1, x0:x1].astype(np.float32)
    xs += 0.5
    ys += 0.5
    dx = float(end.x - start.x)
    dy = float(end.y - start.y)
    seg_len2 = dx * dx + dy * dy
    if seg_len2 == 0.0:
        dist = np.hypot(xs - start.x, ys - start.y)
    else:
        t = np.clip(((xs - start.x) * dx + (ys - start.y) * dy) / seg_len2, 0.0, 1.0)
        dist = np.hypot(xs - (start.x + t * dx), ys - (start.y + t * dy))
    coverage = np.clip(radius + 0.5 - dist, 0.0, 1.0).astype(np.float32)
    return coverage, (slice(y0, y1), slice(x0, x1))


class MaskLayer:
    """RGBA raster at display resolution. Alpha carries the selection, the
    color is only there so a viewer can preview the mask."""

    def __init__(self, role: MaskRole, width: int, height: int, rgba: np.ndarray | None = None):
        self.role = MaskRole(role)
        self.color = EDIT_MARKER if self.role is MaskRole.EDIT else PRESERVE_MARKER
        if rgba is None:
            rgba = np.zeros((int(height), int(width), 4), dtype=np.uint8)
        if rgba.shape != (int(height), int(width), 4):
            raise ValueError(f"Mask raster shape {rgba.shape} does not match {width}x{height}")
        self.rgba = rgba.astype(np.uint8, copy=False)
        self.has_content = False
        self.scan()

    @property
    def width(self) -> int:
        return int(self.rgba.shape[1])

    @property
    def height(self) -> int:
        return int(self.rgba.shape[0])

    @property
    def alpha(self) -> np.ndarray:
        return self.rgba[..., 3]

    def scan(self) -> bool:
        self.has_content = bool(np.any(self.rgba[..., 3] > 0))
        return self.has_content

    def clear(self) -> None:
        self.rgba[...] = 0
        self.has_content = False

    def composite(
        self,
        coverage: np.ndarray,
        mode: CompositeMode,
        opacity: float = 1.0,
        region: tuple[slice, slice] | None = None,
    ) -> None:
        if region is None:
            region = (slice(0, self.height), slice(0, self.width))
        block = self.rgba[region]
        src = np.clip(coverage * float(opacity), 0.0, 1.0)
        dst = block[..., 3].astype(np.float32) / 255.0

        if mode is CompositeMode.UNION:
            out = src + dst * (1.0 - src)
        elif mode is CompositeMode.SUBTRACT:
            out = dst * (1.0 - src)
        elif mode is CompositeMode.REPLACE:
            self.rgba[...] = 0
            block = self.rgba[region]
            out = src
        else:  # pragma: no cover
            raise ValueError(f"Unknown composite mode: {mode}")

        out_alpha = np.rint(out * 255.0).astype(np.uint8)
        block[..., 3] = out_alpha
        painted = out_alpha > 0
        block[..., :3] = 0
        block[painted, :3] = self.color

    def rescaled(self, width: int, height: int) -> MaskLayer:
        if (width, height) == (self.width, self.height):
            return MaskLayer(self.role, width, height, self.rgba.copy())
        resized = self.to_image().resize((int(width), int(height)), Image.Resampling.LANCZOS)
        return MaskLayer(self.role, width, height, np.array(resized, dtype=np.uint8))

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.rgba.copy())


class MaskEngine:
    """Edit and preserve layers plus the stroke state that paints them.

    Brush paints the edit layer only and never removes coverage. Eraser clears
    alpha on both layers. Magic-preserve swaps the whole preserve layer for a
    segmentation result. Edit and preserve may overlap: nothing here subtracts
    one from the other, the generation service decides precedence.
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        tool: MaskTool = MaskTool.BRUSH,
        brush_size: int = DEFAULT_BRUSH_SIZE,
    ) -> None:
        self.edit = MaskLayer(MaskRole.EDIT, width, height)
        self.preserve = MaskLayer(MaskRole.PRESERVE, width, height)
        self.tool = MaskTool(tool)
        self.brush_size = clamp_brush_size(brush_size)
        self._last: Point | None = None

    @property
    def size(self) -> tuple[int, int]:
        return self.edit.width, self.edit.height

    @property
    def is_drawing(self) -> bool:
        return self._last is not None

    @property
    def has_edit_mask(self) -> bool:
        return self.edit.has_content

    @property
    def has_preserve_mask(self) -> bool:
        return self.preserve.has_content

    def layer(self, role: MaskRole) -> MaskLayer:
        role = MaskRole(role)
        if role is MaskRole.EDIT:
            return self.edit
        if role is MaskRole.PRESERVE:
            return self.preserve
        raise ValueError(f"Unknown mask role: {role}")  # pragma: no cover

    def set_tool(self, tool: MaskTool) -> None:
        self.tool = MaskTool(tool)
        self._last = None

    def set_brush_size(self, size: float) -> int:
        self.brush_size = clamp_brush_size(size)
        return self.brush_size

    # --------- strokes ---------
    def begin_stroke(self, pos: Point) -> None:
        if not self.tool.is_stroke_tool:
            raise EditorValidationError(f"Tool '{self.tool.value}' does not paint strokes")
        self._last = pos

    def extend_stroke(self, prev: Point, nxt: Point) -> None:
        tool = self.tool
        if tool is MaskTool.BRUSH:
            self._paint(self.edit, prev, nxt, CompositeMode.UNION, MARKER_OPACITY)
        elif tool is MaskTool.ERASER:
            for layer in (self.edit, self.preserve):
                self._paint(layer, prev, nxt, CompositeMode.SUBTRACT, 1.0)
        elif tool is MaskTool.MAGIC_PRESERVE:
            raise EditorValidationError("Magic preserve is a click tool, not a stroke tool")
        else:  # pragma: no cover
            raise ValueError(f"Unknown mask tool: {tool}")

    def stroke_to(self, pos: Point) -> None:
        if self._last is None:
            return
        self.extend_stroke(self._last, pos)
        self._last = pos

    def end_stroke(self) -> tuple[bool, bool]:
        self._last = None
        return self.edit.scan(), self.preserve.scan()

    def paint_stroke(self, points: list[Point]) -> tuple[bool, bool]:
        if not points:
            return self.has_edit_mask, self.has_preserve_mask
        self.begin_stroke(points[0])
        try:
            for pos in points[1:]:
                self.stroke_to(pos)
        finally:
            result = self.end_stroke()
        return result

    def _paint(
        self, layer: MaskLayer, start: Point, end: Point, mode: CompositeMode, opacity: float
    ) -> None:
        hit = segment_coverage(layer.height, layer.width, start, end, self.brush_size)
        if hit is None:
            return
        coverage, region = hit
        layer.composite(coverage, mode, opacity, region)

    # --------- whole-layer operations ---------
    def apply_segmentation(self, binary: Image.Image) -> bool:
        """Replace the preserve layer with a black/white segmentation raster.

        The raster may be at native size; it is rescaled to the display size
        and its white region becomes the preserve marker.
        """
        gray = binary.convert("L")
        if gray.size != self.size:
            gray = gray.resize(self.size, Image.Resampling.LANCZOS)
        coverage = np.asarray(gray, dtype=np.float32) / 255.0
        self.preserve.composite(coverage, CompositeMode.REPLACE, MARKER_OPACITY)
        return self.preserve.scan()

    def clear(self) -> None:
        self.edit.clear()
        self.preserve.clear()
        self._last = None

    def resize(self, width: int, height: int) -> None:
        self.edit = self.edit.rescaled(width, height)
        self.preserve = self.preserve.rescaled(width, height)
        self._last = None

    def export_for_native(
        self, role: MaskRole, native_width: int, native_height: int
    ) -> Image.Image | None:
        """RGBA mask at native resolution, or None when nothing survives.

        Thin strokes can vanish when a large display is scaled down to a
        small native image, so the alpha is scanned again after resampling.
        """
        layer = self.layer(role)
        if not layer.scan():
            return None
        native = layer.to_image().resize(
            (int(native_width), int(native_height)), Image.Resampling.LANCZOS
        )
        if not np.any(np.asarray(native.getchannel("A")) > 0):
            return None
        return native
