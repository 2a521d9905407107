from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from PIL import Image

from retoucher.domain.entities.image_version import ImageVersion, VersionOrigin
from retoucher.domain.entities.output_size import OutputSize
from retoucher.domain.entities.prompt_entry import PromptHistoryEntry, PromptKind, PromptLedger
from retoucher.domain.errors import EditorValidationError, SessionBusyError
from retoucher.domain.services.coordinate_mapper import CoordinateMapper, Point
from retoucher.domain.services.crop_transformer import AspectPreset, CropSelection
from retoucher.domain.services.history_sequence import HistorySequence
from retoucher.domain.services.mask_engine import MaskEngine, MaskTool
from retoucher.domain.services.processing_service import ProcessingService

logger = logging.getLogger(__name__)

DEFAULT_MAX_IMAGE_DIMENSION = 2048


class Tab(str, Enum):
    RETOUCH = "retouch"
    ADJUST = "adjust"
    FILTERS = "filters"
    CROP = "crop"


def tab_for_prompt(kind: PromptKind) -> Tab:
    if kind is PromptKind.RETOUCH:
        return Tab.RETOUCH
    if kind is PromptKind.ADJUST:
        return Tab.ADJUST
    if kind is PromptKind.FILTER:
        return Tab.FILTERS
    raise ValueError(f"Unknown prompt kind: {kind}")  # pragma: no cover


@dataclass(frozen=True)
class PendingUpload:
    image: Image.Image
    filename: str

    @property
    def natural_size(self) -> OutputSize:
        return OutputSize(*self.image.size)


class EditorSession:
    """All mutable editor state, changed only through named transitions.

    History mutations (load, commit, undo, redo, reset, upload_new) bump
    ``epoch``. A generation request remembers the epoch it started under and
    its result is only committed if the epoch is unchanged, so an undo or a
    new upload made while a request is in flight cannot be overwritten by a
    late response.
    """

    def __init__(
        self,
        session_id: str | None = None,
        *,
        max_image_dimension: int = DEFAULT_MAX_IMAGE_DIMENSION,
    ) -> None:
        self.id = session_id or uuid.uuid4().hex
        self.created_at = datetime.now(UTC)
        self.max_image_dimension = int(max_image_dimension)
        self.history = HistorySequence()
        self.mapper = CoordinateMapper()
        self.masks = MaskEngine(1, 1)
        self.prompts = PromptLedger()
        self.output_size: OutputSize | None = None
        self.tab = Tab.RETOUCH
        self.crop_selection: CropSelection | None = None
        self.crop_aspect = AspectPreset.FREE
        self.pending_upload: PendingUpload | None = None
        self.busy = False
        self.epoch = 0

    # --------- read helpers ---------
    @property
    def current(self) -> ImageVersion | None:
        return self.history.current

    @property
    def has_image(self) -> bool:
        return self.history.current is not None

    def require_image(self) -> ImageVersion:
        current = self.history.current
        if current is None:
            raise EditorValidationError("No image loaded to edit")
        return current

    def require_output_size(self) -> OutputSize:
        if self.output_size is None:
            raise EditorValidationError("Output image dimensions have not been set")
        return self.output_size

    # --------- upload ---------
    def receive_upload(self, image: Image.Image, filename: str) -> bool:
        """Start an upload. Returns True when the user must pick
        downscale-or-continue before the image is loaded."""
        pending = PendingUpload(image=image, filename=filename)
        if pending.natural_size.exceeds(self.max_image_dimension):
            logger.info(
                "Upload %s is %sx%s, above the %spx limit; waiting for a size choice",
                filename,
                image.width,
                image.height,
                self.max_image_dimension,
            )
            self.pending_upload = pending
            return True
        self.pending_upload = None
        self.load_image(image, filename)
        return False

    def resolve_pending_upload(self, downscale: bool) -> ImageVersion:
        pending = self.pending_upload
        if pending is None:
            raise EditorValidationError("There is no upload waiting for a size decision")
        image = pending.image
        if downscale:
            image = ProcessingService.downscale_to_limit(image, self.max_image_dimension)
        self.pending_upload = None
        return self.load_image(image, pending.filename)

    def load_image(self, image: Image.Image, filename: str) -> ImageVersion:
        version = ImageVersion.from_pil(image, VersionOrigin.UPLOAD, filename=filename)
        self.history.upload_new()
        self.history.commit(version)
        self.output_size = OutputSize(version.width, version.height)
        self.tab = Tab.RETOUCH
        self.crop_selection = None
        self.prompts.clear()
        self.mapper.load_image(version.width, version.height)
        self.masks = MaskEngine(
            *self.mapper.canvas_size, tool=self.masks.tool, brush_size=self.masks.brush_size
        )
        self.epoch += 1
        return version

    def upload_new(self) -> None:
        self.history.upload_new()
        self.output_size = None
        self.prompts.clear()
        self.crop_selection = None
        self.pending_upload = None
        self.masks.clear()
        self.epoch += 1

    # --------- history transitions ---------
    def commit(self, version: ImageVersion) -> None:
        self.history.commit(version)
        self._after_history_change()

    def undo(self) -> bool:
        moved = self.history.undo()
        if moved:
            self._after_history_change()
        return moved

    def redo(self) -> bool:
        moved = self.history.redo()
        if moved:
            self._after_history_change()
        return moved

    def reset(self) -> bool:
        moved = self.history.reset()
        if moved:
            self._after_history_change()
        return moved

    def _after_history_change(self) -> None:
        current = self.history.current
        if current is not None:
            self.mapper.set_natural_size(current.width, current.height)
        self.crop_selection = None
        self.masks.clear()
        self.epoch += 1

    # --------- settings ---------
    def set_tool(self, tool: MaskTool) -> None:
        self.masks.set_tool(MaskTool(tool))

    def set_brush_size(self, size: float) -> int:
        return self.masks.set_brush_size(size)

    def set_output_size(self, width: int, height: int) -> OutputSize:
        self.require_image()
        self.output_size = OutputSize(width, height)
        return self.output_size

    def set_tab(self, tab: Tab) -> None:
        self.tab = Tab(tab)
        if self.tab is not Tab.CROP:
            self.crop_selection = None

    def select_crop(
        self, selection: CropSelection | None, aspect: AspectPreset | None = None
    ) -> CropSelection | None:
        if aspect is not None:
            self.crop_aspect = AspectPreset(aspect)
        if selection is not None:
            selection = selection.constrained(self.crop_aspect)
        self.crop_selection = selection
        return selection

    def sync_viewport(
        self,
        display_width: float,
        display_height: float,
        offset: Point | None = None,
        device_pixel_ratio: float | None = None,
    ) -> tuple[int, int]:
        canvas = self.mapper.sync(display_width, display_height, offset, device_pixel_ratio)
        if self.masks.size != canvas:
            self.masks.resize(*canvas)
        return canvas

    def recall_prompt(self, index: int) -> PromptHistoryEntry:
        entry = self.prompts.get(index)
        self.tab = tab_for_prompt(entry.kind)
        return entry

    # --------- request bookkeeping ---------
    def begin_request(self) -> int:
        if self.busy:
            raise SessionBusyError("Another request is still in progress")
        self.busy = True
        return self.epoch

    def end_request(self) -> None:
        self.busy = False

    def is_current(self, token: int) -> bool:
        return token == self.epoch
