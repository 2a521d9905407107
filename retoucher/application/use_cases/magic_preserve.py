from __future__ import annotations

import logging
from dataclasses import dataclass

from retoucher.application.use_cases.request_guard import run_exclusive
from retoucher.domain.entities.editor_session import EditorSession
from retoucher.domain.errors import EditorValidationError
from retoucher.domain.services.coordinate_mapper import Point
from retoucher.domain.services.mask_engine import MaskTool
from retoucher.infrastructure.generation.gemini_client import GenerationService

logger = logging.getLogger(__name__)


@dataclass
class MagicPreserveResult:
    native_point: tuple[int, int]
    has_preserve_mask: bool


@dataclass
class MagicPreserveUseCase:
    generation: GenerationService

    async def execute(
        self, session: EditorSession, point: Point, *, client_space: bool = True
    ) -> MagicPreserveResult:
        """
        Replace the preserve layer with the object under a click.

        The click is mapped to native pixels for the segmentation call; the
        returned black/white raster is scaled back down to the display canvas.
        """
        current = session.require_image()
        if session.masks.tool is not MaskTool.MAGIC_PRESERVE:
            raise EditorValidationError("Select the magic preserve tool before clicking")

        mapper = session.mapper
        canvas_point = mapper.pointer_to_canvas(point) if client_space else point
        native_point = mapper.canvas_to_native(canvas_point)
        logger.info("Session %s requesting object mask at %s", session.id, native_point)

        source = current.to_pil()
        binary = await run_exclusive(session, lambda: self.generation.segment(source, native_point))
        has_content = session.masks.apply_segmentation(binary)
        return MagicPreserveResult(native_point=native_point, has_preserve_mask=has_content)
