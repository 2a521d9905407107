from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from retoucher.application.use_cases.request_guard import run_exclusive
from retoucher.domain.entities.editor_session import EditorSession
from retoucher.domain.entities.image_version import ImageVersion, VersionOrigin
from retoucher.domain.entities.prompt_entry import PromptKind
from retoucher.domain.errors import EditorValidationError
from retoucher.domain.services.mask_engine import MaskRole
from retoucher.domain.services.processing_service import ProcessingService
from retoucher.infrastructure.generation.gemini_client import GenerationService

logger = logging.getLogger(__name__)


@dataclass
class RetouchImageUseCase:
    generation: GenerationService
    processing: ProcessingService

    async def execute(self, session: EditorSession, instruction: str) -> ImageVersion:
        """
        Regenerate the masked region of the current version.

        Validation runs first and mutates nothing: an image must be loaded, the
        instruction must be non-blank, the edit mask must have content, and it
        must still have content after scaling to native resolution.

        On success the result is resampled to the output size, committed, the
        masks are cleared and the instruction is added to the prompt ledger.
        """
        current = session.require_image()
        instruction = (instruction or "").strip()
        if not instruction:
            raise EditorValidationError("Enter a description for the edit")
        if not session.masks.has_edit_mask:
            raise EditorValidationError("Paint over the area of the image you want to edit")
        output_size = session.require_output_size()

        edit_mask = session.masks.export_for_native(MaskRole.EDIT, current.width, current.height)
        if edit_mask is None:
            raise EditorValidationError("The edit mask appears to be empty")
        preserve_mask = None
        if session.masks.has_preserve_mask:
            preserve_mask = session.masks.export_for_native(
                MaskRole.PRESERVE, current.width, current.height
            )

        source = current.to_pil()
        generated = await run_exclusive(
            session,
            lambda: self.generation.edit(source, edit_mask, preserve_mask, instruction),
        )

        fitted = self.processing.fit_to_output(generated, output_size)
        version = ImageVersion.from_pil(
            fitted, VersionOrigin.RETOUCH, filename=f"edited-{_stamp()}.png"
        )
        session.commit(version)
        session.prompts.append(PromptKind.RETOUCH, instruction)
        logger.info(
            "Session %s committed retouch %s at %sx%s",
            session.id,
            version.id,
            version.width,
            version.height,
        )
        return version


def _stamp() -> str:
    return datetime.now(UTC).strftime("%Y%m%d%H%M%S%f")
