from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from functools import partial

from retoucher.application.use_cases.request_guard import run_exclusive
from retoucher.domain.entities.editor_session import EditorSession
from retoucher.domain.entities.image_version import ImageVersion, VersionOrigin
from retoucher.domain.entities.prompt_entry import PromptKind
from retoucher.domain.errors import EditorValidationError
from retoucher.domain.services.processing_service import ProcessingService
from retoucher.infrastructure.generation.gemini_client import GenerationService

logger = logging.getLogger(__name__)


@dataclass
class ApplyGlobalEditUseCase:
    """Whole-image filter or adjustment. Masks are not involved."""

    generation: GenerationService
    processing: ProcessingService

    async def execute(
        self, session: EditorSession, kind: PromptKind, instruction: str
    ) -> ImageVersion:
        kind = PromptKind(kind)
        current = session.require_image()
        instruction = (instruction or "").strip()
        if not instruction:
            raise EditorValidationError(f"Enter a description for the {kind.value}")
        output_size = session.require_output_size()

        source = current.to_pil()
        if kind is PromptKind.FILTER:
            call = partial(self.generation.filter, source, instruction)
            origin, prefix = VersionOrigin.FILTER, "filtered"
        elif kind is PromptKind.ADJUST:
            call = partial(self.generation.adjust, source, instruction)
            origin, prefix = VersionOrigin.ADJUST, "adjusted"
        elif kind is PromptKind.RETOUCH:
            raise EditorValidationError("Retouch edits need a mask; use the retouch endpoint")
        else:  # pragma: no cover
            raise ValueError(f"Unsupported prompt kind: {kind}")

        generated = await run_exclusive(session, call)

        fitted = self.processing.fit_to_output(generated, output_size)
        stamp = datetime.now(UTC).strftime("%Y%m%d%H%M%S%f")
        version = ImageVersion.from_pil(fitted, origin, filename=f"{prefix}-{stamp}.png")
        session.commit(version)
        session.prompts.append(kind, instruction)
        logger.info("Session %s committed %s %s", session.id, kind.value, version.id)
        return version
