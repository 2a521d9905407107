from __future__ import annotations

import logging
from dataclasses import dataclass

from retoucher.domain.entities.editor_session import EditorSession
from retoucher.domain.errors import EditorValidationError
from retoucher.infrastructure.storage.image_codec import InvalidImageError, decode_image

logger = logging.getLogger(__name__)


@dataclass
class UploadOutcome:
    size_warning: bool
    width: int
    height: int


@dataclass
class UploadImageUseCase:
    def execute(self, session: EditorSession, data: bytes, filename: str) -> UploadOutcome:
        """
        Start a new editing chain from uploaded bytes.

        Images whose longer edge is above the session limit are parked until
        ``resolve`` is called with the user's choice; the history is not
        touched before that.
        """
        try:
            image = decode_image(data)
        except InvalidImageError as exc:
            raise EditorValidationError(f"Invalid image file: {exc}") from exc
        needs_choice = session.receive_upload(image, filename)
        logger.info(
            "Session %s received %s (%sx%s)", session.id, filename, image.width, image.height
        )
        return UploadOutcome(size_warning=needs_choice, width=image.width, height=image.height)

    def resolve(self, session: EditorSession, downscale: bool) -> UploadOutcome:
        version = session.resolve_pending_upload(downscale)
        return UploadOutcome(size_warning=False, width=version.width, height=version.height)
