from __future__ import annotations

import os
from dataclasses import dataclass

from retoucher.domain.entities.editor_session import EditorSession
from retoucher.domain.errors import EditorValidationError
from retoucher.infrastructure.storage.image_codec import EncodedImage, ExportFormat, encode_image


@dataclass
class ExportResult:
    encoded: EncodedImage
    filename: str


@dataclass
class ExportImageUseCase:
    def execute(
        self, session: EditorSession, fmt: ExportFormat = ExportFormat.PNG, quality: int = 92
    ) -> ExportResult:
        current = session.current
        if current is None:
            raise EditorValidationError("There is no image to download")
        if not 1 <= int(quality) <= 100:
            raise EditorValidationError("JPEG quality must be between 1 and 100")
        fmt = ExportFormat(fmt)
        encoded = encode_image(current.to_pil(), fmt, quality)
        original = session.history.original
        base = os.path.splitext((original or current).filename)[0] or "image"
        return ExportResult(encoded=encoded, filename=f"edited-{base}.{fmt.extension}")
