from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from retoucher.domain.entities.editor_session import EditorSession
from retoucher.domain.entities.image_version import ImageVersion, VersionOrigin
from retoucher.domain.entities.output_size import OutputSize
from retoucher.domain.errors import SessionBusyError
from retoucher.domain.services.crop_transformer import CropTransformer

logger = logging.getLogger(__name__)


@dataclass
class ApplyCropUseCase:
    cropper: CropTransformer = field(default_factory=CropTransformer)

    def execute(self, session: EditorSession) -> ImageVersion:
        """
        Commit the pending crop selection as a new version.

        The raster is cut from the native image and sized in device pixels,
        so it is committed as-is; the output size then follows the cropped
        dimensions for later generations.
        """
        current = session.require_image()
        if session.busy:
            raise SessionBusyError("Wait for the running request to finish before cropping")
        mapper = session.mapper
        cropped = self.cropper.crop(
            current.to_pil(),
            session.crop_selection,
            mapper.scale_x,
            mapper.scale_y,
            mapper.device_pixel_ratio,
        )
        stamp = datetime.now(UTC).strftime("%Y%m%d%H%M%S%f")
        version = ImageVersion.from_pil(cropped, VersionOrigin.CROP, filename=f"cropped-{stamp}.png")
        session.commit(version)
        session.output_size = OutputSize(version.width, version.height)
        logger.info(
            "Session %s committed crop %s at %sx%s", session.id, version.id, version.width, version.height
        )
        return version
