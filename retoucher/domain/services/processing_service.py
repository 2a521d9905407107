from __future__ import annotations

import numpy as np
from PIL import Image

from retoucher.domain.entities.output_size import OutputSize


class ProcessingService:
    """Raster helpers shared by the editing use cases.

    All resampling goes through Pillow's Lanczos filter, the closest match to a
    canvas drawn with ``imageSmoothingQuality = 'high'``.
    """

    # Every generated result lands at exactly the configured output size.
    @staticmethod
    def fit_to_output(image: Image.Image, size: OutputSize) -> Image.Image:
        if image.mode not in ("RGB", "RGBA"):
            image = image.convert("RGBA" if "A" in image.getbands() else "RGB")
        if image.size == size.as_tuple():
            return image
        return image.resize(size.as_tuple(), Image.Resampling.LANCZOS)

    # Aspect-preserving downscale so the longer edge is at most max_dimension.
    @staticmethod
    def downscale_to_limit(image: Image.Image, max_dimension: int) -> Image.Image:
        natural = OutputSize(*image.size)
        target = natural.downscaled_to(max_dimension)
        if target == natural:
            return image
        return image.resize(target.as_tuple(), Image.Resampling.LANCZOS)

    # Composite mask previews over the image, for display only.
    @staticmethod
    def overlay_masks(image: Image.Image, *layers: np.ndarray) -> Image.Image:
        base = image.convert("RGBA")
        for rgba in layers:
            overlay = Image.fromarray(np.ascontiguousarray(rgba, dtype=np.uint8))
            if overlay.size != base.size:
                overlay = overlay.resize(base.size, Image.Resampling.LANCZOS)
            base = Image.alpha_composite(base, overlay)
        return base
