from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from enum import Enum
from io import BytesIO

from PIL import Image, UnidentifiedImageError


class ExportFormat(str, Enum):
    PNG = "png"
    JPEG = "jpeg"

    @property
    def extension(self) -> str:
        return "jpg" if self is ExportFormat.JPEG else "png"

    @property
    def content_type(self) -> str:
        return f"image/{self.value}"


@dataclass
class EncodedImage:
    data: bytes
    content_type: str
    width: int
    height: int

    @property
    def size(self) -> int:
        return len(self.data)


class InvalidImageError(ValueError):
    pass


def encode_image(
    image: Image.Image, fmt: ExportFormat = ExportFormat.PNG, quality: int = 92
) -> EncodedImage:
    fmt = ExportFormat(fmt)
    buf = BytesIO()
    if fmt is ExportFormat.JPEG:
        # JPEG has no alpha channel
        img = image.convert("RGB")
        img.save(buf, format="JPEG", quality=int(quality))
    else:
        img = image if image.mode in ("RGB", "RGBA", "L", "LA") else image.convert("RGBA")
        img.save(buf, format="PNG")
    return EncodedImage(
        data=buf.getvalue(), content_type=fmt.content_type, width=img.width, height=img.height
    )


def decode_image(data: bytes) -> Image.Image:
    if not data:
        raise InvalidImageError("Empty image payload")
    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise InvalidImageError(f"Could not decode image: {exc}") from exc
    has_alpha = "A" in img.getbands() or "transparency" in img.info
    return img.convert("RGBA" if has_alpha else "RGB")


def decode_base64_image(data: str) -> Image.Image:
    try:
        raw = base64.b64decode(data, validate=False)
    except (binascii.Error, ValueError) as exc:
        raise InvalidImageError(f"Invalid base64 image data: {exc}") from exc
    return decode_image(raw)


def to_inline_part(image: Image.Image) -> dict:
    encoded = encode_image(image, ExportFormat.PNG)
    return {
        "inlineData": {
            "mimeType": encoded.content_type,
            "data": base64.b64encode(encoded.data).decode("ascii"),
        }
    }
