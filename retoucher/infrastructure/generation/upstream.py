from __future__ import annotations

import logging
from typing import Any

from PIL import Image

from retoucher.domain.errors import NoImageReturnedError, PolicyBlockedError, UpstreamError
from retoucher.infrastructure.storage.image_codec import InvalidImageError, decode_base64_image

logger = logging.getLogger(__name__)

# SDK-only options the REST endpoint rejects
_SDK_ONLY_CONFIG_KEYS = frozenset({"responseModalities"})


def build_upstream_request(
    base_url: str, model: str, contents: Any, config: dict[str, Any] | None
) -> tuple[str, dict[str, Any]]:
    """URL and JSON body for a ``generateContent`` call.

    The REST API wants config options at the top level of the body rather
    than nested under ``config``.
    """
    rest = {k: v for k, v in (config or {}).items() if k not in _SDK_ONLY_CONFIG_KEYS}
    url = f"{base_url.rstrip('/')}/models/{model}:generateContent"
    return url, {"contents": contents, **rest}


def extract_error_message(data: Any, default: str) -> str:
    if not isinstance(data, dict):
        return default
    err = data.get("error")
    if isinstance(err, str) and err:
        return err
    if isinstance(err, dict) and err.get("message"):
        return str(err["message"])
    return default


def response_text(data: dict[str, Any]) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(p.get("text", "") for p in parts if isinstance(p, dict)).strip()


def parse_image_response(data: dict[str, Any], context: str) -> Image.Image:
    """Pull the generated image out of a ``generateContent`` response.

    Order matters: a blocked prompt is reported before anything else, an image
    part wins over text, and a non-STOP finish reason without an image is
    treated as a policy stop.
    """
    feedback = data.get("promptFeedback") or {}
    if feedback.get("blockReason"):
        logger.error("Request for %s was blocked: %s", context, feedback)
        raise PolicyBlockedError(feedback["blockReason"], feedback.get("blockReasonMessage"))

    candidates = data.get("candidates") or []
    first = candidates[0] if candidates else {}
    parts = (first.get("content") or {}).get("parts") or []
    for part in parts:
        inline = part.get("inlineData") if isinstance(part, dict) else None
        if inline and inline.get("data"):
            logger.info("Received image data (%s) for %s", inline.get("mimeType"), context)
            try:
                return decode_base64_image(inline["data"])
            except InvalidImageError as exc:
                raise UpstreamError(f"Generated image for {context} could not be decoded: {exc}") from exc

    finish_reason = first.get("finishReason")
    if finish_reason and finish_reason != "STOP":
        logger.error("Generation for %s stopped with %s", context, finish_reason)
        raise PolicyBlockedError(
            finish_reason,
            f"Image generation for {context} stopped unexpectedly. "
            "This is usually related to safety settings.",
        )

    text = response_text(data)
    logger.error("Response for %s contained no image part", context)
    raise NoImageReturnedError(context, text or None)
