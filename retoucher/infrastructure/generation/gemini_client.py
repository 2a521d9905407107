from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Protocol

import httpx
from PIL import Image

from retoucher.domain.errors import UpstreamError
from retoucher.infrastructure.config import Settings
from retoucher.infrastructure.generation import prompts
from retoucher.infrastructure.generation.upstream import (
    build_upstream_request,
    extract_error_message,
    parse_image_response,
)
from retoucher.infrastructure.storage.image_codec import to_inline_part

logger = logging.getLogger(__name__)


class GenerationService(Protocol):
    async def edit(
        self,
        image: Image.Image,
        edit_mask: Image.Image,
        preserve_mask: Image.Image | None,
        instruction: str,
    ) -> Image.Image: ...

    async def filter(self, image: Image.Image, instruction: str) -> Image.Image: ...

    async def adjust(self, image: Image.Image, instruction: str) -> Image.Image: ...

    async def segment(self, image: Image.Image, point: tuple[int, int]) -> Image.Image: ...


class GeminiGenerationClient:
    """Generation and segmentation calls against a ``generateContent`` model.

    Talks either to the local proxy endpoint (``proxy_url``), which holds the
    key server-side, or straight to upstream with the configured key. Results
    come back at whatever size the model chose; callers resample them.
    """

    def __init__(self, settings: Settings, http: httpx.AsyncClient | None = None) -> None:
        self.settings = settings
        self._http = http

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http is not None:
            yield self._http
            return
        async with httpx.AsyncClient(timeout=self.settings.http_timeout) as client:
            yield client

    async def _generate(self, parts: list[dict[str, Any]], context: str) -> Image.Image:
        model = self.settings.model
        contents = {"parts": parts}
        config = {"responseModalities": ["IMAGE", "TEXT"]}

        if self.settings.proxy_url:
            url = self.settings.proxy_url
            payload: dict[str, Any] = {"model": model, "contents": contents, "config": config}
            params = None
        else:
            if not self.settings.api_key:
                raise UpstreamError("The generation API key is not configured", status_code=500)
            url, payload = build_upstream_request(
                self.settings.upstream_url, model, contents, config
            )
            params = {"key": self.settings.api_key}

        logger.info("Sending %d part(s) for %s to %s", len(parts), context, model)
        try:
            async with self._client() as client:
                response = await client.post(url, json=payload, params=params)
        except httpx.HTTPError as exc:
            logger.error("Generation call for %s failed: %s", context, exc)
            raise UpstreamError(f"Could not reach the generation service: {exc}") from exc

        try:
            data = response.json()
        except ValueError:
            data = None
        if response.is_error:
            message = extract_error_message(data, "The generation service returned an error")
            logger.error("Generation service answered %s for %s: %s", response.status_code, context, message)
            raise UpstreamError(message, status_code=response.status_code)
        if not isinstance(data, dict):
            raise UpstreamError("The generation service returned an unreadable response")
        return parse_image_response(data, context)

    async def edit(
        self,
        image: Image.Image,
        edit_mask: Image.Image,
        preserve_mask: Image.Image | None,
        instruction: str,
    ) -> Image.Image:
        parts = [to_inline_part(image), to_inline_part(edit_mask)]
        if preserve_mask is not None:
            logger.info("Preserve mask present, using the controlled composite instruction")
            parts.append(to_inline_part(preserve_mask))
            text = prompts.preserve_composite_prompt(instruction)
        else:
            text = prompts.masked_edit_prompt(instruction)
        parts.append({"text": text})
        return await self._generate(parts, "edit")

    async def filter(self, image: Image.Image, instruction: str) -> Image.Image:
        parts = [to_inline_part(image), {"text": prompts.filter_prompt(instruction)}]
        return await self._generate(parts, "filter")

    async def adjust(self, image: Image.Image, instruction: str) -> Image.Image:
        parts = [to_inline_part(image), {"text": prompts.adjustment_prompt(instruction)}]
        return await self._generate(parts, "adjustment")

    async def segment(self, image: Image.Image, point: tuple[int, int]) -> Image.Image:
        x, y = point
        parts = [to_inline_part(image), {"text": prompts.segmentation_prompt(x, y)}]
        return await self._generate(parts, "object mask")
