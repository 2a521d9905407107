from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from retoucher.application.dtos.common_dto import ProxyRequest
from retoucher.infrastructure.api.dependencies import get_http_client, get_settings
from retoucher.infrastructure.config import Settings
from retoucher.infrastructure.generation.upstream import (
    build_upstream_request,
    extract_error_message,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Generation Proxy"])


@router.post(
    "/generate",
    summary="Generation Proxy",
    description="""
    Forward `{model, contents, config}` to the upstream `generateContent`
    endpoint using the server-held API key, so the key never reaches a client.

    - success: the upstream JSON is returned verbatim
    - upstream failure: `{error, details}` with the upstream status code
    - missing `model` or `contents`: 400
    - no key configured or transport failure: 500
    """,
)
async def generate(
    body: ProxyRequest,
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    if not settings.api_key:
        return JSONResponse(status_code=500, content={"error": "The API key is not configured on the server."})
    if not body.model or not body.contents:
        return JSONResponse(status_code=400, content={"error": "Missing required fields: model and contents."})

    url, payload = build_upstream_request(settings.upstream_url, body.model, body.contents, body.config)
    try:
        upstream = await client.post(url, json=payload, params={"key": settings.api_key})
        data = upstream.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.error("Proxy error: %s", exc)
        return JSONResponse(status_code=500, content={"error": "An internal server error occurred."})

    if upstream.is_error:
        logger.error("Upstream API error %s: %s", upstream.status_code, data)
        detail = extract_error_message(data, "The upstream generation API returned an error.")
        return JSONResponse(status_code=upstream.status_code, content={"error": detail, "details": data})

    return JSONResponse(status_code=200, content=data)
