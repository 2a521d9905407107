import asyncio
import base64
import io
import json

import httpx
import pytest
from PIL import Image

from retoucher.domain.errors import NoImageReturnedError, PolicyBlockedError, UpstreamError
from retoucher.infrastructure.config import Settings
from retoucher.infrastructure.generation.gemini_client import GeminiGenerationClient
from retoucher.infrastructure.generation.upstream import (
    build_upstream_request,
    extract_error_message,
    parse_image_response,
)


def png_b64(w: int = 8, h: int = 6) -> str:
    buf = io.BytesIO()
    Image.new("RGB", (w, h), (1, 2, 3)).save(buf, format="PNG")
    return base64.b64encode(buf.getvalue()).decode()


def image_response(w: int = 8, h: int = 6) -> dict:
    return {
        "candidates": [
            {
                "content": {"parts": [{"text": "here you go"}, {"inlineData": {"mimeType": "image/png", "data": png_b64(w, h)}}]},
                "finishReason": "STOP",
            }
        ]
    }


def make_settings(**overrides) -> Settings:
    values = dict(
        api_key="test-key",
        upstream_url="https://upstream.test/v1beta",
        model="image-model",
        proxy_url=None,
        max_image_dimension=2048,
        http_timeout=5.0,
        session_ttl=3600.0,
        max_sessions=100,
        env="test",
        log_level="WARNING",
    )
    values.update(overrides)
    return Settings(**values)


# --------- response parsing ---------
def test_parse_returns_first_image_part():
    image = parse_image_response(image_response(12, 7), "edit")
    assert image.size == (12, 7)


def test_parse_block_reason_wins():
    data = image_response()
    data["promptFeedback"] = {"blockReason": "SAFETY", "blockReasonMessage": "nope"}
    with pytest.raises(PolicyBlockedError) as excinfo:
        parse_image_response(data, "edit")
    assert excinfo.value.reason == "SAFETY"
    assert "nope" in str(excinfo.value)


def test_parse_non_stop_finish_without_image_is_policy_stop():
    data = {"candidates": [{"content": {"parts": []}, "finishReason": "IMAGE_SAFETY"}]}
    with pytest.raises(PolicyBlockedError) as excinfo:
        parse_image_response(data, "filter")
    assert excinfo.value.reason == "IMAGE_SAFETY"


def test_parse_text_only_reports_the_text():
    data = {"candidates": [{"content": {"parts": [{"text": "I cannot edit faces."}]}, "finishReason": "STOP"}]}
    with pytest.raises(NoImageReturnedError) as excinfo:
        parse_image_response(data, "adjustment")
    assert excinfo.value.text_feedback == "I cannot edit faces."
    assert "adjustment" in str(excinfo.value)


def test_parse_empty_response():
    with pytest.raises(NoImageReturnedError) as excinfo:
        parse_image_response({}, "edit")
    assert excinfo.value.text_feedback is None


def test_parse_undecodable_image():
    data = {"candidates": [{"content": {"parts": [{"inlineData": {"mimeType": "image/png", "data": "bm90IGFuIGltYWdl"}}]}}]}
    with pytest.raises(UpstreamError):
        parse_image_response(data, "edit")


def test_build_upstream_request_flattens_config():
    url, body = build_upstream_request(
        "https://upstream.test/v1beta/",
        "image-model",
        {"parts": [{"text": "hi"}]},
        {"responseModalities": ["IMAGE"], "temperature": 0.2},
    )
    assert url == "https://upstream.test/v1beta/models/image-model:generateContent"
    assert body == {"contents": {"parts": [{"text": "hi"}]}, "temperature": 0.2}


@pytest.mark.parametrize(
    "data, expected",
    [
        ({"error": {"message": "quota exceeded"}}, "quota exceeded"),
        ({"error": "bad key"}, "bad key"),
        ({"something": 1}, "fallback"),
        (None, "fallback"),
    ],
)
def test_extract_error_message(data, expected):
    assert extract_error_message(data, "fallback") == expected


# --------- client ---------
def run_client(settings: Settings, handler, call):
    async def _run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = GeminiGenerationClient(settings, http=http)
            return await call(client)

    return asyncio.run(_run())


def test_direct_call_sends_key_and_parts():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=image_response(20, 10))

    image = Image.new("RGB", (20, 10))
    mask = Image.new("RGBA", (20, 10))
    result = run_client(make_settings(), handler, lambda c: c.edit(image, mask, None, "add a tree"))

    assert result.size == (20, 10)
    assert seen["url"].path == "/v1beta/models/image-model:generateContent"
    assert seen["url"].params["key"] == "test-key"
    parts = seen["body"]["contents"]["parts"]
    assert len(parts) == 3
    assert parts[0]["inlineData"]["mimeType"] == "image/png"
    assert "add a tree" in parts[2]["text"]
    assert "responseModalities" not in seen["body"]


def test_preserve_mask_adds_a_part():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=image_response())

    image = Image.new("RGB", (8, 6))
    mask = Image.new("RGBA", (8, 6))
    run_client(make_settings(), handler, lambda c: c.edit(image, mask, mask, "swap the sky"))
    parts = seen["body"]["contents"]["parts"]
    assert len(parts) == 4
    assert "swap the sky" in parts[3]["text"]


def test_proxy_mode_posts_model_contents_config():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=image_response())

    settings = make_settings(api_key=None, proxy_url="http://proxy.test/api/generate")
    run_client(settings, handler, lambda c: c.filter(Image.new("RGB", (8, 6)), "noir"))
    assert seen["url"] == "http://proxy.test/api/generate"
    assert seen["body"]["model"] == "image-model"
    assert seen["body"]["config"] == {"responseModalities": ["IMAGE", "TEXT"]}
    assert len(seen["body"]["contents"]["parts"]) == 2


def test_segment_prompt_carries_the_point():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=image_response())

    run_client(make_settings(), handler, lambda c: c.segment(Image.new("RGB", (8, 6)), (3, 4)))
    text = seen["body"]["contents"]["parts"][1]["text"]
    assert "3" in text and "4" in text


def test_missing_key_fails_without_a_request():
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover
        raise AssertionError("no request expected")

    with pytest.raises(UpstreamError) as excinfo:
        run_client(make_settings(api_key=None), handler, lambda c: c.adjust(Image.new("RGB", (8, 6)), "warmer"))
    assert excinfo.value.status_code == 500


def test_upstream_error_status_is_reported():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": {"message": "Resource exhausted"}})

    with pytest.raises(UpstreamError) as excinfo:
        run_client(make_settings(), handler, lambda c: c.adjust(Image.new("RGB", (8, 6)), "warmer"))
    assert excinfo.value.status_code == 429
    assert "Resource exhausted" in str(excinfo.value)


def test_transport_error_becomes_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamError):
        run_client(make_settings(), handler, lambda c: c.filter(Image.new("RGB", (8, 6)), "noir"))
