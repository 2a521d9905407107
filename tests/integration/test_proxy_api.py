import json

import httpx
import pytest

from retoucher.infrastructure.api.dependencies import get_http_client, get_settings
from retoucher.infrastructure.config import Settings


def settings_with(api_key):
    return Settings(
        api_key=api_key,
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


@pytest.fixture()
def upstream(app):
    """Routes the proxy's outgoing calls to a handler set by the test."""
    state = {"handler": None, "requests": []}

    def dispatch(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        return state["handler"](request)

    app.dependency_overrides[get_settings] = lambda: settings_with("server-key")
    app.dependency_overrides[get_http_client] = lambda: httpx.AsyncClient(
        transport=httpx.MockTransport(dispatch)
    )
    return state


PAYLOAD = {
    "model": "image-model",
    "contents": {"parts": [{"text": "hello"}]},
    "config": {"responseModalities": ["IMAGE", "TEXT"], "temperature": 0.4},
}


def test_success_passes_upstream_json_through(client, upstream):
    upstream["handler"] = lambda request: httpx.Response(200, json={"candidates": [{"finishReason": "STOP"}]})
    r = client.post("/api/generate", json=PAYLOAD)
    assert r.status_code == 200
    assert r.json() == {"candidates": [{"finishReason": "STOP"}]}

    sent = upstream["requests"][0]
    assert sent.url.path == "/v1beta/models/image-model:generateContent"
    assert sent.url.params["key"] == "server-key"
    body = json.loads(sent.content)
    assert body == {"contents": {"parts": [{"text": "hello"}]}, "temperature": 0.4}


@pytest.mark.parametrize("payload", [{}, {"model": "image-model"}, {"contents": {"parts": []}}])
def test_missing_fields_are_400(client, upstream, payload):
    r = client.post("/api/generate", json=payload)
    assert r.status_code == 400
    assert "model and contents" in r.json()["error"]
    assert upstream["requests"] == []


def test_missing_key_is_500(client, app, upstream):
    app.dependency_overrides[get_settings] = lambda: settings_with(None)
    r = client.post("/api/generate", json=PAYLOAD)
    assert r.status_code == 500
    assert "API key" in r.json()["error"]
    assert upstream["requests"] == []


def test_upstream_error_keeps_status_and_details(client, upstream):
    error = {"error": {"code": 403, "message": "API key not valid"}}
    upstream["handler"] = lambda request: httpx.Response(403, json=error)
    r = client.post("/api/generate", json=PAYLOAD)
    assert r.status_code == 403
    assert r.json() == {"error": "API key not valid", "details": error}


def test_transport_failure_is_500(client, upstream):
    def boom(request):
        raise httpx.ConnectError("unreachable", request=request)

    upstream["handler"] = boom
    r = client.post("/api/generate", json=PAYLOAD)
    assert r.status_code == 500
    assert r.json() == {"error": "An internal server error occurred."}


def test_other_methods_are_405(client):
    assert client.get("/api/generate").status_code == 405
