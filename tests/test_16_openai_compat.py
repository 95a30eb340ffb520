"""
Tests for the OpenAI-compatible endpoints, end to end over a fake backend.

Tests cover:
- POST /v1/audio/speech defaults, voice_settings, download, errors
- GET /v1/models card layout
- API key gate and CORS preflight
"""
from __future__ import annotations

import re

import pytest
from fastapi.testclient import TestClient

from conftest import AUDIO
from tts_gateway.api.dependencies import get_gateway_service
from tts_gateway.core.config import Settings
from tts_gateway.main import create_app
from tts_gateway.services.gateway import GatewayService


def _make_client(http_client, clock, raw=None) -> TestClient:
    settings = Settings(raw=raw or {})
    service = GatewayService(settings, client=http_client, clock=clock)
    app = create_app(settings)
    app.dependency_overrides[get_gateway_service] = lambda: service
    return TestClient(app)


@pytest.fixture
def client(http_client, clock):
    return _make_client(http_client, clock)


@pytest.fixture
def keyed_client(http_client, clock):
    return _make_client(http_client, clock, {"auth": {"api_key": "sk-test"}})


class TestSpeechEndpoint:
    """POST /v1/audio/speech."""

    def test_defaults(self, client, upstream):
        r = client.post("/v1/audio/speech", json={"input": "hello"})
        assert r.status_code == 200
        assert r.content == AUDIO
        assert r.headers["content-type"].startswith("audio/mpeg")

        req = upstream.synth_requests[0]
        assert req.headers["X-Microsoft-OutputFormat"] == "audio-24khz-48kbitrate-mono-mp3"
        assert b'<voice name="zh-CN-XiaoxiaoMultilingualNeural">' in req.content
        assert b'rate="0%" pitch="0%"' in req.content
        assert b">hello</prosody>" in req.content

    def test_model_and_voice_settings(self, client, upstream):
        r = client.post("/v1/audio/speech", json={
            "model": "zh-CN-YunxiNeural",
            "input": "hi",
            "voice_settings": {"speed": 20, "pitch": -10, "output_format": "riff-24khz-16bit-mono-pcm"},
        })
        assert r.status_code == 200
        req = upstream.synth_requests[0]
        assert req.headers["X-Microsoft-OutputFormat"] == "riff-24khz-16bit-mono-pcm"
        assert b'<voice name="zh-CN-YunxiNeural">' in req.content
        assert b'rate="20%" pitch="-10%"' in req.content

    def test_partial_voice_settings_keep_defaults(self, client, upstream):
        r = client.post("/v1/audio/speech", json={"input": "hi", "voice_settings": {"pitch": 5}})
        assert r.status_code == 200
        req = upstream.synth_requests[0]
        assert b'rate="0%" pitch="5%"' in req.content
        assert req.headers["X-Microsoft-OutputFormat"] == "audio-24khz-48kbitrate-mono-mp3"

    def test_download(self, client):
        r = client.post("/v1/audio/speech", json={"input": "hi", "download": True})
        assert r.status_code == 200
        assert re.fullmatch(r'attachment; filename="[0-9a-f]{32}\.mp3"',
                            r.headers["content-disposition"])

    def test_no_download_header_by_default(self, client):
        r = client.post("/v1/audio/speech", json={"input": "hi"})
        assert "content-disposition" not in r.headers

    def test_empty_body_is_invalid_input(self, client, upstream):
        r = client.post("/v1/audio/speech", json={})
        assert r.status_code == 400
        assert r.json()["error"]["code"] == "invalid_input"
        assert r.json()["error"]["type"] == "invalid_request_error"
        assert upstream.endpoint_calls == 0

    def test_empty_string_input(self, client, upstream):
        r = client.post("/v1/audio/speech", json={"input": ""})
        assert r.status_code == 400
        assert r.json()["error"]["code"] == "invalid_input"
        assert upstream.endpoint_calls == 0

    def test_whitespace_input_is_synthesized(self, client, upstream):
        r = client.post("/v1/audio/speech", json={"input": "   "})
        assert r.status_code == 200
        assert len(upstream.synth_requests) == 1

    def test_malformed_json(self, client):
        r = client.post("/v1/audio/speech", content=b"{not json",
                        headers={"Content-Type": "application/json"})
        assert r.status_code == 400
        assert r.json()["error"]["code"] == "invalid_input"

    def test_get_not_allowed(self, client):
        r = client.get("/v1/audio/speech")
        assert r.status_code == 405
        assert r.json()["error"]["code"] == "method_not_allowed"

    def test_upstream_auth_failure(self, client, upstream):
        upstream.endpoint_status = 403
        r = client.post("/v1/audio/speech", json={"input": "hi"})
        assert r.status_code == 500
        assert r.json()["error"]["code"] == "upstream_auth_failed"
        assert r.json()["error"]["type"] == "server_error"

    def test_synthesis_failure(self, client, upstream):
        upstream.synth_status = 400
        r = client.post("/v1/audio/speech", json={"input": "hi"})
        assert r.status_code == 500
        assert r.json()["error"]["code"] == "synthesis_failed"

    def test_credential_shared_across_requests(self, client, upstream):
        for _ in range(3):
            assert client.post("/v1/audio/speech", json={"input": "hi"}).status_code == 200
        assert upstream.endpoint_calls == 1


class TestModelsEndpoint:
    """GET /v1/models."""

    def test_list(self, client):
        r = client.get("/v1/models")
        assert r.status_code == 200
        body = r.json()
        assert body["object"] == "list"
        assert [m["id"] for m in body["data"]] == [
            "zh-CN-XiaoxiaoMultilingualNeural", "zh-CN-YunxiNeural", "en-US-AriaNeural",
        ]

    def test_card_layout(self, client):
        card = client.get("/v1/models").json()["data"][0]
        assert card["object"] == "model"
        assert card["owned_by"] == "Zwei"
        assert card["root"] == card["id"]
        assert card["parent"] is None
        assert 1600000000 <= card["created"] < 1700000000

        perm = card["permission"][0]
        assert re.fullmatch(r"modelperm-[0-9a-f]{24}", perm["id"])
        assert perm["object"] == "model_permission"
        assert perm["allow_view"] is True
        for flag in ("allow_create_engine", "allow_sampling", "allow_logprobs",
                     "allow_search_indices", "allow_fine_tuning", "is_blocking"):
            assert perm[flag] is False
        assert perm["organization"] == "*"
        assert perm["group"] is None

    def test_catalog_failure(self, client, upstream):
        upstream.voices_status = 500
        r = client.get("/v1/models")
        assert r.status_code == 500
        assert r.json()["error"]["code"] == "catalog_fetch_failed"

    def test_post_not_allowed(self, client):
        assert client.post("/v1/models").status_code == 405


class TestApiKey:
    """Optional bearer gate."""

    def test_missing_key(self, keyed_client):
        r = keyed_client.post("/v1/audio/speech", json={"input": "hi"})
        assert r.status_code == 401
        assert r.json()["error"]["code"] == "invalid_api_key"

    def test_wrong_key(self, keyed_client):
        r = keyed_client.get("/v1/models", headers={"Authorization": "Bearer nope"})
        assert r.status_code == 401

    def test_key_without_bearer_prefix(self, keyed_client):
        r = keyed_client.get("/v1/models", headers={"Authorization": "sk-test"})
        assert r.status_code == 401

    def test_correct_key(self, keyed_client):
        r = keyed_client.post("/v1/audio/speech", json={"input": "hi"},
                              headers={"Authorization": "Bearer sk-test"})
        assert r.status_code == 200

    def test_unauthorized_has_cors(self, keyed_client):
        r = keyed_client.get("/v1/models")
        assert r.headers["access-control-allow-origin"] == "*"

    def test_options_not_gated(self, keyed_client):
        r = keyed_client.options("/v1/audio/speech")
        assert r.status_code == 204


class TestCors:
    """CORS headers on every response."""

    def test_preflight(self, client):
        r = client.options("/v1/models")
        assert r.status_code == 204
        assert r.headers["access-control-allow-origin"] == "*"
        assert r.headers["access-control-allow-methods"] == "GET,HEAD,POST,OPTIONS"
        assert r.headers["access-control-allow-headers"] == "Content-Type, Authorization"
        assert r.headers["access-control-max-age"] == "86400"

    def test_audio_response_has_cors(self, client):
        r = client.post("/v1/audio/speech", json={"input": "hi"})
        assert r.headers["access-control-allow-origin"] == "*"

    def test_error_response_has_cors(self, client):
        r = client.get("/nowhere")
        assert r.status_code == 404
        assert r.headers["access-control-allow-origin"] == "*"
        assert r.json()["error"]["code"] == "resource_not_found"

    def test_request_id_header(self, client):
        r = client.get("/v1/models")
        assert re.fullmatch(r"[0-9a-f]{12}", r.headers["x-request-id"])
