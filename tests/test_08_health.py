"""Tests for /health and the GatewayService singleton."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from tts_gateway.api.dependencies import get_gateway_service
from tts_gateway.core.config import Settings
from tts_gateway.core.errors import InvalidRequestError
from tts_gateway.main import create_app
from tts_gateway.services import gateway as gateway_module
from tts_gateway.services.gateway import (
    GatewayService,
    get_service,
    reset_service,
    shutdown_service,
    validate_text,
)


@pytest.fixture
def service(http_client, clock):
    return GatewayService(Settings(raw={}), client=http_client, clock=clock)


@pytest.fixture
def client(service):
    app = create_app(Settings(raw={}))
    app.dependency_overrides[get_gateway_service] = lambda: service
    return TestClient(app)


class TestHealthEndpoint:

    def test_cold(self, client, upstream):
        body = client.get("/health").json()
        assert body["ok"] is True
        assert body["credential"] == {"cached": False, "needs_refresh": True}
        assert upstream.endpoint_calls == 0

    def test_after_speech(self, client, upstream):
        client.post("/v1/audio/speech", json={"input": "hi"})
        body = client.get("/health").json()
        cred = body["credential"]
        assert cred["cached"] is True
        assert cred["region"] == "eastasia"
        assert cred["seconds_remaining"] == 600
        assert cred["needs_refresh"] is False
        assert upstream.issued_tokens[0] not in client.get("/health").text

    def test_voice_cache_stats(self, client):
        client.get("/v1/models")
        client.get("/v1/models")
        voices = client.get("/health").json()["voices"]
        assert voices["hits"] == 1
        assert voices["size"] == 1


class TestGatewayService:

    def test_build_request_defaults(self, service):
        req = service.build_request(text="hi")
        assert req.voice == "zh-CN-XiaoxiaoMultilingualNeural"
        assert req.rate == 0 and req.pitch == 0
        assert req.output_format == "audio-24khz-48kbitrate-mono-mp3"
        assert req.download is False

    def test_build_request_none_values(self, service):
        req = service.build_request(text="hi", rate=None, pitch=None, output_format=None)
        assert req.rate == 0
        assert req.output_format == "audio-24khz-48kbitrate-mono-mp3"

    def test_configured_default_voice(self, http_client, clock):
        service = GatewayService(Settings(raw={"tts": {"default_voice": "zh-CN-YunxiNeural"}}),
                                 client=http_client, clock=clock)
        assert service.build_request(text="hi").voice == "zh-CN-YunxiNeural"

    def test_validate_text(self):
        assert validate_text("x") == "x"
        assert validate_text("  \n") == "  \n"
        for bad in (None, ""):
            with pytest.raises(InvalidRequestError):
                validate_text(bad)

    def test_injected_client_not_closed(self, service, http_client):
        service.close()
        assert not http_client.is_closed


class TestServiceSingleton:

    def test_get_service_returns_same_instance(self):
        reset_service()
        try:
            a = get_service(Settings(raw={}))
            b = get_service(Settings(raw={}))
            assert a is b
        finally:
            shutdown_service()

    def test_shutdown_closes_client(self):
        reset_service()
        service = get_service(Settings(raw={}))
        client = service._client
        shutdown_service()
        assert client.is_closed
        assert gateway_module._service is None
