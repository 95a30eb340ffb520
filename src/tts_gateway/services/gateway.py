"""
Gateway Service - Central Orchestrator.

GatewayService owns everything that must exist once per process:

    httpx.Client ──┬── EndpointFetcher ── CredentialStore ── SynthesisClient
                   └── VoiceCatalog

Both the HTTP routes and the CLI go through it, so credential caching and
refresh behave the same in both.

Usage:
    >>> from tts_gateway.services import get_service, VoiceSynthesisRequest
    >>> service = get_service(settings)
    >>> stream = service.synthesize(VoiceSynthesisRequest(text="你好"))
    >>> for chunk in stream.iter_bytes():
    ...     sink.write(chunk)

Lifecycle:
    The FastAPI lifespan calls shutdown_service() on exit, which closes the
    shared HTTP client.
"""
from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, List, Optional

import httpx

from tts_gateway.core.config import GatewayConfig, Settings
from tts_gateway.core.errors import InvalidRequestError
from tts_gateway.core.logging import debug, get_logger, info
from tts_gateway.upstream.credentials import CredentialStore
from tts_gateway.upstream.endpoint import EndpointFetcher
from tts_gateway.upstream.synthesis import AudioStream, SynthesisClient, VoiceSynthesisRequest
from tts_gateway.upstream.voices import VoiceCatalog, VoiceDescriptor

_LOG = get_logger("tts-gateway.service")


def validate_text(text: Optional[str]) -> str:
    """Reject missing or empty input. Whitespace-only text is passed through."""
    if text is None or str(text) == "":
        raise InvalidRequestError("Input text is required")
    return str(text)


class GatewayService:
    """
    Wires the upstream clients together around one shared httpx.Client.

    Args:
        settings: Loaded settings.
        client: Optional httpx client (tests pass one with a MockTransport).
            When omitted the service creates and owns one.
        clock: Epoch-seconds clock for the credential cache.
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.Client] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._settings = settings
        self._config: GatewayConfig = settings.get_gateway_config()

        self._owns_client = client is None
        if client is None:
            if self._config.upstream.timeout_s is not None:
                client = httpx.Client(timeout=self._config.upstream.timeout_s)
            else:
                client = httpx.Client()
        self._client = client

        self._credentials = CredentialStore(
            EndpointFetcher(client),
            refresh_margin_s=self._config.credentials.refresh_margin_s,
            clock=clock,
        )
        self._synthesis = SynthesisClient(client, self._credentials)
        self._catalog = VoiceCatalog(client, ttl_seconds=self._config.voices.cache_ttl_seconds)

        self._text_preview_chars = self._config.logging.text_preview_chars

        info(_LOG, "service_ready",
             default_voice=self._config.synthesis.default_voice,
             refresh_margin_s=self._config.credentials.refresh_margin_s,
             voices_ttl_s=self._config.voices.cache_ttl_seconds)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def config(self) -> GatewayConfig:
        return self._config

    @property
    def credentials(self) -> CredentialStore:
        return self._credentials

    @property
    def catalog(self) -> VoiceCatalog:
        return self._catalog

    def build_request(
        self,
        text: Optional[str],
        voice: Optional[str] = None,
        rate: Optional[float] = None,
        pitch: Optional[float] = None,
        output_format: Optional[str] = None,
        download: bool = False,
    ) -> VoiceSynthesisRequest:
        """Validate inputs and fill omitted fields from configuration."""
        synth = self._config.synthesis
        return VoiceSynthesisRequest(
            text=validate_text(text),
            voice=voice or synth.default_voice,
            rate=rate if rate is not None else 0,
            pitch=pitch if pitch is not None else 0,
            output_format=output_format or synth.default_output_format,
            download=bool(download),
        )

    def synthesize(self, request: VoiceSynthesisRequest) -> AudioStream:
        """
        Synthesize a request into a streamed response.

        Raises:
            InvalidRequestError: Empty text.
            UpstreamAuthError: Credential refresh failed.
            SynthesisError: Synthesis endpoint failed.
        """
        validate_text(request.text)

        n = self._text_preview_chars
        preview = request.text[:n] if n > 0 else ""
        info(_LOG, "speech_request", chars=len(request.text), voice=request.voice,
             format=request.output_format, text_preview=preview)
        debug(_LOG, "speech_request_full", text=request.text)

        return self._synthesis.synthesize(request)

    def list_voices(self) -> List[VoiceDescriptor]:
        """
        Raises:
            CatalogFetchError: The catalog could not be fetched.
        """
        return self._catalog.list_voices()

    def get_health_info(self) -> Dict[str, Any]:
        return {
            "ok": True,
            "credential": self._credentials.snapshot(),
            "voices": self._catalog.stats(),
        }

    def close(self) -> None:
        """Close the HTTP client if this service created it."""
        if self._owns_client:
            self._client.close()
            info(_LOG, "service_closed")


# =============================================================================
# Global Service Singleton
# =============================================================================

_service: Optional[GatewayService] = None
_service_lock = threading.Lock()


def get_service(settings: Settings) -> GatewayService:
    """
    Get or create the global GatewayService instance.

    Thread-safe lazy singleton.
    """
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                _service = GatewayService(settings)
    return _service


def shutdown_service() -> None:
    """Close and drop the global service, if one was created."""
    global _service
    with _service_lock:
        if _service is not None:
            _service.close()
        _service = None


def reset_service() -> None:
    """
    Reset the global service instance without closing it.

    Used by tests that inject their own service.
    """
    global _service
    with _service_lock:
        _service = None
