"""
tts-gateway: OpenAI-compatible Text-to-Speech Gateway.

An HTTP gateway that accepts OpenAI-style speech requests and fulfils them
through the Microsoft Translator speech backend. The backend speaks a
different protocol, so the gateway translates both the request format
(JSON -> SSML) and the authentication scheme (optional deployment API key ->
signed, time-bounded endpoint token).

Key Features:
    - OpenAI-compatible endpoints (/v1/audio/speech, /v1/models)
    - Signed endpoint-token acquisition with a rotating client identity
    - Process-wide credential cache with single-flight refresh
    - Streamed audio passthrough (no buffering of upstream audio)
    - Voice catalog caching with TTL
    - Prometheus metrics and structured logging

Example Usage:
    >>> from tts_gateway.core.config import Settings
    >>> from tts_gateway.services import GatewayService, VoiceSynthesisRequest
    >>>
    >>> service = GatewayService(Settings(raw={}))
    >>> stream = service.synthesize(VoiceSynthesisRequest(text="Hello"))
    >>> with open("hello.mp3", "wb") as f:
    ...     for chunk in stream.iter_bytes():
    ...         f.write(chunk)
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
