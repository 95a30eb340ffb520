"""
tts-gateway Services Layer.

Sits between the HTTP/CLI surfaces and the upstream clients.

Components:
    - gateway.py: GatewayService and its process-wide singleton
"""
from tts_gateway.upstream.synthesis import AudioStream, VoiceSynthesisRequest

from .gateway import (
    GatewayService,
    get_service,
    reset_service,
    shutdown_service,
    validate_text,
)

__all__ = [
    "AudioStream",
    "GatewayService",
    "VoiceSynthesisRequest",
    "get_service",
    "reset_service",
    "shutdown_service",
    "validate_text",
]
