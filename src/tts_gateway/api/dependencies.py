"""
FastAPI Dependency Injection Providers.

    get_settings()          - settings loaded once per process
    get_gateway_service()   - the GatewayService singleton

Routes receive the service through Depends(), so tests swap it out with
``app.dependency_overrides[get_gateway_service] = lambda: fake``.
"""
from __future__ import annotations

from functools import lru_cache

from fastapi import Request

from tts_gateway.core.config import Settings, load_settings
from tts_gateway.services.gateway import GatewayService, get_service


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache application settings.

    Reads ``TTS_GW_SETTINGS`` or ``config/settings.yaml``; defaults are used
    when the default file does not exist. Restart to pick up changes.
    """
    return load_settings()


def get_gateway_service(request: Request) -> GatewayService:
    """
    The process-wide GatewayService, built from the settings the app was
    created with.
    """
    settings = getattr(request.app.state, "settings", None) or get_settings()
    return get_service(settings)
