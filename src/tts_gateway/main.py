"""
FastAPI Application Entry Point.

Usage:
    uvicorn tts_gateway.main:app --host 0.0.0.0 --port 8000

    # Or with an explicit settings file
    TTS_GW_SETTINGS=config/settings.yaml uvicorn tts_gateway.main:app
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from tts_gateway import __version__
from tts_gateway.api.dependencies import get_settings
from tts_gateway.api.errors import install_exception_handlers
from tts_gateway.api.middleware import gateway_middleware
from tts_gateway.api.openai_compat import router as openai_router
from tts_gateway.api.routes import router
from tts_gateway.core.config import Settings
from tts_gateway.core.logging import configure_logging, get_logger, info
from tts_gateway.services.gateway import shutdown_service

_LOG = get_logger("tts-gateway.main")


@asynccontextmanager
async def _lifespan(app: FastAPI):
    info(_LOG, "startup", version=__version__, auth=bool(app.state.api_key))
    yield
    shutdown_service()
    info(_LOG, "shutdown")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to serve with. Defaults to get_settings().

    Returns:
        FastAPI: Configured application instance.
    """
    configure_logging()

    if settings is None:
        settings = get_settings()

    app = FastAPI(title="tts-gateway", version=__version__, lifespan=_lifespan)
    app.state.settings = settings
    app.state.api_key = settings.api_key

    install_exception_handlers(app)
    app.middleware("http")(gateway_middleware)

    app.include_router(router)           # /health, /metrics
    app.include_router(openai_router)    # /v1/audio/speech, /v1/models

    return app


# Global application instance for ASGI servers
app = create_app()
