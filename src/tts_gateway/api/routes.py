"""
Operational Routes.

Endpoints:
    GET /health   - credential cache and voice cache status
    GET /metrics  - Prometheus metrics

Both follow the same API-key and CORS rules as the OpenAI endpoints.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from tts_gateway.api.dependencies import get_gateway_service
from tts_gateway.core.metrics import metrics
from tts_gateway.services.gateway import GatewayService

router = APIRouter()


@router.get("/health")
def health(service: GatewayService = Depends(get_gateway_service)):
    """
    Health check for load balancers and probes.

    Reports whether a credential is cached, its region and time to expiry,
    and voice cache statistics. Never calls the upstream and never exposes
    the token or client id.
    """
    return service.get_health_info()


@router.get("/metrics")
def prometheus_metrics():
    """Prometheus text exposition."""
    content, content_type = metrics.get_metrics_response()
    return Response(content=content, media_type=content_type)
