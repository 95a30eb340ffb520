"""
Prometheus Metrics for tts-gateway.

Metrics Exposed:
    tts_gateway_requests_total                  - Counter of HTTP requests by route and status
    tts_gateway_request_duration_seconds        - Histogram of request latency by route
    tts_gateway_credential_refreshes_total      - Counter of token refreshes by outcome
    tts_gateway_credential_seconds_remaining    - Gauge of seconds until the token expires
    tts_gateway_upstream_errors_total           - Counter of upstream failures by endpoint
    tts_gateway_voice_catalog_lookups_total     - Counter of catalog lookups by source (cache/upstream)
    tts_gateway_audio_bytes_total               - Counter of audio bytes streamed to clients

Usage:
    from tts_gateway.core.metrics import metrics

    metrics.record_request("/v1/audio/speech", 200, 0.84)
    metrics.record_credential_refresh("success", seconds_remaining=599)
    metrics.record_upstream_error("synthesis")

    content, content_type = metrics.get_metrics_response()

Prometheus Scrape Config Example:
    scrape_configs:
      - job_name: 'tts-gateway'
        static_configs:
          - targets: ['localhost:8000']
        metrics_path: '/metrics'
"""
from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


class GatewayMetrics:
    """
    Gateway metrics backed by a private CollectorRegistry.

    A private registry keeps repeated instantiation (tests, reloads) from
    colliding with the process-wide default registry.

    Thread Safety:
        All Prometheus metric operations are thread-safe.
    """

    def __init__(self):
        self._registry = CollectorRegistry()

        self._requests_total = Counter(
            "tts_gateway_requests_total",
            "Total HTTP requests handled",
            ["route", "status"],
            registry=self._registry,
        )
        self._request_duration = Histogram(
            "tts_gateway_request_duration_seconds",
            "HTTP request duration in seconds",
            ["route"],
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
            registry=self._registry,
        )
        self._credential_refreshes = Counter(
            "tts_gateway_credential_refreshes_total",
            "Upstream credential refresh attempts",
            ["outcome"],
            registry=self._registry,
        )
        self._credential_remaining = Gauge(
            "tts_gateway_credential_seconds_remaining",
            "Seconds until the cached upstream token expires",
            registry=self._registry,
        )
        self._upstream_errors = Counter(
            "tts_gateway_upstream_errors_total",
            "Failed upstream calls",
            ["endpoint"],
            registry=self._registry,
        )
        self._catalog_lookups = Counter(
            "tts_gateway_voice_catalog_lookups_total",
            "Voice catalog lookups",
            ["source"],
            registry=self._registry,
        )
        self._audio_bytes_total = Counter(
            "tts_gateway_audio_bytes_total",
            "Total audio bytes streamed to clients",
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def record_request(self, route: str, status: int, duration: float) -> None:
        """
        Record a completed HTTP request.

        Args:
            route: Route template, e.g. "/v1/audio/speech".
            status: HTTP status code returned.
            duration: Handling time in seconds.
        """
        self._requests_total.labels(route=route, status=str(status)).inc()
        self._request_duration.labels(route=route).observe(duration)

    def record_credential_refresh(self, outcome: str, seconds_remaining: float | None = None) -> None:
        """Record a refresh attempt ("success" or "failure")."""
        self._credential_refreshes.labels(outcome=outcome).inc()
        if seconds_remaining is not None:
            self._credential_remaining.set(seconds_remaining)

    def record_upstream_error(self, endpoint: str) -> None:
        """Record a failed call to "endpoint", "synthesis" or "voices"."""
        self._upstream_errors.labels(endpoint=endpoint).inc()

    def record_catalog_lookup(self, source: str) -> None:
        """Record a catalog lookup served from "cache" or "upstream"."""
        self._catalog_lookups.labels(source=source).inc()

    def add_audio_bytes(self, n: int) -> None:
        if n > 0:
            self._audio_bytes_total.inc(n)

    def get_metrics_response(self) -> tuple[bytes, str]:
        """
        Get metrics in Prometheus text format.

        Returns:
            Tuple of (content_bytes, content_type)
        """
        return generate_latest(self._registry), CONTENT_TYPE_LATEST


# Global metrics instance
metrics = GatewayMetrics()
