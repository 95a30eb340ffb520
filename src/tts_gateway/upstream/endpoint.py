"""
Anonymous endpoint token fetch.

The translator endpoint hands out a short-lived speech token together with
the region it is valid for. The request impersonates the Android app, so
the header set below must be sent as-is.
"""
from __future__ import annotations

from dataclasses import dataclass

import httpx

from tts_gateway.core.errors import UpstreamAuthError
from tts_gateway.core.logging import fail, get_logger, verbose
from tts_gateway.core.metrics import metrics
from tts_gateway.utils.timeit import timeit

from .signature import sign

_LOG = get_logger("tts-gateway.endpoint")

ENDPOINT_URL = "https://dev.microsofttranslator.com/apps/endpoint?api-version=1.0"

_STATIC_HEADERS = {
    "Accept-Language": "zh-Hans",
    "X-ClientVersion": "4.0.530a 5fe1dc6c",
    "X-UserId": "0f04d16a175c411e",
    "X-HomeGeographicRegion": "zh-Hans-CN",
    "User-Agent": "okhttp/4.5.0",
    "Content-Type": "application/json; charset=utf-8",
    "Accept-Encoding": "gzip",
}


@dataclass(frozen=True)
class Endpoint:
    """Region and bearer token returned by the endpoint service."""
    region: str
    token: str


class EndpointFetcher:
    """Fetches fresh endpoint tokens over a shared httpx client."""

    def __init__(self, client: httpx.Client, url: str = ENDPOINT_URL):
        self._client = client
        self._url = url

    def build_headers(self, client_id: str) -> dict:
        headers = dict(_STATIC_HEADERS)
        headers["X-ClientTraceId"] = client_id
        headers["X-MT-Signature"] = sign(self._url)
        return headers

    def fetch(self, client_id: str) -> Endpoint:
        """
        Request a new token.

        Args:
            client_id: Anonymous client identity to send as X-ClientTraceId.

        Raises:
            UpstreamAuthError: Non-success status, transport failure or a
                body without ``r``/``t``.
        """
        with timeit("endpoint_fetch") as t:
            try:
                resp = self._client.post(self._url, headers=self.build_headers(client_id), content=b"")
            except httpx.HTTPError as e:
                metrics.record_upstream_error("endpoint")
                fail(_LOG, "endpoint_transport_error", error=type(e).__name__)
                raise UpstreamAuthError(f"Endpoint request failed: {type(e).__name__}") from e

        if not resp.is_success:
            metrics.record_upstream_error("endpoint")
            fail(_LOG, "endpoint_rejected", upstream_status=resp.status_code,
                 seconds=round(t.timing.seconds, 3))
            raise UpstreamAuthError(
                f"Endpoint request failed with status {resp.status_code}",
                upstream_status=resp.status_code,
            )

        try:
            body = resp.json()
            endpoint = Endpoint(region=str(body["r"]), token=str(body["t"]))
        except (ValueError, KeyError, TypeError) as e:
            metrics.record_upstream_error("endpoint")
            fail(_LOG, "endpoint_malformed", error=type(e).__name__)
            raise UpstreamAuthError("Endpoint response is missing region or token",
                                    upstream_status=resp.status_code) from e

        verbose(_LOG, "endpoint_fetched", region=endpoint.region, seconds=round(t.timing.seconds, 3))
        return endpoint
