"""
HTTP middleware: CORS, API-key gate, request id, request metrics.

Order for each request:
    1. Bind a request id (echoed back as X-Request-Id)
    2. OPTIONS -> 204 preflight answer, never auth-gated
    3. If an API key is configured, require ``Authorization: Bearer <key>``
    4. Route the request
    5. Attach CORS headers and record metrics, whatever the outcome
"""
from __future__ import annotations

import hmac
import uuid
from typing import Awaitable, Callable, Optional

from fastapi import Request, Response

from tts_gateway.core.errors import ErrorCode, ErrorType
from tts_gateway.core.logging import get_logger, info, set_request_id, warn
from tts_gateway.core.metrics import metrics
from tts_gateway.utils.timeit import timeit

from .errors import CORS_HEADERS, error_response

_LOG = get_logger("tts-gateway.http")


def is_authorized(authorization: Optional[str], api_key: Optional[str]) -> bool:
    """True when no key is configured or the header is exactly ``Bearer <key>``."""
    if not api_key:
        return True
    if authorization is None:
        return False
    return hmac.compare_digest(authorization.encode("utf-8"), f"Bearer {api_key}".encode("utf-8"))


def _route_label(request: Request) -> str:
    # Route templates only; raw paths would make label cardinality unbounded
    if request.method == "OPTIONS":
        return "preflight"
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


async def gateway_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    rid = uuid.uuid4().hex[:12]
    set_request_id(rid)

    with timeit("http_request") as t:
        if request.method == "OPTIONS":
            response: Response = Response(status_code=204)
        elif not is_authorized(request.headers.get("authorization"), request.app.state.api_key):
            warn(_LOG, "unauthorized", path=request.url.path)
            response = error_response("Invalid API key", ErrorType.INVALID_REQUEST,
                                      ErrorCode.INVALID_API_KEY, 401)
        else:
            response = await call_next(request)

    for k, v in CORS_HEADERS.items():
        response.headers[k] = v
    response.headers["X-Request-Id"] = rid

    route = _route_label(request)
    metrics.record_request(route, response.status_code, t.timing.seconds)
    info(_LOG, "http", method=request.method, path=request.url.path,
         status=response.status_code, seconds=round(t.timing.seconds, 3))
    return response
