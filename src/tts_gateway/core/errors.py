"""
Error Taxonomy for tts-gateway.

Every failure that can reach a client is a GatewayError subclass. Each error
knows its HTTP status, its OpenAI error ``type`` and its machine-readable
``code``, so the HTTP layer can render any of them with one function.

Hierarchy:
    GatewayError
    ├── InvalidRequestError   - bad input, bad API key, unknown route (4xx)
    ├── UpstreamAuthError     - endpoint token fetch failed (500)
    ├── SynthesisError        - synthesis endpoint failed (500)
    └── CatalogFetchError     - voice list endpoint failed (500)

Envelope (OpenAI-compatible):
    {
        "error": {
            "message": "Input text is required",
            "type": "invalid_request_error",
            "code": "invalid_input"
        }
    }

Upstream errors carry ``upstream_status`` (the status code returned by the
Microsoft service, or None for transport failures). It is kept for logs and
metrics and never echoed to clients.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class ErrorCode:
    """Machine-readable error codes used in the ``code`` field."""
    INVALID_INPUT = "invalid_input"
    INVALID_API_KEY = "invalid_api_key"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    RESOURCE_NOT_FOUND = "resource_not_found"
    UPSTREAM_AUTH_FAILED = "upstream_auth_failed"
    SYNTHESIS_FAILED = "synthesis_failed"
    CATALOG_FETCH_FAILED = "catalog_fetch_failed"
    INTERNAL_ERROR = "internal_error"


class ErrorType:
    """OpenAI error categories used in the ``type`` field."""
    INVALID_REQUEST = "invalid_request_error"
    SERVER = "server_error"


class GatewayError(Exception):
    """
    Base exception for all client-visible gateway errors.

    Attributes:
        message: Human-readable error message.
        code: Value from ErrorCode.
        error_type: Value from ErrorType.
        status_code: HTTP status to respond with.
        details: Optional extra context (logged, not returned).
    """

    def __init__(
        self,
        message: str,
        code: str = ErrorCode.INTERNAL_ERROR,
        error_type: str = ErrorType.SERVER,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.error_type = error_type
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Render the OpenAI error envelope."""
        return {
            "error": {
                "message": self.message,
                "type": self.error_type,
                "code": self.code,
            }
        }


class InvalidRequestError(GatewayError):
    """Raised for client mistakes. Always recoverable by fixing the request."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCode.INVALID_INPUT,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code, ErrorType.INVALID_REQUEST, status_code, details)


class UpstreamError(GatewayError):
    """Common base for failures of a call to the Microsoft backend."""

    def __init__(
        self,
        message: str,
        code: str,
        upstream_status: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.upstream_status = upstream_status
        merged = dict(details or {})
        if upstream_status is not None:
            merged.setdefault("upstream_status", upstream_status)
        super().__init__(message, code, ErrorType.SERVER, 500, merged)


class UpstreamAuthError(UpstreamError):
    """Raised when the endpoint token could not be obtained or decoded."""

    def __init__(self, message: str, upstream_status: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.UPSTREAM_AUTH_FAILED, upstream_status, details)


class SynthesisError(UpstreamError):
    """Raised when the synthesis endpoint rejects or fails a request."""

    def __init__(self, message: str, upstream_status: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.SYNTHESIS_FAILED, upstream_status, details)


class CatalogFetchError(UpstreamError):
    """Raised when the public voice list could not be fetched."""

    def __init__(self, message: str, upstream_status: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.CATALOG_FETCH_FAILED, upstream_status, details)
