"""
OpenAI error envelope and FastAPI exception handlers.

Every error leaving the gateway has the shape:

    {"error": {"message": "...", "type": "...", "code": "..."}}

Handlers installed by install_exception_handlers():
    StarletteHTTPException  404 -> resource_not_found, 405 -> method_not_allowed
    RequestValidationError  400 -> invalid_input
    GatewayError            its own status and envelope
    Exception               500 -> internal_error, CORS headers attached
"""
from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tts_gateway.core.errors import ErrorCode, ErrorType, GatewayError
from tts_gateway.core.logging import fail, get_logger, warn

_LOG = get_logger("tts-gateway.api")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,HEAD,POST,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Max-Age": "86400",
}

_HTTP_STATUS_CODES = {
    400: (ErrorCode.INVALID_INPUT, "Invalid request"),
    401: (ErrorCode.INVALID_API_KEY, "Invalid API key"),
    404: (ErrorCode.RESOURCE_NOT_FOUND, "Resource not found"),
    405: (ErrorCode.METHOD_NOT_ALLOWED, "Method not allowed"),
}


def error_response(message: str, error_type: str, code: str, status_code: int = 500) -> JSONResponse:
    """
    Create an error response in OpenAI's error format.

    Args:
        message: Human-readable error description.
        error_type: "invalid_request_error" or "server_error".
        code: Value from ErrorCode.
        status_code: HTTP status code.
    """
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "message": message,
                "type": error_type,
                "code": code,
            }
        },
    )


def gateway_error_response(error: GatewayError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def internal_error_response() -> JSONResponse:
    """500 without any internal detail."""
    return error_response("Internal server error", ErrorType.SERVER, ErrorCode.INTERNAL_ERROR, 500)


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code, message = _HTTP_STATUS_CODES.get(exc.status_code, (ErrorCode.INTERNAL_ERROR, "Request failed"))
    error_type = ErrorType.INVALID_REQUEST if exc.status_code < 500 else ErrorType.SERVER
    response = error_response(message, error_type, code, exc.status_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    warn(_LOG, "invalid_body", path=request.url.path, errors=len(exc.errors()))
    return error_response("Invalid request body", ErrorType.INVALID_REQUEST, ErrorCode.INVALID_INPUT, 400)


async def _gateway_exception_handler(request: Request, exc: GatewayError) -> JSONResponse:
    return gateway_error_response(exc)


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Runs outside the gateway middleware, so CORS headers are added here
    fail(_LOG, "unhandled_error", path=request.url.path, error=type(exc).__name__)
    response = internal_error_response()
    response.headers.update(CORS_HEADERS)
    return response


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(GatewayError, _gateway_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
