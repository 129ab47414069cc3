"""Error taxonomy and the uniform JSON error envelope.

Every failure below the HTTP boundary is a ``GatewayError`` subclass carrying its
HTTP status. Handlers registered by ``register_exception_handlers`` turn these
(and framework errors) into ``{"success": false, "error": message}``.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Base class for errors reported to clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(GatewayError):
    """Missing or malformed input."""

    status_code = status.HTTP_400_BAD_REQUEST


class Unauthenticated(GatewayError):
    """No valid session token."""

    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(GatewayError):
    """Authenticated principal lacks the required role."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFound(GatewayError):
    """Named resource does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class DuplicateDocument(GatewayError):
    """A document with the same display name already exists in the store."""

    status_code = status.HTTP_409_CONFLICT


class PayloadTooLarge(GatewayError):
    """Uploaded content exceeds the configured size cap."""

    status_code = status.HTTP_413_CONTENT_TOO_LARGE


class RemoteOperationFailed(GatewayError):
    """The remote service reported an error on a call or long-running operation."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class TransportError(GatewayError):
    """The remote service could not be reached."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class StoreNotInitialized(GatewayError):
    """The remote store handle has not been acquired."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class RemoteTimeout(GatewayError):
    """A polling or pagination loop exceeded its bound."""

    status_code = status.HTTP_504_GATEWAY_TIMEOUT


def error_response(status_code: int, message: str) -> JSONResponse:
    """Build the uniform error envelope."""
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


async def _gateway_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, GatewayError)
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return error_response(exc.status_code, exc.message)


async def _validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg', 'invalid value')}" if location else "invalid request"
    else:
        message = "invalid request"
    return error_response(status.HTTP_400_BAD_REQUEST, message)


async def _http_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, StarletteHTTPException)
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        return error_response(exc.status_code, "route not found")
    return error_response(exc.status_code, str(exc.detail))


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    """Install envelope-producing handlers on the application."""
    app.add_exception_handler(GatewayError, _gateway_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
