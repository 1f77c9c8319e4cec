"""Custom exceptions and centralized FastAPI error handlers."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

# Upper bound on upstream body text echoed back in error details
MAX_DETAIL_CHARS = 1000


class ProxyError(Exception):
    """Base exception with HTTP status code and optional details."""

    def __init__(self, message: str, status_code: int = 500, details: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details

    def to_body(self) -> dict:
        body = {"error": str(self)}
        if self.details is not None:
            body["details"] = self.details
        return body


class UpstreamError(ProxyError):
    """Non-2xx response from Reddit, passed through with its status."""

    def __init__(self, status_code: int, body_text: str):
        super().__init__(
            f"Failed to fetch: {status_code}",
            status_code=status_code,
            details=body_text[:MAX_DETAIL_CHARS],
        )


class TransportError(ProxyError):
    """Network failure, or a body that was not the JSON we expected."""

    def __init__(self, details: str):
        super().__init__("Proxy failed", status_code=500, details=details)


class CacheError(ProxyError):
    pass


class CredentialRefreshError(ProxyError):
    def __init__(self, message: str = "Session expired, refresh failed."):
        super().__init__(message, status_code=401)


class OAuthError(ProxyError):
    def __init__(self, message: str):
        super().__init__(message, status_code=401)


class NotAuthenticatedError(ProxyError):
    def __init__(self):
        super().__init__("Not authenticated", status_code=401)


def register_error_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers on the FastAPI app."""

    @app.exception_handler(ProxyError)
    async def handle_proxy_error(_request: Request, exc: ProxyError):
        return JSONResponse(exc.to_body(), status_code=exc.status_code)

    @app.exception_handler(ValueError)
    async def handle_value_error(_request: Request, exc: ValueError):
        return JSONResponse({"error": str(exc)}, status_code=400)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and request.url.path.startswith("/api"):
            return JSONResponse({"error": "API endpoint not found."}, status_code=404)
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse(
            {"error": "Internal server error"},
            status_code=500,
        )
