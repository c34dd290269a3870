"""Proxy error responses.

Every proxy failure is returned as ``{"error": ..., "details": ...}`` with
the matching HTTP status.
"""

from typing import Any, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class ProxyError(Exception):
    """Error returned to the caller as a JSON body."""

    def __init__(self, message: str, status_code: int = 400, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class UpstreamError(ProxyError):
    """1inch rejected the request or could not be reached."""

    pass


async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
    body = {"error": exc.message}
    if exc.details is not None:
        body["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=body)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and query strings get the proxy error shape."""
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request parameters", "details": jsonable_encoder(exc.errors())},
    )
