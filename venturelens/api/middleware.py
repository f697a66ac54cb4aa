"""API middleware: CORS, request logging, and error handling.

Starlette runs middleware last-added-first, so with the order used in
``main.py`` a request passes RequestLogging -> ErrorHandling -> route, and
the request log records the final status even when ErrorHandling replaced
the response.
"""

from __future__ import annotations

import time
import uuid

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from venturelens.api.schemas import ErrorResponse
from venturelens.utils.errors import (
    ConfigurationError,
    QueryErrorCategory,
    VentureLensError,
    WebSearchError,
    categorize_error,
)
from venturelens.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

_CATEGORY_STATUS: dict[QueryErrorCategory, int] = {
    QueryErrorCategory.RATE_LIMITED: 429,
    QueryErrorCategory.QUOTA_EXHAUSTED: 402,
}


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware; every origin is allowed unless *allowed_origins* is given."""
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request and tag every event it causes with a request id.

    The id is taken from an incoming ``X-Request-ID`` header when present,
    bound into structlog's context vars for the duration of the request,
    and echoed on the response.  For streamed query answers the logged
    duration covers time to first byte only.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        start = time.perf_counter()
        response: Response | None = None

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            try:
                response = await call_next(request)
                response.headers[REQUEST_ID_HEADER] = request_id
                return response
            finally:
                _logger.info(
                    "http_request",
                    method=request.method,
                    path=request.url.path,
                    status=response.status_code if response else 500,
                    duration_ms=round((time.perf_counter() - start) * 1000, 2),
                )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


def error_status(exc: VentureLensError) -> int:
    """HTTP status for an application error.

    Rate-limit and quota failures keep their provider status (429 / 402).
    Missing provider configuration and web-search failures map to 503.
    Anything else is a 500.
    """
    category = categorize_error(exc)
    if category in _CATEGORY_STATUS:
        return _CATEGORY_STATUS[category]
    if isinstance(exc, (ConfigurationError, WebSearchError)):
        return 503
    return 500


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Catch ``VentureLensError`` subclasses and return structured JSON errors.

    Stack traces are logged server-side only; the client sees the error
    type, its message, and the user-facing category.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except VentureLensError as exc:
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
            )
            body = ErrorResponse(
                error=type(exc).__name__,
                detail=exc.message,
                category=categorize_error(exc).value,
            )
            return JSONResponse(
                status_code=error_status(exc),
                content=body.model_dump(),
            )
