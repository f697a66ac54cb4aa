"""VentureLens API layer: routes, schemas, and middleware."""

from venturelens.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from venturelens.api.routes import router
from venturelens.api.schemas import (
    DeleteResponse,
    ErrorResponse,
    HealthResponse,
    IngestRequest,
    WebSearchRequest,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "DeleteResponse",
    "ErrorResponse",
    "HealthResponse",
    "IngestRequest",
    "WebSearchRequest",
]
