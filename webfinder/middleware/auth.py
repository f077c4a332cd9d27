"""X-API-Key authentication middleware.

Every route except the public probes and API docs requires an ``X-API-Key``
header equal to the configured ``api_key``. The comparison is constant-time.
"""

from __future__ import annotations

import hmac
import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from webfinder.middleware.error_handler import AuthenticationError, envelope

logger = logging.getLogger(__name__)

PUBLIC_PATHS: frozenset[str] = frozenset(
    {"/health", "/readiness", "/docs", "/redoc", "/openapi.json"}
)


class ApiKeyAuthMiddleware(BaseHTTPMiddleware):
    """Reject requests lacking a valid ``X-API-Key`` header with a 401 envelope."""

    def __init__(self, app, api_key: str) -> None:  # noqa: ANN001
        super().__init__(app)
        self._api_key = api_key

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        provided_key = request.headers.get("x-api-key")
        if provided_key and hmac.compare_digest(provided_key, self._api_key):
            return await call_next(request)

        logger.warning(
            "%s X-API-Key header",
            "Invalid" if provided_key else "Missing",
            extra={
                "error_reason": "invalid_api_key" if provided_key else "missing_api_key",
                "target_url": request.url.path,
            },
        )
        return envelope(
            status_code=AuthenticationError.status_code,
            error=AuthenticationError.message,
        )
