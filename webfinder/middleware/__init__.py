"""Middleware package: error hierarchy, API key auth and request IDs."""

from webfinder.middleware.auth import ApiKeyAuthMiddleware
from webfinder.middleware.error_handler import (
    AuthenticationError,
    FinderError,
    ProxyPoolEmptyError,
    StrategyNotFoundError,
    register_error_handlers,
)
from webfinder.middleware.request_id import RequestIdFilter, RequestIdMiddleware

__all__ = [
    "ApiKeyAuthMiddleware",
    "AuthenticationError",
    "FinderError",
    "ProxyPoolEmptyError",
    "RequestIdFilter",
    "RequestIdMiddleware",
    "StrategyNotFoundError",
    "register_error_handlers",
]
