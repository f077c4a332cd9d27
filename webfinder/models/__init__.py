"""Public models for the website finder service."""

from webfinder.models.requests import BatchCompanyItem, BatchSearchRequest, ProxyTestRequest
from webfinder.models.responses import (
    ApiResponse,
    BatchSearchPayload,
    CandidatePayload,
    ProxyTestPayload,
    SearchPayload,
)
from webfinder.models.results import (
    DIRECTORY_STRATEGY_PRIORITY,
    STRATEGY_PRIORITY,
    RankedCandidate,
    RawHit,
    SearchResult,
    StrategyId,
)

__all__ = [
    "ApiResponse",
    "BatchCompanyItem",
    "BatchSearchPayload",
    "BatchSearchRequest",
    "CandidatePayload",
    "DIRECTORY_STRATEGY_PRIORITY",
    "ProxyTestPayload",
    "ProxyTestRequest",
    "RankedCandidate",
    "RawHit",
    "STRATEGY_PRIORITY",
    "SearchPayload",
    "SearchResult",
    "StrategyId",
]
