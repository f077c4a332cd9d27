"""API response envelope and payload models.

All API responses are wrapped in this envelope for consistency:
{ success: bool, data: T | None, error: str | None, meta: dict | None }
"""

from __future__ import annotations

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel

from webfinder.models.results import SearchResult, StrategyId

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """JSON envelope for all API responses."""

    success: bool
    data: T | None = None
    error: str | None = None
    meta: dict | None = None


class CandidatePayload(BaseModel):
    url: str
    title: str
    score: int


class SearchPayload(BaseModel):
    """A single company lookup as returned to callers."""

    company: str
    ruc: str | None = None
    clean_name: str | None = None
    found: bool
    website: str | None = None
    score: int = 0
    title: str | None = None
    strategy_used: StrategyId
    all_results: list[CandidatePayload] = []
    timestamp: datetime | None = None

    @classmethod
    def from_result(
        cls,
        company: str,
        ruc: str | None,
        result: SearchResult | None,
        strategy_used: StrategyId,
    ) -> "SearchPayload":
        if result is None:
            return cls(company=company, ruc=ruc, found=False, strategy_used=strategy_used)
        return cls(
            company=company,
            ruc=ruc,
            clean_name=result.clean_name,
            found=result.found,
            website=result.website,
            score=result.score,
            title=result.title,
            strategy_used=strategy_used,
            all_results=[
                CandidatePayload(url=c.url, title=c.title, score=c.score)
                for c in result.all_results
            ],
            timestamp=result.timestamp,
        )


class BatchSearchPayload(BaseModel):
    total: int
    found: int
    results: list[SearchPayload]


class ProxyTestPayload(BaseModel):
    success: bool
    ip: str
    port: int
    protocol: str
    response_ms: int | None = None
    error: str | None = None
