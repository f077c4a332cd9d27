"""Search endpoints.

- GET  /search?q=&ruc=&strategy=: find one company's website
- POST /search/batch: sequential lookup of up to 50 companies
- GET  /search/status: per-strategy quota / circuit breaker snapshots
- POST /search/reset[/{strategy}]: reset counters for one or all strategies
"""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Query

from webfinder.models.requests import BatchSearchRequest
from webfinder.models.responses import ApiResponse, BatchSearchPayload, SearchPayload
from webfinder.models.results import StrategyId
from webfinder.services.orchestrator import SearchOrchestrator

logger = logging.getLogger(__name__)


def create_search_router(*, orchestrator: SearchOrchestrator) -> APIRouter:
    """Factory that creates the search router with an injected orchestrator."""

    search_router = APIRouter(prefix="/search", tags=["search"])

    @search_router.get("")
    async def search_company(
        q: str = Query(..., min_length=2, max_length=200),
        ruc: str | None = Query(default=None, pattern=r"^\d{11}$"),
        strategy: StrategyId | None = None,
    ) -> dict:
        """Find the official website of a single company."""
        started = time.perf_counter()
        result, used = await orchestrator.search(q.strip(), ruc, strategy)
        payload = SearchPayload.from_result(q.strip(), ruc, result, used)

        return ApiResponse(
            success=True,
            data=payload.model_dump(mode="json"),
            meta={"duration_ms": int((time.perf_counter() - started) * 1000)},
        ).model_dump()

    @search_router.post("/batch")
    async def batch_search(body: BatchSearchRequest) -> dict:
        """Look up each company in turn, pacing requests between items."""
        started = time.perf_counter()
        items = await orchestrator.batch_search(
            [(company.name, company.ruc) for company in body.companies],
            strategy=body.strategy,
            delay_ms=body.delay_ms,
        )
        results = [
            SearchPayload.from_result(item.company, item.ruc, item.result, item.strategy_used)
            for item in items
        ]
        payload = BatchSearchPayload(
            total=len(results),
            found=sum(1 for r in results if r.found),
            results=results,
        )

        return ApiResponse(
            success=True,
            data=payload.model_dump(mode="json"),
            meta={"duration_ms": int((time.perf_counter() - started) * 1000)},
        ).model_dump()

    @search_router.get("/status")
    async def strategy_status() -> dict:
        return ApiResponse(success=True, data=orchestrator.get_all_statuses()).model_dump()

    @search_router.post("/reset")
    async def reset_all() -> dict:
        orchestrator.reset_counters()
        return ApiResponse(success=True, data={"reset": "all"}).model_dump()

    @search_router.post("/reset/{strategy}")
    async def reset_one(strategy: StrategyId) -> dict:
        orchestrator.reset_counters(strategy)
        return ApiResponse(success=True, data={"reset": strategy.value}).model_dump()

    return search_router
