"""Health and readiness endpoints.

These endpoints do NOT require X-API-Key authentication.
- GET /health: service status, strategy availability and proxy pool stats
- GET /readiness: 200 only when at least one strategy is available and the
  proxy pool is non-empty
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Response

from webfinder.models.responses import ApiResponse


def create_health_router(
    *,
    orchestrator: Any = None,
    proxy_pool: Any = None,
) -> APIRouter:
    """Factory that creates the health router with injected dependencies."""

    health_router = APIRouter(tags=["health"])

    def _available_strategies() -> list[str]:
        if orchestrator is None:
            return []
        return [s["strategy"] for s in orchestrator.get_all_statuses() if s["available"]]

    @health_router.get("/health")
    async def health() -> dict:
        return ApiResponse(
            success=True,
            data={
                "status": "healthy",
                "available_strategies": _available_strategies(),
                "proxy_pool": proxy_pool.get_stats() if proxy_pool else {},
            },
        ).model_dump()

    @health_router.get("/readiness")
    async def readiness(response: Response) -> dict:
        available = _available_strategies()
        proxy_total = proxy_pool.get_stats().get("total", 0) if proxy_pool else 0
        is_ready = bool(available) and proxy_total > 0

        if not is_ready:
            response.status_code = 503

        return ApiResponse(
            success=is_ready,
            data={
                "ready": is_ready,
                "available_strategies": len(available),
                "proxy_pool_size": proxy_total,
            },
            error=None if is_ready else "Service not ready",
        ).model_dump()

    return health_router
