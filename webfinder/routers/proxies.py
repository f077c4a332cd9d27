"""Proxy pool endpoints.

- GET  /proxies/pool: current pool statistics
- POST /proxies/refresh: re-test a fresh public list and swap the pool
- POST /proxies/test: health-test a single proxy
"""

from __future__ import annotations

import logging

from fastapi import APIRouter

from webfinder.models.requests import ProxyTestRequest
from webfinder.models.responses import ApiResponse, ProxyTestPayload
from webfinder.proxy.manager import ProxyPool
from webfinder.proxy.types import ProxyRecord

logger = logging.getLogger(__name__)


def create_proxies_router(*, proxy_pool: ProxyPool) -> APIRouter:
    """Factory that creates the proxies router with an injected pool."""

    proxies_router = APIRouter(prefix="/proxies", tags=["proxies"])

    @proxies_router.get("/pool")
    async def pool_stats() -> dict:
        return ApiResponse(success=True, data=proxy_pool.get_stats()).model_dump()

    @proxies_router.post("/refresh")
    async def refresh_pool() -> dict:
        """Refresh synchronously; the pool is kept when no candidate passes."""
        before = len(proxy_pool.proxies)
        after = await proxy_pool.refresh_pool()
        return ApiResponse(
            success=True,
            data={"before": before, "after": after, **proxy_pool.get_stats()},
        ).model_dump()

    @proxies_router.post("/test")
    async def test_proxy(body: ProxyTestRequest) -> dict:
        record = ProxyRecord.from_host_port(body.ip, body.port, body.protocol)
        logger.info("Testing proxy %s:%s (%s)", record.host, record.port, record.protocol)
        result = await proxy_pool.test_proxy(record)
        payload = ProxyTestPayload(
            success=result.success,
            ip=record.host,
            port=record.port,
            protocol=record.protocol,
            response_ms=result.response_ms,
            error=result.error,
        )
        return ApiResponse(success=True, data=payload.model_dump()).model_dump()

    return proxies_router
