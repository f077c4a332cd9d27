"""FastAPI application entry point with lifespan management.

The app factory builds every component from ``FinderSettings``: strategy
states and adapters, the registry, the orchestrator and the proxy pool.
Startup: schedule a background proxy refresh (never blocks serving).
Shutdown: cancel the refresh and dispose every adapter.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from webfinder import __version__
from webfinder.config.settings import FinderSettings
from webfinder.config.strategy_policies import StrategyPolicy, load_strategy_policies
from webfinder.fingerprint import FingerprintRandomizer
from webfinder.logging_config import configure_logging
from webfinder.middleware.auth import ApiKeyAuthMiddleware
from webfinder.middleware.error_handler import register_error_handlers
from webfinder.middleware.request_id import RequestIdMiddleware
from webfinder.models.results import StrategyId
from webfinder.proxy.manager import ProxyPool
from webfinder.resilience.strategy_state import StrategyState
from webfinder.routers.health import create_health_router
from webfinder.routers.proxies import create_proxies_router
from webfinder.routers.search import create_search_router
from webfinder.services.orchestrator import SearchOrchestrator
from webfinder.strategies.directories import DatosPeruAdapter, UniversidadPeruAdapter
from webfinder.strategies.registry import StrategyRegistry
from webfinder.strategies.serp import SerpClient
from webfinder.strategies.web_search import BingAdapter, DuckDuckGoAdapter

logger = logging.getLogger(__name__)


def build_proxy_pool(settings: FinderSettings, fingerprint: FingerprintRandomizer) -> ProxyPool:
    return ProxyPool(
        settings.proxy_seed,
        list_url=settings.proxy_list_url,
        test_url=settings.proxy_test_url,
        retry_budget=settings.proxy_retry_budget,
        request_timeout=settings.proxy_request_timeout_seconds,
        test_timeout=settings.proxy_test_timeout_seconds,
        min_body_bytes=settings.proxy_min_body_bytes,
        health_min_body_bytes=settings.proxy_health_min_body_bytes,
        test_sample_size=settings.proxy_test_sample_size,
        verify_tls=settings.proxy_verify_tls,
        fingerprint=fingerprint,
    )


def build_registry(
    settings: FinderSettings,
    proxy_pool: ProxyPool,
    fingerprint: FingerprintRandomizer,
    policies: dict[StrategyId, StrategyPolicy],
) -> StrategyRegistry:
    """Create one StrategyState and adapter per strategy."""

    def state(strategy: StrategyId) -> StrategyState:
        return StrategyState(
            strategy,
            max_per_session=policies[strategy].max_per_session,
            failure_threshold=settings.cooldown_failures,
            cooldown_seconds=settings.cooldown_seconds,
            enabled=policies[strategy].enabled,
        )

    def serp() -> SerpClient:
        return SerpClient(timeout=settings.search_timeout_seconds, fingerprint=fingerprint)

    common = {"found_score": settings.found_score, "top_results": settings.top_results}
    web = {
        "blacklist": settings.blacklist_domains,
        "preferred_tlds": settings.preferred_tlds,
        "query_pause_ms": settings.query_pause_ms,
    }

    adapters = [
        DuckDuckGoAdapter(state(StrategyId.DDG_HTTP), serp(), **web, **common),
        BingAdapter(state(StrategyId.BING_HTTP), serp(), **web, **common),
        UniversidadPeruAdapter(
            state(StrategyId.UNIV_PERU_HTTP),
            serp(),
            query_pause_ms=policies[StrategyId.UNIV_PERU_HTTP].delay_min_ms,
            **common,
        ),
        DatosPeruAdapter(state(StrategyId.DATOS_PERU_HTTP), proxy_pool, **common),
    ]

    registry = StrategyRegistry()
    for adapter in adapters:
        registry.register(adapter)
    return registry


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown logic."""
    settings: FinderSettings = app.state.settings
    proxy_pool: ProxyPool = app.state.proxy_pool
    registry: StrategyRegistry = app.state.registry

    logger.info("Starting website finder on port %d", settings.port)
    if settings.proxy_refresh_on_startup:
        proxy_pool.start_background_refresh()

    yield

    logger.info("Shutting down website finder")
    await proxy_pool.aclose()
    await registry.dispose_all()
    logger.info("Website finder shut down")


def create_app(settings: FinderSettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Loads ``FinderSettings`` eagerly so that a missing ``FINDER_API_KEY``
    environment variable causes an immediate startup failure.
    """
    settings = settings or FinderSettings()  # type: ignore[call-arg]
    configure_logging(settings.log_level, json_format=settings.log_json)

    fingerprint = FingerprintRandomizer()
    proxy_pool = build_proxy_pool(settings, fingerprint)
    policies = load_strategy_policies(settings.strategy_policies_path)
    registry = build_registry(settings, proxy_pool, fingerprint, policies)
    orchestrator = SearchOrchestrator(
        registry,
        policies=policies,
        confident_score=settings.confident_score,
        found_score=settings.found_score,
        fingerprint=fingerprint,
    )

    app = FastAPI(
        title="Peru Company Website Finder",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.proxy_pool = proxy_pool
    app.state.registry = registry
    app.state.orchestrator = orchestrator

    register_error_handlers(app)

    # Starlette applies middleware in reverse order: request_id wraps auth.
    app.add_middleware(ApiKeyAuthMiddleware, api_key=settings.api_key)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(create_health_router(orchestrator=orchestrator, proxy_pool=proxy_pool))
    app.include_router(create_search_router(orchestrator=orchestrator))
    app.include_router(create_proxies_router(proxy_pool=proxy_pool))

    return app
