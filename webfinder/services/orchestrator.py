"""Two-phase search orchestrator.

Phase 1 tries the direct web-search strategies in priority order and stops
at the first confident match. Low-confidence matches are retained while the
remaining Phase-1 strategies run, after which Phase 2 tries the business
directories. Adapter calls are strictly sequential; no adapter exception
ever escapes ``search``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass

from webfinder.config.strategy_policies import DEFAULT_POLICIES, StrategyPolicy
from webfinder.fingerprint import FingerprintRandomizer
from webfinder.models.results import (
    DEFAULT_FOUND_SCORE,
    DIRECTORY_STRATEGY_PRIORITY,
    STRATEGY_PRIORITY,
    SearchResult,
    StrategyId,
)
from webfinder.resilience.strategy_state import StrategyState
from webfinder.strategies.base import SearchStrategyAdapter
from webfinder.strategies.registry import StrategyRegistry

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENT_SCORE = 15


@dataclass
class BatchItemResult:
    """Outcome of one company in a batch search."""

    company: str
    ruc: str | None
    result: SearchResult | None
    strategy_used: StrategyId


class SearchOrchestrator:
    """Runs strategies from a ``StrategyRegistry`` through the two search phases.

    Args:
        registry: Adapters keyed by strategy id.
        policies: Per-strategy pacing windows for batch searches.
        confident_score: Phase-1 score that ends the search immediately.
        found_score: Minimum score for a result to count as found.
        fingerprint: Source of randomized batch delays.
    """

    def __init__(
        self,
        registry: StrategyRegistry,
        *,
        policies: dict[StrategyId, StrategyPolicy] | None = None,
        confident_score: int = DEFAULT_CONFIDENT_SCORE,
        found_score: int = DEFAULT_FOUND_SCORE,
        fingerprint: FingerprintRandomizer | None = None,
    ) -> None:
        self._registry = registry
        self._policies = policies or dict(DEFAULT_POLICIES)
        self._confident_score = confident_score
        self._found_score = found_score
        self._fingerprint = fingerprint or FingerprintRandomizer()

    # ------------------------------------------------------------------
    # Single search
    # ------------------------------------------------------------------

    async def search(
        self,
        company_name: str,
        ruc: str | None = None,
        strategy: StrategyId | None = None,
    ) -> tuple[SearchResult | None, StrategyId]:
        """Find the official website of *company_name*.

        Returns the result (``None`` when nothing was found) and the strategy
        that produced it, or the last one attempted.
        """
        if strategy is not None:
            adapter = self._registry.find(strategy)
            if adapter is not None and adapter.is_available():
                return await self._invoke(adapter, company_name, ruc), strategy
            logger.warning(
                "Requested strategy %s unavailable, running full search",
                strategy.value,
                extra={"strategy": strategy.value, "company": company_name},
            )

        return await self._search_with_fallback(company_name, ruc, skip=strategy)

    async def _search_with_fallback(
        self,
        company_name: str,
        ruc: str | None,
        skip: StrategyId | None = None,
    ) -> tuple[SearchResult | None, StrategyId]:
        retained: SearchResult | None = None
        retained_strategy: StrategyId | None = None
        last_attempted: StrategyId | None = None

        # Phase 1: the company's own website.
        for adapter in self._available(STRATEGY_PRIORITY, skip):
            last_attempted = adapter.strategy
            result = await self._invoke(adapter, company_name, ruc)
            if not self._is_found(result):
                continue

            if result.score >= self._confident_score:
                return result, adapter.strategy

            logger.info(
                "%s returned low-confidence match %s (score %d)",
                adapter.strategy.value,
                result.website,
                result.score,
                extra={"strategy": adapter.strategy.value, "company": company_name, "score": result.score},
            )
            if retained is None or result.score > retained.score:
                retained, retained_strategy = result, adapter.strategy

        # Phase 2: business directories.
        logger.info(
            "No confident website for %r, trying directories",
            company_name,
            extra={"company": company_name},
        )
        for adapter in self._available(DIRECTORY_STRATEGY_PRIORITY, skip):
            last_attempted = adapter.strategy
            result = await self._invoke(adapter, company_name, ruc)
            if not self._is_found(result):
                continue

            if retained is not None and retained.score >= result.score:
                return retained, retained_strategy
            return result, adapter.strategy

        if retained is not None:
            return retained, retained_strategy

        return None, last_attempted or DIRECTORY_STRATEGY_PRIORITY[-1]

    def _available(self, priority: tuple[StrategyId, ...], skip: StrategyId | None):
        for strategy in priority:
            if strategy == skip:
                continue
            adapter = self._registry.find(strategy)
            if adapter is None or not adapter.is_available():
                logger.debug("Skipping %s (unavailable)", strategy.value, extra={"strategy": strategy.value})
                continue
            yield adapter

    def _is_found(self, result: SearchResult | None) -> bool:
        return (
            result is not None
            and result.website is not None
            and result.score >= self._found_score
        )

    async def _invoke(
        self,
        adapter: SearchStrategyAdapter,
        company_name: str,
        ruc: str | None,
    ) -> SearchResult | None:
        started = time.perf_counter()
        try:
            return await adapter.search(company_name, ruc)
        except Exception as exc:  # noqa: BLE001
            elapsed = (time.perf_counter() - started) * 1000
            adapter.record_failure(elapsed)
            logger.error(
                "Adapter %s raised: %s",
                adapter.strategy.value,
                exc,
                exc_info=exc,
                extra={
                    "strategy": adapter.strategy.value,
                    "company": company_name,
                    "duration_ms": elapsed,
                    "error_reason": type(exc).__name__,
                },
            )
            return None

    # ------------------------------------------------------------------
    # Batch search
    # ------------------------------------------------------------------

    async def batch_search(
        self,
        companies: list[tuple[str, str | None]],
        strategy: StrategyId | None = None,
        delay_ms: int | None = None,
    ) -> list[BatchItemResult]:
        """Search each ``(name, ruc)`` pair sequentially with pacing between items."""
        results: list[BatchItemResult] = []

        for index, (name, ruc) in enumerate(companies):
            logger.info("Batch %d/%d: %r", index + 1, len(companies), name, extra={"company": name})
            result, used = await self.search(name, ruc, strategy)
            results.append(BatchItemResult(company=name, ruc=ruc, result=result, strategy_used=used))

            if index < len(companies) - 1:
                await asyncio.sleep(self._batch_delay_ms(used, delay_ms) / 1000)

        return results

    def _batch_delay_ms(self, strategy: StrategyId, delay_ms: int | None) -> float:
        if delay_ms is not None:
            return delay_ms
        policy = self._policies.get(strategy, DEFAULT_POLICIES[strategy])
        return self._fingerprint.get_action_delay(policy.delay_min_ms, policy.delay_max_ms)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_all_statuses(self) -> list[dict]:
        """Snapshots for every strategy, Phase 1 first then Phase 2."""
        statuses: list[dict] = []
        for strategy in (*STRATEGY_PRIORITY, *DIRECTORY_STRATEGY_PRIORITY):
            adapter = self._registry.find(strategy)
            if adapter is not None:
                statuses.append(adapter.get_status())
            else:
                statuses.append(StrategyState(strategy, max_per_session=0).snapshot())
        return statuses

    def reset_counters(self, strategy: StrategyId | None = None) -> None:
        """Reset one strategy, or all of them when *strategy* is ``None``."""
        if strategy is not None:
            self._registry.get(strategy).reset()
        else:
            for adapter in self._registry:
                adapter.reset()
        logger.info("Counters reset: %s", strategy.value if strategy else "all")
