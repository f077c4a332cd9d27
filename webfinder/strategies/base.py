"""Abstract base class for search strategy adapters.

Every strategy owns a ``StrategyState`` and exposes the same contract to the
orchestrator: ``search`` (never raises), ``get_status``, ``is_available``,
``reset`` and ``dispose``. Subclasses set ``strategy`` as a class attribute
and implement ``_search``; timing, usage accounting and exception capture
live in ``search``.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod

from webfinder.models.results import (
    DEFAULT_FOUND_SCORE,
    RankedCandidate,
    SearchResult,
    StrategyId,
)
from webfinder.ranking.names import clean_company_name
from webfinder.resilience.strategy_state import StrategyState

logger = logging.getLogger(__name__)


class SearchStrategyAdapter(ABC):
    """Base adapter that all concrete search strategies extend.

    Parameters
    ----------
    state:
        The strategy's own quota / circuit-breaker state.
    found_score:
        Minimum score for a result to count as found.
    top_results:
        How many ranked candidates to keep on the result.
    """

    strategy: StrategyId

    def __init__(
        self,
        state: StrategyState,
        *,
        found_score: int = DEFAULT_FOUND_SCORE,
        top_results: int = 5,
    ) -> None:
        self.state = state
        self.found_score = found_score
        self.top_results = top_results
        self._disposed = False

    @abstractmethod
    async def _search(self, company_name: str, ruc: str | None) -> SearchResult | None:
        """Run the strategy; may raise on transport errors.

        Return ``None`` when nothing usable was found.
        """
        ...

    async def search(self, company_name: str, ruc: str | None = None) -> SearchResult | None:
        """Run the strategy and record the outcome; never raises."""
        started = time.perf_counter()
        try:
            result = await self._search(company_name, ruc)
        except Exception as exc:  # noqa: BLE001
            elapsed = _elapsed_ms(started)
            self.state.record_use(False, elapsed)
            logger.error(
                "Strategy %s failed for %r: %s",
                self.strategy.value,
                company_name,
                exc,
                extra={
                    "strategy": self.strategy.value,
                    "company": company_name,
                    "duration_ms": elapsed,
                    "error_reason": type(exc).__name__,
                },
            )
            return None

        elapsed = _elapsed_ms(started)
        self.state.record_use(result is not None, elapsed)

        if result is None:
            logger.warning(
                "Strategy %s found nothing for %r",
                self.strategy.value,
                company_name,
                extra={"strategy": self.strategy.value, "company": company_name, "duration_ms": elapsed},
            )
        else:
            logger.info(
                "Strategy %s -> %s (score %d)",
                self.strategy.value,
                result.website,
                result.score,
                extra={
                    "strategy": self.strategy.value,
                    "company": company_name,
                    "score": result.score,
                    "duration_ms": elapsed,
                },
            )
        return result

    def record_failure(self, elapsed_ms: float) -> None:
        """Count a failed invocation that escaped ``search``."""
        self.state.record_use(False, elapsed_ms)

    def get_status(self) -> dict:
        return self.state.snapshot()

    def is_available(self) -> bool:
        return self.state.is_available()

    def reset(self) -> None:
        self.state.reset()

    async def dispose(self) -> None:
        """Release held resources. Safe to call more than once."""
        if self._disposed:
            return
        self._disposed = True
        await self._close()

    async def _close(self) -> None:
        """Hook for subclasses owning clients or sessions."""

    def _build_result(
        self,
        company_name: str,
        ranked: list[RankedCandidate],
    ) -> SearchResult:
        best = ranked[0]
        return SearchResult(
            company=company_name,
            clean_name=clean_company_name(company_name),
            website=best.url,
            score=best.score,
            title=best.title,
            strategy=self.strategy,
            all_results=ranked[: self.top_results],
            found_threshold=self.found_score,
        )


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
