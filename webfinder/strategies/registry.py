"""Strategy registry.

Maps ``StrategyId`` to a ``SearchStrategyAdapter`` instance. Built once at
startup; adding a strategy means writing an adapter subclass and calling
``register()``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from webfinder.middleware.error_handler import StrategyNotFoundError
from webfinder.models.results import StrategyId
from webfinder.strategies.base import SearchStrategyAdapter

logger = logging.getLogger(__name__)


class StrategyRegistry:
    """Registry that maps strategy identifiers to their adapters."""

    def __init__(self) -> None:
        self._adapters: dict[StrategyId, SearchStrategyAdapter] = {}

    def register(self, adapter: SearchStrategyAdapter) -> None:
        """Register *adapter* under its declared ``strategy``.

        Raises
        ------
        ValueError
            If an adapter for the same strategy is already registered.
        """
        strategy = adapter.strategy
        if strategy in self._adapters:
            raise ValueError(f"Adapter for strategy '{strategy.value}' is already registered")
        self._adapters[strategy] = adapter
        logger.info("Registered adapter for strategy '%s'", strategy.value)

    def get(self, strategy: StrategyId) -> SearchStrategyAdapter:
        """Return the adapter for *strategy*.

        Raises
        ------
        StrategyNotFoundError
            If no adapter is registered for the strategy.
        """
        try:
            return self._adapters[strategy]
        except KeyError:
            raise StrategyNotFoundError(
                f"No adapter registered for strategy '{strategy.value}'"
            ) from None

    def find(self, strategy: StrategyId) -> SearchStrategyAdapter | None:
        return self._adapters.get(strategy)

    def list_strategies(self) -> list[StrategyId]:
        return list(self._adapters.keys())

    def __contains__(self, strategy: object) -> bool:
        return strategy in self._adapters

    def __iter__(self) -> Iterator[SearchStrategyAdapter]:
        return iter(self._adapters.values())

    def __len__(self) -> int:
        return len(self._adapters)

    async def dispose_all(self) -> None:
        for adapter in self._adapters.values():
            await adapter.dispose()
