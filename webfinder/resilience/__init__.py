"""Resilience components: per-strategy quota tracking and circuit breaking."""

from webfinder.resilience.strategy_state import StrategyState

__all__ = ["StrategyState"]
