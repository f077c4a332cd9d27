"""Configuration module: settings and strategy policies."""

from webfinder.config.settings import FinderSettings
from webfinder.config.strategy_policies import (
    DEFAULT_POLICIES,
    StrategyPolicy,
    load_strategy_policies,
)

__all__ = [
    "DEFAULT_POLICIES",
    "FinderSettings",
    "StrategyPolicy",
    "load_strategy_policies",
]
