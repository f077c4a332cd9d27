"""Search domain models: strategy identifiers, raw hits, ranked candidates and results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

# Below this score only incidental bonuses (HTTPS, path shape) contributed,
# never a genuine name match.
DEFAULT_FOUND_SCORE = 8


class StrategyId(str, Enum):
    """Identifiers of the available search strategies."""

    DDG_HTTP = "ddg_http"
    BING_HTTP = "bing_http"
    UNIV_PERU_HTTP = "univ_peru_http"
    DATOS_PERU_HTTP = "datos_peru_http"


# Phase 1: look for the company's own website.
STRATEGY_PRIORITY: tuple[StrategyId, ...] = (
    StrategyId.DDG_HTTP,
    StrategyId.BING_HTTP,
)

# Phase 2: fall back to Peruvian business directories.
DIRECTORY_STRATEGY_PRIORITY: tuple[StrategyId, ...] = (
    StrategyId.UNIV_PERU_HTTP,
    StrategyId.DATOS_PERU_HTTP,
)


@dataclass(frozen=True)
class RawHit:
    """An unscored (url, title) pair as returned by a search provider."""

    url: str
    title: str = ""


@dataclass(frozen=True)
class RankedCandidate:
    """A scored candidate; one per root domain after consolidation."""

    url: str
    title: str
    score: int


@dataclass
class SearchResult:
    """Outcome of a single strategy run for one company."""

    company: str
    clean_name: str
    website: str | None
    score: int
    title: str | None
    strategy: StrategyId
    all_results: list[RankedCandidate] = field(default_factory=list)
    found_threshold: int = DEFAULT_FOUND_SCORE
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def found(self) -> bool:
        return self.website is not None and self.score >= self.found_threshold
