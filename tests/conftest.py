"""Shared test fixtures for the website finder test suite."""

from __future__ import annotations

import logging
import os

import pytest

from webfinder.config.settings import FinderSettings
from webfinder.models.results import RankedCandidate, SearchResult, StrategyId
from webfinder.proxy.manager import ProxyPool
from webfinder.resilience.strategy_state import StrategyState
from webfinder.strategies.base import SearchStrategyAdapter


# ---------------------------------------------------------------------------
# Ensure required env vars are set for FinderSettings in tests
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _set_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set minimal env vars so FinderSettings can be instantiated in tests."""
    if "FINDER_API_KEY" not in os.environ:
        monkeypatch.setenv("FINDER_API_KEY", "test-key")


@pytest.fixture
def restore_root_logger():
    """Undo ``configure_logging`` changes to the root logger after a test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def settings() -> FinderSettings:
    """Test settings with safe defaults."""
    return FinderSettings(
        api_key="test-key",
        log_json=False,
        query_pause_ms=0,
        proxy_refresh_on_startup=False,
        proxy_seed=[
            "socks5h://10.0.0.1:1080",
            "socks5h://10.0.0.2:1080",
            "socks5h://10.0.0.3:1080",
        ],
    )


@pytest.fixture
def proxy_pool(settings: FinderSettings) -> ProxyPool:
    return ProxyPool(
        settings.proxy_seed,
        list_url="https://lists.example/socks5.txt",
        test_url="https://www.datosperu.org/buscador_empresas.php?buscar=20100047218",
        retry_budget=3,
    )


# ---------------------------------------------------------------------------
# Fake strategy adapter
# ---------------------------------------------------------------------------

def make_result(
    strategy: StrategyId,
    score: int,
    website: str | None = "https://www.example.com.pe/",
    company: str = "EXAMPLE SAC",
) -> SearchResult:
    candidates = [RankedCandidate(url=website, title="Example", score=score)] if website else []
    return SearchResult(
        company=company,
        clean_name="EXAMPLE",
        website=website,
        score=score,
        title="Example",
        strategy=strategy,
        all_results=candidates,
    )


class FakeAdapter(SearchStrategyAdapter):
    """Adapter returning scripted results (or raising) and recording calls."""

    def __init__(
        self,
        strategy: StrategyId,
        outcomes: list | None = None,
        max_per_session: int = 100,
    ) -> None:
        self.strategy = strategy
        super().__init__(StrategyState(strategy, max_per_session=max_per_session))
        self._outcomes = list(outcomes or [])
        self.calls: list[tuple[str, str | None]] = []
        self.closed = 0

    async def _search(self, company_name: str, ruc: str | None) -> SearchResult | None:
        self.calls.append((company_name, ruc))
        outcome = self._outcomes.pop(0) if self._outcomes else None
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def _close(self) -> None:
        self.closed += 1


class ExplodingAdapter(FakeAdapter):
    """Adapter whose public ``search`` itself raises."""

    async def search(self, company_name: str, ruc: str | None = None) -> SearchResult | None:
        self.calls.append((company_name, ruc))
        raise RuntimeError("adapter exploded")


@pytest.fixture
def fake_adapter() -> type[FakeAdapter]:
    return FakeAdapter


@pytest.fixture
def exploding_adapter() -> type[ExplodingAdapter]:
    return ExplodingAdapter


@pytest.fixture
def result_factory():
    return make_result
