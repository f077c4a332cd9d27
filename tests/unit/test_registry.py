"""Unit tests for the strategy registry and the adapter base contract."""

import pytest

from webfinder.middleware.error_handler import StrategyNotFoundError
from webfinder.models.results import StrategyId
from webfinder.strategies.registry import StrategyRegistry


class TestStrategyRegistry:
    def test_register_and_get(self, fake_adapter):
        registry = StrategyRegistry()
        adapter = fake_adapter(StrategyId.DDG_HTTP)
        registry.register(adapter)

        assert registry.get(StrategyId.DDG_HTTP) is adapter
        assert StrategyId.DDG_HTTP in registry
        assert len(registry) == 1
        assert registry.list_strategies() == [StrategyId.DDG_HTTP]

    def test_duplicate_registration_rejected(self, fake_adapter):
        registry = StrategyRegistry()
        registry.register(fake_adapter(StrategyId.DDG_HTTP))
        with pytest.raises(ValueError, match="already registered"):
            registry.register(fake_adapter(StrategyId.DDG_HTTP))

    def test_get_unknown_raises(self):
        with pytest.raises(StrategyNotFoundError) as exc_info:
            StrategyRegistry().get(StrategyId.BING_HTTP)
        assert exc_info.value.status_code == 404

    def test_find_unknown_returns_none(self):
        assert StrategyRegistry().find(StrategyId.BING_HTTP) is None

    def test_iterates_in_registration_order(self, fake_adapter):
        registry = StrategyRegistry()
        adapters = [fake_adapter(StrategyId.BING_HTTP), fake_adapter(StrategyId.DDG_HTTP)]
        for adapter in adapters:
            registry.register(adapter)
        assert list(registry) == adapters

    async def test_dispose_all(self, fake_adapter):
        registry = StrategyRegistry()
        adapters = [fake_adapter(StrategyId.DDG_HTTP), fake_adapter(StrategyId.BING_HTTP)]
        for adapter in adapters:
            registry.register(adapter)

        await registry.dispose_all()
        await registry.dispose_all()

        assert [a.closed for a in adapters] == [1, 1]


class TestAdapterContract:
    async def test_search_records_success(self, fake_adapter, result_factory):
        adapter = fake_adapter(StrategyId.DDG_HTTP, [result_factory(StrategyId.DDG_HTTP, 20)])
        result = await adapter.search("ALICORP")

        assert result.score == 20
        status = adapter.get_status()
        assert status["usage_count"] == 1
        assert status["success_count"] == 1

    async def test_none_result_counts_as_failure(self, fake_adapter):
        adapter = fake_adapter(StrategyId.DDG_HTTP, [None])
        assert await adapter.search("ALICORP") is None
        assert adapter.state.fail_count == 1

    async def test_search_never_raises(self, fake_adapter):
        adapter = fake_adapter(StrategyId.DDG_HTTP, [ConnectionError("reset")])
        assert await adapter.search("ALICORP") is None
        assert adapter.state.consecutive_failures == 1

    async def test_reset_restores_availability(self, fake_adapter):
        adapter = fake_adapter(StrategyId.DDG_HTTP, max_per_session=1)
        await adapter.search("ALICORP")
        assert adapter.is_available() is False

        adapter.reset()
        assert adapter.is_available() is True
