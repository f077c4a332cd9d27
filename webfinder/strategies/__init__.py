"""Search strategy adapters and their registry."""

from webfinder.strategies.base import SearchStrategyAdapter
from webfinder.strategies.directories import DatosPeruAdapter, UniversidadPeruAdapter
from webfinder.strategies.registry import StrategyRegistry
from webfinder.strategies.serp import SerpClient
from webfinder.strategies.web_search import BingAdapter, DuckDuckGoAdapter

__all__ = [
    "BingAdapter",
    "DatosPeruAdapter",
    "DuckDuckGoAdapter",
    "SearchStrategyAdapter",
    "SerpClient",
    "StrategyRegistry",
    "UniversidadPeruAdapter",
]
