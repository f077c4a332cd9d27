"""Phase-1 strategies: find the company's own website through web search."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Iterable
from urllib.parse import urlsplit

from webfinder.models.results import RawHit, SearchResult, StrategyId
from webfinder.ranking.names import clean_company_name, generate_search_variants
from webfinder.ranking.scorer import BLACKLIST_DOMAINS, PREFERRED_TLDS, rank_results
from webfinder.resilience.strategy_state import StrategyState
from webfinder.strategies.base import SearchStrategyAdapter
from webfinder.strategies.serp import SerpClient

logger = logging.getLogger(__name__)

_NEGATED_SITES = " ".join(
    f"-site:{site}"
    for site in (
        "linkedin.com",
        "facebook.com",
        "wikipedia.org",
        "computrabajo.com",
        "glassdoor.com",
        "indeed.com",
    )
)

_HOMEPAGE_PATH = re.compile(r"^/?$|^/[a-z]{2}(-[A-Z]{2})?/?$")

HOMEPAGE_STOP_SCORE = 20
DEEP_PAGE_STOP_SCORE = 25


def is_homepage_url(url: str) -> bool:
    try:
        path = urlsplit(url).path
    except ValueError:
        return False
    return bool(_HOMEPAGE_PATH.match(path))


class _WebSearchAdapter(SearchStrategyAdapter):
    """Shared wiring for search-engine strategies."""

    def __init__(
        self,
        state: StrategyState,
        serp: SerpClient,
        *,
        blacklist: Iterable[str] = BLACKLIST_DOMAINS,
        preferred_tlds: Iterable[str] = PREFERRED_TLDS,
        query_pause_ms: int = 2000,
        **kwargs,
    ) -> None:
        super().__init__(state, **kwargs)
        self._serp = serp
        self._blacklist = tuple(blacklist)
        self._preferred_tlds = tuple(preferred_tlds)
        self._pause = query_pause_ms / 1000

    def _rank(self, hits: list[RawHit], company_name: str, variants: list[str]):
        return rank_results(
            hits,
            company_name,
            variants,
            blacklist=self._blacklist,
            preferred_tlds=self._preferred_tlds,
        )

    async def _close(self) -> None:
        await self._serp.aclose()


class DuckDuckGoAdapter(_WebSearchAdapter):
    """DuckDuckGo HTML endpoint: one quoted query, one unquoted retry."""

    strategy = StrategyId.DDG_HTTP

    async def _search(self, company_name: str, ruc: str | None) -> SearchResult | None:
        clean = clean_company_name(company_name)
        variants = generate_search_variants(company_name)

        hits = await self._serp.duckduckgo(f'"{clean}" peru sitio web oficial')
        if not hits:
            logger.info("DuckDuckGo retry without quotes for %r", clean, extra={"strategy": self.strategy.value})
            await asyncio.sleep(self._pause)
            hits = await self._serp.duckduckgo(f"{clean} peru web oficial empresa")

        ranked = self._rank(hits, company_name, variants)
        if not ranked:
            return None
        return self._build_result(company_name, ranked)


class BingAdapter(_WebSearchAdapter):
    """Bing with a widening query plan and early stop on a strong candidate."""

    strategy = StrategyId.BING_HTTP

    def build_queries(self, company_name: str) -> list[str]:
        clean = clean_company_name(company_name)
        queries = [f'"{clean}" página web oficial peru {_NEGATED_SITES}']
        for variant in generate_search_variants(company_name):
            if variant != clean and len(variant) >= 2:
                queries.append(f'"{variant}" página web oficial peru {_NEGATED_SITES}')
        queries.append(f'intitle:"{clean}" peru empresa')
        queries.append(f"{clean} peru web oficial empresa {_NEGATED_SITES}")
        queries.append(f"{clean} peru empresa")
        return queries

    async def _search(self, company_name: str, ruc: str | None) -> SearchResult | None:
        variants = generate_search_variants(company_name)
        queries = self.build_queries(company_name)
        hits: list[RawHit] = []

        for index, query in enumerate(queries):
            if index > 0:
                await asyncio.sleep(self._pause)
            found = await self._serp.bing(query)
            if not found:
                continue
            hits.extend(found)

            ranked = self._rank(hits, company_name, variants)
            if ranked:
                best = ranked[0]
                threshold = HOMEPAGE_STOP_SCORE if is_homepage_url(best.url) else DEEP_PAGE_STOP_SCORE
                if best.score >= threshold:
                    logger.debug(
                        "Bing query %d/%d reached score %d, stopping",
                        index + 1,
                        len(queries),
                        best.score,
                        extra={"strategy": self.strategy.value},
                    )
                    break

        ranked = self._rank(hits, company_name, variants)
        if not ranked:
            return None
        return self._build_result(company_name, ranked)
