"""Phase-2 strategies: locate the company's profile in Peruvian business directories.

Directory pages are never blacklisted here; they are the target. Scoring is
specific to profile pages: a base for finding any valid profile plus bonuses
for name words and variants in the URL slug and the title.
"""

from __future__ import annotations

import asyncio
import logging
import re
from urllib.parse import quote, urljoin, urlsplit

import httpx
from bs4 import BeautifulSoup

from webfinder.models.results import RankedCandidate, RawHit, SearchResult, StrategyId
from webfinder.proxy.manager import ProxyPool
from webfinder.ranking.names import (
    clean_company_name,
    fold_accents,
    generate_search_variants,
    get_company_words,
)
from webfinder.resilience.strategy_state import StrategyState
from webfinder.strategies.base import SearchStrategyAdapter
from webfinder.strategies.serp import SerpClient

logger = logging.getLogger(__name__)

UNIV_PERU_DOMAIN = "universidadperu.com"
DATOS_PERU_BASE = "https://www.datosperu.org/"
DATOS_PERU_SEARCH = DATOS_PERU_BASE + "buscador_empresas.php?buscar="

DIRECTORY_BASE_SCORE = 10
DIRECTORY_STOP_SCORE = 15
_MAX_DIRECTORY_QUERIES = 4

_PROFILE_HREF = re.compile(r"^/?empresa-[^\"'/]+\.php$", re.IGNORECASE)


def score_directory_result(
    url: str,
    title: str,
    company_name: str,
    variants: list[str],
    ruc: str | None = None,
) -> int:
    """Score a directory profile URL for *company_name*."""
    score = DIRECTORY_BASE_SCORE
    words = [w for w in get_company_words(company_name) if len(w) > 3]

    try:
        slug = fold_accents(urlsplit(url).path).lower()
    except ValueError:
        slug = ""

    for word in words:
        if word in slug:
            score += 5

    for variant in variants:
        token = fold_accents(variant).lower().replace(" ", "-")
        if len(token) >= 3 and token in slug:
            score += 3

    if title:
        folded_title = fold_accents(title).lower()
        for word in words:
            if word in folded_title:
                score += 3

    if ruc and ruc in slug:
        score += 8

    return score


class _DirectoryAdapter(SearchStrategyAdapter):
    def _directory_result(
        self,
        company_name: str,
        candidates: list[RankedCandidate],
    ) -> SearchResult | None:
        if not candidates:
            return None
        ranked = sorted(candidates, key=lambda c: c.score, reverse=True)
        if ranked[0].score < self.found_score:
            return None
        return self._build_result(company_name, ranked)


class UniversidadPeruAdapter(_DirectoryAdapter):
    """Find the universidadperu.com profile page through web search."""

    strategy = StrategyId.UNIV_PERU_HTTP

    def __init__(
        self,
        state: StrategyState,
        serp: SerpClient,
        *,
        query_pause_ms: int = 1500,
        **kwargs,
    ) -> None:
        super().__init__(state, **kwargs)
        self._serp = serp
        self._pause = query_pause_ms / 1000

    def build_queries(self, company_name: str, ruc: str | None) -> list[str]:
        clean = clean_company_name(company_name)
        queries: list[str] = []
        # Profile URLs embed the RUC, so RUC queries are the most precise.
        if ruc:
            queries.append(f"{ruc} site:{UNIV_PERU_DOMAIN}")
            queries.append(f"{ruc} universidad peru")
        queries.append(f"{clean} universidad peru")
        queries.append(f'"{clean}" site:{UNIV_PERU_DOMAIN}')
        for variant in generate_search_variants(company_name):
            if variant != clean and len(variant) >= 3:
                queries.append(f'"{variant}" site:{UNIV_PERU_DOMAIN}')
        return queries[:_MAX_DIRECTORY_QUERIES]

    @staticmethod
    def is_profile_url(url: str) -> bool:
        try:
            parts = urlsplit(url)
        except ValueError:
            return False
        return UNIV_PERU_DOMAIN in (parts.hostname or "") and "/empresas/" in parts.path

    async def _find(self, query: str) -> list[RawHit]:
        try:
            hits = await self._serp.duckduckgo(query)
        except httpx.HTTPError as exc:
            logger.warning(
                "DuckDuckGo failed for %r, trying Bing: %s",
                query,
                type(exc).__name__,
                extra={"strategy": self.strategy.value, "error_reason": str(exc) or type(exc).__name__},
            )
            hits = []
        if not hits:
            await asyncio.sleep(self._pause / 2)
            hits = await self._serp.bing(query)
        return hits

    async def _search(self, company_name: str, ruc: str | None) -> SearchResult | None:
        variants = generate_search_variants(company_name)
        candidates: dict[str, RankedCandidate] = {}

        for index, query in enumerate(self.build_queries(company_name, ruc)):
            if index > 0:
                await asyncio.sleep(self._pause)

            for hit in await self._find(query):
                if not self.is_profile_url(hit.url) or hit.url in candidates:
                    continue
                score = score_directory_result(hit.url, hit.title, company_name, variants, ruc)
                candidates[hit.url] = RankedCandidate(url=hit.url, title=hit.title, score=score)

            if candidates and max(c.score for c in candidates.values()) >= DIRECTORY_STOP_SCORE:
                break

        return self._directory_result(company_name, list(candidates.values()))

    async def _close(self) -> None:
        await self._serp.aclose()


class DatosPeruAdapter(_DirectoryAdapter):
    """Query the datosperu.org company search through the proxy pool."""

    strategy = StrategyId.DATOS_PERU_HTTP

    def __init__(self, state: StrategyState, proxy_pool: ProxyPool, **kwargs) -> None:
        super().__init__(state, **kwargs)
        self._proxy_pool = proxy_pool

    @staticmethod
    def parse_profile_links(html: str) -> list[RawHit]:
        soup = BeautifulSoup(html, "html.parser")
        hits: list[RawHit] = []
        seen: set[str] = set()
        for anchor in soup.find_all("a", href=True):
            href = anchor["href"].strip()
            if not _PROFILE_HREF.match(href):
                continue
            url = urljoin(DATOS_PERU_BASE, href)
            if url in seen:
                continue
            seen.add(url)
            hits.append(RawHit(url=url, title=anchor.get_text(" ", strip=True)))
        return hits

    async def _search(self, company_name: str, ruc: str | None) -> SearchResult | None:
        term = ruc or clean_company_name(company_name)
        html = await self._proxy_pool.fetch_with_rotation(DATOS_PERU_SEARCH + quote(term))
        if not html:
            return None

        hits = self.parse_profile_links(html)
        if ruc:
            # A profile carrying the RUC is the exact match.
            exact = [hit for hit in hits if ruc in hit.url]
            hits = exact or hits

        variants = generate_search_variants(company_name)
        candidates = [
            RankedCandidate(
                url=hit.url,
                title=hit.title,
                score=score_directory_result(hit.url, hit.title, company_name, variants, ruc),
            )
            for hit in hits
        ]
        return self._directory_result(company_name, candidates)
