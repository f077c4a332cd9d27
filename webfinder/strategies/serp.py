"""Search engine result page clients and parsers.

DuckDuckGo is queried through its JavaScript-free HTML endpoint
(``POST html.duckduckgo.com/html/``) and Bing through ``GET /search`` pinned
to Spanish / Peru. Both return plain ``RawHit`` lists; transport errors
propagate as ``httpx.HTTPError`` so the calling adapter can count them.
"""

from __future__ import annotations

import logging
from urllib.parse import parse_qs, urljoin, urlsplit

import httpx
from bs4 import BeautifulSoup

from webfinder.fingerprint import FingerprintRandomizer
from webfinder.models.results import RawHit

logger = logging.getLogger(__name__)

DDG_HTML_URL = "https://html.duckduckgo.com/html/"
BING_SEARCH_URL = "https://www.bing.com/search"

_ENGINE_HOSTS = ("bing.com", "microsoft.com", "google.com")


def parse_ddg_results(html: str) -> list[RawHit]:
    """Extract organic results, unwrapping ``/l/?uddg=`` redirect links."""
    soup = BeautifulSoup(html, "html.parser")
    hits: list[RawHit] = []

    for anchor in soup.select("a.result__a"):
        href = anchor.get("href") or ""
        if "uddg=" in href:
            query = urlsplit(urljoin("https://duckduckgo.com", href)).query
            target = parse_qs(query).get("uddg")
            if target:
                href = target[0]
        if href.startswith("http"):
            hits.append(RawHit(url=href, title=anchor.get_text(" ", strip=True)))

    return hits


def parse_bing_results(html: str) -> list[RawHit]:
    """Extract ``li.b_algo`` results; fall back to ``<cite>`` origins."""
    soup = BeautifulSoup(html, "html.parser")
    hits: list[RawHit] = []

    for block in soup.select("li.b_algo"):
        anchor = block.select_one("h2 a[href]")
        if anchor is None:
            continue
        href = anchor["href"]
        if href.startswith("http") and not any(host in href for host in _ENGINE_HOSTS):
            hits.append(RawHit(url=href, title=anchor.get_text(" ", strip=True)))

    if hits:
        return hits

    # Markup without b_algo blocks: keep only the origin shown in <cite>.
    for cite in soup.find_all("cite"):
        # "https://www.example.pe › nosotros": keep the part before the breadcrumb.
        origin = cite.get_text().split("›")[0]
        text = "".join(origin.split()).replace("…", "").replace("...", "")
        if not text.startswith("http"):
            text = "https://" + text
        try:
            parts = urlsplit(text)
            hostname = parts.hostname or ""
        except ValueError:
            continue
        if (
            "." in hostname
            and "xn--" not in hostname
            and not any(host in hostname for host in _ENGINE_HOSTS)
            and all(len(label) <= 30 for label in hostname.split("."))
        ):
            hits.append(RawHit(url=f"{parts.scheme}://{hostname}"))

    return hits


class SerpClient:
    """Thin async client for the DuckDuckGo HTML and Bing result pages.

    Owns an ``httpx.AsyncClient`` unless one is injected; ``aclose`` is
    idempotent.
    """

    def __init__(
        self,
        *,
        timeout: float = 15.0,
        fingerprint: FingerprintRandomizer | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._fingerprint = fingerprint or FingerprintRandomizer()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
        )

    async def duckduckgo(self, query: str) -> list[RawHit]:
        headers = self._fingerprint.headers()
        headers["Referer"] = "https://duckduckgo.com/"
        response = await self._client.post(DDG_HTML_URL, data={"q": query}, headers=headers)
        response.raise_for_status()
        hits = parse_ddg_results(response.text)
        logger.debug("DuckDuckGo returned %d hits for %r", len(hits), query)
        return hits

    async def bing(self, query: str) -> list[RawHit]:
        response = await self._client.get(
            BING_SEARCH_URL,
            params={"q": query, "setlang": "es", "cc": "PE"},
            headers=self._fingerprint.headers(),
        )
        response.raise_for_status()
        hits = parse_bing_results(response.text)
        logger.debug("Bing returned %d hits for %r", len(hits), query)
        return hits

    async def aclose(self) -> None:
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()
