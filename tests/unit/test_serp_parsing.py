"""Unit tests for search engine result page parsing and the SERP client."""

import httpx
import pytest

from webfinder.models.results import RawHit
from webfinder.strategies.serp import (
    BING_SEARCH_URL,
    DDG_HTML_URL,
    SerpClient,
    parse_bing_results,
    parse_ddg_results,
)

DDG_HTML = """
<div class="results">
  <div class="result">
    <a class="result__a" href="//duckduckgo.com/l/?uddg=https%3A%2F%2Fwww.alicorp.com.pe%2F&amp;rut=abc">
      Alicorp | Inicio
    </a>
  </div>
  <div class="result">
    <a class="result__a" href="https://www.gloria.com.pe/">Gloria</a>
  </div>
  <div class="result">
    <a class="result__a" href="/y.js?ad_provider=x">Sponsored</a>
  </div>
  <a class="other" href="https://ignored.example.com/">Not a result</a>
</div>
"""

BING_HTML = """
<ol id="b_results">
  <li class="b_algo"><h2><a href="https://www.alicorp.com.pe/">Alicorp - Inicio</a></h2></li>
  <li class="b_algo"><h2><a href="https://www.bing.com/ck/a?u=abc">Tracking</a></h2></li>
  <li class="b_algo"><div>No heading here</div></li>
  <li class="b_algo"><h2><a href="https://es.wikipedia.org/wiki/Alicorp">Alicorp - Wikipedia</a></h2></li>
</ol>
"""

BING_CITE_HTML = """
<div>
  <cite>https://www.alicorp.com.pe › nosotros</cite>
  <cite>www.gloria.com.pe</cite>
  <cite>https://www.microsoft.com › es-pe</cite>
  <cite>xn--caf-dma.pe</cite>
  <cite>not a host</cite>
</div>
"""


class TestParseDuckDuckGo:
    def test_unwraps_redirect_links(self):
        hits = parse_ddg_results(DDG_HTML)
        assert hits == [
            RawHit("https://www.alicorp.com.pe/", "Alicorp | Inicio"),
            RawHit("https://www.gloria.com.pe/", "Gloria"),
        ]

    def test_empty_page(self):
        assert parse_ddg_results("<html><body>No results.</body></html>") == []


class TestParseBing:
    def test_organic_results(self):
        hits = parse_bing_results(BING_HTML)
        assert [hit.url for hit in hits] == [
            "https://www.alicorp.com.pe/",
            "https://es.wikipedia.org/wiki/Alicorp",
        ]
        assert hits[0].title == "Alicorp - Inicio"

    def test_cite_fallback_keeps_origin_only(self):
        hits = parse_bing_results(BING_CITE_HTML)
        assert [hit.url for hit in hits] == [
            "https://www.alicorp.com.pe",
            "https://www.gloria.com.pe",
        ]


class TestSerpClient:
    @pytest.mark.asyncio
    async def test_duckduckgo_posts_query(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text=DDG_HTML)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        serp = SerpClient(client=client)

        hits = await serp.duckduckgo('"ALICORP" peru sitio web oficial')

        assert len(hits) == 2
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == DDG_HTML_URL
        assert b"q=%22ALICORP%22+peru+sitio+web+oficial" in request.content
        assert request.headers["Referer"] == "https://duckduckgo.com/"
        assert request.headers["Accept-Language"].startswith("es-PE")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_bing_pins_locale(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text=BING_HTML)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        hits = await SerpClient(client=client).bing("alicorp peru")

        assert hits[0].url == "https://www.alicorp.com.pe/"
        params = seen[0].url.params
        assert str(seen[0].url).startswith(BING_SEARCH_URL)
        assert params["q"] == "alicorp peru"
        assert params["setlang"] == "es"
        assert params["cc"] == "PE"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_http_errors_propagate(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(429)))
        with pytest.raises(httpx.HTTPStatusError):
            await SerpClient(client=client).bing("alicorp")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        await SerpClient(client=client).aclose()
        assert client.is_closed is False
        await client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_closed(self):
        serp = SerpClient(timeout=1.0)
        await serp.aclose()
        await serp.aclose()
        assert serp._client.is_closed is True
