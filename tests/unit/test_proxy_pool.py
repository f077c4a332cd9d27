"""Unit tests for the proxy pool: rotation, fallback, health tests and refresh."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from webfinder.middleware.error_handler import ProxyPoolEmptyError
from webfinder.proxy.manager import ProxyPool, is_block_page
from webfinder.proxy.types import ProxyRecord, ProxyTestResult

GOOD_BODY = "<html>" + "x" * 6000 + "</html>"
CLOUDFLARE_BODY = "<html><title>Just a moment...</title>" + "x" * 6000 + "</html>"


def _ok(ms: int = 100) -> ProxyTestResult:
    return ProxyTestResult(success=True, response_ms=ms)


def _fail(error: str = "timeout") -> ProxyTestResult:
    return ProxyTestResult(success=False, response_ms=8000, error=error)


class TestProxyRecord:
    def test_parts(self):
        record = ProxyRecord("socks5h://192.111.134.10:4145")
        assert record.protocol == "socks5h"
        assert record.host == "192.111.134.10"
        assert record.port == 4145
        assert str(record) == "socks5h://192.111.134.10:4145"

    def test_from_host_port(self):
        assert ProxyRecord.from_host_port("1.2.3.4", 1080).url == "socks5h://1.2.3.4:1080"
        assert ProxyRecord.from_host_port("1.2.3.4", 8080, "http").url == "http://1.2.3.4:8080"


class TestRotation:
    def test_empty_seed_rejected(self):
        with pytest.raises(ValueError):
            ProxyPool([], list_url="https://l", test_url="https://t")

    def test_round_robin(self, proxy_pool):
        hosts = [proxy_pool.next_proxy().host for _ in range(5)]
        assert hosts == ["10.0.0.1", "10.0.0.2", "10.0.0.3", "10.0.0.1", "10.0.0.2"]
        assert proxy_pool.cursor == 5

    def test_empty_snapshot_raises(self, proxy_pool):
        proxy_pool._snapshot = ()
        with pytest.raises(ProxyPoolEmptyError):
            proxy_pool.next_proxy()

    def test_stats(self, proxy_pool):
        proxy_pool.next_proxy()
        stats = proxy_pool.get_stats()
        assert stats["total"] == 3
        assert stats["seed_count"] == 3
        assert stats["cursor"] == 1
        assert stats["refreshing"] is False
        assert stats["sample"][0] == "socks5h://10.0.0.1:1080"


class TestFetchWithRotation:
    @pytest.mark.asyncio
    async def test_third_proxy_succeeds_after_two_timeouts(self, proxy_pool):
        """Two timeouts then a large 200 body: body returned, cursor advanced by three."""
        responses = [
            httpx.ConnectTimeout("timed out"),
            httpx.ReadTimeout("timed out"),
            httpx.Response(200, text="x" * 6000),
        ]
        with patch("httpx.AsyncClient.get", new_callable=AsyncMock, side_effect=responses) as mock_get:
            body = await proxy_pool.fetch_with_rotation("https://www.datosperu.org/empresa-x.php")

        assert body == "x" * 6000
        assert proxy_pool.cursor == 3
        assert mock_get.await_count == 3

    @pytest.mark.asyncio
    async def test_first_proxy_success_advances_once(self, proxy_pool):
        with patch("httpx.AsyncClient.get", new_callable=AsyncMock, return_value=httpx.Response(200, text=GOOD_BODY)):
            body = await proxy_pool.fetch_with_rotation("https://example.pe/")

        assert body == GOOD_BODY
        assert proxy_pool.cursor == 1

    @pytest.mark.asyncio
    async def test_block_pages_and_thin_bodies_rejected(self, proxy_pool):
        responses = [
            httpx.Response(200, text=CLOUDFLARE_BODY),
            httpx.Response(200, text="tiny"),
            httpx.Response(403, text=GOOD_BODY),
        ]
        with (
            patch("httpx.AsyncClient.get", new_callable=AsyncMock, side_effect=responses),
            patch.object(ProxyPool, "_fetch_via_fallback", new_callable=AsyncMock, return_value=None) as fallback,
        ):
            body = await proxy_pool.fetch_with_rotation("https://example.pe/")

        assert body is None
        assert proxy_pool.cursor == 3
        fallback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_fallback_transport_used_after_budget(self, proxy_pool):
        response = MagicMock(status_code=200, text=GOOD_BODY)
        session = MagicMock()
        session.get = AsyncMock(return_value=response)
        session_cm = MagicMock()
        session_cm.__aenter__ = AsyncMock(return_value=session)
        session_cm.__aexit__ = AsyncMock(return_value=False)

        with (
            patch("httpx.AsyncClient.get", new_callable=AsyncMock, side_effect=httpx.ConnectError("refused")),
            patch("webfinder.proxy.manager.AsyncSession", return_value=session_cm) as session_cls,
        ):
            body = await proxy_pool.fetch_with_rotation("https://example.pe/")

        assert body == GOOD_BODY
        kwargs = session_cls.call_args.kwargs
        # The cursor sits on the first proxy again after three attempts.
        assert kwargs["proxy"] == "socks5h://10.0.0.1:1080"
        assert kwargs["verify"] is False
        assert proxy_pool.cursor == 3

    @pytest.mark.asyncio
    async def test_unusable_proxy_costs_one_attempt(self, proxy_pool):
        outcomes = [ValueError("Unknown scheme for proxy URL"), (200, GOOD_BODY)]
        with patch.object(ProxyPool, "_fetch_via_proxy", new_callable=AsyncMock, side_effect=outcomes) as fetch:
            body = await proxy_pool.fetch_with_rotation("https://example.pe/")

        assert body == GOOD_BODY
        assert fetch.await_count == 2
        assert proxy_pool.cursor == 2

    @pytest.mark.asyncio
    async def test_fallback_error_returns_none(self, proxy_pool):
        with (
            patch("httpx.AsyncClient.get", new_callable=AsyncMock, side_effect=httpx.ConnectError("refused")),
            patch("webfinder.proxy.manager.AsyncSession", side_effect=RuntimeError("curl failed")),
        ):
            assert await proxy_pool.fetch_with_rotation("https://example.pe/") is None


class TestProxyHealthTest:
    @pytest.mark.asyncio
    async def test_passes_on_large_body(self, proxy_pool):
        with patch.object(ProxyPool, "_fetch_via_proxy", new_callable=AsyncMock, return_value=(200, GOOD_BODY)):
            result = await proxy_pool.test_proxy(ProxyRecord("socks5h://1.1.1.1:1080"))
        assert result.success is True
        assert result.error is None
        assert result.response_ms >= 0

    @pytest.mark.asyncio
    async def test_cloudflare_blocked(self, proxy_pool):
        with patch.object(ProxyPool, "_fetch_via_proxy", new_callable=AsyncMock, return_value=(200, CLOUDFLARE_BODY)):
            result = await proxy_pool.test_proxy(ProxyRecord("socks5h://1.1.1.1:1080"))
        assert result.success is False
        assert result.error == "Cloudflare blocked"

    @pytest.mark.asyncio
    async def test_small_body_fails(self, proxy_pool):
        with patch.object(ProxyPool, "_fetch_via_proxy", new_callable=AsyncMock, return_value=(200, "x" * 3000)):
            result = await proxy_pool.test_proxy(ProxyRecord("socks5h://1.1.1.1:1080"))
        assert result.success is False
        assert result.error == "HTTP 200, body 3000 bytes"

    @pytest.mark.asyncio
    async def test_transport_error(self, proxy_pool):
        with patch.object(
            ProxyPool, "_fetch_via_proxy", new_callable=AsyncMock, side_effect=httpx.ConnectTimeout("timed out")
        ):
            result = await proxy_pool.test_proxy(ProxyRecord("socks5h://1.1.1.1:1080"))
        assert result.success is False
        assert result.error == "timed out"

    @pytest.mark.asyncio
    async def test_unsupported_scheme_reported_as_failure(self, proxy_pool):
        result = await proxy_pool.test_proxy(ProxyRecord.from_host_port("1.2.3.4", 1080, "socks4"))
        assert result.success is False
        assert "Unknown scheme" in result.error

    def test_block_page_detection(self):
        assert is_block_page(CLOUDFLARE_BODY) is True
        assert is_block_page('<div id="cf-browser-verification">') is True
        assert is_block_page(GOOD_BODY) is False


class TestRefreshPool:
    @pytest.mark.asyncio
    async def test_all_candidates_fail_keeps_current_pool(self, proxy_pool):
        """Every candidate fails the health test: the seeded proxies are retained."""
        before = proxy_pool.proxies
        candidates = [ProxyRecord(f"socks5h://172.16.0.{i}:1080") for i in range(3)]

        with (
            patch.object(ProxyPool, "_download_candidates", new_callable=AsyncMock, return_value=candidates),
            patch.object(ProxyPool, "test_proxy", new_callable=AsyncMock, return_value=_fail()),
        ):
            size = await proxy_pool.refresh_pool()

        assert size == 3
        assert proxy_pool.proxies == before

    @pytest.mark.asyncio
    async def test_working_candidates_replace_pool(self, proxy_pool):
        candidates = [ProxyRecord(f"socks5h://172.16.0.{i}:1080") for i in range(4)]
        outcomes = [_ok(), _fail(), _ok(), RuntimeError("unexpected")]
        proxy_pool.next_proxy()

        with (
            patch.object(ProxyPool, "_download_candidates", new_callable=AsyncMock, return_value=candidates),
            patch.object(ProxyPool, "test_proxy", new_callable=AsyncMock, side_effect=outcomes),
        ):
            size = await proxy_pool.refresh_pool()

        assert size == 2
        assert [p.host for p in proxy_pool.proxies] == ["172.16.0.0", "172.16.0.2"]
        assert proxy_pool.cursor == 0

    @pytest.mark.asyncio
    async def test_download_failure_keeps_pool(self, proxy_pool):
        with patch("httpx.AsyncClient.get", new_callable=AsyncMock, side_effect=httpx.ConnectError("offline")):
            size = await proxy_pool.refresh_pool()
        assert size == 3

    @pytest.mark.asyncio
    async def test_download_parses_ip_port_lines(self, proxy_pool):
        text = "1.2.3.4:1080\n# comment\nnot-a-proxy\n  5.6.7.8:4145  \n"
        request = httpx.Request("GET", "https://lists.example/socks5.txt")
        with patch(
            "httpx.AsyncClient.get",
            new_callable=AsyncMock,
            return_value=httpx.Response(200, text=text, request=request),
        ):
            candidates = await proxy_pool._download_candidates()

        assert [c.url for c in candidates] == ["socks5h://1.2.3.4:1080", "socks5h://5.6.7.8:4145"]

    @pytest.mark.asyncio
    async def test_download_samples_large_lists(self, settings):
        pool = ProxyPool(
            settings.proxy_seed,
            list_url="https://lists.example/socks5.txt",
            test_url="https://t.example/",
            test_sample_size=5,
        )
        text = "\n".join(f"10.1.{i // 250}.{i % 250}:1080" for i in range(100))
        request = httpx.Request("GET", "https://lists.example/socks5.txt")
        with patch(
            "httpx.AsyncClient.get",
            new_callable=AsyncMock,
            return_value=httpx.Response(200, text=text, request=request),
        ):
            candidates = await pool._download_candidates()

        assert len(candidates) == 5

    @pytest.mark.asyncio
    async def test_background_refresh_and_close(self, proxy_pool):
        with patch.object(ProxyPool, "refresh_pool", new_callable=AsyncMock, return_value=3) as refresh:
            task = proxy_pool.start_background_refresh()
            assert task is not None
            await task
            await proxy_pool.aclose()

        refresh.assert_awaited_once()
