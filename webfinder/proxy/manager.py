"""Proxy pool with round-robin rotation, a fallback TLS stack and background refresh.

The pool is an immutable tuple snapshot of ``ProxyRecord`` entries plus a
monotonically increasing cursor; ``next_proxy`` returns
``snapshot[cursor % len(snapshot)]``. ``refresh_pool`` downloads a public
SOCKS list, tests a bounded sample concurrently and swaps in a new snapshot
only when at least one candidate passes, so an in-flight rotation never sees
a half-updated pool.

``fetch_with_rotation`` tries up to ``retry_budget`` proxies through httpx
with a Chrome-like TLS context, then falls back once to curl_cffi (BoringSSL
with browser impersonation) before giving up with ``None``.
"""

from __future__ import annotations

import asyncio
import logging
import random
import re
import time

import httpx
from curl_cffi.requests import AsyncSession

from webfinder.fingerprint import FingerprintRandomizer, build_tls_context
from webfinder.middleware.error_handler import ProxyPoolEmptyError
from webfinder.proxy.types import ProxyRecord, ProxyTestResult

logger = logging.getLogger(__name__)

# Signatures of Cloudflare interstitial / challenge pages.
BLOCK_MARKERS: tuple[str, ...] = ("Just a moment", "cf-browser-verification", "cf-chl")

_PROXY_LINE = re.compile(r"^\d{1,3}(?:\.\d{1,3}){3}:\d{1,5}$")


def is_block_page(body: str) -> bool:
    return any(marker in body for marker in BLOCK_MARKERS)


class ProxyPool:
    """Round-robin pool of SOCKS proxies for fingerprint-sensitive targets.

    Args:
        seed: Initial proxy URLs; must not be empty.
        list_url: Public plain-text list of ``ip:port`` candidates.
        test_url: Reference page used by the health test.
        retry_budget: Proxies tried per ``fetch_with_rotation`` call.
        request_timeout: Default per-attempt timeout in seconds.
        test_timeout: Per-candidate health test timeout in seconds.
        min_body_bytes: Bodies at or below this size are treated as block pages.
        health_min_body_bytes: Minimum body size for a passing health test.
        test_sample_size: Candidates tested per refresh.
        verify_tls: Verify upstream certificates.
        fingerprint: Header / impersonation source.
    """

    def __init__(
        self,
        seed: list[str],
        *,
        list_url: str,
        test_url: str,
        retry_budget: int = 3,
        request_timeout: float = 15.0,
        test_timeout: float = 8.0,
        min_body_bytes: int = 1000,
        health_min_body_bytes: int = 5000,
        test_sample_size: int = 60,
        verify_tls: bool = False,
        fingerprint: FingerprintRandomizer | None = None,
    ) -> None:
        if not seed:
            raise ValueError("Proxy pool requires at least one seed proxy")

        self._seed: tuple[ProxyRecord, ...] = tuple(ProxyRecord(url) for url in seed)
        self._snapshot: tuple[ProxyRecord, ...] = self._seed
        self._cursor = 0

        self._list_url = list_url
        self._test_url = test_url
        self._retry_budget = retry_budget
        self._request_timeout = request_timeout
        self._test_timeout = test_timeout
        self._min_body_bytes = min_body_bytes
        self._health_min_body_bytes = health_min_body_bytes
        self._test_sample_size = test_sample_size
        self._verify_tls = verify_tls
        self._ssl_context = build_tls_context(verify=verify_tls)
        self._fingerprint = fingerprint or FingerprintRandomizer()

        self._refresh_lock = asyncio.Lock()
        self._refresh_task: asyncio.Task[None] | None = None

        logger.info("Proxy pool initialized with %d seed proxies", len(self._seed))

    # ------------------------------------------------------------------
    # Rotation
    # ------------------------------------------------------------------

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def proxies(self) -> tuple[ProxyRecord, ...]:
        return self._snapshot

    def next_proxy(self) -> ProxyRecord:
        """Return the proxy under the cursor and advance it."""
        snapshot = self._snapshot
        if not snapshot:
            raise ProxyPoolEmptyError()
        proxy = snapshot[self._cursor % len(snapshot)]
        self._cursor += 1
        return proxy

    def _current_proxy(self) -> ProxyRecord:
        snapshot = self._snapshot
        if not snapshot:
            raise ProxyPoolEmptyError()
        return snapshot[self._cursor % len(snapshot)]

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    def _accept(self, status_code: int, body: str, min_bytes: int) -> bool:
        return status_code == 200 and len(body) > min_bytes and not is_block_page(body)

    async def fetch_with_rotation(self, url: str, timeout: float | None = None) -> str | None:
        """GET *url* through rotating proxies; ``None`` when every path fails."""
        timeout = timeout or self._request_timeout

        for attempt in range(1, self._retry_budget + 1):
            proxy = self.next_proxy()
            try:
                status_code, body = await self._fetch_via_proxy(url, proxy, timeout)
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning(
                    "Proxy attempt %d/%d failed: %s",
                    attempt,
                    self._retry_budget,
                    type(exc).__name__,
                    extra={"proxy_used": proxy.url, "target_url": url, "error_reason": str(exc) or type(exc).__name__},
                )
                continue

            if self._accept(status_code, body, self._min_body_bytes):
                logger.info(
                    "Proxy fetch OK (HTTP %d, %d bytes)",
                    status_code,
                    len(body),
                    extra={"proxy_used": proxy.url, "target_url": url},
                )
                return body

            logger.warning(
                "Proxy attempt %d/%d rejected: HTTP %d, %d bytes",
                attempt,
                self._retry_budget,
                status_code,
                len(body),
                extra={
                    "proxy_used": proxy.url,
                    "target_url": url,
                    "error_reason": "blocked" if is_block_page(body) else "thin_body",
                },
            )

        logger.error(
            "All %d proxy attempts failed, trying fallback transport",
            self._retry_budget,
            extra={"target_url": url},
        )
        return await self._fetch_via_fallback(url, timeout)

    async def _fetch_via_proxy(
        self, url: str, proxy: ProxyRecord, timeout: float
    ) -> tuple[int, str]:
        async with httpx.AsyncClient(
            proxy=proxy.url,
            verify=self._ssl_context,
            timeout=httpx.Timeout(timeout),
            headers=self._fingerprint.headers(),
            follow_redirects=True,
        ) as client:
            response = await client.get(url)
            return response.status_code, response.text

    async def _fetch_via_fallback(self, url: str, timeout: float) -> str | None:
        """Single attempt through curl_cffi, reusing the proxy under the cursor."""
        proxy = self._current_proxy()
        impersonate = self._fingerprint.impersonate_target()
        try:
            async with AsyncSession(
                impersonate=impersonate,
                proxy=proxy.url,
                verify=self._verify_tls,
                timeout=timeout,
            ) as session:
                response = await session.get(url)
                body = response.text
                status_code = response.status_code
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Fallback transport failed: %s",
                type(exc).__name__,
                extra={"proxy_used": proxy.url, "target_url": url, "error_reason": str(exc)},
            )
            return None

        if self._accept(status_code, body, self._min_body_bytes):
            logger.info(
                "Fallback transport OK as %s (%d bytes)",
                impersonate,
                len(body),
                extra={"proxy_used": proxy.url, "target_url": url},
            )
            return body

        logger.warning(
            "Fallback transport rejected: HTTP %d, %d bytes",
            status_code,
            len(body),
            extra={"proxy_used": proxy.url, "target_url": url, "error_reason": "rejected"},
        )
        return None

    # ------------------------------------------------------------------
    # Health testing and refresh
    # ------------------------------------------------------------------

    async def test_proxy(self, proxy: ProxyRecord) -> ProxyTestResult:
        """Fetch the reference page through *proxy* and judge the response."""
        started = time.perf_counter()
        try:
            status_code, body = await self._fetch_via_proxy(self._test_url, proxy, self._test_timeout)
        except (httpx.HTTPError, ValueError) as exc:
            return ProxyTestResult(
                success=False,
                response_ms=_elapsed_ms(started),
                error=str(exc) or type(exc).__name__,
            )

        elapsed = _elapsed_ms(started)
        if is_block_page(body):
            return ProxyTestResult(success=False, response_ms=elapsed, error="Cloudflare blocked")
        if self._accept(status_code, body, self._health_min_body_bytes):
            return ProxyTestResult(success=True, response_ms=elapsed)
        return ProxyTestResult(
            success=False,
            response_ms=elapsed,
            error=f"HTTP {status_code}, body {len(body)} bytes",
        )

    async def _download_candidates(self) -> list[ProxyRecord]:
        async with httpx.AsyncClient(timeout=httpx.Timeout(10.0)) as client:
            response = await client.get(self._list_url)
            response.raise_for_status()

        lines = [line.strip() for line in response.text.splitlines()]
        candidates = [line for line in lines if _PROXY_LINE.match(line)]
        if len(candidates) > self._test_sample_size:
            candidates = random.sample(candidates, self._test_sample_size)

        return [ProxyRecord(f"socks5h://{line}") for line in candidates]

    async def refresh_pool(self) -> int:
        """Replace the pool with freshly tested proxies.

        Returns the pool size afterwards. The pool is left untouched when
        the download fails or no candidate passes. Never raises.
        """
        async with self._refresh_lock:
            try:
                candidates = await self._download_candidates()
            except httpx.HTTPError as exc:
                logger.warning(
                    "Proxy list download failed: %s",
                    type(exc).__name__,
                    extra={"target_url": self._list_url, "error_reason": str(exc)},
                )
                return len(self._snapshot)

            if not candidates:
                logger.warning("Proxy list contained no usable entries")
                return len(self._snapshot)

            logger.info("Testing %d candidate proxies", len(candidates))
            results = await asyncio.gather(
                *(self.test_proxy(proxy) for proxy in candidates),
                return_exceptions=True,
            )

            working = tuple(
                proxy
                for proxy, result in zip(candidates, results)
                if isinstance(result, ProxyTestResult) and result.success
            )

            if not working:
                logger.warning(
                    "No working proxies among %d candidates, keeping %d current",
                    len(candidates),
                    len(self._snapshot),
                )
                return len(self._snapshot)

            self._snapshot = working
            self._cursor = 0
            logger.info("Proxy pool refreshed with %d working proxies", len(working))
            return len(working)

    def start_background_refresh(self) -> asyncio.Task[None] | None:
        """Schedule ``refresh_pool`` without awaiting it; no-op if one is running."""
        if self._refresh_task is not None and not self._refresh_task.done():
            return None
        self._refresh_task = asyncio.create_task(self._background_refresh())
        return self._refresh_task

    async def _background_refresh(self) -> None:
        await self.refresh_pool()

    async def aclose(self) -> None:
        """Cancel a pending background refresh."""
        task, self._refresh_task = self._refresh_task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def get_stats(self) -> dict:
        snapshot = self._snapshot
        return {
            "total": len(snapshot),
            "seed_count": len(self._seed),
            "cursor": self._cursor,
            "refreshing": self._refresh_lock.locked(),
            "sample": [proxy.url for proxy in snapshot[:5]],
        }


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
