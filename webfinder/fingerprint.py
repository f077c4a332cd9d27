"""HTTP and TLS fingerprint profiles for outbound requests.

Generates randomized browser-like header profiles (user agent, Sec-Ch-Ua
client hints, Peruvian Spanish Accept-Language) and a Chrome-ordered TLS
context so requests look like a real browser to Cloudflare-style JA3
checks. Also provides curl_cffi impersonation targets for the fallback
transport and inter-request delays for batch pacing.
"""

from __future__ import annotations

import random
import ssl
from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Curated user agents: (user agent, Sec-Ch-Ua brand list or None, platform)
# ---------------------------------------------------------------------------

CURATED_USER_AGENTS: list[tuple[str, str | None, str]] = [
    (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        '"Not_A Brand";v="8", "Chromium";v="120", "Google Chrome";v="120"',
        '"Windows"',
    ),
    (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
        '"Google Chrome";v="119", "Chromium";v="119", "Not?A_Brand";v="24"',
        '"Linux"',
    ),
    (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        '"Not_A Brand";v="8", "Chromium";v="120", "Google Chrome";v="120"',
        '"macOS"',
    ),
    (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
        None,
        '"Windows"',
    ),
]

ACCEPT_LANGUAGE = "es-PE,es;q=0.9,en-US;q=0.8,en;q=0.7"

ACCEPT_HTML = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,"
    "image/avif,image/webp,image/apng,*/*;q=0.8"
)

# TLS 1.2 suites in Chrome's ClientHello order. TLS 1.3 suites are not
# configurable through OpenSSL's cipher string and keep their defaults.
CHROME_CIPHERS = ":".join(
    [
        "ECDHE-ECDSA-AES128-GCM-SHA256",
        "ECDHE-RSA-AES128-GCM-SHA256",
        "ECDHE-ECDSA-AES256-GCM-SHA384",
        "ECDHE-RSA-AES256-GCM-SHA384",
        "ECDHE-ECDSA-CHACHA20-POLY1305",
        "ECDHE-RSA-CHACHA20-POLY1305",
        "ECDHE-RSA-AES128-SHA",
        "ECDHE-RSA-AES256-SHA",
        "AES128-GCM-SHA256",
        "AES256-GCM-SHA384",
        "AES128-SHA",
        "AES256-SHA",
    ]
)

# curl_cffi browser impersonation targets (BoringSSL handshake, HTTP/2 settings).
IMPERSONATE_TARGETS: tuple[str, ...] = ("chrome131", "chrome124", "chrome120", "safari17_0", "edge101")


# ---------------------------------------------------------------------------
# HeaderProfile dataclass
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HeaderProfile:
    """A randomized browser header profile."""

    user_agent: str
    sec_ch_ua: str | None
    platform: str
    language: str = ACCEPT_LANGUAGE

    def headers(self) -> dict[str, str]:
        """Render the profile as request headers for a top-level navigation."""
        headers = {
            "User-Agent": self.user_agent,
            "Accept": ACCEPT_HTML,
            "Accept-Language": self.language,
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
            "Sec-Fetch-Dest": "document",
            "Sec-Fetch-Mode": "navigate",
            "Sec-Fetch-Site": "none",
            "Sec-Fetch-User": "?1",
            "Upgrade-Insecure-Requests": "1",
        }
        # Firefox does not send client hints.
        if self.sec_ch_ua:
            headers["Sec-Ch-Ua"] = self.sec_ch_ua
            headers["Sec-Ch-Ua-Mobile"] = "?0"
            headers["Sec-Ch-Ua-Platform"] = self.platform
        return headers


def build_tls_context(verify: bool = True) -> ssl.SSLContext:
    """Return an SSL context with a Chrome-like handshake.

    TLS 1.2 minimum, Chrome cipher ordering and no TLS compression. With
    ``verify=False`` certificate checks are disabled, since some SOCKS exits
    re-terminate TLS with their own certificate.
    """
    context = ssl.create_default_context()
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    context.set_ciphers(CHROME_CIPHERS)
    context.options |= ssl.OP_NO_COMPRESSION
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


# ---------------------------------------------------------------------------
# FingerprintRandomizer
# ---------------------------------------------------------------------------

class FingerprintRandomizer:
    """Generates randomized header profiles, impersonation targets and delays.

    Pass a seeded ``random.Random`` for reproducible sequences in tests.
    """

    def __init__(self, *, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def generate(self) -> HeaderProfile:
        """Return a fresh :class:`HeaderProfile` drawn from the curated pool."""
        user_agent, sec_ch_ua, platform = self._rng.choice(CURATED_USER_AGENTS)
        return HeaderProfile(user_agent=user_agent, sec_ch_ua=sec_ch_ua, platform=platform)

    def headers(self) -> dict[str, str]:
        return self.generate().headers()

    def impersonate_target(self) -> str:
        return self._rng.choice(IMPERSONATE_TARGETS)

    def get_action_delay(
        self,
        min_delay_ms: int = 500,
        max_delay_ms: int = 2000,
    ) -> float:
        """Return a random delay in milliseconds within the given range."""
        return self._rng.uniform(min_delay_ms, max_delay_ms)
