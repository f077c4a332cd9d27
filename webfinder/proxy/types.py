"""Proxy data models for the proxy pool."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit

DEFAULT_PROTOCOL = "socks5h"


@dataclass(frozen=True)
class ProxyRecord:
    """A single proxy endpoint, e.g. ``socks5h://192.111.134.10:4145``."""

    url: str

    @classmethod
    def from_host_port(cls, host: str, port: int, protocol: str = DEFAULT_PROTOCOL) -> "ProxyRecord":
        return cls(f"{protocol}://{host}:{port}")

    @property
    def protocol(self) -> str:
        return urlsplit(self.url).scheme.lower() or DEFAULT_PROTOCOL

    @property
    def host(self) -> str:
        return urlsplit(self.url).hostname or ""

    @property
    def port(self) -> int | None:
        return urlsplit(self.url).port

    def __str__(self) -> str:
        return self.url


@dataclass(frozen=True)
class ProxyTestResult:
    """Outcome of a single proxy health test."""

    success: bool
    response_ms: int
    error: str | None = None
