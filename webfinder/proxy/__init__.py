"""Proxy package: rotating SOCKS pool with fallback transport and refresh."""

from webfinder.proxy.manager import ProxyPool
from webfinder.proxy.types import ProxyRecord, ProxyTestResult

__all__ = ["ProxyPool", "ProxyRecord", "ProxyTestResult"]
