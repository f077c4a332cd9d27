"""Pydantic Settings for the website finder service.

All environment variables use the FINDER_ prefix.
Example: FINDER_PORT=3457, FINDER_API_KEY=my-secret-key
List values are given as JSON: FINDER_PREFERRED_TLDS='[".pe", ".com.pe"]'
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

from webfinder.ranking.scorer import BLACKLIST_DOMAINS, PREFERRED_TLDS

DEFAULT_PROXY_SEED: list[str] = [
    "socks5h://192.111.134.10:4145",
    "socks5h://192.252.209.158:4145",
    "socks5h://192.252.208.70:14282",
    "socks5h://198.8.94.174:39078",
    "socks5h://184.178.172.5:15303",
]


class FinderSettings(BaseSettings):
    """Website finder configuration validated from environment variables."""

    # Service
    port: int = 3457
    api_key: str  # X-API-Key for auth
    log_level: str = "INFO"
    log_json: bool = True

    # Orchestration thresholds
    confident_score: int = Field(default=15, ge=1)
    found_score: int = Field(default=8, ge=1)
    cooldown_failures: int = Field(default=3, ge=1)
    cooldown_seconds: int = Field(default=300, ge=1)
    top_results: int = Field(default=5, ge=1, le=50)

    # Ranking
    blacklist_domains: list[str] = Field(default_factory=lambda: list(BLACKLIST_DOMAINS))
    preferred_tlds: list[str] = Field(default_factory=lambda: list(PREFERRED_TLDS))

    # Search engine HTTP
    search_timeout_seconds: float = Field(default=15.0, gt=0)
    query_pause_ms: int = Field(default=2000, ge=0)

    # Strategy policies
    strategy_policies_path: str = str(Path(__file__).with_name("strategy_policies.yaml"))

    # Proxy pool
    proxy_seed: list[str] = Field(default_factory=lambda: list(DEFAULT_PROXY_SEED))
    proxy_list_url: str = (
        "https://raw.githubusercontent.com/TheSpeedX/PROXY-List/master/socks5.txt"
    )
    proxy_test_url: str = "https://www.datosperu.org/buscador_empresas.php?buscar=20100047218"
    proxy_retry_budget: int = Field(default=3, ge=1)
    proxy_request_timeout_seconds: float = Field(default=15.0, gt=0)
    proxy_test_timeout_seconds: float = Field(default=8.0, gt=0)
    proxy_min_body_bytes: int = Field(default=1000, ge=0)
    proxy_health_min_body_bytes: int = Field(default=5000, ge=0)
    proxy_test_sample_size: int = Field(default=60, ge=1)
    proxy_refresh_on_startup: bool = True
    proxy_verify_tls: bool = False

    model_config = {"env_prefix": "FINDER_"}

    @model_validator(mode="after")
    def _check_thresholds(self) -> "FinderSettings":
        if self.confident_score < self.found_score:
            raise ValueError("confident_score must be >= found_score")
        if not self.proxy_seed:
            raise ValueError("proxy_seed must contain at least one proxy")
        return self
