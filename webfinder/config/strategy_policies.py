"""Strategy policy models and YAML loader.

Each search strategy has a session cap, a pacing window used between batch
items, and an enabled flag. Policies are read from a YAML file shaped as::

    strategies:
      ddg_http:
        max_per_session: 200
        delay_min_ms: 2000
        delay_max_ms: 5000

Missing files, unparsable YAML and invalid entries fall back to the
built-in defaults below.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, model_validator

from webfinder.models.results import StrategyId

logger = logging.getLogger(__name__)


class StrategyPolicy(BaseModel):
    """Quota and pacing policy for a single strategy."""

    max_per_session: int = Field(default=100, ge=0)
    delay_min_ms: int = Field(default=1500, ge=0)
    delay_max_ms: int = Field(default=3000, ge=0)
    enabled: bool = True

    @model_validator(mode="after")
    def _check_window(self) -> "StrategyPolicy":
        if self.delay_max_ms < self.delay_min_ms:
            raise ValueError("delay_max_ms must be >= delay_min_ms")
        return self


DEFAULT_POLICIES: dict[StrategyId, StrategyPolicy] = {
    StrategyId.DDG_HTTP: StrategyPolicy(max_per_session=200, delay_min_ms=2000, delay_max_ms=5000),
    StrategyId.BING_HTTP: StrategyPolicy(max_per_session=150, delay_min_ms=2000, delay_max_ms=5000),
    StrategyId.UNIV_PERU_HTTP: StrategyPolicy(max_per_session=100, delay_min_ms=1500, delay_max_ms=3000),
    StrategyId.DATOS_PERU_HTTP: StrategyPolicy(max_per_session=100, delay_min_ms=1500, delay_max_ms=3000),
}


def load_strategy_policies(yaml_path: str) -> dict[StrategyId, StrategyPolicy]:
    """Parse a strategy policies YAML file into typed StrategyPolicy objects.

    Args:
        yaml_path: Path to the YAML configuration file.

    Returns:
        A dict with one policy per known strategy. Strategies absent from the
        file (or with invalid entries) keep their built-in default.
    """
    policies = dict(DEFAULT_POLICIES)
    path = Path(yaml_path)

    if not path.exists():
        logger.warning("Strategy policies file not found at %s, using built-in defaults", yaml_path)
        return policies

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        logger.error("Failed to parse strategy policies YAML at %s: %s", yaml_path, exc)
        return policies

    if not isinstance(raw, dict) or not isinstance(raw.get("strategies"), dict):
        logger.warning("Strategy policies YAML missing 'strategies' mapping, using built-in defaults")
        return policies

    for name, config in raw["strategies"].items():
        try:
            strategy = StrategyId(name)
        except ValueError:
            logger.warning("Unknown strategy '%s' in policies file, skipping", name)
            continue
        try:
            policies[strategy] = StrategyPolicy.model_validate(config or {})
        except ValueError as exc:
            logger.error("Invalid policy for strategy '%s': %s, keeping default", name, exc)

    return policies
