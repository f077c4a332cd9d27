"""Per-strategy quota tracker and circuit breaker.

Each search strategy owns one ``StrategyState``. It counts usage against a
session cap, tracks success/failure tallies and a rolling average latency,
and opens a cooldown window after too many consecutive failures.

Availability rule::

    available = enabled and usage_count < max_per_session and now >= cooldown_until

State is in-memory only and guarded by a per-instance lock so concurrent
requests cannot race on counters or the cooldown timestamp.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone

from webfinder.models.results import StrategyId

logger = logging.getLogger(__name__)


class StrategyState:
    """Usage counters, rolling latency and cooldown window for one strategy.

    Args:
        strategy: Identifier of the owning strategy.
        max_per_session: Session cap; once reached the strategy is exhausted.
        failure_threshold: Consecutive failures that open the breaker.
        cooldown_seconds: Length of the cooldown window once opened.
        enabled: Configured enabled flag; ``reset`` restores it.
    """

    def __init__(
        self,
        strategy: StrategyId,
        max_per_session: int,
        failure_threshold: int = 3,
        cooldown_seconds: int = 300,
        enabled: bool = True,
    ) -> None:
        self.strategy = strategy
        self.max_per_session = max_per_session
        self._failure_threshold = failure_threshold
        self._cooldown_seconds = cooldown_seconds
        self._lock = threading.Lock()
        self._configured_enabled = enabled

        self.enabled = enabled
        self.usage_count = 0
        self.success_count = 0
        self.fail_count = 0
        self.consecutive_failures = 0
        self.cooldown_until: datetime | None = None
        self.avg_response_time_ms = 0.0

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def remaining_capacity(self) -> int:
        return max(0, self.max_per_session - self.usage_count)

    @property
    def success_rate(self) -> float:
        total = self.success_count + self.fail_count
        return self.success_count / total if total > 0 else 0.0

    @property
    def is_exhausted(self) -> bool:
        return self.usage_count >= self.max_per_session

    @property
    def in_cooldown(self) -> bool:
        if self.cooldown_until is None:
            return False
        return self._now() < self.cooldown_until

    def is_available(self) -> bool:
        """Composite of the enabled flag, unexhausted quota and cooldown expiry."""
        return self.enabled and not self.is_exhausted and not self.in_cooldown

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def record_use(self, success: bool, latency_ms: float) -> None:
        """Record one strategy invocation and update breaker state."""
        with self._lock:
            self.usage_count += 1

            if success:
                self.success_count += 1
                self.consecutive_failures = 0
            else:
                self.fail_count += 1
                self.consecutive_failures += 1

            n = self.success_count + self.fail_count
            self.avg_response_time_ms = (
                self.avg_response_time_ms * (n - 1) + latency_ms
            ) / n

            if self.consecutive_failures >= self._failure_threshold:
                self.cooldown_until = self._now() + timedelta(
                    seconds=self._cooldown_seconds
                )
                logger.warning(
                    "Strategy %s in cooldown until %s after %d consecutive failures",
                    self.strategy.value,
                    self.cooldown_until.isoformat(),
                    self.consecutive_failures,
                    extra={"strategy": self.strategy.value},
                )

    def reset(self) -> None:
        """Zero every counter, clear the cooldown and restore the configured enabled flag."""
        with self._lock:
            self.enabled = self._configured_enabled
            self.usage_count = 0
            self.success_count = 0
            self.fail_count = 0
            self.consecutive_failures = 0
            self.cooldown_until = None
            self.avg_response_time_ms = 0.0

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(self) -> dict:
        """Return a point-in-time status dict for operators and automation."""
        with self._lock:
            return {
                "strategy": self.strategy.value,
                "available": self.is_available(),
                "usage_count": self.usage_count,
                "max_per_session": self.max_per_session,
                "remaining_capacity": self.remaining_capacity,
                "success_count": self.success_count,
                "fail_count": self.fail_count,
                "consecutive_failures": self.consecutive_failures,
                "success_rate": round(self.success_rate, 2),
                "avg_response_time_ms": round(self.avg_response_time_ms),
                "cooldown_until": (
                    self.cooldown_until.isoformat() if self.cooldown_until else None
                ),
            }

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)
