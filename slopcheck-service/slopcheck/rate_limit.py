"""
rate_limit.py - Admission control in front of the scoring call
==============================================================
Two limiters live here:

  AdmissionGate           1 analysis per 30 s sliding window per client
                          identity, backed by a shared store (Redis) so the
                          limit holds across every service instance. Fails
                          CLOSED: a missing or broken store denies the call
                          instead of waving it through.

  build_issuance_limiter  slowapi limiter for the session issuance endpoint,
                          keyed by the same client identity.

The store performs the hit-and-expire atomically (the moving window is a
single Lua script on Redis); this module never reads then writes.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from limits import RateLimitItem, parse
from limits.storage import storage_from_string
from limits.strategies import MovingWindowRateLimiter, RateLimiter
from slowapi import Limiter

from .config import Settings
from .identity import client_identity_key

logger = logging.getLogger("slopcheck.rate_limit")

# Retry hints when the store cannot answer
UNCONFIGURED_RETRY_SECONDS = 30
STORE_ERROR_RETRY_SECONDS = 60

ANALYZE_NAMESPACE = "analyze"


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_at: int  # epoch ms
    retry_after_seconds: int


class AdmissionGate:
    """Sliding-window admission check per client identity."""

    def __init__(
        self,
        strategy: Optional[RateLimiter],
        item: RateLimitItem,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self._strategy = strategy
        self.item = item
        self._clock = clock or _now_ms

    @classmethod
    def from_settings(cls, settings: Settings) -> "AdmissionGate":
        item = parse(settings.analyze_rate_limit)
        uri = settings.rate_limit_storage_uri
        if not uri:
            logger.warning(
                "SLOPCHECK_RATE_LIMIT_STORAGE_URI not set; every analysis request "
                "will be refused until a shared store is configured."
            )
            return cls(None, item)
        if uri.startswith("memory://") and settings.environment != "development":
            logger.warning(
                "In-memory rate limit storage is per-process; limits will not hold "
                "across instances."
            )
        return cls(MovingWindowRateLimiter(storage_from_string(uri)), item)

    @property
    def configured(self) -> bool:
        return self._strategy is not None

    def _deny(self, retry_after: int) -> RateLimitDecision:
        return RateLimitDecision(
            allowed=False,
            limit=self.item.amount,
            remaining=0,
            reset_at=self._clock() + retry_after * 1000,
            retry_after_seconds=retry_after,
        )

    def check(self, identity: str) -> RateLimitDecision:
        """Count one call for `identity` and report whether it may proceed."""
        if self._strategy is None:
            return self._deny(UNCONFIGURED_RETRY_SECONDS)

        try:
            allowed = self._strategy.hit(self.item, ANALYZE_NAMESPACE, identity)
            stats = self._strategy.get_window_stats(self.item, ANALYZE_NAMESPACE, identity)
        except Exception as exc:
            logger.error("Rate limit store unavailable, refusing request: %s", exc)
            return self._deny(STORE_ERROR_RETRY_SECONDS)

        reset_at = int(stats.reset_time * 1000)
        retry_after = max(0, (reset_at - self._clock()) // 1000)
        if not allowed:
            logger.info("Rate limit exceeded for client %s (retry in %ss)", identity, retry_after)
        return RateLimitDecision(
            allowed=allowed,
            limit=self.item.amount,
            remaining=stats.remaining,
            reset_at=reset_at,
            retry_after_seconds=retry_after,
        )


def build_issuance_limiter(settings: Settings) -> Limiter:
    """slowapi limiter for session issuance, one per app."""
    return Limiter(
        key_func=client_identity_key,
        storage_uri=settings.rate_limit_storage_uri or "memory://",
    )
