"""
errors.py - Failure taxonomy for session admission
==================================================
Configuration problems are fatal. Token problems are always recoverable by
issuing a fresh session; they are logged in detail but surfaced to callers
as a generic authentication failure. Throttling is an outcome, not a fault,
and always carries a retry hint.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .rate_limit import RateLimitDecision


class SlopcheckError(Exception):
    """Base class for service errors."""


class ConfigurationError(SlopcheckError):
    """A required setting (e.g. the signing secret) is missing."""


class SessionRejected(SlopcheckError):
    """Presented session material did not authenticate."""

    kind = "rejected"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class TokenValidationError(SessionRejected):
    """Token missing, malformed, or the two channels disagree."""

    kind = "validation"


class TokenExpiredError(SessionRejected):
    """Token is older than the session max age."""

    kind = "expiry"


class TokenIntegrityError(SessionRejected):
    """Signature does not match; possible forgery or replay from another origin."""

    kind = "integrity"


class AdmissionDenied(SlopcheckError):
    """The rate limiter refused the call."""

    def __init__(self, decision: "RateLimitDecision") -> None:
        self.decision = decision
        super().__init__(f"admission denied, retry after {decision.retry_after_seconds}s")


class ScoringError(SlopcheckError):
    """The external scoring service failed or is not configured."""
