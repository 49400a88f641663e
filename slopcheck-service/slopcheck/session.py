"""
session.py - Stateless, identity-bound session tokens
=====================================================
A session is self-certifying: nothing is stored server-side. The signature
is an HMAC-SHA256 over (session_id, issued_at, client identity), so a token
only verifies when it is replayed from the same network origin it was
issued to, and only when both the cookie and the header are presented.

Clients whose identity changes mid-session (proxy rotation, network switch)
are rejected and must re-issue.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .errors import (
    ConfigurationError,
    SessionRejected,
    TokenExpiredError,
    TokenIntegrityError,
    TokenValidationError,
)
from .identity import RequestMetadata, resolve_client_identity
from .tokens import (
    TOKEN_SEPARATOR,
    CookieToken,
    decode_cookie,
    decode_header,
    encode_cookie,
    encode_header,
)

logger = logging.getLogger("slopcheck.session")

# 128 bits of entropy
SESSION_ID_BYTES = 16


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class IssuedSession:
    header_token: str
    cookie_token: str
    expires_at: int  # epoch ms


@dataclass(frozen=True)
class Verification:
    valid: bool
    reason: Optional[str] = None
    error: Optional[SessionRejected] = None


class SessionAuthenticator:
    """Issues and verifies two-channel session tokens."""

    def __init__(
        self,
        secret: Optional[str],
        max_age_ms: int,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self._secret = secret.encode() if secret else None
        self.max_age_ms = max_age_ms
        self._clock = clock or _now_ms

    @property
    def configured(self) -> bool:
        return self._secret is not None

    def _sign(self, session_id: str, issued_at: int, identity: str) -> str:
        if self._secret is None:
            raise ConfigurationError("session secret is not configured")
        message = TOKEN_SEPARATOR.join([session_id, str(issued_at), identity])
        digest = hmac.new(self._secret, message.encode(), hashlib.sha256).digest()
        return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")

    def issue(self, metadata: RequestMetadata) -> IssuedSession:
        """Mint a fresh session bound to the requesting client's identity."""
        identity = resolve_client_identity(metadata)
        session_id = secrets.token_urlsafe(SESSION_ID_BYTES)
        issued_at = self._clock()

        token = CookieToken(
            session_id=session_id,
            issued_at=issued_at,
            signature=self._sign(session_id, issued_at, identity),
        )
        logger.debug("Issued session %s for client %s", session_id, identity)
        return IssuedSession(
            header_token=encode_header(token.header()),
            cookie_token=encode_cookie(token),
            expires_at=issued_at + self.max_age_ms,
        )

    def authenticate(
        self,
        metadata: RequestMetadata,
        header_value: Optional[str],
        cookie_value: Optional[str],
    ) -> None:
        """
        Verify the presented session. Raises a SessionRejected subclass on
        any failure and ConfigurationError if no secret is configured.
        Checks run in a fixed order and stop at the first failure.
        """
        if not header_value:
            raise TokenValidationError("missing header")

        cookie = decode_cookie(cookie_value)
        if cookie is None:
            raise TokenValidationError("missing/invalid cookie")

        header = decode_header(header_value)
        if header is None:
            raise TokenValidationError("malformed header")

        if header != cookie.header():
            raise TokenValidationError("mismatch")

        if self._clock() - cookie.issued_at > self.max_age_ms:
            raise TokenExpiredError("expired")

        identity = resolve_client_identity(metadata)
        expected = self._sign(cookie.session_id, cookie.issued_at, identity).encode()
        presented = cookie.signature.encode()
        if len(expected) != len(presented) or not hmac.compare_digest(expected, presented):
            raise TokenIntegrityError("signature mismatch")

    def verify(
        self,
        metadata: RequestMetadata,
        header_value: Optional[str],
        cookie_value: Optional[str],
    ) -> Verification:
        """Non-raising form of authenticate(); failures are logged here."""
        try:
            self.authenticate(metadata, header_value, cookie_value)
        except TokenIntegrityError as exc:
            logger.warning(
                "Session signature mismatch for client %s; possible forgery or replay",
                resolve_client_identity(metadata),
            )
            return Verification(valid=False, reason=exc.reason, error=exc)
        except SessionRejected as exc:
            logger.info("Session rejected (%s): %s", exc.kind, exc.reason)
            return Verification(valid=False, reason=exc.reason, error=exc)
        return Verification(valid=True)
