"""
client.py - Python client for the slopcheck service
===================================================
Performs the two-channel session handshake a browser would:

  1. GET /api/session  -> signed cookie lands in the cookie jar,
                          header token is kept in memory
  2. POST /api/analyze -> header token echoed in the session header,
                          cookie sent automatically

A 401 drops the cached session (the next call re-issues) and raises
SlopcheckAuthError; a 429 raises SlopcheckRateLimitedError carrying the
server's retry hint.

Environment variables
---------------------
SLOPCHECK_URL  – Base URL of the service (default: https://localhost:8000)
"""
from __future__ import annotations

import os
from typing import Any, Dict, Optional

import httpx

SLOPCHECK_URL = os.getenv("SLOPCHECK_URL", "https://localhost:8000")
_TIMEOUT = 30.0


class SlopcheckClientError(RuntimeError):
    """Base class for client-side failures."""


class SlopcheckAuthError(SlopcheckClientError):
    """The service rejected the session (expired, or presented from another origin)."""


class SlopcheckRateLimitedError(SlopcheckClientError):
    """The service refused the call; wait `retry_after` seconds."""

    def __init__(self, retry_after: int, detail: str = "") -> None:
        self.retry_after = retry_after
        super().__init__(detail or f"rate limited, retry after {retry_after}s")


class SlopcheckClient:
    """Thin session-aware wrapper around an httpx.Client."""

    def __init__(
        self,
        base_url: str = SLOPCHECK_URL,
        *,
        http: Optional[httpx.Client] = None,
    ) -> None:
        self._http = http or httpx.Client(base_url=base_url, timeout=_TIMEOUT)
        self._token: Optional[str] = None
        self._header_name: Optional[str] = None

    def __enter__(self) -> "SlopcheckClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    @property
    def has_session(self) -> bool:
        return self._token is not None

    def open_session(self) -> str:
        """Fetch a fresh session. Returns the header token."""
        resp = self._http.get("/api/session")
        if resp.status_code == 429:
            raise SlopcheckRateLimitedError(int(resp.headers.get("Retry-After", "60")))
        resp.raise_for_status()
        data = resp.json()
        self._token = data["token"]
        self._header_name = resp.headers.get("X-Session-Header") or data["header"]
        return self._token

    def _post_analyze(self, payload: Dict[str, Any]) -> httpx.Response:
        return self._http.post(
            "/api/analyze",
            json=payload,
            headers={self._header_name: self._token},
        )

    def analyze(self, post: str, display_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Score a post. Returns the analysis dict:
          { slopScore, factors, summary, recommendations }
        """
        if not self.has_session:
            self.open_session()

        payload: Dict[str, Any] = {"post": post}
        if display_name:
            payload["display_name"] = display_name

        resp = self._post_analyze(payload)
        if resp.status_code == 401:
            # The rejected call already used the rate-limit slot, so retrying
            # now would only hit 429. Drop the session; the next call re-issues.
            self._token = None
            raise SlopcheckAuthError(resp.json().get("detail", "Authentication failed."))

        if resp.status_code == 429:
            body = resp.json()
            raise SlopcheckRateLimitedError(int(body.get("retry_after", 0)), body.get("detail", ""))

        resp.raise_for_status()
        return resp.json()
