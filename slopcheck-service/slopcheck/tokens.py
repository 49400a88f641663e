"""
tokens.py - Text forms of a session token
=========================================
A session travels over two channels:

  cookie  sessionId.issuedAt.signature   (HttpOnly, set by the server)
  header  sessionId.issuedAt             (echoed back explicitly by the caller)

Fields never contain ".": session ids are URL-safe base64, issuedAt is
decimal, and signatures are unpadded URL-safe base64.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

TOKEN_SEPARATOR = "."

# epoch milliseconds; bounded so int() never sees an oversized digit run
_DECIMAL = re.compile(r"[0-9]{1,15}")


@dataclass(frozen=True)
class HeaderToken:
    session_id: str
    issued_at: int


@dataclass(frozen=True)
class CookieToken:
    session_id: str
    issued_at: int
    signature: str

    def header(self) -> HeaderToken:
        return HeaderToken(session_id=self.session_id, issued_at=self.issued_at)


def encode_header(token: HeaderToken) -> str:
    return TOKEN_SEPARATOR.join([token.session_id, str(token.issued_at)])


def encode_cookie(token: CookieToken) -> str:
    return TOKEN_SEPARATOR.join([token.session_id, str(token.issued_at), token.signature])


def _split(value: Optional[str], expected: int) -> Optional[List[str]]:
    if not value:
        return None
    parts = value.split(TOKEN_SEPARATOR)
    if len(parts) != expected or not all(parts):
        return None
    if not _DECIMAL.fullmatch(parts[1]):
        return None
    return parts


def decode_header(value: Optional[str]) -> Optional[HeaderToken]:
    """Parse the header form. Returns None unless exactly two non-empty fields."""
    parts = _split(value, 2)
    if parts is None:
        return None
    return HeaderToken(session_id=parts[0], issued_at=int(parts[1]))


def decode_cookie(value: Optional[str]) -> Optional[CookieToken]:
    """Parse the cookie form. Returns None unless exactly three non-empty fields."""
    parts = _split(value, 3)
    if parts is None:
        return None
    return CookieToken(session_id=parts[0], issued_at=int(parts[1]), signature=parts[2])
