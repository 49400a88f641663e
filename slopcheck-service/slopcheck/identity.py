"""
identity.py - Best-effort client identity from transport metadata
=================================================================
The identity is used as a rate-limit bucket and as the binding key mixed
into session signatures. It is NOT an authentication identity: clients
behind the same NAT or proxy share one.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Mapping, Optional

from fastapi import Request

FALLBACK_IDENTITY = "unknown"

REAL_IP_HEADER = "x-real-ip"
FORWARDED_FOR_HEADER = "x-forwarded-for"

_IPV4_MAPPED_PREFIX = re.compile(r"^::ffff:", re.IGNORECASE)


@dataclass(frozen=True)
class RequestMetadata:
    """The slice of an inbound request the identity resolver looks at."""
    peer_address: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_request(cls, request: Request) -> "RequestMetadata":
        peer = request.client.host if request.client else None
        return cls(peer_address=peer, headers=dict(request.headers))


def _strip_ipv4_mapped(value: str) -> str:
    return _IPV4_MAPPED_PREFIX.sub("", value)


def resolve_client_identity(metadata: RequestMetadata) -> str:
    """
    Return the client identity for a request. First match wins:

      1. the transport's peer address
      2. X-Real-IP
      3. the first entry of X-Forwarded-For
      4. "unknown"
    """
    if metadata.peer_address and metadata.peer_address.strip():
        return _strip_ipv4_mapped(metadata.peer_address.strip())

    headers = {k.lower(): v for k, v in metadata.headers.items()}

    real_ip = (headers.get(REAL_IP_HEADER) or "").strip()
    if real_ip:
        return _strip_ipv4_mapped(real_ip)

    forwarded_for = headers.get(FORWARDED_FOR_HEADER) or ""
    first = forwarded_for.split(",")[0].strip()
    if first:
        return _strip_ipv4_mapped(first)

    return FALLBACK_IDENTITY


def client_identity_key(request: Request) -> str:
    """slowapi key function: bucket requests by resolved client identity."""
    return resolve_client_identity(RequestMetadata.from_request(request))
