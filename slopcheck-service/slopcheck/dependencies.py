from __future__ import annotations

from fastapi import Depends, Request

from .config import Settings
from .errors import AdmissionDenied
from .identity import RequestMetadata, resolve_client_identity
from .rate_limit import AdmissionGate, RateLimitDecision
from .scoring import PostScorer
from .session import SessionAuthenticator


# ---------------------------------------------------------------------------
# Components built once by create_app() and kept on app.state
# ---------------------------------------------------------------------------

def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_authenticator(request: Request) -> SessionAuthenticator:
    return request.app.state.authenticator


def get_admission_gate(request: Request) -> AdmissionGate:
    return request.app.state.admission_gate


def get_scorer(request: Request) -> PostScorer:
    return request.app.state.scorer


def get_request_metadata(request: Request) -> RequestMetadata:
    return RequestMetadata.from_request(request)


# ---------------------------------------------------------------------------
# Guards for the protected scoring call
# ---------------------------------------------------------------------------

def require_admission(
    metadata: RequestMetadata = Depends(get_request_metadata),
    gate: AdmissionGate = Depends(get_admission_gate),
) -> RateLimitDecision:
    """Consume one slot of the caller's window or raise AdmissionDenied."""
    decision = gate.check(resolve_client_identity(metadata))
    if not decision.allowed:
        raise AdmissionDenied(decision)
    return decision


def require_session(
    request: Request,
    _admission: RateLimitDecision = Depends(require_admission),
    metadata: RequestMetadata = Depends(get_request_metadata),
    authenticator: SessionAuthenticator = Depends(get_authenticator),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """
    Verify the two-channel session: the header token sent explicitly by the
    caller and the signed cookie the browser attaches. Runs after admission.
    """
    result = authenticator.verify(
        metadata,
        request.headers.get(settings.session_header_name),
        request.cookies.get(settings.session_cookie_name),
    )
    if not result.valid:
        raise result.error
