from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request, Response
from slowapi import Limiter

from ..config import Settings
from ..dependencies import get_app_settings, get_authenticator, get_request_metadata
from ..identity import RequestMetadata
from ..schemas import SessionResponse
from ..session import SessionAuthenticator


def issue_session(
    request: Request,
    response: Response,
    metadata: RequestMetadata = Depends(get_request_metadata),
    authenticator: SessionAuthenticator = Depends(get_authenticator),
    settings: Settings = Depends(get_app_settings),
) -> SessionResponse:
    """Issue a session bound to the caller's network identity.

    The signed cookie form is set as an HttpOnly cookie; the unsigned header
    form is returned in the body and must be echoed back in the header named
    by X-Session-Header on every protected call.
    """
    issued = authenticator.issue(metadata)
    expires = datetime.fromtimestamp(issued.expires_at / 1000, tz=timezone.utc)

    response.set_cookie(
        key=settings.session_cookie_name,
        value=issued.cookie_token,
        expires=expires,
        path="/",
        secure=True,
        httponly=True,
        samesite="strict",
    )
    response.headers["Cache-Control"] = "no-store"
    response.headers["X-Session-Header"] = settings.session_header_name

    return SessionResponse(
        token=issued.header_token,
        header=settings.session_header_name,
        expires_at=expires,
    )


def build_router(limiter: Limiter, settings: Settings) -> APIRouter:
    """Issuance router throttled by the app's own limiter and policy."""
    router = APIRouter(prefix="/api", tags=["session"])
    router.add_api_route(
        "/session",
        limiter.limit(settings.session_rate_limit)(issue_session),
        methods=["GET"],
        response_model=SessionResponse,
    )
    return router
