from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .api import routes_analyze, routes_session
from .config import Settings, get_settings
from .errors import AdmissionDenied, ConfigurationError, ScoringError, SessionRejected
from .logging_config import configure_logging
from .rate_limit import AdmissionGate, build_issuance_limiter
from .schemas import HealthStatus
from .scoring import PostScorer
from .session import SessionAuthenticator

VERSION = "0.1.0"

logger = logging.getLogger("slopcheck.api")


# ---------------------------------------------------------------------------
# Exception handlers: detailed in the log, generic on the wire
# ---------------------------------------------------------------------------

def _session_rejected_handler(request: Request, exc: SessionRejected) -> JSONResponse:
    return JSONResponse(status_code=401, content={"detail": "Authentication failed."})


def _admission_denied_handler(request: Request, exc: AdmissionDenied) -> JSONResponse:
    d = exc.decision
    reset = datetime.fromtimestamp(d.reset_at / 1000, tz=timezone.utc)
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Too many requests. Please wait before analyzing another post.",
            "retry_after": d.retry_after_seconds,
        },
        headers={
            "X-RateLimit-Limit": str(d.limit),
            "X-RateLimit-Remaining": str(d.remaining),
            "X-RateLimit-Reset": reset.isoformat(),
            "Retry-After": str(d.retry_after_seconds),
        },
    )


def _configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error("Configuration error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Session unavailable."})


def _scoring_error_handler(request: Request, exc: ScoringError) -> JSONResponse:
    logger.error("Scoring failed: %s", exc)
    return JSONResponse(status_code=502, content={"detail": "Failed to analyze post."})


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(
    settings: Optional[Settings] = None,
    *,
    authenticator: Optional[SessionAuthenticator] = None,
    admission_gate: Optional[AdmissionGate] = None,
    scorer: Optional[PostScorer] = None,
) -> FastAPI:
    """Build the service. Components default to ones derived from `settings`."""
    settings = settings or get_settings()
    configure_logging(settings)

    if not settings.session_secret:
        logger.error(
            "SLOPCHECK_SESSION_SECRET is not set; session issuance and verification will fail."
        )

    app = FastAPI(
        title="Slopcheck",
        version=VERSION,
        description=(
            "Scores short posts for algorithmic 'slop' through an external completion "
            "service, behind identity-bound sessions and a shared sliding-window limiter."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = settings
    app.state.authenticator = authenticator or SessionAuthenticator(
        settings.session_secret, settings.session_max_age_ms
    )
    app.state.admission_gate = admission_gate or AdmissionGate.from_settings(settings)
    app.state.scorer = scorer or PostScorer.from_settings(settings)

    # Issuance throttling; slowapi looks the limiter up on app.state
    limiter = build_issuance_limiter(settings)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_exception_handler(SessionRejected, _session_rejected_handler)
    app.add_exception_handler(AdmissionDenied, _admission_denied_handler)
    app.add_exception_handler(ConfigurationError, _configuration_error_handler)
    app.add_exception_handler(ScoringError, _scoring_error_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allow_cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["X-Session-Header", "Retry-After"],
    )

    app.include_router(routes_session.build_router(limiter, settings))
    app.include_router(routes_analyze.router)

    @app.get("/", tags=["meta"])
    def root() -> dict:
        return {"status": "ok", "service": "slopcheck", "version": VERSION}

    @app.get("/health", response_model=HealthStatus, tags=["meta"])
    def health(request: Request) -> HealthStatus:
        state = request.app.state
        return HealthStatus(
            status="healthy",
            rate_limiter="configured" if state.admission_gate.configured else "unconfigured",
            sessions="configured" if state.authenticator.configured else "unconfigured",
        )

    return app


app = create_app()
