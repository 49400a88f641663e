from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Session issuance
# ---------------------------------------------------------------------------

class SessionResponse(BaseModel):
    """Header-form token the caller must echo back on protected calls."""

    token: str = Field(..., description="sessionId.issuedAt; send it in the session header.")
    header: str = Field(..., description="Name of the header the token must be sent in.")
    expires_at: datetime


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------

class AnalyzeRequest(BaseModel):
    post: str = Field(..., min_length=1, description="Post text to score.")
    display_name: Optional[str] = Field(
        default=None,
        description="Author display name, if known. Checked for offensive content.",
    )


class SlopAnalysis(BaseModel):
    """Structured verdict returned by the scoring model."""

    model_config = ConfigDict(populate_by_name=True)

    slop_score: int = Field(..., ge=0, le=100, alias="slopScore")
    factors: Dict[str, bool] = Field(default_factory=dict)
    summary: str = ""
    recommendations: List[str] = Field(default_factory=list)


class RateLimitedResponse(BaseModel):
    detail: str
    retry_after: int


# ---------------------------------------------------------------------------
# Meta
# ---------------------------------------------------------------------------

class HealthStatus(BaseModel):
    status: str
    rate_limiter: str
    sessions: str
