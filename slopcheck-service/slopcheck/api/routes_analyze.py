from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ..config import Settings
from ..dependencies import get_app_settings, get_scorer, require_session
from ..schemas import AnalyzeRequest, RateLimitedResponse, SlopAnalysis
from ..scoring import PostScorer

router = APIRouter(prefix="/api", tags=["analyze"])


@router.post(
    "/analyze",
    response_model=SlopAnalysis,
    responses={429: {"model": RateLimitedResponse}},
)
def analyze_post(
    body: AnalyzeRequest,
    _session: None = Depends(require_session),
    settings: Settings = Depends(get_app_settings),
    scorer: PostScorer = Depends(get_scorer),
) -> SlopAnalysis:
    """Score a post.

    Requires a session from GET /api/session (cookie plus echoed header) and
    a free slot in the caller's rate-limit window. Both are checked before
    the scoring service is contacted.
    """
    if len(body.post) > settings.max_post_length:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Post exceeds {settings.max_post_length} character limit.",
        )
    if body.display_name and len(body.display_name) > settings.max_display_name_length:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Display name exceeds {settings.max_display_name_length} character limit.",
        )

    return scorer.score(body.post, body.display_name)
