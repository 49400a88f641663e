"""
scoring.py - Client for the external completion service
=======================================================
Sends a post to an OpenAI-compatible chat completions endpoint and
validates the JSON verdict. The call is expensive, which is why every
request reaching this module has already passed the admission gate and
session verification.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from .config import Settings
from .errors import ScoringError
from .schemas import SlopAnalysis

logger = logging.getLogger("slopcheck.scoring")

FACTOR_KEYS = (
    "allCaps",
    "spam",
    "tooManyHashtags",
    "tooManyMentions",
    "offensive",
    "offensiveDisplayName",
    "hasLinks",
    "nsfw",
    "graphicViolence",
    "promotional",
    "privateInfo",
    "excessiveWhitespace",
    "veryShortLowEffort",
    "lengthExtremes",
    "readabilityIssues",
    "lowTokenEntropy",
    "slopAnnotation",
    "mediaOrCardHeavy",
    "informative",
    "encouragesEngagement",
)

SYSTEM_PROMPT = (
    "You are an expert on the X (Twitter) ranking algorithm. Rate the post you are "
    "given for how likely it is to be down-ranked as low-quality 'slop'.\n\n"
    "Penalise: all-caps shouting, length extremes, poor readability, repetitive "
    "wording, whitespace or formatting spam, any external link, offensive language "
    "(in the post or the author display name), spam or engagement bait, overt "
    "promotion, NSFW or graphic content, exposed private information, hashtag or "
    "mention stuffing, and heavy media/card references.\n"
    "Reward: informative or niche content, thoughtful insight, original ideas, and "
    "posts that invite meaningful discussion.\n\n"
    "Answer with a JSON object with exactly these keys:\n"
    '  "slopScore": integer 0-100 (0 = excellent, 100 = pure slop),\n'
    '  "factors": object of booleans with keys ' + ", ".join(FACTOR_KEYS) + ",\n"
    '  "summary": short explanation of the score,\n'
    '  "recommendations": array of concrete improvements for this post.\n'
    "If no display name is provided, offensiveDisplayName is false."
)


class PostScorer:
    """Scores posts through an OpenAI-compatible chat completions API."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str,
        model: str,
        temperature: float = 0.3,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "PostScorer":
        return cls(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            model=settings.openai_model,
            temperature=settings.openai_temperature,
            timeout=settings.openai_timeout_seconds,
        )

    def _payload(self, post: str, display_name: Optional[str]) -> Dict[str, Any]:
        user_content = f'Analyze this post: "{post}"'
        if display_name:
            user_content += f'\nAuthor display name: "{display_name}"'
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": user_content},
            ],
            "response_format": {"type": "json_object"},
            "temperature": self.temperature,
        }

    def score(self, post: str, display_name: Optional[str] = None) -> SlopAnalysis:
        """Return the model's verdict for `post`. Raises ScoringError on any failure."""
        if not self.api_key:
            raise ScoringError("scoring API key is not configured")

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as http:
                resp = http.post(
                    f"{self.base_url}/chat/completions",
                    json=self._payload(post, display_name),
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPError as exc:
            logger.error("Scoring request failed: %s", exc)
            raise ScoringError("scoring request failed") from exc
        except ValueError as exc:
            raise ScoringError("scoring response was not JSON") from exc

        try:
            content = body["choices"][0]["message"]["content"] or "{}"
            return SlopAnalysis.model_validate(json.loads(content))
        except (KeyError, IndexError, TypeError, ValueError, ValidationError) as exc:
            logger.error("Unusable scoring response: %s", exc)
            raise ScoringError("scoring response could not be parsed") from exc
