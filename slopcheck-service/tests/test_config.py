from __future__ import annotations

import pytest
from pydantic import ValidationError

from slopcheck.config import Settings


def test_defaults():
    s = Settings(session_secret="x", rate_limit_storage_uri=None)
    assert s.session_max_age_ms == 15 * 60 * 1000
    assert s.analyze_rate_limit == "1/30 seconds"
    assert s.max_post_length == 280


def test_missing_secret_allowed_in_development():
    assert Settings(environment="development", session_secret=None).session_secret is None


def test_missing_secret_fatal_outside_development():
    with pytest.raises(ValidationError):
        Settings(environment="production", session_secret=None)


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("SLOPCHECK_SESSION_MAX_AGE_SECONDS", "60")
    monkeypatch.setenv("SLOPCHECK_ANALYZE_RATE_LIMIT", "2/minute")
    s = Settings()
    assert s.session_max_age_ms == 60_000
    assert s.analyze_rate_limit == "2/minute"
