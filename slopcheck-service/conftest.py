"""
pytest configuration – environment for the module-level app, plus per-test
apps that each get their own in-memory rate-limit storage.
"""
import os

os.environ.setdefault("SLOPCHECK_SESSION_SECRET", "test-secret-do-not-use")
os.environ.setdefault("SLOPCHECK_RATE_LIMIT_STORAGE_URI", "memory://")
os.environ.setdefault("SLOPCHECK_LOG_FORMAT", "text")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from slopcheck.config import Settings  # noqa: E402
from slopcheck.errors import ScoringError  # noqa: E402
from slopcheck.main import create_app  # noqa: E402
from slopcheck.schemas import SlopAnalysis  # noqa: E402


class FakeScorer:
    """Stands in for the external completion service."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls = []

    def score(self, post, display_name=None):
        self.calls.append((post, display_name))
        if self.fail:
            raise ScoringError("upstream down")
        return SlopAnalysis(
            slop_score=42,
            factors={"allCaps": False, "informative": True},
            summary="Reasonable post.",
            recommendations=["Ask a question."],
        )


def make_settings(**overrides) -> Settings:
    values = {
        "session_secret": "test-secret-do-not-use",
        "rate_limit_storage_uri": "memory://",
        "log_format": "text",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def scorer() -> FakeScorer:
    return FakeScorer()


@pytest.fixture
def app(scorer):
    return create_app(make_settings(), scorer=scorer)


@pytest.fixture
def client(app) -> TestClient:
    # https so the Secure session cookie is sent back by the cookie jar
    return TestClient(app, base_url="https://testserver")
