"""Shared test fixtures for the reward engine.

Factory-pattern fixtures that return callables accepting **overrides.
Every test module imports its scaffolding from here.

Fixtures:
    make_challenge: Factory for valid ChallengeSpec instances
    make_attempt: Factory for valid SubmissionAttempt instances
    make_user: Factory for User instances
    store: Fresh InMemoryStore with the default test challenge seeded
"""

from uuid import uuid4

import pytest

from codequest.hooks.database import InMemoryStore
from codequest.schemas import ChallengeSpec, SubmissionAttempt, User

DEFAULT_CHALLENGE_ID = "test-challenge-001"


# ---------------------------------------------------------------------------
# ChallengeSpec factory
# ---------------------------------------------------------------------------


@pytest.fixture
def make_challenge():
    """Returns a factory function for creating valid ChallengeSpec instances.

    Defaults: an 8 kyu challenge worth 10 points with a 20 second limit.
    """

    def _make(**overrides) -> ChallengeSpec:
        defaults = {
            "id": DEFAULT_CHALLENGE_ID,
            "name": "Test challenge",
            "base_points": 10,
            "rank": 8,
            "time_limit_seconds": 20,
        }
        defaults.update(overrides)
        return ChallengeSpec(**defaults)

    return _make


# ---------------------------------------------------------------------------
# SubmissionAttempt factory
# ---------------------------------------------------------------------------


@pytest.fixture
def make_attempt():
    """Returns a factory function for creating SubmissionAttempt instances.

    Defaults produce a fully passing, hint-free, slow attempt: only the
    no-hints bonus applies against the default challenge.
    """

    def _make(**overrides) -> SubmissionAttempt:
        defaults = {
            "challenge_id": DEFAULT_CHALLENGE_ID,
            "code": "def solve(): return 42",
            "tests_passed": 4,
            "tests_total": 4,
            "time_elapsed_seconds": 15,
            "hints_used": 0,
            "is_perfect_solve": False,
        }
        defaults.update(overrides)
        return SubmissionAttempt(**defaults)

    return _make


# ---------------------------------------------------------------------------
# User factory
# ---------------------------------------------------------------------------


@pytest.fixture
def make_user():
    """Returns a factory function for creating User instances with unique IDs."""

    def _make(**overrides) -> User:
        defaults = {
            "id": f"user-{uuid4().hex[:8]}",
            "role": "user",
            "name": "Test Coder",
        }
        defaults.update(overrides)
        return User(**defaults)

    return _make


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------


@pytest.fixture
def store(make_challenge) -> InMemoryStore:
    """Fresh InMemoryStore with the default test challenge seeded."""
    db = InMemoryStore()
    db.seed_challenge(make_challenge())
    return db
