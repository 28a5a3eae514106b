"""Fixtures for contract tests — one parameterized fixture per hook interface.

Each fixture yields a fresh implementation instance. Today there's only the
stub ("stub" param). When the team adds a real implementation (e.g.,
Postgres), they add a second param value and an elif branch.

TEAM: To test your implementation against the contracts:
    1. Add your param string (e.g., "postgres") to the params list.
    2. Add an elif branch that yields your implementation instance.
    3. Run: python -m pytest codequest/tests/contracts/ -v
    All tests should pass. If any fail, your implementation doesn't satisfy
    the contract — read the failing test's docstring for what's expected.

The contracts can't seed challenges or multipliers through the interface
(the catalog is content-managed), so the database fixture is paired with a
``seed`` helper that knows how to pre-populate each implementation.

Uses @pytest_asyncio.fixture (not @pytest.fixture) for async fixture support
in strict mode.
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from codequest.hooks.auth import FakeAuthService
from codequest.hooks.database import InMemoryStore
from codequest.schemas import ActiveMultiplier, ChallengeSpec

CONTRACT_ADMIN_ID = "contract-admin"

CONTRACT_CHALLENGE = ChallengeSpec(
    id="contract-challenge", name="Contract", base_points=30, rank=6, time_limit_seconds=60
)


# ---------------------------------------------------------------------------
# Interface fixtures (parameterized for future implementations)
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture(params=["stub"])
async def auth_service(request):
    """Yields an AuthService implementation where CONTRACT_ADMIN_ID is admin.

    TEAM: Add your auth provider here:
        @pytest_asyncio.fixture(params=["stub", "oauth"])
        async def auth_service(request):
            if request.param == "stub":
                yield FakeAuthService(admin_ids={CONTRACT_ADMIN_ID})
            elif request.param == "oauth":
                yield YourOAuthService(test_config, admins=[CONTRACT_ADMIN_ID])
    """
    if request.param == "stub":
        yield FakeAuthService(admin_ids={CONTRACT_ADMIN_ID})


@pytest_asyncio.fixture(params=["stub"])
async def database(request):
    """Yields a DatabaseAdapter implementation with CONTRACT_CHALLENGE seeded.

    TEAM: Add your database adapter here:
        @pytest_asyncio.fixture(params=["stub", "postgres"])
        async def database(request):
            if request.param == "stub":
                ...
            elif request.param == "postgres":
                adapter = YourPostgresAdapter(test_dsn)
                await adapter.insert_challenge(CONTRACT_CHALLENGE)
                yield adapter
                await adapter.cleanup()  # if needed
    """
    if request.param == "stub":
        store = InMemoryStore()
        store.seed_challenge(CONTRACT_CHALLENGE)
        yield store


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture
def grant_multiplier(database):
    """Returns a callable that grants a multiplier on the active implementation."""

    def _grant(user_id: str, value: float, expires_at: datetime) -> None:
        multiplier = ActiveMultiplier(type="xp_boost", value=value, expires_at=expires_at)
        if isinstance(database, InMemoryStore):
            database.seed_multiplier(user_id, multiplier)
        else:
            pytest.skip("No multiplier seeding for this implementation")

    return _grant


@pytest.fixture
def in_one_hour(now: datetime) -> datetime:
    return now + timedelta(hours=1)
