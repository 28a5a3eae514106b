"""Hook interfaces — abstract base classes for all swappable services.

These ABCs define the contracts between the reward engine and the
infrastructure layer. Each one has a stub implementation that lets the
platform run end-to-end without real infrastructure, and a production
implementation the team wires in when ready.

Tier 1 leaf module: imports only from abc, datetime (stdlib) and
codequest.schemas (also Tier 1). No project services, no orchestration.

TEAM: To implement a real service, subclass the relevant ABC and implement
every abstract method. Python will raise TypeError at instantiation if
any method is missing — you'll know immediately what's left to do.

Usage:
    from codequest.hooks.interfaces import AuthService, DatabaseAdapter
"""

from abc import ABC, abstractmethod
from datetime import datetime

from codequest.schemas import (
    ActiveMultiplier,
    ActivityLogEntry,
    ChallengeSpec,
    MysteryBoxProgress,
    PriorSolutionState,
    ProgressionDelta,
    SideEffectPlan,
    SolutionRecord,
    SolutionStatus,
    User,
    UserProfile,
)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class AuthService(ABC):
    """Validates auth tokens and resolves users.

    The identity provider lives behind this interface. The engine never
    touches tokens or sessions; it asks the AuthService and gets a User
    back, then passes that User explicitly to whatever needs it. The
    User's role carries the admin capability; the engine asks nothing else.

    TEAM: Replace the stub (FakeAuthService) with your identity provider.
    The stub trusts any token and grants admin from a fixed set of ids.
    """

    @abstractmethod
    async def validate_token(self, token: str) -> User | None:
        """Validates an auth token and returns the associated user.

        Args:
            token: Bearer token from the request.

        Returns:
            The User if the token is valid and not expired, None otherwise.
        """
        ...

    @abstractmethod
    async def get_user(self, user_id: str) -> User | None:
        """Looks up a user by their ID.

        Args:
            user_id: The opaque user identifier.

        Returns:
            The User if found, None if the user doesn't exist.
        """
        ...


# ---------------------------------------------------------------------------
# Database (challenges, solutions, profiles, rewards)
# ---------------------------------------------------------------------------


class DatabaseAdapter(ABC):
    """Persistent storage the submission flow reads from and writes to.

    Idempotency: solution rows are unique on (user_id, challenge_id) and
    save_solution is a compare-and-swap on the stored status. That is what
    stops two simultaneous "first completion" requests from both being
    credited. The reward core assumes this guarantee and does not
    provide it.

    Atomicity: commit_submission is the only write the submission flow
    makes. The solution row, the profile credit, the solved counter, the
    activity row and the mystery box land together or not at all. A row
    stored as "completed" without its credit would make every retry read
    "completed" and credit zero.

    TEAM: Replace the stub (InMemoryStore) with your database. A unique
    constraint plus a conditional UPDATE ... WHERE status = :expected (or
    INSERT ... ON CONFLICT DO NOTHING for the "none" case) satisfies the
    compare-and-swap. Run commit_submission in one transaction.
    """

    # -- Challenges --------------------------------------------------------

    @abstractmethod
    async def get_challenge(self, challenge_id: str) -> ChallengeSpec | None:
        """Returns the challenge's metadata, or None if it doesn't exist."""
        ...

    @abstractmethod
    async def increment_solved_count(self, challenge_id: str) -> int:
        """Adds one to the challenge's global solved counter.

        Returns:
            The counter's new value.
        """
        ...

    # -- Solutions ---------------------------------------------------------

    @abstractmethod
    async def get_solution(
        self, user_id: str, challenge_id: str
    ) -> SolutionRecord | None:
        """Returns the stored solution row for the pair, None if never attempted."""
        ...

    @abstractmethod
    async def save_solution(
        self, record: SolutionRecord, expected_status: SolutionStatus
    ) -> None:
        """Upserts a solution row if the stored status still matches.

        Args:
            record: The row to store, keyed by (user_id, challenge_id).
            expected_status: The status read before processing. "none"
                means no row is expected to exist yet.

        Raises:
            ConcurrentUpdateError: If the stored status (or "none" when
                absent) differs from expected_status. Nothing is written.
        """
        ...

    @abstractmethod
    async def commit_submission(
        self,
        record: SolutionRecord,
        expected: PriorSolutionState,
        plan: SideEffectPlan,
        delta: ProgressionDelta,
        mystery_box: MysteryBoxProgress | None = None,
    ) -> UserProfile:
        """Stores one processed submission as a single unit.

        Compare-and-swaps the solution row on the whole prior state: the
        stored status and the award already credited must both still match
        expected. It then applies delta to the profile (only when it is
        non-zero), bumps the solved counter if plan.increment_solved,
        appends plan.activity and stores mystery_box when given. If any step
        fails, none of them persist.

        Args:
            record: The solution row to store.
            expected: The prior state read before processing.
            plan: The side-effect plan the processor returned.
            delta: Profile deltas derived from the plan.
            mystery_box: Advanced mystery-box progress, None if unchanged.

        Returns:
            The profile after the commit.

        Raises:
            ConcurrentUpdateError: If the stored state differs from
                expected. Nothing is written.
        """
        ...

    # -- Profiles ----------------------------------------------------------

    @abstractmethod
    async def get_profile(self, user_id: str) -> UserProfile:
        """Returns the user's profile, creating a default one if missing."""
        ...

    @abstractmethod
    async def apply_progression(
        self, user_id: str, delta: ProgressionDelta
    ) -> UserProfile:
        """Adds a delta to the profile totals.

        xp_delta goes to total_points, xp_gained to current_xp, coins_delta
        to coins and solved_delta to total_solved. Level-up bookkeeping is
        the store's business.

        Returns:
            The updated profile.
        """
        ...

    # -- Activity ----------------------------------------------------------

    @abstractmethod
    async def append_activity(self, user_id: str, entry: ActivityLogEntry) -> None:
        """Appends an activity-log row for the user, stamped by the store."""
        ...

    @abstractmethod
    async def list_activity(self, user_id: str, limit: int = 10) -> list[ActivityLogEntry]:
        """Returns the user's most recent activity, newest first."""
        ...

    # -- Rewards -----------------------------------------------------------

    @abstractmethod
    async def get_active_multipliers(
        self, user_id: str, now: datetime
    ) -> list[ActiveMultiplier]:
        """Returns the user's multipliers with expires_at > now, soonest
        expiry first.
        """
        ...

    @abstractmethod
    async def get_mystery_box(self, user_id: str) -> MysteryBoxProgress:
        """Returns the user's mystery-box progress, a fresh box if none."""
        ...

    @abstractmethod
    async def save_mystery_box(self, user_id: str, box: MysteryBoxProgress) -> None:
        """Stores the user's mystery-box progress. Creates or overwrites."""
        ...
