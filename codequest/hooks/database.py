"""In-memory database — development stub for DatabaseAdapter.

Python dict-backed storage for challenges, solutions, profiles, activity
and reward progress. Data lives only in memory and is lost on restart.
Solutions are keyed by (user_id, challenge_id) tuples — the same
idempotency key a real store enforces with a unique constraint.

save_solution's compare-and-swap has no await between the status check
and the write, so it is atomic on a single event loop. commit_submission
snapshots everything it touches and restores the snapshot if a step
raises, standing in for a database transaction.

TEAM: Replace this with your real database (Postgres, etc.). Subclass
DatabaseAdapter from codequest.hooks.interfaces and implement every
abstract method. The seed_* helpers are stub conveniences, not part of
the interface.

Tier 2 service module: imports from codequest.hooks.interfaces (Tier 1),
codequest.rewards.errors (Tier 1) and codequest.schemas (Tier 1).

Usage:
    from codequest.hooks.database import InMemoryStore

    db = InMemoryStore()
    db.seed_challenge(ChallengeSpec(id="c1", base_points=10, rank=8))
    await db.get_challenge("c1")
"""

from collections import defaultdict
from datetime import datetime, timezone

from codequest.hooks.interfaces import DatabaseAdapter
from codequest.rewards.errors import ConcurrentUpdateError
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
    UserProfile,
)


class InMemoryStore(DatabaseAdapter):
    """STUB — dict-backed storage, loses data on restart.

    Stored models are copied on the way in and out so callers can't mutate
    rows behind the store's back.

    TEAM: Replace with your database adapter. Satisfy the DatabaseAdapter
    interface from codequest.hooks.interfaces. save_solution and
    commit_submission show the guarantees your implementation must provide.
    """

    def __init__(self, mystery_box_size: int = 5) -> None:
        """Initialises empty in-memory stores.

        Args:
            mystery_box_size: Box size for users without stored progress.
        """
        self._mystery_box_size = mystery_box_size
        self._challenges: dict[str, ChallengeSpec] = {}
        self._solved_counts: dict[str, int] = defaultdict(int)
        self._solutions: dict[tuple[str, str], SolutionRecord] = {}
        self._profiles: dict[str, UserProfile] = {}
        self._activity: dict[str, list[tuple[datetime, ActivityLogEntry]]] = defaultdict(list)
        self._multipliers: dict[str, list[ActiveMultiplier]] = defaultdict(list)
        self._mystery_boxes: dict[str, MysteryBoxProgress] = {}

    # -- Challenges --------------------------------------------------------

    async def get_challenge(self, challenge_id: str) -> ChallengeSpec | None:
        return self._challenges.get(challenge_id)

    async def increment_solved_count(self, challenge_id: str) -> int:
        self._solved_counts[challenge_id] += 1
        return self._solved_counts[challenge_id]

    # -- Solutions ---------------------------------------------------------

    async def get_solution(
        self, user_id: str, challenge_id: str
    ) -> SolutionRecord | None:
        record = self._solutions.get((user_id, challenge_id))
        return record.model_copy() if record is not None else None

    async def save_solution(
        self, record: SolutionRecord, expected_status: SolutionStatus
    ) -> None:
        """Upserts the row only if the stored status equals expected_status.

        Raises:
            ConcurrentUpdateError: On a status mismatch. Nothing is written.
        """
        key = (record.user_id, record.challenge_id)
        current = self._solutions.get(key)
        actual = current.status if current is not None else "none"
        if actual != expected_status:
            raise ConcurrentUpdateError(
                record.user_id, record.challenge_id, expected_status, actual
            )
        self._solutions[key] = record.model_copy()

    async def commit_submission(
        self,
        record: SolutionRecord,
        expected: PriorSolutionState,
        plan: SideEffectPlan,
        delta: ProgressionDelta,
        mystery_box: MysteryBoxProgress | None = None,
    ) -> UserProfile:
        """Applies a processed submission, rolling every write back on failure.

        Raises:
            ConcurrentUpdateError: If the stored state differs from
                expected. Nothing is written.
        """
        user_id, challenge_id = record.user_id, record.challenge_id
        stored = PriorSolutionState.from_record(self._solutions.get((user_id, challenge_id)))
        if stored != expected:
            raise ConcurrentUpdateError(
                user_id, challenge_id, _describe(expected), _describe(stored)
            )

        snapshot = (
            self._solutions.get((user_id, challenge_id)),
            self._profiles.get(user_id),
            self._solved_counts.get(challenge_id, 0),
            len(self._activity[user_id]),
            self._mystery_boxes.get(user_id),
        )

        await self.save_solution(record, expected.status)
        try:
            if delta.xp_delta or delta.coins_delta or delta.solved_delta:
                profile = await self.apply_progression(user_id, delta)
            else:
                profile = await self.get_profile(user_id)
            if plan.increment_solved:
                await self.increment_solved_count(challenge_id)
            if plan.activity is not None:
                await self.append_activity(user_id, plan.activity)
            if mystery_box is not None:
                await self.save_mystery_box(user_id, mystery_box)
        except Exception:
            self._restore(user_id, challenge_id, snapshot)
            raise
        return profile

    def _restore(self, user_id: str, challenge_id: str, snapshot: tuple) -> None:
        solution, profile, solved, activity_len, box = snapshot
        _put(self._solutions, (user_id, challenge_id), solution)
        _put(self._profiles, user_id, profile)
        self._solved_counts[challenge_id] = solved
        del self._activity[user_id][activity_len:]
        _put(self._mystery_boxes, user_id, box)

    # -- Profiles ----------------------------------------------------------

    async def get_profile(self, user_id: str) -> UserProfile:
        profile = self._profiles.get(user_id)
        if profile is None:
            profile = UserProfile(user_id=user_id)
            self._profiles[user_id] = profile
        return profile.model_copy()

    async def apply_progression(
        self, user_id: str, delta: ProgressionDelta
    ) -> UserProfile:
        profile = await self.get_profile(user_id)
        updated = profile.model_copy(
            update={
                "total_points": profile.total_points + delta.xp_delta,
                "current_xp": profile.current_xp + delta.xp_gained,
                "coins": profile.coins + delta.coins_delta,
                "total_solved": profile.total_solved + delta.solved_delta,
                "last_activity": datetime.now(timezone.utc),
            }
        )
        self._profiles[user_id] = updated
        return updated.model_copy()

    # -- Activity ----------------------------------------------------------

    async def append_activity(self, user_id: str, entry: ActivityLogEntry) -> None:
        self._activity[user_id].append((datetime.now(timezone.utc), entry))

    async def list_activity(self, user_id: str, limit: int = 10) -> list[ActivityLogEntry]:
        # Rows are appended in order; clock ties must not reorder them.
        rows = self._activity.get(user_id, [])[::-1]
        return [entry for _, entry in rows[:limit]]

    # -- Rewards -----------------------------------------------------------

    async def get_active_multipliers(
        self, user_id: str, now: datetime
    ) -> list[ActiveMultiplier]:
        active = [m for m in self._multipliers.get(user_id, []) if m.expires_at > now]
        return sorted(active, key=lambda m: m.expires_at)

    async def get_mystery_box(self, user_id: str) -> MysteryBoxProgress:
        box = self._mystery_boxes.get(user_id)
        if box is None:
            return MysteryBoxProgress(total=self._mystery_box_size)
        return box.model_copy()

    async def save_mystery_box(self, user_id: str, box: MysteryBoxProgress) -> None:
        self._mystery_boxes[user_id] = box.model_copy()

    # -- Stub conveniences -------------------------------------------------

    def seed_challenge(self, challenge: ChallengeSpec) -> None:
        """Pre-populates a challenge. The real catalog is content-managed."""
        self._challenges[challenge.id] = challenge

    def seed_multiplier(self, user_id: str, multiplier: ActiveMultiplier) -> None:
        """Grants a multiplier for testing."""
        self._multipliers[user_id].append(multiplier)

    def solved_count(self, challenge_id: str) -> int:
        return self._solved_counts.get(challenge_id, 0)


def _put(rows: dict, key, value) -> None:
    """Restores one snapshotted entry; None means the key was absent."""
    if value is None:
        rows.pop(key, None)
    else:
        rows[key] = value


def _describe(state: PriorSolutionState) -> str:
    return f"{state.status}, {state.credited_xp} XP / {state.credited_coins} coins credited"
