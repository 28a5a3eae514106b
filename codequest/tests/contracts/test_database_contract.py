"""Contract tests for DatabaseAdapter — behavioral contract.

Verifies that any DatabaseAdapter implementation satisfies:
- Challenge lookup and the global solved counter
- Solution upserts guarded by a compare-and-swap on the stored status
  (the guarantee that stops double crediting)
- commit_submission applying a whole side-effect plan, compared on status
  and credited award
- Profile creation and delta application
- Activity log ordering
- Multiplier expiry filtering and mystery-box persistence

These tests use only the public interface — no internal state inspection.

Run against registered implementations:
    python -m pytest codequest/tests/contracts/test_database_contract.py -v
"""

from datetime import timedelta

import pytest

from codequest.rewards.errors import ConcurrentUpdateError
from codequest.schemas import (
    ActivityLogEntry,
    ChallengeSpec,
    MysteryBoxProgress,
    PriorSolutionState,
    ProgressionDelta,
    SideEffectPlan,
    SolutionRecord,
    UserProfile,
)

CHALLENGE_ID = "contract-challenge"


def _record(status: str, **overrides) -> SolutionRecord:
    data = {"user_id": "contract-user", "challenge_id": CHALLENGE_ID, "status": status}
    data.update(overrides)
    return SolutionRecord(**data)


def _completion_plan() -> SideEffectPlan:
    return SideEffectPlan(
        solution_status="completed",
        credit_xp=30,
        credit_coins=15,
        increment_solved=True,
        activity=ActivityLogEntry(challenge_id=CHALLENGE_ID, points_earned=30, coins_earned=15),
    )


def _completion_delta() -> ProgressionDelta:
    return ProgressionDelta(
        xp_delta=30, coins_delta=15, solved_delta=1, multiplier=1.0, xp_gained=30
    )


class TestDatabaseContract:
    """Behavioral contract for DatabaseAdapter implementations."""

    # -- Challenges --------------------------------------------------------

    @pytest.mark.asyncio
    async def test_get_challenge(self, database) -> None:
        """A catalogued challenge comes back as a ChallengeSpec."""
        challenge = await database.get_challenge(CHALLENGE_ID)
        assert isinstance(challenge, ChallengeSpec)
        assert challenge.id == CHALLENGE_ID

    @pytest.mark.asyncio
    async def test_get_unknown_challenge_returns_none(self, database) -> None:
        assert await database.get_challenge("no-such-challenge") is None

    @pytest.mark.asyncio
    async def test_increment_solved_count_returns_new_value(self, database) -> None:
        first = await database.increment_solved_count(CHALLENGE_ID)
        second = await database.increment_solved_count(CHALLENGE_ID)
        assert second == first + 1

    # -- Solutions ---------------------------------------------------------

    @pytest.mark.asyncio
    async def test_never_attempted_returns_none(self, database) -> None:
        assert await database.get_solution("contract-user", CHALLENGE_ID) is None

    @pytest.mark.asyncio
    async def test_insert_then_get(self, database) -> None:
        await database.save_solution(_record("in_progress", code="x = 1"), "none")
        stored = await database.get_solution("contract-user", CHALLENGE_ID)
        assert stored is not None
        assert stored.status == "in_progress"
        assert stored.code == "x = 1"

    @pytest.mark.asyncio
    async def test_update_with_matching_status(self, database) -> None:
        await database.save_solution(_record("in_progress"), "none")
        await database.save_solution(_record("completed"), "in_progress")
        stored = await database.get_solution("contract-user", CHALLENGE_ID)
        assert stored is not None
        assert stored.status == "completed"

    @pytest.mark.asyncio
    async def test_second_insert_conflicts(self, database) -> None:
        """Two writers that both read "none": only the first may win."""
        await database.save_solution(_record("completed"), "none")
        with pytest.raises(ConcurrentUpdateError):
            await database.save_solution(_record("completed"), "none")

    @pytest.mark.asyncio
    async def test_stale_status_conflicts_and_writes_nothing(self, database) -> None:
        await database.save_solution(_record("completed", code="winner"), "none")
        with pytest.raises(ConcurrentUpdateError):
            await database.save_solution(_record("completed", code="loser"), "in_progress")
        stored = await database.get_solution("contract-user", CHALLENGE_ID)
        assert stored is not None
        assert stored.code == "winner"

    @pytest.mark.asyncio
    async def test_solutions_isolated_per_user(self, database) -> None:
        await database.save_solution(_record("completed"), "none")
        assert await database.get_solution("someone-else", CHALLENGE_ID) is None

    @pytest.mark.asyncio
    async def test_commit_submission_applies_plan(self, database) -> None:
        """The row, profile credit, counter, activity and box land together."""
        before = await database.increment_solved_count(CHALLENGE_ID)
        profile = await database.commit_submission(
            _record("completed", points_earned=30, coins_earned=15),
            PriorSolutionState(),
            _completion_plan(),
            _completion_delta(),
            MysteryBoxProgress(progress=1, total=5),
        )

        assert profile.total_points == 30
        assert profile.coins == 15
        stored = await database.get_solution("contract-user", CHALLENGE_ID)
        assert stored is not None
        assert stored.status == "completed"
        assert await database.increment_solved_count(CHALLENGE_ID) == before + 2
        assert len(await database.list_activity("contract-user")) == 1
        assert (await database.get_mystery_box("contract-user")).progress == 1

    @pytest.mark.asyncio
    async def test_commit_submission_stale_award_conflicts(self, database) -> None:
        """Same status but a different credited award is a lost race."""
        await database.save_solution(_record("in_progress", points_earned=22), "none")

        with pytest.raises(ConcurrentUpdateError):
            await database.commit_submission(
                _record("completed", points_earned=30),
                PriorSolutionState(status="in_progress", credited_xp=7),
                _completion_plan(),
                _completion_delta(),
            )

        stored = await database.get_solution("contract-user", CHALLENGE_ID)
        assert stored is not None
        assert stored.status == "in_progress"
        assert (await database.get_profile("contract-user")).total_points == 0
        assert await database.list_activity("contract-user") == []

    # -- Profiles ----------------------------------------------------------

    @pytest.mark.asyncio
    async def test_get_profile_creates_default(self, database) -> None:
        profile = await database.get_profile("fresh-user")
        assert isinstance(profile, UserProfile)
        assert profile.user_id == "fresh-user"
        assert profile.total_points == 0
        assert profile.coins == 0
        assert profile.total_solved == 0

    @pytest.mark.asyncio
    async def test_apply_progression_accumulates(self, database) -> None:
        delta = ProgressionDelta(
            xp_delta=10, coins_delta=5, solved_delta=1, multiplier=1.5, xp_gained=15
        )
        await database.apply_progression("contract-user", delta)
        profile = await database.apply_progression("contract-user", delta)
        assert profile.total_points == 20
        assert profile.current_xp >= 0
        assert profile.coins == 10
        assert profile.total_solved == 2

    # -- Activity ----------------------------------------------------------

    @pytest.mark.asyncio
    async def test_activity_newest_first(self, database) -> None:
        for challenge_id in ("first", "second", "third"):
            await database.append_activity(
                "contract-user",
                ActivityLogEntry(challenge_id=challenge_id, points_earned=1, coins_earned=0),
            )
        entries = await database.list_activity("contract-user", limit=10)
        assert [e.challenge_id for e in entries] == ["third", "second", "first"]

    @pytest.mark.asyncio
    async def test_activity_limit(self, database) -> None:
        for i in range(5):
            await database.append_activity(
                "contract-user",
                ActivityLogEntry(challenge_id=f"c{i}", points_earned=1, coins_earned=0),
            )
        assert len(await database.list_activity("contract-user", limit=2)) == 2

    # -- Rewards -----------------------------------------------------------

    @pytest.mark.asyncio
    async def test_expired_multipliers_excluded(
        self, database, grant_multiplier, now, in_one_hour
    ) -> None:
        grant_multiplier("contract-user", 2.0, in_one_hour)
        grant_multiplier("contract-user", 3.0, now - timedelta(minutes=1))
        active = await database.get_active_multipliers("contract-user", now)
        assert [m.value for m in active] == [2.0]

    @pytest.mark.asyncio
    async def test_no_multipliers(self, database, now) -> None:
        assert await database.get_active_multipliers("contract-user", now) == []

    @pytest.mark.asyncio
    async def test_mystery_box_round_trip(self, database) -> None:
        fresh = await database.get_mystery_box("contract-user")
        assert fresh.progress == 0
        assert not fresh.is_claimed
        await database.save_mystery_box(
            "contract-user", MysteryBoxProgress(progress=3, total=fresh.total)
        )
        stored = await database.get_mystery_box("contract-user")
        assert stored.progress == 3
