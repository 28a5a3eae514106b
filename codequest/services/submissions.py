"""Submission service — the host around the pure reward core.

Performs the I/O the core deliberately doesn't: loads the challenge and
the stored solution, runs process_submission, and hands the solution row
and the side-effect plan to DatabaseAdapter.commit_submission. The commit
compare-and-swaps the row on its prior status and applies the profile,
solved-counter, activity and mystery-box writes in the same unit, so a
failed commit leaves nothing behind and the submission can be retried.

Retries: a ConcurrentUpdateError means another request for the same
(user_id, challenge_id) won the write. The whole read-process-write cycle
is re-run, up to max_attempts times; the core is pure, so a re-run on
fresh state is safe. A request that loses the race to a concurrent first
completion re-reads "completed" and is credited nothing.

Consumed by:
- Challenge and progress routers (codequest.api.*)

Tier 2 service: imports from hooks/interfaces (T1), rewards/* (T1-T2),
schemas (T1).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from codequest.hooks.interfaces import DatabaseAdapter
from codequest.rewards.errors import ChallengeNotFoundError, ConcurrentUpdateError
from codequest.rewards.processor import process_submission
from codequest.rewards.progression import (
    MULTIPLIER_STACKING,
    MultiplierPolicy,
    advance_mystery_box,
    effective_multiplier,
    progression_delta,
)
from codequest.schemas import (
    ActivityLogEntry,
    ChallengeSpec,
    MysteryBoxProgress,
    PriorSolutionState,
    ProgressionDelta,
    ProgressSnapshot,
    SolutionRecord,
    SubmissionAttempt,
    SubmissionOutcome,
    SubmitResult,
    User,
    UserProfile,
)

logger = logging.getLogger("codequest.services.submissions")


@dataclass(frozen=True)
class SubmissionReceipt:
    """Everything one successful submission decided and applied.

    Attributes:
        outcome: The core's decision for the attempt.
        delta: Profile deltas derived from the outcome.
        profile: The profile after the delta was applied.
        mystery_box: Mystery-box progress after the attempt.
    """

    outcome: SubmissionOutcome
    delta: ProgressionDelta
    profile: UserProfile
    mystery_box: MysteryBoxProgress

    def to_result(self) -> SubmitResult:
        return SubmitResult(
            success=True,
            points_earned=self.outcome.applied_xp,
            coins_earned=self.outcome.applied_coins,
            xp_gained=self.delta.xp_gained,
            multiplier=self.delta.multiplier,
            status=self.outcome.status,
            is_first_completion=self.outcome.is_first_completion,
            reward_breakdown=self.outcome.rewards,
        )


class SubmissionService:
    """Runs submissions end to end against a DatabaseAdapter.

    Args:
        database: Storage hook (InMemoryStore in tests and development).
        multiplier_policy: How several active XP multipliers combine.
        max_attempts: Read-process-write cycles tried before a
            ConcurrentUpdateError is surfaced to the caller.
    """

    def __init__(
        self,
        database: DatabaseAdapter,
        multiplier_policy: MultiplierPolicy = MULTIPLIER_STACKING,
        max_attempts: int = 3,
    ) -> None:
        self._db = database
        self._policy = multiplier_policy
        self._max_attempts = max(1, max_attempts)

    async def get_challenge(self, challenge_id: str) -> ChallengeSpec:
        """Returns the challenge or raises ChallengeNotFoundError."""
        challenge = await self._db.get_challenge(challenge_id)
        if challenge is None:
            raise ChallengeNotFoundError(challenge_id)
        return challenge

    async def submit(self, user: User, attempt: SubmissionAttempt) -> SubmissionReceipt:
        """Processes and persists one attempt for the given user.

        Args:
            user: The authenticated caller, resolved by the auth hook.
            attempt: The submitted attempt.

        Returns:
            SubmissionReceipt with the outcome and what was applied.

        Raises:
            ChallengeNotFoundError: If the challenge doesn't exist.
            ValidationError: If the attempt is malformed.
            ConcurrentUpdateError: If every attempt lost a write race.

        Any other error from the commit propagates. The store has rolled it
        back, so the same attempt can be submitted again.
        """
        challenge = await self.get_challenge(attempt.challenge_id)

        for cycle in range(1, self._max_attempts + 1):
            existing = await self._db.get_solution(user.id, challenge.id)
            prior = PriorSolutionState.from_record(existing)
            outcome = process_submission(attempt, challenge, prior)
            record = _build_record(user.id, attempt, outcome, existing)

            try:
                return await self._commit(record, prior, outcome)
            except ConcurrentUpdateError as exc:
                if cycle == self._max_attempts:
                    logger.error(
                        "Giving up on challenge %s for user %s after %d conflicts",
                        challenge.id, user.id, cycle,
                    )
                    raise
                logger.warning(
                    "Solution write conflict on challenge %s (expected %s, found %s), "
                    "retrying (%d/%d)",
                    challenge.id, exc.expected, exc.actual, cycle, self._max_attempts,
                )
                continue

        # Unreachable: the loop either returns or re-raises.
        raise RuntimeError("submission retry loop exited without a result")

    async def _commit(
        self, record: SolutionRecord, prior: PriorSolutionState, outcome: SubmissionOutcome
    ) -> SubmissionReceipt:
        """Stores the row and applies the outcome's plan in one commit."""
        plan = outcome.side_effects
        now = datetime.now(timezone.utc)

        multipliers = await self._db.get_active_multipliers(record.user_id, now)
        delta = progression_delta(outcome, multipliers, self._policy)

        box = await self._db.get_mystery_box(record.user_id)
        advanced = advance_mystery_box(box, delta.solved_delta)

        profile = await self._db.commit_submission(
            record,
            expected=prior,
            plan=plan,
            delta=delta,
            mystery_box=advanced if advanced is not box else None,
        )

        if plan.credit_xp or plan.credit_coins:
            logger.info(
                "Credited user %s: %d XP, %d coins (first completion: %s)",
                record.user_id, plan.credit_xp, plan.credit_coins,
                plan.increment_solved,
            )

        return SubmissionReceipt(
            outcome=outcome, delta=delta, profile=profile, mystery_box=advanced
        )

    # -- Read side -----------------------------------------------------------

    async def get_solution(self, user: User, challenge_id: str) -> SolutionRecord | None:
        return await self._db.get_solution(user.id, challenge_id)

    async def has_completed(self, user: User, challenge_id: str) -> bool:
        record = await self._db.get_solution(user.id, challenge_id)
        return record is not None and record.status == "completed"

    async def get_progress(self, user_id: str, now: datetime | None = None) -> ProgressSnapshot:
        """Profile, active multipliers and mystery box for one user."""
        now = now or datetime.now(timezone.utc)
        profile = await self._db.get_profile(user_id)
        multipliers = await self._db.get_active_multipliers(user_id, now)
        box = await self._db.get_mystery_box(user_id)
        return ProgressSnapshot(
            profile=profile,
            multipliers=multipliers,
            effective_multiplier=effective_multiplier(multipliers, self._policy, now),
            mystery_box=box,
        )

    async def recent_activity(self, user_id: str, limit: int = 10) -> list[ActivityLogEntry]:
        return await self._db.list_activity(user_id, limit)


def _build_record(
    user_id: str,
    attempt: SubmissionAttempt,
    outcome: SubmissionOutcome,
    existing: SolutionRecord | None,
) -> SolutionRecord:
    """Builds the row to upsert for this attempt.

    points_earned and coins_earned are the running award for the pair: the
    stored amounts plus whatever this attempt credits. Once completed, a row
    keeps its award and completion time; later attempts only refresh the
    code and test stats.
    """
    now = datetime.now(timezone.utc)
    plan = outcome.side_effects
    already_completed = existing is not None and existing.status == "completed"
    credited_xp = existing.points_earned if existing is not None else 0
    credited_coins = existing.coins_earned if existing is not None else 0

    return SolutionRecord(
        user_id=user_id,
        challenge_id=attempt.challenge_id,
        code=attempt.code,
        status=plan.solution_status,
        tests_passed=attempt.tests_passed,
        tests_total=attempt.tests_total,
        points_earned=credited_xp + plan.credit_xp,
        coins_earned=credited_coins + plan.credit_coins,
        completion_time=attempt.time_elapsed_seconds,
        hints_used=attempt.hints_used,
        is_perfect_solve=attempt.is_perfect_solve,
        completed_at=(
            existing.completed_at if already_completed
            else now if outcome.status == "completed"
            else None
        ),
        updated_at=now,
    )
