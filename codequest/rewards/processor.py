"""Submission processor — decides what one challenge attempt is worth.

Validates the attempt, works out whether it is the first completion of the
challenge for this user, prices it with the reward calculator and returns
the mutations the host must apply. It performs no I/O and never mutates
the prior state it is handed, so it runs unchanged under sync or async
hosts.

Precondition: prior_state was read consistently enough that at most one
concurrent caller sees a non-completed status for the same
(user_id, challenge_id). The engine does not enforce exactly-once
crediting; the storage boundary does (see
DatabaseAdapter.commit_submission's compare-and-swap).

Tier 2 service module: imports from codequest.rewards.calculator,
codequest.rewards.errors and codequest.schemas.

Usage:
    from codequest.rewards.processor import process_submission

    outcome = process_submission(attempt, challenge, PriorSolutionState())
    outcome.applied_xp  # newly credited XP, 0 on a replay
"""

from __future__ import annotations

import math

from codequest.rewards.calculator import calculate_rewards
from codequest.rewards.errors import ValidationError
from codequest.schemas import (
    ActivityLogEntry,
    ChallengeSpec,
    PriorSolutionState,
    SideEffectPlan,
    SubmissionAttempt,
    SubmissionOutcome,
)


def validate_attempt(attempt: SubmissionAttempt, challenge: ChallengeSpec) -> None:
    """Rejects malformed attempts. Never clamps.

    tests_total == 0 is accepted (the calculator treats it as fully passed).

    Raises:
        ValidationError: On negative counts or time, a non-finite time,
            more tests passed than exist, or an attempt aimed at a
            different challenge.
    """
    if attempt.challenge_id != challenge.id:
        raise ValidationError(
            f"Attempt is for challenge {attempt.challenge_id!r}, "
            f"not {challenge.id!r}.",
            {"challenge_id": attempt.challenge_id},
        )

    for field in ("tests_passed", "tests_total", "hints_used"):
        value = getattr(attempt, field)
        if value < 0:
            raise ValidationError(f"{field} must be >= 0, got {value}.", {field: value})

    elapsed = attempt.time_elapsed_seconds
    if not math.isfinite(elapsed) or elapsed < 0:
        raise ValidationError(
            f"time_elapsed_seconds must be a finite number >= 0, got {elapsed}.",
            {"time_elapsed_seconds": elapsed},
        )

    if attempt.tests_total > 0 and attempt.tests_passed > attempt.tests_total:
        raise ValidationError(
            f"tests_passed ({attempt.tests_passed}) exceeds "
            f"tests_total ({attempt.tests_total}).",
            {"tests_passed": attempt.tests_passed, "tests_total": attempt.tests_total},
        )


def is_attempt_completed(attempt: SubmissionAttempt) -> bool:
    """All tests passed. A challenge with no tests counts as passed."""
    return attempt.tests_total <= 0 or attempt.tests_passed == attempt.tests_total


def process_submission(
    attempt: SubmissionAttempt,
    challenge: ChallengeSpec,
    prior_state: PriorSolutionState,
) -> SubmissionOutcome:
    """Processes one attempt against the stored state of its challenge.

    Rewards are credited at most once per (user, challenge). Before the
    first completion an attempt is credited only what it earns above
    prior_state.credited_xp and credited_coins, so repeated partial attempts
    followed by a full solve add up to the best award reached, never more.
    Once the prior state is "completed", applied_xp and applied_coins are
    zero whatever the new attempt scores, while rewards still shows what it
    would have earned.

    Args:
        attempt: The validated-on-entry submission.
        challenge: Metadata of the challenge the attempt targets.
        prior_state: Stored status for this user and challenge.

    Returns:
        SubmissionOutcome with the breakdown, the credited amounts and the
        side effects the host must apply.

    Raises:
        ValidationError: If the attempt is malformed.
    """
    validate_attempt(attempt, challenge)

    is_completed = is_attempt_completed(attempt)
    status = "completed" if is_completed else "in_progress"
    is_first_completion = prior_state.status != "completed"

    rewards = calculate_rewards(
        base_points=challenge.base_points,
        tests_passed=attempt.tests_passed,
        tests_total=attempt.tests_total,
        is_perfect_solve=attempt.is_perfect_solve,
        hints_used=attempt.hints_used,
        time_elapsed_seconds=attempt.time_elapsed_seconds,
        time_limit_seconds=challenge.time_limit_seconds,
    )

    applied_xp = applied_coins = 0
    if is_first_completion:
        applied_xp = max(0, rewards.total_xp - prior_state.credited_xp)
        applied_coins = max(0, rewards.coins - prior_state.credited_coins)

    awards_completion = is_completed and is_first_completion
    activity = None
    if awards_completion:
        activity = ActivityLogEntry(
            challenge_id=challenge.id,
            points_earned=prior_state.credited_xp + applied_xp,
            coins_earned=prior_state.credited_coins + applied_coins,
            metadata={
                "is_perfect_solve": attempt.is_perfect_solve,
                "time_elapsed": attempt.time_elapsed_seconds,
                "hints_used": attempt.hints_used,
            },
        )

    side_effects = SideEffectPlan(
        solution_status="completed" if prior_state.status == "completed" else status,
        credit_xp=applied_xp,
        credit_coins=applied_coins,
        increment_solved=awards_completion,
        activity=activity,
    )

    return SubmissionOutcome(
        status=status,
        rewards=rewards,
        is_first_completion=is_first_completion,
        applied_xp=applied_xp,
        applied_coins=applied_coins,
        side_effects=side_effects,
    )
