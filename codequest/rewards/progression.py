"""Progression accumulator — read-side rules over progression snapshots.

Turns a SubmissionOutcome plus the user's active XP multipliers into the
deltas the profile store adds, and tracks mystery-box progress. Absolute
counters (level, current_xp, total_points, streak) belong to the external
store; level-up thresholds live there too. Nothing here reads a clock
unless the caller passes ``now``.

Multiplier stacking is a product policy, not a derived fact: several
active boosts can either multiply together or the largest one can win.
MULTIPLIER_STACKING names the default (multiplicative) and the config
layer can switch it per deployment.

Tier 2 service module: imports from codequest.schemas.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import datetime
from enum import Enum

from codequest.schemas import (
    ActiveMultiplier,
    MysteryBoxProgress,
    ProgressionDelta,
    SubmissionOutcome,
)


class MultiplierPolicy(str, Enum):
    """How several active multipliers combine into one."""

    STACK = "stack"  # product of all values
    MAX = "max"  # largest single value


# Pending product sign-off; see DESIGN.md.
MULTIPLIER_STACKING: MultiplierPolicy = MultiplierPolicy.STACK


def effective_multiplier(
    multipliers: Iterable[ActiveMultiplier],
    policy: MultiplierPolicy = MULTIPLIER_STACKING,
    now: datetime | None = None,
) -> float:
    """Combines active multipliers into a single XP factor.

    Callers normally pre-filter to non-expired records; when ``now`` is
    given, records with expires_at <= now are skipped here as well.

    Args:
        multipliers: Active multiplier records.
        policy: STACK multiplies all values, MAX keeps the largest.
        now: Optional reference time for expiry filtering.

    Returns:
        The combined factor, 1.0 when nothing applies.
    """
    values = [
        m.value for m in multipliers if now is None or m.expires_at > now
    ]
    if not values:
        return 1.0
    if policy is MultiplierPolicy.MAX:
        return max(values)
    return math.prod(values)


def hours_remaining(multiplier: ActiveMultiplier, now: datetime) -> float:
    """Hours until the multiplier expires, never negative, 2 decimal places."""
    seconds = (multiplier.expires_at - now).total_seconds()
    return round(max(0.0, seconds / 3600), 2)


def progression_delta(
    outcome: SubmissionOutcome,
    multipliers: Iterable[ActiveMultiplier] = (),
    policy: MultiplierPolicy = MULTIPLIER_STACKING,
) -> ProgressionDelta:
    """Derives profile deltas from a processed submission.

    Reads the outcome's side-effect plan. xp_delta is the plan's credit_xp
    as-is (total_points). xp_gained applies the effective multiplier,
    floored, and is what the level system consumes. A replay yields an
    all-zero delta; the multiplier is still reported.
    """
    plan = outcome.side_effects
    multiplier = effective_multiplier(multipliers, policy)
    return ProgressionDelta(
        xp_delta=plan.credit_xp,
        coins_delta=plan.credit_coins,
        solved_delta=1 if plan.increment_solved else 0,
        multiplier=multiplier,
        xp_gained=math.floor(plan.credit_xp * multiplier),
    )


def advance_mystery_box(box: MysteryBoxProgress, solved_delta: int) -> MysteryBoxProgress:
    """Counts new first completions toward the mystery box.

    Progress is capped at the box size. A claimed box is returned
    unchanged; resetting it is the reward collaborator's job.
    """
    if box.is_claimed or solved_delta <= 0:
        return box
    return box.model_copy(update={"progress": min(box.total, box.progress + solved_delta)})
