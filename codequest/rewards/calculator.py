"""Reward calculator — XP, coins and bonus line items for one attempt.

Pure computation: no I/O, no clock, no randomness. The same inputs always
produce the same RewardBreakdown, so a host may re-run it after a failed
persist and get identical numbers.

Order of operations:
  1. Base XP is the challenge's points, base coins are half of that (floored).
  2. Bonuses are evaluated independently, in the fixed order
     perfect -> no_hints -> speed. Any combination may apply.
  3. Partial credit scales the whole sum, bonuses included, by
     tests_passed / tests_total, flooring each currency.

Tier 1 leaf module: imports only from codequest.schemas.

Usage:
    from codequest.rewards.calculator import calculate_rewards

    rewards = calculate_rewards(
        base_points=10, tests_passed=4, tests_total=4,
        is_perfect_solve=True, hints_used=0,
        time_elapsed_seconds=5, time_limit_seconds=20,
    )
    rewards.total_xp  # 110
"""

from __future__ import annotations

from fractions import Fraction

from codequest.schemas import (
    BonusLineItem,
    NoHintsBonus,
    PerfectBonus,
    RewardBreakdown,
    SpeedBonus,
)

# ---------------------------------------------------------------------------
# Bonus amounts (flat, added before partial-credit scaling)
# ---------------------------------------------------------------------------

PERFECT_BONUS_XP: int = 50
PERFECT_BONUS_COINS: int = 25

NO_HINTS_BONUS_XP: int = 20
NO_HINTS_BONUS_COINS: int = 10

SPEED_BONUS_XP: int = 30
SPEED_BONUS_COINS: int = 15

# Speed bonus requires finishing in under this share of the time limit.
SPEED_THRESHOLD: Fraction = Fraction(1, 2)


def completion_ratio(tests_passed: int, tests_total: int) -> Fraction:
    """Returns the partial-credit ratio as an exact fraction.

    A challenge with no tests (tests_total <= 0) or with every test passing
    scores 1, so there is no division by zero.
    """
    if tests_total <= 0 or tests_passed >= tests_total:
        return Fraction(1)
    return Fraction(tests_passed, tests_total)


def _earned_bonuses(
    is_perfect_solve: bool,
    hints_used: int,
    time_elapsed_seconds: float,
    time_limit_seconds: float | None,
) -> list[BonusLineItem]:
    bonuses: list[BonusLineItem] = []

    if is_perfect_solve:
        bonuses.append(
            PerfectBonus(name="Perfect Solve", xp=PERFECT_BONUS_XP, coins=PERFECT_BONUS_COINS)
        )

    if hints_used == 0:
        bonuses.append(
            NoHintsBonus(name="No Hints Used", xp=NO_HINTS_BONUS_XP, coins=NO_HINTS_BONUS_COINS)
        )

    if time_limit_seconds is not None and (
        Fraction(time_elapsed_seconds) < Fraction(time_limit_seconds) * SPEED_THRESHOLD
    ):
        bonuses.append(
            SpeedBonus(name="Speed Demon", xp=SPEED_BONUS_XP, coins=SPEED_BONUS_COINS)
        )

    return bonuses


def calculate_rewards(
    base_points: int,
    tests_passed: int,
    tests_total: int,
    is_perfect_solve: bool,
    hints_used: int,
    time_elapsed_seconds: float,
    time_limit_seconds: float | None = None,
) -> RewardBreakdown:
    """Computes the reward breakdown for one attempt.

    Args:
        base_points: The challenge's base points (>= 0). Also the base XP.
        tests_passed: Number of passing tests.
        tests_total: Number of tests. Zero is treated as all passed.
        is_perfect_solve: Caller-asserted perfect solve flag.
        hints_used: Hints revealed during the attempt.
        time_elapsed_seconds: Time the attempt took.
        time_limit_seconds: The challenge's time limit, if it has one.
            Without a limit there is no speed bonus.

    Returns:
        RewardBreakdown with total_xp and coins floored after scaling and
        clamped at zero. bonus_xp is total_xp - base_points, which is
        negative when partial credit cuts below the base.
    """
    bonuses = _earned_bonuses(
        is_perfect_solve, hints_used, time_elapsed_seconds, time_limit_seconds
    )

    xp = base_points + sum(bonus.xp for bonus in bonuses)
    coins = base_points // 2 + sum(bonus.coins for bonus in bonuses)

    ratio = completion_ratio(tests_passed, tests_total)
    if ratio < 1:
        # Exact floor; float multiplication can land a hair under an integer.
        xp = xp * ratio.numerator // ratio.denominator
        coins = coins * ratio.numerator // ratio.denominator

    return RewardBreakdown(
        base_xp=base_points,
        bonus_xp=xp - base_points,
        total_xp=max(0, xp),
        coins=max(0, coins),
        bonuses=bonuses,
    )
