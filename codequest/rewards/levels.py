"""Difficulty ranks, base points and level-gated unlocks.

Challenges are ranked in kyu: 8 kyu is the easiest tier, 1 kyu the
hardest. A rank fixes a challenge's base points, and a user's level fixes
which ranks they may attempt. Level-up thresholds themselves are owned by
the profile store and are not computed here.

Tier 1 leaf module: imports only from codequest.rewards.errors.
"""

from __future__ import annotations

from typing import Literal

from codequest.rewards.errors import ValidationError

# ---------------------------------------------------------------------------
# Rank -> base points
# ---------------------------------------------------------------------------

RANK_POINTS: dict[int, int] = {
    8: 10,
    7: 20,
    6: 30,
    5: 50,
    4: 80,
    3: 120,
    2: 180,
    1: 250,
}

DEFAULT_POINTS: int = 10


def points_for_rank(rank: int) -> int:
    """Base points for a kyu rank. Unknown ranks get the 8 kyu value."""
    return RANK_POINTS.get(rank, DEFAULT_POINTS)


def rank_name(rank: int) -> str:
    return f"{rank} kyu"


_DIFFICULTY_RANKS: dict[str, int] = {
    "easy": 8,
    "medium": 5,
    "hard": 2,
}


def rank_for_difficulty(difficulty: Literal["easy", "medium", "hard"]) -> tuple[int, str]:
    """Maps an authoring difficulty label to (rank, rank name).

    Raises:
        ValidationError: For labels other than easy, medium, hard.
    """
    rank = _DIFFICULTY_RANKS.get(difficulty)
    if rank is None:
        valid = ", ".join(_DIFFICULTY_RANKS)
        raise ValidationError(
            f"Unknown difficulty {difficulty!r}. Valid options: {valid}",
            {"difficulty": difficulty},
        )
    return rank, rank_name(rank)


# ---------------------------------------------------------------------------
# Level -> unlocked ranks
# ---------------------------------------------------------------------------

MAX_LEVEL: int = 10

LEVEL_REQUIREMENTS: dict[int, tuple[str, ...]] = {
    1: ("8 kyu", "7 kyu", "6 kyu"),
    2: ("8 kyu", "7 kyu", "6 kyu", "5 kyu"),
    3: ("7 kyu", "6 kyu", "5 kyu", "4 kyu"),
    4: ("6 kyu", "5 kyu", "4 kyu", "3 kyu"),
    5: ("5 kyu", "4 kyu", "3 kyu", "2 kyu"),
    6: ("4 kyu", "3 kyu", "2 kyu", "1 kyu"),
    7: ("3 kyu", "2 kyu", "1 kyu"),
    8: ("2 kyu", "1 kyu"),
    9: ("1 kyu",),
    10: ("1 kyu",),
}

LEVEL_DESCRIPTIONS: dict[int, str] = {
    1: "Beginner - Start with fundamentals (8-6 kyu)",
    2: "Beginner - Building confidence with basic algorithms",
    3: "Intermediate - Developing core programming skills",
    4: "Intermediate - Tackling more complex problems",
    5: "Advanced - Solving challenging algorithms",
    6: "Advanced - Handling complex data structures",
    7: "Expert - Mastering difficult challenges",
    8: "Expert - Solving master-level problems",
    9: "Master - Elite coding challenges",
    10: "Grandmaster - The pinnacle of coding excellence",
}


def available_difficulties(level: int) -> tuple[str, ...]:
    """Ranks open at a level. Levels outside the table get the top level's."""
    return LEVEL_REQUIREMENTS.get(level, LEVEL_REQUIREMENTS[MAX_LEVEL])


def is_challenge_unlocked(challenge_rank_name: str, level: int) -> bool:
    return challenge_rank_name in available_difficulties(level)


def required_level_for_challenge(challenge_rank_name: str) -> int:
    """Lowest level at which the rank is open, 1 if no level lists it."""
    for level, difficulties in sorted(LEVEL_REQUIREMENTS.items()):
        if challenge_rank_name in difficulties:
            return level
    return 1


def next_level_unlocks(current_level: int) -> tuple[int, list[str]] | None:
    """The next level and the ranks it newly opens, or None at the cap.

    Example:
        >>> next_level_unlocks(1)
        (2, ['5 kyu'])
    """
    next_level = current_level + 1
    if next_level > MAX_LEVEL or next_level not in LEVEL_REQUIREMENTS:
        return None

    current = available_difficulties(current_level)
    unlocks = [d for d in LEVEL_REQUIREMENTS[next_level] if d not in current]
    return next_level, unlocks


def level_description(level: int) -> str:
    return LEVEL_DESCRIPTIONS.get(level, "Continue your coding journey")


def level_tier(level: int) -> str:
    """Display tier for a level."""
    if level <= 2:
        return "beginner"
    if level <= 4:
        return "intermediate"
    if level <= 6:
        return "advanced"
    if level <= 8:
        return "expert"
    return "master"
