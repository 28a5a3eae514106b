"""Tests for codequest.rewards.levels — ranks, base points and unlocks."""

import pytest

from codequest.rewards.errors import ValidationError
from codequest.rewards.levels import (
    LEVEL_REQUIREMENTS,
    MAX_LEVEL,
    available_difficulties,
    is_challenge_unlocked,
    level_description,
    level_tier,
    next_level_unlocks,
    points_for_rank,
    rank_for_difficulty,
    rank_name,
    required_level_for_challenge,
)


class TestRankPoints:

    @pytest.mark.parametrize(
        "rank,points",
        [(8, 10), (7, 20), (6, 30), (5, 50), (4, 80), (3, 120), (2, 180), (1, 250)],
    )
    def test_points_per_rank(self, rank: int, points: int) -> None:
        assert points_for_rank(rank) == points

    def test_unknown_rank_defaults(self) -> None:
        assert points_for_rank(42) == 10

    def test_rank_name(self) -> None:
        assert rank_name(3) == "3 kyu"


class TestDifficultyMapping:
    """Authoring labels map onto kyu ranks."""

    @pytest.mark.parametrize(
        "difficulty,expected",
        [("easy", (8, "8 kyu")), ("medium", (5, "5 kyu")), ("hard", (2, "2 kyu"))],
    )
    def test_known_labels(self, difficulty: str, expected: tuple) -> None:
        assert rank_for_difficulty(difficulty) == expected

    def test_unknown_label_raises(self) -> None:
        with pytest.raises(ValidationError, match="Valid options: easy, medium, hard"):
            rank_for_difficulty("impossible")  # type: ignore[arg-type]


class TestUnlocks:
    """Level-gated access to ranks."""

    def test_level_one_opens_beginner_ranks(self) -> None:
        assert available_difficulties(1) == ("8 kyu", "7 kyu", "6 kyu")

    def test_unknown_level_gets_top_tier(self) -> None:
        assert available_difficulties(99) == LEVEL_REQUIREMENTS[MAX_LEVEL]

    def test_locked_challenge(self) -> None:
        assert not is_challenge_unlocked("1 kyu", 1)

    def test_unlocked_challenge(self) -> None:
        assert is_challenge_unlocked("5 kyu", 2)

    def test_easy_ranks_close_at_high_levels(self) -> None:
        assert not is_challenge_unlocked("8 kyu", 3)

    @pytest.mark.parametrize(
        "name,level",
        [("8 kyu", 1), ("5 kyu", 2), ("4 kyu", 3), ("3 kyu", 4), ("2 kyu", 5), ("1 kyu", 6)],
    )
    def test_required_level(self, name: str, level: int) -> None:
        assert required_level_for_challenge(name) == level

    def test_required_level_unknown_rank(self) -> None:
        assert required_level_for_challenge("9 dan") == 1

    def test_next_level_unlocks(self) -> None:
        assert next_level_unlocks(1) == (2, ["5 kyu"])

    def test_next_level_with_nothing_new(self) -> None:
        assert next_level_unlocks(8) == (9, [])

    def test_no_next_level_at_cap(self) -> None:
        assert next_level_unlocks(MAX_LEVEL) is None


class TestLevelDisplay:

    @pytest.mark.parametrize(
        "level,tier",
        [(1, "beginner"), (4, "intermediate"), (5, "advanced"), (8, "expert"), (10, "master")],
    )
    def test_tier(self, level: int, tier: str) -> None:
        assert level_tier(level) == tier

    def test_description(self) -> None:
        assert level_description(1).startswith("Beginner")

    def test_description_fallback(self) -> None:
        assert level_description(11) == "Continue your coding journey"
