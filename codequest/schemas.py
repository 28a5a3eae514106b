"""Core data models — shared Pydantic types for the CodeQuest reward engine.

Every challenge attempt, reward breakdown, persisted solution row and API
response flows through these types. They are the shared vocabulary between
the pure reward core, the storage hooks and the HTTP layer.

This is a Tier 1 leaf module: it imports only from pydantic and the stdlib.
No project imports allowed — everything else imports from here.

The submission wire contract (SubmitRequest / SubmitResult / RewardBreakdown)
is camelCase on the wire ("pointsEarned", "totalXP") and snake_case in
Python. Dump those with model_dump(by_alias=True).

Usage:
    from codequest.schemas import ChallengeSpec, SubmissionAttempt, RewardBreakdown
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SolutionStatus = Literal["none", "in_progress", "completed"]
AttemptStatus = Literal["in_progress", "completed"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _WireModel(BaseModel):
    """Base for models that cross the HTTP boundary in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


class User(BaseModel):
    """Identity model returned by the auth layer.

    Frozen — users are identity objects, no mutation after creation. The
    admin capability is the only permission the engine ever asks about.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    role: Literal["user", "admin"]
    name: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


# ---------------------------------------------------------------------------
# Challenge content (read-only input)
# ---------------------------------------------------------------------------


class ChallengeSpec(BaseModel):
    """Challenge metadata the reward core needs.

    Owned by the content collaborator; immutable for the duration of a
    submission. rank is the kyu tier: 8 is easiest, 1 is hardest.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    base_points: int = Field(ge=0)
    rank: int = Field(ge=1, le=8)
    time_limit_seconds: float | None = Field(default=None, ge=0, allow_inf_nan=False)

    @property
    def rank_name(self) -> str:
        return f"{self.rank} kyu"


# ---------------------------------------------------------------------------
# Submission input
# ---------------------------------------------------------------------------


class SubmissionAttempt(BaseModel):
    """One challenge attempt. Ephemeral — exists for a single request.

    Ranges (non-negative counts, tests_passed <= tests_total) are checked
    by codequest.rewards.processor.validate_attempt, not here, so that a
    bad attempt surfaces as the engine's own ValidationError.
    """

    model_config = ConfigDict(frozen=True)

    challenge_id: str
    code: str = ""
    tests_passed: int
    tests_total: int
    time_elapsed_seconds: float
    hints_used: int = 0
    is_perfect_solve: bool = False


class PriorSolutionState(BaseModel):
    """Stored state of a (user, challenge) pair, read before processing.

    credited_xp and credited_coins are what the pair has already been paid,
    partial attempts included. A new attempt is only credited the amount
    above them.
    """

    model_config = ConfigDict(frozen=True)

    status: SolutionStatus = "none"
    credited_xp: int = Field(default=0, ge=0)
    credited_coins: int = Field(default=0, ge=0)

    @classmethod
    def from_record(cls, record: "SolutionRecord | None") -> "PriorSolutionState":
        if record is None:
            return cls()
        return cls(
            status=record.status,
            credited_xp=record.points_earned,
            credited_coins=record.coins_earned,
        )


# ---------------------------------------------------------------------------
# Reward breakdown
# ---------------------------------------------------------------------------


class PerfectBonus(_WireModel):
    """Awarded when the caller asserts a perfect solve."""

    model_config = ConfigDict(frozen=True)

    type: Literal["perfect"] = "perfect"
    name: str
    xp: int
    coins: int


class NoHintsBonus(_WireModel):
    """Awarded when no hints were used."""

    model_config = ConfigDict(frozen=True)

    type: Literal["no_hints"] = "no_hints"
    name: str
    xp: int
    coins: int


class SpeedBonus(_WireModel):
    """Awarded when the attempt finished inside half the time limit."""

    model_config = ConfigDict(frozen=True)

    type: Literal["speed"] = "speed"
    name: str
    xp: int
    coins: int


BonusLineItem = Annotated[
    PerfectBonus | NoHintsBonus | SpeedBonus,
    Field(discriminator="type"),
]


class RewardBreakdown(_WireModel):
    """What an attempt earns, before first-completion gating.

    total_xp and coins are never negative. bonus_xp is total_xp - base_xp
    and goes negative under heavy partial-credit scaling.
    """

    model_config = ConfigDict(frozen=True)

    base_xp: int = Field(alias="baseXP")
    bonus_xp: int = Field(alias="bonusXP")
    total_xp: int = Field(alias="totalXP")
    coins: int
    bonuses: list[BonusLineItem] = Field(default_factory=list)

    @classmethod
    def zero(cls) -> "RewardBreakdown":
        return cls(base_xp=0, bonus_xp=0, total_xp=0, coins=0)


# ---------------------------------------------------------------------------
# Processor output — decision plus side-effect instructions
# ---------------------------------------------------------------------------


class ActivityLogEntry(BaseModel):
    """Activity row the host appends on a first completion.

    No timestamp: the core reads no clock. The store stamps the row.
    """

    model_config = ConfigDict(frozen=True)

    activity_type: Literal["challenge_completed"] = "challenge_completed"
    challenge_id: str
    points_earned: int
    coins_earned: int
    metadata: dict[str, Any] = Field(default_factory=dict)


class SideEffectPlan(BaseModel):
    """Mutations the host must apply after a successful call.

    The core never performs these itself. The solution row is always
    upserted; solution_status is what it must hold. A completed challenge
    stays completed even when a later attempt fails some tests, otherwise a
    re-solve would look like a first completion again. credit_xp and
    credit_coins are added to the profile and to the row's running award.
    """

    model_config = ConfigDict(frozen=True)

    solution_status: AttemptStatus
    credit_xp: int = 0
    credit_coins: int = 0
    increment_solved: bool = False
    activity: ActivityLogEntry | None = None


class SubmissionOutcome(BaseModel):
    """Result of processing one attempt against one prior state."""

    model_config = ConfigDict(frozen=True)

    status: AttemptStatus
    rewards: RewardBreakdown
    is_first_completion: bool
    applied_xp: int
    applied_coins: int
    side_effects: SideEffectPlan


# ---------------------------------------------------------------------------
# Persistent rows (owned by the storage collaborator)
# ---------------------------------------------------------------------------


class SolutionRecord(BaseModel):
    """Stored submission row, unique on (user_id, challenge_id).

    Mutable: upserted on every attempt for the same pair, never deleted by
    the engine.
    """

    user_id: str
    challenge_id: str
    code: str = ""
    status: AttemptStatus
    tests_passed: int = 0
    tests_total: int = 0
    points_earned: int = 0
    coins_earned: int = 0
    completion_time: float = 0.0
    hints_used: int = 0
    is_perfect_solve: bool = False
    completed_at: datetime | None = None
    updated_at: datetime = Field(default_factory=_utcnow)


class UserProfile(BaseModel):
    """Profile totals. level/current_xp are advanced by the external level
    system; the engine only hands it deltas.
    """

    user_id: str
    level: int = 1
    current_xp: int = 0
    xp_to_next_level: int = 100
    total_points: int = 0
    coins: int = 0
    total_solved: int = 0
    current_streak: int = 0
    last_activity: datetime | None = None


class ActiveMultiplier(BaseModel):
    """A time-boxed XP boost on a user."""

    model_config = ConfigDict(frozen=True)

    type: str
    value: float = Field(gt=0)
    expires_at: datetime


class MysteryBoxProgress(BaseModel):
    """Progress toward the next mystery box (first completions counted)."""

    progress: int = Field(default=0, ge=0)
    total: int = Field(default=5, ge=1)
    is_claimed: bool = False

    @property
    def is_ready(self) -> bool:
        return self.progress >= self.total and not self.is_claimed


class ProgressionDelta(BaseModel):
    """Profile deltas derived from one outcome.

    xp_delta feeds total_points; xp_gained (multiplier applied) feeds the
    external level counter.
    """

    model_config = ConfigDict(frozen=True)

    xp_delta: int
    coins_delta: int
    solved_delta: int
    multiplier: float
    xp_gained: int


class ProgressSnapshot(BaseModel):
    """Read-side view of a user's progression."""

    model_config = ConfigDict(frozen=True)

    profile: UserProfile
    multipliers: list[ActiveMultiplier] = Field(default_factory=list)
    effective_multiplier: float = 1.0
    mystery_box: MysteryBoxProgress


# ---------------------------------------------------------------------------
# Submission wire contract
# ---------------------------------------------------------------------------


class SubmitRequest(_WireModel):
    """Request body for POST /challenges/{challenge_id}/submit.

    Accepts timeElapsed as well as timeElapsedSeconds; older clients send
    the short name. hintsUsed has no default.
    """

    code: str = ""
    tests_passed: int
    tests_total: int
    time_elapsed_seconds: float = Field(
        validation_alias=AliasChoices(
            "timeElapsedSeconds", "timeElapsed", "time_elapsed_seconds"
        ),
    )
    hints_used: int
    is_perfect_solve: bool = False


class SubmitResult(_WireModel):
    """Reward summary returned to the client.

    points_earned / coins_earned are what was actually credited
    (zero on replays). reward_breakdown shows what the attempt would
    earn, for display.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    points_earned: int = 0
    coins_earned: int = 0
    xp_gained: int = 0
    multiplier: float = 1.0
    status: AttemptStatus | None = None
    is_first_completion: bool = False
    reward_breakdown: RewardBreakdown = Field(default_factory=RewardBreakdown.zero)
    error: str | None = None

    @classmethod
    def failed(cls, message: str) -> "SubmitResult":
        """Zeroed result — never partial reward fields on failure."""
        return cls(success=False, error=message)


# ---------------------------------------------------------------------------
# API envelope
# ---------------------------------------------------------------------------


class ApiError(BaseModel):
    """Error detail inside ApiResponse.error.

    code is an uppercase string like "CHALLENGE_NOT_FOUND",
    "VALIDATION_ERROR", "SUBMISSION_CONFLICT".
    """

    model_config = ConfigDict(frozen=True)

    code: str
    message: str


class ApiResponse(BaseModel):
    """Universal response envelope — every API endpoint returns this shape."""

    model_config = ConfigDict(frozen=True)

    ok: bool
    data: Any | None = None
    error: ApiError | None = None
