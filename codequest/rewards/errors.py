"""Reward engine error taxonomy.

Every error carries a stable uppercase ``code`` (the same string the HTTP
layer puts in ApiError.code) and a human-readable ``message``. The core
raises ValidationError only; the other two come from the host service and
the storage boundary.

A tests_total of zero is not an error: the calculator treats it as fully
passed.
"""


class RewardEngineError(Exception):
    """Base class for reward engine failures.

    Attributes:
        code: Stable identifier for programmatic handling.
        message: Human-readable error description.
        details: Extra structured context for logging.
    """

    code = "REWARD_ENGINE_ERROR"

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(RewardEngineError):
    """Malformed attempt: negative counts, more tests passed than exist.

    A caller bug, never clamped. No computation is attempted.
    """

    code = "VALIDATION_ERROR"


class ChallengeNotFoundError(RewardEngineError):
    """The referenced challenge is not in the content store."""

    code = "CHALLENGE_NOT_FOUND"

    def __init__(self, challenge_id: str) -> None:
        self.challenge_id = challenge_id
        super().__init__(
            f"Challenge {challenge_id!r} not found.",
            {"challenge_id": challenge_id},
        )


class ConcurrentUpdateError(RewardEngineError):
    """The stored solution changed between read and write.

    Raised by DatabaseAdapter.save_solution and commit_submission when the
    compare-and-swap on (user_id, challenge_id) fails. Safe to retry the
    whole read-process-write cycle: the core is pure.
    """

    code = "SUBMISSION_CONFLICT"

    def __init__(self, user_id: str, challenge_id: str, expected: str, actual: str) -> None:
        self.user_id = user_id
        self.challenge_id = challenge_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Solution for challenge {challenge_id!r} changed concurrently "
            f"(expected status {expected!r}, found {actual!r}).",
            {"challenge_id": challenge_id, "expected": expected, "actual": actual},
        )
