"""Challenge API routes — submission, solution lookup, unlock status.

Four endpoints:
- POST /{challenge_id}/submit — run an attempt through the reward engine
- GET /{challenge_id}/solution — the caller's stored solution, if any
- GET /{challenge_id}/completed — whether the caller has completed it
- GET /{challenge_id}/unlock — whether the caller's level opens the rank

All responses use the ApiResponse envelope; the submission payload inside
it is camelCase. A failed submission never reports partial rewards: the
error envelope carries a zeroed SubmitResult.

Tier 3 orchestration module: imports from deps (Tier 2), services (Tier 2),
rewards (Tier 1-2), schemas (Tier 1).
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from codequest.api.deps import error_detail, get_current_user, get_submission_service
from codequest.rewards.errors import (
    ChallengeNotFoundError,
    ConcurrentUpdateError,
    RewardEngineError,
    ValidationError,
)
from codequest.rewards.levels import (
    is_challenge_unlocked,
    next_level_unlocks,
    required_level_for_challenge,
)
from codequest.schemas import (
    ApiResponse,
    ChallengeSpec,
    SubmissionAttempt,
    SubmitRequest,
    SubmitResult,
    User,
)
from codequest.services.submissions import SubmissionService

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_STATUS: dict[type[RewardEngineError], int] = {
    ValidationError: 400,
    ChallengeNotFoundError: 404,
    ConcurrentUpdateError: 409,
}

_GENERIC_FAILURE = "Submission failed. Please try again."


def _submission_failed(exc: RewardEngineError) -> HTTPException:
    """Maps an engine error to an HTTPException with a zeroed result."""
    status_code = _ERROR_STATUS.get(type(exc), 400)
    message = exc.message
    if isinstance(exc, ConcurrentUpdateError):
        message = _GENERIC_FAILURE
    return HTTPException(
        status_code=status_code,
        detail=error_detail(
            exc.code,
            message,
            data=SubmitResult.failed(message).model_dump(by_alias=True),
        ),
    )


async def _challenge_or_404(service: SubmissionService, challenge_id: str) -> ChallengeSpec:
    try:
        return await service.get_challenge(challenge_id)
    except ChallengeNotFoundError as exc:
        raise HTTPException(
            status_code=404, detail=error_detail(exc.code, exc.message)
        ) from None


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/{challenge_id}/submit")
async def submit_solution(
    challenge_id: str,
    body: SubmitRequest,
    user: User = Depends(get_current_user),
    service: SubmissionService = Depends(get_submission_service),
) -> dict:
    """Processes one attempt and returns what it earned."""
    attempt = SubmissionAttempt(
        challenge_id=challenge_id,
        code=body.code,
        tests_passed=body.tests_passed,
        tests_total=body.tests_total,
        time_elapsed_seconds=body.time_elapsed_seconds,
        hints_used=body.hints_used,
        is_perfect_solve=body.is_perfect_solve,
    )

    try:
        receipt = await service.submit(user, attempt)
    except RewardEngineError as exc:
        logger.info("Submission rejected for %s on %s: %s", user.id, challenge_id, exc.code)
        raise _submission_failed(exc) from None
    except Exception:
        logger.exception("Submission failed for %s on %s", user.id, challenge_id)
        raise HTTPException(
            status_code=500,
            detail=error_detail(
                "INTERNAL_ERROR",
                _GENERIC_FAILURE,
                data=SubmitResult.failed(_GENERIC_FAILURE).model_dump(by_alias=True),
            ),
        ) from None

    return ApiResponse(
        ok=True, data=receipt.to_result().model_dump(by_alias=True)
    ).model_dump()


@router.get("/{challenge_id}/solution")
async def get_solution(
    challenge_id: str,
    user: User = Depends(get_current_user),
    service: SubmissionService = Depends(get_submission_service),
) -> dict:
    """Returns the caller's stored solution, data=None if never attempted."""
    record = await service.get_solution(user, challenge_id)
    return ApiResponse(
        ok=True, data=record.model_dump(mode="json") if record is not None else None
    ).model_dump()


@router.get("/{challenge_id}/completed")
async def has_completed(
    challenge_id: str,
    user: User = Depends(get_current_user),
    service: SubmissionService = Depends(get_submission_service),
) -> dict:
    completed = await service.has_completed(user, challenge_id)
    return ApiResponse(ok=True, data={"completed": completed}).model_dump()


@router.get("/{challenge_id}/unlock")
async def unlock_status(
    challenge_id: str,
    user: User = Depends(get_current_user),
    service: SubmissionService = Depends(get_submission_service),
) -> dict:
    """Whether the caller's current level opens the challenge's rank."""
    challenge = await _challenge_or_404(service, challenge_id)
    progress = await service.get_progress(user.id)
    level = progress.profile.level

    upcoming = next_level_unlocks(level)
    return ApiResponse(
        ok=True,
        data={
            "challenge_id": challenge.id,
            "rank_name": challenge.rank_name,
            "level": level,
            "unlocked": is_challenge_unlocked(challenge.rank_name, level),
            "required_level": required_level_for_challenge(challenge.rank_name),
            "next_level": (
                {"level": upcoming[0], "unlocks": upcoming[1]} if upcoming else None
            ),
        },
    ).model_dump()
