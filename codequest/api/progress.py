"""Progress API routes — the caller's progression snapshot.

- GET /me — profile, active multipliers, effective multiplier, mystery box
- GET /multipliers — active multipliers with hours remaining
- GET /mystery-box — mystery-box progress
- GET /activity — recent activity, newest first

Read-only: nothing here changes a profile. Streaks and levels are shown
as the profile store reports them.

Tier 3 orchestration module: imports from deps (Tier 2), services (Tier 2),
rewards (Tier 1-2), schemas (Tier 1).
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query

from codequest.api.deps import get_current_user, get_submission_service
from codequest.rewards.levels import level_description, level_tier
from codequest.rewards.progression import hours_remaining
from codequest.schemas import ApiResponse, User
from codequest.services.submissions import SubmissionService

router = APIRouter()


@router.get("/me")
async def my_progress(
    user: User = Depends(get_current_user),
    service: SubmissionService = Depends(get_submission_service),
) -> dict:
    """Full progression snapshot for the caller."""
    snapshot = await service.get_progress(user.id)
    data = snapshot.model_dump(mode="json")
    data["level_tier"] = level_tier(snapshot.profile.level)
    data["level_description"] = level_description(snapshot.profile.level)
    data["mystery_box"]["is_ready"] = snapshot.mystery_box.is_ready
    return ApiResponse(ok=True, data=data).model_dump()


@router.get("/multipliers")
async def active_multipliers(
    user: User = Depends(get_current_user),
    service: SubmissionService = Depends(get_submission_service),
) -> dict:
    now = datetime.now(timezone.utc)
    snapshot = await service.get_progress(user.id, now=now)
    return ApiResponse(
        ok=True,
        data={
            "effective_multiplier": snapshot.effective_multiplier,
            "multipliers": [
                {
                    **m.model_dump(mode="json"),
                    "hours_remaining": hours_remaining(m, now),
                }
                for m in snapshot.multipliers
            ],
        },
    ).model_dump()


@router.get("/mystery-box")
async def mystery_box(
    user: User = Depends(get_current_user),
    service: SubmissionService = Depends(get_submission_service),
) -> dict:
    snapshot = await service.get_progress(user.id)
    box = snapshot.mystery_box
    return ApiResponse(
        ok=True, data={**box.model_dump(), "is_ready": box.is_ready}
    ).model_dump()


@router.get("/activity")
async def recent_activity(
    limit: int = Query(default=10, ge=1, le=100),
    user: User = Depends(get_current_user),
    service: SubmissionService = Depends(get_submission_service),
) -> dict:
    entries = await service.recent_activity(user.id, limit)
    return ApiResponse(
        ok=True, data=[entry.model_dump(mode="json") for entry in entries]
    ).model_dump()
