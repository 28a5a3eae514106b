"""Admin API routes — read any user's progression.

The only permission the engine knows is "is this caller an admin", checked
by the require_admin dependency. Everything else about user management
belongs to the identity and content collaborators.

Tier 3 orchestration module: imports from deps (Tier 2), services (Tier 2),
schemas (Tier 1).
"""

from fastapi import APIRouter, Depends, HTTPException

from codequest.api.deps import (
    error_detail,
    get_auth_service,
    get_submission_service,
    require_admin,
)
from codequest.hooks.interfaces import AuthService
from codequest.schemas import ApiResponse, User
from codequest.services.submissions import SubmissionService

router = APIRouter()


@router.get("/users/{user_id}/progress")
async def user_progress(
    user_id: str,
    admin: User = Depends(require_admin),
    auth_service: AuthService = Depends(get_auth_service),
    service: SubmissionService = Depends(get_submission_service),
) -> dict:
    """Progression snapshot plus recent activity for one user."""
    target = await auth_service.get_user(user_id)
    if target is None:
        raise HTTPException(
            status_code=404,
            detail=error_detail("USER_NOT_FOUND", f"User {user_id!r} not found."),
        )

    snapshot = await service.get_progress(target.id)
    activity = await service.recent_activity(target.id)
    return ApiResponse(
        ok=True,
        data={
            "user": target.model_dump(),
            "progress": snapshot.model_dump(mode="json"),
            "recent_activity": [entry.model_dump(mode="json") for entry in activity],
        },
    ).model_dump()
