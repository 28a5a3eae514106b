"""Shared FastAPI dependencies — auth, database, submission service injection.

Module-level singletons for each service stub. Route handlers access them
via FastAPI's Depends() system — never by importing stubs directly. When the
team swaps a stub for a real implementation, they change the class here and
every downstream handler picks it up automatically.

TEAM: To wire your real services, replace the stub class on the right side
of each singleton assignment below. The get_* functions and all route
handlers stay unchanged.

Tier 2 service module: imports from hooks/* (Tier 2) and hooks/interfaces
(Tier 1), schemas (Tier 1), services/submissions (Tier 2), config (Tier 2).

Usage:
    from codequest.api.deps import get_current_user, get_submission_service

    @router.get("/something")
    async def do_thing(
        user: User = Depends(get_current_user),
        service: SubmissionService = Depends(get_submission_service),
    ): ...
"""

import logging

from fastapi import Depends, Header, HTTPException

from codequest.config import get_settings
from codequest.hooks.auth import FakeAuthService
from codequest.hooks.database import InMemoryStore
from codequest.hooks.interfaces import AuthService, DatabaseAdapter
from codequest.schemas import ApiError, ApiResponse, User
from codequest.services.submissions import SubmissionService

logger = logging.getLogger("codequest")

# ---------------------------------------------------------------------------
# Service singletons — the swap point
# ---------------------------------------------------------------------------

# TEAM: Replace with your real implementations here.
_auth_service: AuthService = FakeAuthService()
_database: DatabaseAdapter = InMemoryStore(
    mystery_box_size=get_settings().mystery_box_size
)


# ---------------------------------------------------------------------------
# Dependency providers
# ---------------------------------------------------------------------------


def get_auth_service() -> AuthService:
    """Returns the auth service singleton."""
    return _auth_service


def get_database() -> DatabaseAdapter:
    """Returns the database adapter singleton."""
    return _database


def get_submission_service(
    database: DatabaseAdapter = Depends(get_database),
) -> SubmissionService:
    """Builds a SubmissionService over the injected database.

    Cheap to construct per request; overriding get_database in tests is
    enough to point every route at a fresh store.
    """
    settings = get_settings()
    return SubmissionService(
        database,
        multiplier_policy=settings.multiplier_policy,
        max_attempts=settings.submit_max_attempts,
    )


def error_detail(code: str, message: str, data: object | None = None) -> dict:
    """Builds an ApiResponse error envelope for HTTPException.detail."""
    return ApiResponse(
        ok=False,
        data=data,
        error=ApiError(code=code, message=message),
    ).model_dump()


# ---------------------------------------------------------------------------
# Auth dependencies — used by route handlers
# ---------------------------------------------------------------------------


async def get_current_user(
    authorization: str | None = Header(default=None),
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    """Extracts and validates a Bearer token from the Authorization header.

    Returns the authenticated User on success. Raises HTTPException(401)
    on missing header, malformed header, or invalid token.

    Args:
        authorization: The raw Authorization header value.
        auth_service: Injected auth service.

    Returns:
        The authenticated User.

    Raises:
        HTTPException: 401 with ApiResponse envelope on auth failure.
    """
    if not authorization:
        raise HTTPException(
            status_code=401,
            detail=error_detail("UNAUTHORIZED", "Missing authorization header."),
        )

    parts = authorization.split(" ", maxsplit=1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise HTTPException(
            status_code=401,
            detail=error_detail("UNAUTHORIZED", "Invalid authorization header format."),
        )

    token = parts[1].strip()
    user = await auth_service.validate_token(token)

    if user is None:
        raise HTTPException(
            status_code=401,
            detail=error_detail("UNAUTHORIZED", "Invalid or expired token."),
        )

    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Passes admins through, raises HTTPException(403) for everyone else."""
    if not user.is_admin:
        raise HTTPException(
            status_code=403,
            detail=error_detail("FORBIDDEN", "Admin access required."),
        )
    return user
