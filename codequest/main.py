"""CodeQuest HTTP host — app factory, request logging, error envelope.

Serves the reward engine under /api/v1: challenge submission and unlock
status, the caller's progress, and an admin view of any user's progress.
Every response, errors included, is an ApiResponse envelope; submission
failures additionally carry a zeroed SubmitResult built by the challenges
router. In development the in-memory store is seeded with
content/challenges.json at startup.

Run with: uvicorn codequest.main:app --reload

Tier 3 orchestration module: imports from config (Tier 2), deps (Tier 2),
schemas (Tier 1).
"""

from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from codequest.config import get_settings
from codequest.schemas import ApiError, ApiResponse

logger = logging.getLogger("codequest")


# ---------------------------------------------------------------------------
# Request logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware:
    """One log line per request: method, path, status and duration in ms.

    Plain ASGI so the response is never buffered. Submitted code, bearer
    tokens and query strings never reach the log.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "?")
        path = scope.get("path", "?")
        start = time.monotonic()
        status_code = 0

        async def logging_send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            await send(message)

        try:
            await self.app(scope, receive, logging_send)
        finally:
            duration_ms = (time.monotonic() - start) * 1000
            logger.info(
                "%s %s %d %.1fms", method, path, status_code, duration_ms
            )


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------


def _http_exception_response(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Passes router-built envelopes through, wraps anything else.

    deps (401, 403) and the challenges router (400, 404, 409, 500 with a
    zeroed SubmitResult) raise HTTPException with a finished ApiResponse
    dict as detail. Framework errors such as an unknown route carry a plain
    string and become HTTP_ERROR.
    """
    if isinstance(exc.detail, dict) and "ok" in exc.detail:
        return JSONResponse(status_code=exc.status_code, content=exc.detail)

    return JSONResponse(
        status_code=exc.status_code,
        content=ApiResponse(
            ok=False,
            error=ApiError(code="HTTP_ERROR", message=str(exc.detail)),
        ).model_dump(),
    )


def _validation_error_response(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reports every rejected field as 422 VALIDATION_ERROR.

    Field paths use the wire names (hintsUsed, testsTotal) with the
    "body" or "query" prefix dropped, e.g.
    "hintsUsed: Field required; testsTotal: Field required".
    """
    problems = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        msg = error.get("msg", "Invalid value")
        problems.append(f"{' -> '.join(loc)}: {msg}" if loc else msg)
    detail = "; ".join(problems) or "Request validation failed."

    return JSONResponse(
        status_code=422,
        content=ApiResponse(
            ok=False,
            error=ApiError(code="VALIDATION_ERROR", message=detail),
        ).model_dump(),
    )


def _unhandled_exception_response(request: Request, exc: Exception) -> JSONResponse:
    """Logs the traceback and answers with an opaque 500 INTERNAL_ERROR.

    The challenges router turns unexpected submission errors into a 500
    with a zeroed SubmitResult before they reach this handler.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

    return JSONResponse(
        status_code=500,
        content=ApiResponse(
            ok=False,
            error=ApiError(
                code="INTERNAL_ERROR",
                message="An unexpected error occurred.",
            ),
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# App creation
# ---------------------------------------------------------------------------


def _init_catalog() -> None:
    """Seeds the development store with the challenge catalog on disk.

    Only the in-memory stub is seeded; a real database owns its own
    catalog. Logs but does not crash on a missing or broken catalog.
    """
    from codequest.api import deps
    from codequest.catalog import CatalogError, load_challenges
    from codequest.config import PROJECT_ROOT
    from codequest.hooks.database import InMemoryStore

    if not isinstance(deps._database, InMemoryStore):
        return

    catalog_path = PROJECT_ROOT / "content" / "challenges.json"
    try:
        challenges, errors = load_challenges(catalog_path)
    except CatalogError as exc:
        logger.warning("Challenge catalog not loaded (%s): %s", exc.error_type, exc.message)
        return

    for error in errors:
        logger.error("Catalog entry skipped [%s]: %s", error.source, error.message)
    for challenge in challenges:
        deps._database.seed_challenge(challenge)

    logger.info("Challenge catalog loaded: %d challenges", len(challenges))


def create_app() -> FastAPI:
    """Creates and configures the FastAPI application."""
    settings = get_settings()

    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    application = FastAPI(
        title="CodeQuest",
        description="Reward and progression engine for coding challenges",
        version="0.1.0",
    )

    # Last added runs first: CORS answers preflights before logging sees them
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_middleware(RequestLoggingMiddleware)

    application.add_exception_handler(StarletteHTTPException, _http_exception_response)
    application.add_exception_handler(RequestValidationError, _validation_error_response)
    application.add_exception_handler(Exception, _unhandled_exception_response)

    _register_routes(application)

    _init_catalog()

    return application


def _register_routes(application: FastAPI) -> None:
    """Registers all API routers on the application."""
    from fastapi import APIRouter

    v1 = APIRouter(prefix="/api/v1")

    @v1.get("/health")
    async def health() -> dict[str, Any]:
        return ApiResponse(ok=True, data={"status": "healthy"}).model_dump()

    from codequest.api.challenges import router as challenges_router

    v1.include_router(challenges_router, prefix="/challenges", tags=["challenges"])

    from codequest.api.progress import router as progress_router

    v1.include_router(progress_router, prefix="/progress", tags=["progress"])

    from codequest.api.admin import router as admin_router

    v1.include_router(admin_router, prefix="/admin", tags=["admin"])

    application.include_router(v1)


app = create_app()
