"""Authgate Backend - FastAPI Application Factory."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from authgate.api import api_router
from authgate.api.auth import prune_login_attempts
from authgate.api.health import router as health_router
from authgate.core import async_session_maker, engine, init_db, settings, setup_logging
from authgate.core.logging import get_logger
from authgate.services.auth import (
    DuplicateEmailError,
    InputValidationError,
    InvalidCredentialsError,
    TokenMintError,
    UnauthenticatedError,
)
from authgate.services.revocation import RevocationRegistry
from authgate.services.validation import EMAIL_TAKEN_MESSAGE

logger = get_logger("main")

_BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}
HTTP_422_UNPROCESSABLE = 422


def task_done_callback(task: asyncio.Task[None]) -> None:
    """Log unhandled exceptions from background tasks."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Background task {task.get_name()} failed: {exc}")


async def _token_blacklist_cleanup_loop() -> None:
    """Periodically remove expired blacklist entries and stale login throttle state."""
    while True:
        await asyncio.sleep(settings.blacklist_cleanup_interval_seconds)
        pruned = prune_login_attempts()
        if pruned > 0:
            logger.debug(f"Login throttle cleanup: removed {pruned} inactive client IPs")
        try:
            async with async_session_maker() as db:
                removed = await RevocationRegistry(db).purge_expired()
                await db.commit()
                if removed > 0:
                    logger.info(f"Cleaned up {removed} expired token blacklist entries")
        except Exception:
            logger.exception("Error cleaning up token blacklist")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    setup_logging(
        level=settings.log_level,
        format_type="structured" if not settings.debug else "dev",
    )
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    for warning in settings.check_security_configuration():
        logger.warning(f"SECURITY: {warning}")

    await init_db()

    blacklist_task = asyncio.create_task(
        _token_blacklist_cleanup_loop(), name="token-blacklist-cleanup"
    )
    blacklist_task.add_done_callback(task_done_callback)

    yield

    # Shutdown
    logger.info("Shutting down...")
    blacklist_task.cancel()
    try:
        await blacklist_task
    except asyncio.CancelledError:
        pass
    await engine.dispose()


def _error_response(
    status_code: int,
    message: str,
    errors: dict[str, list[str]] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    content: dict[str, Any] = {"success": False, "message": message}
    if errors is not None:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Render service errors in the JSON error envelope."""

    @app.exception_handler(InputValidationError)
    async def input_validation_handler(request: Request, exc: InputValidationError) -> JSONResponse:
        return _error_response(HTTP_422_UNPROCESSABLE, exc.message, exc.errors)

    @app.exception_handler(DuplicateEmailError)
    async def duplicate_email_handler(request: Request, exc: DuplicateEmailError) -> JSONResponse:
        return _error_response(
            HTTP_422_UNPROCESSABLE,
            "Validation errors",
            {"email": [EMAIL_TAKEN_MESSAGE]},
        )

    @app.exception_handler(InvalidCredentialsError)
    async def invalid_credentials_handler(
        request: Request, exc: InvalidCredentialsError
    ) -> JSONResponse:
        return _error_response(status.HTTP_401_UNAUTHORIZED, "Invalid credentials")

    @app.exception_handler(UnauthenticatedError)
    async def unauthenticated_handler(request: Request, exc: UnauthenticatedError) -> JSONResponse:
        # Reason stays in the logs; clients get a generic message
        logger.debug(f"Unauthenticated request: {exc}", extra={"path": request.url.path})
        return _error_response(
            status.HTTP_401_UNAUTHORIZED, "Unauthenticated.", headers=_BEARER_CHALLENGE
        )

    @app.exception_handler(TokenMintError)
    async def token_mint_handler(request: Request, exc: TokenMintError) -> JSONResponse:
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Could not create token")

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors: dict[str, list[str]] = {}
        for error in exc.errors():
            # loc is ("body", field, ...) for body errors
            loc = [str(part) for part in error.get("loc", ()) if part != "body"]
            field = ".".join(loc) or "body"
            errors.setdefault(field, []).append(str(error.get("msg", "Invalid value")))
        return _error_response(HTTP_422_UNPROCESSABLE, "Validation errors", errors)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return _error_response(exc.status_code, str(exc.detail), headers=exc.headers)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Bearer-token authentication service",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept"],
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(health_router)  # Health at root level
    app.include_router(api_router)  # API at /api

    # Root endpoint
    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
        }

    return app


# Application instance
app = create_app()
