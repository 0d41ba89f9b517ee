"""Authentication API endpoints."""

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.core import get_db, settings
from authgate.core.request_utils import extract_bearer_token, get_client_ip
from authgate.models.user import User
from authgate.schemas.auth import (
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    TokenResponse,
    UserEnvelope,
    UserResponse,
)
from authgate.services.auth import AuthResult, AuthService, InvalidCredentialsError

logger = logging.getLogger(__name__)

# Failed login attempts per client IP (monotonic timestamps).
# IPs with no attempts inside the window are dropped.
_login_attempts: dict[str, list[float]] = {}


def _recent_attempts(client_ip: str, now: float) -> list[float]:
    window = settings.login_window_seconds
    attempts = [t for t in _login_attempts.get(client_ip, []) if now - t < window]
    if attempts:
        _login_attempts[client_ip] = attempts
    else:
        _login_attempts.pop(client_ip, None)
    return attempts


def _check_login_rate_limit(client_ip: str) -> None:
    """Check if a client IP has exceeded the failed login rate limit."""
    attempts = _recent_attempts(client_ip, time.monotonic())
    if len(attempts) >= settings.login_max_attempts:
        logger.warning("Login rate limit exceeded", extra={"client_ip": client_ip})
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many login attempts. Please try again later.",
            headers={"Retry-After": str(settings.login_window_seconds)},
        )


def _record_login_attempt(client_ip: str) -> None:
    """Record a failed login attempt for rate limiting."""
    _login_attempts.setdefault(client_ip, []).append(time.monotonic())


def prune_login_attempts() -> int:
    """Drop client IPs whose failed attempts have all left the window.

    Returns the number of IPs removed.
    """
    now = time.monotonic()
    removed = 0
    for client_ip in list(_login_attempts):
        if not _recent_attempts(client_ip, now):
            removed += 1
    return removed


def reset_login_attempts() -> None:
    """Forget all recorded login attempts."""
    _login_attempts.clear()


router = APIRouter(prefix="/auth", tags=["auth"])
user_router = APIRouter(tags=["auth"])


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    """Dependency to get auth service."""
    return AuthService(db)


async def get_current_user(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    """Dependency to get the current authenticated user from the bearer token.

    Raises UnauthenticatedError, rendered as 401 by the app's exception handlers.
    """
    return await auth_service.current_user(extract_bearer_token(request))


def _token_response(result: AuthResult, expires_in: int, message: str | None = None) -> TokenResponse:
    return TokenResponse(
        message=message,
        user=UserResponse.model_validate(result.user),
        token=result.token.token,
        expires_in=expires_in,
    )


@router.post(
    "/register",
    response_model=TokenResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Register a new account and return a bearer token for it."""
    result = await auth_service.register(
        name=request.name,
        email=request.email,
        password=request.password,
        password_confirmation=request.password_confirmation,
    )
    return _token_response(result, auth_service.expires_in, "User registered successfully")


@router.post("/login", response_model=TokenResponse, response_model_exclude_none=True)
async def login(
    request: LoginRequest,
    http_request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Authenticate with email and password.

    Rate limited to ``login_max_attempts`` failures per window per IP.
    """
    client_ip = get_client_ip(http_request)
    _check_login_rate_limit(client_ip)

    try:
        result = await auth_service.login(email=request.email, password=request.password)
    except InvalidCredentialsError:
        _record_login_attempt(client_ip)
        raise
    return _token_response(result, auth_service.expires_in, "Login successful")


@router.get("/me", response_model=UserEnvelope)
async def get_current_user_info(
    current_user: User = Depends(get_current_user),
) -> UserEnvelope:
    """Get the current user's information."""
    return UserEnvelope(user=UserResponse.model_validate(current_user))


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Log out by revoking the presented token for the rest of its lifetime.

    Repeating the call with the same token still succeeds.
    """
    await auth_service.logout(extract_bearer_token(request))
    return MessageResponse(message="Successfully logged out")


@router.post("/refresh", response_model=TokenResponse, response_model_exclude_none=True)
async def refresh(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Exchange the presented token for a new one (token rotation)."""
    result = await auth_service.refresh(extract_bearer_token(request))
    return _token_response(result, auth_service.expires_in)


@user_router.get("/user", response_model=UserEnvelope)
async def get_user(
    current_user: User = Depends(get_current_user),
) -> UserEnvelope:
    """Get the authenticated user (same payload as /auth/me)."""
    return UserEnvelope(user=UserResponse.model_validate(current_user))
