# Authgate Pydantic Schemas
from authgate.schemas.auth import (
    ErrorResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    TokenResponse,
    UserEnvelope,
    UserResponse,
)

__all__ = [
    "ErrorResponse",
    "LoginRequest",
    "MessageResponse",
    "RegisterRequest",
    "TokenResponse",
    "UserEnvelope",
    "UserResponse",
]
