"""Pydantic schemas for authentication API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

# Field rules (required, length, format) are checked by the service layer so
# that every failure is reported in one field -> messages mapping.


class RegisterRequest(BaseModel):
    """Request for account registration."""

    name: str | None = Field(None, description="Display name (max 255 chars)")
    email: str | None = Field(None, description="Email address, unique per account")
    password: str | None = Field(None, description="Password (minimum 6 characters)")
    password_confirmation: str | None = Field(None, description="Must equal password")


class LoginRequest(BaseModel):
    """Request for login."""

    email: str | None = None
    password: str | None = None


class UserResponse(BaseModel):
    """Response with user information."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    created_at: datetime
    updated_at: datetime


class UserEnvelope(BaseModel):
    """Response wrapping the authenticated user."""

    success: bool = True
    user: UserResponse


class TokenResponse(BaseModel):
    """Response with a bearer token and the user it belongs to."""

    success: bool = True
    message: str | None = None
    user: UserResponse
    token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Token expiry in seconds")


class MessageResponse(BaseModel):
    """Generic message response."""

    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Error envelope returned for every failed request."""

    success: bool = False
    message: str
    errors: dict[str, list[str]] | None = None
