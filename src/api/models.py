"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.

Request fields are optional on purpose: an absent or empty field is a
business error (MISSING_FIELDS / MISSING_TOKEN) answered with the standard
error envelope, not a framework 422.
"""

from typing import Literal

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    """Request model for user registration."""

    email: str | None = Field(None, description="Email address to confirm")
    login: str | None = Field(None, description="3-32 characters: letters, digits, '_'")
    password: str | None = Field(
        None,
        description="At least 8 characters with an uppercase letter, a number "
        "and a special character",
    )


class ApproveRequest(BaseModel):
    """Request model for registration approval."""

    token: str | None = Field(None, description="Token from the confirmation link")


class LoginRequest(BaseModel):
    """Request model for login."""

    login: str | None = None
    password: str | None = None


class MessageResponse(BaseModel):
    """Generic success response."""

    status: Literal["success"] = "success"
    message: str


class UserSummary(BaseModel):
    login: str


class SessionResponse(BaseModel):
    """Response carrying a freshly issued session token."""

    status: Literal["success"] = "success"
    token: str
    user: UserSummary


class CurrentUser(BaseModel):
    id: int
    login: str


class CurrentUserResponse(BaseModel):
    status: Literal["success"] = "success"
    user: CurrentUser


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    uptime: float = Field(..., description="Seconds since application start")


class ErrorResponse(BaseModel):
    """Standard error response model."""

    status: Literal["error"] = "error"
    code: str
    message: str
