"""Admin authentication schemas."""

from datetime import datetime

from pydantic import Field

from app.schemas.common import BaseSchema


class LoginRequest(BaseSchema):
    """Login request schema."""

    username: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=6)


class TokenResponse(BaseSchema):
    """Token response schema."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class RefreshTokenRequest(BaseSchema):
    """Refresh token request schema."""

    refresh_token: str


class AdminResponse(BaseSchema):
    """Admin user response schema."""

    id: int
    name: str
    username: str
    is_active: bool
    last_login_at: datetime | None
    created_at: datetime
