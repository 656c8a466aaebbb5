"""Admin authentication service."""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import AuthenticationError, NotFoundError
from app.core.security import (
    create_access_token,
    create_refresh_token,
    hash_password,
    verify_password,
    verify_refresh_token,
)
from app.models.admin import AdminUser
from app.schemas.auth import LoginRequest, TokenResponse


class AuthService:
    """Authentication service."""

    def __init__(self, db: Session):
        self.db = db

    def _tokens(self, admin: AdminUser) -> TokenResponse:
        return TokenResponse(
            access_token=create_access_token(admin.id, admin.username),
            refresh_token=create_refresh_token(admin.id),
            token_type="bearer",
            expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )

    def login(self, request: LoginRequest) -> tuple[AdminUser, TokenResponse]:
        """Authenticate admin and return tokens."""
        result = self.db.execute(
            select(AdminUser).where(AdminUser.username == request.username)
        )
        admin = result.scalar_one_or_none()

        if not admin:
            raise AuthenticationError("Invalid username or password")

        if not verify_password(request.password, admin.password_hash):
            raise AuthenticationError("Invalid username or password")

        if not admin.is_active:
            raise AuthenticationError("Admin account is deactivated")

        # Update last login
        admin.last_login_at = datetime.now(timezone.utc)
        self.db.flush()

        return admin, self._tokens(admin)

    def refresh_tokens(self, refresh_token: str) -> TokenResponse:
        """Refresh access token using refresh token."""
        payload = verify_refresh_token(refresh_token)

        if not payload:
            raise AuthenticationError("Invalid or expired refresh token")

        try:
            admin_id = int(payload.get("sub", ""))
        except ValueError:
            raise AuthenticationError("Invalid admin ID in token")

        admin = self.db.get(AdminUser, admin_id)
        if not admin or not admin.is_active:
            raise AuthenticationError("Admin not found or deactivated")

        return self._tokens(admin)

    def get_admin(self, admin_id: int) -> AdminUser:
        admin = self.db.get(AdminUser, admin_id)
        if not admin:
            raise NotFoundError("Admin", str(admin_id))
        return admin

    def create_or_reset_admin(self, username: str, password: str, name: str | None = None) -> AdminUser:
        """Create an admin, or reset the password of an existing one."""
        result = self.db.execute(select(AdminUser).where(AdminUser.username == username))
        admin = result.scalar_one_or_none()
        if admin is None:
            admin = AdminUser(username=username, name=name or username, is_active=True)
            self.db.add(admin)
        elif name:
            admin.name = name
        admin.password_hash = hash_password(password)
        admin.is_active = True
        self.db.flush()
        return admin
