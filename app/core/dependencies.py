"""FastAPI dependency injection utilities."""

from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.exceptions import AuthenticationError
from app.core.security import verify_access_token, verify_student_session_token
from app.models.admin import AdminUser


def _bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise AuthenticationError("Missing authorization header")
    if not authorization.startswith("Bearer "):
        raise AuthenticationError("Invalid authorization header format")
    return authorization[7:]  # Remove "Bearer " prefix


def get_current_admin(
    db: Annotated[Session, Depends(get_db)],
    authorization: str | None = Header(None, description="Bearer token"),
) -> AdminUser:
    """Extract and validate the current admin from the JWT token."""
    payload = verify_access_token(_bearer_token(authorization))

    if not payload:
        raise AuthenticationError("Invalid or expired token")

    admin_id_str = payload.get("sub")
    if not admin_id_str:
        raise AuthenticationError("Invalid token payload")

    try:
        admin_id = int(admin_id_str)
    except ValueError:
        raise AuthenticationError("Invalid admin ID in token")

    admin = db.get(AdminUser, admin_id)

    if not admin:
        raise AuthenticationError("Admin not found")

    if not admin.is_active:
        raise AuthenticationError("Admin account is deactivated")

    return admin


def get_student_roll_number(
    authorization: str | None = Header(None, description="Bearer student session token"),
) -> str:
    """Roll number bound to a student session token."""
    payload = verify_student_session_token(_bearer_token(authorization))
    if not payload or not payload.get("sub"):
        raise AuthenticationError("Session expired. Please log in again.")
    return payload["sub"]


# Type aliases for dependency injection
CurrentAdmin = Annotated[AdminUser, Depends(get_current_admin)]
StudentSession = Annotated[str, Depends(get_student_roll_number)]
