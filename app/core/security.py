"""Security utilities for admin and student authentication."""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"
STUDENT_TOKEN_TYPE = "student"


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password, rounds=settings.BCRYPT_ROUNDS)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def _encode(claims: dict[str, Any], expire: datetime) -> str:
    to_encode = {**claims, "exp": expire}
    return jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )


def create_access_token(
    admin_id: int,
    username: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create an admin access token."""
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
        )

    return _encode(
        {"sub": str(admin_id), "username": username, "type": ACCESS_TOKEN_TYPE},
        expire,
    )


def create_refresh_token(
    admin_id: int,
    expires_delta: timedelta | None = None,
) -> str:
    """Create an admin refresh token."""
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS
        )

    return _encode({"sub": str(admin_id), "type": REFRESH_TOKEN_TYPE}, expire)


def create_student_session_token(
    roll_number: str,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a short-lived student session token.

    The token only binds the roll number; visibility is re-checked on every
    request that uses it.
    """
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.STUDENT_SESSION_EXPIRE_MINUTES
        )

    return _encode({"sub": roll_number, "type": STUDENT_TOKEN_TYPE}, expire)


def decode_token(token: str) -> dict[str, Any] | None:
    """Decode and validate a JWT token."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
        return payload
    except JWTError:
        return None


def _verify_token_type(token: str, token_type: str) -> dict[str, Any] | None:
    payload = decode_token(token)
    if payload and payload.get("type") == token_type:
        return payload
    return None


def verify_access_token(token: str) -> dict[str, Any] | None:
    """Verify an access token and return its payload."""
    return _verify_token_type(token, ACCESS_TOKEN_TYPE)


def verify_refresh_token(token: str) -> dict[str, Any] | None:
    """Verify a refresh token and return its payload."""
    return _verify_token_type(token, REFRESH_TOKEN_TYPE)


def verify_student_session_token(token: str) -> dict[str, Any] | None:
    """Verify a student session token and return its payload."""
    return _verify_token_type(token, STUDENT_TOKEN_TYPE)
