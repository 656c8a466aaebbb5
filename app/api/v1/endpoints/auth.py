"""Admin authentication endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.dependencies import CurrentAdmin
from app.models.audit import AuditAction
from app.schemas.auth import AdminResponse, LoginRequest, RefreshTokenRequest, TokenResponse
from app.services.audit import AuditService
from app.services.auth import AuthService

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
def login(
    request: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
    http_request: Request,
):
    """
    Authenticate admin and return access/refresh tokens.
    """
    service = AuthService(db)
    admin, tokens = service.login(request)

    # Audit log
    audit = AuditService(db)
    audit.log(
        action=AuditAction.ADMIN_LOGIN,
        resource_type="admin",
        resource_id=str(admin.id),
        admin_id=admin.id,
        ip_address=http_request.client.host if http_request.client else None,
    )

    return tokens


@router.post("/refresh", response_model=TokenResponse)
def refresh_token(
    request: RefreshTokenRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Refresh access token using a valid refresh token.
    """
    service = AuthService(db)
    return service.refresh_tokens(request.refresh_token)


@router.get("/me", response_model=AdminResponse)
def get_current_admin_info(current_admin: CurrentAdmin):
    """Get the authenticated admin."""
    return AdminResponse.model_validate(current_admin)
