"""Audit log endpoints."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.dependencies import CurrentAdmin
from app.models.audit import AuditAction
from app.schemas.audit import AuditLogFilter, PaginatedAuditLogResponse
from app.services.audit import AuditService

router = APIRouter()


@router.get("", response_model=PaginatedAuditLogResponse)
def list_audit_logs(
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
    action: AuditAction | None = None,
    resource_type: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
):
    """
    List audit logs with filtering.
    Audit logs are append-only and cannot be modified.
    """
    service = AuditService(db)
    filters = AuditLogFilter(
        action=action,
        resource_type=resource_type,
        date_from=date_from,
        date_to=date_to,
    )
    return service.list_logs(filters=filters, page=page, page_size=page_size)
