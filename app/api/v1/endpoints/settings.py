"""Portal visibility settings endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.dependencies import CurrentAdmin
from app.models.audit import AuditAction
from app.schemas.settings import VisibilitySettings, VisibilityUpdate
from app.services.audit import AuditService
from app.services.portal_settings import PortalSettingsService

router = APIRouter()


@router.get("/visibility", response_model=VisibilitySettings)
def get_visibility(admin: CurrentAdmin, db: Annotated[Session, Depends(get_db)]):
    """Current visibility of OMR sheets and results on the student portal."""
    return PortalSettingsService(db).get_visibility()


@router.put("/visibility", response_model=VisibilitySettings)
def update_visibility(
    request: VisibilityUpdate,
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
    http_request: Request,
):
    """
    Toggle OMR and result visibility.

    Changes apply to the next request of every student, including students
    who are already logged in.
    """
    visibility = PortalSettingsService(db).update_visibility(request)

    # Audit log
    audit = AuditService(db)
    audit.log(
        action=AuditAction.SETTINGS_UPDATED,
        resource_type="visibility",
        admin_id=admin.id,
        metadata=request.model_dump(exclude_none=True),
        ip_address=http_request.client.host if http_request.client else None,
    )

    return visibility
