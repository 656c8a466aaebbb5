"""Daily activation endpoints."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.dependencies import CurrentAdmin
from app.models.audit import AuditAction
from app.schemas.activation import ActivationSummary
from app.services.activation import ActivationService
from app.services.audit import AuditService

router = APIRouter()


@router.post("/run", response_model=ActivationSummary)
def run_activation(
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
    http_request: Request,
    run_date: date | None = None,
):
    """
    Run the daily activation now.

    Students created on the run date become active; everyone else is
    deactivated. Defaults to today in the portal timezone.
    """
    summary = ActivationService(db).run_daily_activation(run_date)

    # Audit log
    audit = AuditService(db)
    audit.log(
        action=AuditAction.ACTIVATION_RUN,
        resource_type="students",
        admin_id=admin.id,
        metadata=summary.model_dump(mode="json"),
        ip_address=http_request.client.host if http_request.client else None,
    )

    return summary
