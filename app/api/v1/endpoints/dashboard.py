"""Admin dashboard endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.dependencies import CurrentAdmin
from app.schemas.dashboard import DashboardResponse
from app.services.dashboard import DashboardService

router = APIRouter()


@router.get("", response_model=DashboardResponse)
def get_dashboard(admin: CurrentAdmin, db: Annotated[Session, Depends(get_db)]):
    """Student counts per post, answer key status and visibility flags."""
    return DashboardService(db).get_dashboard()
