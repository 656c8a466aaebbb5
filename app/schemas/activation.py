"""Daily activation schemas."""

from datetime import date

from app.schemas.common import BaseSchema


class ActivationSummary(BaseSchema):
    """Counts reported by a daily activation run."""

    run_date: date
    deactivated: int
    activated: int
    total_students: int
    active_students: int
    inactive_students: int
    created_today: int
