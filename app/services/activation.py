"""Daily activation of the current day's student cohort."""

import logging
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.student import Student
from app.schemas.activation import ActivationSummary

logger = logging.getLogger(__name__)


class ActivationService:
    """Keeps only students created today (portal timezone) active."""

    def __init__(self, db: Session):
        self.db = db
        self.tz = ZoneInfo(settings.SCHEDULER_TIMEZONE)

    def day_bounds(self, run_date: date) -> tuple[datetime, datetime]:
        """UTC start and end of a local calendar day."""
        start = datetime.combine(run_date, time.min, tzinfo=self.tz)
        end = start + timedelta(days=1)
        return start.astimezone(timezone.utc), end.astimezone(timezone.utc)

    def _count(self, *conditions) -> int:
        query = select(func.count(Student.id))
        for condition in conditions:
            query = query.where(condition)
        return self.db.execute(query).scalar() or 0

    def run_daily_activation(self, run_date: date | None = None) -> ActivationSummary:
        run_date = run_date or datetime.now(self.tz).date()
        start, end = self.day_bounds(run_date)
        logger.info(f"[ACTIVATION] Running for {run_date} ({start.isoformat()} to {end.isoformat()})")

        # Loaded instances are refreshed below instead of evaluated in Python
        self.db.flush()
        deactivated = self.db.execute(
            update(Student)
            .where(Student.created_at < start, Student.is_active.is_(True))
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        ).rowcount or 0

        created_today = (Student.created_at >= start) & (Student.created_at < end)
        activated = self.db.execute(
            update(Student)
            .where(created_today, Student.is_active.is_(False))
            .values(is_active=True)
            .execution_options(synchronize_session=False)
        ).rowcount or 0
        self.db.expire_all()

        summary = ActivationSummary(
            run_date=run_date,
            deactivated=deactivated,
            activated=activated,
            total_students=self._count(),
            active_students=self._count(Student.is_active.is_(True)),
            inactive_students=self._count(Student.is_active.is_(False)),
            created_today=self._count(created_today),
        )
        logger.info(
            f"[ACTIVATION] Deactivated {deactivated}, activated {activated}; "
            f"{summary.active_students}/{summary.total_students} active"
        )
        return summary
