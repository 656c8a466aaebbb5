"""Dashboard statistics service."""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.answer_key import AnswerKey
from app.models.student import ExamResult, PostCode, Student
from app.schemas.answer_key import AnswerKeyResponse
from app.schemas.dashboard import DashboardResponse, PostStats
from app.services.portal_settings import PortalSettingsService

_HAS_OMR = Student.omr_image_path.is_not(None) & (Student.omr_image_path != "")


class DashboardService:
    """Dashboard data aggregation service."""

    def __init__(self, db: Session):
        self.db = db

    def _count(self, *conditions) -> int:
        query = select(func.count(Student.id))
        for condition in conditions:
            query = query.where(condition)
        return self.db.execute(query).scalar() or 0

    def _count_with_results(self, *conditions) -> int:
        query = select(func.count(Student.id)).join(ExamResult, ExamResult.student_id == Student.id)
        for condition in conditions:
            query = query.where(condition)
        return self.db.execute(query).scalar() or 0

    def get_dashboard(self) -> DashboardResponse:
        answer_keys = {
            a.post_code: a for a in self.db.execute(select(AnswerKey)).scalars().all()
        }

        posts = []
        for post in PostCode:
            answer_key = answer_keys.get(post)
            posts.append(
                PostStats(
                    post_code=post,
                    total=self._count(Student.applied_post == post),
                    with_omr=self._count(Student.applied_post == post, _HAS_OMR),
                    with_results=self._count_with_results(Student.applied_post == post),
                    answer_key=AnswerKeyResponse.model_validate(answer_key) if answer_key else None,
                )
            )

        return DashboardResponse(
            total_students=self._count(),
            active_students=self._count(Student.is_active.is_(True)),
            students_with_omr=self._count(_HAS_OMR),
            students_with_results=self._count_with_results(),
            posts=posts,
            visibility=PortalSettingsService(self.db).get_visibility(),
        )
