"""Admin dashboard schemas."""

from app.models.student import PostCode
from app.schemas.answer_key import AnswerKeyResponse
from app.schemas.common import BaseSchema
from app.schemas.settings import VisibilitySettings


class PostStats(BaseSchema):
    """Per-post student counts."""

    post_code: PostCode
    total: int = 0
    with_omr: int = 0
    with_results: int = 0
    answer_key: AnswerKeyResponse | None = None


class DashboardResponse(BaseSchema):
    """Dashboard statistics."""

    total_students: int = 0
    active_students: int = 0
    students_with_omr: int = 0
    students_with_results: int = 0
    posts: list[PostStats] = []
    visibility: VisibilitySettings
