"""Answer key schemas."""

from datetime import datetime

from app.models.student import PostCode
from app.schemas.common import BaseSchema


class AnswerKeyResponse(BaseSchema):
    """Answer key response schema."""

    id: int
    post_code: PostCode
    original_file_name: str
    is_published: bool
    uploaded_at: datetime


class AnswerKeyPublishRequest(BaseSchema):
    is_published: bool


class AnswerKeyPublishAllResult(BaseSchema):
    updated: int
    message: str
