"""Answer key model."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.models.base import IDMixin, utcnow
from app.models.student import PostCode


class AnswerKey(Base, IDMixin):
    """Answer key file, one per post code."""

    __tablename__ = "answer_keys"

    post_code: Mapped[PostCode] = mapped_column(
        Enum(PostCode, name="post_code", create_constraint=True),
        unique=True,
        nullable=False,
    )
    file_path: Mapped[str] = mapped_column(String(500), nullable=False)
    original_file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_published: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AnswerKey(post_code={self.post_code}, published={self.is_published})>"
