"""Student and exam result models."""

import enum
from datetime import date
from decimal import Decimal

from sqlalchemy import BigInteger, Boolean, Date, Enum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.base import IDMixin, PrimaryKeyType, TimestampMixin


class PostCode(str, enum.Enum):
    """Posts a candidate can apply under."""

    DCP = "DCP"
    DCO = "DCO"
    FCD = "FCD"
    LFM = "LFM"
    DFO = "DFO"
    SFO = "SFO"
    WLO = "WLO"


class Student(Base, IDMixin, TimestampMixin):
    """Student record keyed by roll number."""

    __tablename__ = "students"

    roll_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    mobile_number: Mapped[str] = mapped_column(String(10), nullable=False)
    applied_post: Mapped[PostCode] = mapped_column(
        Enum(PostCode, name="post_code", create_constraint=True),
        nullable=False,
        index=True,
    )
    omr_image_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    # Relationships
    result: Mapped["ExamResult | None"] = relationship(
        "ExamResult",
        back_populates="student",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def has_omr(self) -> bool:
        return bool(self.omr_image_path and self.omr_image_path.strip())

    @property
    def has_results(self) -> bool:
        return self.result is not None

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, roll_number={self.roll_number}, post={self.applied_post})>"


class ExamResult(Base, IDMixin, TimestampMixin):
    """Finalized result summary, at most one per student."""

    __tablename__ = "exam_results"

    student_id: Mapped[int] = mapped_column(
        PrimaryKeyType,
        ForeignKey("students.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    correct_answers: Mapped[int] = mapped_column(Integer, nullable=False)
    wrong_answers: Mapped[int] = mapped_column(Integer, nullable=False)
    unattempted: Mapped[int] = mapped_column(Integer, nullable=False)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    final_score: Mapped[Decimal] = mapped_column(Numeric(7, 2), nullable=False)
    percentage: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)

    # Relationships
    student: Mapped["Student"] = relationship("Student", back_populates="result")

    def __repr__(self) -> str:
        return f"<ExamResult(student_id={self.student_id}, final_score={self.final_score})>"
