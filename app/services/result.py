"""Exam result service."""

import logging

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.models.student import ExamResult, Student
from app.schemas.result import ResultEntry, ResultSummary, StudentResultsResponse
from app.services.scoring import ScoreNormalizer
from app.services.student import StudentService, build_template

logger = logging.getLogger(__name__)


# Excel template columns for results upload
RESULT_TEMPLATE_COLUMNS = [
    ("rollNo", "ROLL001", 15),
    ("correctAnswers", 80, 18),
    ("wrongAnswers", 10, 18),
    ("unattempted", 10, 15),
    ("finalScore", 155, 15),
    ("percentage", 77.5, 15),
]


def apply_summary(student: Student, summary: ResultSummary) -> None:
    """Replace the student's whole result sub-record."""
    values = summary.model_dump()
    if student.result is None:
        student.result = ExamResult(**values)
    else:
        for field, value in values.items():
            setattr(student.result, field, value)


class ResultService:
    """Single-student result management."""

    def __init__(self, db: Session, normalizer: ScoreNormalizer | None = None):
        self.db = db
        self.normalizer = normalizer or ScoreNormalizer()
        self.students = StudentService(db)

    def normalize_entry(self, entry: ResultEntry) -> ResultSummary:
        return self.normalizer.normalize(
            entry.correct_answers,
            entry.wrong_answers,
            entry.unattempted,
            entry.final_score,
            entry.percentage,
        )

    def get_results(self, roll_number: str) -> StudentResultsResponse:
        student = self.students.get_student(roll_number)
        if not student.has_results:
            raise NotFoundError("Results", student.roll_number)
        summary = ResultSummary.model_validate(student.result)
        return StudentResultsResponse(
            roll_number=student.roll_number,
            results=summary,
            breakdown=self.normalizer.breakdown(summary),
        )

    def set_results(self, roll_number: str, entry: ResultEntry) -> StudentResultsResponse:
        """Validate and store results; invalid entries never reach the store."""
        student = self.students.get_student(roll_number)
        summary = self.normalize_entry(entry)
        apply_summary(student, summary)
        self.db.flush()
        logger.info(f"[RESULTS] Stored results for {student.roll_number}: final_score={summary.final_score}")
        return StudentResultsResponse(
            roll_number=student.roll_number,
            results=summary,
            breakdown=self.normalizer.breakdown(summary),
        )

    def clear_results(self, roll_number: str) -> None:
        """Remove the result sub-record entirely. Clearing twice is a no-op."""
        student = self.students.get_student(roll_number)
        if student.result is not None:
            student.result = None
            self.db.flush()
            logger.info(f"[RESULTS] Cleared results for {student.roll_number}")

    def generate_template(self) -> bytes:
        """Generate Excel template for results bulk upload."""
        return build_template(RESULT_TEMPLATE_COLUMNS, "Results")
