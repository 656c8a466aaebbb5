"""Exam result schemas."""

from decimal import Decimal
from typing import Any

from pydantic import Field, field_validator

from app.schemas.common import BaseSchema


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ResultEntry(BaseSchema):
    """
    Result counts as entered by an admin or read from a spreadsheet row.

    Blank counts are treated as zero; the sum and final score checks happen in
    the score normalizer so every write path applies the same rules.
    """

    correct_answers: int = 0
    wrong_answers: int = 0
    unattempted: int = 0
    final_score: Decimal | None = Field(None, ge=Decimal("-99999.99"), le=Decimal("99999.99"))
    percentage: Decimal | None = Field(None, ge=0, le=100)

    @field_validator("correct_answers", "wrong_answers", "unattempted", mode="before")
    @classmethod
    def blank_count_is_zero(cls, v: Any) -> Any:
        v = _blank_to_none(v)
        if v is None:
            return 0
        if isinstance(v, float) and v.is_integer():
            return int(v)
        return v

    @field_validator("final_score", "percentage", mode="before")
    @classmethod
    def blank_score_is_missing(cls, v: Any) -> Any:
        v = _blank_to_none(v)
        if isinstance(v, float):
            return Decimal(str(v))
        return v


class ResultSummary(BaseSchema):
    """Finalized result sub-record."""

    correct_answers: int
    wrong_answers: int
    unattempted: int
    total_questions: int
    final_score: Decimal
    percentage: Decimal


class CountBreakdown(BaseSchema):
    count: int
    label: str


class FinalScoreBreakdown(BaseSchema):
    score: Decimal
    percentage: Decimal
    out_of: int


class ScoreBreakdown(BaseSchema):
    """Display-ready breakdown of a result summary."""

    correct: CountBreakdown
    wrong: CountBreakdown
    unattempted: CountBreakdown
    final: FinalScoreBreakdown


class StudentResultsResponse(BaseSchema):
    """Results of one student with breakdown."""

    roll_number: str
    results: ResultSummary
    breakdown: ScoreBreakdown = Field(..., description="Score breakdown for display")
