"""Score normalization for exam results."""

from decimal import ROUND_HALF_UP, Decimal

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.schemas.result import (
    CountBreakdown,
    FinalScoreBreakdown,
    ResultSummary,
    ScoreBreakdown,
)

TWO_PLACES = Decimal("0.01")


def round_two_places(value: Decimal) -> Decimal:
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


class ScoreNormalizer:
    """
    Validates answer counts and stamps a finalized result summary.

    Final scores come from the uploader; only the percentage is derived, and
    only when it is not supplied.
    """

    def __init__(
        self,
        total_questions: int | None = None,
        max_score: int | None = None,
    ):
        self.total_questions = settings.TOTAL_QUESTIONS if total_questions is None else total_questions
        self.max_score = settings.MAX_SCORE if max_score is None else max_score

    def validate(
        self,
        correct: int,
        wrong: int,
        unattempted: int,
        final_score: Decimal | None,
    ) -> bool:
        """Check counts and final score without raising."""
        try:
            self._check(correct, wrong, unattempted, final_score)
        except ValidationError:
            return False
        return True

    def _check(
        self,
        correct: int,
        wrong: int,
        unattempted: int,
        final_score: Decimal | None,
    ) -> None:
        if correct < 0 or wrong < 0 or unattempted < 0:
            raise ValidationError(
                "Answer counts cannot be negative",
                details={"correct": correct, "wrong": wrong, "unattempted": unattempted},
            )

        total = correct + wrong + unattempted
        if total != self.total_questions:
            raise ValidationError(
                f"Answer counts must total {self.total_questions} questions (got {total})",
                details={"total": total, "expected": self.total_questions},
            )

        if final_score is None:
            raise ValidationError("Final score is required")
        if final_score > self.max_score:
            raise ValidationError(
                f"Final score cannot exceed {self.max_score}",
                details={"final_score": str(final_score), "max_score": self.max_score},
            )

    def normalize(
        self,
        correct: int,
        wrong: int,
        unattempted: int,
        final_score: Decimal | None,
        percentage: Decimal | None = None,
    ) -> ResultSummary:
        """Build a result summary or raise ValidationError."""
        self._check(correct, wrong, unattempted, final_score)

        score = Decimal(final_score)
        if percentage is None:
            derived = score / Decimal(self.max_score) * Decimal(100)
            percentage = max(Decimal(0), derived)

        return ResultSummary(
            correct_answers=correct,
            wrong_answers=wrong,
            unattempted=unattempted,
            total_questions=self.total_questions,
            final_score=round_two_places(score),
            percentage=round_two_places(Decimal(percentage)),
        )

    def breakdown(self, summary: ResultSummary) -> ScoreBreakdown:
        """Display breakdown of a stored summary."""
        return ScoreBreakdown(
            correct=CountBreakdown(
                count=summary.correct_answers,
                label=f"{summary.correct_answers} correct",
            ),
            wrong=CountBreakdown(
                count=summary.wrong_answers,
                label=f"{summary.wrong_answers} wrong",
            ),
            unattempted=CountBreakdown(
                count=summary.unattempted,
                label=f"{summary.unattempted} unattempted",
            ),
            final=FinalScoreBreakdown(
                score=summary.final_score,
                percentage=summary.percentage,
                out_of=self.max_score,
            ),
        )
