"""Student-facing portal schemas."""

from datetime import date
from typing import Any

from pydantic import Field, field_validator, model_validator

from app.core.validators import normalize_roll_number, parse_date
from app.models.student import PostCode
from app.schemas.common import BaseSchema
from app.schemas.result import ResultSummary, ScoreBreakdown


class StudentLoginRequest(BaseSchema):
    """
    Student login: roll number plus date of birth or mobile number.
    When both factors are sent the date of birth is used.
    """

    roll_number: str = Field(..., max_length=50)
    date_of_birth: date | None = Field(None, description="DD/MM/YYYY or DD-MM-YYYY")
    mobile_number: str | None = Field(None, max_length=20)

    @field_validator("roll_number", mode="before")
    @classmethod
    def validate_roll_number(cls, v: Any) -> str:
        return normalize_roll_number(v)

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def parse_date_of_birth(cls, v: Any) -> date | None:
        if v is None or v == "":
            return None
        return parse_date(v)

    @model_validator(mode="after")
    def require_one_factor(self) -> "StudentLoginRequest":
        if self.date_of_birth is None and not self.mobile_number:
            raise ValueError("Please provide either date of birth or mobile number")
        return self


class StudentResultView(BaseSchema):
    """What an authenticated student is allowed to see."""

    roll_number: str
    name: str
    applied_post: PostCode
    omr_available: bool
    results_available: bool
    results: ResultSummary | None = None
    breakdown: ScoreBreakdown | None = None


class StudentSessionResponse(BaseSchema):
    """Successful student login."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    view: StudentResultView
