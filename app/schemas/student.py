"""Student schemas."""

from datetime import date, datetime
from typing import Any

from pydantic import Field, field_validator

from app.core.validators import normalize_mobile, normalize_post_code, normalize_roll_number, parse_date
from app.models.student import PostCode
from app.schemas.common import BaseSchema, PaginatedResponse
from app.schemas.result import ResultSummary


class StudentBase(BaseSchema):
    """Base student schema."""

    name: str = Field(..., min_length=1, max_length=255)
    date_of_birth: date
    mobile_number: str = Field(..., description="Exactly 10 digits")
    applied_post: PostCode

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def parse_date_of_birth(cls, v: Any) -> date:
        return parse_date(v)

    @field_validator("mobile_number", mode="before")
    @classmethod
    def validate_mobile(cls, v: Any) -> str:
        return normalize_mobile(v)

    @field_validator("applied_post", mode="before")
    @classmethod
    def validate_post(cls, v: Any) -> PostCode:
        return normalize_post_code(v)


class StudentCreate(StudentBase):
    """Student creation schema."""

    roll_number: str = Field(..., max_length=50)

    @field_validator("roll_number", mode="before")
    @classmethod
    def validate_roll_number(cls, v: Any) -> str:
        return normalize_roll_number(v)


class StudentUpdate(BaseSchema):
    """Student update schema. Roll number is immutable."""

    name: str | None = Field(None, min_length=1, max_length=255)
    date_of_birth: date | None = None
    mobile_number: str | None = None
    applied_post: PostCode | None = None
    is_active: bool | None = None

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def parse_date_of_birth(cls, v: Any) -> date | None:
        return None if v is None else parse_date(v)

    @field_validator("mobile_number", mode="before")
    @classmethod
    def validate_mobile(cls, v: Any) -> str | None:
        return None if v is None else normalize_mobile(v)

    @field_validator("applied_post", mode="before")
    @classmethod
    def validate_post(cls, v: Any) -> PostCode | None:
        return None if v is None else normalize_post_code(v)


class StudentResponse(BaseSchema):
    """Student response schema."""

    id: int
    roll_number: str
    name: str
    date_of_birth: date
    mobile_number: str
    applied_post: PostCode
    omr_image_path: str | None
    is_active: bool
    has_omr: bool
    has_results: bool
    result: ResultSummary | None = None
    created_at: datetime
    updated_at: datetime


class StudentFilter(BaseSchema):
    """Student filter options."""

    applied_post: PostCode | None = None
    is_active: bool | None = None
    search: str | None = None  # Search by roll number or name


class PaginatedStudentResponse(PaginatedResponse):
    """Paginated student list."""

    items: list[StudentResponse]
