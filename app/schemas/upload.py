"""Bulk upload schemas."""

from pydantic import Field

from app.schemas.common import BaseSchema


class BulkUploadReport(BaseSchema):
    """Outcome of a bulk reconciliation batch."""

    total_items: int
    success_count: int
    error_count: int
    errors: list[str] = Field(
        default=[],
        description="First error messages only; error_count holds the true total",
    )
    message: str
