"""Student management endpoints."""

from io import BytesIO
from typing import Annotated

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.api.v1.uploads import read_upload
from app.core.config import settings
from app.core.database import get_db
from app.core.dependencies import CurrentAdmin
from app.models.audit import AuditAction
from app.models.student import PostCode
from app.schemas.common import MessageResponse
from app.schemas.result import ResultEntry, StudentResultsResponse
from app.schemas.student import (
    PaginatedStudentResponse,
    StudentCreate,
    StudentFilter,
    StudentResponse,
    StudentUpdate,
)
from app.schemas.upload import BulkUploadReport
from app.services.audit import AuditService
from app.services.result import ResultService
from app.services.student import StudentService
from app.services.upload import UploadService

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.post("", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
def create_student(
    request: StudentCreate,
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
    http_request: Request,
):
    """Create a new student."""
    service = StudentService(db)
    student = service.create_student(request)

    # Audit log
    audit = AuditService(db)
    audit.log(
        action=AuditAction.DATA_CREATED,
        resource_type="student",
        resource_id=student.roll_number,
        admin_id=admin.id,
        description=f"Student '{student.roll_number}' created",
        ip_address=http_request.client.host if http_request.client else None,
    )

    return student


@router.get("", response_model=PaginatedStudentResponse)
def list_students(
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    applied_post: PostCode | None = None,
    is_active: bool | None = None,
    search: str | None = None,
):
    """List students with filtering and pagination."""
    service = StudentService(db)
    filters = StudentFilter(applied_post=applied_post, is_active=is_active, search=search)
    return service.list_students(filters, page, page_size)


@router.get("/template")
def download_student_template(admin: CurrentAdmin, db: Annotated[Session, Depends(get_db)]):
    """Download Excel template for student bulk upload."""
    content = StudentService(db).generate_template()

    return StreamingResponse(
        BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": "attachment; filename=students_template.xlsx"},
    )


@router.post("/upload", response_model=BulkUploadReport)
def bulk_upload_students(
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
    http_request: Request,
    file: UploadFile = File(...),
):
    """
    Bulk add students from an Excel file.

    Rows with an existing roll number or invalid data are skipped and reported;
    every other row is saved.
    """
    content = read_upload(file, settings.SPREADSHEET_EXTENSIONS, "Excel")

    service = UploadService(db)
    result = service.import_students(content)

    # Audit log
    audit = AuditService(db)
    audit.log(
        action=AuditAction.UPLOAD_COMPLETED,
        resource_type="student_upload",
        admin_id=admin.id,
        description=f"Student bulk upload: {result.success_count}/{result.total_items} rows",
        metadata={
            "file_name": file.filename,
            "success_count": result.success_count,
            "error_count": result.error_count,
        },
        ip_address=http_request.client.host if http_request.client else None,
    )

    return result


@router.get("/{roll_number}", response_model=StudentResponse)
def get_student(
    roll_number: str,
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
):
    """Get a student by roll number."""
    student = StudentService(db).get_student(roll_number)
    return StudentResponse.model_validate(student)


@router.patch("/{roll_number}", response_model=StudentResponse)
def update_student(
    roll_number: str,
    request: StudentUpdate,
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
    http_request: Request,
):
    """Update a student."""
    service = StudentService(db)
    student = service.update_student(roll_number, request)

    # Audit log
    audit = AuditService(db)
    audit.log(
        action=AuditAction.DATA_UPDATED,
        resource_type="student",
        resource_id=student.roll_number,
        admin_id=admin.id,
        description=f"Student '{student.roll_number}' updated",
        metadata=request.model_dump(mode="json", exclude_unset=True),
        ip_address=http_request.client.host if http_request.client else None,
    )

    return student


@router.delete("/{roll_number}", response_model=MessageResponse)
def delete_student(
    roll_number: str,
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
    http_request: Request,
):
    """Delete a student and the stored OMR sheet."""
    service = StudentService(db)
    service.delete_student(roll_number)

    # Audit log
    audit = AuditService(db)
    audit.log(
        action=AuditAction.DATA_DELETED,
        resource_type="student",
        resource_id=roll_number.strip().upper(),
        admin_id=admin.id,
        ip_address=http_request.client.host if http_request.client else None,
    )

    return MessageResponse(message="Student deleted successfully")


@router.get("/{roll_number}/results", response_model=StudentResultsResponse)
def get_student_results(
    roll_number: str,
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
):
    """Get a student's results with score breakdown."""
    return ResultService(db).get_results(roll_number)


@router.put("/{roll_number}/results", response_model=StudentResultsResponse)
def set_student_results(
    roll_number: str,
    request: ResultEntry,
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
    http_request: Request,
):
    """Add or replace a student's results. Answer counts must total the question count."""
    result = ResultService(db).set_results(roll_number, request)

    # Audit log
    audit = AuditService(db)
    audit.log(
        action=AuditAction.DATA_UPDATED,
        resource_type="results",
        resource_id=result.roll_number,
        admin_id=admin.id,
        description=f"Results for '{result.roll_number}' set",
        metadata=request.model_dump(mode="json"),
        ip_address=http_request.client.host if http_request.client else None,
    )

    return result


@router.delete("/{roll_number}/results", response_model=MessageResponse)
def delete_student_results(
    roll_number: str,
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
    http_request: Request,
):
    """Remove a student's results entirely."""
    ResultService(db).clear_results(roll_number)

    # Audit log
    audit = AuditService(db)
    audit.log(
        action=AuditAction.DATA_DELETED,
        resource_type="results",
        resource_id=roll_number.strip().upper(),
        admin_id=admin.id,
        ip_address=http_request.client.host if http_request.client else None,
    )

    return MessageResponse(message="Results deleted successfully")
