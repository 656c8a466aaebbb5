"""OMR sheet endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from app.api.v1.uploads import read_upload
from app.core.config import settings
from app.core.database import get_db
from app.core.dependencies import CurrentAdmin
from app.models.audit import AuditAction
from app.schemas.common import MessageResponse
from app.schemas.student import StudentResponse
from app.schemas.upload import BulkUploadReport
from app.services.audit import AuditService
from app.services.omr import OMRService
from app.services.student import StudentService
from app.services.upload import UploadService

router = APIRouter()


@router.post("", response_model=StudentResponse)
def upload_omr_sheet(
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
    http_request: Request,
    roll_number: str = Form(...),
    file: UploadFile = File(...),
):
    """Upload the OMR sheet of one student, replacing any previous one."""
    content = read_upload(file, settings.OMR_EXTENSIONS, "image or PDF")
    student = OMRService(db).upload_single(roll_number, file.filename, content)

    # Audit log
    audit = AuditService(db)
    audit.log(
        action=AuditAction.DATA_UPDATED,
        resource_type="omr",
        resource_id=student.roll_number,
        admin_id=admin.id,
        description=f"OMR sheet uploaded for '{student.roll_number}'",
        metadata={"file_name": file.filename},
        ip_address=http_request.client.host if http_request.client else None,
    )

    return StudentResponse.model_validate(student)


@router.post("/upload", response_model=BulkUploadReport)
def bulk_upload_omr_sheets(
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
    http_request: Request,
    file: UploadFile = File(...),
):
    """
    Bulk upload OMR sheets from a ZIP archive.

    Each entry is named after the roll number (``ROLL123.jpg``); anything
    before the last underscore is ignored (``7_ROLL123.jpg``).
    """
    content = read_upload(file, settings.ARCHIVE_EXTENSIONS, "ZIP")

    service = UploadService(db)
    result = service.import_omr_archive(content)

    # Audit log
    audit = AuditService(db)
    audit.log(
        action=AuditAction.UPLOAD_COMPLETED,
        resource_type="omr_upload",
        admin_id=admin.id,
        description=f"OMR bulk upload: {result.success_count}/{result.total_items} files",
        metadata={
            "file_name": file.filename,
            "success_count": result.success_count,
            "error_count": result.error_count,
        },
        ip_address=http_request.client.host if http_request.client else None,
    )

    return result


@router.get("/{roll_number}/file")
def get_omr_sheet(
    roll_number: str,
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
):
    """Download a student's OMR sheet."""
    student = StudentService(db).get_student(roll_number)
    path = OMRService(db).file_path(student)
    return FileResponse(path, filename=path.name)


@router.delete("/{roll_number}", response_model=MessageResponse)
def delete_omr_sheet(
    roll_number: str,
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
    http_request: Request,
):
    """Delete a student's OMR sheet; the student record is kept."""
    OMRService(db).delete(roll_number)

    # Audit log
    audit = AuditService(db)
    audit.log(
        action=AuditAction.DATA_DELETED,
        resource_type="omr",
        resource_id=roll_number.strip().upper(),
        admin_id=admin.id,
        ip_address=http_request.client.host if http_request.client else None,
    )

    return MessageResponse(message="OMR sheet deleted successfully")
