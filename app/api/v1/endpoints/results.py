"""Bulk result upload endpoints."""

from io import BytesIO
from typing import Annotated

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.api.v1.uploads import read_upload
from app.core.config import settings
from app.core.database import get_db
from app.core.dependencies import CurrentAdmin
from app.models.audit import AuditAction
from app.schemas.upload import BulkUploadReport
from app.services.audit import AuditService
from app.services.result import ResultService
from app.services.upload import UploadService

router = APIRouter()


@router.get("/template")
def download_results_template(admin: CurrentAdmin, db: Annotated[Session, Depends(get_db)]):
    """Download Excel template for results bulk upload."""
    content = ResultService(db).generate_template()

    return StreamingResponse(
        BytesIO(content),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=results_template.xlsx"},
    )


@router.post("/upload", response_model=BulkUploadReport)
def bulk_upload_results(
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
    http_request: Request,
    file: UploadFile = File(...),
):
    """
    Bulk update results from an Excel file.

    Expected columns: rollNo, correctAnswers, wrongAnswers, unattempted,
    finalScore and optionally percentage.
    """
    content = read_upload(file, settings.SPREADSHEET_EXTENSIONS, "Excel")

    service = UploadService(db)
    result = service.import_results(content)

    # Audit log
    audit = AuditService(db)
    audit.log(
        action=AuditAction.UPLOAD_COMPLETED,
        resource_type="results_upload",
        admin_id=admin.id,
        description=f"Results bulk upload: {result.success_count}/{result.total_items} rows",
        metadata={
            "file_name": file.filename,
            "success_count": result.success_count,
            "error_count": result.error_count,
        },
        ip_address=http_request.client.host if http_request.client else None,
    )

    return result
