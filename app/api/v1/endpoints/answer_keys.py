"""Answer key management endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from sqlalchemy.orm import Session

from app.api.v1.uploads import read_upload
from app.core.config import settings
from app.core.database import get_db
from app.core.dependencies import CurrentAdmin
from app.models.audit import AuditAction
from app.models.student import PostCode
from app.schemas.answer_key import (
    AnswerKeyPublishAllResult,
    AnswerKeyPublishRequest,
    AnswerKeyResponse,
)
from app.schemas.common import MessageResponse
from app.services.answer_key import AnswerKeyService
from app.services.audit import AuditService

router = APIRouter()


@router.get("", response_model=list[AnswerKeyResponse])
def list_answer_keys(admin: CurrentAdmin, db: Annotated[Session, Depends(get_db)]):
    """List all answer keys, published or not."""
    return AnswerKeyService(db).list_all()


@router.post("", response_model=AnswerKeyResponse, status_code=status.HTTP_201_CREATED)
def upload_answer_key(
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
    http_request: Request,
    post_code: PostCode = Form(...),
    is_published: bool = Form(False),
    file: UploadFile = File(...),
):
    """Upload the answer key of a post, replacing any previous one."""
    content = read_upload(file, settings.ANSWER_KEY_EXTENSIONS, "image or PDF")
    answer_key = AnswerKeyService(db).upload(post_code, file.filename, content, is_published)

    # Audit log
    audit = AuditService(db)
    audit.log(
        action=AuditAction.DATA_CREATED,
        resource_type="answer_key",
        resource_id=post_code.value,
        admin_id=admin.id,
        description=f"Answer key uploaded for {post_code.value}",
        metadata={"file_name": file.filename, "is_published": is_published},
        ip_address=http_request.client.host if http_request.client else None,
    )

    return answer_key


@router.put("/publish-all", response_model=AnswerKeyPublishAllResult)
def publish_all_answer_keys(
    request: AnswerKeyPublishRequest,
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
    http_request: Request,
):
    """Publish or unpublish every answer key at once."""
    result = AnswerKeyService(db).set_all_published(request.is_published)

    # Audit log
    audit = AuditService(db)
    audit.log(
        action=AuditAction.DATA_UPDATED,
        resource_type="answer_key",
        admin_id=admin.id,
        description=result.message,
        metadata={"is_published": request.is_published, "updated": result.updated},
        ip_address=http_request.client.host if http_request.client else None,
    )

    return result


@router.put("/{post_code}/publish", response_model=AnswerKeyResponse)
def publish_answer_key(
    post_code: PostCode,
    request: AnswerKeyPublishRequest,
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
    http_request: Request,
):
    """Publish or unpublish the answer key of one post."""
    answer_key = AnswerKeyService(db).set_published(post_code, request.is_published)

    # Audit log
    audit = AuditService(db)
    audit.log(
        action=AuditAction.DATA_UPDATED,
        resource_type="answer_key",
        resource_id=post_code.value,
        admin_id=admin.id,
        metadata={"is_published": request.is_published},
        ip_address=http_request.client.host if http_request.client else None,
    )

    return answer_key


@router.delete("/{post_code}", response_model=MessageResponse)
def delete_answer_key(
    post_code: PostCode,
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
    http_request: Request,
):
    """Delete the answer key of a post and its stored file."""
    AnswerKeyService(db).delete(post_code)

    # Audit log
    audit = AuditService(db)
    audit.log(
        action=AuditAction.DATA_DELETED,
        resource_type="answer_key",
        resource_id=post_code.value,
        admin_id=admin.id,
        ip_address=http_request.client.host if http_request.client else None,
    )

    return MessageResponse(message="Answer key deleted successfully")
