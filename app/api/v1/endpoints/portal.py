"""Student-facing portal endpoints. No admin authentication."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.dependencies import StudentSession
from app.models.student import PostCode
from app.schemas.answer_key import AnswerKeyResponse
from app.schemas.portal import StudentLoginRequest, StudentResultView, StudentSessionResponse
from app.services.answer_key import AnswerKeyService
from app.services.student_access import StudentAccessService

router = APIRouter()


@router.post("/login", response_model=StudentSessionResponse)
def student_login(
    request: StudentLoginRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Log in with roll number and date of birth (or mobile number).

    Returns a session token and whatever is currently visible to the student.
    """
    return StudentAccessService(db).login(request)


@router.get("/me", response_model=StudentResultView)
def get_my_results(roll_number: StudentSession, db: Annotated[Session, Depends(get_db)]):
    """Visible data for the logged-in student, using the current visibility flags."""
    return StudentAccessService(db).current_view(roll_number)


@router.get("/omr")
def get_my_omr_sheet(roll_number: StudentSession, db: Annotated[Session, Depends(get_db)]):
    """Download the logged-in student's OMR sheet while OMR sheets are public."""
    path = StudentAccessService(db).omr_file(roll_number)
    return FileResponse(path, filename=path.name)


@router.get("/answer-keys", response_model=list[AnswerKeyResponse])
def list_published_answer_keys(
    db: Annotated[Session, Depends(get_db)],
    post: PostCode | None = None,
):
    """Published answer keys, optionally for one post."""
    return AnswerKeyService(db).list_published(post)


@router.get("/answer-keys/{post_code}/file")
def download_answer_key(post_code: PostCode, db: Annotated[Session, Depends(get_db)]):
    """Download a published answer key."""
    path, original_name = AnswerKeyService(db).published_file(post_code)
    return FileResponse(path, filename=original_name)
