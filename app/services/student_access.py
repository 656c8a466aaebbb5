"""Student authentication and result visibility."""

import logging
from pathlib import Path

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import AuthenticationError, ForbiddenError, NoDataAvailableError
from app.core.security import create_student_session_token
from app.core.storage import FileStorage
from app.core.validators import digits_only
from app.models.student import Student
from app.schemas.portal import StudentLoginRequest, StudentResultView, StudentSessionResponse
from app.schemas.result import ResultSummary
from app.services.omr import OMRService
from app.services.portal_settings import PortalSettingsService
from app.services.scoring import ScoreNormalizer
from app.services.student import StudentService

logger = logging.getLogger(__name__)

# Same text for unknown roll numbers and wrong secrets
STUDENT_AUTH_FAILED_MESSAGE = "Please check your details and try again."


class StudentAccessService:
    """
    Decides whether a student may see a record and what is visible.

    Identity verification and visibility are separate steps: a student can
    authenticate and still get "no data available" when nothing is public.
    """

    def __init__(self, db: Session, storage: FileStorage | None = None):
        self.db = db
        self.students = StudentService(db, storage)
        self.omr = OMRService(db, storage)
        self.portal_settings = PortalSettingsService(db)
        self.normalizer = ScoreNormalizer()

    def authenticate(self, request: StudentLoginRequest) -> Student:
        """Verify roll number plus date of birth (preferred) or mobile number."""
        student = self.students.find_student(request.roll_number)
        if student is None:
            logger.info(f"[STUDENT AUTH] Failed for {request.roll_number}")
            raise AuthenticationError(STUDENT_AUTH_FAILED_MESSAGE)

        if request.date_of_birth is not None:
            method = "dob"
            authenticated = request.date_of_birth == student.date_of_birth
        else:
            method = "mobile"
            claimed = digits_only(request.mobile_number)
            authenticated = bool(claimed) and claimed == digits_only(student.mobile_number)

        if not authenticated:
            logger.info(f"[STUDENT AUTH] Failed for {request.roll_number} (method={method})")
            raise AuthenticationError(STUDENT_AUTH_FAILED_MESSAGE)

        logger.info(f"[STUDENT AUTH] Authenticated {student.roll_number} (method={method})")
        return student

    def build_view(self, student: Student) -> StudentResultView:
        """
        Visible data for an authenticated student, using the flags as they are now.

        Missing data and hidden data both end in NoDataAvailableError.
        """
        omr_visible = student.has_omr and self.portal_settings.is_omr_public()
        results_visible = student.has_results and self.portal_settings.is_results_public()

        if not omr_visible and not results_visible:
            logger.info(f"[STUDENT AUTH] Nothing visible for {student.roll_number}")
            raise NoDataAvailableError()

        view = StudentResultView(
            roll_number=student.roll_number,
            name=student.name,
            applied_post=student.applied_post,
            omr_available=omr_visible,
            results_available=results_visible,
        )
        if results_visible:
            summary = ResultSummary.model_validate(student.result)
            view.results = summary
            view.breakdown = self.normalizer.breakdown(summary)
        return view

    def login(self, request: StudentLoginRequest) -> StudentSessionResponse:
        student = self.authenticate(request)
        view = self.build_view(student)
        return StudentSessionResponse(
            access_token=create_student_session_token(student.roll_number),
            expires_in=settings.STUDENT_SESSION_EXPIRE_MINUTES * 60,
            view=view,
        )

    def current_view(self, roll_number: str) -> StudentResultView:
        """Re-evaluate visibility for an existing session."""
        student = self.students.find_student(roll_number)
        if student is None:
            raise AuthenticationError(STUDENT_AUTH_FAILED_MESSAGE)
        return self.build_view(student)

    def omr_file(self, roll_number: str) -> Path:
        """OMR sheet of a session's student, if it is public right now."""
        student = self.students.find_student(roll_number)
        if student is None:
            raise AuthenticationError(STUDENT_AUTH_FAILED_MESSAGE)
        if not self.portal_settings.is_omr_public():
            raise ForbiddenError("OMR sheets are not available at this time")
        if not student.has_omr:
            raise NoDataAvailableError()
        return self.omr.file_path(student)
