"""Student management service."""

import logging
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Font
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError, StorageError, ValidationError
from app.core.storage import FileStorage
from app.core.validators import normalize_roll_number
from app.models.student import Student
from app.schemas.student import (
    PaginatedStudentResponse,
    StudentCreate,
    StudentFilter,
    StudentResponse,
    StudentUpdate,
)

logger = logging.getLogger(__name__)


# Excel template columns for student upload
STUDENT_TEMPLATE_COLUMNS = [
    ("rollNo", "ROLL001", 15),
    ("name", "Jane Doe", 25),
    ("dob", "15/08/2001", 15),
    ("mobile", "9876543210", 15),
    ("postApplied", "DCO", 15),
]


def build_template(columns: list[tuple[str, str, int]], title: str) -> bytes:
    """Excel template with a bold header row and one sample row."""
    wb = Workbook()
    ws = wb.active
    ws.title = title

    for col_idx, (header, sample, width) in enumerate(columns, start=1):
        cell = ws.cell(row=1, column=col_idx, value=header)
        cell.font = Font(bold=True)
        ws.cell(row=2, column=col_idx, value=sample)
        ws.column_dimensions[chr(64 + col_idx)].width = width

    output = BytesIO()
    wb.save(output)
    return output.getvalue()


def lookup_key(roll_number: str) -> str:
    """Normalize a roll number taken from a path or form field."""
    try:
        return normalize_roll_number(roll_number)
    except ValueError as e:
        raise ValidationError(str(e), details={"column": "roll_number"})


class StudentService:
    """Student management service."""

    def __init__(self, db: Session, storage: FileStorage | None = None):
        self.db = db
        self.storage = storage or FileStorage()

    def find_student(self, roll_number: str) -> Student | None:
        """Find by normalized roll number; None when absent."""
        result = self.db.execute(
            select(Student).where(Student.roll_number == lookup_key(roll_number))
        )
        return result.scalar_one_or_none()

    def get_student(self, roll_number: str) -> Student:
        """Get student by roll number."""
        student = self.find_student(roll_number)
        if not student:
            raise NotFoundError("Student", lookup_key(roll_number))
        return student

    def exists(self, roll_number: str) -> bool:
        result = self.db.execute(
            select(func.count()).select_from(Student).where(Student.roll_number == roll_number)
        )
        return (result.scalar() or 0) > 0

    def create_student(self, request: StudentCreate) -> StudentResponse:
        """Create a new student. Existing roll numbers are never overwritten."""
        if self.exists(request.roll_number):
            raise ConflictError(
                f"Student with roll number {request.roll_number} already exists",
                details={"roll_number": request.roll_number},
            )

        student = Student(
            roll_number=request.roll_number,
            name=request.name,
            date_of_birth=request.date_of_birth,
            mobile_number=request.mobile_number,
            applied_post=request.applied_post,
        )
        self.db.add(student)
        self.db.flush()
        self.db.refresh(student)
        logger.info(f"[STUDENT] Created {student.roll_number}")
        return StudentResponse.model_validate(student)

    def update_student(self, roll_number: str, request: StudentUpdate) -> StudentResponse:
        """Update a student."""
        student = self.get_student(roll_number)
        update_data = request.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            if value is None:
                continue
            setattr(student, field, value)
        self.db.flush()
        self.db.refresh(student)
        return StudentResponse.model_validate(student)

    def delete_student(self, roll_number: str) -> None:
        """Delete a student together with the stored OMR sheet."""
        student = self.get_student(roll_number)
        omr_path = student.omr_image_path
        self.db.delete(student)
        self.db.flush()

        if omr_path:
            try:
                self.storage.delete(omr_path)
            except StorageError:
                # The record is gone; an orphaned file must not resurrect it
                logger.warning(f"[STUDENT] Could not delete OMR file {omr_path} of {student.roll_number}")
        logger.info(f"[STUDENT] Deleted {student.roll_number}")

    def list_students(
        self,
        filters: StudentFilter | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> PaginatedStudentResponse:
        """List students with filtering and pagination."""
        query = select(Student)

        if filters:
            if filters.applied_post:
                query = query.where(Student.applied_post == filters.applied_post)
            if filters.is_active is not None:
                query = query.where(Student.is_active == filters.is_active)
            if filters.search:
                search_term = f"%{filters.search}%"
                query = query.where(
                    or_(
                        Student.roll_number.ilike(search_term),
                        Student.name.ilike(search_term),
                    )
                )

        # Get total count
        count_query = select(func.count()).select_from(query.subquery())
        total = self.db.execute(count_query).scalar() or 0

        # Apply pagination
        offset = (page - 1) * page_size
        query = query.order_by(Student.created_at.desc(), Student.roll_number)
        query = query.offset(offset).limit(page_size)

        students = self.db.execute(query).scalars().all()

        return PaginatedStudentResponse(
            items=[StudentResponse.model_validate(s) for s in students],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=(total + page_size - 1) // page_size,
        )

    def generate_template(self) -> bytes:
        """Generate Excel template for student bulk upload."""
        return build_template(STUDENT_TEMPLATE_COLUMNS, "Students")
