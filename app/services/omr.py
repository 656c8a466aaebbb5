"""OMR sheet management service."""

import logging
from pathlib import Path

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import NotFoundError, StorageError, ValidationError
from app.core.storage import OMR_CATEGORY, OMR_PREFIX, FileStorage, stored_file_name
from app.core.validators import file_extension
from app.models.student import Student
from app.services.student import StudentService

logger = logging.getLogger(__name__)


def check_omr_extension(filename: str) -> str:
    extension = file_extension(filename)
    if extension not in settings.OMR_EXTENSIONS:
        raise ValidationError(
            f"Unsupported file format '{extension or filename}'. Allowed: {', '.join(settings.OMR_EXTENSIONS)}",
            details={"file_name": filename},
        )
    return extension


class OMRService:
    """Stores one scanned answer sheet per student."""

    def __init__(self, db: Session, storage: FileStorage | None = None):
        self.db = db
        self.storage = storage or FileStorage()
        self.students = StudentService(db, self.storage)

    def attach(self, student: Student, extension: str, content: bytes) -> str:
        """
        Replace the student's OMR file and record the new path.

        The previously recorded file is removed before the new one is written.
        If the record cannot be updated the new file is removed again.
        """
        if student.omr_image_path:
            self.storage.delete(student.omr_image_path)
            student.omr_image_path = None

        file_name = stored_file_name(OMR_PREFIX, student.roll_number, extension)
        relative_path = self.storage.save(OMR_CATEGORY, file_name, content)
        try:
            student.omr_image_path = relative_path
            self.db.flush()
        except Exception:
            self.storage.delete(relative_path)
            raise
        return relative_path

    def upload_single(self, roll_number: str, filename: str, content: bytes) -> Student:
        """Upload the OMR sheet of one existing student."""
        extension = check_omr_extension(filename)
        student = self.students.get_student(roll_number)
        self.attach(student, extension, content)
        logger.info(f"[OMR] Stored OMR sheet for {student.roll_number}")
        return student

    def delete(self, roll_number: str) -> None:
        """Remove the stored sheet and unset the path; the student stays."""
        student = self.students.get_student(roll_number)
        if not student.has_omr:
            raise NotFoundError("OMR sheet", student.roll_number)
        try:
            self.storage.delete(student.omr_image_path)
        except StorageError:
            logger.warning(f"[OMR] Could not delete file {student.omr_image_path}; unsetting path anyway")
        student.omr_image_path = None
        self.db.flush()
        logger.info(f"[OMR] Deleted OMR sheet for {student.roll_number}")

    def file_path(self, student: Student) -> Path:
        """Absolute path of the student's sheet."""
        if not student.has_omr or not self.storage.exists(student.omr_image_path):
            raise NotFoundError("OMR sheet", student.roll_number)
        return self.storage.resolve(student.omr_image_path)
