"""Bulk upload processing for student rosters, results and OMR archives."""

import logging
import re
import zipfile
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from io import BytesIO
from typing import Any, TypeVar

from openpyxl import load_workbook
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import AppException, ConflictError, UploadError, ValidationError
from app.core.storage import FileStorage
from app.core.validators import normalize_roll_number, roll_number_from_filename
from app.models.student import Student
from app.schemas.result import ResultEntry
from app.schemas.student import StudentCreate
from app.schemas.upload import BulkUploadReport
from app.services.omr import OMRService, check_omr_extension
from app.services.result import ResultService, apply_summary
from app.services.student import StudentService

# Setup debug logger
logger = logging.getLogger(__name__)

T = TypeVar("T")

# Normalized header -> canonical column
HEADER_ALIASES = {
    "rollno": "rollno",
    "rollnumber": "rollno",
    "name": "name",
    "studentname": "name",
    "dob": "dob",
    "dateofbirth": "dob",
    "mobile": "mobile",
    "mobileno": "mobile",
    "mobilenumber": "mobile",
    "postapplied": "postapplied",
    "appliedpost": "postapplied",
    "post": "postapplied",
    "correctanswers": "correctanswers",
    "correct": "correctanswers",
    "wronganswers": "wronganswers",
    "wrong": "wronganswers",
    "unattempted": "unattempted",
    "finalscore": "finalscore",
    "percentage": "percentage",
}

REQUIRED_STUDENT_COLUMNS = ("rollno", "name", "dob", "mobile", "postapplied")

_HEADER_NOISE = re.compile(r"[\s_\-]+")


def normalize_header(value: Any) -> str:
    """Lowercase a header, drop separators and resolve aliases."""
    if value is None:
        return ""
    key = _HEADER_NOISE.sub("", str(value).strip().lower())
    return HEADER_ALIASES.get(key, key)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_spreadsheet(file_content: bytes) -> list[dict[str, Any]]:
    """Parse the first sheet of an Excel file into row dictionaries keyed by normalized header."""
    try:
        workbook = load_workbook(filename=BytesIO(file_content), read_only=True, data_only=True)
    except Exception as e:
        raise UploadError(f"Failed to parse Excel file: {str(e)}")

    try:
        sheet = workbook.active
        if sheet is None:
            raise UploadError("Excel file has no active sheet")

        rows = list(sheet.iter_rows(values_only=True))
    finally:
        workbook.close()

    logger.debug(f"[EXCEL PARSE] Total raw rows in Excel (including header): {len(rows)}")

    if len(rows) < 2:
        raise UploadError("Excel file must have a header row and at least one data row")

    # First row is headers
    headers = [normalize_header(h) for h in rows[0]]
    logger.debug(f"[EXCEL PARSE] Detected headers: {headers}")

    data = []
    skipped_empty_rows = 0
    for row_idx, row in enumerate(rows[1:], start=2):
        row_dict: dict[str, Any] = {"_row": row_idx}
        for i, value in enumerate(row):
            if i < len(headers) and headers[i] and headers[i] not in row_dict:
                row_dict[headers[i]] = value.strip() if isinstance(value, str) else value
        if any(not _is_blank(v) for k, v in row_dict.items() if k != "_row"):
            data.append(row_dict)
        else:
            skipped_empty_rows += 1

    if not data:
        raise UploadError("Excel file must have a header row and at least one data row")

    logger.info(f"[EXCEL PARSE] Summary: {len(data)} data rows extracted, {skipped_empty_rows} empty rows skipped")
    return data


@dataclass
class ArchiveEntry:
    """A file inside an uploaded archive, read on demand."""

    name: str
    archive: zipfile.ZipFile
    info: zipfile.ZipInfo

    def read(self) -> bytes:
        return self.archive.read(self.info)


def open_archive(file_content: bytes) -> zipfile.ZipFile:
    try:
        return zipfile.ZipFile(BytesIO(file_content))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as e:
        raise UploadError(f"Failed to read ZIP file: {str(e)}")


def iter_archive_entries(archive: zipfile.ZipFile) -> Iterator[ArchiveEntry]:
    """Yield every file entry; directories and macOS metadata are skipped."""
    for info in archive.infolist():
        if info.is_dir() or info.filename.startswith("__MACOSX/"):
            continue
        yield ArchiveEntry(name=info.filename, archive=archive, info=info)


def format_schema_errors(error: SchemaValidationError) -> str:
    """Flatten pydantic errors into one readable line."""
    messages = []
    for item in error.errors():
        field = ".".join(str(part) for part in item.get("loc", ()) if part != "__root__")
        message = str(item.get("msg", "invalid value")).removeprefix("Value error, ")
        messages.append(f"{field}: {message}" if field else message)
    return "; ".join(messages)


class BatchReport:
    """Accumulates per-item outcomes; keeps only the first few messages."""

    def __init__(self, max_errors: int | None = None):
        self.max_errors = settings.MAX_REPORTED_ERRORS if max_errors is None else max_errors
        self.total = 0
        self.success_count = 0
        self.error_count = 0
        self.errors: list[str] = []

    def record_success(self) -> None:
        self.total += 1
        self.success_count += 1

    def record_error(self, message: str) -> None:
        self.total += 1
        self.error_count += 1
        if len(self.errors) < self.max_errors:
            self.errors.append(message)

    def to_schema(self, noun: str) -> BulkUploadReport:
        if self.error_count == 0:
            message = f"Successfully processed {self.success_count} {noun}."
        elif self.success_count == 0:
            message = f"All {self.total} {noun} failed."
        else:
            message = (
                f"Partially processed: {self.success_count} successful, "
                f"{self.error_count} failed out of {self.total} {noun}."
            )
        return BulkUploadReport(
            total_items=self.total,
            success_count=self.success_count,
            error_count=self.error_count,
            errors=list(self.errors),
            message=message,
        )


class UploadService:
    """
    Applies bulk uploads item by item against the student collection.

    Every item is validated, matched by roll number and committed on its own.
    A failing item is rolled back, reported and skipped; the batch always runs
    to the end. Only an unreadable upload aborts the request.
    """

    def __init__(self, db: Session, storage: FileStorage | None = None):
        self.db = db
        self.storage = storage or FileStorage()
        self.students = StudentService(db, self.storage)
        self.results = ResultService(db)
        self.omr = OMRService(db, self.storage)

    def _reconcile(
        self,
        tag: str,
        items: Iterable[tuple[str, T]],
        apply: Callable[[T], None],
    ) -> BatchReport:
        report = BatchReport()
        for label, item in items:
            try:
                apply(item)
                self.db.commit()
            except Exception as e:
                self.db.rollback()
                message = self._describe_failure(tag, label, e)
                report.record_error(f"{label}: {message}")
                logger.warning(f"[{tag}] {label} FAILED - {message}")
                continue
            report.record_success()
            logger.debug(f"[{tag}] {label} SUCCESS")

        logger.info(
            f"[{tag}] Complete - Successful: {report.success_count}, "
            f"Failed: {report.error_count}, Total: {report.total}"
        )
        return report

    def _describe_failure(self, tag: str, label: str, error: Exception) -> str:
        if isinstance(error, AppException):
            return error.message
        if isinstance(error, SchemaValidationError):
            return format_schema_errors(error)
        if isinstance(error, SQLAlchemyError):
            logger.exception(f"[{tag}] Database error for {label}")
            return "Database error while saving record"
        logger.exception(f"[{tag}] Unexpected error for {label}")
        return str(error) or error.__class__.__name__

    @staticmethod
    def _row_label(row: dict[str, Any]) -> str:
        raw_roll = row.get("rollno")
        if _is_blank(raw_roll):
            return f"Row {row['_row']}"
        return f"Row {row['_row']} (roll number {str(raw_roll).strip()})"

    @staticmethod
    def _row_key(row: dict[str, Any]) -> str:
        try:
            return normalize_roll_number(row.get("rollno"))
        except ValueError as e:
            raise ValidationError(str(e), details={"column": "rollNo"})

    # ------------------------------------------------------------------
    # Student roster
    # ------------------------------------------------------------------

    def import_students(self, file_content: bytes) -> BulkUploadReport:
        """Create students from a spreadsheet; existing roll numbers are skipped."""
        logger.info(f"[STUDENT UPLOAD] Starting upload, file size: {len(file_content)} bytes")
        rows = parse_spreadsheet(file_content)
        report = self._reconcile(
            "STUDENT UPLOAD",
            ((self._row_label(row), row) for row in rows),
            self._import_student_row,
        )
        return report.to_schema("students")

    def _import_student_row(self, row: dict[str, Any]) -> None:
        missing = [column for column in REQUIRED_STUDENT_COLUMNS if _is_blank(row.get(column))]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                details={"columns": missing},
            )

        request = StudentCreate.model_validate(
            {
                "roll_number": self._row_key(row),
                "name": str(row["name"]),
                "date_of_birth": row["dob"],
                "mobile_number": row["mobile"],
                "applied_post": row["postapplied"],
            }
        )
        self.students.create_student(request)

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def import_results(self, file_content: bytes) -> BulkUploadReport:
        """Set results of existing students from a spreadsheet."""
        logger.info(f"[RESULT UPLOAD] Starting upload, file size: {len(file_content)} bytes")
        rows = parse_spreadsheet(file_content)
        report = self._reconcile(
            "RESULT UPLOAD",
            ((self._row_label(row), row) for row in rows),
            self._import_result_row,
        )
        return report.to_schema("result rows")

    def _import_result_row(self, row: dict[str, Any]) -> None:
        roll_number = self._row_key(row)
        entry = ResultEntry.model_validate(
            {
                "correct_answers": row.get("correctanswers"),
                "wrong_answers": row.get("wronganswers"),
                "unattempted": row.get("unattempted"),
                "final_score": row.get("finalscore"),
                "percentage": row.get("percentage"),
            }
        )
        summary = self.results.normalize_entry(entry)

        student = self.students.find_student(roll_number)
        if student is None:
            raise ConflictError(f"No student found with roll number {roll_number}")

        apply_summary(student, summary)
        self.db.flush()

    # ------------------------------------------------------------------
    # OMR archive
    # ------------------------------------------------------------------

    def import_omr_archive(self, file_content: bytes) -> BulkUploadReport:
        """Attach OMR sheets from a ZIP archive; entry names carry the roll number."""
        logger.info(f"[OMR UPLOAD] Starting upload, file size: {len(file_content)} bytes")
        with open_archive(file_content) as archive:
            entries = list(iter_archive_entries(archive))
            if not entries:
                raise UploadError("ZIP file contains no files")
            logger.info(f"[ZIP EXTRACT] {len(entries)} file entries found")
            report = self._reconcile(
                "OMR UPLOAD",
                ((entry.name, entry) for entry in entries),
                self._import_omr_entry,
            )
        return report.to_schema("OMR files")

    def _import_omr_entry(self, entry: ArchiveEntry) -> None:
        extension = check_omr_extension(entry.name)
        try:
            roll_number = roll_number_from_filename(entry.name)
        except ValueError as e:
            raise ValidationError(str(e))

        student: Student | None = self.students.find_student(roll_number)
        if student is None:
            raise ConflictError(f"No student found with roll number {roll_number}")

        if entry.info.file_size > settings.max_upload_bytes:
            raise ValidationError(
                f"File size exceeds {settings.MAX_UPLOAD_SIZE_MB}MB limit",
                details={"file_name": entry.name, "size": entry.info.file_size},
            )

        content = entry.read()
        if not content:
            raise ValidationError("File is empty")

        relative_path = self.omr.attach(student, extension, content)
        try:
            self.db.commit()
        except Exception:
            self.storage.delete(relative_path)
            raise
