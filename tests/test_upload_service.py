from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from app.core.config import settings
from app.core.exceptions import UploadError
from app.models.student import PostCode
from app.services.student import StudentService
from app.services.upload import UploadService, normalize_header, parse_spreadsheet
from tests.conftest import build_workbook, build_zip

STUDENT_HEADERS = ["Roll No", "Name", "DOB", "Mobile", "Post Applied"]
RESULT_HEADERS = ["rollNo", "correctAnswers", "wrongAnswers", "unattempted", "finalScore"]


@pytest.fixture
def uploads(db, storage):
    return UploadService(db, storage)


def test_headers_are_normalized():
    assert normalize_header(" Roll No ") == "rollno"
    assert normalize_header("Date of Birth") == "dob"
    assert normalize_header("post_applied") == "postapplied"
    assert normalize_header(None) == ""


def test_spreadsheet_without_data_rows_is_rejected():
    with pytest.raises(UploadError):
        parse_spreadsheet(build_workbook(STUDENT_HEADERS, []))
    with pytest.raises(UploadError):
        parse_spreadsheet(b"not a workbook")


def test_blank_rows_are_skipped():
    content = build_workbook(
        STUDENT_HEADERS,
        [["R1", "A", "01/01/2000", "9876543210", "DCP"], [None, None, None, None, None]],
    )
    rows = parse_spreadsheet(content)
    assert len(rows) == 1
    assert rows[0]["_row"] == 2


class TestStudentImport:
    def test_valid_rows_are_saved_and_bad_rows_reported(self, db, uploads):
        content = build_workbook(
            STUDENT_HEADERS,
            [
                ["ROLL001", "Asha Verma", "15/05/2000", 9876543210, "DCP"],
                ["ROLL001", "Duplicate", "16/05/2000", 9876543211, "DCO"],
                ["ROLL003", "Bad Date", "30/02/2020", 9876543212, "FCD"],
                ["ROLL004", "No Mobile", "01-01-1999", None, "LFM"],
                [" roll005 ", "Ravi Kumar", "01-12-1998", "98765-43213", "sfo"],
            ],
        )

        report = uploads.import_students(content)

        assert report.total_items == 5
        assert report.success_count == 2
        assert report.error_count == 3
        assert report.errors[0] == (
            "Row 3 (roll number ROLL001): Student with roll number ROLL001 already exists"
        )
        assert "Invalid date" in report.errors[1]
        assert "Missing required fields: mobile" in report.errors[2]

        students = StudentService(db)
        assert students.get_student("ROLL001").name == "Asha Verma"
        saved = students.get_student("roll005")
        assert saved.roll_number == "ROLL005"
        assert saved.mobile_number == "9876543213"
        assert saved.applied_post is PostCode.SFO
        assert students.find_student("ROLL003") is None

    def test_existing_students_are_never_overwritten(self, db, uploads, make_student):
        make_student("ROLL001", name="Original")
        content = build_workbook(
            STUDENT_HEADERS, [["ROLL001", "Replacement", "15/05/2000", 9876543210, "DCP"]]
        )

        report = uploads.import_students(content)

        assert report.success_count == 0
        assert report.message == "All 1 students failed."
        db.expire_all()
        assert StudentService(db).get_student("ROLL001").name == "Original"

    def test_error_list_is_capped(self, uploads):
        rows = [[f"R{i}", "Name", "99/99/2000", 9876543210, "DCP"] for i in range(15)]

        report = uploads.import_students(build_workbook(STUDENT_HEADERS, rows))

        assert report.error_count == 15
        assert len(report.errors) == 10


class TestResultImport:
    def test_results_are_applied_to_existing_students(self, db, uploads, make_student):
        make_student("ROLL001")
        make_student("ROLL002", mobile_number="9876500000")
        content = build_workbook(
            RESULT_HEADERS,
            [
                ["ROLL001", 80, 10, 10, 155],
                ["ROLL404", 80, 10, 10, 155],
                ["ROLL001", 80, 10, 5, 150],
                ["roll002", 80, 20, None, 150],
            ],
        )

        report = uploads.import_results(content)

        assert report.success_count == 2
        assert report.error_count == 2
        assert "No student found with roll number ROLL404" in report.errors[0]
        assert "must total 100 questions (got 95)" in report.errors[1]

        db.expire_all()
        first = StudentService(db).get_student("ROLL001").result
        assert first.final_score == Decimal("155.00")
        assert first.percentage == Decimal("77.50")
        second = StudentService(db).get_student("ROLL002").result
        assert second.unattempted == 0
        assert second.percentage == Decimal("75.00")

    def test_missing_final_score_is_reported(self, uploads, make_student):
        make_student("ROLL001")
        report = uploads.import_results(build_workbook(RESULT_HEADERS, [["ROLL001", 80, 10, 10, None]]))
        assert report.errors == ["Row 2 (roll number ROLL001): Final score is required"]

    def test_out_of_range_scores_are_reported(self, db, uploads, make_student):
        make_student("ROLL001")
        content = build_workbook(
            RESULT_HEADERS + ["percentage"],
            [["ROLL001", 80, 10, 10, 155, 150], ["ROLL001", 80, 10, 10, 250, None]],
        )

        report = uploads.import_results(content)

        assert report.error_count == 2
        assert report.errors[0].startswith("Row 2 (roll number ROLL001): percentage:")
        assert report.errors[1] == "Row 3 (roll number ROLL001): Final score cannot exceed 200"
        db.expire_all()
        assert StudentService(db).get_student("ROLL001").result is None

    def test_database_failure_on_one_row_does_not_block_the_next(
        self, db, uploads, make_student, monkeypatch
    ):
        make_student("ROLL001")
        make_student("ROLL002", mobile_number="9876500000")
        real_commit = db.commit
        calls = []

        def commit_failing_once():
            calls.append(1)
            if len(calls) == 1:
                raise OperationalError("COMMIT", {}, Exception("database is locked"))
            real_commit()

        monkeypatch.setattr(db, "commit", commit_failing_once)
        content = build_workbook(
            RESULT_HEADERS, [["ROLL001", 80, 10, 10, 155], ["ROLL002", 80, 10, 10, 150]]
        )

        report = uploads.import_results(content)

        assert report.success_count == 1
        assert report.error_count == 1
        assert report.errors == ["Row 2 (roll number ROLL001): Database error while saving record"]
        db.expire_all()
        assert StudentService(db).get_student("ROLL001").result is None
        assert StudentService(db).get_student("ROLL002").result.final_score == Decimal("150.00")


class TestOMRArchiveImport:
    def test_entries_are_matched_by_file_name(self, db, uploads, make_student, upload_dir):
        make_student("ROLL123")
        make_student("ROLL124", mobile_number="9876500001")
        archive = build_zip(
            {
                "7_ROLL123.jpg": b"sheet-123",
                "scans/roll124.png": b"sheet-124",
                "ROLL999.jpg": b"orphan",
                "notes.txt": b"readme",
                "__MACOSX/._ROLL123.jpg": b"metadata",
            }
        )

        report = uploads.import_omr_archive(archive)

        assert report.total_items == 4
        assert report.success_count == 2
        assert any("ROLL999" in error for error in report.errors)
        assert any(error.startswith("notes.txt: Unsupported file format") for error in report.errors)

        assert (upload_dir / "omr" / "omr_ROLL123.jpg").read_bytes() == b"sheet-123"
        db.expire_all()
        assert StudentService(db).get_student("ROLL124").omr_image_path == "omr/omr_ROLL124.png"

    def test_new_upload_replaces_previous_file(self, db, uploads, make_student, upload_dir):
        make_student("ROLL123")
        uploads.import_omr_archive(build_zip({"ROLL123.png": b"first"}))

        report = uploads.import_omr_archive(build_zip({"ROLL123.pdf": b"second"}))

        assert report.success_count == 1
        assert not (upload_dir / "omr" / "omr_ROLL123.png").exists()
        assert (upload_dir / "omr" / "omr_ROLL123.pdf").read_bytes() == b"second"

    def test_empty_archive_is_rejected(self, uploads):
        with pytest.raises(UploadError):
            uploads.import_omr_archive(build_zip({}))
        with pytest.raises(UploadError):
            uploads.import_omr_archive(b"not a zip")

    def test_oversized_entry_is_rejected(self, uploads, make_student, upload_dir, monkeypatch):
        monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 1)
        make_student("ROLL123")
        make_student("ROLL124", mobile_number="9876500001")
        archive = build_zip(
            {"ROLL123.jpg": b"x" * (2 * 1024 * 1024), "ROLL124.jpg": b"sheet-124"}
        )

        report = uploads.import_omr_archive(archive)

        assert report.success_count == 1
        assert report.errors == ["ROLL123.jpg: File size exceeds 1MB limit"]
        assert not (upload_dir / "omr" / "omr_ROLL123.jpg").exists()
        assert (upload_dir / "omr" / "omr_ROLL124.jpg").read_bytes() == b"sheet-124"

    def test_unreadable_entry_does_not_block_later_entries(self, db, uploads, make_student, upload_dir):
        make_student("ROLL123")
        make_student("ROLL124", mobile_number="9876500001")
        archive = build_zip({"ROLL123.jpg": b"FIRST-SHEET-CONTENT", "ROLL124.jpg": b"sheet-124"})
        # Stored entries keep their bytes verbatim; same-length edit breaks the CRC
        archive = archive.replace(b"FIRST-SHEET-CONTENT", b"FIRST-SHEET-CORRUPT")

        report = uploads.import_omr_archive(archive)

        assert report.success_count == 1
        assert report.error_count == 1
        assert report.errors[0].startswith("ROLL123.jpg: ")
        assert not (upload_dir / "omr" / "omr_ROLL123.jpg").exists()
        db.expire_all()
        assert StudentService(db).get_student("ROLL124").omr_image_path == "omr/omr_ROLL124.jpg"
