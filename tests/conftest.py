"""Shared fixtures: in-memory SQLite database, temp upload dir and API clients."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-secret"

import io
import zipfile
from datetime import date

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook

import app.models  # noqa: F401
from app.core.config import settings
from app.core.database import Base, SessionLocal, engine
from app.core.storage import FileStorage
from app.main import app as fastapi_app
from app.models.student import PostCode, Student
from app.schemas.result import ResultEntry
from app.services.auth import AuthService
from app.services.result import ResultService

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin-password"


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", path)
    return path


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def storage(upload_dir):
    return FileStorage(upload_dir)


@pytest.fixture
def client():
    return TestClient(fastapi_app)


@pytest.fixture
def admin_headers(client, db):
    AuthService(db).create_or_reset_admin(ADMIN_USERNAME, ADMIN_PASSWORD, "Exam Admin")
    db.commit()
    response = client.post(
        "/api/v1/auth/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def make_student(db):
    """Insert a committed student and return it."""

    def _make(
        roll_number="ROLL001",
        name="Asha Verma",
        date_of_birth=date(2000, 5, 15),
        mobile_number="9876543210",
        applied_post=PostCode.DCP,
        **extra,
    ) -> Student:
        student = Student(
            roll_number=roll_number,
            name=name,
            date_of_birth=date_of_birth,
            mobile_number=mobile_number,
            applied_post=applied_post,
            **extra,
        )
        db.add(student)
        db.commit()
        return student

    return _make


@pytest.fixture
def give_results(db):
    """Attach a result summary (80/10/10, score 155) to an existing student."""

    def _give(roll_number="ROLL001", **values):
        entry = ResultEntry(
            correct_answers=values.get("correct_answers", 80),
            wrong_answers=values.get("wrong_answers", 10),
            unattempted=values.get("unattempted", 10),
            final_score=values.get("final_score", 155),
        )
        response = ResultService(db).set_results(roll_number, entry)
        db.commit()
        return response

    return _give


def build_workbook(headers: list, rows: list[list]) -> bytes:
    """Serialize a one-sheet workbook."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(headers)
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def build_zip(files: dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return buffer.getvalue()
