from datetime import date, datetime, timezone

from app.core.config import settings
from app.services.activation import ActivationService
from app.services.student import StudentService

RUN_DATE = date(2026, 10, 19)


def test_day_bounds_follow_portal_timezone(db, monkeypatch):
    monkeypatch.setattr(settings, "SCHEDULER_TIMEZONE", "Asia/Kolkata")
    start, end = ActivationService(db).day_bounds(RUN_DATE)
    assert start == datetime(2026, 10, 18, 18, 30, tzinfo=timezone.utc)
    assert end == datetime(2026, 10, 19, 18, 30, tzinfo=timezone.utc)


def test_only_todays_students_stay_active(db, make_student, monkeypatch):
    monkeypatch.setattr(settings, "SCHEDULER_TIMEZONE", "Asia/Kolkata")
    make_student("OLD", created_at=datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc))
    make_student(
        "TODAY_INACTIVE",
        created_at=datetime(2026, 10, 19, 3, 0, tzinfo=timezone.utc),
        is_active=False,
    )
    # 00:30 IST on the run date
    make_student("JUST_AFTER_MIDNIGHT", created_at=datetime(2026, 10, 18, 19, 0, tzinfo=timezone.utc))

    summary = ActivationService(db).run_daily_activation(RUN_DATE)
    db.commit()

    assert summary.deactivated == 1
    assert summary.activated == 1
    assert summary.created_today == 2
    assert summary.active_students == 2
    assert summary.inactive_students == 1

    students = StudentService(db)
    assert students.get_student("OLD").is_active is False
    assert students.get_student("TODAY_INACTIVE").is_active is True
    assert students.get_student("JUST_AFTER_MIDNIGHT").is_active is True


def test_activation_endpoint(client, admin_headers, make_student):
    make_student("OLD", created_at=datetime(2020, 1, 1, tzinfo=timezone.utc))

    response = client.post(
        "/api/v1/activation/run", headers=admin_headers, params={"run_date": "2026-10-19"}
    )

    assert response.status_code == 200
    assert response.json()["deactivated"] == 1
