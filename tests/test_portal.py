from decimal import Decimal

import pytest

from app.models.portal_setting import SettingKey
from app.services.omr import OMRService
from app.services.portal_settings import PortalSettingsService
from app.services.student_access import STUDENT_AUTH_FAILED_MESSAGE

LOGIN_URL = "/api/v1/portal/login"


@pytest.fixture
def set_flag(db):
    def _set(key: SettingKey, value: bool):
        PortalSettingsService(db).set_flag(key, value)
        db.commit()

    return _set


@pytest.fixture
def student(make_student, give_results):
    student = make_student("ROLL001")
    give_results("ROLL001")
    return student


def login(client, **body):
    return client.post(LOGIN_URL, json={"roll_number": "ROLL001", **body})


class TestStudentLogin:
    def test_unknown_roll_and_wrong_secret_look_the_same(self, client, student, set_flag):
        set_flag(SettingKey.RESULTS_PUBLIC, True)

        unknown = client.post(LOGIN_URL, json={"roll_number": "NOPE", "date_of_birth": "15/05/2000"})
        wrong_dob = login(client, date_of_birth="16/05/2000")
        wrong_mobile = login(client, mobile_number="9999999999")

        assert unknown.status_code == wrong_dob.status_code == wrong_mobile.status_code == 401
        assert unknown.json() == wrong_dob.json() == wrong_mobile.json()
        assert unknown.json()["error"]["message"] == STUDENT_AUTH_FAILED_MESSAGE

    def test_login_with_date_of_birth(self, client, student, set_flag):
        set_flag(SettingKey.RESULTS_PUBLIC, True)

        response = client.post(LOGIN_URL, json={"roll_number": " roll001 ", "date_of_birth": "15-05-2000"})

        assert response.status_code == 200
        view = response.json()["view"]
        assert view["roll_number"] == "ROLL001"
        assert view["results_available"] is True
        assert view["omr_available"] is False
        assert Decimal(view["results"]["percentage"]) == Decimal("77.5")
        assert view["breakdown"]["correct"]["count"] == 80

    def test_login_with_mobile_number(self, client, student, set_flag):
        set_flag(SettingKey.RESULTS_PUBLIC, True)
        response = login(client, mobile_number="98765 43210")
        assert response.status_code == 200

    def test_date_of_birth_wins_over_mobile(self, client, student, set_flag):
        set_flag(SettingKey.RESULTS_PUBLIC, True)
        response = login(client, date_of_birth="16/05/2000", mobile_number="9876543210")
        assert response.status_code == 401

    def test_one_factor_is_required(self, client, student):
        assert login(client).status_code == 422

    def test_invalid_date_is_rejected(self, client, student):
        assert login(client, date_of_birth="29/02/2021").status_code == 422


class TestVisibility:
    def test_hidden_results_look_like_missing_results(self, client, make_student, give_results):
        make_student("ROLL001")
        give_results("ROLL001")
        make_student("ROLL002", mobile_number="9876500000")

        hidden = login(client, date_of_birth="15/05/2000")
        missing = client.post(LOGIN_URL, json={"roll_number": "ROLL002", "date_of_birth": "15/05/2000"})

        assert hidden.status_code == missing.status_code == 404
        assert hidden.json() == missing.json()
        assert hidden.json()["error"]["code"] == "NO_DATA_AVAILABLE"

    def test_hidden_omr_sheet_looks_like_no_data(self, client, db, storage, make_student):
        make_student("ROLL001")
        OMRService(db, storage).upload_single("ROLL001", "scan.jpg", b"omr-bytes")
        db.commit()
        make_student("ROLL002", mobile_number="9876500000")

        hidden = login(client, date_of_birth="15/05/2000")
        missing = client.post(LOGIN_URL, json={"roll_number": "ROLL002", "mobile_number": "9876500000"})

        assert hidden.status_code == missing.status_code == 404
        assert hidden.json() == missing.json()

    def test_flag_flip_applies_to_existing_session(self, client, student, set_flag):
        set_flag(SettingKey.RESULTS_PUBLIC, True)
        token = login(client, date_of_birth="15/05/2000").json()["access_token"]
        headers = {"Authorization": f"Bearer {token}"}
        assert client.get("/api/v1/portal/me", headers=headers).status_code == 200

        set_flag(SettingKey.RESULTS_PUBLIC, False)

        response = client.get("/api/v1/portal/me", headers=headers)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NO_DATA_AVAILABLE"

    def test_omr_sheet_download_follows_flag(self, client, db, storage, student, set_flag):
        OMRService(db, storage).upload_single("ROLL001", "scan.JPG", b"omr-bytes")
        db.commit()
        set_flag(SettingKey.OMR_PUBLIC, True)

        login_response = login(client, date_of_birth="15/05/2000")
        assert login_response.json()["view"]["omr_available"] is True
        headers = {"Authorization": f"Bearer {login_response.json()['access_token']}"}

        response = client.get("/api/v1/portal/omr", headers=headers)
        assert response.status_code == 200
        assert response.content == b"omr-bytes"

        set_flag(SettingKey.OMR_PUBLIC, False)
        assert client.get("/api/v1/portal/omr", headers=headers).status_code == 403

    def test_session_token_is_required(self, client):
        assert client.get("/api/v1/portal/me").status_code == 401
        response = client.get("/api/v1/portal/me", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401
