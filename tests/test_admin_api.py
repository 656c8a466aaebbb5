import io
from decimal import Decimal

from openpyxl import load_workbook

from tests.conftest import build_workbook, build_zip

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

NEW_STUDENT = {
    "roll_number": "roll001",
    "name": "Asha Verma",
    "date_of_birth": "15/05/2000",
    "mobile_number": "98765 43210",
    "applied_post": "dcp",
}


def test_admin_endpoints_require_token(client):
    response = client.get("/api/v1/students")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_FAILED"


def test_admin_login_rejects_wrong_password(client, admin_headers):
    response = client.post("/api/v1/auth/login", json={"username": "admin", "password": "wrong-password"})
    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Invalid username or password"


def test_refresh_and_me(client, admin_headers, db):
    tokens = client.post(
        "/api/v1/auth/login", json={"username": "admin", "password": "admin-password"}
    ).json()
    refreshed = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 200

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {refreshed.json()['access_token']}"})
    assert me.json()["username"] == "admin"


class TestStudentCrud:
    def test_create_get_update_delete(self, client, admin_headers):
        created = client.post("/api/v1/students", headers=admin_headers, json=NEW_STUDENT)
        assert created.status_code == 201
        body = created.json()
        assert body["roll_number"] == "ROLL001"
        assert body["mobile_number"] == "9876543210"
        assert body["date_of_birth"] == "2000-05-15"
        assert body["has_results"] is False

        duplicate = client.post("/api/v1/students", headers=admin_headers, json=NEW_STUDENT)
        assert duplicate.status_code == 409

        fetched = client.get("/api/v1/students/Roll001", headers=admin_headers)
        assert fetched.json()["name"] == "Asha Verma"

        updated = client.patch(
            "/api/v1/students/ROLL001",
            headers=admin_headers,
            json={"name": "Asha V.", "applied_post": "SFO"},
        )
        assert updated.json()["name"] == "Asha V."
        assert updated.json()["applied_post"] == "SFO"

        assert client.delete("/api/v1/students/ROLL001", headers=admin_headers).status_code == 200
        assert client.get("/api/v1/students/ROLL001", headers=admin_headers).status_code == 404

    def test_invalid_student_is_rejected(self, client, admin_headers):
        response = client.post(
            "/api/v1/students",
            headers=admin_headers,
            json={**NEW_STUDENT, "date_of_birth": "31/04/2001"},
        )
        assert response.status_code == 422

    def test_roll_number_with_path_separator_is_rejected(self, client, admin_headers):
        response = client.post(
            "/api/v1/students",
            headers=admin_headers,
            json={**NEW_STUDENT, "roll_number": "../../../escape"},
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_list_filters_by_post(self, client, admin_headers, make_student):
        from app.models.student import PostCode

        make_student("ROLL001")
        make_student("ROLL002", applied_post=PostCode.SFO)

        response = client.get("/api/v1/students", headers=admin_headers, params={"applied_post": "SFO"})

        assert response.json()["total"] == 1
        assert response.json()["items"][0]["roll_number"] == "ROLL002"

    def test_delete_student_removes_omr_sheet(self, client, admin_headers, make_student, upload_dir):
        make_student("ROLL001")
        client.post(
            "/api/v1/omr",
            headers=admin_headers,
            data={"roll_number": "ROLL001"},
            files={"file": ("sheet.png", b"png", "image/png")},
        )
        assert (upload_dir / "omr" / "omr_ROLL001.png").exists()

        client.delete("/api/v1/students/ROLL001", headers=admin_headers)

        assert not (upload_dir / "omr" / "omr_ROLL001.png").exists()


class TestResults:
    def test_set_and_clear_results(self, client, admin_headers, make_student):
        make_student("ROLL001")
        url = "/api/v1/students/ROLL001/results"

        invalid = client.put(
            url,
            headers=admin_headers,
            json={"correct_answers": 80, "wrong_answers": 10, "unattempted": 5, "final_score": 155},
        )
        assert invalid.status_code == 422
        assert invalid.json()["error"]["code"] == "VALIDATION_ERROR"
        assert client.get(url, headers=admin_headers).status_code == 404

        stored = client.put(
            url,
            headers=admin_headers,
            json={"correct_answers": 80, "wrong_answers": 10, "unattempted": 10, "final_score": 155},
        )
        assert stored.status_code == 200
        assert Decimal(stored.json()["results"]["percentage"]) == Decimal("77.5")
        assert client.get("/api/v1/students/ROLL001", headers=admin_headers).json()["has_results"] is True

        assert client.delete(url, headers=admin_headers).status_code == 200
        assert client.delete(url, headers=admin_headers).status_code == 200
        assert client.get(url, headers=admin_headers).status_code == 404
        assert client.get("/api/v1/students/ROLL001", headers=admin_headers).json()["has_results"] is False

        client.put(
            url,
            headers=admin_headers,
            json={"correct_answers": 100, "final_score": 200},
        )
        assert client.delete(url, headers=admin_headers).status_code == 200
        assert client.get("/api/v1/students/ROLL001", headers=admin_headers).json()["has_results"] is False

    def test_out_of_range_scores_are_rejected(self, client, admin_headers, make_student):
        make_student("ROLL001")
        url = "/api/v1/students/ROLL001/results"
        counts = {"correct_answers": 80, "wrong_answers": 10, "unattempted": 10}

        for body in ({"final_score": 155, "percentage": 123456}, {"final_score": 1000000}, {"final_score": 201}):
            response = client.put(url, headers=admin_headers, json={**counts, **body})
            assert response.status_code == 422, body
            assert response.json()["error"]["code"] == "VALIDATION_ERROR"

        assert client.get(url, headers=admin_headers).status_code == 404

    def test_results_for_unknown_student(self, client, admin_headers):
        response = client.put(
            "/api/v1/students/NOPE/results",
            headers=admin_headers,
            json={"correct_answers": 100, "final_score": 200},
        )
        assert response.status_code == 404


class TestBulkUploads:
    def test_student_upload(self, client, admin_headers):
        content = build_workbook(
            ["rollNo", "name", "dob", "mobile", "postApplied"],
            [["ROLL001", "Asha", "15/05/2000", "9876543210", "DCP"], ["ROLL002", "Ravi", "bad", "9876543211", "DCP"]],
        )

        response = client.post(
            "/api/v1/students/upload",
            headers=admin_headers,
            files={"file": ("students.xlsx", content, XLSX)},
        )

        body = response.json()
        assert response.status_code == 200
        assert body["success_count"] == 1
        assert body["error_count"] == 1
        assert body["errors"][0].startswith("Row 3 (roll number ROLL002)")

    def test_wrong_file_type_is_rejected(self, client, admin_headers):
        response = client.post(
            "/api/v1/students/upload",
            headers=admin_headers,
            files={"file": ("students.csv", b"rollNo,name", "text/csv")},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "UPLOAD_FAILED"

    def test_results_upload(self, client, admin_headers, make_student):
        make_student("ROLL001")
        content = build_workbook(
            ["rollNo", "correctAnswers", "wrongAnswers", "unattempted", "finalScore", "percentage"],
            [["ROLL001", 80, 10, 10, 155, None]],
        )

        response = client.post(
            "/api/v1/results/upload",
            headers=admin_headers,
            files={"file": ("results.xlsx", content, XLSX)},
        )

        assert response.json()["success_count"] == 1
        results = client.get("/api/v1/students/ROLL001/results", headers=admin_headers).json()
        assert Decimal(results["results"]["final_score"]) == Decimal("155")

    def test_omr_archive_upload(self, client, admin_headers, make_student):
        make_student("ROLL123")

        response = client.post(
            "/api/v1/omr/upload",
            headers=admin_headers,
            files={"file": ("sheets.zip", build_zip({"1_ROLL123.jpg": b"jpg"}), "application/zip")},
        )

        assert response.json()["success_count"] == 1
        sheet = client.get("/api/v1/omr/ROLL123/file", headers=admin_headers)
        assert sheet.content == b"jpg"

        assert client.delete("/api/v1/omr/ROLL123", headers=admin_headers).status_code == 200
        assert client.delete("/api/v1/omr/ROLL123", headers=admin_headers).status_code == 404

    def test_templates(self, client, admin_headers):
        response = client.get("/api/v1/students/template", headers=admin_headers)
        sheet = load_workbook(io.BytesIO(response.content)).active
        assert [cell.value for cell in sheet[1]] == ["rollNo", "name", "dob", "mobile", "postApplied"]

        response = client.get("/api/v1/results/template", headers=admin_headers)
        sheet = load_workbook(io.BytesIO(response.content)).active
        assert sheet["A1"].value == "rollNo"


def test_visibility_settings_and_dashboard(client, admin_headers, make_student, give_results):
    make_student("ROLL001")
    give_results("ROLL001")

    response = client.put(
        "/api/v1/settings/visibility", headers=admin_headers, json={"results_public": True}
    )
    assert response.json() == {"omr_public": False, "results_public": True}

    dashboard = client.get("/api/v1/dashboard", headers=admin_headers).json()
    assert dashboard["total_students"] == 1
    assert dashboard["students_with_results"] == 1
    assert dashboard["visibility"]["results_public"] is True
    dcp = next(post for post in dashboard["posts"] if post["post_code"] == "DCP")
    assert dcp["with_results"] == 1


def test_mutations_are_audited(client, admin_headers):
    client.post("/api/v1/students", headers=admin_headers, json=NEW_STUDENT)

    logs = client.get(
        "/api/v1/audit-logs", headers=admin_headers, params={"action": "DATA_CREATED"}
    ).json()

    assert logs["total"] == 1
    assert logs["items"][0]["resource_id"] == "ROLL001"
