import pytest

PDF = ("key.pdf", b"%PDF-answers", "application/pdf")


@pytest.fixture
def upload_key(client, admin_headers):
    def _upload(post_code="DCP", file=PDF, is_published=False):
        return client.post(
            "/api/v1/answer-keys",
            headers=admin_headers,
            data={"post_code": post_code, "is_published": str(is_published).lower()},
            files={"file": file},
        )

    return _upload


def test_unpublished_keys_are_not_public(client, upload_key):
    response = upload_key()
    assert response.status_code == 201
    assert response.json()["is_published"] is False

    assert client.get("/api/v1/portal/answer-keys").json() == []
    assert client.get("/api/v1/portal/answer-keys/DCP/file").status_code == 404


def test_published_key_can_be_downloaded(client, admin_headers, upload_key):
    upload_key()
    response = client.put(
        "/api/v1/answer-keys/DCP/publish", headers=admin_headers, json={"is_published": True}
    )
    assert response.json()["is_published"] is True

    listed = client.get("/api/v1/portal/answer-keys", params={"post": "DCP"}).json()
    assert [key["post_code"] for key in listed] == ["DCP"]

    download = client.get("/api/v1/portal/answer-keys/DCP/file")
    assert download.status_code == 200
    assert download.content == b"%PDF-answers"
    assert "key.pdf" in download.headers["content-disposition"]


def test_reupload_replaces_file(upload_key, upload_dir):
    upload_key()
    response = upload_key(file=("key.png", b"png-answers", "image/png"), is_published=True)

    assert response.status_code == 201
    assert response.json()["original_file_name"] == "key.png"
    assert not (upload_dir / "answer-keys" / "answer_key_DCP.pdf").exists()
    assert (upload_dir / "answer-keys" / "answer_key_DCP.png").read_bytes() == b"png-answers"


def test_publish_all_reports_changed_count(client, admin_headers, upload_key):
    upload_key("DCP")
    upload_key("SFO")
    upload_key("WLO", is_published=True)

    response = client.put(
        "/api/v1/answer-keys/publish-all", headers=admin_headers, json={"is_published": True}
    )

    assert response.json()["updated"] == 2
    assert len(client.get("/api/v1/portal/answer-keys").json()) == 3


def test_unsupported_file_is_rejected(upload_key):
    response = upload_key(file=("key.docx", b"doc", "application/octet-stream"))
    assert response.status_code == 400


def test_delete_removes_file(client, admin_headers, upload_key, upload_dir):
    upload_key()
    response = client.delete("/api/v1/answer-keys/DCP", headers=admin_headers)

    assert response.status_code == 200
    assert not (upload_dir / "answer-keys" / "answer_key_DCP.pdf").exists()
    assert client.get("/api/v1/answer-keys", headers=admin_headers).json() == []
