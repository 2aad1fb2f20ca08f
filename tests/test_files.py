import hashlib
from pathlib import Path

import pytest
from sqlmodel import select

from blazehub.db.models.project_files import ProjectFile
from blazehub.db.models.projects import ProjectCategory
from blazehub.db.models.users import UserRole

CONTENT = b"# Readme\n\nHello BlazeHub\n"


def _upload(client, headers, project_id, *, name="README.md", data=CONTENT, mime="text/markdown", public=False):
    return client.post(
        "/api/files/upload",
        files={"file": (name, data, mime)},
        data={"project_id": str(project_id), "is_public": "true" if public else "false"},
        headers=headers,
    )


@pytest.fixture
def paid_project(make_user, make_project):
    owner = make_user()
    return owner, make_project(owner, name="Paid", category=ProjectCategory.PAID, price=10)


# -----------------------------
# Upload
# -----------------------------
def test_upload_stores_file_and_metadata(client, db, settings, paid_project, auth_headers):
    owner, project = paid_project
    resp = _upload(client, auth_headers(owner), project.id)
    assert resp.status_code == 201
    body = resp.json()
    assert body["projectId"] == project.id
    assert body["fileName"] == "README.md"
    assert body["fileSize"] == len(CONTENT)
    assert body["mimeType"] == "text/markdown"
    assert body["sha256"] == hashlib.sha256(CONTENT).hexdigest()
    assert body["isPublic"] is False

    db.expire_all()
    row = db.get(ProjectFile, body["id"])
    assert row.storage_key.startswith(f"{project.id}/")
    assert (Path(settings.UPLOAD_DIR) / row.storage_key).read_bytes() == CONTENT

    listed = client.get(f"/api/projects/{project.id}/files", headers=auth_headers(owner)).json()
    assert [f["id"] for f in listed["files"]] == [body["id"]]
    assert client.get(f"/api/projects/{project.id}", headers=auth_headers(owner)).json()["fileCount"] == 1


def test_upload_owner_only(client, make_user, paid_project, auth_headers):
    _, project = paid_project
    admin = make_user(role=UserRole.ADMIN)

    resp = _upload(client, auth_headers(admin), project.id)
    assert resp.status_code == 404
    assert resp.json() == {"error": "Project not found or unauthorized"}
    assert _upload(client, auth_headers(admin), 9999).status_code == 404
    assert _upload(client, {}, project.id).status_code == 401


def test_upload_too_large(client, db, settings, paid_project, auth_headers):
    owner, project = paid_project
    big = b"a" * (settings.max_upload_bytes + 1)

    resp = _upload(client, auth_headers(owner), project.id, name="big.txt", data=big, mime="text/plain")
    assert resp.status_code == 413
    assert "1MB" in resp.json()["error"]
    assert db.exec(select(ProjectFile)).all() == []


@pytest.mark.parametrize(
    "name,data,mime",
    [
        ("empty.txt", b"", "text/plain"),
        ("setup.exe", b"MZ\x90\x00binary", "application/x-msdownload"),
    ],
)
def test_upload_rejected_content(client, paid_project, auth_headers, name, data, mime):
    owner, project = paid_project
    assert _upload(client, auth_headers(owner), project.id, name=name, data=data, mime=mime).status_code == 400


def test_upload_sniffs_octet_stream(client, paid_project, auth_headers):
    owner, project = paid_project
    png = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
    resp = _upload(client, auth_headers(owner), project.id, name="logo.png", data=png, mime="application/octet-stream")
    assert resp.status_code == 201
    assert resp.json()["mimeType"] == "image/png"


# -----------------------------
# Download
# -----------------------------
def test_download_requires_purchase(client, make_user, paid_project, auth_headers):
    owner, project = paid_project
    file_id = _upload(client, auth_headers(owner), project.id, name="rapport été.md").json()["id"]
    url = f"/api/files/{file_id}/download"

    assert client.get(url).status_code == 401
    resp = client.get(url, headers=auth_headers(make_user()))
    assert resp.status_code == 403
    assert resp.json() == {"error": "Purchase required"}

    resp = client.get(url, headers=auth_headers(owner))
    assert resp.status_code == 200
    assert resp.content == CONTENT
    assert resp.headers["content-disposition"] == "attachment; filename*=utf-8''rapport%20%C3%A9t%C3%A9.md"


def test_download_after_purchase(client, make_user, paid_project, auth_headers):
    owner, project = paid_project
    buyer = make_user(coin=10)
    file_id = _upload(client, auth_headers(owner), project.id).json()["id"]

    assert client.post(f"/api/projects/{project.id}/purchase", headers=auth_headers(buyer)).status_code == 200
    resp = client.get(f"/api/files/{file_id}/download", headers=auth_headers(buyer))
    assert resp.status_code == 200
    assert resp.content == CONTENT


def test_public_file_and_free_project_are_open(client, make_user, make_project, paid_project, auth_headers):
    owner, project = paid_project
    public_id = _upload(client, auth_headers(owner), project.id, name="preview.md", public=True).json()["id"]
    free = make_project(owner, name="Free")
    free_id = _upload(client, auth_headers(owner), free.id).json()["id"]

    assert client.get(f"/api/files/{public_id}/download").status_code == 200
    assert client.get(f"/api/files/{free_id}/download").status_code == 200


def test_download_redirects_to_signed_url(client, monkeypatch, storage, paid_project, auth_headers):
    owner, project = paid_project
    file_id = _upload(client, auth_headers(owner), project.id).json()["id"]
    monkeypatch.setattr(storage, "signed_url", lambda locator, ttl=None: f"https://cdn.test/{locator}?ttl={ttl}")

    resp = client.get(f"/api/files/{file_id}/download", headers=auth_headers(owner), follow_redirects=False)
    assert resp.status_code == 307
    assert resp.headers["location"].startswith(f"https://cdn.test/{project.id}/")
    assert resp.headers["location"].endswith("?ttl=3600")


def test_download_missing_object(client, settings, db, paid_project, auth_headers):
    owner, project = paid_project
    file_id = _upload(client, auth_headers(owner), project.id).json()["id"]
    row = db.get(ProjectFile, file_id)
    (Path(settings.UPLOAD_DIR) / row.storage_key).unlink()

    assert client.get(f"/api/files/{file_id}/download", headers=auth_headers(owner)).status_code == 404
    assert client.get("/api/files/9999/download").status_code == 404


# -----------------------------
# Suppression
# -----------------------------
def test_delete_file(client, db, settings, make_user, paid_project, auth_headers):
    owner, project = paid_project
    file_id = _upload(client, auth_headers(owner), project.id).json()["id"]
    key = db.get(ProjectFile, file_id).storage_key

    assert client.delete(f"/api/files/{file_id}", headers=auth_headers(make_user())).status_code == 403
    assert client.delete(f"/api/files/{file_id}", headers=auth_headers(owner)).status_code == 204

    db.expire_all()
    assert db.get(ProjectFile, file_id) is None
    assert not (Path(settings.UPLOAD_DIR) / key).exists()


def test_delete_project_removes_stored_files(client, db, settings, paid_project, auth_headers):
    owner, project = paid_project
    file_id = _upload(client, auth_headers(owner), project.id).json()["id"]
    key = db.get(ProjectFile, file_id).storage_key

    resp = client.delete(f"/api/projects/{project.id}", headers=auth_headers(owner))
    assert resp.json()["filesCount"] == 1
    assert not (Path(settings.UPLOAD_DIR) / key).exists()
