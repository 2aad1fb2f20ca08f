from pathlib import Path

import pytest
from sqlmodel import select

from blazehub.db.models.projects import ProjectCategory
from blazehub.db.models.purchases import Purchase
from blazehub.db.models.repository_caches import RepositoryCache
from blazehub.features.github.services import parse_github_repo

RAW = "https://raw.githubusercontent.com"


@pytest.fixture
def linked_project(make_user, make_project):
    owner = make_user()
    project = make_project(
        owner, name="Kit", category=ProjectCategory.PAID, price=10, github_repo="https://github.com/acme/kit.git"
    )
    return owner, project


@pytest.fixture
def kit_repo(github_stub):
    github_stub.routes["/repos/acme/kit/contents"] = (
        200,
        [
            {"name": "README.md", "path": "README.md", "type": "file", "size": 7,
             "download_url": f"{RAW}/acme/kit/main/README.md"},
            {"name": "main.py", "path": "main.py", "type": "file", "size": 12,
             "download_url": f"{RAW}/acme/kit/main/main.py"},
            {"name": "src", "path": "src", "type": "dir", "size": 0, "download_url": None},
        ],
    )
    github_stub.routes["/acme/kit/main/README.md"] = (200, b"# Kit\n")
    github_stub.routes["/acme/kit/main/main.py"] = (200, b"print('kit')\n")
    return github_stub


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://github.com/acme/kit.git", ("acme", "kit")),
        ("https://github.com/acme/kit/tree/main", ("acme", "kit")),
        ("http://www.github.com/acme/kit/", ("acme", "kit")),
        ("https://gitlab.com/acme/kit", None),
    ],
)
def test_parse_github_repo(url, expected):
    assert parse_github_repo(url) == expected


def test_sync_rules(client, make_user, make_project, auth_headers, linked_project):
    owner, project = linked_project
    stranger = make_user()
    assert client.post(f"/api/projects/{project.id}/sync-repo").status_code == 401

    resp = client.post(f"/api/projects/{project.id}/sync-repo", headers=auth_headers(stranger))
    assert resp.status_code == 403
    assert resp.json() == {"error": "Only project owner can sync repository"}

    bare = make_project(owner, name="Bare")
    resp = client.post(f"/api/projects/{bare.id}/sync-repo", headers=auth_headers(owner))
    assert resp.status_code == 400
    assert resp.json() == {"error": "No GitHub repository linked"}

    odd = make_project(owner, name="Odd", github_repo="https://example.com/acme/kit")
    resp = client.post(f"/api/projects/{odd.id}/sync-repo", headers=auth_headers(owner))
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid GitHub repository URL"}

    assert client.post("/api/projects/9999/sync-repo", headers=auth_headers(owner)).status_code == 404


def test_sync_stores_files_and_indexes_them(client, db, settings, auth_headers, linked_project, kit_repo):
    owner, project = linked_project
    resp = client.post(f"/api/projects/{project.id}/sync-repo", headers=auth_headers(owner))
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Repository synced successfully", "filesCount": 3}
    assert kit_repo.requests[0].headers["authorization"] == "Bearer server-token"

    cache = db.exec(select(RepositoryCache)).one()
    assert (cache.owner, cache.repo, cache.is_private) == ("acme", "kit", True)
    stored = {f["path"]: f.get("storage_key") for f in cache.files}
    assert stored["src"] is None
    assert stored["main.py"].startswith(f"{project.id}/repository/")
    assert (Path(settings.UPLOAD_DIR) / stored["main.py"]).read_bytes() == b"print('kit')\n"


def test_sync_skips_unreadable_files(client, db, auth_headers, linked_project, kit_repo):
    owner, project = linked_project
    del kit_repo.routes["/acme/kit/main/README.md"]

    resp = client.post(f"/api/projects/{project.id}/sync-repo", headers=auth_headers(owner))
    assert resp.json()["filesCount"] == 2


def test_resync_replaces_previous_copy(client, db, settings, auth_headers, linked_project, kit_repo):
    owner, project = linked_project
    headers = auth_headers(owner)
    client.post(f"/api/projects/{project.id}/sync-repo", headers=headers)
    db.expire_all()
    first = [f["storage_key"] for f in db.exec(select(RepositoryCache)).one().files if f.get("storage_key")]

    client.post(f"/api/projects/{project.id}/sync-repo", headers=headers)
    db.expire_all()
    assert len(db.exec(select(RepositoryCache)).all()) == 1
    assert not any((Path(settings.UPLOAD_DIR) / key).exists() for key in first)


def test_sync_upstream_failure(client, auth_headers, linked_project):
    owner, project = linked_project
    resp = client.post(f"/api/projects/{project.id}/sync-repo", headers=auth_headers(owner))
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to fetch repository"}


def test_cached_files_access(client, db, make_user, auth_headers, linked_project, kit_repo):
    owner, project = linked_project
    url = f"/api/projects/{project.id}/cached-files"
    assert client.get(url, headers=auth_headers(owner)).json() == {"error": "Repository not cached"}

    client.post(f"/api/projects/{project.id}/sync-repo", headers=auth_headers(owner))

    stranger = make_user()
    resp = client.get(url, headers=auth_headers(stranger))
    assert resp.status_code == 403
    assert resp.json() == {"error": "Access denied"}

    db.add(Purchase(user_id=stranger.id, project_id=project.id))
    db.commit()
    body = client.get(url, headers=auth_headers(stranger)).json()
    assert body["isPrivate"] is True
    assert "lastSync" in body
    assert {f["path"] for f in body["files"]} == {"README.md", "main.py", "src"}
    assert "storageKey" not in body["files"][0]


def test_cached_file_content(client, make_user, auth_headers, linked_project, kit_repo):
    owner, project = linked_project
    headers = auth_headers(owner)
    url = f"/api/projects/{project.id}/cached-files"
    client.post(f"/api/projects/{project.id}/sync-repo", headers=headers)

    assert client.post(url, json={"filePath": "main.py"}, headers=headers).json() == {"content": "print('kit')\n"}
    assert client.post(url, json={"filePath": "src"}, headers=headers).status_code == 404
    assert client.post(url, json={"filePath": "nope.txt"}, headers=headers).status_code == 404
    assert client.post(url, json={"filePath": "main.py"}, headers=auth_headers(make_user())).status_code == 403
    assert client.post(url, json={}, headers=headers).status_code == 400


def test_project_delete_drops_cached_repository(client, db, settings, auth_headers, linked_project, kit_repo):
    owner, project = linked_project
    project_id = project.id
    client.post(f"/api/projects/{project_id}/sync-repo", headers=auth_headers(owner))
    db.expire_all()
    keys = [f["storage_key"] for f in db.exec(select(RepositoryCache)).one().files if f.get("storage_key")]

    assert client.delete(f"/api/projects/{project_id}", headers=auth_headers(owner)).status_code == 200

    db.expire_all()
    assert db.exec(select(RepositoryCache)).all() == []
    assert not any((Path(settings.UPLOAD_DIR) / key).exists() for key in keys)
