import json

import httpx
import pytest

from blazehub.storage.base import StorageTransportError, StoredFileNotFoundError
from blazehub.storage.supabase import SupabaseStorage

BASE = "https://proj.supabase.co/storage/v1"


def make_storage(handler) -> SupabaseStorage:
    client = httpx.Client(base_url=BASE, transport=httpx.MockTransport(handler))
    return SupabaseStorage(client=client, bucket="projects", presign_ttl=120)


def test_save_uses_namespaced_timestamped_path():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"Key": "projects/x"})

    stored = make_storage(handler).save(b"abc", "dir/app.zip", namespace="12")

    assert stored.locator.startswith("12/")
    assert stored.locator.endswith("_app.zip")
    assert seen[0].method == "POST"
    assert seen[0].url.path == f"/storage/v1/object/projects/{stored.locator}"
    assert seen[0].content == b"abc"


def test_upload_failure_is_transport_error():
    storage = make_storage(lambda request: httpx.Response(500, json={"error": "boom"}))
    with pytest.raises(StorageTransportError):
        storage.save(b"abc", "a.txt", namespace="1")


def test_read_not_found():
    storage = make_storage(lambda request: httpx.Response(400, json={"error": "not_found", "message": "Object not found"}))
    with pytest.raises(StoredFileNotFoundError):
        storage.read("1/missing.txt")


def test_delete_sends_prefixes():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    make_storage(handler).delete("1/123_a.txt")
    assert seen[0].method == "DELETE"
    assert seen[0].url.path == "/storage/v1/object/projects"
    assert json.loads(seen[0].content) == {"prefixes": ["1/123_a.txt"]}


def test_signed_url_is_absolute_and_expiring():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"signedURL": "/object/sign/projects/1/123_a.txt?token=abc"})

    url = make_storage(handler).signed_url("1/123_a.txt")
    assert url == f"{BASE}/object/sign/projects/1/123_a.txt?token=abc"
    assert json.loads(seen[0].content) == {"expiresIn": 120}
