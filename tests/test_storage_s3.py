import hashlib
import io
from urllib.parse import parse_qs, urlparse

import pytest
from botocore.response import StreamingBody
from botocore.stub import Stubber

from blazehub.core.config import Settings
from blazehub.storage.base import StorageTransportError, StoredFileNotFoundError
from blazehub.storage.s3 import S3Storage
from blazehub.utils.s3 import make_s3_client


@pytest.fixture
def s3_client():
    settings = Settings(
        _env_file=None,
        S3_ENDPOINT="http://minio:9000",
        S3_KEY="test-key",
        S3_SECRET="test-secret",
        S3_BUCKET="projects",
    )
    return make_s3_client(settings)


@pytest.fixture
def storage(s3_client):
    return S3Storage(client_factory=lambda: s3_client, bucket="projects", presign_ttl=600)


def test_save_puts_namespaced_object(storage, s3_client):
    with Stubber(s3_client) as stub:
        stub.add_response("put_object", {})
        stored = storage.save(b"data", "readme.md", namespace="9")
        stub.assert_no_pending_responses()

    assert stored.locator.startswith("9/") and stored.locator.endswith(".md")
    assert stored.size == 4
    assert stored.sha256 == hashlib.sha256(b"data").hexdigest()


def test_read_maps_no_such_key(storage, s3_client):
    with Stubber(s3_client) as stub:
        stub.add_client_error("get_object", service_error_code="NoSuchKey", http_status_code=404)
        with pytest.raises(StoredFileNotFoundError):
            storage.read("9/missing.md")


def test_read_and_transport_errors(storage, s3_client):
    body = StreamingBody(io.BytesIO(b"content"), len(b"content"))
    with Stubber(s3_client) as stub:
        stub.add_response("get_object", {"Body": body})
        stub.add_client_error("delete_object", service_error_code="AccessDenied", http_status_code=403)
        assert storage.read("9/a.md") == b"content"
        with pytest.raises(StorageTransportError):
            storage.delete("9/a.md")


def test_signed_url_expires(storage):
    url = storage.signed_url("9/a.md")
    parsed = urlparse(url)
    assert parsed.path == "/projects/9/a.md"
    assert parse_qs(parsed.query)["X-Amz-Expires"] == ["600"]
