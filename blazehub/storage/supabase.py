import logging
import time
from pathlib import PurePath
from typing import Optional
from urllib.parse import quote

import httpx

from blazehub.storage.base import (
    StorageBackend,
    StorageTransportError,
    StoredFileNotFoundError,
    StoredObject,
)
from blazehub.utils.media_files import detect_mime, sha256_hex

logger = logging.getLogger(__name__)


class SupabaseStorage(StorageBackend):
    """
    Stockage Supabase (API REST Storage).
    Objets rangés sous `<namespace>/<timestamp ms>_<nom>` (namespace = id du projet).
    Lecture via URL signée à durée limitée, comme les autres backends.
    """

    name = "supabase"

    def __init__(self, *, client: httpx.Client, bucket: str, presign_ttl: int = 3600):
        # client configuré avec base_url=<SUPABASE_URL>/storage/v1 et les en-têtes d'auth
        self.client = client
        self.bucket = bucket
        self.presign_ttl = presign_ttl

    @classmethod
    def from_credentials(cls, *, url: str, service_key: str, bucket: str, presign_ttl: int = 3600) -> "SupabaseStorage":
        client = httpx.Client(
            base_url=f"{url.rstrip('/')}/storage/v1",
            headers={"Authorization": f"Bearer {service_key}", "apikey": service_key},
            timeout=30,
        )
        return cls(client=client, bucket=bucket, presign_ttl=presign_ttl)

    def _object_url(self, locator: str) -> str:
        return f"/object/{self.bucket}/{quote(locator)}"

    @staticmethod
    def _is_not_found(resp: httpx.Response) -> bool:
        if resp.status_code == 404:
            return True
        # l'API renvoie parfois 400 avec un corps {"error": "not_found"}
        return resp.status_code == 400 and "not_found" in resp.text.lower().replace(" ", "_")

    def save(self, data: bytes, name: str, *, namespace: Optional[str] = None) -> StoredObject:
        file_name = PurePath(name).name or "file"
        object_name = f"{int(time.time() * 1000)}_{file_name}"
        locator = f"{namespace}/{object_name}" if namespace else object_name
        try:
            resp = self.client.post(
                self._object_url(locator),
                content=data,
                headers={"Content-Type": detect_mime(data), "x-upsert": "false"},
            )
        except httpx.HTTPError as e:
            logger.error("Supabase upload failed for %s: %s", locator, e)
            raise StorageTransportError("Supabase upload failed") from e
        if resp.is_error:
            logger.error("Supabase upload failed for %s: %s %s", locator, resp.status_code, resp.text)
            raise StorageTransportError("Supabase upload failed")
        return StoredObject(locator=locator, sha256=sha256_hex(data), size=len(data))

    def read(self, locator: str) -> bytes:
        try:
            resp = self.client.get(self._object_url(locator))
        except httpx.HTTPError as e:
            raise StorageTransportError("Supabase download failed") from e
        if self._is_not_found(resp):
            raise StoredFileNotFoundError(locator)
        if resp.is_error:
            logger.error("Supabase download failed for %s: %s", locator, resp.status_code)
            raise StorageTransportError("Supabase download failed")
        return resp.content

    def delete(self, locator: str) -> None:
        try:
            resp = self.client.request("DELETE", f"/object/{self.bucket}", json={"prefixes": [locator]})
        except httpx.HTTPError as e:
            raise StorageTransportError("Supabase delete failed") from e
        if resp.is_error:
            logger.error("Supabase delete failed for %s: %s", locator, resp.status_code)
            raise StorageTransportError("Supabase delete failed")

    def signed_url(self, locator: str, ttl: Optional[int] = None) -> Optional[str]:
        try:
            resp = self.client.post(
                f"/object/sign/{self.bucket}/{quote(locator)}",
                json={"expiresIn": ttl or self.presign_ttl},
            )
        except httpx.HTTPError as e:
            raise StorageTransportError("Supabase sign failed") from e
        if self._is_not_found(resp):
            raise StoredFileNotFoundError(locator)
        if resp.is_error:
            raise StorageTransportError("Supabase sign failed")
        signed = resp.json().get("signedURL") or resp.json().get("signedUrl")
        if not signed:
            raise StorageTransportError("Supabase sign response without URL")
        return f"{str(self.client.base_url).rstrip('/')}{signed}"
