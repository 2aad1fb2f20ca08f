import logging
from typing import Callable, Optional

from botocore.exceptions import BotoCoreError, ClientError

from blazehub.security.tokens import generate_secure_file_name
from blazehub.storage.base import (
    StorageBackend,
    StorageTransportError,
    StoredFileNotFoundError,
    StoredObject,
)
from blazehub.utils.media_files import detect_mime, sha256_hex
from blazehub.utils.s3 import presign_get_url

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}


class S3Storage(StorageBackend):
    """
    Stockage S3 / MinIO. Taille et intégrité déléguées au service distant ;
    la lecture côté client passe par une URL GET présignée.
    """

    name = "s3"

    def __init__(self, *, client_factory: Callable[[], object], bucket: str, presign_ttl: int = 3600):
        self._client_factory = client_factory
        self.bucket = bucket
        self.presign_ttl = presign_ttl

    def save(self, data: bytes, name: str, *, namespace: Optional[str] = None) -> StoredObject:
        secure_name = generate_secure_file_name(name)
        key = f"{namespace}/{secure_name}" if namespace else secure_name
        sha = sha256_hex(data)
        s3 = self._client_factory()
        try:
            s3.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=detect_mime(data),
                Metadata={"sha256": sha},
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 upload failed for %s: %s", key, e)
            raise StorageTransportError("S3 upload failed") from e
        return StoredObject(locator=key, sha256=sha, size=len(data))

    def read(self, locator: str) -> bytes:
        s3 = self._client_factory()
        try:
            obj = s3.get_object(Bucket=self.bucket, Key=locator)
            return obj["Body"].read()
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES:
                raise StoredFileNotFoundError(locator) from e
            logger.error("S3 read failed for %s: %s", locator, e)
            raise StorageTransportError("S3 read failed") from e
        except BotoCoreError as e:
            logger.error("S3 read failed for %s: %s", locator, e)
            raise StorageTransportError("S3 read failed") from e

    def delete(self, locator: str) -> None:
        s3 = self._client_factory()
        try:
            s3.delete_object(Bucket=self.bucket, Key=locator)
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 delete failed for %s: %s", locator, e)
            raise StorageTransportError("S3 delete failed") from e

    def signed_url(self, locator: str, ttl: Optional[int] = None) -> Optional[str]:
        s3 = self._client_factory()
        try:
            return presign_get_url(s3, bucket=self.bucket, key=locator, ttl=ttl or self.presign_ttl)
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 presign failed for %s: %s", locator, e)
            raise StorageTransportError("S3 presign failed") from e
