import logging
from pathlib import Path
from typing import Optional

from blazehub.security.tokens import generate_secure_file_name
from blazehub.storage.base import (
    FileTooLargeError,
    StorageBackend,
    StorageError,
    StoredFileNotFoundError,
    StoredObject,
)
from blazehub.utils.media_files import sha256_hex

logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 50 * 1024 * 1024


class LocalStorage(StorageBackend):
    """Fichiers sur le disque local, sous `root`, avec noms générés non devinables."""

    name = "local"

    def __init__(self, root: str | Path, *, max_bytes: int = DEFAULT_MAX_BYTES):
        self.root = Path(root).resolve()
        self.max_bytes = max_bytes

    def _path(self, locator: str) -> Path:
        path = (self.root / locator).resolve()
        if self.root not in path.parents:
            # ../ ou chemin absolu : on ne sort jamais de root
            raise StoredFileNotFoundError(locator)
        return path

    def save(self, data: bytes, name: str, *, namespace: Optional[str] = None) -> StoredObject:
        # contrôle de taille avant toute écriture : pas de fichier partiel
        if len(data) > self.max_bytes:
            raise FileTooLargeError(len(data), self.max_bytes)

        secure_name = generate_secure_file_name(name)
        locator = f"{namespace}/{secure_name}" if namespace else secure_name
        path = self._path(locator)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            path.write_bytes(data)
        except OSError as e:
            path.unlink(missing_ok=True)
            raise StorageError(f"Failed to write file: {e}") from e

        logger.info("Stored %s (%d bytes)", locator, len(data))
        return StoredObject(locator=locator, sha256=sha256_hex(data), size=len(data))

    def read(self, locator: str) -> bytes:
        path = self._path(locator)
        if not path.is_file():
            raise StoredFileNotFoundError(locator)
        return path.read_bytes()

    def delete(self, locator: str) -> None:
        path = self._path(locator)
        try:
            path.unlink()
        except FileNotFoundError:
            raise StoredFileNotFoundError(locator)
        except OSError as e:
            logger.error("Error deleting file %s: %s", locator, e)
            raise StorageError("Failed to delete file") from e

    def signed_url(self, locator: str, ttl: Optional[int] = None) -> Optional[str]:
        # pas d'URL : l'API lit les octets et les sert elle-même
        return None
