"""
➡️ But : Définir le contrat commun des backends de stockage de fichiers.

Trois implémentations interchangeables (local, S3, Supabase), une seule choisie par processus
via build_storage(settings) :

save(data, name) -> StoredObject(locator, sha256, size)
read(locator) -> bytes
delete(locator) -> None
signed_url(locator) -> URL temporaire signée, ou None si le backend ne sert pas d'URL (local)

🔹 Politique d'accès unique : lecture uniquement via URL signée à durée limitée
(ou flux d'octets servi par l'API), jamais d'URL publique permanente.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


# -----------------------------
# Erreurs
# -----------------------------
class StorageError(Exception):
    """Erreur générique de stockage."""


class FileTooLargeError(StorageError):
    def __init__(self, size: int, max_bytes: int):
        super().__init__(f"File size exceeds maximum limit of {max_bytes // (1024 * 1024)}MB")
        self.size = size
        self.max_bytes = max_bytes


class StoredFileNotFoundError(StorageError):
    def __init__(self, locator: str):
        super().__init__(f"File not found: {locator}")
        self.locator = locator


class StorageTransportError(StorageError):
    """Le service distant a échoué (réseau, droits, 5xx...)."""


# -----------------------------
# Types
# -----------------------------
@dataclass(frozen=True)
class StoredObject:
    locator: str    # clé / chemin relatif à passer à read/delete/signed_url
    sha256: str     # empreinte calculée à l'écriture
    size: int


class StorageBackend(ABC):
    name: str = "abstract"

    @abstractmethod
    def save(self, data: bytes, name: str, *, namespace: Optional[str] = None) -> StoredObject:
        ...

    @abstractmethod
    def read(self, locator: str) -> bytes:
        ...

    @abstractmethod
    def delete(self, locator: str) -> None:
        ...

    @abstractmethod
    def signed_url(self, locator: str, ttl: Optional[int] = None) -> Optional[str]:
        ...
