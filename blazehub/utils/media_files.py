import hashlib
from typing import Optional, Set, Tuple

import filetype


# Allow-list des types acceptés pour les fichiers de projets
ALLOWED_PROJECT_FILE_MIME: Set[str] = {
    "text/plain",
    "text/markdown",
    "text/javascript",
    "application/json",
    "application/xml",
    "text/css",
    "text/html",
    "image/png",
    "image/jpeg",
    "image/gif",
    "image/webp",
    "application/pdf",
    "application/zip",
}


class UploadTooLargeError(ValueError):
    pass


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def detect_mime(file_bytes: bytes, declared: Optional[str] = None) -> str:
    """
    Type MIME retenu : celui déclaré par le client s'il existe, sinon détection via 'filetype'.
    (filetype ne reconnaît pas les formats texte : on ne peut pas toujours se passer du type déclaré.)
    """
    if declared and declared != "application/octet-stream":
        return declared.split(";")[0].strip().lower()
    kind = filetype.guess(file_bytes)
    return kind.mime if kind else "application/octet-stream"


def validate_bytes(
    file_bytes: bytes,
    *,
    max_bytes: int,
    allowed_mime: Set[str],
    declared_mime: Optional[str] = None,
) -> Tuple[str, int, str]:
    """
    Retourne (mime, size_bytes, sha256).
    Lève UploadTooLargeError si trop gros, ValueError si vide ou type refusé.
    """
    size = len(file_bytes)
    if size == 0:
        raise ValueError("Empty file")
    if size > max_bytes:
        raise UploadTooLargeError(f"File size exceeds maximum limit of {max_bytes // (1024 * 1024)}MB")

    mime = detect_mime(file_bytes, declared_mime)
    if mime not in allowed_mime:
        raise ValueError(f"File type {mime} is not allowed")

    return mime, size, sha256_hex(file_bytes)
