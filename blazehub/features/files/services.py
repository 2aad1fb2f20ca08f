import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError

from blazehub.db.models.project_files import ProjectFile
from blazehub.db.repositories.project_files import ProjectFileRepository
from blazehub.security.guard import Principal, is_admin
from blazehub.storage.base import (
    FileTooLargeError,
    StorageBackend,
    StorageError,
    StoredFileNotFoundError,
)
from blazehub.utils.media_files import ALLOWED_PROJECT_FILE_MIME, UploadTooLargeError, validate_bytes
from blazehub.features.files.schemas import ProjectFileOut, ProjectFilesOut
from blazehub.features.projects.services import ProjectService

logger = logging.getLogger(__name__)


@dataclass
class Download:
    """Soit une URL signée vers laquelle rediriger, soit les octets à servir (backend local)."""
    file: ProjectFile
    url: Optional[str] = None
    data: Optional[bytes] = None


class ProjectFileService:
    """
    Service Fichiers de projet : orchestre repository + backend de stockage.
    L'accès en lecture suit la règle d'achat du projet (ou le drapeau is_public du fichier).
    """

    def __init__(
        self,
        *,
        repo: ProjectFileRepository,
        project_svc: ProjectService,
        storage: StorageBackend,
        max_bytes: int,
        presign_ttl: int,
    ):
        self.repo = repo
        self.project_svc = project_svc
        self.storage = storage
        self.max_bytes = max_bytes
        self.presign_ttl = presign_ttl

    def _get_or_404(self, file_id: int) -> ProjectFile:
        f = self.repo.get(file_id)
        if not f:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
        return f

    # ---------- Upload ----------
    async def upload(
        self,
        file: UploadFile,
        *,
        project_id: int,
        is_public: bool,
        principal: Principal,
    ) -> ProjectFileOut:
        project = self.project_svc.repo.get(project_id)
        if not project or project.owner_id != principal.id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found or unauthorized")

        # un octet de plus que la limite suffit à détecter le dépassement
        raw = await file.read(self.max_bytes + 1)
        try:
            mime, size, sha = validate_bytes(
                raw,
                max_bytes=self.max_bytes,
                allowed_mime=ALLOWED_PROJECT_FILE_MIME,
                declared_mime=file.content_type,
            )
        except UploadTooLargeError as e:
            raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e))
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

        file_name = file.filename or "file"
        try:
            stored = self.storage.save(raw, file_name, namespace=str(project.id))
        except FileTooLargeError as e:
            raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e))
        except StorageError:
            logger.exception("Upload to %s storage failed for project %s", self.storage.name, project.id)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to upload file")

        try:
            row = self.repo.create(
                project_id=project.id,
                file_name=file_name,
                storage_key=stored.locator,
                file_size=size,
                mime_type=mime,
                sha256=sha,
                is_public=is_public,
                uploaded_by_id=principal.id,
            )
        except SQLAlchemyError:
            self.repo.rollback()
            self._discard(stored.locator)
            raise

        logger.info("File %s uploaded to project %s (%d bytes)", row.id, project.id, size)
        return ProjectFileOut.model_validate(row)

    # ---------- Lecture ----------
    def list_files(self, project_id: int) -> ProjectFilesOut:
        project = self.project_svc.get_or_404(project_id)
        files = self.repo.list_for_project(project.id)
        return ProjectFilesOut(files=[ProjectFileOut.model_validate(f) for f in files])

    def download(self, file_id: int, principal: Optional[Principal]) -> Download:
        f = self._get_or_404(file_id)
        if not f.is_public:
            project = self.project_svc.get_or_404(f.project_id)
            if not self.project_svc.has_access(project, principal):
                if principal is None:
                    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
                raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Purchase required")

        try:
            url = self.storage.signed_url(f.storage_key, ttl=self.presign_ttl)
            if url:
                return Download(file=f, url=url)
            return Download(file=f, data=self.storage.read(f.storage_key))
        except StoredFileNotFoundError:
            logger.error("File %s missing from storage (%s)", f.id, f.storage_key)
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
        except StorageError:
            logger.exception("Storage read failed for file %s", f.id)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to read file")

    # ---------- Suppression ----------
    def delete(self, file_id: int, principal: Principal) -> None:
        f = self._get_or_404(file_id)
        project = self.project_svc.get_or_404(f.project_id)
        if project.owner_id != principal.id and not is_admin(principal.role):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

        locator = f.storage_key
        self.repo.delete(f)
        self._discard(locator)

    def _discard(self, locator: str) -> None:
        try:
            self.storage.delete(locator)
        except StorageError:
            logger.warning("Could not delete %s from storage", locator)
