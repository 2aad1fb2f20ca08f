from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import RedirectResponse, Response

from blazehub.api.dependencies import get_project_file_service
from blazehub.security.guard import Principal, guard
from blazehub.features.files.services import ProjectFileService
from blazehub.features.files.schemas import ProjectFileOut

router = APIRouter(
    prefix="/files",
    tags=["files"],
    responses={404: {"description": "Not Found"}},
)

# -----------------------------
# Upload (création)
# -----------------------------
@router.post(
    "/upload",
    summary="Uploader un fichier de projet (Back → stockage → DB)",
    description="Reçoit un fichier, le charge dans le backend de stockage et enregistre ses métadonnées.",
    status_code=status.HTTP_201_CREATED,
    response_model=ProjectFileOut,
    responses={
        400: {"description": "Type de fichier refusé ou fichier vide"},
        413: {"description": "Fichier trop volumineux"},
    },
)
async def upload_file(
    file: UploadFile = File(...),
    project_id: int = Form(...),
    is_public: bool = Form(False),
    principal: Principal = Depends(guard("files.upload")),
    svc: ProjectFileService = Depends(get_project_file_service),
):
    return await svc.upload(file, project_id=project_id, is_public=is_public, principal=principal)

# -----------------------------
# Téléchargement
# -----------------------------
@router.get(
    "/{file_id}/download",
    summary="Télécharger un fichier",
    description="Redirige vers une URL signée temporaire, ou sert les octets (stockage local).",
    responses={
        307: {"description": "Redirection vers l'URL signée"},
        401: {"description": "Non authentifié"},
        403: {"description": "Achat requis"},
    },
)
def download_file(
    file_id: int,
    principal: Optional[Principal] = Depends(guard("files.download")),
    svc: ProjectFileService = Depends(get_project_file_service),
):
    target = svc.download(file_id, principal)
    if target.url:
        return RedirectResponse(target.url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    return Response(
        content=target.data,
        media_type=target.file.mime_type,
        headers={"Content-Disposition": f"attachment; filename*=utf-8''{quote(target.file.file_name)}"},
    )

# -----------------------------
# Suppression
# -----------------------------
@router.delete(
    "/{file_id}",
    summary="Supprimer un fichier (objet stocké + ligne DB)",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={403: {"description": "Interdit"}},
)
def delete_file(
    file_id: int,
    principal: Principal = Depends(guard("files.delete")),
    svc: ProjectFileService = Depends(get_project_file_service),
):
    svc.delete(file_id, principal)
    return None
