from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from blazehub.api.dependencies import get_project_service, get_project_file_service, get_repository_cache_service
from blazehub.security.guard import Principal, guard
from blazehub.features.projects.services import ProjectService
from blazehub.features.files.services import ProjectFileService
from blazehub.features.files.schemas import ProjectFilesOut
from blazehub.features.github.services import RepositoryCacheService
from blazehub.features.github.schemas import CachedFileIn, CachedFileContentOut, CachedFilesOut, RepoSyncOut
from blazehub.features.projects.schemas import (
    ProjectIn,
    ProjectUpdateIn,
    ProjectOut,
    ProjectDetailOut,
    ProjectAdminOut,
    ProjectsPageOut,
    ProjectDeletedOut,
    PurchaseStatusOut,
    PurchaseOut,
)

router = APIRouter(
    prefix="/projects",
    tags=["projects"],
    responses={404: {"description": "Not Found"}},
)

# -----------------------------
# Catalogue
# -----------------------------
@router.get(
    "",
    summary="Lister / rechercher les projets",
    response_model=ProjectsPageOut,
)
def list_projects(
    category: Optional[str] = Query(None, description="free | paid | premium | all"),
    search: Optional[str] = Query(None, description="Recherche dans le nom et la description"),
    limit: Optional[int] = Query(None, ge=1, le=500),
    offset: Optional[int] = Query(None, ge=0),
    svc: ProjectService = Depends(get_project_service),
):
    return svc.list_projects(category=category, search=search, limit=limit, offset=offset)


@router.get(
    "/public",
    summary="Projets visibles (gratuits pour les invités, tous pour les connectés)",
    response_model=List[ProjectDetailOut],
)
def list_public_projects(
    principal: Optional[Principal] = Depends(guard("projects.public")),
    svc: ProjectService = Depends(get_project_service),
):
    return svc.list_public(principal)


@router.get(
    "/all",
    summary="Tous les projets avec leurs fichiers (admin)",
    response_model=List[ProjectAdminOut],
)
def list_all_projects(
    principal: Principal = Depends(guard("projects.all")),
    svc: ProjectService = Depends(get_project_service),
):
    return svc.list_all()


@router.get("/{project_id}", summary="Lire un projet", response_model=ProjectDetailOut)
def get_project(project_id: int, svc: ProjectService = Depends(get_project_service)):
    return svc.get_project(project_id)

# -----------------------------
# CRUD
# -----------------------------
@router.post(
    "",
    summary="Créer un projet (admin)",
    status_code=status.HTTP_201_CREATED,
    response_model=ProjectOut,
    responses={409: {"description": "Nom déjà utilisé par ce propriétaire"}},
)
def create_project(
    payload: ProjectIn,
    principal: Principal = Depends(guard("projects.create")),
    svc: ProjectService = Depends(get_project_service),
):
    return svc.create_project(payload, principal)


@router.put(
    "/{project_id}",
    summary="Modifier un projet (propriétaire ou admin)",
    response_model=ProjectOut,
)
def update_project(
    project_id: int,
    payload: ProjectUpdateIn,
    principal: Principal = Depends(guard("projects.update")),
    svc: ProjectService = Depends(get_project_service),
):
    return svc.update_project(project_id, payload, principal)


@router.delete(
    "/{project_id}",
    summary="Supprimer un projet et ses fichiers (propriétaire ou admin)",
    response_model=ProjectDeletedOut,
)
def delete_project(
    project_id: int,
    principal: Principal = Depends(guard("projects.delete")),
    svc: ProjectService = Depends(get_project_service),
):
    return svc.delete_project(project_id, principal)

# -----------------------------
# Achat
# -----------------------------
@router.get(
    "/{project_id}/purchase-status",
    summary="L'appelant a-t-il accès au projet ?",
    description="Toujours vrai pour un projet gratuit (même anonyme) et pour le propriétaire.",
    response_model=PurchaseStatusOut,
)
def purchase_status(
    project_id: int,
    principal: Optional[Principal] = Depends(guard("projects.purchase_status")),
    svc: ProjectService = Depends(get_project_service),
):
    return svc.purchase_status(project_id, principal)


@router.post(
    "/{project_id}/purchase",
    summary="Acheter un projet avec des coins",
    response_model=PurchaseOut,
    responses={
        400: {"description": "Projet gratuit ou sans prix"},
        402: {"description": "Coins insuffisants"},
        409: {"description": "Déjà acheté"},
    },
)
def purchase_project(
    project_id: int,
    principal: Principal = Depends(guard("projects.purchase")),
    svc: ProjectService = Depends(get_project_service),
):
    return svc.purchase(project_id, principal)

# -----------------------------
# Fichiers du projet
# -----------------------------
@router.get(
    "/{project_id}/files",
    summary="Lister les fichiers d'un projet",
    response_model=ProjectFilesOut,
)
def list_project_files(
    project_id: int,
    principal: Principal = Depends(guard("projects.files")),
    svc: ProjectFileService = Depends(get_project_file_service),
):
    return svc.list_files(project_id)

# -----------------------------
# Dépôt GitHub en cache
# -----------------------------
@router.post(
    "/{project_id}/sync-repo",
    summary="Importer le dépôt GitHub lié dans le stockage (propriétaire)",
    response_model=RepoSyncOut,
    responses={400: {"description": "Aucun dépôt lié ou URL invalide"}, 403: {"description": "Réservé au propriétaire"}},
)
def sync_repository(
    project_id: int,
    principal: Principal = Depends(guard("projects.sync_repo")),
    svc: RepositoryCacheService = Depends(get_repository_cache_service),
):
    return svc.sync(project_id, principal)


@router.get(
    "/{project_id}/cached-files",
    summary="Index du dépôt en cache",
    response_model=CachedFilesOut,
    responses={403: {"description": "Projet non acheté"}, 404: {"description": "Dépôt jamais synchronisé"}},
)
def cached_files(
    project_id: int,
    principal: Principal = Depends(guard("projects.cached_files")),
    svc: RepositoryCacheService = Depends(get_repository_cache_service),
):
    return svc.cached_files(project_id, principal)


@router.post(
    "/{project_id}/cached-files",
    summary="Contenu d'un fichier du dépôt en cache",
    response_model=CachedFileContentOut,
    responses={403: {"description": "Projet non acheté"}, 404: {"description": "Fichier absent du cache"}},
)
def cached_file_content(
    project_id: int,
    payload: CachedFileIn,
    principal: Principal = Depends(guard("projects.cached_files")),
    svc: RepositoryCacheService = Depends(get_repository_cache_service),
):
    return svc.cached_file_content(project_id, payload.file_path, principal)
