from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from blazehub.api.dependencies import get_github_service
from blazehub.security.guard import Principal, guard
from blazehub.features.github.services import GitHubService

router = APIRouter(
    prefix="/github",
    tags=["github"],
)


@router.get(
    "/repos",
    summary="Dépôts GitHub de l'utilisateur (jeton délégué)",
    response_model=Any,
    responses={401: {"description": "Aucun compte GitHub lié"}},
)
def list_repos(
    principal: Principal = Depends(guard("github.repos")),
    svc: GitHubService = Depends(get_github_service),
):
    return svc.list_repos(principal)


@router.get(
    "/repo/{owner}/{repo}",
    summary="Racine d'un dépôt (jeton délégué)",
    response_model=Any,
    responses={401: {"description": "Aucun compte GitHub lié"}},
)
@router.get(
    "/repo/{owner}/{repo}/{path:path}",
    summary="Fichier ou dossier d'un dépôt (jeton délégué)",
    response_model=Any,
    responses={401: {"description": "Aucun compte GitHub lié"}},
)
def repo_content(
    owner: str,
    repo: str,
    path: str = "",
    principal: Principal = Depends(guard("github.repo_content")),
    svc: GitHubService = Depends(get_github_service),
):
    return svc.repo_content(principal, owner=owner, repo=repo, path=path)


@router.get(
    "/repo-owner",
    summary="Métadonnées du dépôt d'un projet (jeton serveur)",
    response_model=Any,
    responses={400: {"description": "owner, repo et project_id requis"}, 404: {"description": "Projet inconnu"}},
)
def repo_owner(
    owner: Optional[str] = Query(None),
    repo: Optional[str] = Query(None),
    project_id: Optional[int] = Query(None),
    principal: Principal = Depends(guard("github.repo_owner")),
    svc: GitHubService = Depends(get_github_service),
):
    return svc.repo_owner(owner=owner, repo=repo, project_id=project_id)


@router.get(
    "/commits",
    summary="Dernier commit d'un dépôt (ou d'un chemin)",
    response_model=Any,
    responses={400: {"description": "owner et repo requis"}, 404: {"description": "Commits inaccessibles"}},
)
def latest_commit(
    owner: Optional[str] = Query(None),
    repo: Optional[str] = Query(None),
    path: Optional[str] = Query(None),
    project_id: Optional[int] = Query(None),
    principal: Principal = Depends(guard("github.commits")),
    svc: GitHubService = Depends(get_github_service),
):
    return svc.latest_commit(principal, owner=owner, repo=repo, path=path, project_id=project_id)
