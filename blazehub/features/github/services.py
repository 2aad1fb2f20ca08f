import logging
import re
from typing import Any, Dict, List, Optional, Tuple

import httpx
from fastapi import HTTPException, status

from blazehub.db.models.base import utcnow
from blazehub.db.models.projects import Project
from blazehub.db.repositories.projects import ProjectRepository
from blazehub.db.repositories.repository_caches import RepositoryCacheRepository
from blazehub.security.guard import Principal, is_admin
from blazehub.storage.base import StorageBackend, StorageError, StoredFileNotFoundError
from blazehub.features.projects.services import ProjectService
from blazehub.features.github.schemas import (
    CachedFileContentOut,
    CachedFilesOut,
    CachedRepoFileOut,
    RepoSyncOut,
)

logger = logging.getLogger(__name__)

GITHUB_ACCEPT = "application/vnd.github.v3+json"
GITHUB_REPO_RE = re.compile(r"github\.com/([^/?#]+)/([^/?#]+)")


def parse_github_repo(url: str) -> Optional[Tuple[str, str]]:
    """`https://github.com/acme/kit.git` -> ("acme", "kit")"""
    match = GITHUB_REPO_RE.search(url)
    if not match:
        return None
    owner, repo = match.groups()
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    return (owner, repo) if repo else None


class GitHubService:
    """
    Proxy vers l'API GitHub.

    - jeton délégué de l'utilisateur (compte GitHub lié) pour ses propres dépôts
    - jeton serveur (GITHUB_TOKEN) pour les admins ou dans le contexte d'un projet
    Le client httpx est partagé par l'application (app.state.github).
    """

    def __init__(
        self,
        *,
        client: httpx.Client,
        project_repo: ProjectRepository,
        server_token: Optional[str],
        user_agent: str = "BlazeHub-App",
    ):
        self.client = client
        self.project_repo = project_repo
        self.server_token = server_token
        self.user_agent = user_agent

    def headers(self, token: Optional[str] = None) -> dict:
        out = {"Accept": GITHUB_ACCEPT, "User-Agent": self.user_agent}
        if token:
            out["Authorization"] = f"Bearer {token}"
        return out

    def _project_or_404(self, project_id: int) -> Project:
        project = self.project_repo.get(project_id)
        if not project:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
        return project

    def require_server_token(self) -> str:
        if not self.server_token:
            logger.error("GITHUB_TOKEN is not configured")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="GitHub token not configured"
            )
        return self.server_token

    def get_json(self, url: str, *, token: Optional[str], error: str, params: Optional[dict] = None) -> Any:
        """GET -> JSON ; toute erreur amont devient un 500 générique (détail dans les logs)."""
        try:
            resp = self.client.get(url, params=params, headers=self.headers(token))
            resp.raise_for_status()
            return resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("GitHub request %s failed: %s", url, e)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error)

    # ---------- Dépôts de l'utilisateur ----------
    def list_repos(self, principal: Principal) -> Any:
        if not principal.access_token:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="GitHub access token not found")
        return self.get_json(
            "/user/repos",
            token=principal.access_token,
            params={"sort": "updated", "per_page": 100, "type": "all"},
            error="Failed to fetch repositories",
        )

    # ---------- Navigation dans un dépôt ----------
    def repo_content(self, principal: Principal, *, owner: str, repo: str, path: str = "") -> Any:
        """Fichier ou dossier d'un dépôt (API contents), avec le jeton délégué."""
        if not principal.access_token:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="GitHub access token not found")
        url = f"/repos/{owner}/{repo}/contents"
        if path.strip("/"):
            url = f"{url}/{path.strip('/')}"
        return self.get_json(
            url,
            token=principal.access_token,
            error="Failed to fetch repository content",
        )

    def repo_owner(self, *, owner: Optional[str], repo: Optional[str], project_id: Optional[int]) -> Any:
        """Métadonnées d'un dépôt de projet (privé possible) lues avec le jeton serveur."""
        if not owner or not repo or project_id is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing parameters")
        self._project_or_404(project_id)
        return self.get_json(f"/repos/{owner}/{repo}", token=self.require_server_token(), error="GitHub API error")

    # ---------- Dernier commit ----------
    def latest_commit(
        self,
        principal: Principal,
        *,
        owner: Optional[str],
        repo: Optional[str],
        path: Optional[str] = None,
        project_id: Optional[int] = None,
    ) -> Any:
        if not owner or not repo:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Owner and repo required")

        token = principal.access_token
        if project_id is not None:
            self._project_or_404(project_id)
            token = self.server_token
        elif is_admin(principal.role):
            token = self.server_token

        if not token:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No GitHub token available")

        params: dict = {"per_page": 1}
        if path:
            params["path"] = path

        try:
            resp = self.client.get(f"/repos/{owner}/{repo}/commits", params=params, headers=self.headers(token))
        except httpx.HTTPError as e:
            logger.error("GitHub commits request failed for %s/%s: %s", owner, repo, e)
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Commits not accessible")

        if resp.is_error:
            logger.error("GitHub commits API error %s for %s/%s: %s", resp.status_code, owner, repo, resp.text)
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Commits not accessible")

        try:
            return resp.json()
        except ValueError:
            logger.error("Invalid commits response for %s/%s", owner, repo)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Invalid commits response")


class RepositoryCacheService:
    """
    Copie du dépôt GitHub d'un projet dans le stockage de l'application.

    sync : le propriétaire importe la racine du dépôt (jeton serveur) ; chaque fichier est
    rangé dans le backend de stockage, l'index est gardé dans RepositoryCache.
    cached_files / cached_file_content : lecture réservée à qui a accès au projet
    (gratuit, propriétaire ou acheteur).
    """

    def __init__(
        self,
        *,
        github: GitHubService,
        repo: RepositoryCacheRepository,
        project_svc: ProjectService,
        storage: StorageBackend,
    ):
        self.github = github
        self.repo = repo
        self.project_svc = project_svc
        self.storage = storage

    def _readable_project(self, project_id: int, principal: Principal) -> Project:
        project = self.project_svc.get_or_404(project_id)
        if not self.project_svc.has_access(project, principal):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
        return project

    def _store_item(self, project_id: int, item: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        entry = {
            "name": item.get("name"),
            "path": item.get("path"),
            "type": item.get("type"),
            "size": item.get("size") or 0,
        }
        if item.get("type") != "file" or not item.get("download_url"):
            return entry

        try:
            resp = self.github.client.get(item["download_url"], headers=self.github.headers())
            resp.raise_for_status()
            stored = self.storage.save(resp.content, item.get("name") or "file", namespace=f"{project_id}/repository")
        except (httpx.HTTPError, StorageError) as e:
            logger.error("Skipping %s while syncing project %s: %s", item.get("path"), project_id, e)
            return None

        entry["storage_key"] = stored.locator
        return entry

    def _discard(self, files: List[Dict[str, Any]]) -> None:
        for f in files:
            key = f.get("storage_key")
            if not key:
                continue
            try:
                self.storage.delete(key)
            except StorageError:
                logger.warning("Orphan object %s left in storage after repository sync", key)

    # ---------- Synchronisation ----------
    def sync(self, project_id: int, principal: Principal) -> RepoSyncOut:
        project = self.project_svc.get_or_404(project_id)
        if project.owner_id != principal.id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only project owner can sync repository")
        if not project.github_repo:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No GitHub repository linked")
        parsed = parse_github_repo(project.github_repo)
        if not parsed:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid GitHub repository URL")
        owner, repo_name = parsed

        contents = self.github.get_json(
            f"/repos/{owner}/{repo_name}/contents",
            token=self.github.require_server_token(),
            error="Failed to fetch repository",
        )
        if not isinstance(contents, list):
            logger.error("Unexpected contents payload for %s/%s", owner, repo_name)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch repository")

        files = [e for e in (self._store_item(project.id, item) for item in contents) if e is not None]

        cache = self.repo.get_for_project(project.id)
        previous: List[Dict[str, Any]] = list(cache.files) if cache else []
        if cache:
            self.repo.update(cache, owner=owner, repo=repo_name, files=files, last_sync=utcnow(), updated_at=utcnow())
        else:
            self.repo.create(project_id=project.id, owner=owner, repo=repo_name, is_private=True, files=files)
        self._discard(previous)

        logger.info("Repository %s/%s synced for project %s (%d entries)", owner, repo_name, project.id, len(files))
        return RepoSyncOut(success=True, message="Repository synced successfully", files_count=len(files))

    # ---------- Lecture ----------
    def cached_files(self, project_id: int, principal: Principal) -> CachedFilesOut:
        project = self._readable_project(project_id, principal)
        cache = self.repo.get_for_project(project.id)
        if not cache:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Repository not cached")
        return CachedFilesOut(
            files=[CachedRepoFileOut.model_validate(f) for f in cache.files],
            last_sync=cache.last_sync,
            is_private=cache.is_private,
        )

    def cached_file_content(self, project_id: int, file_path: str, principal: Principal) -> CachedFileContentOut:
        project = self._readable_project(project_id, principal)
        cache = self.repo.get_for_project(project.id)
        entry = next(
            (f for f in (cache.files if cache else []) if f.get("path") == file_path and f.get("storage_key")),
            None,
        )
        if entry is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

        try:
            data = self.storage.read(entry["storage_key"])
        except StoredFileNotFoundError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
        except StorageError:
            logger.exception("Reading cached file %s of project %s failed", file_path, project.id)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to read file")

        return CachedFileContentOut(content=data.decode("utf-8", errors="replace"))
