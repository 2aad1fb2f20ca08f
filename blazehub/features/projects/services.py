import logging
from typing import Dict, List, Optional, Sequence

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from blazehub.db.models.base import utcnow
from blazehub.db.models.project_files import ProjectFile
from blazehub.db.models.projects import Project, ProjectCategory
from blazehub.db.models.users import User
from blazehub.db.repositories.project_files import ProjectFileRepository
from blazehub.db.repositories.projects import ProjectRepository
from blazehub.db.repositories.purchases import PurchaseRepository
from blazehub.db.repositories.repository_caches import RepositoryCacheRepository
from blazehub.db.repositories.users import UserRepository
from blazehub.security.guard import Principal, is_admin
from blazehub.storage.base import StorageBackend, StorageError
from blazehub.features.files.schemas import ProjectFileOut
from blazehub.features.users.schemas import UserSummaryOut
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

logger = logging.getLogger(__name__)


class ProjectService:
    """
    Service Projects : catalogue, CRUD et achat en coins.

    Règle d'accès (purchase-status) :
      - projet gratuit -> accessible à tous, même anonyme
      - propriétaire -> accès
      - sinon -> accès ssi un Purchase existe pour (user, projet)
    """

    def __init__(
        self,
        *,
        repo: ProjectRepository,
        file_repo: ProjectFileRepository,
        purchase_repo: PurchaseRepository,
        user_repo: UserRepository,
        cache_repo: RepositoryCacheRepository,
        storage: StorageBackend,
    ):
        self.repo = repo
        self.file_repo = file_repo
        self.purchase_repo = purchase_repo
        self.user_repo = user_repo
        self.cache_repo = cache_repo
        self.storage = storage

    # ---------- Helpers ----------
    def get_or_404(self, project_id: int) -> Project:
        project = self.repo.get(project_id)
        if not project:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
        return project

    def _ensure_can_manage(self, project: Project, principal: Principal) -> None:
        if project.owner_id != principal.id and not is_admin(principal.role):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    def _owners(self, projects: Sequence[Project]) -> Dict[int, User]:
        out: Dict[int, User] = {}
        for owner_id in {p.owner_id for p in projects}:
            user = self.user_repo.get(owner_id)
            if user:
                out[owner_id] = user
        return out

    @staticmethod
    def _base_fields(project: Project, owner: Optional[User], files: List[ProjectFile]) -> dict:
        return dict(
            id=project.id,
            name=project.name,
            description=project.description,
            category=project.category,
            price=project.price,
            github_repo=project.github_repo,
            owner_id=project.owner_id,
            owner=UserSummaryOut.model_validate(owner) if owner else None,
            file_count=len(files),
            created_at=project.created_at,
            updated_at=project.updated_at,
        )

    def _to_out(self, project: Project) -> ProjectOut:
        files = list(self.file_repo.list_for_project(project.id))
        return ProjectOut(**self._base_fields(project, self.user_repo.get(project.owner_id), files))

    def has_access(self, project: Project, principal: Optional[Principal]) -> bool:
        if project.category == ProjectCategory.FREE:
            return True
        if principal is None:
            return False
        if project.owner_id == principal.id:
            return True
        return self.purchase_repo.exists(principal.id, project.id)

    # ---------- Lecture ----------
    def list_projects(
        self,
        *,
        category: Optional[str] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> ProjectsPageOut:
        cat: Optional[ProjectCategory] = None
        if category and category != "all":
            try:
                cat = ProjectCategory(category)
            except ValueError:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Invalid category. Must be 'free', 'paid', or 'premium'",
                )

        items, total = self.repo.search(category=cat, search=search, offset=offset, limit=limit)
        owners = self._owners(items)
        files = self.file_repo.files_by_project(p.id for p in items)
        projects = [ProjectOut(**self._base_fields(p, owners.get(p.owner_id), files[p.id])) for p in items]

        has_more = limit is not None and (offset or 0) + limit < total
        return ProjectsPageOut(projects=projects, total_count=total, has_more=has_more)

    def list_public(self, principal: Optional[Principal]) -> List[ProjectDetailOut]:
        """Invités : projets gratuits uniquement ; connectés : tout le catalogue."""
        projects = self.repo.list_all(only_free=principal is None)
        owners = self._owners(projects)
        files = self.file_repo.files_by_project(p.id for p in projects)
        return [
            ProjectDetailOut(
                **self._base_fields(p, owners.get(p.owner_id), files[p.id]),
                files=[ProjectFileOut.model_validate(f) for f in files[p.id]],
            )
            for p in projects
        ]

    def list_all(self) -> List[ProjectAdminOut]:
        projects = self.repo.list_all()
        owners = self._owners(projects)
        files = self.file_repo.files_by_project(p.id for p in projects)
        return [
            ProjectAdminOut(
                **self._base_fields(p, owners.get(p.owner_id), files[p.id]),
                file_ids=[f.id for f in files[p.id]],
            )
            for p in projects
        ]

    def get_project(self, project_id: int) -> ProjectDetailOut:
        project = self.get_or_404(project_id)
        files = list(self.file_repo.list_for_project(project.id))
        return ProjectDetailOut(
            **self._base_fields(project, self.user_repo.get(project.owner_id), files),
            files=[ProjectFileOut.model_validate(f) for f in files],
        )

    # ---------- Écriture ----------
    def create_project(self, payload: ProjectIn, principal: Principal) -> ProjectOut:
        owner_id = payload.owner_id or principal.id
        if not self.user_repo.get(owner_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Owner not found")
        if self.repo.get_by_owner_and_name(owner_id, payload.name):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A project with this name already exists")

        try:
            project = self.repo.create(
                name=payload.name,
                description=payload.description,
                category=payload.category,
                price=payload.price,
                github_repo=payload.github_repo,
                owner_id=owner_id,
            )
        except IntegrityError:
            self.repo.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A project with this name already exists")

        logger.info("Project %s created by %s", project.id, principal.id)
        return self._to_out(project)

    def update_project(self, project_id: int, payload: ProjectUpdateIn, principal: Principal) -> ProjectOut:
        project = self.get_or_404(project_id)
        self._ensure_can_manage(project, principal)

        if payload.name != project.name:
            clash = self.repo.get_by_owner_and_name(project.owner_id, payload.name)
            if clash and clash.id != project.id:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT, detail="A project with this name already exists"
                )

        project = self.repo.update(
            project,
            name=payload.name,
            description=payload.description,
            category=payload.category,
            price=payload.price,
            github_repo=payload.github_repo,
            updated_at=utcnow(),
        )
        return self._to_out(project)

    def delete_project(self, project_id: int, principal: Principal) -> ProjectDeletedOut:
        project = self.get_or_404(project_id)
        self._ensure_can_manage(project, principal)

        files = list(self.file_repo.list_for_project(project.id))
        cache = self.cache_repo.get_for_project(project.id)
        stored_keys = [f.storage_key for f in files]
        if cache:
            stored_keys += [e["storage_key"] for e in cache.files if e.get("storage_key")]
        out = ProjectDeletedOut(
            message="Project deleted successfully",
            id=project.id,
            name=project.name,
            files_count=len(files),
        )

        # lignes DB dans une transaction, puis objets du stockage
        try:
            for f in files:
                self.file_repo.delete(f, commit=False)
            self.purchase_repo.delete_for_project(project.id, commit=False)
            if cache:
                self.cache_repo.delete(cache, commit=False)
            self.repo.delete(project, commit=False)
            self.repo.commit()
        except SQLAlchemyError:
            self.repo.rollback()
            raise

        for key in stored_keys:
            try:
                self.storage.delete(key)
            except StorageError:
                logger.warning("Orphan object %s left in storage after project %s deletion", key, project_id)

        return out

    # ---------- Achat ----------
    def purchase_status(self, project_id: int, principal: Optional[Principal]) -> PurchaseStatusOut:
        project = self.get_or_404(project_id)
        if project.category == ProjectCategory.FREE:
            return PurchaseStatusOut(purchased=True)
        if principal is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
        return PurchaseStatusOut(purchased=self.has_access(project, principal))

    def purchase(self, project_id: int, principal: Principal) -> PurchaseOut:
        user = self.user_repo.get(principal.id)
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

        project = self.get_or_404(project_id)
        if project.category == ProjectCategory.FREE:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Free projects don't require purchase")
        if not project.price:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Project price not set")
        if self.purchase_repo.exists(user.id, project.id):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Project already purchased")

        price = project.price
        if user.coin < price:
            raise self._insufficient(price, user.coin)

        # débit + achat : tout ou rien
        try:
            if not self.user_repo.increment_coins(user.id, -price, commit=False):
                # solde modifié entre-temps
                self.user_repo.rollback()
                raise self._insufficient(price, self.user_repo.get_coins(user.id) or 0)
            self.purchase_repo.create(user_id=user.id, project_id=project.id, commit=False)
            self.purchase_repo.commit()
        except IntegrityError:
            self.purchase_repo.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Project already purchased")

        remaining = self.user_repo.get_coins(user.id) or 0
        logger.info("User %s purchased project %s for %d coins", user.id, project.id, price)
        return PurchaseOut(
            success=True,
            message=f"Successfully purchased {project.name}",
            coins_deducted=price,
            remaining_coins=remaining,
        )

    @staticmethod
    def _insufficient(required: int, current: int) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail={"error": "Insufficient coins", "required": required, "current": current, "needsUpgrade": True},
        )
