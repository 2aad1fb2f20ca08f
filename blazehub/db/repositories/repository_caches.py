from typing import Optional
from sqlmodel import select

from blazehub.db.repositories.base import BaseRepository
from blazehub.db.models.repository_caches import RepositoryCache


class RepositoryCacheRepository(BaseRepository[RepositoryCache]):
    model = RepositoryCache

    def get_for_project(self, project_id: int) -> Optional[RepositoryCache]:
        return self.session.exec(
            select(RepositoryCache).where(RepositoryCache.project_id == project_id)
        ).first()
