from typing import Optional, Sequence, Tuple

from sqlalchemy import or_
from sqlmodel import select, func

from blazehub.db.repositories.base import BaseRepository
from blazehub.db.models.projects import Project, ProjectCategory


class ProjectRepository(BaseRepository[Project]):
    model = Project

    def get_by_owner_and_name(self, owner_id: int, name: str) -> Optional[Project]:
        return self.session.exec(
            select(Project).where(Project.owner_id == owner_id, Project.name == name)
        ).first()

    def search(
        self,
        *,
        category: Optional[ProjectCategory] = None,
        search: Optional[str] = None,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Tuple[Sequence[Project], int]:
        """Retourne (page, total) ; tri par dernière mise à jour."""
        criteria = []
        if category is not None:
            criteria.append(Project.category == category)
        if search:
            pattern = f"%{search.lower()}%"
            criteria.append(
                or_(
                    func.lower(Project.name).like(pattern),
                    func.lower(Project.description).like(pattern),
                )
            )

        stmt = select(Project).where(*criteria).order_by(Project.updated_at.desc(), Project.id.desc())
        if offset:
            stmt = stmt.offset(offset)
        if limit:
            stmt = stmt.limit(limit)
        items = self.session.exec(stmt).all()
        return items, self.count(*criteria)

    def list_all(self, *, only_free: bool = False) -> Sequence[Project]:
        stmt = select(Project)
        if only_free:
            stmt = stmt.where(Project.category == ProjectCategory.FREE)
        stmt = stmt.order_by(Project.created_at.desc(), Project.id.desc())
        return self.session.exec(stmt).all()
