from typing import Dict, Iterable, List, Sequence

from sqlmodel import select

from blazehub.db.repositories.base import BaseRepository
from blazehub.db.models.project_files import ProjectFile


class ProjectFileRepository(BaseRepository[ProjectFile]):
    model = ProjectFile

    def list_for_project(self, project_id: int) -> Sequence[ProjectFile]:
        stmt = (
            select(ProjectFile)
            .where(ProjectFile.project_id == project_id)
            .order_by(ProjectFile.created_at.asc(), ProjectFile.id.asc())
        )
        return self.session.exec(stmt).all()

    def files_by_project(self, project_ids: Iterable[int]) -> Dict[int, List[ProjectFile]]:
        ids = list(project_ids)
        out: Dict[int, List[ProjectFile]] = {pid: [] for pid in ids}
        if not ids:
            return out
        rows = self.session.exec(select(ProjectFile).where(ProjectFile.project_id.in_(ids))).all()
        for row in rows:
            out[row.project_id].append(row)
        return out
