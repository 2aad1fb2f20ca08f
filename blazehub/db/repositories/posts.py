from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import or_
from sqlmodel import select, func

from blazehub.db.repositories.base import BaseRepository
from blazehub.db.models.posts import Post


class PostRepository(BaseRepository[Post]):
    model = Post

    def search(self, query: Optional[str] = None) -> Sequence[Post]:
        """Posts du plus récent au plus ancien, filtrés (insensible à la casse) sur titre/description."""
        stmt = select(Post)
        if query:
            pattern = f"%{query.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(Post.title).like(pattern),
                    func.lower(func.coalesce(Post.description, "")).like(pattern),
                )
            )
        stmt = stmt.order_by(Post.created_at.desc(), Post.id.desc())
        return self.session.exec(stmt).all()

    def next_after(self, created_at: datetime) -> Optional[Post]:
        stmt = (
            select(Post)
            .where(Post.created_at > created_at)
            .order_by(Post.created_at.asc())
        )
        return self.session.exec(stmt).first()

    def previous_before(self, created_at: datetime) -> Optional[Post]:
        stmt = (
            select(Post)
            .where(Post.created_at < created_at)
            .order_by(Post.created_at.desc())
        )
        return self.session.exec(stmt).first()
