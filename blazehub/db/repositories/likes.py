from typing import Dict, Iterable, Optional, Tuple

from sqlalchemy import delete
from sqlmodel import select, func

from blazehub.db.repositories.base import BaseRepository
from blazehub.db.models.likes import Like


class LikeRepository(BaseRepository[Like]):
    model = Like

    def get_vote(self, user_id: int, post_id: int) -> Optional[Like]:
        stmt = select(Like).where(Like.user_id == user_id, Like.post_id == post_id)
        return self.session.exec(stmt).first()

    def counts_for_post(self, post_id: int) -> Tuple[int, int]:
        """(likes, dislikes) recalculés à partir de toutes les lignes du post."""
        rows = self.session.exec(select(Like.value).where(Like.post_id == post_id)).all()
        likes = sum(1 for v in rows if v == 1)
        dislikes = sum(1 for v in rows if v == -1)
        return likes, dislikes

    def counts_for_posts(self, post_ids: Iterable[int]) -> Dict[int, Tuple[int, int]]:
        ids = list(post_ids)
        out: Dict[int, Tuple[int, int]] = {pid: (0, 0) for pid in ids}
        if not ids:
            return out
        stmt = (
            select(Like.post_id, Like.value, func.count(Like.id))
            .where(Like.post_id.in_(ids))
            .group_by(Like.post_id, Like.value)
        )
        for post_id, value, count in self.session.exec(stmt).all():
            likes, dislikes = out[post_id]
            if value == 1:
                likes = count
            elif value == -1:
                dislikes = count
            out[post_id] = (likes, dislikes)
        return out

    def delete_for_post(self, post_id: int, *, commit: bool = True) -> None:
        self.session.exec(delete(Like).where(Like.post_id == post_id))  # type: ignore[call-overload]
        if commit:
            self.session.commit()
