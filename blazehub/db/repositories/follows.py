from typing import Optional
from sqlmodel import select

from blazehub.db.repositories.base import BaseRepository
from blazehub.db.models.follows import Follow

class FollowRepository(BaseRepository[Follow]):
    model = Follow

    def get_edge(self, follower_id: int, following_id: int) -> Optional[Follow]:
        return self.session.exec(
            select(self.model)
            .where(self.model.follower_id == follower_id)
            .where(self.model.following_id == following_id)
        ).first()

    def count_edges(self, follower_id: int, following_id: int) -> int:
        return self.count(
            self.model.follower_id == follower_id,
            self.model.following_id == following_id,
        )
