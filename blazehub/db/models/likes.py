from sqlmodel import Field
from sqlalchemy import CheckConstraint, UniqueConstraint

from blazehub.db.models.base import BaseModelDB

class Like(BaseModelDB, table=True):
    """Un vote par (user, post) : +1 (like) ou -1 (dislike)."""
    __tablename__ = "post_like"
    __table_args__ = (
        UniqueConstraint("user_id", "post_id", name="uq_like_user_post"),
        CheckConstraint("value IN (1, -1)", name="ck_like_value"),
    )

    user_id: int = Field(foreign_key="user.id", index=True)
    post_id: int = Field(foreign_key="post.id", index=True)
    value: int
