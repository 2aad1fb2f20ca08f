from datetime import datetime
from typing import List, Optional

from pydantic import Field, StrictInt
from blazehub.core.schemas import APIModel

from blazehub.features.users.schemas import UserSummaryOut


# ---------- Inputs ----------

class PostIn(APIModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    markdown: str = ""
    tags: List[str] = Field(default_factory=list)
    feature: Optional[str] = None

class PostUpdateIn(APIModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    markdown: Optional[str] = None
    tags: Optional[List[str]] = None
    feature: Optional[str] = None

class VoteIn(APIModel):
    value: StrictInt


# ---------- Outputs ----------

class PostLinkOut(APIModel):
    id: int
    title: str

class PostOut(APIModel):
    id: int
    title: str
    description: Optional[str]
    markdown: str
    tags: List[str]
    feature: Optional[str]
    created_at: datetime
    updated_at: datetime
    author: Optional[UserSummaryOut]
    like_count: int = 0
    dislike_count: int = 0

class PostDetailOut(PostOut):
    next_post: Optional[PostLinkOut] = None
    prev_post: Optional[PostLinkOut] = None

class VoteCountsOut(APIModel):
    like_count: int
    dislike_count: int
