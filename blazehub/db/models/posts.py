from typing import List, Optional

from sqlalchemy import Column, JSON
from sqlmodel import Field

from .base import BaseModelDB


class Post(BaseModelDB, table=True):
    """Article du fil : markdown + métadonnées, écrit par un utilisateur."""

    title: str = Field(index=True)
    description: Optional[str] = None
    markdown: str = ""
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    feature: Optional[str] = Field(default=None, description="URL de l'image mise en avant")

    author_id: int = Field(foreign_key="user.id", index=True)
