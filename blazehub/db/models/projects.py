from enum import Enum
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from .base import BaseModelDB


class ProjectCategory(str, Enum):
    FREE = "free"
    PAID = "paid"
    PREMIUM = "premium"


class Project(BaseModelDB, table=True):
    """Projet vendu sur la marketplace ; l'accès dépend de la catégorie."""
    __table_args__ = (
        UniqueConstraint("owner_id", "name", name="uq_project_owner_name"),
    )

    name: str = Field(index=True)
    description: str
    category: ProjectCategory = Field(default=ProjectCategory.FREE, index=True)
    price: Optional[int] = Field(default=None, description="Prix en coins (None si gratuit)")
    github_repo: Optional[str] = None

    owner_id: int = Field(foreign_key="user.id", index=True)
