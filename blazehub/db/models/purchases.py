from sqlmodel import Field
from sqlalchemy import UniqueConstraint

from blazehub.db.models.base import BaseModelDB

class Purchase(BaseModelDB, table=True):
    """L'existence de la ligne suffit à débloquer le projet pour l'utilisateur."""
    __table_args__ = (
        UniqueConstraint("user_id", "project_id", name="uq_purchase_user_project"),
    )

    user_id: int = Field(foreign_key="user.id", index=True)
    project_id: int = Field(foreign_key="project.id", index=True)
