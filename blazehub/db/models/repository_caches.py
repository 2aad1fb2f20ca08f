from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import JSON
from sqlmodel import Field

from .base import BaseModelDB, UTCDateTime, utcnow


class RepositoryCache(BaseModelDB, table=True):
    """Copie du dépôt GitHub lié à un projet ; une ligne par projet."""
    __tablename__ = "repository_cache"

    project_id: int = Field(foreign_key="project.id", index=True, unique=True)
    owner: str
    repo: str
    is_private: bool = Field(default=True)
    # [{name, path, type, size, storageKey?}]
    files: List[Dict[str, Any]] = Field(default_factory=list, sa_type=JSON)
    last_sync: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
