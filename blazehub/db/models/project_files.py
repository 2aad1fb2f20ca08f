from sqlmodel import Field

from .base import BaseModelDB


class ProjectFile(BaseModelDB, table=True):
    __tablename__ = "project_file"

    project_id: int = Field(foreign_key="project.id", index=True)
    file_name: str
    storage_key: str = Field(index=True, unique=True, description="Localisation dans le backend de stockage")
    file_size: int
    mime_type: str
    sha256: str
    is_public: bool = Field(default=False)

    uploaded_by_id: int = Field(foreign_key="user.id", index=True)
