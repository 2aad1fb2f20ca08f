from datetime import datetime
from typing import List, Optional

from pydantic import Field, model_validator

from blazehub.core.schemas import APIModel
from blazehub.db.models.projects import ProjectCategory
from blazehub.features.files.schemas import ProjectFileOut
from blazehub.features.users.schemas import UserSummaryOut


# ---------- Inputs ----------

class ProjectIn(APIModel):
    name: str = Field(max_length=200)
    description: str
    category: ProjectCategory = ProjectCategory.FREE
    price: Optional[int] = None
    github_repo: Optional[str] = None
    owner_id: Optional[int] = None   # admin : créer pour un autre utilisateur

    @model_validator(mode="after")
    def check_fields(self):
        self.name = self.name.strip()
        self.description = self.description.strip()
        if not self.name:
            raise ValueError("Project name is required")
        if not self.description:
            raise ValueError("Project description is required")
        if self.category != ProjectCategory.FREE and (self.price is None or self.price <= 0):
            raise ValueError("Price must be greater than 0 for paid/premium projects")
        if self.category == ProjectCategory.FREE:
            self.price = None
        self.github_repo = (self.github_repo or "").strip() or None
        return self

class ProjectUpdateIn(ProjectIn):
    pass


# ---------- Outputs ----------

class ProjectOut(APIModel):
    id: int
    name: str
    description: str
    category: ProjectCategory
    price: Optional[int]
    github_repo: Optional[str]
    owner_id: int
    owner: Optional[UserSummaryOut] = None
    file_count: int = 0
    created_at: datetime
    updated_at: datetime

class ProjectDetailOut(ProjectOut):
    files: List[ProjectFileOut] = Field(default_factory=list)

class ProjectAdminOut(ProjectOut):
    file_ids: List[int] = Field(default_factory=list)

class ProjectsPageOut(APIModel):
    projects: List[ProjectOut]
    total_count: int
    has_more: bool

class ProjectDeletedOut(APIModel):
    message: str
    id: int
    name: str
    files_count: int

class PurchaseStatusOut(APIModel):
    purchased: bool

class PurchaseOut(APIModel):
    success: bool = True
    message: str
    coins_deducted: int
    remaining_coins: int
