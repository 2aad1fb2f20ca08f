from datetime import datetime
from typing import List

from blazehub.core.schemas import APIModel


class ProjectFileOut(APIModel):
    id: int
    project_id: int
    file_name: str
    file_size: int
    mime_type: str
    sha256: str
    is_public: bool
    created_at: datetime

class ProjectFilesOut(APIModel):
    files: List[ProjectFileOut]
