from datetime import datetime
from typing import List, Optional

from pydantic import Field

from blazehub.core.schemas import APIModel


class CachedRepoFileOut(APIModel):
    name: Optional[str] = None
    path: Optional[str] = None
    type: Optional[str] = None
    size: int = 0

class CachedFilesOut(APIModel):
    files: List[CachedRepoFileOut]
    last_sync: datetime
    is_private: bool

class CachedFileIn(APIModel):
    file_path: str = Field(..., min_length=1)

class CachedFileContentOut(APIModel):
    content: str

class RepoSyncOut(APIModel):
    success: bool
    message: str
    files_count: int
