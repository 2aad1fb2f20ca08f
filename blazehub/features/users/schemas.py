from datetime import datetime
from typing import List, Optional

from pydantic import Field
from blazehub.core.schemas import APIModel

from blazehub.db.models.users import UserRole


class UserSummaryOut(APIModel):
    id: int
    name: Optional[str]
    image: Optional[str] = None

class UserAdminOut(APIModel):
    id: int
    name: Optional[str]
    email: str
    role: UserRole
    coin: int
    email_verified: Optional[datetime] = None
    last_login: Optional[datetime] = None
    created_at: datetime

class UsersListOut(APIModel):
    users: List[UserAdminOut]
    total_count: int

# ---------- Follow ----------

class FollowStatusOut(APIModel):
    is_following: bool

# ---------- Rôle ----------

class RoleUpdateIn(APIModel):
    role: str

class RoleUpdateOut(APIModel):
    id: int
    email: str
    role: UserRole

# ---------- Coins ----------

class CoinsOut(APIModel):
    coins: int

class CoinsAddIn(APIModel):
    coins: int = Field(gt=0)

class CoinsAddOut(APIModel):
    success: bool = True
    coins: int
    added: int
