from datetime import datetime
from sqlmodel import Field

from .base import BaseModelDB, UTCDateTime

class PasswordResetToken(BaseModelDB, table=True):
    __tablename__ = "password_reset_token"

    token: str = Field(index=True, unique=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    expires: datetime = Field(sa_type=UTCDateTime)
