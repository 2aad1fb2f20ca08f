from datetime import datetime
from typing import Optional

from sqlmodel import Field

from .base import BaseModelDB, UTCDateTime, utcnow


class SecurityAuditLog(BaseModelDB, table=True):
    __tablename__ = "security_audit_log"

    event: str = Field(index=True)          # ex: LOGIN_ATTEMPT_INVALID_PASSWORD
    user_id: Optional[int] = Field(default=None, index=True)
    details: Optional[str] = None           # JSON sérialisé
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow, index=True, sa_type=UTCDateTime)
