from datetime import datetime
from typing import Sequence

from sqlmodel import select

from blazehub.db.repositories.base import BaseRepository
from blazehub.db.models.security_audit_logs import SecurityAuditLog


class SecurityAuditLogRepository(BaseRepository[SecurityAuditLog]):
    model = SecurityAuditLog

    def count_since(self, since: datetime, *, contains: str | None = None, events: Sequence[str] | None = None) -> int:
        criteria = [SecurityAuditLog.timestamp >= since]
        if contains:
            criteria.append(SecurityAuditLog.event.contains(contains))
        if events:
            criteria.append(SecurityAuditLog.event.in_(list(events)))
        return self.count(*criteria)

    def recent_since(self, since: datetime, *, limit: int = 50) -> Sequence[SecurityAuditLog]:
        stmt = (
            select(SecurityAuditLog)
            .where(SecurityAuditLog.timestamp >= since)
            .order_by(SecurityAuditLog.timestamp.desc(), SecurityAuditLog.id.desc())
            .limit(limit)
        )
        return self.session.exec(stmt).all()
