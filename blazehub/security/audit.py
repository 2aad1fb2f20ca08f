import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from blazehub.db.repositories.security_audit_logs import SecurityAuditLogRepository

logger = logging.getLogger(__name__)

# Événements connus (les stats admin comptent par nom / sous-chaîne)
LOGIN_ATTEMPT_USER_NOT_FOUND = "LOGIN_ATTEMPT_USER_NOT_FOUND"
LOGIN_ATTEMPT_INVALID_PASSWORD = "LOGIN_ATTEMPT_INVALID_PASSWORD"
LOGIN_ATTEMPT_UNVERIFIED = "LOGIN_ATTEMPT_UNVERIFIED"
LOGIN_SUCCESS = "LOGIN_SUCCESS"
PASSWORD_RESET_REQUESTED = "PASSWORD_RESET_REQUESTED"
PASSWORD_RESET_COMPLETED = "PASSWORD_RESET_COMPLETED"
UNAUTHORIZED_ROLE_ACCESS = "UNAUTHORIZED_ROLE_ACCESS"
ROLE_CHANGED = "ROLE_CHANGED"

FAILED_LOGIN_EVENTS = (
    LOGIN_ATTEMPT_INVALID_PASSWORD,
    LOGIN_ATTEMPT_USER_NOT_FOUND,
    LOGIN_ATTEMPT_UNVERIFIED,
)


@dataclass
class ClientContext:
    ip: Optional[str]
    user_agent: Optional[str]


def client_context_from_headers(
    x_forwarded_for: Optional[str],
    x_real_ip: Optional[str],
    user_agent: Optional[str],
) -> ClientContext:
    """IP depuis X-Forwarded-For > X-Real-IP (si derrière un proxy), et le User-Agent."""
    ip = None
    if x_forwarded_for:
        ip = x_forwarded_for.split(",")[0].strip()
    elif x_real_ip:
        ip = x_real_ip
    return ClientContext(ip=ip, user_agent=user_agent)


def record_security_event(
    repo: SecurityAuditLogRepository,
    event: str,
    *,
    user_id: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None,
    client: Optional[ClientContext] = None,
) -> None:
    """Journal d'audit : un échec d'écriture est loggé mais ne casse jamais la requête."""
    try:
        repo.create(
            event=event,
            user_id=user_id,
            details=json.dumps(details) if details else None,
            ip_address=client.ip if client else None,
            user_agent=client.user_agent if client else None,
        )
    except SQLAlchemyError:
        repo.rollback()
        logger.exception("Failed to log security event %s", event)
