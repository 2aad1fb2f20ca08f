"""
➡️ But : Identifier l'appelant et appliquer les règles d'accès, en un seul endroit.

get_current_user() : Principal ou None (jamais d'exception pour "pas de session").

is_admin / is_super_admin : prédicats purs sur le rôle.

require_auth / require_admin / require_super_admin : dépendances FastAPI qui renvoient
le Principal ou coupent court avec 401 (pas de session) / 403 (rôle insuffisant)
avant que la logique de la route ne s'exécute.

ACCESS_POLICY : table déclarative route -> niveau requis, lue par guard(nom).
Les routes ne font plus de contrôle de rôle "à la main".
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlmodel import Session

from blazehub.db.models.users import UserRole
from blazehub.db.repositories.security_audit_logs import SecurityAuditLogRepository
from blazehub.db.repositories.users import AccountRepository, UserRepository
from blazehub.db.session import get_session
from blazehub.security.audit import UNAUTHORIZED_ROLE_ACCESS, client_context_from_headers, record_security_event
from blazehub.security.tokens import decode_token

logger = logging.getLogger(__name__)

GITHUB_PROVIDER = "github"

_bearer = HTTPBearer(auto_error=False)


class AccessLevel(IntEnum):
    PUBLIC = 0
    AUTHENTICATED = 1
    ADMIN = 2
    SUPER_ADMIN = 3


@dataclass(frozen=True)
class Principal:
    id: int
    email: str
    role: UserRole
    name: Optional[str] = None
    access_token: Optional[str] = None   # jeton GitHub délégué, si compte lié


# -----------------------------
# Prédicats
# -----------------------------
def is_admin(role: Optional[str]) -> bool:
    return role in (UserRole.ADMIN, UserRole.SUPER_ADMIN)


def is_super_admin(role: Optional[str]) -> bool:
    return role == UserRole.SUPER_ADMIN


def satisfies(role: Optional[str], level: AccessLevel) -> bool:
    if level == AccessLevel.SUPER_ADMIN:
        return is_super_admin(role)
    if level == AccessLevel.ADMIN:
        return is_admin(role)
    return True


# -----------------------------
# Session courante
# -----------------------------
def _read_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    # Bearer explicite d'abord, cookie httpOnly ensuite
    if credentials is not None and credentials.scheme.lower() == "bearer" and credentials.credentials:
        return credentials.credentials
    cookie_name = request.app.state.settings.AUTH_COOKIE_NAME
    return request.cookies.get(cookie_name)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    session: Session = Depends(get_session),
) -> Optional[Principal]:
    token = _read_token(request, credentials)
    if not token:
        return None

    try:
        decoded = decode_token(token, request.app.state.settings.jwt)
        user_id = int(decoded["sub"])
        role = UserRole(decoded.get("role", UserRole.USER))
    except (JWTError, KeyError, ValueError):
        return None

    user = UserRepository(session).get(user_id)
    if not user:
        return None

    account = AccountRepository(session).get_for_user(user.id, GITHUB_PROVIDER)
    # le rôle est celui du jeton : figé pour toute la durée de la session
    return Principal(
        id=user.id,
        email=user.email,
        role=role,
        name=user.name,
        access_token=account.access_token if account else None,
    )


# -----------------------------
# Gardes
# -----------------------------
def require_level(level: AccessLevel) -> Callable[..., Principal]:
    def dependency(
        request: Request,
        principal: Optional[Principal] = Depends(get_current_user),
        session: Session = Depends(get_session),
    ) -> Principal:
        if principal is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
        if not satisfies(principal.role, level):
            client = client_context_from_headers(
                request.headers.get("x-forwarded-for"),
                request.headers.get("x-real-ip"),
                request.headers.get("user-agent"),
            )
            record_security_event(
                SecurityAuditLogRepository(session),
                UNAUTHORIZED_ROLE_ACCESS,
                user_id=principal.id,
                details={"path": request.url.path, "required": level.name, "role": principal.role.value},
                client=client,
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return principal

    return dependency


def require_auth() -> Callable[..., Principal]:
    return require_level(AccessLevel.AUTHENTICATED)


def require_admin() -> Callable[..., Principal]:
    return require_level(AccessLevel.ADMIN)


def require_super_admin() -> Callable[..., Principal]:
    return require_level(AccessLevel.SUPER_ADMIN)


# -----------------------------
# Table des règles d'accès
# -----------------------------
ACCESS_POLICY: Dict[str, AccessLevel] = {
    # auth
    "auth.me": AccessLevel.AUTHENTICATED,
    "auth.github_link": AccessLevel.AUTHENTICATED,
    # posts
    "posts.list": AccessLevel.PUBLIC,
    "posts.read": AccessLevel.PUBLIC,
    "posts.create": AccessLevel.AUTHENTICATED,
    "posts.update": AccessLevel.AUTHENTICATED,     # + auteur uniquement (service)
    "posts.delete": AccessLevel.AUTHENTICATED,     # + auteur uniquement (service)
    "posts.like": AccessLevel.AUTHENTICATED,
    # users
    "users.follow_status": AccessLevel.PUBLIC,
    "users.follow": AccessLevel.AUTHENTICATED,
    "users.role": AccessLevel.SUPER_ADMIN,
    "user.coins": AccessLevel.AUTHENTICATED,
    "user.coins_add": AccessLevel.AUTHENTICATED,
    # projects
    "projects.list": AccessLevel.PUBLIC,
    "projects.public": AccessLevel.PUBLIC,
    "projects.all": AccessLevel.ADMIN,
    "projects.read": AccessLevel.PUBLIC,
    "projects.create": AccessLevel.ADMIN,
    "projects.update": AccessLevel.AUTHENTICATED,  # + propriétaire ou admin (service)
    "projects.delete": AccessLevel.AUTHENTICATED,  # + propriétaire ou admin (service)
    "projects.purchase_status": AccessLevel.PUBLIC,
    "projects.purchase": AccessLevel.AUTHENTICATED,
    "projects.files": AccessLevel.AUTHENTICATED,
    "projects.sync_repo": AccessLevel.AUTHENTICATED,    # + propriétaire uniquement (service)
    "projects.cached_files": AccessLevel.AUTHENTICATED, # + accès au projet (service)
    # files
    "files.upload": AccessLevel.AUTHENTICATED,     # + propriétaire du projet (service)
    "files.download": AccessLevel.PUBLIC,          # fichiers publics / projets gratuits
    "files.delete": AccessLevel.AUTHENTICATED,
    # payments
    "payments.stripe_intent": AccessLevel.AUTHENTICATED,
    "payments.razorpay_verify": AccessLevel.AUTHENTICATED,
    # github
    "github.repos": AccessLevel.AUTHENTICATED,
    "github.repo_content": AccessLevel.AUTHENTICATED,
    "github.repo_owner": AccessLevel.AUTHENTICATED,
    "github.commits": AccessLevel.AUTHENTICATED,
    # admin
    "admin.metrics": AccessLevel.ADMIN,
    "admin.metrics_chart": AccessLevel.ADMIN,
    "admin.security_stats": AccessLevel.ADMIN,
    "admin.users": AccessLevel.ADMIN,
}


def guard(policy: str) -> Callable[..., Optional[Principal]]:
    """
    Dépendance correspondant à l'entrée `policy` de ACCESS_POLICY.
    PUBLIC -> Principal optionnel (None si anonyme) ; sinon Principal garanti.
    """
    level = ACCESS_POLICY[policy]
    if level == AccessLevel.PUBLIC:
        return get_current_user
    return _GUARDS[level]()


_GUARDS: Dict[AccessLevel, Callable[[], Callable[..., Principal]]] = {
    AccessLevel.AUTHENTICATED: require_auth,
    AccessLevel.ADMIN: require_admin,
    AccessLevel.SUPER_ADMIN: require_super_admin,
}
