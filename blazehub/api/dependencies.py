"""
➡️ But : Centraliser les dépendances réutilisables des routes.

Exemples :

get_settings() / get_storage() / get_mailer() : objets construits par create_app(), relus depuis app.state.

get_project_service() : crée un ProjectService à partir d'une session DB et du backend de stockage.

pagination() : paramètres communs offset et limit.

🔹 Avantages :

Routes plus propres (pas de code dupliqué).

Facile à injecter dans plusieurs endpoints (Depends()) et à remplacer en test.
"""

from datetime import timedelta
from typing import Optional

import httpx
from fastapi import Depends, Header, Query, Request
from sqlmodel import Session

from blazehub.core.config import Settings
from blazehub.db.session import get_session
from blazehub.storage.base import StorageBackend
from blazehub.utils.email import Mailer
from blazehub.security.audit import ClientContext, client_context_from_headers

from blazehub.db.repositories.users import UserRepository, AccountRepository
from blazehub.db.repositories.password_reset_tokens import PasswordResetTokenRepository
from blazehub.db.repositories.security_audit_logs import SecurityAuditLogRepository
from blazehub.db.repositories.posts import PostRepository
from blazehub.db.repositories.likes import LikeRepository
from blazehub.db.repositories.follows import FollowRepository
from blazehub.db.repositories.projects import ProjectRepository
from blazehub.db.repositories.project_files import ProjectFileRepository
from blazehub.db.repositories.purchases import PurchaseRepository
from blazehub.db.repositories.repository_caches import RepositoryCacheRepository

from blazehub.features.authentication.services import AuthService
from blazehub.features.users.services import UserService
from blazehub.features.posts.services import PostService
from blazehub.features.projects.services import ProjectService
from blazehub.features.files.services import ProjectFileService
from blazehub.features.payments.services import PaymentService
from blazehub.features.github.services import GitHubService, RepositoryCacheService
from blazehub.features.admin.services import AdminService


def pagination(
    offset: int = Query(0, ge=0, description="Décalage", examples=[0]),
    limit: int = Query(100, ge=1, le=500, description="Taille de page", examples=[100]),
):
    return {"offset": offset, "limit": limit}


# -----------------------------
# Objets applicatifs (app.state)
# -----------------------------
def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_storage(request: Request) -> StorageBackend:
    return request.app.state.storage

def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer

def get_github_client(request: Request) -> httpx.Client:
    return request.app.state.github


# -----------------------------
# Repositories
# -----------------------------
def get_user_repository(session: Session = Depends(get_session)) -> UserRepository:
    return UserRepository(session)

def get_audit_repository(session: Session = Depends(get_session)) -> SecurityAuditLogRepository:
    return SecurityAuditLogRepository(session)

def get_project_repository(session: Session = Depends(get_session)) -> ProjectRepository:
    return ProjectRepository(session)

def get_project_file_repository(session: Session = Depends(get_session)) -> ProjectFileRepository:
    return ProjectFileRepository(session)


# -----------------------------
# Auth
# -----------------------------
def get_auth_service(
    session: Session = Depends(get_session),
    user_repo: UserRepository = Depends(get_user_repository),
    audit_repo: SecurityAuditLogRepository = Depends(get_audit_repository),
    settings: Settings = Depends(get_settings),
    mailer: Mailer = Depends(get_mailer),
) -> AuthService:
    return AuthService(
        user_repo=user_repo,
        account_repo=AccountRepository(session),
        reset_repo=PasswordResetTokenRepository(session),
        audit_repo=audit_repo,
        mailer=mailer,
        jwt_settings=settings.jwt,
        otp_ttl=timedelta(minutes=settings.OTP_TTL_MINUTES),
        reset_ttl=timedelta(hours=settings.PASSWORD_RESET_TTL_HOURS),
    )


# -----------------------------
# Users
# -----------------------------
def get_user_service(
    session: Session = Depends(get_session),
    user_repo: UserRepository = Depends(get_user_repository),
    audit_repo: SecurityAuditLogRepository = Depends(get_audit_repository),
) -> UserService:
    return UserService(repo=user_repo, follow_repo=FollowRepository(session), audit_repo=audit_repo)


# -----------------------------
# Posts
# -----------------------------
def get_post_service(
    session: Session = Depends(get_session),
    user_repo: UserRepository = Depends(get_user_repository),
) -> PostService:
    return PostService(repo=PostRepository(session), like_repo=LikeRepository(session), user_repo=user_repo)


# -----------------------------
# Projects / fichiers
# -----------------------------
def get_project_service(
    session: Session = Depends(get_session),
    project_repo: ProjectRepository = Depends(get_project_repository),
    file_repo: ProjectFileRepository = Depends(get_project_file_repository),
    user_repo: UserRepository = Depends(get_user_repository),
    storage: StorageBackend = Depends(get_storage),
) -> ProjectService:
    return ProjectService(
        repo=project_repo,
        file_repo=file_repo,
        purchase_repo=PurchaseRepository(session),
        user_repo=user_repo,
        cache_repo=RepositoryCacheRepository(session),
        storage=storage,
    )

def get_project_file_service(
    file_repo: ProjectFileRepository = Depends(get_project_file_repository),
    project_svc: ProjectService = Depends(get_project_service),
    storage: StorageBackend = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> ProjectFileService:
    return ProjectFileService(
        repo=file_repo,
        project_svc=project_svc,
        storage=storage,
        max_bytes=settings.max_upload_bytes,
        presign_ttl=settings.PRESIGN_TTL_SECONDS,
    )


# -----------------------------
# Paiements / GitHub / Admin
# -----------------------------
def get_payment_service(settings: Settings = Depends(get_settings)) -> PaymentService:
    return PaymentService(demo_mode=settings.PAYMENTS_DEMO_MODE)

def get_github_service(
    client: httpx.Client = Depends(get_github_client),
    project_repo: ProjectRepository = Depends(get_project_repository),
    settings: Settings = Depends(get_settings),
) -> GitHubService:
    return GitHubService(
        client=client,
        project_repo=project_repo,
        server_token=settings.GITHUB_TOKEN,
        user_agent=settings.GITHUB_USER_AGENT,
    )

def get_repository_cache_service(
    session: Session = Depends(get_session),
    github: GitHubService = Depends(get_github_service),
    project_svc: ProjectService = Depends(get_project_service),
    storage: StorageBackend = Depends(get_storage),
) -> RepositoryCacheService:
    return RepositoryCacheService(
        github=github,
        repo=RepositoryCacheRepository(session),
        project_svc=project_svc,
        storage=storage,
    )

def get_admin_service(
    session: Session = Depends(get_session),
    user_repo: UserRepository = Depends(get_user_repository),
    audit_repo: SecurityAuditLogRepository = Depends(get_audit_repository),
) -> AdminService:
    return AdminService(
        post_repo=PostRepository(session),
        user_repo=user_repo,
        like_repo=LikeRepository(session),
        follow_repo=FollowRepository(session),
        audit_repo=audit_repo,
    )


# -----------------------------
# Contexte client (audit)
# -----------------------------
def get_client_ip_and_ua(
    x_forwarded_for: Optional[str] = Header(default=None, alias="X-Forwarded-For"),
    x_real_ip: Optional[str] = Header(default=None, alias="X-Real-IP"),
    user_agent: Optional[str] = Header(default=None, alias="User-Agent"),
) -> ClientContext:
    return client_context_from_headers(x_forwarded_for, x_real_ip, user_agent)
