"""
➡️ But : Configurer la base et gérer les sessions de base de données.

build_engine() : connexion à la base (sqlite:///blazehub.db par défaut).

init_db() : crée les tables à partir des modèles SQLModel.

get_session() : dépendance FastAPI qui ouvre une session sur l'engine de l'app, la fournit aux routes, puis la ferme proprement.

🔹 Avantages :

Un seul endroit pour gérer les connexions DB.

Réutilisable par injection (Depends(get_session)).

L'engine est construit par create_app() et rangé dans app.state (pas de singleton de module).
"""

from typing import Any, Dict, Iterator

from fastapi import Request
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

# Import all models for creating all tables
from blazehub.db.models.users import User, Account
from blazehub.db.models.password_reset_tokens import PasswordResetToken
from blazehub.db.models.posts import Post
from blazehub.db.models.likes import Like
from blazehub.db.models.follows import Follow
from blazehub.db.models.projects import Project
from blazehub.db.models.project_files import ProjectFile
from blazehub.db.models.purchases import Purchase
from blazehub.db.models.repository_caches import RepositoryCache
from blazehub.db.models.security_audit_logs import SecurityAuditLog


def build_engine(url: str, *, echo: bool = False) -> Engine:
    assert url, "DATABASE_URL must be set"

    is_sqlite = url.startswith("sqlite:")

    connect_args: Dict[str, Any] = {}
    kwargs: Dict[str, Any] = {}
    if is_sqlite:
        # Requis pour SQLite quand utilisé dans un app serveur (multi-threads)
        connect_args["check_same_thread"] = False
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            # une seule connexion partagée, sinon chaque connexion voit une base vide
            kwargs["poolclass"] = StaticPool

    return create_engine(
        url,
        echo=echo,
        connect_args=connect_args,
        pool_pre_ping=not is_sqlite,  # ping utile pour Postgres/MySQL ; inutile pour SQLite
        **kwargs,
    )


def init_db(engine: Engine) -> None:
    """
    Crée les tables si elles n'existent pas (usage dev/demo).
    En prod avec Alembic, préfère des migrations.
    """
    SQLModel.metadata.create_all(engine)


def get_session(request: Request) -> Iterator[Session]:
    """
    Dépendance FastAPI : fournit une session par requête.
    Utilisation :
        def route(..., session: Session = Depends(get_session)):
            ...
    """
    with Session(request.app.state.engine) as session:
        yield session
