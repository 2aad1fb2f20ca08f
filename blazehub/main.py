"""
➡️ But : assembler toutes les pièces du puzzle.

create_app(settings) crée l'instance FastAPI et configure :

logs, CORS, format des erreurs, schéma OpenAPI personnalisé

les objets partagés rangés dans app.state (settings, engine DB, stockage, mailer, client GitHub)

les routers (ex : /api/posts).

Initialise la base au démarrage (lifespan) et ferme le client GitHub à l'arrêt.

🔹 Avantages :

Aucun singleton de module : les tests construisent leur propre app avec leurs fakes.

Point unique d'exécution : uvicorn blazehub.main:create_app --factory --reload.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from blazehub.core.config import Settings
from blazehub.core.errors import install_error_handlers
from blazehub.core.logging import configure_logging
from blazehub.core.openapi import custom_openapi
from blazehub.db.session import build_engine, init_db
from blazehub.storage.base import StorageBackend
from blazehub.storage.factory import build_storage
from blazehub.utils.email import Mailer

from blazehub.api.routers import (
    authentication,
    posts,
    users,
    account,
    projects,
    files,
    payments,
    github,
    admin,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(app.state.engine)
    logger.info("%s started (env=%s, storage=%s)", app.title, app.state.settings.ENV, app.state.storage.name)
    yield
    app.state.github.close()
    app.state.engine.dispose()


def create_app(
    settings: Optional[Settings] = None,
    *,
    storage: Optional[StorageBackend] = None,
    mailer: Optional[Mailer] = None,
    github_transport: Optional[httpx.BaseTransport] = None,
) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        version="0.0.1",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "auth", "description": "Inscription, session, mot de passe"},
            {"name": "posts", "description": "Fil d'articles et votes"},
            {"name": "users", "description": "Abonnements et rôles"},
            {"name": "account", "description": "Solde de coins"},
            {"name": "projects", "description": "Marketplace de projets et achats"},
            {"name": "files", "description": "Fichiers de projets"},
            {"name": "payments", "description": "Paiements (maquettes)"},
            {"name": "github", "description": "Proxy GitHub"},
            {"name": "admin", "description": "Tableaux de bord admin"},
        ],
    )

    # Objets partagés
    app.state.settings = settings
    app.state.engine = build_engine(settings.DATABASE_URL, echo=False)
    app.state.storage = storage or build_storage(settings)
    app.state.mailer = mailer or Mailer(
        api_key=settings.RESEND_API_KEY,
        sender=settings.EMAIL_FROM,
        app_url=settings.APP_URL,
        api_url=settings.RESEND_API_URL,
    )
    app.state.github = httpx.Client(
        base_url=settings.GITHUB_API_URL,
        transport=github_transport,
        timeout=10,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS, allow_credentials=True,
        allow_methods=["*"], allow_headers=["*"],
    )

    install_error_handlers(app)

    # Routers
    for module in (authentication, posts, users, account, projects, files, payments, github, admin):
        app.include_router(module.router, prefix="/api")

    app.openapi = lambda: custom_openapi(app)
    return app


if __name__ == "__main__":
    settings = Settings()
    uvicorn.run(
        "blazehub.main:create_app", factory=True,
        host="127.0.0.1", port=8080, reload=(settings.ENV == "dev"),
    )  # http://localhost:8080
